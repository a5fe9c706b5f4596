"""Structured event logging for ccpack packaging runs."""

from __future__ import annotations

import json
import sys
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, TextIO


def _utc_now() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


class EventLog:
    """Line-oriented event emitter injected into packagers and pipeline stages.

    Plain mode writes ``[ccpack] <event> key=value ... summary`` lines; trace
    mode writes one sorted-key JSON record per event. A failing stream never
    interrupts packaging.
    """

    def __init__(self, stream: Optional[TextIO] = None, trace: bool = False, enabled: bool = True):
        self._stream = stream
        self.trace = bool(trace)
        self.enabled = bool(enabled)

    @classmethod
    def disabled(cls) -> "EventLog":
        return cls(enabled=False)

    def emit(self, event: str, summary: str = "", **fields: Any) -> None:
        if not self.enabled:
            return
        record: Dict[str, Any] = dict(fields)
        record["event"] = str(event)
        if summary:
            record["summary"] = str(summary)
        if self.trace:
            record["ts_utc"] = _utc_now()
            line = json.dumps(record, sort_keys=True)
        else:
            parts: List[str] = [str(event) or "ccpack"]
            for key in sorted(fields):
                parts.append("{}={}".format(key, fields[key]))
            if summary:
                parts.append(str(summary))
            line = "[ccpack] {}".format(" ".join(parts))
        stream = self._stream if self._stream is not None else sys.stderr
        try:
            stream.write(line + "\n")
            stream.flush()
        except (OSError, ValueError):
            # log sink failures never abort packaging
            return

    def collect_start(self, pass_id: str, root: str) -> None:
        self.emit("collect_start", pass_id=pass_id, root=root)

    def descriptor(self, pass_id: str, name: str, source_path: str) -> None:
        if self.trace:
            self.emit("descriptor", pass_id=pass_id, name=name, source_path=source_path)

    def collect_end(self, pass_id: str, count: int) -> None:
        self.emit("collect_end", pass_id=pass_id, count=int(count))

    def entry_packed(self, name: str, size: int) -> None:
        if self.trace:
            self.emit("entry_packed", name=name, size=int(size))

    def archive_complete(self, entry_count: int, byte_count: int, sha256: str) -> None:
        self.emit(
            "archive_complete",
            entries=int(entry_count),
            bytes=int(byte_count),
            sha256=sha256,
        )

    def archive_refused(self, code: str, message: str) -> None:
        self.emit("archive_refused", summary=message, code=code)

    def package_skipped(self, language: str, reason: str) -> None:
        self.emit("package_skipped", summary=reason, language=language)

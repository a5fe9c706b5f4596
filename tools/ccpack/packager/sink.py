"""Gzip compression sink writing the tar stream to a caller-supplied destination."""

from __future__ import annotations

import gzip
import hashlib
import io
import os
import uuid
import zlib
from dataclasses import dataclass
from typing import Iterable, Optional

from tools.ccpack.core.errors import CompressionError, WriteError
from tools.ccpack.core.log import EventLog

from .constants import DEFAULT_COMPRESSLEVEL, ZERO_TIME


@dataclass(frozen=True)
class SinkResult:
    byte_count: int
    sha256: str


class _DestinationWriter:
    """File-like front for the destination that hashes output and can be aborted.

    Once aborted every further write is dropped, so a half-built archive never
    receives a gzip trailer.
    """

    def __init__(self, dest):
        self._dest = dest
        self._write = getattr(dest, "write", None) or getattr(dest, "sendall", None)
        if self._write is None:
            raise WriteError("refuse.write_failed", "destination is not writable", {"type": type(dest).__name__})
        self._digest = hashlib.sha256()
        self.byte_count = 0
        self.aborted = False

    def write(self, data) -> int:
        if self.aborted:
            return len(data)
        chunk = bytes(data)
        try:
            self._write(chunk)
        except Exception as exc:
            self.aborted = True
            raise WriteError("refuse.write_failed", "destination write failed", {"error": str(exc)}) from exc
        self._digest.update(chunk)
        self.byte_count += len(chunk)
        return len(chunk)

    def flush(self) -> None:
        if self.aborted:
            return
        flush = getattr(self._dest, "flush", None)
        if flush is None:
            return
        try:
            flush()
        except Exception as exc:
            self.aborted = True
            raise WriteError("refuse.write_failed", "destination flush failed", {"error": str(exc)}) from exc

    def abort(self) -> None:
        self.aborted = True

    def hexdigest(self) -> str:
        return self._digest.hexdigest()


class CompressionSink:
    def __init__(self, compresslevel: int = DEFAULT_COMPRESSLEVEL, log: Optional[EventLog] = None):
        self.compresslevel = int(compresslevel)
        self.log = log or EventLog.disabled()

    def wrap(self, chunks: Iterable[bytes], dest) -> SinkResult:
        """Compress ``chunks`` into ``dest`` as they are produced.

        Returns only after the destination has taken every byte; any failure
        upstream or downstream aborts the destination writer and propagates.
        """
        if not 0 <= self.compresslevel <= 9:
            raise CompressionError(
                "refuse.compression_failed",
                "gzip compresslevel must be 0-9",
                {"compresslevel": self.compresslevel},
            )
        writer = _DestinationWriter(dest)
        try:
            gz = gzip.GzipFile(filename="", mode="wb", fileobj=writer, mtime=ZERO_TIME, compresslevel=self.compresslevel)
        except (zlib.error, ValueError) as exc:
            writer.abort()
            raise CompressionError("refuse.compression_failed", "gzip compressor setup failed", {"error": str(exc)}) from exc
        try:
            for chunk in chunks:
                gz.write(chunk)
            gz.close()
            writer.flush()
        except zlib.error as exc:
            writer.abort()
            gz.close()
            raise CompressionError("refuse.compression_failed", "gzip compression failed", {"error": str(exc)}) from exc
        except BaseException:
            writer.abort()
            gz.close()
            raise
        return SinkResult(byte_count=writer.byte_count, sha256=writer.hexdigest())


def _is_path(dest) -> bool:
    return isinstance(dest, (str, bytes, os.PathLike))


def write_archive(chunks: Iterable[bytes], dest, compresslevel: int = DEFAULT_COMPRESSLEVEL, log: Optional[EventLog] = None) -> SinkResult:
    """Run ``chunks`` through a :class:`CompressionSink` into ``dest``.

    A path destination is written through a sibling temp file and renamed into
    place only on success; on failure the target path is left untouched.
    """
    sink = CompressionSink(compresslevel=compresslevel, log=log)
    if not _is_path(dest):
        return sink.wrap(chunks, dest)

    target = os.path.abspath(os.fsdecode(dest))
    parent = os.path.dirname(target)
    temp_path = os.path.join(parent, ".ccpack-{}.tmp".format(uuid.uuid4().hex))
    try:
        # 0o666 filtered by the umask, same as a plain open(path, "wb")
        fd = os.open(temp_path, os.O_WRONLY | os.O_CREAT | os.O_EXCL | getattr(os, "O_BINARY", 0), 0o666)
    except OSError as exc:
        raise WriteError("refuse.write_failed", "unable to create archive file", {"path": target, "error": str(exc)}) from exc
    try:
        with io.open(fd, "wb") as handle:
            result = sink.wrap(chunks, handle)
        os.replace(temp_path, target)
    except OSError as exc:
        _remove_if_exists(temp_path)
        raise WriteError("refuse.write_failed", "unable to write archive file", {"path": target, "error": str(exc)}) from exc
    except BaseException:
        _remove_if_exists(temp_path)
        raise
    return result


def _remove_if_exists(path: str) -> None:
    if os.path.exists(path):
        os.remove(path)

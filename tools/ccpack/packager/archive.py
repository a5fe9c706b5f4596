"""Deterministic tar stream construction from ordered archive descriptors."""

from __future__ import annotations

import posixpath
import tarfile
from dataclasses import dataclass
from typing import Iterator, List, Optional, Sequence

from tools.ccpack.core.errors import EntryNameError, EntrySizeError, ReadError
from tools.ccpack.core.log import EventLog

from .collect import ArchiveDescriptor
from .constants import ENTRY_MODE, TAR_BLOCK_SIZE, TAR_END_BLOCKS, USTAR_MAX_SIZE, ZERO_TIME


END_OF_ARCHIVE = b"\0" * (TAR_BLOCK_SIZE * TAR_END_BLOCKS)


@dataclass(frozen=True)
class ArchiveEntryHeader:
    name: str
    size: int
    mode: int = ENTRY_MODE
    atime: int = ZERO_TIME
    ctime: int = ZERO_TIME
    mtime: int = ZERO_TIME

    def to_tarinfo(self) -> tarfile.TarInfo:
        info = tarfile.TarInfo(self.name)
        info.type = tarfile.REGTYPE
        info.size = int(self.size)
        info.mode = int(self.mode)
        info.mtime = int(self.mtime)
        info.uid = 0
        info.gid = 0
        info.uname = ""
        info.gname = ""
        return info

    def encode(self) -> bytes:
        # ustar carries no atime/ctime fields and never emits pax records
        if int(self.size) > USTAR_MAX_SIZE:
            raise EntrySizeError(
                "refuse.entry_too_large",
                "entry size does not fit a ustar header",
                {"name": self.name, "size": int(self.size), "limit": USTAR_MAX_SIZE},
            )
        try:
            return self.to_tarinfo().tobuf(format=tarfile.USTAR_FORMAT, encoding="utf-8", errors="strict")
        except ValueError as exc:
            raise EntryNameError(
                "refuse.entry_name_too_long",
                "entry name does not fit a ustar header",
                {"name": self.name, "error": str(exc)},
            ) from exc


def _padding(size: int) -> bytes:
    remainder = int(size) % TAR_BLOCK_SIZE
    if not remainder:
        return b""
    return b"\0" * (TAR_BLOCK_SIZE - remainder)


def validate_names(descriptors: Sequence[ArchiveDescriptor]) -> None:
    seen = set()
    for desc in descriptors:
        name = str(desc.name or "")
        if not name or name.startswith("/") or "\\" in name:
            raise EntryNameError("refuse.entry_name_invalid", "invalid logical entry name", {"name": name})
        if ".." in name.split("/") or posixpath.normpath(name) != name:
            raise EntryNameError("refuse.entry_name_invalid", "logical entry name is not normalized", {"name": name})
        if name in seen:
            raise EntryNameError(
                "refuse.entry_duplicate",
                "duplicate logical entry name",
                {"name": name, "source_path": desc.source_path},
            )
        seen.add(name)


class ArchiveBuilder:
    """Turns descriptors into tar bytes, one whole entry at a time, in input order."""

    def __init__(self, log: Optional[EventLog] = None):
        self.log = log or EventLog.disabled()

    def read_content(self, desc: ArchiveDescriptor) -> bytes:
        try:
            with open(desc.source_path, "rb") as handle:
                content = handle.read()
        except OSError as exc:
            raise ReadError(
                "refuse.read_failed",
                "failed to read {}".format(desc.source_path),
                {"name": desc.name, "path": desc.source_path, "error": exc.strerror or str(exc)},
            ) from exc
        if not content:
            raise ReadError(
                "refuse.read_empty",
                "failed to read {}".format(desc.source_path),
                {"name": desc.name, "path": desc.source_path},
            )
        return content

    def build(self, descriptors: Sequence[ArchiveDescriptor]) -> Iterator[bytes]:
        """Validate names up front and return the lazy tar chunk stream.

        Each yielded chunk is one complete entry (header, content, padding);
        the last chunk is the end-of-archive marker.
        """
        ordered: List[ArchiveDescriptor] = list(descriptors)
        validate_names(ordered)
        return self._entries(ordered)

    def _entries(self, descriptors: List[ArchiveDescriptor]) -> Iterator[bytes]:
        for desc in descriptors:
            content = self.read_content(desc)
            header = ArchiveEntryHeader(name=desc.name, size=len(content))
            yield header.encode() + content + _padding(len(content))
            self.log.entry_packed(desc.name, len(content))
        yield END_OF_ARCHIVE

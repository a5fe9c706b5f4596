"""Recursive descriptor collection for source and metadata trees."""

from __future__ import annotations

import os
import stat
from dataclasses import dataclass
from typing import Callable, Iterable, Iterator, List, Optional

from tools.ccpack.core.errors import TraversalError
from tools.ccpack.core.log import EventLog

from .classify import is_metadata
from .constants import METADATA_PREFIX


@dataclass(frozen=True)
class ArchiveDescriptor:
    """One file to pack: logical archive name plus the path to read from."""

    name: str
    source_path: str


def _norm(path: str) -> str:
    return str(path or "").replace("\\", "/")


def join_name(*parts: str) -> str:
    tokens = [_norm(part).strip("/") for part in parts]
    return "/".join(token for token in tokens if token)


class DescriptorCollector:
    """Walks a tree in filesystem order and turns matching files into descriptors."""

    def __init__(self, excluded_dirs: Iterable[str] = (), log: Optional[EventLog] = None):
        self.excluded_dirs = frozenset(str(item) for item in excluded_dirs)
        self.log = log or EventLog.disabled()

    def _walk_error(self, exc: OSError) -> None:
        raise TraversalError(
            "refuse.traversal_failed",
            "directory walk failed: {}".format(exc.strerror or exc),
            {"path": _norm(exc.filename or "")},
        ) from exc

    def walk_files(self, root: str) -> Iterator[str]:
        root = os.path.abspath(root)
        # os.walk reports a file root as an empty tree
        if os.path.lexists(root) and not os.path.isdir(root):
            raise TraversalError("refuse.traversal_failed", "walk root is not a directory", {"path": _norm(root)})
        for walk_root, dirs, files in os.walk(root, onerror=self._walk_error):
            if self.excluded_dirs:
                dirs[:] = [name for name in dirs if name not in self.excluded_dirs]
            for name in files:
                abs_path = os.path.join(walk_root, name)
                try:
                    mode = os.lstat(abs_path).st_mode
                except OSError as exc:
                    self._walk_error(exc)
                if stat.S_ISREG(mode):
                    yield abs_path

    def collect(
        self,
        root: str,
        predicate: Callable[[str], bool],
        name_for: Callable[[str], str],
        pass_id: str = "source",
    ) -> List[ArchiveDescriptor]:
        """Drain the walk of ``root`` and return descriptors for files matching ``predicate``.

        ``name_for`` receives the ``/``-separated path relative to ``root``.
        """
        root = os.path.abspath(root)
        self.log.collect_start(pass_id, _norm(root))
        out: List[ArchiveDescriptor] = []
        for abs_path in self.walk_files(root):
            if not predicate(abs_path):
                continue
            rel = _norm(os.path.relpath(abs_path, root))
            desc = ArchiveDescriptor(name=name_for(rel), source_path=abs_path)
            self.log.descriptor(pass_id, desc.name, _norm(abs_path))
            out.append(desc)
        self.log.collect_end(pass_id, len(out))
        return out

    def find_metadata_descriptors(self, root: str) -> List[ArchiveDescriptor]:
        return self.collect(
            root,
            is_metadata,
            lambda rel: join_name(METADATA_PREFIX, rel),
            pass_id="metadata",
        )

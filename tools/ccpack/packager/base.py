"""Abstract packager contract and default collect/build/compress orchestration."""

from __future__ import annotations

import io
from abc import ABCMeta, abstractmethod
from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple

from tools.ccpack.core.errors import ConstructionError, PackagerError
from tools.ccpack.core.log import EventLog

from .archive import ArchiveBuilder
from .classify import ClassificationRule, SourceClassifier
from .collect import ArchiveDescriptor, DescriptorCollector
from .constants import DEFAULT_COMPRESSLEVEL
from .sink import write_archive


@dataclass(frozen=True)
class PackageResult:
    """Summary of one packaging call; ``data`` is set only for in-memory output."""

    entries: Tuple[str, ...]
    byte_count: int
    sha256: str
    data: Optional[bytes] = None


class BasePackager(metaclass=ABCMeta):
    """Shared machinery for per-language chaincode packagers.

    Subclasses supply ``find_source`` (root resolution and naming convention)
    and ``package`` (the public entry point, normally a thin call to
    ``assemble``).
    """

    language = ""

    def __new__(cls, *args, **kwargs):
        missing = sorted(getattr(cls, "__abstractmethods__", ()))
        if cls is BasePackager or missing:
            raise ConstructionError(
                "refuse.packager_abstract",
                "can not construct abstract packager {}".format(cls.__name__),
                {"class": cls.__name__, "missing": missing},
            )
        return super().__new__(cls)

    def __init__(
        self,
        keep: Iterable[str],
        excluded_dirs: Iterable[str] = (),
        compresslevel: int = DEFAULT_COMPRESSLEVEL,
        log: Optional[EventLog] = None,
    ):
        if keep is None:
            raise ConstructionError("refuse.packager_keep_missing", "source extension list is required", {"class": type(self).__name__})
        self.rule = ClassificationRule.from_extensions(keep)
        self.classifier = SourceClassifier(self.rule)
        self.excluded_dirs = tuple(excluded_dirs)
        self.compresslevel = int(compresslevel)
        self.log = log or EventLog.disabled()

    @property
    def keep(self) -> Tuple[str, ...]:
        return tuple(sorted(self.rule.extensions))

    @abstractmethod
    def package(self, chaincode_path: str, metadata_path: Optional[str] = None, dest=None) -> PackageResult:
        """Package the chaincode at ``chaincode_path`` into ``dest`` (bytes when omitted)."""

    @abstractmethod
    def find_source(self, root: str) -> List[ArchiveDescriptor]:
        """Return descriptors for every source file under ``root``."""

    def is_source(self, path: str) -> bool:
        return self.classifier.is_source(path)

    def is_metadata(self, path: str) -> bool:
        return self.classifier.is_metadata(path)

    def source_collector(self) -> DescriptorCollector:
        return DescriptorCollector(excluded_dirs=self.excluded_dirs, log=self.log)

    def find_metadata_descriptors(self, root: str) -> List[ArchiveDescriptor]:
        return DescriptorCollector(log=self.log).find_metadata_descriptors(root)

    def order_descriptors(
        self,
        source: List[ArchiveDescriptor],
        metadata: List[ArchiveDescriptor],
    ) -> List[ArchiveDescriptor]:
        """Source entries first, then metadata, each group sorted by name."""
        ordered = sorted(source, key=lambda desc: desc.name)
        ordered.extend(sorted(metadata, key=lambda desc: desc.name))
        return ordered

    def generate_tar_gz(self, descriptors: List[ArchiveDescriptor], dest=None) -> PackageResult:
        buffer = io.BytesIO() if dest is None else None
        try:
            chunks = ArchiveBuilder(log=self.log).build(descriptors)
            result = write_archive(chunks, buffer if dest is None else dest, compresslevel=self.compresslevel, log=self.log)
        except PackagerError as exc:
            self.log.archive_refused(exc.code, exc.message)
            raise
        self.log.archive_complete(len(descriptors), result.byte_count, result.sha256)
        return PackageResult(
            entries=tuple(desc.name for desc in descriptors),
            byte_count=result.byte_count,
            sha256=result.sha256,
            data=buffer.getvalue() if buffer is not None else None,
        )

    def assemble(self, source_root: str, metadata_root: Optional[str] = None, dest=None) -> PackageResult:
        source = self.find_source(source_root)
        metadata: List[ArchiveDescriptor] = []
        if metadata_root:
            metadata = self.find_metadata_descriptors(metadata_root)
        return self.generate_tar_gz(self.order_descriptors(source, metadata), dest)

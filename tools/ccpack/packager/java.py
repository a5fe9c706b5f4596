"""Java chaincode packager (Maven and Gradle project layouts)."""

from __future__ import annotations

from typing import Iterable, List, Optional

from tools.ccpack.core.log import EventLog

from .base import BasePackager, PackageResult
from .collect import ArchiveDescriptor, join_name
from .constants import DEFAULT_COMPRESSLEVEL, LANGUAGE_JAVA, LANGUAGE_RULES, SOURCE_PREFIX


class JavaPackager(BasePackager):
    language = LANGUAGE_JAVA

    def __init__(
        self,
        keep: Optional[Iterable[str]] = None,
        excluded_dirs: Optional[Iterable[str]] = None,
        compresslevel: int = DEFAULT_COMPRESSLEVEL,
        log: Optional[EventLog] = None,
    ):
        rules = LANGUAGE_RULES[LANGUAGE_JAVA]
        BasePackager.__init__(
            self,
            keep=rules["keep"] if keep is None else keep,
            excluded_dirs=rules["excluded_dirs"] if excluded_dirs is None else excluded_dirs,
            compresslevel=compresslevel,
            log=log,
        )

    def find_source(self, root: str) -> List[ArchiveDescriptor]:
        return self.source_collector().collect(root, self.is_source, lambda rel: join_name(SOURCE_PREFIX, rel))

    def package(self, chaincode_path: str, metadata_path: Optional[str] = None, dest=None) -> PackageResult:
        return self.assemble(chaincode_path, metadata_path, dest)

"""Go chaincode packager (GOPATH ``src/<import path>`` layout)."""

from __future__ import annotations

import os
from typing import Iterable, List, Optional

from tools.ccpack.core.log import EventLog

from .base import BasePackager, PackageResult
from .collect import ArchiveDescriptor, join_name
from .constants import DEFAULT_COMPRESSLEVEL, LANGUAGE_GOLANG, LANGUAGE_RULES, SOURCE_PREFIX


class GolangPackager(BasePackager):
    language = LANGUAGE_GOLANG

    def __init__(
        self,
        keep: Optional[Iterable[str]] = None,
        excluded_dirs: Optional[Iterable[str]] = None,
        go_path: str = "",
        compresslevel: int = DEFAULT_COMPRESSLEVEL,
        log: Optional[EventLog] = None,
    ):
        rules = LANGUAGE_RULES[LANGUAGE_GOLANG]
        BasePackager.__init__(
            self,
            keep=rules["keep"] if keep is None else keep,
            excluded_dirs=rules["excluded_dirs"] if excluded_dirs is None else excluded_dirs,
            compresslevel=compresslevel,
            log=log,
        )
        self.go_path = str(go_path or "")

    def project_dir(self, chaincode_path: str) -> str:
        """Resolve an import path under ``<go_path>/src``; without a GOPATH the path is a directory."""
        if not self.go_path:
            return os.path.abspath(chaincode_path)
        return os.path.join(os.path.abspath(self.go_path), SOURCE_PREFIX, str(chaincode_path).replace("/", os.sep))

    def find_source(self, root: str) -> List[ArchiveDescriptor]:
        root = os.path.abspath(root)
        if self.go_path:
            base = os.path.abspath(self.go_path)
            prefix = os.path.relpath(root, base)
        else:
            prefix = SOURCE_PREFIX
        return self.source_collector().collect(
            root,
            self.is_source,
            lambda rel: join_name(prefix, rel),
        )

    def package(self, chaincode_path: str, metadata_path: Optional[str] = None, dest=None) -> PackageResult:
        return self.assemble(self.project_dir(chaincode_path), metadata_path, dest)

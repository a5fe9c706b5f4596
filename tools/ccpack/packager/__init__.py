"""Deterministic chaincode packagers and the language dispatcher."""

from __future__ import annotations

from typing import Optional

from tools.ccpack.core.errors import ConfigError
from tools.ccpack.core.log import EventLog

from .archive import ArchiveBuilder, ArchiveEntryHeader
from .base import BasePackager, PackageResult
from .classify import ClassificationRule, SourceClassifier, extname, is_metadata
from .collect import ArchiveDescriptor, DescriptorCollector
from .config import PackagerConfig, load_packager_config
from .constants import LANGUAGE_GOLANG, LANGUAGE_JAVA, LANGUAGE_NODE
from .golang import GolangPackager
from .java import JavaPackager
from .node import NodePackager
from .sink import CompressionSink, SinkResult, write_archive


PACKAGERS = {
    LANGUAGE_GOLANG: GolangPackager,
    LANGUAGE_NODE: NodePackager,
    LANGUAGE_JAVA: JavaPackager,
}


def get_packager(
    language: str,
    config: Optional[PackagerConfig] = None,
    go_path: str = "",
    log: Optional[EventLog] = None,
) -> BasePackager:
    cfg = config or load_packager_config(language)
    if cfg.language not in PACKAGERS or (language and str(language).strip().lower() != cfg.language):
        raise ConfigError("refuse.language_unsupported", "no packager for language '{}'".format(language), {"language": str(language)})
    kwargs = {
        "keep": cfg.keep,
        "excluded_dirs": cfg.excluded_dirs,
        "compresslevel": cfg.compresslevel,
        "log": log,
    }
    if cfg.language == LANGUAGE_GOLANG:
        kwargs["go_path"] = go_path or cfg.go_path
    return PACKAGERS[cfg.language](**kwargs)


def package(
    chaincode_path: str,
    language: str = LANGUAGE_GOLANG,
    metadata_path: Optional[str] = None,
    dest=None,
    dev_mode: bool = False,
    config: Optional[PackagerConfig] = None,
    log: Optional[EventLog] = None,
) -> Optional[PackageResult]:
    """Package ``chaincode_path`` with the packager registered for ``language``.

    In dev mode the peer runs chaincode from source, so nothing is packaged and
    ``None`` is returned.
    """
    events = log or EventLog.disabled()
    if dev_mode:
        events.package_skipped(str(language), "dev mode: chaincode is not packaged")
        return None
    return get_packager(language, config=config, log=events).package(chaincode_path, metadata_path, dest)


__all__ = [
    "ArchiveBuilder",
    "ArchiveDescriptor",
    "ArchiveEntryHeader",
    "BasePackager",
    "ClassificationRule",
    "CompressionSink",
    "DescriptorCollector",
    "GolangPackager",
    "JavaPackager",
    "NodePackager",
    "PACKAGERS",
    "PackageResult",
    "PackagerConfig",
    "SinkResult",
    "SourceClassifier",
    "extname",
    "get_packager",
    "is_metadata",
    "load_packager_config",
    "package",
    "write_archive",
]

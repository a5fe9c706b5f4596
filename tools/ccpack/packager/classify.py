"""Extension-based source and metadata predicates."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import FrozenSet, Iterable

from tools.ccpack.core.errors import ConfigError

from .constants import METADATA_EXTENSIONS


def extname(path: str) -> str:
    """Return the extension of the last path component, including the dot.

    Dotfiles such as ``.json`` and names without a dot have no extension.
    """
    base = str(path).replace("\\", "/").rsplit("/", 1)[-1]
    return os.path.splitext(base)[1]


@dataclass(frozen=True)
class ClassificationRule:
    extensions: FrozenSet[str]

    @classmethod
    def from_extensions(cls, extensions: Iterable[str]) -> "ClassificationRule":
        if isinstance(extensions, str):
            raise ConfigError("refuse.config_invalid", "keep must be a list of extensions", {"keep": extensions})
        out = set()
        for token in extensions:
            ext = str(token)
            if len(ext) < 2 or not ext.startswith(".") or "/" in ext:
                raise ConfigError("refuse.config_invalid", "invalid source extension", {"extension": ext})
            out.add(ext)
        return cls(extensions=frozenset(out))

    def allows(self, path: str) -> bool:
        return extname(path) in self.extensions


def is_metadata(path: str) -> bool:
    return extname(path) in METADATA_EXTENSIONS


class SourceClassifier:
    """Pure predicates over paths; no filesystem access."""

    def __init__(self, rule: ClassificationRule):
        self.rule = rule

    def is_source(self, path: str) -> bool:
        return self.rule.allows(path)

    def is_metadata(self, path: str) -> bool:
        return is_metadata(path)

"""Packager configuration: built-in language rules overlaid by a JSON config file and env."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from typing import Dict, Mapping, Optional, Tuple

from tools.ccpack.core.errors import ConfigError

from .classify import ClassificationRule
from .constants import (
    CONFIG_ENV,
    DEFAULT_COMPRESSLEVEL,
    GOPATH_ENV,
    LANGUAGE_GOLANG,
    LANGUAGE_RULES,
    SUPPORTED_LANGUAGES,
)


@dataclass(frozen=True)
class PackagerConfig:
    language: str
    keep: Tuple[str, ...]
    excluded_dirs: Tuple[str, ...]
    compresslevel: int = DEFAULT_COMPRESSLEVEL
    go_path: str = ""


def _read_json_object(path: str) -> dict:
    try:
        with open(path, "r", encoding="utf-8") as handle:
            payload = json.load(handle)
    except (OSError, ValueError) as exc:
        raise ConfigError("refuse.config_invalid", "invalid json config", {"path": path, "error": str(exc)}) from exc
    if not isinstance(payload, dict):
        raise ConfigError("refuse.config_invalid", "config root must be an object", {"path": path})
    return payload


def _string_tuple(value: object, field: str) -> Tuple[str, ...]:
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise ConfigError("refuse.config_invalid", "{} must be a list of strings".format(field), {"field": field})
    return tuple(value)


def load_packager_config(
    language: str,
    config_path: str = "",
    env: Optional[Mapping[str, str]] = None,
) -> PackagerConfig:
    token = str(language or "").strip().lower()
    if token not in LANGUAGE_RULES:
        raise ConfigError(
            "refuse.language_unsupported",
            "unsupported chaincode language '{}'".format(language),
            {"language": str(language), "supported": list(SUPPORTED_LANGUAGES)},
        )
    environ = os.environ if env is None else env
    rules = LANGUAGE_RULES[token]
    keep = tuple(rules["keep"])
    excluded_dirs = tuple(rules["excluded_dirs"])
    compresslevel = DEFAULT_COMPRESSLEVEL

    path = str(config_path or environ.get(CONFIG_ENV, "")).strip()
    if path:
        payload = _read_json_object(path)
        if "compresslevel" in payload:
            compresslevel = payload.get("compresslevel")
            if isinstance(compresslevel, bool) or not isinstance(compresslevel, int) or not 0 <= compresslevel <= 9:
                raise ConfigError("refuse.config_invalid", "compresslevel must be an integer 0-9", {"field": "compresslevel"})
        languages = payload.get("languages", {})
        if not isinstance(languages, dict):
            raise ConfigError("refuse.config_invalid", "languages must be an object", {"field": "languages"})
        section: Dict[str, object] = languages[token] if token in languages else {}
        if not isinstance(section, dict):
            raise ConfigError("refuse.config_invalid", "language section must be an object", {"field": "languages." + token})
        if "keep" in section:
            keep = _string_tuple(section["keep"], "languages.{}.keep".format(token))
        if "excluded_dirs" in section:
            excluded_dirs = _string_tuple(section["excluded_dirs"], "languages.{}.excluded_dirs".format(token))

    # surface bad extensions at load time rather than at packager construction
    ClassificationRule.from_extensions(keep)

    go_path = ""
    if token == LANGUAGE_GOLANG:
        go_path = str(environ.get(GOPATH_ENV, "") or "").strip()
    return PackagerConfig(
        language=token,
        keep=keep,
        excluded_dirs=excluded_dirs,
        compresslevel=int(compresslevel),
        go_path=go_path,
    )

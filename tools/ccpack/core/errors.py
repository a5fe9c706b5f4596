"""Packaging error hierarchy and deterministic refusal payload helpers."""

from __future__ import annotations

from typing import Dict


class PackagerError(Exception):
    def __init__(self, code: str, message: str, details: Dict[str, object] = None):
        Exception.__init__(self, message)
        self.code = code
        self.message = message
        self.details = details or {}


class ConstructionError(PackagerError, TypeError):
    """Abstract packager instantiated or a required override is missing."""


class TraversalError(PackagerError):
    """Directory walk failed (missing root, not a directory, permission denied)."""


class ReadError(PackagerError):
    """A classified file could not be read or yielded no content."""


class WriteError(PackagerError):
    """The archive destination refused a write."""


class CompressionError(PackagerError):
    """The gzip compressor failed."""


class EntryNameError(PackagerError):
    """A logical entry name is invalid or collides with another entry."""


class EntrySizeError(PackagerError):
    """A file is larger than a ustar header can describe."""


class ConfigError(PackagerError):
    pass


def refusal_payload(code: str, message: str, details: Dict[str, object] = None) -> Dict[str, object]:
    return {
        "result": "refused",
        "refusal": {
            "code": str(code),
            "message": str(message),
            "details": dict(sorted((details or {}).items())),
        },
    }


def refusal_from_error(exc: PackagerError) -> Dict[str, object]:
    return refusal_payload(exc.code, exc.message, exc.details)

"""Shared error and logging primitives for ccpack."""

from .errors import (  # noqa: F401
    CompressionError,
    ConfigError,
    ConstructionError,
    EntryNameError,
    EntrySizeError,
    PackagerError,
    ReadError,
    TraversalError,
    WriteError,
    refusal_from_error,
    refusal_payload,
)
from .log import EventLog  # noqa: F401

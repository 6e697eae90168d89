"""
Error taxonomy for sink-binder.

Everything raised by the binder, the layout extraction and the encoders derives
from `SinkBinderError`, except `InvariantViolation`: a broken invariant means the
field layout and the configured modes disagree, and is an assertion failure
rather than something a caller should retry.
"""

from __future__ import annotations

from typing import Any, Optional


class SinkBinderError(Exception):
    """Base class for recoverable sink-binder errors."""


class InvariantViolation(AssertionError):
    """
    The configured primary-key mode / insert mode does not match the field layout.
    """


class ConfigError(SinkBinderError):
    """Invalid settings or a field layout that cannot be derived from the schemas."""


class UnresolvedFieldError(SinkBinderError):
    """
    A field named by the layout is missing from the schema it is resolved against.
    """

    def __init__(self, field_name: str, schema_name: Optional[str] = None) -> None:
        self.field_name = field_name
        self.schema_name = schema_name
        where = f"schema '{schema_name}'" if schema_name else "the record schema"
        super().__init__(f"Field '{field_name}' is not defined in {where}")


class RecordShapeError(SinkBinderError):
    """Key or value is not a Struct where structured access is required."""


class EncodingError(SinkBinderError):
    """The value encoder rejected a schema/value pair."""

    def __init__(self, index: int, schema_type: Any, value: Any, reason: str = "") -> None:
        self.index = index
        self.schema_type = schema_type
        self.value = value
        message = (
            f"Cannot bind {type(value).__name__} to placeholder {index} "
            f"with schema type {schema_type}"
        )
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


__all__ = [
    "SinkBinderError",
    "InvariantViolation",
    "ConfigError",
    "UnresolvedFieldError",
    "RecordShapeError",
    "EncodingError",
]

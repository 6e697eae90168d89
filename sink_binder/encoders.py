"""
Value encoders: write one typed value into one statement placeholder.

`GenericValueEncoder` performs the type checks every relational target needs
and leaves driver-level adaptation (how a `Decimal` or a `list` travels over
the wire) to the database driver. Dialect-specific coercion belongs in other
`ValueEncoder` implementations.
"""

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, List, Optional, Protocol, Tuple

from sink_binder.domain.schema import (
    DATE_LOGICAL_NAME,
    DECIMAL_LOGICAL_NAME,
    TIME_LOGICAL_NAME,
    TIMESTAMP_LOGICAL_NAME,
    Schema,
    SchemaType,
)
from sink_binder.errors import EncodingError
from sink_binder.statement import PreparedStatement


class ValueEncoder(Protocol):
    def encode(self, statement: PreparedStatement, index: int, schema: Schema, value: Any) -> None:
        """Write `value` (may be None) into placeholder `index` of `statement`."""
        ...


_INT_RANGES: Dict[SchemaType, Tuple[int, int]] = {
    SchemaType.INT8: (-(2**7), 2**7 - 1),
    SchemaType.INT16: (-(2**15), 2**15 - 1),
    SchemaType.INT32: (-(2**31), 2**31 - 1),
    SchemaType.INT64: (-(2**63), 2**63 - 1),
}


class GenericValueEncoder:
    """Type-checked pass-through encoder."""

    def encode(self, statement: PreparedStatement, index: int, schema: Schema, value: Any) -> None:
        statement.set_parameter(index, self.convert(index, schema, value))

    def convert(self, index: int, schema: Schema, value: Any) -> Any:
        if value is None:
            return None
        if schema.name is not None:
            converted = self._convert_logical(index, schema, value)
            if converted is not None:
                return converted

        schema_type = schema.type
        if schema_type in _INT_RANGES:
            if isinstance(value, bool) or not isinstance(value, int):
                raise EncodingError(index, schema_type.value, value, "expected int")
            low, high = _INT_RANGES[schema_type]
            if not low <= value <= high:
                raise EncodingError(index, schema_type.value, value, "out of range")
            return value
        if schema_type in (SchemaType.FLOAT32, SchemaType.FLOAT64):
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise EncodingError(index, schema_type.value, value, "expected float")
            return float(value)
        if schema_type is SchemaType.BOOLEAN:
            if not isinstance(value, bool):
                raise EncodingError(index, schema_type.value, value, "expected bool")
            return value
        if schema_type is SchemaType.STRING:
            if not isinstance(value, str):
                raise EncodingError(index, schema_type.value, value, "expected str")
            return value
        if schema_type is SchemaType.BYTES:
            if not isinstance(value, (bytes, bytearray, memoryview)):
                raise EncodingError(index, schema_type.value, value, "expected bytes")
            return bytes(value)
        if schema_type is SchemaType.ARRAY:
            if isinstance(value, (str, bytes)) or not isinstance(value, (list, tuple, set, frozenset)):
                raise EncodingError(index, schema_type.value, value, "expected a sequence")
            return list(value)
        raise EncodingError(index, schema_type.value, value, "unsupported source data type")

    def _convert_logical(self, index: int, schema: Schema, value: Any) -> Any:
        if schema.name == DECIMAL_LOGICAL_NAME:
            if isinstance(value, bool) or not isinstance(value, (Decimal, int)):
                raise EncodingError(index, schema.name, value, "expected Decimal")
            return Decimal(value)
        if schema.name == DATE_LOGICAL_NAME:
            if isinstance(value, dt.datetime) or not isinstance(value, dt.date):
                raise EncodingError(index, schema.name, value, "expected date")
            return value
        if schema.name == TIME_LOGICAL_NAME:
            if not isinstance(value, dt.time):
                raise EncodingError(index, schema.name, value, "expected time")
            return value
        if schema.name == TIMESTAMP_LOGICAL_NAME:
            if not isinstance(value, dt.datetime):
                raise EncodingError(index, schema.name, value, "expected datetime")
            return value
        return None


@dataclass(frozen=True)
class BoundParameter:
    index: int
    schema: Schema
    value: Any


class RecordingEncoder:
    """
    Keeps every `(index, schema, value)` it is asked to encode.

    Delegates to `inner` when given, otherwise writes the raw value.
    """

    def __init__(self, inner: Optional[ValueEncoder] = None) -> None:
        self.inner = inner
        self.calls: List[BoundParameter] = []

    def encode(self, statement: PreparedStatement, index: int, schema: Schema, value: Any) -> None:
        self.calls.append(BoundParameter(index, schema, value))
        if self.inner is not None:
            self.inner.encode(statement, index, schema, value)
        else:
            statement.set_parameter(index, value)

    def reset(self) -> List[BoundParameter]:
        calls, self.calls = self.calls, []
        return calls


__all__ = ["ValueEncoder", "GenericValueEncoder", "BoundParameter", "RecordingEncoder"]

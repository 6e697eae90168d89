"""
Schema and structured-value model for sink records.

A `Schema` is an explicit, ordered mapping from field name to `Field`
descriptor; a `Struct` is a value bound to a STRUCT schema. Field lookup never
falls back to attribute access: a missing name is reported as
`UnresolvedFieldError` by `Schema.resolve` and `Struct.get`.

The type system mirrors Kafka Connect so records produced by Connect
converters can be described without loss:

    from sink_binder.domain.schema import INT64_SCHEMA, STRING_SCHEMA, Struct, struct

    user = struct("user", ("id", INT64_SCHEMA), ("name", STRING_SCHEMA))
    value = Struct(user, {"id": 1, "name": "ada"})
"""

from __future__ import annotations

import dataclasses
from enum import Enum
from functools import cached_property
from typing import Any, Dict, Iterator, Mapping, Optional, Tuple, Union

from sink_binder.errors import RecordShapeError, UnresolvedFieldError

DECIMAL_LOGICAL_NAME = "org.apache.kafka.connect.data.Decimal"
DATE_LOGICAL_NAME = "org.apache.kafka.connect.data.Date"
TIME_LOGICAL_NAME = "org.apache.kafka.connect.data.Time"
TIMESTAMP_LOGICAL_NAME = "org.apache.kafka.connect.data.Timestamp"
DECIMAL_SCALE_PARAMETER = "scale"


class SchemaType(str, Enum):
    INT8 = "int8"
    INT16 = "int16"
    INT32 = "int32"
    INT64 = "int64"
    FLOAT32 = "float32"
    FLOAT64 = "float64"
    BOOLEAN = "boolean"
    STRING = "string"
    BYTES = "bytes"
    ARRAY = "array"
    MAP = "map"
    STRUCT = "struct"

    @property
    def is_primitive(self) -> bool:
        return self not in (SchemaType.ARRAY, SchemaType.MAP, SchemaType.STRUCT)


@dataclasses.dataclass(frozen=True)
class Field:
    """A named, positioned child of a STRUCT schema."""

    name: str
    index: int
    schema: "Schema"


@dataclasses.dataclass(frozen=True)
class Schema:
    """
    Immutable type descriptor.

    `value_schema` holds the element schema of an ARRAY and the value schema of
    a MAP; `key_schema` is only used by MAP. `fields` is only used by STRUCT.
    """

    type: SchemaType
    optional: bool = False
    name: Optional[str] = None
    version: Optional[int] = None
    doc: Optional[str] = None
    parameters: Mapping[str, str] = dataclasses.field(default_factory=dict, hash=False)
    fields: Tuple[Field, ...] = ()
    key_schema: Optional["Schema"] = None
    value_schema: Optional["Schema"] = None

    def __post_init__(self) -> None:
        if self.fields and self.type is not SchemaType.STRUCT:
            raise ValueError(f"Only struct schemas can declare fields, got {self.type.value}")
        if self.type is SchemaType.ARRAY and self.value_schema is None:
            raise ValueError("Array schemas require an element schema")
        if self.type is SchemaType.MAP and (self.key_schema is None or self.value_schema is None):
            raise ValueError("Map schemas require key and value schemas")
        seen = set()
        for position, fld in enumerate(self.fields):
            if fld.name in seen:
                raise ValueError(f"Duplicate field name '{fld.name}' in schema {self.name!r}")
            if fld.index != position:
                raise ValueError(f"Field '{fld.name}' has index {fld.index}, expected {position}")
            seen.add(fld.name)

    @cached_property
    def _fields_by_name(self) -> Dict[str, Field]:
        return {fld.name: fld for fld in self.fields}

    def field(self, name: str) -> Optional[Field]:
        """Return the field called `name`, or None when the schema has no such field."""
        if self.type is not SchemaType.STRUCT:
            return None
        return self._fields_by_name.get(name)

    def resolve(self, name: str) -> Field:
        """Like `field`, but a missing name raises `UnresolvedFieldError`."""
        fld = self.field(name)
        if fld is None:
            raise UnresolvedFieldError(name, self.name)
        return fld

    def field_names(self) -> Tuple[str, ...]:
        return tuple(fld.name for fld in self.fields)

    def __repr__(self) -> str:
        label = self.name or self.type.value
        suffix = "?" if self.optional else ""
        if self.type is SchemaType.STRUCT:
            return f"Schema({label}{suffix}: {', '.join(self.field_names())})"
        return f"Schema({label}{suffix})"


def _primitive(schema_type: SchemaType, optional: bool = False) -> Schema:
    return Schema(type=schema_type, optional=optional)


INT8_SCHEMA = _primitive(SchemaType.INT8)
INT16_SCHEMA = _primitive(SchemaType.INT16)
INT32_SCHEMA = _primitive(SchemaType.INT32)
INT64_SCHEMA = _primitive(SchemaType.INT64)
FLOAT32_SCHEMA = _primitive(SchemaType.FLOAT32)
FLOAT64_SCHEMA = _primitive(SchemaType.FLOAT64)
BOOLEAN_SCHEMA = _primitive(SchemaType.BOOLEAN)
STRING_SCHEMA = _primitive(SchemaType.STRING)
BYTES_SCHEMA = _primitive(SchemaType.BYTES)

OPTIONAL_INT32_SCHEMA = _primitive(SchemaType.INT32, optional=True)
OPTIONAL_INT64_SCHEMA = _primitive(SchemaType.INT64, optional=True)
OPTIONAL_FLOAT64_SCHEMA = _primitive(SchemaType.FLOAT64, optional=True)
OPTIONAL_BOOLEAN_SCHEMA = _primitive(SchemaType.BOOLEAN, optional=True)
OPTIONAL_STRING_SCHEMA = _primitive(SchemaType.STRING, optional=True)


def struct(
    name: Optional[str],
    *fields: Tuple[str, Schema],
    optional: bool = False,
    version: Optional[int] = None,
    doc: Optional[str] = None,
) -> Schema:
    """Build a STRUCT schema from `(name, schema)` pairs, preserving their order."""
    return Schema(
        type=SchemaType.STRUCT,
        optional=optional,
        name=name,
        version=version,
        doc=doc,
        fields=tuple(Field(fname, index, fschema) for index, (fname, fschema) in enumerate(fields)),
    )


def array(
    value_schema: Schema,
    optional: bool = False,
    parameters: Optional[Mapping[str, str]] = None,
) -> Schema:
    return Schema(
        type=SchemaType.ARRAY,
        optional=optional,
        parameters=dict(parameters or {}),
        value_schema=value_schema,
    )


def timestamp_schema(optional: bool = False) -> Schema:
    return Schema(type=SchemaType.INT64, optional=optional, name=TIMESTAMP_LOGICAL_NAME, version=1)


FieldRef = Union[Field, str]


class Struct:
    """
    A structured value. Values are addressed by `Field` descriptor or by name;
    fields that were never set read as None.
    """

    __slots__ = ("schema", "_values")

    def __init__(self, schema: Schema, values: Optional[Mapping[str, Any]] = None) -> None:
        if schema.type is not SchemaType.STRUCT:
            raise RecordShapeError(f"Struct requires a struct schema, got {schema.type.value}")
        self.schema = schema
        self._values: Dict[str, Any] = {}
        for name, value in (values or {}).items():
            self.put(name, value)

    def _lookup(self, ref: FieldRef) -> Field:
        if isinstance(ref, Field):
            fld = self.schema.field(ref.name)
            if fld is None or fld != ref:
                raise UnresolvedFieldError(ref.name, self.schema.name)
            return fld
        return self.schema.resolve(ref)

    def get(self, ref: FieldRef) -> Any:
        return self._values.get(self._lookup(ref).name)

    def put(self, ref: FieldRef, value: Any) -> "Struct":
        fld = self._lookup(ref)
        self._values[fld.name] = value
        return self

    def items(self) -> Iterator[Tuple[Field, Any]]:
        for fld in self.schema.fields:
            yield fld, self._values.get(fld.name)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Struct):
            return NotImplemented
        return self.schema == other.schema and dict(self.items()) == dict(other.items())

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        body = ", ".join(f"{fld.name}={value!r}" for fld, value in self.items())
        return f"Struct{{{body}}}"


__all__ = [
    "SchemaType",
    "Field",
    "Schema",
    "Struct",
    "struct",
    "array",
    "timestamp_schema",
    "INT8_SCHEMA",
    "INT16_SCHEMA",
    "INT32_SCHEMA",
    "INT64_SCHEMA",
    "FLOAT32_SCHEMA",
    "FLOAT64_SCHEMA",
    "BOOLEAN_SCHEMA",
    "STRING_SCHEMA",
    "BYTES_SCHEMA",
    "OPTIONAL_INT32_SCHEMA",
    "OPTIONAL_INT64_SCHEMA",
    "OPTIONAL_FLOAT64_SCHEMA",
    "OPTIONAL_BOOLEAN_SCHEMA",
    "OPTIONAL_STRING_SCHEMA",
    "DECIMAL_LOGICAL_NAME",
    "DATE_LOGICAL_NAME",
    "TIME_LOGICAL_NAME",
    "TIMESTAMP_LOGICAL_NAME",
    "DECIMAL_SCALE_PARAMETER",
]

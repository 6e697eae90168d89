"""
Kafka Connect JSON reader.

Parses the `{"schema": ..., "payload": ...}` envelopes written by Connect's
JsonConverter (with `schemas.enable=true`) into `Schema`, `Struct` and
`SinkRecord` objects. One record per line:

    {"topic": "orders", "partition": 0, "offset": 42,
     "key": {"schema": {"type": "int64"}, "payload": 7},
     "value": {"schema": {"type": "struct", "fields": [...]}, "payload": {...}}}

`"value": null` (or a missing value) is a tombstone.
"""

from __future__ import annotations

import base64
import binascii
import datetime as dt
import json
from decimal import Decimal
from typing import Any, Dict, Iterable, Iterator, Mapping, Optional, Tuple

from sink_binder.domain.record import SinkRecord
from sink_binder.domain.schema import (
    DATE_LOGICAL_NAME,
    DECIMAL_LOGICAL_NAME,
    DECIMAL_SCALE_PARAMETER,
    TIME_LOGICAL_NAME,
    TIMESTAMP_LOGICAL_NAME,
    Field,
    Schema,
    SchemaType,
    Struct,
    timestamp_schema,
)
from sink_binder.errors import ConfigError, RecordShapeError

_EPOCH = dt.datetime(1970, 1, 1, tzinfo=dt.timezone.utc)


def schema_from_json(obj: Mapping[str, Any]) -> Schema:
    """Build a `Schema` from a Connect JSON schema object."""
    if not isinstance(obj, Mapping):
        raise ConfigError(f"Schema must be a JSON object, got {type(obj).__name__}")
    try:
        schema_type = SchemaType(obj["type"])
    except (KeyError, ValueError) as exc:
        raise ConfigError(f"Unknown or missing schema type in {obj!r}") from exc

    fields: Tuple[Field, ...] = ()
    key_schema = value_schema = None
    if schema_type is SchemaType.STRUCT:
        parsed = []
        for index, child in enumerate(obj.get("fields", [])):
            if "field" not in child:
                raise ConfigError(f"Struct field without a name: {child!r}")
            parsed.append(Field(child["field"], index, schema_from_json(child)))
        fields = tuple(parsed)
    elif schema_type is SchemaType.ARRAY:
        if "items" not in obj:
            raise ConfigError("Array schema without 'items'")
        value_schema = schema_from_json(obj["items"])
    elif schema_type is SchemaType.MAP:
        if "keys" not in obj or "values" not in obj:
            raise ConfigError("Map schema without 'keys'/'values'")
        key_schema = schema_from_json(obj["keys"])
        value_schema = schema_from_json(obj["values"])

    try:
        return Schema(
            type=schema_type,
            optional=bool(obj.get("optional", False)),
            name=obj.get("name"),
            version=obj.get("version"),
            doc=obj.get("doc"),
            parameters={str(k): str(v) for k, v in (obj.get("parameters") or {}).items()},
            fields=fields,
            key_schema=key_schema,
            value_schema=value_schema,
        )
    except ValueError as exc:
        raise ConfigError(str(exc)) from exc


def value_from_json(schema: Schema, payload: Any) -> Any:
    """Convert a JSON payload into the Python value `schema` describes."""
    if payload is None:
        if not schema.optional:
            raise RecordShapeError(f"Null payload for non-optional schema {schema!r}")
        return None

    if schema.name in _LOGICAL_DECODERS:
        return _LOGICAL_DECODERS[schema.name](schema, payload)

    schema_type = schema.type
    if schema_type is SchemaType.STRUCT:
        if not isinstance(payload, Mapping):
            raise RecordShapeError(f"Expected an object for {schema!r}, got {payload!r}")
        unknown = set(payload) - set(schema.field_names())
        if unknown:
            raise RecordShapeError(f"Payload has fields not in {schema!r}: {sorted(unknown)}")
        result = Struct(schema)
        for fld in schema.fields:
            result.put(fld, value_from_json(fld.schema, payload.get(fld.name)))
        return result
    if schema_type is SchemaType.ARRAY:
        if not isinstance(payload, list):
            raise RecordShapeError(f"Expected a list for {schema!r}, got {payload!r}")
        assert schema.value_schema is not None
        return [value_from_json(schema.value_schema, item) for item in payload]
    if schema_type is SchemaType.MAP:
        assert schema.key_schema is not None and schema.value_schema is not None
        if isinstance(payload, Mapping):
            pairs: Iterable[Any] = payload.items()
        elif isinstance(payload, list):
            pairs = payload
        else:
            raise RecordShapeError(f"Expected an object or pair list for {schema!r}")
        return {
            value_from_json(schema.key_schema, k): value_from_json(schema.value_schema, v)
            for k, v in pairs
        }
    if schema_type is SchemaType.BYTES:
        return _b64decode(payload)
    # Primitive values are checked by the encoder at bind time.
    return payload


def _b64decode(payload: Any) -> bytes:
    if not isinstance(payload, str):
        raise RecordShapeError(f"Expected base64 text, got {type(payload).__name__}")
    try:
        return base64.b64decode(payload, validate=True)
    except binascii.Error as exc:
        raise RecordShapeError(f"Invalid base64 payload: {payload!r}") from exc


def _decode_decimal(schema: Schema, payload: Any) -> Decimal:
    if isinstance(payload, (int, float)) and not isinstance(payload, bool):
        return Decimal(str(payload))
    scale = int(schema.parameters.get(DECIMAL_SCALE_PARAMETER, "0"))
    unscaled = int.from_bytes(_b64decode(payload), byteorder="big", signed=True)
    return Decimal(unscaled).scaleb(-scale)


def _decode_date(schema: Schema, payload: Any) -> dt.date:
    return (_EPOCH + dt.timedelta(days=_as_int(payload))).date()


def _decode_time(schema: Schema, payload: Any) -> dt.time:
    return (_EPOCH + dt.timedelta(milliseconds=_as_int(payload))).time()


def _decode_timestamp(schema: Schema, payload: Any) -> dt.datetime:
    return _EPOCH + dt.timedelta(milliseconds=_as_int(payload))


def _as_int(payload: Any) -> int:
    if isinstance(payload, bool) or not isinstance(payload, int):
        raise RecordShapeError(f"Expected an integer, got {payload!r}")
    return payload


_LOGICAL_DECODERS = {
    DECIMAL_LOGICAL_NAME: _decode_decimal,
    DATE_LOGICAL_NAME: _decode_date,
    TIME_LOGICAL_NAME: _decode_time,
    TIMESTAMP_LOGICAL_NAME: _decode_timestamp,
}


def _envelope(obj: Optional[Mapping[str, Any]]) -> Tuple[Optional[Schema], Any]:
    if obj is None:
        return None, None
    if not isinstance(obj, Mapping) or "schema" not in obj:
        raise RecordShapeError("Expected a {'schema': ..., 'payload': ...} envelope")
    schema = schema_from_json(obj["schema"]) if obj["schema"] is not None else None
    payload = obj.get("payload")
    if schema is None or payload is None:
        return schema, payload
    return schema, value_from_json(schema, payload)


def record_from_json(obj: Mapping[str, Any]) -> SinkRecord:
    """Build a `SinkRecord` from one decoded JSON line."""
    key_schema, key = _envelope(obj.get("key"))
    value_schema, value = _envelope(obj.get("value"))
    timestamp = obj.get("timestamp")
    return SinkRecord(
        topic=obj.get("topic", ""),
        partition=obj.get("partition", 0),
        offset=obj.get("offset", 0),
        key=key,
        key_schema=key_schema,
        value=value,
        value_schema=value_schema,
        timestamp=_decode_timestamp(timestamp_schema(), timestamp) if timestamp is not None else None,
    )


def read_records(lines: Iterable[str]) -> Iterator[SinkRecord]:
    """Parse JSON-lines text, skipping blank lines."""
    for number, line in enumerate(lines, start=1):
        if not line.strip():
            continue
        try:
            obj: Dict[str, Any] = json.loads(line)
        except json.JSONDecodeError as exc:
            raise RecordShapeError(f"Line {number} is not valid JSON: {exc.msg}") from exc
        yield record_from_json(obj)


__all__ = ["schema_from_json", "value_from_json", "record_from_json", "read_records"]

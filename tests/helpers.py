"""
Schemas and record builders shared by the test suite.
"""

from __future__ import annotations

from typing import Any, Optional

from sink_binder.domain.record import SinkRecord
from sink_binder.domain.schema import (
    BOOLEAN_SCHEMA,
    DATE_LOGICAL_NAME,
    DECIMAL_LOGICAL_NAME,
    DECIMAL_SCALE_PARAMETER,
    INT64_SCHEMA,
    OPTIONAL_STRING_SCHEMA,
    STRING_SCHEMA,
    Schema,
    SchemaType,
    Struct,
    struct,
)

KEY_SCHEMA = struct("orders.Key", ("id", INT64_SCHEMA), ("region", STRING_SCHEMA))
VALUE_SCHEMA = struct(
    "orders.Value",
    ("id", INT64_SCHEMA),
    ("region", STRING_SCHEMA),
    ("name", OPTIONAL_STRING_SCHEMA),
    ("deleted", BOOLEAN_SCHEMA),
)


def decimal_schema(scale: int) -> Schema:
    return Schema(
        type=SchemaType.BYTES,
        name=DECIMAL_LOGICAL_NAME,
        version=1,
        parameters={DECIMAL_SCALE_PARAMETER: str(scale)},
    )


def date_schema() -> Schema:
    return Schema(type=SchemaType.INT32, name=DATE_LOGICAL_NAME, version=1)


def make_record(
    key: Any = None,
    value: Any = None,
    key_schema: Optional[Schema] = KEY_SCHEMA,
    value_schema: Optional[Schema] = VALUE_SCHEMA,
    topic: str = "orders",
    partition: int = 2,
    offset: int = 1234,
) -> SinkRecord:
    return SinkRecord(
        topic=topic,
        partition=partition,
        offset=offset,
        key=key,
        key_schema=key_schema,
        value=value,
        value_schema=value_schema,
    )


def order_key(order_id: int = 7, region: str = "eu") -> Struct:
    return Struct(KEY_SCHEMA, {"id": order_id, "region": region})


def order_value(
    order_id: int = 7, region: str = "eu", name: Optional[str] = "widget", deleted: bool = False
) -> Struct:
    return Struct(
        VALUE_SCHEMA,
        {"id": order_id, "region": region, "name": name, "deleted": deleted},
    )

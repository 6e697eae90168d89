from __future__ import annotations

import datetime as dt
from decimal import Decimal

import pytest

from sink_binder.domain.schema import (
    BOOLEAN_SCHEMA,
    BYTES_SCHEMA,
    FLOAT64_SCHEMA,
    INT8_SCHEMA,
    INT32_SCHEMA,
    OPTIONAL_STRING_SCHEMA,
    STRING_SCHEMA,
    Schema,
    SchemaType,
    array,
    timestamp_schema,
)
from sink_binder.encoders import BoundParameter, GenericValueEncoder, RecordingEncoder
from sink_binder.errors import EncodingError
from sink_binder.statement import BufferedStatement
from tests.helpers import VALUE_SCHEMA, date_schema, decimal_schema, order_value


@pytest.fixture
def generic() -> GenericValueEncoder:
    return GenericValueEncoder()


@pytest.mark.parametrize(
    "schema, value, expected",
    [
        (INT32_SCHEMA, 12, 12),
        (FLOAT64_SCHEMA, 3, 3.0),
        (BOOLEAN_SCHEMA, True, True),
        (STRING_SCHEMA, "x", "x"),
        (BYTES_SCHEMA, bytearray(b"ab"), b"ab"),
        (array(STRING_SCHEMA), ("a", "b"), ["a", "b"]),
        (decimal_schema(2), 5, Decimal(5)),
        (date_schema(), dt.date(2024, 1, 2), dt.date(2024, 1, 2)),
        (OPTIONAL_STRING_SCHEMA, None, None),
    ],
)
def test_generic_encoder_writes_converted_value(generic, schema, value, expected):
    statement = BufferedStatement()

    generic.encode(statement, 1, schema, value)
    statement.add_batch()

    assert statement.batch == [(expected,)]


@pytest.mark.parametrize(
    "schema, value",
    [
        (INT32_SCHEMA, True),
        (INT32_SCHEMA, "12"),
        (INT8_SCHEMA, 300),
        (BOOLEAN_SCHEMA, 1),
        (STRING_SCHEMA, b"x"),
        (array(STRING_SCHEMA), "abc"),
        (Schema(type=SchemaType.MAP, key_schema=STRING_SCHEMA, value_schema=STRING_SCHEMA), {"a": "b"}),
        (VALUE_SCHEMA, order_value()),
        (date_schema(), dt.datetime(2024, 1, 2)),
        (timestamp_schema(), 1700000000000),
    ],
)
def test_generic_encoder_rejects_mismatches(generic, schema, value):
    with pytest.raises(EncodingError):
        generic.encode(BufferedStatement(), 1, schema, value)


def test_recording_encoder_keeps_calls_and_delegates():
    statement = BufferedStatement()
    recorder = RecordingEncoder(GenericValueEncoder())

    recorder.encode(statement, 1, FLOAT64_SCHEMA, 2)
    statement.add_batch()

    assert recorder.calls == [BoundParameter(1, FLOAT64_SCHEMA, 2)]
    assert statement.batch == [(2.0,)]
    assert recorder.reset() == [BoundParameter(1, FLOAT64_SCHEMA, 2)]
    assert recorder.calls == []

from __future__ import annotations

import logging
from typing import Any, List, Tuple

import pytest

from sink_binder.binder import placeholder_order
from sink_binder.domain.metadata import FieldsMetadata, SchemaPair
from sink_binder.domain.modes import InsertMode, PrimaryKeyMode
from sink_binder.domain.schema import INT64_SCHEMA, STRING_SCHEMA, Struct, struct
from sink_binder.encoders import GenericValueEncoder
from sink_binder.statement import BufferedStatement
from sink_binder.writer import BufferedRecords
from tests.helpers import KEY_SCHEMA, make_record, order_key, order_value


class LoggedStatement(BufferedStatement):
    def __init__(self, parameter_count: int, kind: str, log: List[Tuple[str, List[Tuple[Any, ...]]]]) -> None:
        super().__init__(parameter_count=parameter_count)
        self.kind = kind
        self.log = log

    def execute_batch(self) -> int:
        rows = self.batch
        if rows:
            self.log.append((self.kind, rows))
        self.clear_batch()
        return len(rows)


class FakeFactory:
    def __init__(self, insert_mode: InsertMode = InsertMode.UPSERT) -> None:
        self.insert_mode = insert_mode
        self.prepared: List[Tuple[FieldsMetadata, bool]] = []
        self.executions: List[Tuple[str, List[Tuple[Any, ...]]]] = []

    def prepare(self, fields: FieldsMetadata, schema_pair: SchemaPair, delete: bool) -> LoggedStatement:
        self.prepared.append((fields, delete))
        count = len(placeholder_order(fields, self.insert_mode, delete))
        return LoggedStatement(count, "delete" if delete else "write", self.executions)


@pytest.fixture
def factory() -> FakeFactory:
    return FakeFactory()


@pytest.fixture
def make_buffer(make_settings, factory):
    def _make(**overrides: Any) -> BufferedRecords:
        options = {"pk_mode": PrimaryKeyMode.RECORD_KEY, "insert_mode": InsertMode.UPSERT, **overrides}
        return BufferedRecords("orders", make_settings(**options), GenericValueEncoder(), factory)

    return _make


def test_flushes_when_batch_size_is_reached(make_buffer, factory):
    buffer = make_buffer(batch_size=2)
    first = make_record(key=order_key(1), value=order_value(1), offset=1)
    second = make_record(key=order_key(2), value=order_value(2), offset=2)

    assert buffer.add(first) == []
    assert buffer.add(second) == [first, second]

    assert factory.executions == [("write", [(1, "eu", "widget", False), (2, "eu", "widget", False)])]
    assert buffer.records == []


def test_flush_without_pending_records_is_a_no_op(make_buffer, factory):
    buffer = make_buffer()

    assert buffer.flush() == []
    assert factory.prepared == []


def test_schema_change_flushes_and_prepares_a_new_statement(make_buffer, factory):
    buffer = make_buffer()
    slim_value = struct("orders.Value.v2", ("id", INT64_SCHEMA), ("region", STRING_SCHEMA), ("sku", STRING_SCHEMA))
    first = make_record(key=order_key(1), value=order_value(1))
    second = make_record(
        key=order_key(2),
        value=Struct(slim_value, {"id": 2, "region": "eu", "sku": "A-1"}),
        value_schema=slim_value,
    )

    buffer.add(first)
    flushed = buffer.add(second)

    assert flushed == [first]
    assert [fields.non_key_field_names for fields, _ in factory.prepared] == [("name", "deleted"), ("sku",)]

    buffer.flush()
    assert factory.executions[-1] == ("write", [(2, "eu", "A-1")])


def test_tombstones_are_ignored_when_deletes_are_disabled(make_buffer, factory):
    buffer = make_buffer()

    assert buffer.add(make_record(key=order_key(), value=None, value_schema=None)) == []
    assert buffer.records == []
    assert factory.prepared == []


def test_tombstone_reuses_current_shape_and_goes_to_delete_statement(make_buffer, factory):
    buffer = make_buffer(delete_enabled=True)

    buffer.add(make_record(key=order_key(1), value=order_value(1)))
    buffer.add(make_record(key=order_key(9, "us"), value=None, value_schema=None))
    flushed = buffer.flush()

    assert len(flushed) == 2
    assert [delete for _, delete in factory.prepared] == [False, True]
    assert factory.executions == [
        ("write", [(1, "eu", "widget", False)]),
        ("delete", [(9, "us")]),
    ]


def test_leading_tombstone_prepares_a_key_only_layout(make_buffer, factory):
    buffer = make_buffer(delete_enabled=True)

    buffer.add(make_record(key=order_key(5), value=None, value_schema=None))
    buffer.flush()

    fields, _ = factory.prepared[0]
    assert fields.non_key_field_names == ()
    assert factory.executions == [("delete", [(5, "eu")])]


def test_deleted_flag_routes_to_delete_statement(make_buffer, factory):
    buffer = make_buffer(delete_enabled=True, delete_by_field=True)

    buffer.add(make_record(key=order_key(2), value=order_value(2)))
    buffer.add(make_record(key=order_key(1), value=order_value(1, deleted=True)))
    buffer.flush()

    assert factory.executions == [
        ("write", [(2, "eu", "widget", False)]),
        ("delete", [(1, "eu")]),
    ]


def test_reinsert_after_delete_runs_in_arrival_order(make_buffer, factory):
    buffer = make_buffer(delete_enabled=True)
    tombstone = make_record(key=order_key(1), value=None, value_schema=None, offset=1)
    reinsert = make_record(key=order_key(1), value=order_value(1, name="again"), offset=2)

    buffer.add(make_record(key=order_key(1), value=order_value(1), offset=0))
    buffer.add(tombstone)
    flushed = buffer.add(reinsert)
    buffer.flush()

    assert len(flushed) == 2
    assert [kind for kind, _ in factory.executions] == ["write", "delete", "write"]
    assert factory.executions[-1] == ("write", [(1, "eu", "again", False)])


def test_flagged_delete_then_reinsert_keeps_order(make_buffer, factory):
    buffer = make_buffer(delete_enabled=True, delete_by_field=True)

    buffer.add(make_record(key=order_key(1), value=order_value(1, deleted=True), offset=1))
    buffer.add(make_record(key=order_key(1), value=order_value(1), offset=2))
    buffer.flush()

    assert [kind for kind, _ in factory.executions] == ["delete", "write"]
    assert factory.executions[-1] == ("write", [(1, "eu", "widget", False)])


def test_deletes_in_a_row_share_one_batch(make_buffer, factory):
    buffer = make_buffer(delete_enabled=True, delete_by_field=True)

    buffer.add(make_record(key=order_key(1), value=order_value(1, deleted=True)))
    buffer.add(make_record(key=order_key(2), value=None, value_schema=None))
    buffer.flush()

    assert factory.executions == [("delete", [(1, "eu"), (2, "eu")])]


def test_close_drops_pending_records_with_a_warning(make_buffer, caplog):
    buffer = make_buffer()
    buffer.add(make_record(key=order_key(), value=order_value()))

    with caplog.at_level(logging.WARNING, logger="sink_binder.writer"):
        buffer.close()

    assert buffer.records == []
    assert "unflushed" in caplog.text


def test_key_schema_stays_the_same_across_shapes(make_buffer, factory):
    buffer = make_buffer()
    buffer.add(make_record(key=order_key(), value=order_value()))

    fields, _ = factory.prepared[0]
    assert fields.key_field_names == KEY_SCHEMA.field_names()

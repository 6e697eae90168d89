"""
Prepared-statement binder: fills one statement row per sink record.

Placeholder layout expected from the statement text, per record kind:

- delete:          key fields
- INSERT / UPSERT: key fields, then non-key fields
- UPDATE:          non-key fields, then key fields

Key and non-key fields each appear in `FieldsMetadata` order. Indices are
1-based and restart at 1 for every record; each binding phase returns the next
free index to the following phase.
"""

from __future__ import annotations

from typing import Any, FrozenSet, Optional, Tuple

from sink_binder.config import Settings
from sink_binder.domain.metadata import FieldsMetadata, SchemaPair
from sink_binder.domain.modes import InsertMode, PrimaryKeyMode
from sink_binder.domain.record import SinkRecord
from sink_binder.domain.schema import (
    INT32_SCHEMA,
    INT64_SCHEMA,
    STRING_SCHEMA,
    Schema,
    SchemaType,
    Struct,
    array,
)
from sink_binder.encoders import ValueEncoder
from sink_binder.errors import InvariantViolation, RecordShapeError
from sink_binder.statement import PreparedStatement
from sink_binder.utils.logging import get_logger

log = get_logger(__name__)

DELETED_FLAG_FIELD = "deleted"
ENUM_SET_SCHEMA = array(STRING_SCHEMA, parameters={"isEnumSet": "true"})


class PreparedStatementBinder:
    """
    Binds records to one prepared statement.

    Not thread-safe: the statement's parameter buffer is mutated in place.
    `config` is optional; without it delete-by-flag is off and no field is an
    enum set.
    """

    def __init__(
        self,
        encoder: ValueEncoder,
        statement: PreparedStatement,
        pk_mode: PrimaryKeyMode,
        schema_pair: SchemaPair,
        fields_metadata: FieldsMetadata,
        insert_mode: InsertMode,
        config: Optional[Settings] = None,
    ) -> None:
        self.encoder = encoder
        self.statement = statement
        self.pk_mode = pk_mode
        self.schema_pair = schema_pair
        self.fields_metadata = fields_metadata
        self.insert_mode = insert_mode
        self.delete_by_field = bool(config.delete_by_field) if config is not None else False
        self.enum_sets: FrozenSet[str] = (
            frozenset(config.enum_sets) if config is not None else frozenset()
        )

    def is_delete(self, record: SinkRecord) -> bool:
        """Tombstones are deletes; so are records flagged `deleted=True` when enabled."""
        if record.value is None:
            return True
        if not self.delete_by_field or record.value_schema is None:
            return False
        flag = record.value_schema.field(DELETED_FLAG_FIELD)
        if flag is None or flag.schema.type is not SchemaType.BOOLEAN:
            return False
        return _as_struct(record.value, "value").get(flag) is True

    def bind_record(self, record: SinkRecord) -> None:
        index = 1
        if self.is_delete(record):
            self._bind_key_fields(record, index)
        elif self.insert_mode in (InsertMode.INSERT, InsertMode.UPSERT):
            index = self._bind_key_fields(record, index)
            self._bind_non_key_fields(record, index)
        elif self.insert_mode is InsertMode.UPDATE:
            index = self._bind_non_key_fields(record, index)
            self._bind_key_fields(record, index)
        else:
            raise InvariantViolation(f"Unknown insert mode: {self.insert_mode!r}")
        self.statement.add_batch()

    def _bind_key_fields(self, record: SinkRecord, index: int) -> int:
        key_names = self.fields_metadata.key_field_names

        if self.pk_mode is PrimaryKeyMode.NONE:
            if key_names:
                raise InvariantViolation(
                    f"pk mode 'none' expects no key fields, layout has {list(key_names)}"
                )

        elif self.pk_mode is PrimaryKeyMode.KAFKA:
            if len(key_names) != 3:
                raise InvariantViolation(
                    f"pk mode 'kafka' expects 3 key fields, layout has {list(key_names)}"
                )
            index = self._bind_field(index, STRING_SCHEMA, record.topic)
            index = self._bind_field(index, INT32_SCHEMA, record.partition)
            index = self._bind_field(index, INT64_SCHEMA, record.offset)

        elif self.pk_mode is PrimaryKeyMode.RECORD_KEY:
            key_schema = self.schema_pair.key_schema
            if key_schema is None:
                raise RecordShapeError(f"Record {record.position()} has no key schema")
            if key_schema.type.is_primitive:
                if len(key_names) != 1:
                    raise InvariantViolation(
                        f"primitive record key expects 1 key field, layout has {list(key_names)}"
                    )
                index = self._bind_field(index, key_schema, record.key)
            else:
                key_struct = _as_struct(record.key, "key")
                for name in key_names:
                    fld = key_schema.resolve(name)
                    index = self._bind_field(index, fld.schema, key_struct.get(fld))

        elif self.pk_mode is PrimaryKeyMode.RECORD_VALUE:
            value_schema = self._value_schema(record)
            value_struct = _as_struct(record.value, "value")
            for name in key_names:
                fld = value_schema.resolve(name)
                index = self._bind_field(index, fld.schema, value_struct.get(fld))

        else:
            raise InvariantViolation(f"Unknown primary key mode: {self.pk_mode!r}")

        return index

    def _bind_non_key_fields(self, record: SinkRecord, index: int) -> int:
        value_schema = record.value_schema
        if value_schema is None:
            if self.fields_metadata.non_key_field_names:
                raise RecordShapeError(f"Record {record.position()} has no value schema")
            return index
        value_struct = _as_struct(record.value, "value")
        for name in self.fields_metadata.non_key_field_names:
            fld = value_schema.resolve(name)
            schema = ENUM_SET_SCHEMA if name in self.enum_sets else fld.schema
            if schema is not fld.schema:
                # The override is not applied: enum-set columns bind with their declared schema.
                log.debug("Enum-set override computed for %s, binding declared schema", name)
            index = self._bind_field(index, fld.schema, value_struct.get(fld))
        return index

    def _bind_field(self, index: int, schema: Schema, value: Any) -> int:
        self.encoder.encode(self.statement, index, schema, value)
        return index + 1

    def _value_schema(self, record: SinkRecord) -> Schema:
        value_schema = self.schema_pair.value_schema
        if value_schema is None:
            raise RecordShapeError(f"Record {record.position()} has no value schema")
        return value_schema


def placeholder_order(
    fields_metadata: FieldsMetadata, insert_mode: InsertMode, delete: bool
) -> Tuple[str, ...]:
    """Column names in the order `bind_record` fills the statement's placeholders."""
    keys = fields_metadata.key_field_names
    non_keys = fields_metadata.non_key_field_names
    if delete:
        return keys
    if insert_mode in (InsertMode.INSERT, InsertMode.UPSERT):
        return keys + non_keys
    if insert_mode is InsertMode.UPDATE:
        return non_keys + keys
    raise InvariantViolation(f"Unknown insert mode: {insert_mode!r}")


def _as_struct(value: Any, side: str) -> Struct:
    if not isinstance(value, Struct):
        raise RecordShapeError(f"Record {side} must be a Struct, got {type(value).__name__}")
    return value


__all__ = ["PreparedStatementBinder", "placeholder_order", "ENUM_SET_SCHEMA", "DELETED_FLAG_FIELD"]

"""
Field layout of a prepared statement.

`FieldsMetadata` lists the key and non-key column names in the exact order the
statement's placeholders were generated for. `FieldsMetadata.extract` derives
that layout from a schema pair and the primary-key settings, and rejects
settings that the schemas cannot satisfy.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from sink_binder.domain.modes import PrimaryKeyMode
from sink_binder.domain.schema import INT32_SCHEMA, INT64_SCHEMA, STRING_SCHEMA, Schema, SchemaType
from sink_binder.errors import ConfigError

DEFAULT_KAFKA_PK_NAMES: Tuple[str, str, str] = (
    "__connect_topic",
    "__connect_partition",
    "__connect_offset",
)
KAFKA_PK_SCHEMAS: Tuple[Schema, Schema, Schema] = (STRING_SCHEMA, INT32_SCHEMA, INT64_SCHEMA)


@dataclass(frozen=True)
class SchemaPair:
    """Key and value schema shared by every record bound through one statement."""

    key_schema: Optional[Schema] = None
    value_schema: Optional[Schema] = None


@dataclass(frozen=True)
class SinkRecordField:
    schema: Schema
    name: str
    is_primary_key: bool


@dataclass(frozen=True)
class FieldsMetadata:
    key_field_names: Tuple[str, ...]
    non_key_field_names: Tuple[str, ...]
    all_fields: Dict[str, SinkRecordField] = field(default_factory=dict, hash=False, compare=False)

    def __post_init__(self) -> None:
        overlap = set(self.key_field_names) & set(self.non_key_field_names)
        if overlap:
            raise ConfigError(f"Key and non-key field names overlap: {sorted(overlap)}")

    @property
    def placeholder_count(self) -> int:
        return len(self.key_field_names) + len(self.non_key_field_names)

    @classmethod
    def extract(
        cls,
        table_name: str,
        pk_mode: PrimaryKeyMode,
        pk_fields: Sequence[str],
        fields_whitelist: Iterable[str],
        schema_pair: SchemaPair,
    ) -> "FieldsMetadata":
        """
        Compute the statement layout for `table_name`.

        Parameters
        ----------
        table_name : str
            Destination table, used in error messages only.
        pk_mode : PrimaryKeyMode
            How key columns are derived.
        pk_fields : sequence of str
            Configured key column names; may be empty to take the mode's defaults.
        fields_whitelist : iterable of str
            Value fields to keep as non-key columns; empty keeps them all.
        schema_pair : SchemaPair
            Key and value schema of the records that will be bound.

        Raises
        ------
        ConfigError
            If the settings cannot be satisfied by the schemas.
        """
        value_schema = schema_pair.value_schema
        if value_schema is not None and value_schema.type is not SchemaType.STRUCT:
            raise ConfigError(
                f"Value schema must be of type struct for table '{table_name}', "
                f"got {value_schema.type.value}"
            )

        configured = list(pk_fields)
        all_fields: Dict[str, SinkRecordField] = {}
        key_names: List[str] = []

        if pk_mode is PrimaryKeyMode.NONE:
            if configured:
                raise ConfigError(
                    f"Primary key fields should not be set when pk mode is 'none' "
                    f"(table '{table_name}', got {configured})"
                )
        elif pk_mode is PrimaryKeyMode.KAFKA:
            _extract_kafka_pk(table_name, configured, key_names, all_fields)
        elif pk_mode is PrimaryKeyMode.RECORD_KEY:
            _extract_record_key_pk(table_name, configured, schema_pair.key_schema, key_names, all_fields)
        elif pk_mode is PrimaryKeyMode.RECORD_VALUE:
            _extract_record_value_pk(table_name, configured, value_schema, key_names, all_fields)
        else:
            raise ConfigError(f"Unknown primary key mode: {pk_mode!r}")

        whitelist = set(fields_whitelist)
        non_key_names: List[str] = []
        if value_schema is not None:
            for fld in value_schema.fields:
                if fld.name in key_names:
                    continue
                if whitelist and fld.name not in whitelist:
                    continue
                non_key_names.append(fld.name)
                all_fields[fld.name] = SinkRecordField(fld.schema, fld.name, False)

        if not all_fields:
            raise ConfigError(f"No fields found using key and value schemas for table: {table_name}")

        return cls(
            key_field_names=tuple(key_names),
            non_key_field_names=tuple(non_key_names),
            all_fields=all_fields,
        )


def _extract_kafka_pk(
    table_name: str,
    configured: List[str],
    key_names: List[str],
    all_fields: Dict[str, SinkRecordField],
) -> None:
    if not configured:
        names: Sequence[str] = DEFAULT_KAFKA_PK_NAMES
    elif len(configured) == 3:
        names = configured
    else:
        raise ConfigError(
            f"PK mode for table '{table_name}' is kafka so there should either be no field "
            f"names defined for defaults {list(DEFAULT_KAFKA_PK_NAMES)} to be applicable, "
            f"or exactly 3, defined fields are: {configured}"
        )
    for name, schema in zip(names, KAFKA_PK_SCHEMAS):
        key_names.append(name)
        all_fields[name] = SinkRecordField(schema, name, True)


def _extract_record_key_pk(
    table_name: str,
    configured: List[str],
    key_schema: Optional[Schema],
    key_names: List[str],
    all_fields: Dict[str, SinkRecordField],
) -> None:
    if key_schema is None:
        raise ConfigError(
            f"PK mode for table '{table_name}' is record_key, but record key schema is missing"
        )
    if key_schema.type.is_primitive:
        if len(configured) != 1:
            raise ConfigError(
                "Need exactly one PK column defined since the key schema for records is a "
                f"primitive type, defined columns are: {configured}"
            )
        name = configured[0]
        key_names.append(name)
        all_fields[name] = SinkRecordField(key_schema, name, True)
    elif key_schema.type is SchemaType.STRUCT:
        _collect_struct_pk(table_name, "record_key", "key", configured, key_schema, key_names, all_fields)
    else:
        raise ConfigError(
            f"PK mode for table '{table_name}' is record_key, but record key schema is of "
            f"unsupported type: {key_schema.type.value}"
        )


def _extract_record_value_pk(
    table_name: str,
    configured: List[str],
    value_schema: Optional[Schema],
    key_names: List[str],
    all_fields: Dict[str, SinkRecordField],
) -> None:
    if value_schema is None:
        raise ConfigError(
            f"PK mode for table '{table_name}' is record_value, but record value schema is missing"
        )
    _collect_struct_pk(table_name, "record_value", "value", configured, value_schema, key_names, all_fields)


def _collect_struct_pk(
    table_name: str,
    mode_name: str,
    side: str,
    configured: List[str],
    schema: Schema,
    key_names: List[str],
    all_fields: Dict[str, SinkRecordField],
) -> None:
    if not configured:
        for fld in schema.fields:
            key_names.append(fld.name)
            all_fields[fld.name] = SinkRecordField(fld.schema, fld.name, True)
        return
    for name in configured:
        fld = schema.field(name)
        if fld is None:
            raise ConfigError(
                f"PK mode for table '{table_name}' is {mode_name} with configured PK fields "
                f"{configured}, but record {side} schema does not contain field: {name}"
            )
        key_names.append(name)
        all_fields[name] = SinkRecordField(fld.schema, name, True)


__all__ = [
    "DEFAULT_KAFKA_PK_NAMES",
    "SchemaPair",
    "SinkRecordField",
    "FieldsMetadata",
]

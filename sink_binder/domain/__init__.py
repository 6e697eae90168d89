"""
Domain package for sink-binder.

Exports the record, schema and layout types shared by the binder, the writer
and the codec. Keep this package free of I/O.
"""

from sink_binder.domain.metadata import FieldsMetadata, SchemaPair, SinkRecordField
from sink_binder.domain.modes import InsertMode, PrimaryKeyMode
from sink_binder.domain.record import SinkRecord
from sink_binder.domain.schema import Field, Schema, SchemaType, Struct

__all__ = [
    "Field",
    "FieldsMetadata",
    "InsertMode",
    "PrimaryKeyMode",
    "Schema",
    "SchemaPair",
    "SchemaType",
    "SinkRecord",
    "SinkRecordField",
    "Struct",
]

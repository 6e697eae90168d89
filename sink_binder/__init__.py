"""
sink-binder - bind streaming change records to prepared SQL statements.

Turns sink records (optional key, optional value, each with a schema) into
ordered parameter bindings for an already prepared INSERT, UPSERT, UPDATE or
DELETE statement, so records can be flushed to a table with statement batching:

- `PreparedStatementBinder` decides placeholder order and delete handling
- `FieldsMetadata.extract` derives the key / non-key column layout
- `BufferedRecords` drives binders and flushes batches
- `GenericValueEncoder` type-checks values on their way into placeholders

SQL text generation and dialect-specific coercion are left to the caller.
"""

from __future__ import annotations

__version__ = "0.1.0"

# Public API exports
from sink_binder.binder import PreparedStatementBinder, placeholder_order
from sink_binder.config import Settings, get_settings
from sink_binder.domain import (
    Field,
    FieldsMetadata,
    InsertMode,
    PrimaryKeyMode,
    Schema,
    SchemaPair,
    SchemaType,
    SinkRecord,
    Struct,
)
from sink_binder.encoders import GenericValueEncoder, RecordingEncoder, ValueEncoder
from sink_binder.errors import (
    ConfigError,
    EncodingError,
    InvariantViolation,
    RecordShapeError,
    SinkBinderError,
    UnresolvedFieldError,
)
from sink_binder.statement import BufferedStatement, PreparedStatement
from sink_binder.utils.logging import configure_logging, get_logger
from sink_binder.writer import BufferedRecords, StatementFactory

__all__ = [
    "__version__",
    # Binding
    "PreparedStatementBinder",
    "placeholder_order",
    "BufferedRecords",
    "StatementFactory",
    # Configuration
    "Settings",
    "get_settings",
    # Domain
    "Field",
    "FieldsMetadata",
    "InsertMode",
    "PrimaryKeyMode",
    "Schema",
    "SchemaPair",
    "SchemaType",
    "SinkRecord",
    "Struct",
    # Encoding and statements
    "ValueEncoder",
    "GenericValueEncoder",
    "RecordingEncoder",
    "PreparedStatement",
    "BufferedStatement",
    # Errors
    "SinkBinderError",
    "InvariantViolation",
    "ConfigError",
    "UnresolvedFieldError",
    "RecordShapeError",
    "EncodingError",
    # Logging
    "configure_logging",
    "get_logger",
]

"""
Buffered writer: the caller-side loop around `PreparedStatementBinder`.

Records are bound as they arrive and flushed every `batch_size` records, or
whenever the schema pair changes (a new schema means a new statement shape).
Deletes go to a separate statement from inserts/updates; the SQL text for both
comes from a `StatementFactory` supplied by the caller. A flush runs writes
before deletes, so a write arriving after a pending delete flushes first.

Usage:
    from sink_binder.writer import BufferedRecords

    buffer = BufferedRecords("orders", settings, GenericValueEncoder(), factory)
    for record in records:
        buffer.add(record)
    buffer.flush()
    buffer.close()
"""

from __future__ import annotations

from typing import List, Optional, Protocol

from sink_binder.binder import PreparedStatementBinder
from sink_binder.config import Settings
from sink_binder.domain.metadata import FieldsMetadata, SchemaPair
from sink_binder.domain.record import SinkRecord
from sink_binder.encoders import ValueEncoder
from sink_binder.statement import ExecutableStatement
from sink_binder.utils.logging import get_logger
from sink_binder.utils.profiler import profile_block

log = get_logger(__name__)


class StatementFactory(Protocol):
    def prepare(
        self, fields: FieldsMetadata, schema_pair: SchemaPair, delete: bool
    ) -> ExecutableStatement:
        """Return a statement whose placeholders follow the binder's layout."""
        ...


class BufferedRecords:
    """
    Accumulates bound rows for one table.

    Not thread-safe; use one instance per table per worker.
    """

    def __init__(
        self,
        table_name: str,
        settings: Settings,
        encoder: ValueEncoder,
        statement_factory: StatementFactory,
    ) -> None:
        self.table_name = table_name
        self.settings = settings
        self.encoder = encoder
        self.statement_factory = statement_factory

        self.records: List[SinkRecord] = []
        self.fields_metadata: Optional[FieldsMetadata] = None
        self._schema_pair: Optional[SchemaPair] = None
        self._write_statement: Optional[ExecutableStatement] = None
        self._write_binder: Optional[PreparedStatementBinder] = None
        self._delete_statement: Optional[ExecutableStatement] = None
        self._delete_binder: Optional[PreparedStatementBinder] = None
        self._deletes_in_batch = False

    def add(self, record: SinkRecord) -> List[SinkRecord]:
        """
        Bind `record` into the pending batch.

        Returns
        -------
        list[SinkRecord]
            Records flushed while handling this call (possibly empty).
        """
        if record.is_tombstone and not self.settings.delete_enabled:
            log.debug(
                "Ignoring tombstone, deletes are disabled",
                extra={"table": self.table_name, "position": record.position()},
            )
            return []

        flushed: List[SinkRecord] = []
        schema_pair = self._effective_schema_pair(record)
        if schema_pair != self._schema_pair:
            flushed.extend(self.flush())
            self._prepare(schema_pair)

        assert self._write_binder is not None
        if self._write_binder.is_delete(record):
            self._delete_binder_for().bind_record(record)
            self._deletes_in_batch = True
        else:
            # Pending deletes run after pending writes; flush them before a later write.
            if self._deletes_in_batch:
                flushed.extend(self.flush())
            self._write_binder.bind_record(record)
        self.records.append(record)

        if len(self.records) >= self.settings.batch_size:
            flushed.extend(self.flush())
        return flushed

    def flush(self) -> List[SinkRecord]:
        """Execute pending writes, then pending deletes. Returns the flushed records."""
        if not self.records:
            return []
        with profile_block(f"flush:{self.table_name}") as stats:
            written = self._write_statement.execute_batch() if self._write_statement else 0
            deleted = self._delete_statement.execute_batch() if self._delete_statement else 0
            stats.rows = written + deleted
            stats.extra.update(table=self.table_name, written=written, deleted=deleted)
        log.info("Flushed records", extra=stats.as_log_extra())

        self._deletes_in_batch = False
        flushed, self.records = self.records, []
        return flushed

    def close(self) -> None:
        if self.records:
            log.warning(
                "Closing buffer with unflushed records",
                extra={"table": self.table_name, "pending": len(self.records)},
            )
        self.records = []
        self._schema_pair = None
        self._deletes_in_batch = False
        self.fields_metadata = None
        self._write_statement = self._delete_statement = None
        self._write_binder = self._delete_binder = None

    def _effective_schema_pair(self, record: SinkRecord) -> SchemaPair:
        # Tombstones carry no value schema; they bind against the current shape.
        if record.is_tombstone and self._schema_pair is not None:
            if record.key_schema == self._schema_pair.key_schema:
                return self._schema_pair
        return record.schema_pair

    def _prepare(self, schema_pair: SchemaPair) -> None:
        settings = self.settings
        self.fields_metadata = FieldsMetadata.extract(
            self.table_name,
            settings.pk_mode,
            settings.pk_fields,
            settings.fields_whitelist,
            schema_pair,
        )
        self._schema_pair = schema_pair
        self._write_statement = self.statement_factory.prepare(
            self.fields_metadata, schema_pair, delete=False
        )
        self._write_binder = self._binder(self._write_statement)
        self._delete_statement = None
        self._delete_binder = None
        log.debug(
            "Prepared statement layout",
            extra={
                "table": self.table_name,
                "key_fields": list(self.fields_metadata.key_field_names),
                "non_key_fields": list(self.fields_metadata.non_key_field_names),
            },
        )

    def _delete_binder_for(self) -> PreparedStatementBinder:
        if self._delete_binder is None:
            assert self.fields_metadata is not None and self._schema_pair is not None
            self._delete_statement = self.statement_factory.prepare(
                self.fields_metadata, self._schema_pair, delete=True
            )
            self._delete_binder = self._binder(self._delete_statement)
        return self._delete_binder

    def _binder(self, statement: ExecutableStatement) -> PreparedStatementBinder:
        assert self.fields_metadata is not None and self._schema_pair is not None
        return PreparedStatementBinder(
            self.encoder,
            statement,
            self.settings.pk_mode,
            self._schema_pair,
            self.fields_metadata,
            self.settings.insert_mode,
            config=self.settings,
        )


__all__ = ["BufferedRecords", "StatementFactory"]

"""
psycopg-backed prepared statement.

Rows are buffered by `BufferedStatement` and sent with `executemany` when the
owner calls `execute_batch`. The SQL text uses `%s` placeholders in the order
the binder fills them.
"""

from __future__ import annotations

from typing import Optional

from psycopg import Connection

from sink_binder.domain.metadata import FieldsMetadata, SchemaPair
from sink_binder.errors import ConfigError
from sink_binder.statement import BufferedStatement
from sink_binder.utils.logging import get_logger

log = get_logger(__name__)


class PsycopgStatement(BufferedStatement):
    def __init__(self, connection: Connection, sql: str, parameter_count: Optional[int] = None) -> None:
        super().__init__(parameter_count=parameter_count)
        self.connection = connection
        self.sql = sql

    def execute_batch(self) -> int:
        rows = self.batch
        if not rows:
            return 0
        with self.connection.cursor() as cur:
            cur.executemany(self.sql, rows)
        self.clear_batch()
        log.debug("Executed batch", extra={"rows": len(rows)})
        return len(rows)


class SqlStatementFactory:
    """
    `StatementFactory` over fixed SQL text.

    `write_sql` serves inserts/upserts/updates and `delete_sql` serves deletes;
    both must list their `%s` placeholders in `placeholder_order` order.
    Deletes bind the key columns only; writes bind every column once.
    """

    def __init__(
        self,
        connection: Connection,
        write_sql: str,
        delete_sql: Optional[str] = None,
    ) -> None:
        self.connection = connection
        self.write_sql = write_sql
        self.delete_sql = delete_sql

    def prepare(self, fields: FieldsMetadata, schema_pair: SchemaPair, delete: bool) -> PsycopgStatement:
        sql = self.delete_sql if delete else self.write_sql
        if sql is None:
            raise ConfigError("A delete statement is required to bind delete records")
        count = len(fields.key_field_names) if delete else fields.placeholder_count
        return PsycopgStatement(self.connection, sql, parameter_count=count)


__all__ = ["PsycopgStatement", "SqlStatementFactory"]

"""
Infrastructure package for sink-binder.

Database connectivity and the psycopg statement handle. Keep this layer
focused on I/O, decoupled from the binding logic.
"""

from sink_binder.infrastructure.db_factory import (
    PoolManager,
    build_dsn,
    get_sync_connection,
    get_sync_pool,
)
from sink_binder.infrastructure.statement import PsycopgStatement, SqlStatementFactory

__all__ = [
    "PoolManager",
    "PsycopgStatement",
    "SqlStatementFactory",
    "build_dsn",
    "get_sync_connection",
    "get_sync_pool",
]

"""
Pytest configuration for sink-binder.

Provides fixtures for:
- Settings built without reading the environment
- A recording encoder over an in-memory statement
- Database connection management for integration tests
"""

from __future__ import annotations

import logging
import os
from typing import Any, Callable, Generator

import psycopg
import pytest

from sink_binder.config import Settings, get_settings
from sink_binder.encoders import RecordingEncoder
from sink_binder.statement import BufferedStatement


@pytest.fixture(autouse=True)
def _isolated_settings(monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    """Keep the developer's environment and `.env` out of unit tests."""
    for name in (
        "PK_MODE",
        "PK_FIELDS",
        "FIELDS_WHITELIST",
        "INSERT_MODE",
        "DELETE_ENABLED",
        "DELETE_BY_FIELD",
        "ENUM_SETS",
        "BATCH_SIZE",
        "TABLE_NAME",
        "LOG_JSON",
    ):
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def make_settings() -> Callable[..., Settings]:
    def _make(**overrides: Any) -> Settings:
        return Settings(_env_file=None, **overrides)

    return _make


@pytest.fixture
def encoder() -> RecordingEncoder:
    return RecordingEncoder()


@pytest.fixture
def statement() -> BufferedStatement:
    return BufferedStatement()


@pytest.fixture(scope="session")
def test_dsn() -> str:
    """
    Database connection string for integration tests.
    """
    return (
        f"postgresql://{os.getenv('DB_USER', 'postgres')}:{os.getenv('DB_PASSWORD', 'postgres')}"
        f"@{os.getenv('DB_HOST', 'localhost')}:{os.getenv('DB_PORT', '5432')}"
        f"/{os.getenv('DB_NAME', 'sink')}"
    )


@pytest.fixture(scope="session")
def db_connection_available(test_dsn: str) -> bool:
    """
    Check if database is reachable.
    """
    try:
        with psycopg.connect(test_dsn, connect_timeout=5) as conn:
            with conn.cursor() as cur:
                cur.execute("SELECT 1;")
                cur.fetchone()
        return True
    except psycopg.Error:
        return False


@pytest.fixture
def db_connection(
    test_dsn: str, db_connection_available: bool
) -> Generator[psycopg.Connection, None, None]:
    """
    Provide a database connection with a scratch `orders` table.

    Skips tests if database is not available.
    """
    if not db_connection_available:
        pytest.skip("Database not available for integration tests")

    conn = psycopg.connect(test_dsn)
    try:
        with conn.cursor() as cur:
            cur.execute("DROP TABLE IF EXISTS orders_sink_test;")
            cur.execute(
                """
                CREATE TABLE orders_sink_test (
                    id BIGINT NOT NULL,
                    region TEXT NOT NULL,
                    name TEXT,
                    deleted BOOLEAN NOT NULL,
                    PRIMARY KEY (id, region)
                );
                """
            )
        conn.commit()
        yield conn
    finally:
        with conn.cursor() as cur:
            cur.execute("DROP TABLE IF EXISTS orders_sink_test;")
        conn.commit()
        conn.close()


@pytest.fixture
def restore_logging() -> Generator[None, None, None]:
    """Undo `configure_logging` so handlers bound to captured streams do not leak."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)

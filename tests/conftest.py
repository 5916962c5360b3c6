"""Shared test fixtures for the sqleasy test suite."""

import logging
from unittest.mock import MagicMock, patch

import pytest
from psycopg2.extensions import TRANSACTION_STATUS_IDLE


class FakeClock:
    """Monotonic clock the tests move forward by hand."""

    def __init__(self, start=1000.0):
        self.now = start

    def advance(self, seconds):
        self.now += seconds

    def __call__(self):
        return self.now


# ---------------------------------------------------------------------------
# Database fixtures
# ---------------------------------------------------------------------------

def make_connection(cursor=None, autocommit=True):
    """Mock psycopg2 connection whose cursor() context yields `cursor`."""
    conn = MagicMock()
    conn.closed = 0
    conn.autocommit = autocommit
    conn.get_transaction_status.return_value = TRANSACTION_STATUS_IDLE
    conn.cursor.return_value.__enter__.return_value = cursor or MagicMock()
    conn.cursor.return_value.__exit__.return_value = False
    return conn


@pytest.fixture
def mock_cursor():
    """Mock database cursor with an empty result."""
    cursor = MagicMock()
    cursor.description = [("id",)]
    cursor.fetchone.return_value = None
    cursor.fetchall.return_value = []
    return cursor


@pytest.fixture
def mock_conn(mock_cursor):
    return make_connection(mock_cursor)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def mock_connect():
    """Patch psycopg2.connect to hand out fresh mock connections."""
    with patch("sqleasy.connection.psycopg2.connect") as connect:
        connect.side_effect = lambda **kwargs: make_connection()
        yield connect


@pytest.fixture(autouse=True)
def restore_statement_logger():
    """Undo level and handler changes made to the sqleasy.sql logger."""
    sql_logger = logging.getLogger("sqleasy.sql")
    handlers, level = sql_logger.handlers[:], sql_logger.level
    yield sql_logger
    for handler in sql_logger.handlers[:]:
        if handler not in handlers:
            sql_logger.removeHandler(handler)
            handler.close()
    sql_logger.setLevel(level)


@pytest.fixture
def pg_env(monkeypatch):
    """Discrete libpq environment, no DATABASE_URL."""
    monkeypatch.delenv("DATABASE_URL", raising=False)
    monkeypatch.setenv("PGDATABASE", "blog")
    monkeypatch.setenv("PGUSER", "user")
    monkeypatch.setenv("PGPASSWORD", "secret")
    monkeypatch.delenv("PGHOST", raising=False)
    monkeypatch.delenv("PGPORT", raising=False)
    monkeypatch.delenv("SQLEASY_CHECK_THRESHOLD", raising=False)
    monkeypatch.delenv("SQLEASY_DEBUG", raising=False)

"""Connection guardian: hands out a connection that was recently verified.

Checking liveness costs a round-trip, so the guardian only probes once the
connection has gone unchecked for longer than `check_threshold` seconds.
Under steady load the same handle is returned with no extra traffic.
"""

import logging
import threading
import time
from enum import Enum
from typing import Optional

import psycopg2
from psycopg2.extensions import TRANSACTION_STATUS_IDLE, TRANSACTION_STATUS_UNKNOWN

from .config import ConnectionSettings, DEFAULT_CHECK_THRESHOLD, validate_threshold
from .errors import ConnectionOpenError, StaleConnectionError
from .log_config import STATEMENT_LOGGER, enable_statement_log

logger = logging.getLogger(__name__)
sql_logger = logging.getLogger(STATEMENT_LOGGER)


class ProbeResult(Enum):
    ALIVE = "alive"
    DEAD = "dead"
    AMBIGUOUS = "ambiguous"


def open_connection(settings: ConnectionSettings):
    """Open a new psycopg2 connection from settings."""
    try:
        conn = psycopg2.connect(**settings.connect_kwargs())
    except psycopg2.Error as e:
        raise ConnectionOpenError(str(e).strip()) from e
    conn.autocommit = settings.autocommit
    logger.info("Connected to %s", settings.describe())
    return conn


def _driver_check(connection) -> ProbeResult:
    """Client-side check, no round-trip.

    psycopg2 only knows a connection is dead once it has noticed; an open
    handle may still point at a server that went away.
    """
    if connection is None or connection.closed:
        return ProbeResult.DEAD
    if connection.get_transaction_status() == TRANSACTION_STATUS_UNKNOWN:
        return ProbeResult.DEAD
    return ProbeResult.AMBIGUOUS


def _query_check(connection) -> ProbeResult:
    was_idle = connection.get_transaction_status() == TRANSACTION_STATUS_IDLE
    try:
        with connection.cursor() as cur:
            cur.execute("SELECT 1")
            cur.fetchone()
        # Don't leave the probe's implicit transaction open
        if was_idle and not connection.autocommit:
            connection.rollback()
    except psycopg2.Error as e:
        logger.debug("Liveness query failed: %s", e)
        return ProbeResult.DEAD
    return ProbeResult.ALIVE


def probe_connection(connection) -> ProbeResult:
    """Return ALIVE or DEAD, falling back to SELECT 1 when the driver can't tell."""
    result = _driver_check(connection)
    if result is ProbeResult.AMBIGUOUS:
        result = _query_check(connection)
    return result


class ConnectionGuardian:
    """Owns one connection and re-verifies it once it has gone stale.

    Built either from an existing connection (never reconnected, the caller
    owns it) or from ConnectionSettings (connected immediately and reopened
    from the same settings whenever the probe fails).
    """

    def __init__(
        self,
        connection=None,
        settings: Optional[ConnectionSettings] = None,
        check_threshold=DEFAULT_CHECK_THRESHOLD,
        debug: bool = False,
        clock=time.monotonic,
    ):
        if (connection is None) == (settings is None):
            raise ValueError("Pass exactly one of connection or settings")

        self.settings = settings
        self.check_threshold = validate_threshold(check_threshold)
        self.debug = bool(debug)
        self._clock = clock
        self._lock = threading.Lock()
        self._statement_count = 0
        self._owns_connection = settings is not None

        if self.debug:
            enable_statement_log()

        if connection is None:
            connection = open_connection(settings)
        self._connection = connection
        self._last_checked_at = self._clock()

    @property
    def statement_count(self) -> int:
        return self._statement_count

    @property
    def last_checked_at(self) -> float:
        return self._last_checked_at

    def get_connection(self):
        """Return the connection, probing it first if it has gone stale."""
        with self._lock:
            now = self._clock()
            if now - self._last_checked_at > self.check_threshold:
                if probe_connection(self._connection) is ProbeResult.ALIVE:
                    self._last_checked_at = now
                else:
                    self._reconnect()
            return self._connection

    def _reconnect(self):
        if self.settings is None:
            raise StaleConnectionError(
                "Database connection went away and there are no settings to reconnect with"
            )

        logger.warning("Database connection went away, reconnecting to %s",
                       self.settings.describe())
        stale = self._connection
        self._connection = open_connection(self.settings)
        self._last_checked_at = self._clock()

        try:
            stale.close()
        except psycopg2.Error as e:
            logger.debug("Error closing stale connection: %s", e)

    def log_statement(self, sql: str):
        """Report a statement to the `sqleasy.sql` logger when debug is on."""
        if self.debug:
            self._statement_count += 1
            sql_logger.info("sql %d: '%s'", self._statement_count, sql)

    def close(self):
        """Close the connection if this guardian opened it."""
        if self._owns_connection and not self._connection.closed:
            self._connection.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False

"""Exceptions raised by sqleasy."""


class SQLEasyError(Exception):
    """Base class for all sqleasy errors."""


class ConnectionOpenError(SQLEasyError):
    """Opening a database connection failed (at startup or on reconnect)."""


class StatementError(SQLEasyError):
    """A statement failed to execute or its result could not be fetched."""

    def __init__(self, message: str, sql: str):
        super().__init__(message)
        self.sql = sql


class StaleConnectionError(SQLEasyError):
    """An externally supplied connection went away and cannot be reopened."""

"""Easy access to SQL data without an ORM."""

from .config import ConnectionSettings
from .connection import ConnectionGuardian, ProbeResult, probe_connection
from .easy import SQLEasy
from .errors import (
    ConnectionOpenError,
    SQLEasyError,
    StaleConnectionError,
    StatementError,
)
from .log_config import setup_logging

__version__ = "0.4.0"

__all__ = [
    "SQLEasy",
    "ConnectionGuardian",
    "ConnectionSettings",
    "ProbeResult",
    "probe_connection",
    "SQLEasyError",
    "ConnectionOpenError",
    "StatementError",
    "StaleConnectionError",
    "setup_logging",
]

"""Connection settings and their environment loading."""

import os
from dataclasses import dataclass
from typing import Optional

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 5432
DEFAULT_CHECK_THRESHOLD = 30

TRUTHY = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class ConnectionSettings:
    """Everything needed to (re)open a connection.

    When `dsn` is set it is handed to libpq as-is. database, user and
    password are passed alongside it when given (libpq lets them override
    the DSN); host and port are ignored in that case.
    """
    database: Optional[str] = None
    user: Optional[str] = None
    password: Optional[str] = None
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    dsn: Optional[str] = None
    autocommit: bool = True
    connect_timeout: Optional[int] = None

    def __post_init__(self):
        if not self.dsn and not self.database:
            raise ValueError("database or dsn must be set")
        if not 0 < int(self.port) < 65536:
            raise ValueError(f"port out of range: {self.port}")
        if self.connect_timeout is not None and self.connect_timeout <= 0:
            raise ValueError("connect_timeout must be positive")

    def connect_kwargs(self) -> dict:
        """Keyword arguments for psycopg2.connect()."""
        kwargs = {}
        if self.dsn:
            kwargs["dsn"] = self.dsn
            if self.database:
                kwargs["dbname"] = self.database
            if self.user:
                kwargs["user"] = self.user
            if self.password:
                kwargs["password"] = self.password
        else:
            kwargs.update(
                dbname=self.database,
                user=self.user,
                password=self.password,
                host=self.host,
                port=self.port,
            )
        if self.connect_timeout is not None:
            kwargs["connect_timeout"] = self.connect_timeout
        return kwargs

    def describe(self) -> str:
        """Password-free label for log lines."""
        if self.dsn:
            return "dsn"
        return f"{self.user or ''}@{self.host}:{self.port}/{self.database}"

    @classmethod
    def from_env(cls) -> "ConnectionSettings":
        """Build settings from DATABASE_URL, or from the libpq PG* variables."""
        database_url = os.environ.get("DATABASE_URL")
        if database_url:
            return cls(dsn=database_url)

        database = os.environ.get("PGDATABASE")
        if not database:
            raise ValueError("DATABASE_URL or PGDATABASE must be set")

        return cls(
            database=database,
            user=os.environ.get("PGUSER"),
            password=os.environ.get("PGPASSWORD"),
            host=os.environ.get("PGHOST", DEFAULT_HOST),
            port=int(os.environ.get("PGPORT", DEFAULT_PORT)),
        )


def validate_threshold(value) -> float:
    """Return the staleness threshold as seconds, rejecting bad values."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"connection_check_threshold must be a number, got {value!r}")
    if value < 0:
        raise ValueError("connection_check_threshold must be non-negative")
    return float(value)


def threshold_from_env(default=DEFAULT_CHECK_THRESHOLD) -> float:
    raw = os.environ.get("SQLEASY_CHECK_THRESHOLD")
    if raw is None or raw == "":
        return validate_threshold(default)
    try:
        value = float(raw)
    except ValueError:
        raise ValueError(f"SQLEASY_CHECK_THRESHOLD is not a number: {raw!r}")
    return validate_threshold(value)


def debug_from_env() -> bool:
    return os.environ.get("SQLEASY_DEBUG", "").strip().lower() in TRUTHY

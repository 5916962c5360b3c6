"""Short methods for running SQL and getting plain Python values back.

    se = SQLEasy(database="blog", user="user", password="secret")

    count = se.return_one("SELECT count(id) FROM posts")
    dt, title = se.return_row("SELECT dt, title FROM posts WHERE id = %s", 1)
    posts = se.return_data("SELECT dt, title FROM posts ORDER BY id")
    post_id = se.insert("INSERT INTO posts (dt, title) VALUES (now(), %s)", "Hi")
    se.execute("UPDATE posts SET title = %s WHERE id = %s", "JAPH", 2)

Every call goes through the ConnectionGuardian, which re-verifies the
connection once `connection_check_threshold` seconds have passed since the
last check and reconnects if it went away.
"""

import time
from contextlib import contextmanager
from typing import Any, Optional

import psycopg2
from psycopg2.extensions import cursor as TupleCursor

from .config import (
    ConnectionSettings,
    DEFAULT_CHECK_THRESHOLD,
    DEFAULT_HOST,
    DEFAULT_PORT,
    debug_from_env,
    threshold_from_env,
)
from .connection import ConnectionGuardian
from .errors import StatementError


def _column_names(cur) -> list[str]:
    if not cur.description:
        return []
    return [desc[0] for desc in cur.description]


def _rollback(conn):
    if not conn.autocommit and not conn.closed:
        conn.rollback()


def _tsv_field(value) -> str:
    if value is None:
        return ""
    if isinstance(value, (bytes, bytearray, memoryview)):
        return "\\x" + bytes(value).hex()
    return str(value)


class SQLEasy:
    """Run SQL through a guarded psycopg2 connection.

    Either pass connection keywords (database, user, password, host, port,
    dsn) and let SQLEasy open and own the connection, or pass an existing
    `connection`, which is used as-is and never reopened.
    """

    def __init__(
        self,
        connection=None,
        *,
        database: Optional[str] = None,
        user: Optional[str] = None,
        password: Optional[str] = None,
        host: str = DEFAULT_HOST,
        port: int = DEFAULT_PORT,
        dsn: Optional[str] = None,
        autocommit: bool = True,
        connect_timeout: Optional[int] = None,
        settings: Optional[ConnectionSettings] = None,
        connection_check_threshold=DEFAULT_CHECK_THRESHOLD,
        debug: bool = False,
        clock=time.monotonic,
    ):
        if connection is None and settings is None:
            settings = ConnectionSettings(
                database=database,
                user=user,
                password=password,
                host=host,
                port=port,
                dsn=dsn,
                autocommit=autocommit,
                connect_timeout=connect_timeout,
            )

        self.guardian = ConnectionGuardian(
            connection=connection,
            settings=settings,
            check_threshold=connection_check_threshold,
            debug=debug,
            clock=clock,
        )

    @classmethod
    def from_env(cls, **kwargs) -> "SQLEasy":
        """Create from DATABASE_URL / PG* plus SQLEASY_CHECK_THRESHOLD and SQLEASY_DEBUG."""
        kwargs.setdefault("connection_check_threshold", threshold_from_env())
        kwargs.setdefault("debug", debug_from_env())
        return cls(settings=ConnectionSettings.from_env(), **kwargs)

    def get_connection(self):
        """Return the underlying connection, verified if it had gone stale."""
        return self.guardian.get_connection()

    @contextmanager
    def _cursor(self, sql: str, bind_values: tuple):
        """Execute sql on a fresh cursor and yield it for fetching.

        Rows are always plain tuples, whatever cursor_factory the connection
        was opened with. Commits afterwards unless the connection is in
        autocommit mode; any error rolls back, driver errors are re-raised
        as StatementError.
        """
        conn = self.guardian.get_connection()
        try:
            with conn.cursor(cursor_factory=TupleCursor) as cur:
                self.guardian.log_statement(sql)
                cur.execute(sql, bind_values or None)
                yield cur
            if not conn.autocommit:
                conn.commit()
        except psycopg2.Error as e:
            _rollback(conn)
            raise StatementError(str(e).strip(), sql) from e
        except Exception:
            _rollback(conn)
            raise

    def return_one(self, sql: str, *bind_values) -> Any:
        """First column of the first row, or None when there are no rows."""
        with self._cursor(sql, bind_values) as cur:
            row = cur.fetchone()
        return row[0] if row else None

    def return_row(self, sql: str, *bind_values) -> tuple:
        """Values of the first row, or () when there are no rows."""
        with self._cursor(sql, bind_values) as cur:
            row = cur.fetchone()
        return tuple(row) if row else ()

    def return_col(self, sql: str, *bind_values) -> list:
        """First column of every row."""
        with self._cursor(sql, bind_values) as cur:
            return [row[0] for row in cur.fetchall()]

    def return_data(self, sql: str, *bind_values) -> list[dict]:
        """All rows as dicts keyed by column name.

        If the result has two columns with the same name the later one wins.
        """
        with self._cursor(sql, bind_values) as cur:
            columns = _column_names(cur)
            return [dict(zip(columns, row)) for row in cur.fetchall()]

    def return_tsv_data(self, sql: str, *bind_values) -> str:
        """Result as tab separated text: a header line, then one line per row.

            dt_post<TAB>title
            2010-07-14 18:30:31<TAB>Hello, World!

        NULLs come out as empty fields and bytea as hex, the way psql shows
        them. Every line ends with a newline.
        """
        with self._cursor(sql, bind_values) as cur:
            lines = ["\t".join(_column_names(cur))]
            for row in cur.fetchall():
                lines.append("\t".join(_tsv_field(value) for value in row))
        return "".join(line + "\n" for line in lines)

    def insert(self, sql: str, *bind_values) -> Any:
        """Run an INSERT and return the id of the new row.

        Uses the statement's RETURNING value when it has one, otherwise the
        sequence value generated in this session (lastval()).
        """
        with self._cursor(sql, bind_values) as cur:
            if cur.description is None:
                cur.execute("SELECT lastval()")
            row = cur.fetchone()
        return row[0] if row else None

    def execute(self, sql: str, *bind_values) -> bool:
        """Run sql for its side effects; result rows are not read."""
        with self._cursor(sql, bind_values):
            pass
        return True

    def close(self):
        self.guardian.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False

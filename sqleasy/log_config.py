"""Logging setup for sqleasy and the scripts that use it.

Statements run with `debug` on are reported on the `sqleasy.sql` logger.
Scripts that configure logging themselves (or call `setup_logging`) get
those lines through their own handlers; otherwise the first debug-enabled
connection attaches a stderr handler so the lines are not lost.
"""

import logging
import os
from logging.handlers import RotatingFileHandler
from typing import Optional

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"

STATEMENT_LOGGER = "sqleasy.sql"
STATEMENT_LOG_FILE = "sqleasy_sql.log"


def _formatter() -> logging.Formatter:
    return logging.Formatter(LOG_FORMAT, datefmt=LOG_DATEFMT)


def enable_statement_log():
    """Make sure `sqleasy.sql` INFO lines reach an operator.

    Lowers the logger to INFO when it would otherwise inherit a stricter
    level, and adds a stderr handler only when no handler would see the
    records at all.
    """
    sql_logger = logging.getLogger(STATEMENT_LOGGER)
    if sql_logger.getEffectiveLevel() > logging.INFO:
        sql_logger.setLevel(logging.INFO)
    if not sql_logger.hasHandlers():
        handler = logging.StreamHandler()
        handler.setFormatter(_formatter())
        sql_logger.addHandler(handler)


def setup_logging(level=logging.INFO, log_dir: Optional[str] = None):
    """Configure console logging, and optionally keep the statement log on disk.

    With `log_dir` the `sqleasy.sql` logger also writes to
    `log_dir/sqleasy_sql.log` (rotated at 5 MB, 3 backups).

    Does nothing if the root logger already has handlers.
    """
    root = logging.getLogger()
    if root.handlers:
        return

    root.setLevel(level)

    console = logging.StreamHandler()
    console.setLevel(level)
    console.setFormatter(_formatter())
    root.addHandler(console)

    if log_dir:
        os.makedirs(log_dir, exist_ok=True)
        statement_file = RotatingFileHandler(
            os.path.join(log_dir, STATEMENT_LOG_FILE),
            maxBytes=5 * 1024 * 1024,
            backupCount=3,
        )
        statement_file.setLevel(level)
        statement_file.setFormatter(_formatter())
        logging.getLogger(STATEMENT_LOGGER).addHandler(statement_file)

"""Run one statement from the shell.

    DATABASE_URL=postgresql://... python -m sqleasy "SELECT * FROM posts WHERE id = %s" 1
"""

import argparse
import json
import logging
import sys

from .easy import SQLEasy
from .errors import SQLEasyError
from .log_config import setup_logging

logger = logging.getLogger("sqleasy")


def run_query(se: SQLEasy, sql: str, bind_values: list, fmt: str = "tsv") -> str:
    if fmt == "json":
        return json.dumps(se.return_data(sql, *bind_values), default=str, indent=2) + "\n"
    return se.return_tsv_data(sql, *bind_values)


def main(argv=None):
    """CLI entry point: print a query result as TSV or JSON."""
    setup_logging()

    parser = argparse.ArgumentParser(description="Run a SQL statement and print the result")
    parser.add_argument("sql")
    parser.add_argument("bind", nargs="*", help="positional bind values")
    parser.add_argument("--format", choices=["tsv", "json"], default="tsv")
    parser.add_argument("--debug", action="store_true", help="log each statement")
    parser.add_argument("--threshold", type=float, default=None,
                        help="connection check threshold in seconds")

    args = parser.parse_args(argv)

    kwargs = {}
    if args.debug:
        kwargs["debug"] = True
    if args.threshold is not None:
        kwargs["connection_check_threshold"] = args.threshold

    try:
        with SQLEasy.from_env(**kwargs) as se:
            sys.stdout.write(run_query(se, args.sql, args.bind, args.format))
    except (SQLEasyError, ValueError) as e:
        logger.error("%s", e)
        sys.exit(1)


if __name__ == "__main__":
    main()

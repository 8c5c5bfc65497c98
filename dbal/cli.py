"""Command-line entry point for ad-hoc introspection and queries.

Connection settings come from the environment (DATABASE_URL, or
DB_USER / DB_PASSWORD / DB_NAME / DB_HOST / DB_PORT).
"""

import argparse
import json
import logging
import sys

from .connection import from_env
from .log_config import setup_logging

logger = logging.getLogger(__name__)


def _print_json(row):
    if hasattr(row, "_asdict"):
        row = row._asdict()
    print(json.dumps(dict(row), default=str))


def run_command(db, args):
    """Run one subcommand against `db` and return its Result."""
    if args.command == "tables":
        result = db.get_tables()
        if result:
            for name in result.value:
                print(name)
    elif args.command == "columns":
        result = db.get_columns(args.table, names_only=not args.full)
        if result:
            for column in result.value:
                if args.full:
                    _print_json(column)
                else:
                    print(column)
    elif args.command == "query":
        result = db.query(args.sql, args.param, as_raw_rows=True)
        if result:
            for row in result.value:
                _print_json(row)
    else:
        result = db.execute(args.sql, args.param)
        if result:
            print(result.value)
    return result


def build_parser():
    parser = argparse.ArgumentParser(prog="dbal", description="Query and inspect a PostgreSQL database")
    parser.add_argument("--verbose", "-v", action="store_true", help="Log executed statements")
    parser.add_argument("--log-dir", help="Also write rotating log files to this directory")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("tables", help="List tables in the current schema")

    columns = sub.add_parser("columns", help="List columns of a table")
    columns.add_argument("table")
    columns.add_argument("--full", action="store_true", help="Print full column metadata")

    for name, help_text in (("query", "Run a read statement"), ("exec", "Run a write statement")):
        cmd = sub.add_parser(name, help=help_text)
        cmd.add_argument("sql")
        cmd.add_argument("--param", "-p", action="append", default=[], help="Positional parameter (repeatable)")

    return parser


def main(argv=None):
    """CLI entry point for dbal."""
    args = build_parser().parse_args(argv)
    setup_logging(level=logging.DEBUG if args.verbose else logging.WARNING, log_dir=args.log_dir)

    db = from_env()
    if not db.is_connected():
        print(f"Connection failed: {db.last_error()}", file=sys.stderr)
        sys.exit(1)

    with db:
        result = run_command(db, args)

    if not result:
        print(f"Error: {result.error}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()

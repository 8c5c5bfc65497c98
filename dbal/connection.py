"""Connection facade over a single psycopg2 handle.

Every public method returns a `Result` (or a plain bool for the
`*_exists` helpers) instead of raising. Driver errors are caught here,
logged, and kept as `last_error()` until the next failure overwrites them.
"""

import logging
import os
from contextlib import contextmanager
from typing import Optional

import psycopg2
import psycopg2.extensions
from psycopg2.extras import NamedTupleCursor, RealDictCursor

from . import catalog
from .result import Result

logger = logging.getLogger(__name__)

NOT_CONNECTED = "not connected"
NO_ROWS = "no rows returned"

PARAMETER_ERRORS = (KeyError, IndexError, TypeError, ValueError)

# Plain tuple rows, regardless of the handle's own cursor_factory
TUPLE_CURSOR = psycopg2.extensions.cursor


def _error_message(exc: Exception) -> str:
    return str(exc).strip() or exc.__class__.__name__


class Database:
    """One database connection plus the last statement and error seen on it."""

    def __init__(
        self,
        user: Optional[str] = None,
        password: Optional[str] = None,
        database: Optional[str] = None,
        host: str = "localhost",
        port: Optional[int] = None,
        dsn: Optional[str] = None,
        connect: bool = True,
    ):
        self.user = user
        self.password = password
        self.database = database
        self.host = host
        self.port = port
        self.dsn = dsn
        self._handle = None
        self._last_query: Optional[str] = None
        self._last_error: Optional[str] = None

        if connect:
            self.connect()

    def __repr__(self) -> str:
        return (
            f"Database(user={self.user!r}, database={self.database!r}, "
            f"host={self.host!r}, connected={self.is_connected()})"
        )

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False

    # --- Connection ---

    def _connect_kwargs(self) -> dict:
        kwargs = {
            "host": self.host,
            "dbname": self.database,
            "user": self.user,
            "password": self.password,
            "port": self.port,
        }
        return {k: v for k, v in kwargs.items() if v is not None}

    def _target(self) -> str:
        if self.dsn:
            return "database via DSN"
        return f"{self.database or 'default database'} on {self.host}"

    def connect(self) -> Result:
        """Open the driver connection, closing any current one first.

        On success the value is this Database.
        """
        self.close()
        try:
            if self.dsn:
                handle = psycopg2.connect(self.dsn)
            else:
                handle = psycopg2.connect(**self._connect_kwargs())
        except psycopg2.Error as e:
            logger.error("Failed to connect to %s: %s", self._target(), e)
            return self._fail(_error_message(e), sqlstate=e.pgcode)

        handle.autocommit = True
        self._handle = handle
        logger.info("Connected to %s", self._target())
        return Result.success(self)

    def close(self) -> None:
        if self._handle is None:
            return
        try:
            self._handle.close()
        except psycopg2.Error as e:
            logger.warning("Error closing connection: %s", e)
        self._handle = None

    def set_handle(self, handle) -> None:
        """Use an already-open psycopg2 connection instead of connecting."""
        self._handle = handle

    def get_handle(self):
        return self._handle

    def is_connected(self) -> bool:
        return self._handle is not None and not self._handle.closed

    # --- Statements ---

    def _fail(self, error: str, query=None, sqlstate=None) -> Result:
        self._last_error = error
        return Result.failure(error, query=query, sqlstate=sqlstate)

    @contextmanager
    def _cursor(self, cursor_factory=None):
        """Cursor on the current handle; commits/rolls back non-autocommit handles."""
        handle = self._handle
        try:
            with handle.cursor(cursor_factory=cursor_factory) as cur:
                yield cur
            if not handle.autocommit:
                handle.commit()
        except psycopg2.Error:
            if not handle.autocommit:
                handle.rollback()
            raise

    def _run(self, query, parameters=None, fetch=None, cursor_factory=None, record=True) -> Result:
        if record:
            self._last_query = query
        if not self.is_connected():
            return self._fail(NOT_CONNECTED, query=query)

        logger.debug("Executing: %s", query)
        try:
            with self._cursor(cursor_factory) as cur:
                cur.execute(query, parameters or None)
                value = fetch(cur) if fetch else cur.rowcount
        except psycopg2.Error as e:
            logger.warning("Statement failed: %s -- %s", _error_message(e), query.strip())
            return self._fail(_error_message(e), query=query, sqlstate=e.pgcode)
        except PARAMETER_ERRORS as e:
            # raised client-side while psycopg2 formats parameters into the statement
            error = f"parameter mismatch: {e.__class__.__name__}: {_error_message(e)}"
            logger.warning("Statement failed: %s -- %s", error, query.strip())
            return self._fail(error, query=query)

        return Result.success(value, query=query)

    def execute(self, query: str, parameters=None) -> Result:
        """Run a write statement. The value is the affected row count."""
        return self._run(query, parameters)

    def query(self, query: str, parameters=None, as_raw_rows: bool = False) -> Result:
        """Run a read statement and fetch every row.

        Rows are named tuples by default, or dicts keyed by column name
        when `as_raw_rows` is set. A statement that returns no result set
        yields an empty list.
        """
        factory = RealDictCursor if as_raw_rows else NamedTupleCursor
        return self._run(
            query,
            parameters,
            fetch=lambda cur: cur.fetchall() if cur.description is not None else [],
            cursor_factory=factory,
        )

    def query_single(self, query: str, parameters=None, as_raw_rows: bool = False) -> Result:
        result = self.query(query, parameters, as_raw_rows=as_raw_rows)
        if not result:
            return result
        if not result.value:
            return self._fail(NO_ROWS, query=query)
        return Result.success(result.value[0], query=query)

    def last_insert_id(self, sequence: Optional[str] = None) -> Result:
        """Id generated by the most recent insert on this connection.

        Uses `lastval()`, or `currval(sequence)` when a sequence name is
        given. Does not replace `last_query()`.
        """
        if sequence:
            query, parameters = catalog.CURRENT_VALUE, (sequence,)
        else:
            query, parameters = catalog.LAST_VALUE, None
        return self._run(
            query, parameters, fetch=lambda cur: cur.fetchone()[0], cursor_factory=TUPLE_CURSOR, record=False
        )

    # --- Introspection ---

    def get_tables(self) -> Result:
        """Names of the base tables in the current schema, in catalog order."""
        return self._run(
            catalog.LIST_TABLES,
            fetch=lambda cur: [row[0] for row in cur.fetchall()],
            cursor_factory=TUPLE_CURSOR,
        )

    def get_columns(self, table: str, *, check_table_name: bool = True, names_only: bool = True) -> Result:
        """Columns of `table`, as names or as full metadata rows.

        `table` must appear in `get_tables()` unless the caller opts out
        with `check_table_name=False`.
        """
        if check_table_name:
            tables = self.get_tables()
            if not tables:
                return tables
            if table not in tables.value:
                logger.warning("Rejected column lookup for unknown table %r", table)
                return self._fail(f"unknown table: {table}")
        else:
            logger.warning("Column lookup for %r without table-name check", table)

        result = self.query(catalog.DESCRIBE_TABLE, (table,))
        if not result or not names_only:
            return result
        return Result.success([row.column_name for row in result.value], query=result.query)

    def table_exists(self, table: str) -> bool:
        return table in self.get_tables().unwrap_or([])

    def column_exists(self, column: str, table: str) -> bool:
        return column in self.get_columns(table).unwrap_or([])

    # --- Debugging ---

    def last_query(self) -> Optional[str]:
        return self._last_query

    def last_error(self) -> Optional[str]:
        return self._last_error


def open_database(user, password, database, host="localhost", port=None) -> Result:
    """Connect and return the Database as the result value, or the failure."""
    db = Database(user, password, database, host=host, port=port, connect=False)
    return db.connect()


def from_env(environ=None, connect: bool = True) -> Database:
    """Build a Database from DATABASE_URL, or from the DB_* variables."""
    env = os.environ if environ is None else environ
    database_url = env.get("DATABASE_URL")
    if database_url:
        return Database(dsn=database_url, connect=connect)
    return Database(
        user=env.get("DB_USER"),
        password=env.get("DB_PASSWORD"),
        database=env.get("DB_NAME"),
        host=env.get("DB_HOST", "localhost"),
        port=env.get("DB_PORT"),
        connect=connect,
    )

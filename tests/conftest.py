"""Shared fixtures for the dbal test suite."""

from collections import namedtuple
from unittest.mock import MagicMock

import pytest

from dbal.connection import Database

Column = namedtuple("Column", ["column_name", "data_type", "is_nullable", "column_default", "character_maximum_length"])


# ---------------------------------------------------------------------------
# Database fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def mock_cursor():
    """Mock psycopg2 cursor that tracks executed SQL."""
    cursor = MagicMock()
    cursor.description = [("id",)]
    cursor.fetchone.return_value = (1,)
    cursor.fetchall.return_value = []
    cursor.rowcount = 1
    return cursor


@pytest.fixture
def mock_handle(mock_cursor):
    """Mock psycopg2 connection in autocommit mode whose cursor() yields mock_cursor."""
    handle = MagicMock()
    handle.closed = 0
    handle.autocommit = True
    handle.cursor.return_value.__enter__ = MagicMock(return_value=mock_cursor)
    handle.cursor.return_value.__exit__ = MagicMock(return_value=False)
    return handle


@pytest.fixture
def db(mock_handle):
    """Database wired to the mock handle without connecting."""
    database = Database("app", "secret", "appdb", connect=False)
    database.set_handle(mock_handle)
    return database


def make_column(name, data_type="integer", **kwargs):
    defaults = {
        "column_name": name,
        "data_type": data_type,
        "is_nullable": "NO",
        "column_default": None,
        "character_maximum_length": None,
    }
    defaults.update(kwargs)
    return Column(**defaults)

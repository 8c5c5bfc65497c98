"""Thin PostgreSQL connection facade: queries, row mapping, schema introspection."""

from .connection import Database, from_env, open_database
from .result import Result

__all__ = ["Database", "Result", "from_env", "open_database"]

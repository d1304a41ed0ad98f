"""Dialect adapters."""

from .mysql import MySQLAdapter
from .postgresql import PostgreSQLAdapter
from .snowflake import SnowflakeAdapter
from .sqlite import SQLiteAdapter

__all__ = [
    "MySQLAdapter",
    "PostgreSQLAdapter",
    "SQLiteAdapter",
    "SnowflakeAdapter",
]

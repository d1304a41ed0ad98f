"""QueryGate - Safe read-only query layer for PostgreSQL, MySQL, SQLite and Snowflake.

QueryGate detects which engine a connection string targets, opens a single
connection with the right transport security, gates every query through a
read-only lexical validator and returns normalized, envelope-wrapped
results and schema introspection.

Modules:
    core: Base components, exceptions and utilities
    config: Configuration models
    logging: Structured logging framework
    database: Dialect detection, adapters, sessions

Example:
    >>> from querygate import DatabaseSession, configure_logging
    >>> configure_logging(level="INFO", format="text")
    >>>
    >>> async with DatabaseSession.from_connection_string("./app.sqlite") as session:
    ...     tables = await session.list_tables()
    ...     result = await session.execute_query("SELECT * FROM users LIMIT 5")
"""

from . import config, core, database, logging
from .database import DatabaseSession, create_adapter, detect_dialect, validate_connection_string
from .logging import configure_logging, get_logger

__version__ = "0.1.0"
__title__ = "QueryGate"
__description__ = "Safe read-only multi-dialect database query layer"
__license__ = "MIT"

__all__ = [
    "config",
    "core",
    "database",
    "logging",
    "DatabaseSession",
    "configure_logging",
    "create_adapter",
    "detect_dialect",
    "get_logger",
    "validate_connection_string",
    "__version__",
    "__title__",
    "__description__",
    "__license__",
]

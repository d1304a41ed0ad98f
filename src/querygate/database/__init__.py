"""
QueryGate database layer.

Detects the dialect of a connection string, builds the matching adapter,
gates queries through the lexical safety validator and wraps results in
uniform envelopes.

Supported dialects:
- PostgreSQL (asyncpg)
- MySQL (aiomysql)
- SQLite (aiosqlite)
- Snowflake (snowflake-connector-python)
"""

from .adapters import MySQLAdapter, PostgreSQLAdapter, SnowflakeAdapter, SQLiteAdapter
from .base import BaseDatabaseAdapter
from .detection import (
    detect_dialect,
    get_connection_string_examples,
    get_display_name,
    parse_connection_string,
    validate_connection_string,
)
from .factory import (
    DatabaseAdapterFactory,
    create_adapter,
    get_supported_dialects,
    is_dialect_supported,
)
from .formatting import (
    Envelope,
    ResultFormatter,
    format_error,
    format_exception,
    format_query_result,
    format_success,
    format_column_not_found,
    format_table_not_found,
    format_validation_error,
)
from .introspection import SchemaIntrospector
from .models import (
    ConnectionParameters,
    DialectKind,
    FieldDescriptor,
    InfoQuerySet,
    QueryResult,
    SchemaQuerySet,
    ValidationResult,
)
from .query_builder import QueryBuilder, ensure_identifier, quote_identifier, summarize_plan
from .registry import AdapterRegistry, default_registry
from .resolver import ConnectionConfigResolver, resolve_connection_config
from .safety import (
    QueryValidator,
    SubstringQueryValidator,
    TokenBoundaryQueryValidator,
    create_query_validator,
)
from .session import DatabaseSession
from .ssl import build_ssl_context, is_managed_cloud_host, resolve_ssl_policy

__all__ = [
    # Models
    "ConnectionParameters",
    "DialectKind",
    "FieldDescriptor",
    "InfoQuerySet",
    "QueryResult",
    "SchemaQuerySet",
    "ValidationResult",

    # Detection and factory
    "AdapterRegistry",
    "DatabaseAdapterFactory",
    "create_adapter",
    "default_registry",
    "detect_dialect",
    "get_connection_string_examples",
    "get_display_name",
    "get_supported_dialects",
    "is_dialect_supported",
    "parse_connection_string",
    "validate_connection_string",

    # Configuration
    "ConnectionConfigResolver",
    "build_ssl_context",
    "is_managed_cloud_host",
    "resolve_connection_config",
    "resolve_ssl_policy",

    # Adapters
    "BaseDatabaseAdapter",
    "MySQLAdapter",
    "PostgreSQLAdapter",
    "SQLiteAdapter",
    "SnowflakeAdapter",

    # Query safety and building
    "QueryBuilder",
    "QueryValidator",
    "SubstringQueryValidator",
    "TokenBoundaryQueryValidator",
    "create_query_validator",
    "ensure_identifier",
    "quote_identifier",
    "summarize_plan",

    # Results and sessions
    "DatabaseSession",
    "Envelope",
    "ResultFormatter",
    "SchemaIntrospector",
    "format_error",
    "format_exception",
    "format_query_result",
    "format_success",
    "format_column_not_found",
    "format_table_not_found",
    "format_validation_error",
]

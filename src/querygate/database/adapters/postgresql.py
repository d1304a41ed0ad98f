"""PostgreSQL adapter backed by asyncpg."""

import ssl
from typing import Any, Optional, Sequence, Tuple

import asyncpg

from ..base import BaseDatabaseAdapter
from ..models import DialectKind, FieldDescriptor, InfoQuerySet, QueryResult, SchemaQuerySet
from ..ssl import build_ssl_context
from ...core.exceptions import ConnectionFailureReason
from ...core.utils import StringUtils

DEFAULT_PORT = 5432

_INDEX_COLUMNS = """
    SELECT
        i.schemaname AS schema_name,
        i.tablename AS table_name,
        i.indexname AS index_name,
        i.indexdef AS definition,
        COALESCE(x.indisunique, false) AS is_unique
    FROM pg_indexes i
    LEFT JOIN pg_namespace n ON n.nspname = i.schemaname
    LEFT JOIN pg_class c ON c.relname = i.indexname AND c.relnamespace = n.oid
    LEFT JOIN pg_index x ON x.indexrelid = c.oid
    WHERE i.schemaname = 'public'"""

_FOREIGN_KEYS = """
    SELECT
        tc.constraint_name,
        tc.table_schema AS schema_name,
        tc.table_name,
        kcu.column_name,
        ccu.table_schema AS foreign_schema_name,
        ccu.table_name AS foreign_table_name,
        ccu.column_name AS foreign_column_name
    FROM information_schema.table_constraints tc
    JOIN information_schema.key_column_usage kcu
        ON tc.constraint_name = kcu.constraint_name
        AND tc.table_schema = kcu.table_schema
    JOIN information_schema.constraint_column_usage ccu
        ON ccu.constraint_name = tc.constraint_name
        AND ccu.constraint_schema = tc.table_schema
    WHERE tc.constraint_type = 'FOREIGN KEY'
        AND tc.table_schema = 'public'"""

_FUNCTIONS = """
    SELECT
        n.nspname AS schema_name,
        p.proname AS function_name,
        pg_get_function_result(p.oid) AS return_type,
        pg_get_function_arguments(p.oid) AS arguments,
        CASE p.prokind
            WHEN 'f' THEN 'FUNCTION'
            WHEN 'p' THEN 'PROCEDURE'
            WHEN 'a' THEN 'AGGREGATE'
            WHEN 'w' THEN 'WINDOW'
        END AS function_type
    FROM pg_proc p
    JOIN pg_namespace n ON n.oid = p.pronamespace"""

_TABLE_SIZES = """
    SELECT
        n.nspname AS schema_name,
        c.relname AS table_name,
        pg_total_relation_size(c.oid) AS size_bytes,
        pg_size_pretty(pg_total_relation_size(c.oid)) AS size,
        c.reltuples::bigint AS row_count
    FROM pg_class c
    JOIN pg_namespace n ON n.oid = c.relnamespace
    WHERE c.relkind IN ('r', 'p')"""

_COLUMN_STATISTICS = """
    SELECT
        schemaname AS schema_name,
        tablename AS table_name,
        attname AS column_name,
        null_frac,
        n_distinct,
        most_common_vals::text AS most_common_values,
        correlation
    FROM pg_stats"""

SCHEMA_QUERIES = SchemaQuerySet(
    dialect=DialectKind.POSTGRESQL,
    list_tables="""
        SELECT schemaname AS schema_name, tablename AS table_name, 'BASE TABLE' AS table_type
        FROM pg_tables
        WHERE schemaname = 'public'
        UNION ALL
        SELECT schemaname AS schema_name, viewname AS table_name, 'VIEW' AS table_type
        FROM pg_views
        WHERE schemaname = 'public'
        ORDER BY table_name
    """,
    list_schemas="""
        SELECT
            schema_name,
            schema_owner,
            CASE
                WHEN schema_name IN ('information_schema', 'pg_catalog', 'pg_toast') THEN 'system'
                ELSE 'user'
            END AS schema_type
        FROM information_schema.schemata
        ORDER BY schema_type, schema_name
    """,
    describe_table="""
        SELECT
            column_name,
            data_type,
            is_nullable,
            column_default,
            character_maximum_length,
            numeric_precision,
            numeric_scale
        FROM information_schema.columns
        WHERE table_name = $1 AND table_schema = 'public'
        ORDER BY ordinal_position
    """,
    list_indexes=_INDEX_COLUMNS + "\n    ORDER BY i.tablename, i.indexname",
    list_indexes_for_table=_INDEX_COLUMNS + "\n        AND i.tablename = $1\n    ORDER BY i.indexname",
    table_constraints="""
        SELECT
            tc.constraint_name,
            tc.constraint_type,
            kcu.column_name
        FROM information_schema.table_constraints tc
        LEFT JOIN information_schema.key_column_usage kcu
            ON kcu.constraint_name = tc.constraint_name
            AND kcu.table_schema = tc.table_schema
            AND kcu.table_name = tc.table_name
        WHERE tc.table_name = $1 AND tc.table_schema = 'public'
        ORDER BY tc.constraint_type, tc.constraint_name, kcu.ordinal_position
    """,
    foreign_keys=_FOREIGN_KEYS + "\n    ORDER BY tc.table_name, tc.constraint_name",
    foreign_keys_for_table=_FOREIGN_KEYS
    + "\n        AND tc.table_name = $1\n    ORDER BY tc.constraint_name",
    list_functions=_FUNCTIONS + "\n    WHERE n.nspname = 'public'\n    ORDER BY p.proname",
    list_functions_for_schema=_FUNCTIONS + "\n    WHERE n.nspname = $1\n    ORDER BY p.proname",
    table_sizes=_TABLE_SIZES
    + "\n        AND n.nspname = 'public'\n    ORDER BY size_bytes DESC, table_name",
    table_sizes_for_schema=_TABLE_SIZES
    + "\n        AND n.nspname = $1\n    ORDER BY size_bytes DESC, table_name",
    column_statistics=_COLUMN_STATISTICS
    + "\n    WHERE schemaname = 'public'\n    ORDER BY tablename, attname",
    column_statistics_for_schema=_COLUMN_STATISTICS
    + "\n    WHERE schemaname = $1\n    ORDER BY tablename, attname",
)

INFO_QUERIES = InfoQuerySet(
    dialect=DialectKind.POSTGRESQL,
    version="SELECT version() AS version",
    size="SELECT pg_size_pretty(pg_database_size(current_database())) AS database_size",
    settings="""
        SELECT name, setting, unit, short_desc
        FROM pg_settings
        WHERE name IN (
            'max_connections', 'shared_buffers', 'effective_cache_size',
            'work_mem', 'maintenance_work_mem', 'server_version', 'timezone'
        )
        ORDER BY name
    """,
    activity="""
        SELECT state, COUNT(*) AS connections
        FROM pg_stat_activity
        WHERE datname = current_database()
        GROUP BY state
        ORDER BY connections DESC
    """,
)


class PostgreSQLAdapter(BaseDatabaseAdapter):
    """PostgreSQL adapter using a single asyncpg connection.

    Placeholders are positional ``$1``, ``$2``. Result field types are the
    PostgreSQL type names reported by the prepared statement.
    """

    component_name = "PostgreSQLAdapter"
    version = "1.0.0"
    dialect = DialectKind.POSTGRESQL
    driver_errors = (asyncpg.PostgresError, asyncpg.InterfaceError)

    async def _open_connection(self) -> asyncpg.Connection:
        options: dict = {
            "host": self.params.host,
            "port": self.params.port or DEFAULT_PORT,
            "user": self.params.username,
            "password": self.params.password,
            "database": self.params.database,
            "timeout": self.config.connect_timeout,
        }

        ssl_context = build_ssl_context(self.config.ssl_policy)
        if ssl_context is not None:
            options["ssl"] = ssl_context

        connection = await asyncpg.connect(**options)

        server_version = connection.get_server_version()
        self._server_version = f"{server_version.major}.{server_version.minor}"
        return connection

    async def _close_connection(self, connection: asyncpg.Connection) -> None:
        await connection.close(timeout=self.config.connect_timeout)

    def _connection_is_open(self) -> bool:
        return not self._connection.is_closed()

    async def _execute(self, sql: str, params: Sequence[Any]) -> QueryResult:
        statement = await self._connection.prepare(sql)
        records = await statement.fetch(*params)

        fields = [
            FieldDescriptor(attribute.name, attribute.type.name)
            for attribute in statement.get_attributes()
        ]
        rows = [dict(record) for record in records]
        status = statement.get_statusmsg() or ""
        command = status.split(" ", 1)[0] or StringUtils.first_keyword(sql) or "SELECT"

        return QueryResult(rows=rows, row_count=len(rows), command=command, fields=fields)

    def _classify_driver_error(
        self, exc: Exception
    ) -> Optional[Tuple[ConnectionFailureReason, str]]:
        message = str(exc)
        lowered = message.lower()

        if isinstance(exc, asyncpg.InvalidAuthorizationSpecificationError):
            if "pg_hba.conf" in lowered and ("ssl off" in lowered or "no encryption" in lowered):
                return (
                    ConnectionFailureReason.SSL,
                    "Check if SSL is required for your database connection",
                )
            if "pg_hba.conf" in lowered:
                return (
                    ConnectionFailureReason.AUTH,
                    "No pg_hba.conf entry matches this client; check the server's host rules",
                )
            return ConnectionFailureReason.AUTH, "Check your PostgreSQL username and password"

        if isinstance(exc, asyncpg.InvalidCatalogNameError):
            return ConnectionFailureReason.UNREACHABLE, "The specified database does not exist"

        if isinstance(exc, ssl.SSLError) or "certificate" in lowered:
            return (
                ConnectionFailureReason.SSL,
                "SSL certificate verification failed; the server may use a self-signed certificate",
            )

        if isinstance(exc, OSError):
            host = self.params.host or "localhost"
            port = self.params.port or DEFAULT_PORT
            return (
                ConnectionFailureReason.UNREACHABLE,
                f"Check that PostgreSQL is running and accepting connections on {host}:{port}",
            )

        return None

    def get_schema_queries(self) -> SchemaQuerySet:
        return SCHEMA_QUERIES

    def get_info_queries(self) -> InfoQuerySet:
        return INFO_QUERIES

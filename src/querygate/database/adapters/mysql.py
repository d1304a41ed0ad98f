"""MySQL adapter backed by aiomysql."""

from typing import Any, Dict, Optional, Sequence, Tuple

import aiomysql
from pymysql.constants import FIELD_TYPE

from ..base import BaseDatabaseAdapter
from ..models import DialectKind, FieldDescriptor, InfoQuerySet, QueryResult, SchemaQuerySet
from ..ssl import build_ssl_context
from ...core.exceptions import ConnectionFailureReason
from ...core.utils import StringUtils

DEFAULT_PORT = 3306

_FIELD_TYPE_NAMES: Dict[int, str] = {
    getattr(FIELD_TYPE, name): name for name in dir(FIELD_TYPE) if name.isupper()
}

# MySQL client/server error numbers seen while connecting
_CONNECT_ERRORS: Dict[int, Tuple[ConnectionFailureReason, str]] = {
    1044: (ConnectionFailureReason.AUTH, "The MySQL user has no access to this database"),
    1045: (ConnectionFailureReason.AUTH, "Check your MySQL username and password"),
    1049: (ConnectionFailureReason.UNREACHABLE, "The specified database does not exist"),
    2003: (ConnectionFailureReason.UNREACHABLE, "MySQL server is not running or not accessible"),
    2005: (ConnectionFailureReason.UNREACHABLE, "The MySQL hostname could not be resolved"),
    2013: (ConnectionFailureReason.TIMEOUT, "Lost connection to MySQL server during handshake"),
    2026: (ConnectionFailureReason.SSL, "SSL connection error; check the server's SSL settings"),
    3159: (ConnectionFailureReason.SSL, "The server requires a secure transport; add ?ssl=true"),
}

_INDEXES = """
    SELECT
        table_schema AS schema_name,
        table_name AS table_name,
        index_name AS index_name,
        CONCAT(
            CASE WHEN non_unique = 0 THEN 'CREATE UNIQUE INDEX ' ELSE 'CREATE INDEX ' END,
            index_name, ' ON ', table_name,
            ' (', GROUP_CONCAT(column_name ORDER BY seq_in_index SEPARATOR ', '), ')'
        ) AS definition,
        non_unique = 0 AS is_unique
    FROM information_schema.statistics
    WHERE table_schema = DATABASE()"""

_INDEX_GROUPING = "\n    GROUP BY table_schema, table_name, index_name, non_unique"

_FUNCTIONS = """
    SELECT
        routine_schema AS schema_name,
        routine_name AS function_name,
        data_type AS return_type,
        NULL AS arguments,
        routine_type AS function_type
    FROM information_schema.routines"""

_TABLE_SIZES = """
    SELECT
        table_schema AS schema_name,
        table_name AS table_name,
        data_length + index_length AS size_bytes,
        table_rows AS row_count
    FROM information_schema.tables
    WHERE table_type = 'BASE TABLE'"""

SCHEMA_QUERIES = SchemaQuerySet(
    dialect=DialectKind.MYSQL,
    list_tables="""
        SELECT
            table_schema AS schema_name,
            table_name AS table_name,
            table_type AS table_type
        FROM information_schema.tables
        WHERE table_schema = DATABASE()
        ORDER BY table_name
    """,
    list_schemas="""
        SELECT
            schema_name AS schema_name,
            NULL AS schema_owner,
            CASE
                WHEN schema_name IN ('information_schema', 'mysql', 'performance_schema', 'sys')
                THEN 'system'
                ELSE 'user'
            END AS schema_type
        FROM information_schema.schemata
        ORDER BY schema_type, schema_name
    """,
    describe_table="""
        SELECT
            column_name AS column_name,
            data_type AS data_type,
            is_nullable AS is_nullable,
            column_default AS column_default,
            character_maximum_length AS character_maximum_length,
            numeric_precision AS numeric_precision,
            numeric_scale AS numeric_scale
        FROM information_schema.columns
        WHERE table_name = %s AND table_schema = DATABASE()
        ORDER BY ordinal_position
    """,
    list_indexes=_INDEXES + _INDEX_GROUPING + "\n    ORDER BY table_name, index_name",
    list_indexes_for_table=_INDEXES
    + "\n        AND table_name = %s"
    + _INDEX_GROUPING
    + "\n    ORDER BY index_name",
    table_constraints="""
        SELECT
            tc.constraint_name AS constraint_name,
            tc.constraint_type AS constraint_type,
            kcu.column_name AS column_name
        FROM information_schema.table_constraints tc
        LEFT JOIN information_schema.key_column_usage kcu
            ON kcu.constraint_schema = tc.constraint_schema
            AND kcu.constraint_name = tc.constraint_name
            AND kcu.table_name = tc.table_name
        WHERE tc.table_schema = DATABASE() AND tc.table_name = %s
        ORDER BY tc.constraint_type, tc.constraint_name, kcu.ordinal_position
    """,
    foreign_keys="""
        SELECT
            constraint_name AS constraint_name,
            table_schema AS schema_name,
            table_name AS table_name,
            column_name AS column_name,
            referenced_table_schema AS foreign_schema_name,
            referenced_table_name AS foreign_table_name,
            referenced_column_name AS foreign_column_name
        FROM information_schema.key_column_usage
        WHERE table_schema = DATABASE() AND referenced_table_name IS NOT NULL
        ORDER BY table_name, constraint_name, ordinal_position
    """,
    foreign_keys_for_table="""
        SELECT
            constraint_name AS constraint_name,
            table_schema AS schema_name,
            table_name AS table_name,
            column_name AS column_name,
            referenced_table_schema AS foreign_schema_name,
            referenced_table_name AS foreign_table_name,
            referenced_column_name AS foreign_column_name
        FROM information_schema.key_column_usage
        WHERE table_schema = DATABASE()
            AND referenced_table_name IS NOT NULL
            AND table_name = %s
        ORDER BY constraint_name, ordinal_position
    """,
    list_functions=_FUNCTIONS + "\n    WHERE routine_schema = DATABASE()\n    ORDER BY routine_name",
    list_functions_for_schema=_FUNCTIONS + "\n    WHERE routine_schema = %s\n    ORDER BY routine_name",
    table_sizes=_TABLE_SIZES
    + "\n        AND table_schema = DATABASE()\n    ORDER BY size_bytes DESC, table_name",
    table_sizes_for_schema=_TABLE_SIZES
    + "\n        AND table_schema = %s\n    ORDER BY size_bytes DESC, table_name",
)

INFO_QUERIES = InfoQuerySet(
    dialect=DialectKind.MYSQL,
    version="SELECT VERSION() AS version",
    size="""
        SELECT ROUND(SUM(data_length + index_length) / 1024 / 1024, 2) AS database_size_mb
        FROM information_schema.tables
        WHERE table_schema = DATABASE()
    """,
    settings="""
        SHOW VARIABLES WHERE Variable_name IN (
            'max_connections', 'innodb_buffer_pool_size', 'query_cache_size',
            'version', 'character_set_server', 'time_zone'
        )
    """,
    activity="""
        SELECT COALESCE(state, 'idle') AS state, COUNT(*) AS connections
        FROM information_schema.processlist
        GROUP BY state
        ORDER BY connections DESC
    """,
)


class MySQLAdapter(BaseDatabaseAdapter):
    """MySQL adapter using a single aiomysql connection.

    The connection runs in autocommit mode with ``utf8mb4``. Placeholders
    are ``%s``.
    """

    component_name = "MySQLAdapter"
    version = "1.0.0"
    dialect = DialectKind.MYSQL
    driver_errors = (aiomysql.Error,)

    async def _open_connection(self) -> aiomysql.Connection:
        connection = await aiomysql.connect(
            host=self.params.host,
            port=self.params.port or DEFAULT_PORT,
            user=self.params.username,
            password=self.params.password or "",
            db=self.params.database,
            ssl=build_ssl_context(self.config.ssl_policy),
            connect_timeout=self.config.connect_timeout,
            autocommit=True,
            charset="utf8mb4",
            cursorclass=aiomysql.DictCursor,
        )
        self._server_version = connection.get_server_info()
        return connection

    async def _close_connection(self, connection: aiomysql.Connection) -> None:
        await connection.ensure_closed()

    def _connection_is_open(self) -> bool:
        return not self._connection.closed

    async def _execute(self, sql: str, params: Sequence[Any]) -> QueryResult:
        cursor = await self._connection.cursor()
        try:
            await cursor.execute(sql, tuple(params) if params else None)
            description = cursor.description or ()
            records = await cursor.fetchall() if description else []
        finally:
            await cursor.close()

        fields = [
            FieldDescriptor(column[0], _FIELD_TYPE_NAMES.get(column[1]))
            for column in description
        ]
        rows = [dict(record) for record in records]

        return QueryResult(
            rows=rows,
            row_count=len(rows),
            command=StringUtils.first_keyword(sql) or "SELECT",
            fields=fields,
        )

    def _classify_driver_error(
        self, exc: Exception
    ) -> Optional[Tuple[ConnectionFailureReason, str]]:
        if isinstance(exc, aiomysql.Error) and exc.args:
            error_code = exc.args[0]
            if error_code in _CONNECT_ERRORS:
                return _CONNECT_ERRORS[error_code]
        return None

    def get_schema_queries(self) -> SchemaQuerySet:
        return SCHEMA_QUERIES

    def get_info_queries(self) -> InfoQuerySet:
        return INFO_QUERIES

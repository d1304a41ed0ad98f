"""Snowflake adapter backed by snowflake-connector-python.

The connector is synchronous, so connect, execute and close run in a
worker thread via ``asyncio.to_thread``.
"""

import asyncio
from typing import Any, Dict, List, Optional, Sequence, Tuple

import snowflake.connector
from snowflake.connector import DictCursor
from snowflake.connector.constants import FIELD_ID_TO_NAME
from snowflake.connector.errors import Error as SnowflakeError

from ..base import BaseDatabaseAdapter
from ..models import DialectKind, FieldDescriptor, InfoQuerySet, QueryResult, SchemaQuerySet
from ...core.exceptions import ConnectionFailureReason
from ...core.utils import StringUtils

_AUTH_ERRNOS = {390100, 390144, 390191, 251005, 251006}
_UNREACHABLE_ERRNOS = {250001, 250003, 390201}

_FOREIGN_KEYS = """
    SELECT
        rc.CONSTRAINT_NAME AS constraint_name,
        tc.TABLE_SCHEMA AS schema_name,
        tc.TABLE_NAME AS table_name,
        NULL AS column_name,
        uc.TABLE_SCHEMA AS foreign_schema_name,
        uc.TABLE_NAME AS foreign_table_name,
        NULL AS foreign_column_name
    FROM INFORMATION_SCHEMA.REFERENTIAL_CONSTRAINTS rc
    JOIN INFORMATION_SCHEMA.TABLE_CONSTRAINTS tc
        ON tc.CONSTRAINT_NAME = rc.CONSTRAINT_NAME
        AND tc.CONSTRAINT_SCHEMA = rc.CONSTRAINT_SCHEMA
    JOIN INFORMATION_SCHEMA.TABLE_CONSTRAINTS uc
        ON uc.CONSTRAINT_NAME = rc.UNIQUE_CONSTRAINT_NAME
        AND uc.CONSTRAINT_SCHEMA = rc.UNIQUE_CONSTRAINT_SCHEMA
    WHERE tc.TABLE_SCHEMA = CURRENT_SCHEMA()"""

_CLUSTERING_KEYS = """
    SELECT
        TABLE_SCHEMA AS schema_name,
        TABLE_NAME AS table_name,
        'CLUSTERING KEY' AS index_name,
        CLUSTERING_KEY AS definition,
        FALSE AS is_unique
    FROM INFORMATION_SCHEMA.TABLES
    WHERE TABLE_SCHEMA = CURRENT_SCHEMA()
        AND TABLE_TYPE = 'BASE TABLE'
        AND CLUSTERING_KEY IS NOT NULL"""

_FUNCTIONS = """
    SELECT
        FUNCTION_SCHEMA AS schema_name,
        FUNCTION_NAME AS function_name,
        DATA_TYPE AS return_type,
        ARGUMENT_SIGNATURE AS arguments,
        'FUNCTION' AS function_type
    FROM INFORMATION_SCHEMA.FUNCTIONS"""

_TABLE_SIZES = """
    SELECT
        TABLE_SCHEMA AS schema_name,
        TABLE_NAME AS table_name,
        BYTES AS size_bytes,
        ROW_COUNT AS row_count
    FROM INFORMATION_SCHEMA.TABLES
    WHERE TABLE_TYPE = 'BASE TABLE'"""

SCHEMA_QUERIES = SchemaQuerySet(
    dialect=DialectKind.SNOWFLAKE,
    list_tables="""
        SELECT
            TABLE_SCHEMA AS schema_name,
            TABLE_NAME AS table_name,
            TABLE_TYPE AS table_type
        FROM INFORMATION_SCHEMA.TABLES
        WHERE TABLE_SCHEMA = CURRENT_SCHEMA()
        ORDER BY TABLE_NAME
    """,
    list_schemas="""
        SELECT
            SCHEMA_NAME AS schema_name,
            SCHEMA_OWNER AS schema_owner,
            CASE WHEN SCHEMA_NAME = 'INFORMATION_SCHEMA' THEN 'system' ELSE 'user' END AS schema_type
        FROM INFORMATION_SCHEMA.SCHEMATA
        ORDER BY schema_type, SCHEMA_NAME
    """,
    describe_table="""
        SELECT
            COLUMN_NAME AS column_name,
            DATA_TYPE AS data_type,
            IS_NULLABLE AS is_nullable,
            COLUMN_DEFAULT AS column_default,
            CHARACTER_MAXIMUM_LENGTH AS character_maximum_length,
            NUMERIC_PRECISION AS numeric_precision,
            NUMERIC_SCALE AS numeric_scale
        FROM INFORMATION_SCHEMA.COLUMNS
        WHERE TABLE_NAME = UPPER(%s) AND TABLE_SCHEMA = CURRENT_SCHEMA()
        ORDER BY ORDINAL_POSITION
    """,
    list_indexes=_CLUSTERING_KEYS + "\n    ORDER BY TABLE_NAME",
    list_indexes_for_table=_CLUSTERING_KEYS + "\n        AND TABLE_NAME = UPPER(%s)",
    table_constraints="""
        SELECT
            CONSTRAINT_NAME AS constraint_name,
            CONSTRAINT_TYPE AS constraint_type,
            NULL AS column_name
        FROM INFORMATION_SCHEMA.TABLE_CONSTRAINTS
        WHERE TABLE_NAME = UPPER(%s) AND TABLE_SCHEMA = CURRENT_SCHEMA()
        ORDER BY CONSTRAINT_TYPE, CONSTRAINT_NAME
    """,
    foreign_keys=_FOREIGN_KEYS + "\n    ORDER BY tc.TABLE_NAME, rc.CONSTRAINT_NAME",
    foreign_keys_for_table=_FOREIGN_KEYS
    + "\n        AND tc.TABLE_NAME = UPPER(%s)\n    ORDER BY rc.CONSTRAINT_NAME",
    list_functions=_FUNCTIONS
    + "\n    WHERE FUNCTION_SCHEMA = CURRENT_SCHEMA()\n    ORDER BY FUNCTION_NAME",
    list_functions_for_schema=_FUNCTIONS
    + "\n    WHERE FUNCTION_SCHEMA = UPPER(%s)\n    ORDER BY FUNCTION_NAME",
    table_sizes=_TABLE_SIZES
    + "\n        AND TABLE_SCHEMA = CURRENT_SCHEMA()\n    ORDER BY size_bytes DESC, table_name",
    table_sizes_for_schema=_TABLE_SIZES
    + "\n        AND TABLE_SCHEMA = UPPER(%s)\n    ORDER BY size_bytes DESC, table_name",
)

INFO_QUERIES = InfoQuerySet(
    dialect=DialectKind.SNOWFLAKE,
    version="SELECT CURRENT_VERSION() AS version",
    size="""
        SELECT SUM(BYTES) AS database_size_bytes
        FROM INFORMATION_SCHEMA.TABLES
        WHERE TABLE_SCHEMA = CURRENT_SCHEMA()
    """,
    settings="SHOW PARAMETERS LIKE '%WAREHOUSE%'",
    activity="""
        SELECT EXECUTION_STATUS AS state, COUNT(*) AS queries
        FROM TABLE(INFORMATION_SCHEMA.QUERY_HISTORY(
            END_TIME_RANGE_START => DATEADD('hour', -1, CURRENT_TIMESTAMP())
        ))
        GROUP BY EXECUTION_STATUS
        ORDER BY queries DESC
    """,
)


class SnowflakeAdapter(BaseDatabaseAdapter):
    """Snowflake adapter using a single connector session.

    Placeholders are ``%s``. Catalog identifiers are stored upper-case, so
    table and schema parameters are upper-cased inside the templates.
    Staging statements (PUT, GET, COPY INTO) are always denied.
    """

    component_name = "SnowflakeAdapter"
    version = "1.0.0"
    dialect = DialectKind.SNOWFLAKE
    driver_errors = (SnowflakeError,)
    restricted_statements = ("put", "get", "copy into")

    def _connect_options(self) -> Dict[str, Any]:
        policy = self.config.ssl_policy
        options = {
            "account": self.params.account,
            "user": self.params.username,
            "password": self.params.password,
            "database": self.params.database,
            "schema": self.params.schema,
            "warehouse": self.params.warehouse,
            "role": self.params.role,
            "login_timeout": max(1, int(self.config.connect_timeout)),
            "application": "querygate",
            "insecure_mode": policy.enabled and not policy.reject_unauthorized,
        }
        return {key: value for key, value in options.items() if value is not None}

    async def _open_connection(self) -> Any:
        return await asyncio.to_thread(snowflake.connector.connect, **self._connect_options())

    async def _close_connection(self, connection: Any) -> None:
        await asyncio.to_thread(connection.close)

    def _connection_is_open(self) -> bool:
        return not self._connection.is_closed()

    def _run(self, sql: str, params: Sequence[Any]) -> Tuple[List[Dict[str, Any]], Sequence[Any]]:
        cursor = self._connection.cursor(DictCursor)
        try:
            cursor.execute(sql, tuple(params) if params else None)
            description = cursor.description or ()
            records = cursor.fetchall() if description else []
        finally:
            cursor.close()
        return [dict(record) for record in records], description

    async def _execute(self, sql: str, params: Sequence[Any]) -> QueryResult:
        rows, description = await asyncio.to_thread(self._run, sql, params)

        fields = [
            FieldDescriptor(column[0], FIELD_ID_TO_NAME.get(column[1]))
            for column in description
        ]
        return QueryResult(
            rows=rows,
            row_count=len(rows),
            command=StringUtils.first_keyword(sql) or "SELECT",
            fields=fields,
        )

    def _classify_driver_error(
        self, exc: Exception
    ) -> Optional[Tuple[ConnectionFailureReason, str]]:
        if not isinstance(exc, SnowflakeError):
            return None

        errno = getattr(exc, "errno", None)
        message = str(exc).lower()

        if errno in _AUTH_ERRNOS or "incorrect username or password" in message:
            return ConnectionFailureReason.AUTH, "Check your Snowflake username and password"
        if "certificate" in message or "ocsp" in message:
            return (
                ConnectionFailureReason.SSL,
                "Snowflake certificate validation failed; check proxy or OCSP settings",
            )
        if "timeout" in message or "timed out" in message:
            return ConnectionFailureReason.TIMEOUT, "Snowflake login timed out; check network access"
        if errno in _UNREACHABLE_ERRNOS:
            return (
                ConnectionFailureReason.UNREACHABLE,
                "Could not reach Snowflake; check the account identifier and network access",
            )
        return None

    def get_schema_queries(self) -> SchemaQuerySet:
        return SCHEMA_QUERIES

    def get_info_queries(self) -> InfoQuerySet:
        return INFO_QUERIES

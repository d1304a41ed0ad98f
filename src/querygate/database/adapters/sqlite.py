"""SQLite adapter backed by aiosqlite.

File databases are opened read-only through a ``file:`` URI so that a
statement slipping past query validation still cannot write.
"""

import sqlite3
from pathlib import Path
from typing import Any, Optional, Sequence, Tuple

import aiosqlite

from ..base import BaseDatabaseAdapter
from ..detection import MEMORY_DATABASE
from ..models import DialectKind, FieldDescriptor, InfoQuerySet, QueryResult, SchemaQuerySet
from ...core.exceptions import ConnectionFailureReason
from ...core.utils import StringUtils

_INDEXES = """
    SELECT
        'main' AS schema_name,
        m.name AS table_name,
        il.name AS index_name,
        i.sql AS definition,
        il."unique" AS is_unique
    FROM sqlite_master m
    JOIN pragma_index_list(m.name) il
    LEFT JOIN sqlite_master i ON i.type = 'index' AND i.name = il.name
    WHERE m.type = 'table' AND m.name NOT LIKE 'sqlite_%'"""

SCHEMA_QUERIES = SchemaQuerySet(
    dialect=DialectKind.SQLITE,
    list_tables="""
        SELECT
            'main' AS schema_name,
            name AS table_name,
            CASE type WHEN 'view' THEN 'VIEW' ELSE 'BASE TABLE' END AS table_type
        FROM sqlite_master
        WHERE type IN ('table', 'view') AND name NOT LIKE 'sqlite_%'
        ORDER BY name
    """,
    list_schemas="""
        SELECT
            name AS schema_name,
            NULL AS schema_owner,
            CASE WHEN name = 'temp' THEN 'system' ELSE 'user' END AS schema_type
        FROM pragma_database_list
        ORDER BY seq
    """,
    describe_table="""
        SELECT
            name AS column_name,
            type AS data_type,
            CASE WHEN "notnull" = 1 THEN 'NO' ELSE 'YES' END AS is_nullable,
            dflt_value AS column_default,
            NULL AS character_maximum_length,
            NULL AS numeric_precision,
            NULL AS numeric_scale
        FROM pragma_table_info(?)
        ORDER BY cid
    """,
    list_indexes=_INDEXES + "\n    ORDER BY m.name, il.name",
    list_indexes_for_table=_INDEXES + "\n        AND m.name = ?\n    ORDER BY il.name",
)

INFO_QUERIES = InfoQuerySet(
    dialect=DialectKind.SQLITE,
    version="SELECT sqlite_version() AS version",
    size="""
        SELECT page_count * page_size AS database_size_bytes
        FROM pragma_page_count(), pragma_page_size()
    """,
    settings="SELECT compile_options AS compile_option FROM pragma_compile_options",
)


class SQLiteAdapter(BaseDatabaseAdapter):
    """SQLite adapter using a single aiosqlite connection.

    Placeholders are ``?``. SQLite has no foreign key or function catalog
    templates and no activity statistics.
    """

    component_name = "SQLiteAdapter"
    version = "1.0.0"
    dialect = DialectKind.SQLITE
    driver_errors = (sqlite3.Error,)

    @property
    def database_path(self) -> str:
        return self.params.path or ""

    async def _open_connection(self) -> aiosqlite.Connection:
        timeout = self.config.connect_timeout

        if self.database_path == MEMORY_DATABASE:
            connection = await aiosqlite.connect(MEMORY_DATABASE, timeout=timeout)
        else:
            path = Path(self.database_path).expanduser().resolve()
            if not path.is_file():
                raise self._connection_error(
                    ConnectionFailureReason.UNREACHABLE,
                    f"SQLite database file not found: {path}",
                    "SQLite database file not found - check the file path",
                )
            connection = await aiosqlite.connect(f"{path.as_uri()}?mode=ro", uri=True, timeout=timeout)

        self._server_version = sqlite3.sqlite_version
        return connection

    async def _close_connection(self, connection: aiosqlite.Connection) -> None:
        await connection.close()

    def _connection_is_open(self) -> bool:
        # Local handles only close through close()
        return True

    async def _execute(self, sql: str, params: Sequence[Any]) -> QueryResult:
        cursor = await self._connection.execute(sql, tuple(params))
        try:
            records = await cursor.fetchall()
            description = cursor.description or ()
        finally:
            await cursor.close()

        columns = [column[0] for column in description]
        rows = [dict(zip(columns, record)) for record in records]

        return QueryResult(
            rows=rows,
            row_count=len(rows),
            command=StringUtils.first_keyword(sql) or "SELECT",
            fields=[FieldDescriptor(column) for column in columns],
        )

    def _classify_driver_error(
        self, exc: Exception
    ) -> Optional[Tuple[ConnectionFailureReason, str]]:
        if isinstance(exc, sqlite3.OperationalError):
            message = str(exc).lower()
            if "unable to open" in message or "permission" in message:
                return (
                    ConnectionFailureReason.UNREACHABLE,
                    "SQLite database file could not be opened - check file permissions",
                )
        return None

    def get_schema_queries(self) -> SchemaQuerySet:
        return SCHEMA_QUERIES

    def get_info_queries(self) -> InfoQuerySet:
        return INFO_QUERIES

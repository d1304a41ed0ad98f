"""Schema introspection across dialects.

Runs each adapter's catalog templates and normalizes the rows to one shape:
lower-case keys, ``table_type`` as ``BASE TABLE`` or ``VIEW``,
``is_nullable`` as ``YES`` or ``NO`` and ``is_unique`` as a bool.
"""

from typing import Any, Dict, List, Optional

from .base import BaseDatabaseAdapter
from .models import DialectKind
from .query_builder import QueryBuilder, ensure_identifier
from ..core.exceptions import ErrorCodes, InvalidIdentifierError, ObjectNotFoundError
from ..logging import get_logger

NOT_SUPPORTED_MESSAGE = "not supported for this dialect"

_TRUE_VALUES = {"1", "t", "true", "y", "yes"}

Row = Dict[str, Any]


def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in _TRUE_VALUES
    return bool(value)


def normalize_keys(row: Row) -> Row:
    return {str(key).lower(): value for key, value in row.items()}


def normalize_table(row: Row) -> Row:
    row = normalize_keys(row)
    table_type = str(row.get("table_type") or "").upper()
    row["table_type"] = "VIEW" if "VIEW" in table_type else "BASE TABLE"
    return row


def normalize_schema(row: Row) -> Row:
    row = normalize_keys(row)
    row["schema_type"] = "system" if str(row.get("schema_type")).lower() == "system" else "user"
    return row


def normalize_column(row: Row) -> Row:
    row = normalize_keys(row)
    row["is_nullable"] = "YES" if _as_bool(row.get("is_nullable")) else "NO"
    return row


def normalize_index(row: Row) -> Row:
    row = normalize_keys(row)
    row["is_unique"] = _as_bool(row.get("is_unique"))
    return row


class SchemaIntrospector:
    """Dialect-agnostic catalog access for one adapter.

    Every table and schema name passes the identifier allow-list before it
    reaches the database.
    """

    def __init__(self, adapter: BaseDatabaseAdapter) -> None:
        self.adapter = adapter
        self.dialect: DialectKind = adapter.get_type()
        self.queries = adapter.get_schema_queries()
        self.query_builder = QueryBuilder(self.dialect)
        self.logger = get_logger(f"database.introspection.{self.dialect.value}")

    async def _rows(self, sql: str, params: Optional[List[Any]] = None) -> List[Row]:
        result = await self.adapter.query(sql, params)
        return result.rows

    async def list_tables(self) -> Dict[str, List[Row]]:
        rows = await self._rows(self.queries.list_tables)
        tables = [normalize_table(row) for row in rows]
        self.logger.debug("Tables listed", count=len(tables))
        return {"tables": tables}

    async def list_schemas(self) -> Dict[str, List[Row]]:
        rows = await self._rows(self.queries.list_schemas)
        return {"schemas": [normalize_schema(row) for row in rows]}

    async def table_exists(self, table_name: str) -> bool:
        ensure_identifier(table_name, "table")
        tables = (await self.list_tables())["tables"]

        if self.dialect is DialectKind.SNOWFLAKE:
            wanted = table_name.lower()
            return any(str(t.get("table_name", "")).lower() == wanted for t in tables)
        return any(t.get("table_name") == table_name for t in tables)

    async def describe_table(self, table_name: str) -> Dict[str, Any]:
        """Describe the columns (and constraints, where available) of a table.

        Raises:
            InvalidIdentifierError: If the name fails the allow-list
            ObjectNotFoundError: If the table does not exist
        """
        if not await self.table_exists(table_name):
            raise ObjectNotFoundError(
                f"Table '{table_name}' not found",
                code=ErrorCodes.OBJECT_NOT_FOUND,
                context={"table": table_name, "dialect": self.dialect.value},
            )

        columns = await self._rows(self.queries.describe_table, [table_name])
        description: Dict[str, Any] = {
            "table_name": table_name,
            "columns": [normalize_column(row) for row in columns],
        }

        if self.queries.has("table_constraints"):
            constraints = await self._rows(self.queries.table_constraints, [table_name])
            description["constraints"] = [normalize_keys(row) for row in constraints]

        self.logger.debug(
            "Table described",
            table=table_name,
            columns=len(description["columns"]),
        )
        return description

    async def find_column(self, table_name: str, column_name: str) -> Optional[Row]:
        """Return the described column matching ``column_name`` case-insensitively.

        Raises:
            ObjectNotFoundError: If the table does not exist
        """
        wanted = column_name.lower()
        description = await self.describe_table(table_name)
        for column in description["columns"]:
            if str(column.get("column_name", "")).lower() == wanted:
                return column
        return None

    async def table_stats(self, schema: Optional[str] = None) -> Dict[str, Any]:
        """Per-table sizes and row counts, plus planner column statistics.

        ``schema`` defaults to the connection's working schema. Row counts
        come from catalog estimates where the dialect keeps them; SQLite
        tables are counted directly.
        """
        if schema is not None:
            ensure_identifier(schema, "schema")

        stats: Dict[str, Any] = {
            "schema": schema,
            "table_sizes": await self._table_sizes(schema),
            "column_statistics": [],
        }

        if self.queries.has("column_statistics"):
            if schema is not None:
                sql = self.queries.require("column_statistics_for_schema")
                rows = await self._rows(sql, [schema])
            else:
                rows = await self._rows(self.queries.column_statistics)
            stats["column_statistics"] = [normalize_keys(row) for row in rows]

        self.logger.debug("Table statistics collected", tables=len(stats["table_sizes"]))
        return stats

    async def _table_sizes(self, schema: Optional[str]) -> List[Row]:
        if self.queries.has("table_sizes"):
            if schema is not None:
                rows = await self._rows(self.queries.require("table_sizes_for_schema"), [schema])
            else:
                rows = await self._rows(self.queries.table_sizes)
            return [normalize_keys(row) for row in rows]

        sizes: List[Row] = []
        for table in (await self.list_tables())["tables"]:
            if table["table_type"] != "BASE TABLE":
                continue
            if schema is not None and table.get("schema_name") != schema:
                continue
            try:
                sql = self.query_builder.row_count(table["table_name"])
            except InvalidIdentifierError:
                self.logger.warning(
                    "Row count skipped for table name outside the allow-list",
                    table=table["table_name"],
                )
                continue
            result = await self.adapter.query(sql)
            sizes.append(
                {
                    "schema_name": table.get("schema_name"),
                    "table_name": table["table_name"],
                    "size_bytes": None,
                    "row_count": result.rows[0]["row_count"] if result.rows else None,
                }
            )
        return sizes

    async def list_indexes(self, table_name: Optional[str] = None) -> Dict[str, List[Row]]:
        if table_name is not None:
            ensure_identifier(table_name, "table")
            sql = self.queries.require("list_indexes_for_table")
            rows = await self._rows(sql, [table_name])
        else:
            rows = await self._rows(self.queries.list_indexes)
        return {"indexes": [normalize_index(row) for row in rows]}

    async def get_foreign_keys(self, table_name: Optional[str] = None) -> Dict[str, Any]:
        if table_name is not None:
            ensure_identifier(table_name, "table")

        if not self.queries.has("foreign_keys"):
            return {"foreign_keys": [], "message": NOT_SUPPORTED_MESSAGE}

        if table_name is not None:
            rows = await self._rows(self.queries.require("foreign_keys_for_table"), [table_name])
        else:
            rows = await self._rows(self.queries.foreign_keys)
        return {"foreign_keys": [normalize_keys(row) for row in rows]}

    async def list_functions(self, schema: Optional[str] = None) -> Dict[str, Any]:
        if schema is not None:
            ensure_identifier(schema, "schema")

        if not self.queries.has("list_functions"):
            return {"functions": [], "message": NOT_SUPPORTED_MESSAGE}

        if schema is not None:
            rows = await self._rows(self.queries.require("list_functions_for_schema"), [schema])
        else:
            rows = await self._rows(self.queries.list_functions)
        return {"functions": [normalize_keys(row) for row in rows]}

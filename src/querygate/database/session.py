"""Caller-owned database session.

A DatabaseSession holds one adapter (and so one connection) and exposes the
named operations consumed by the tool protocol layer. Each operation
returns an Envelope; QueryGate errors become error envelopes after being
logged, anything else propagates.

Example:
    >>> async with DatabaseSession.from_connection_string("./local.sqlite") as session:
    ...     envelope = await session.execute_query("SELECT name FROM users")
    ...     print(envelope.to_json())
"""

from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence

from .base import BaseDatabaseAdapter
from .factory import create_adapter
from .formatting import DEFAULT_MAX_ROWS, Envelope, ResultFormatter
from .introspection import SchemaIntrospector, normalize_keys
from .query_builder import DEFAULT_MOST_COMMON_LIMIT, QueryBuilder, summarize_plan
from .safety import QueryValidator, create_query_validator
from ..config.models import Settings
from ..core.exceptions import QueryGateException, UnsafeQueryError, ValidationError
from ..core.utils import StringUtils
from ..logging import get_logger


class DatabaseSession:
    """One adapter, its validator and its result formatter."""

    def __init__(
        self,
        adapter: BaseDatabaseAdapter,
        *,
        validator: Optional[QueryValidator] = None,
        max_rows: int = DEFAULT_MAX_ROWS,
    ) -> None:
        self.adapter = adapter
        self.dialect = adapter.get_type()
        self.validator = validator or create_query_validator(
            "substring", adapter.restricted_statements
        )
        self.formatter = ResultFormatter(self.dialect, max_rows)
        self.introspector = SchemaIntrospector(adapter)
        self.query_builder = QueryBuilder(self.dialect)
        self.logger = get_logger(f"session.{self.dialect.value}.{adapter.config.id}")

    @classmethod
    def from_connection_string(
        cls,
        connection_string: Optional[str] = None,
        *,
        settings: Optional[Settings] = None,
        connection_id: str = "default",
    ) -> "DatabaseSession":
        """Build a session from a connection string (or DATABASE_URL).

        The validation mode and row cap come from ``settings``.
        """
        settings = settings or Settings.from_env()
        adapter = create_adapter(connection_string, settings=settings, connection_id=connection_id)
        validator = create_query_validator(settings.query_validation, adapter.restricted_statements)
        return cls(adapter, validator=validator, max_rows=settings.max_rows)

    # Lifecycle

    @property
    def is_connected(self) -> bool:
        return self.adapter.get_connection_status()

    async def open(self) -> None:
        await self.adapter.connect()

    async def close(self) -> None:
        await self.adapter.close()

    async def ensure_connected(self) -> None:
        """Connect, or reconnect after the handle dropped."""
        if not self.is_connected:
            await self.adapter.connect()

    def health(self) -> Dict[str, Any]:
        return self.adapter.get_health_status()

    async def __aenter__(self) -> "DatabaseSession":
        await self.open()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    # Helpers

    def _validate(self, sql: str) -> str:
        try:
            return self.validator.validate(sql)
        except UnsafeQueryError as e:
            self.logger.warning(
                "Query rejected",
                rule=e.rule,
                reason=e.message,
                query=StringUtils.truncate_string(StringUtils.mask_credentials(sql or ""), 100),
            )
            raise

    async def _guarded(self, operation: str, action: Callable[[], Awaitable[Envelope]]) -> Envelope:
        try:
            return await action()
        except UnsafeQueryError as e:
            return self.formatter.exception(e)
        except ValidationError as e:
            self.logger.warning("Invalid input", operation=operation, error=e.message, code=e.code)
            return self.formatter.validation_error(e.message)
        except QueryGateException as e:
            self.logger.error("Operation failed", operation=operation, error=e.message, code=e.code)
            return self.formatter.exception(e)

    # Operations

    async def execute_query(self, sql: str, params: Optional[Sequence[Any]] = None) -> Envelope:
        """Validate, execute and format a read-only query."""

        async def action() -> Envelope:
            query = self._validate(sql)
            result = await self.adapter.query(query, params)
            execution_time_ms = result.execution_time * 1000

            self.logger.info(
                "Query executed",
                command=result.command,
                row_count=result.row_count,
                execution_time_ms=round(execution_time_ms, 3),
            )
            return self.formatter.query_result(result, execution_time_ms)

        return await self._guarded("execute_query", action)

    async def explain_query(self, sql: str, analyze: bool = False) -> Envelope:
        """Return the execution plan of a validated query.

        With ``analyze`` the statement is actually executed by the engine.
        """

        async def action() -> Envelope:
            query = self._validate(sql)
            result = await self.adapter.query(self.query_builder.explain(query, analyze))
            plan = self.query_builder.parse_plan(result.rows)
            summary = summarize_plan(self.dialect, plan)
            return self.formatter.explain_result(query, plan, analyze, summary)

        return await self._guarded("explain_query", action)

    async def list_tables(self) -> Envelope:
        async def action() -> Envelope:
            return self.formatter.success(await self.introspector.list_tables())

        return await self._guarded("list_tables", action)

    async def list_schemas(self) -> Envelope:
        async def action() -> Envelope:
            return self.formatter.success(await self.introspector.list_schemas())

        return await self._guarded("list_schemas", action)

    async def describe_table(self, table_name: str) -> Envelope:
        async def action() -> Envelope:
            return self.formatter.success(await self.introspector.describe_table(table_name))

        return await self._guarded("describe_table", action)

    async def list_indexes(self, table_name: Optional[str] = None) -> Envelope:
        async def action() -> Envelope:
            return self.formatter.success(await self.introspector.list_indexes(table_name))

        return await self._guarded("list_indexes", action)

    async def get_foreign_keys(self, table_name: Optional[str] = None) -> Envelope:
        async def action() -> Envelope:
            return self.formatter.success(await self.introspector.get_foreign_keys(table_name))

        return await self._guarded("get_foreign_keys", action)

    async def list_functions(self, schema: Optional[str] = None) -> Envelope:
        async def action() -> Envelope:
            return self.formatter.success(await self.introspector.list_functions(schema))

        return await self._guarded("list_functions", action)

    async def analyze_column(
        self,
        table_name: str,
        column_name: str,
        limit: int = DEFAULT_MOST_COMMON_LIMIT,
    ) -> Envelope:
        """Column statistics and most common values."""

        async def action() -> Envelope:
            stats_sql = self.query_builder.column_stats(table_name, column_name)
            common_sql = self.query_builder.most_common_values(table_name, column_name, limit)

            if not await self.introspector.table_exists(table_name):
                return self.formatter.table_not_found(table_name)
            column = await self.introspector.find_column(table_name, column_name)
            if column is None:
                return self.formatter.column_not_found(column_name, table_name)

            stats = await self.adapter.query(stats_sql)
            common = await self.adapter.query(common_sql)
            return self.formatter.success(
                {
                    "table_name": table_name,
                    "column_name": column_name,
                    "column_info": column,
                    "statistics": normalize_keys(stats.rows[0]) if stats.rows else {},
                    "most_common_values": [normalize_keys(row) for row in common.rows],
                }
            )

        return await self._guarded("analyze_column", action)

    async def get_table_stats(self, schema: Optional[str] = None) -> Envelope:
        """Table sizes and row counts for a schema."""

        async def action() -> Envelope:
            return self.formatter.success(await self.introspector.table_stats(schema))

        return await self._guarded("get_table_stats", action)

    async def get_database_info(self) -> Envelope:
        """Server version, size, settings and activity where the dialect has them."""

        async def action() -> Envelope:
            info: Dict[str, Any] = {"connection": self.adapter.get_connection_info()}
            for name, sql in self.adapter.get_info_queries().available().items():
                result = await self.adapter.query(sql)
                rows: List[Dict[str, Any]] = [normalize_keys(row) for row in result.rows]
                if name in ("version", "size"):
                    info[name] = next(iter(rows[0].values())) if rows and rows[0] else None
                else:
                    info[name] = rows
            return self.formatter.success(info)

        return await self._guarded("get_database_info", action)

"""Dialect-aware SQL builders.

Identifiers are checked against the allow-list ``^[A-Za-z0-9_]+$`` before
they are concatenated into any statement; nothing else is ever
interpolated into SQL text.
"""

import json
from typing import Any, Dict, List, Union

from .models import DialectKind
from ..core.exceptions import ErrorCodes, InvalidIdentifierError, UnsupportedFeatureError
from ..core.utils import StringUtils, ValidationUtils

DEFAULT_MOST_COMMON_LIMIT = 10

_EXPLAIN_PREFIXES = {
    DialectKind.POSTGRESQL: ("EXPLAIN (FORMAT JSON)", "EXPLAIN (ANALYZE, FORMAT JSON)"),
    DialectKind.MYSQL: ("EXPLAIN FORMAT=JSON", "EXPLAIN ANALYZE"),
    DialectKind.SQLITE: ("EXPLAIN QUERY PLAN", None),
    DialectKind.SNOWFLAKE: ("EXPLAIN", None),
}

_TEXT_CASTS = {
    DialectKind.POSTGRESQL: "{}::text",
    DialectKind.MYSQL: "CAST({} AS CHAR)",
    DialectKind.SQLITE: "{}",
    DialectKind.SNOWFLAKE: "TO_VARCHAR({})",
}


def ensure_identifier(name: str, kind: str = "identifier") -> str:
    """Return ``name`` if it passes the identifier allow-list.

    Args:
        name: Table, column or schema name
        kind: What the name refers to, used in the error message

    Raises:
        InvalidIdentifierError: If the name is empty or contains anything
            other than letters, digits and underscores
    """
    if not ValidationUtils.validate_sql_identifier(name):
        message = (
            f"Invalid {kind} name: {StringUtils.truncate_string(str(name), 64)!r}. "
            "Only letters, digits and underscores are allowed"
        )
        raise InvalidIdentifierError(
            message,
            errors=[message],
            code=ErrorCodes.INVALID_IDENTIFIER,
            context={"kind": kind},
        )
    return name


def quote_identifier(name: str, dialect: DialectKind) -> str:
    """Validate and quote an identifier for ``dialect``.

    Snowflake identifiers are left unquoted so they resolve case-insensitively.
    """
    ensure_identifier(name)
    if dialect is DialectKind.MYSQL:
        return f"`{name}`"
    if dialect is DialectKind.SNOWFLAKE:
        return name
    return f'"{name}"'


class QueryBuilder:
    """Build analysis statements for one dialect.

    Example:
        >>> QueryBuilder(DialectKind.POSTGRESQL).explain("SELECT 1")
        'EXPLAIN (FORMAT JSON) SELECT 1'
    """

    def __init__(self, dialect: Union[str, DialectKind]) -> None:
        self.dialect = DialectKind(dialect)

    def explain(self, sql: str, analyze: bool = False) -> str:
        """Wrap a statement in the dialect's EXPLAIN form.

        Raises:
            UnsupportedFeatureError: If ``analyze`` is requested on a dialect
                without EXPLAIN ANALYZE
        """
        plain, analyzed = _EXPLAIN_PREFIXES[self.dialect]
        if analyze:
            if analyzed is None:
                raise UnsupportedFeatureError(
                    f"EXPLAIN ANALYZE is not supported for {self.dialect.display_name}",
                    dialect=self.dialect.value,
                    feature="explain_analyze",
                    code=ErrorCodes.UNSUPPORTED_FEATURE,
                )
            return f"{analyzed} {sql}"
        return f"{plain} {sql}"

    def column_stats(self, table: str, column: str) -> str:
        table_ref = quote_identifier(ensure_identifier(table, "table"), self.dialect)
        column_ref = quote_identifier(ensure_identifier(column, "column"), self.dialect)
        as_text = _TEXT_CASTS[self.dialect].format(column_ref)

        return (
            "SELECT\n"
            "    COUNT(*) AS total_rows,\n"
            f"    COUNT({column_ref}) AS non_null_count,\n"
            f"    COUNT(*) - COUNT({column_ref}) AS null_count,\n"
            f"    COUNT(DISTINCT {column_ref}) AS distinct_count,\n"
            f"    MIN({as_text}) AS min_value,\n"
            f"    MAX({as_text}) AS max_value\n"
            f"FROM {table_ref}"
        )

    def most_common_values(self, table: str, column: str, limit: int = DEFAULT_MOST_COMMON_LIMIT) -> str:
        table_ref = quote_identifier(ensure_identifier(table, "table"), self.dialect)
        column_ref = quote_identifier(ensure_identifier(column, "column"), self.dialect)
        if isinstance(limit, bool) or not isinstance(limit, int) or limit < 1:
            raise ValueError(f"limit must be a positive integer, got {limit!r}")

        return (
            f"SELECT {column_ref} AS value, COUNT(*) AS frequency\n"
            f"FROM {table_ref}\n"
            f"WHERE {column_ref} IS NOT NULL\n"
            f"GROUP BY {column_ref}\n"
            "ORDER BY frequency DESC\n"
            f"LIMIT {limit}"
        )

    def row_count(self, table: str) -> str:
        table_ref = quote_identifier(ensure_identifier(table, "table"), self.dialect)
        return f"SELECT COUNT(*) AS row_count FROM {table_ref}"

    def parse_plan(self, rows: List[Dict[str, Any]]) -> List[Any]:
        """Decode EXPLAIN output rows into plan documents."""
        if self.dialect is DialectKind.POSTGRESQL:
            return [_maybe_json(row.get("QUERY PLAN")) for row in rows]
        if self.dialect is DialectKind.MYSQL:
            return [_maybe_json(row["EXPLAIN"]) if "EXPLAIN" in row else row for row in rows]
        return list(rows)


def _maybe_json(value: Any) -> Any:
    if isinstance(value, (str, bytes)):
        try:
            return json.loads(value)
        except ValueError:
            return value
    return value


def summarize_plan(dialect: Union[str, DialectKind], plan: List[Any]) -> Dict[str, Any]:
    """Extract headline numbers from a parsed plan.

    PostgreSQL JSON plans yield node type, total cost, estimated rows and,
    for analyzed plans, actual total time. MySQL JSON plans yield the query
    cost. Other dialects report the number of plan steps.
    """
    kind = DialectKind(dialect)
    summary: Dict[str, Any] = {"steps": len(plan)}

    if kind is DialectKind.POSTGRESQL and plan:
        document = plan[0]
        if isinstance(document, list) and document:
            document = document[0]
        if isinstance(document, dict) and isinstance(document.get("Plan"), dict):
            root = document["Plan"]
            summary.update(
                node_type=root.get("Node Type"),
                total_cost=root.get("Total Cost"),
                plan_rows=root.get("Plan Rows"),
                actual_total_time=root.get("Actual Total Time"),
                execution_time=document.get("Execution Time"),
            )

    elif kind is DialectKind.MYSQL and plan:
        document = plan[0]
        if isinstance(document, dict):
            cost = document.get("query_block", {}).get("cost_info", {}).get("query_cost")
            summary["query_cost"] = float(cost) if cost is not None else None

    return summary

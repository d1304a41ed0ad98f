"""Result envelope formatting.

Every session operation returns an Envelope: ``{"success": true, "data": ...}``
or ``{"success": false, "error": "..."}``, plus ``databaseType`` when the
dialect is known. Wire keys are camelCase.
"""

import ipaddress
import json
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from typing import Any, Dict, List, Optional, Union
from uuid import UUID

from .models import DialectKind, QueryResult
from ..core.exceptions import QueryGateException

DEFAULT_MAX_ROWS = 1000

DialectLike = Optional[Union[str, DialectKind]]

# asyncpg decodes inet and cidr columns to these
_IP_TYPES = (
    ipaddress.IPv4Address,
    ipaddress.IPv6Address,
    ipaddress.IPv4Network,
    ipaddress.IPv6Network,
    ipaddress.IPv4Interface,
    ipaddress.IPv6Interface,
)


def _dialect_value(dialect: DialectLike) -> Optional[str]:
    if dialect is None:
        return None
    return DialectKind(dialect).value


def json_default(value: Any) -> Any:
    """``json.dumps`` fallback for driver value types."""
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    if isinstance(value, timedelta):
        return value.total_seconds()
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, UUID):
        return str(value)
    if isinstance(value, _IP_TYPES):
        return str(value)
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value).hex()
    if isinstance(value, (set, frozenset)):
        return sorted(value, key=str)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


@dataclass
class Envelope:
    """Uniform success/error wrapper."""

    success: bool
    data: Any = None
    error: Optional[str] = None
    database_type: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"success": self.success}
        if self.success:
            payload["data"] = self.data
        else:
            payload["error"] = self.error
        if self.database_type:
            payload["databaseType"] = self.database_type
        return payload

    def to_json(self, *, indent: Optional[int] = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent, default=json_default)


def format_success(data: Any, dialect: DialectLike = None) -> Envelope:
    return Envelope(success=True, data=data, database_type=_dialect_value(dialect))


def format_error(message: str, dialect: DialectLike = None) -> Envelope:
    return Envelope(success=False, error=message, database_type=_dialect_value(dialect))


def format_table_not_found(table_name: str, dialect: DialectLike = None) -> Envelope:
    return format_error(f"Table '{table_name}' not found", dialect)


def format_column_not_found(column_name: str, table_name: str, dialect: DialectLike = None) -> Envelope:
    return format_error(f"Column '{column_name}' not found in table '{table_name}'", dialect)


def format_validation_error(message: str, dialect: DialectLike = None) -> Envelope:
    return format_error(f"Validation error: {message}", dialect)


def format_exception(exc: Exception, dialect: DialectLike = None) -> Envelope:
    """Error envelope carrying the exception's message without its code prefix."""
    message = exc.message if isinstance(exc, QueryGateException) else str(exc)
    return format_error(message, dialect)


def format_query_result(
    result: QueryResult,
    execution_time_ms: float,
    dialect: DialectLike,
    max_rows: int = DEFAULT_MAX_ROWS,
) -> Envelope:
    """Wrap a query result, capping the returned rows at ``max_rows``.

    ``rowCount`` always carries the engine's true count.

    Example:
        >>> envelope = format_query_result(result_with_1500_rows, 12.5, "postgresql")
        >>> envelope.data["rowCount"], len(envelope.data["rows"]), envelope.data["truncated"]
        (1500, 1000, True)
    """
    truncated = len(result.rows) > max_rows
    rows = result.rows[:max_rows] if truncated else result.rows
    database_type = _dialect_value(dialect)

    data: Dict[str, Any] = {
        "rows": rows,
        "rowCount": result.row_count,
        "command": result.command,
        "executionTimeMs": round(execution_time_ms, 3),
        "databaseType": database_type,
        "fields": [f.to_dict() for f in result.fields] if result.fields is not None else None,
        "truncated": truncated,
    }
    if truncated:
        data["message"] = f"Results truncated to {max_rows} rows ({result.row_count} total rows)"

    return Envelope(success=True, data=data, database_type=database_type)


def format_explain_result(
    query: str,
    plan: List[Any],
    analyzed: bool,
    dialect: DialectLike,
    summary: Optional[Dict[str, Any]] = None,
) -> Envelope:
    database_type = _dialect_value(dialect)
    data = {
        "query": query,
        "execution_plan": plan,
        "summary": summary or {},
        "analyzed": analyzed,
        "databaseType": database_type,
    }
    return Envelope(success=True, data=data, database_type=database_type)


class ResultFormatter:
    """Formatter bound to one dialect and row cap."""

    def __init__(self, dialect: DialectLike = None, max_rows: int = DEFAULT_MAX_ROWS) -> None:
        if max_rows < 1:
            raise ValueError("max_rows must be at least 1")
        self.dialect = dialect
        self.max_rows = max_rows

    def success(self, data: Any) -> Envelope:
        return format_success(data, self.dialect)

    def error(self, message: str) -> Envelope:
        return format_error(message, self.dialect)

    def exception(self, exc: Exception) -> Envelope:
        return format_exception(exc, self.dialect)

    def table_not_found(self, table_name: str) -> Envelope:
        return format_table_not_found(table_name, self.dialect)

    def column_not_found(self, column_name: str, table_name: str) -> Envelope:
        return format_column_not_found(column_name, table_name, self.dialect)

    def validation_error(self, message: str) -> Envelope:
        return format_validation_error(message, self.dialect)

    def query_result(self, result: QueryResult, execution_time_ms: float) -> Envelope:
        return format_query_result(result, execution_time_ms, self.dialect, self.max_rows)

    def explain_result(
        self,
        query: str,
        plan: List[Any],
        analyzed: bool,
        summary: Optional[Dict[str, Any]] = None,
    ) -> Envelope:
        return format_explain_result(query, plan, analyzed, self.dialect, summary)

"""Log formatters for the QueryGate logging system.

Both formatters mask ``user:password@`` credentials in the rendered output,
so a connection string that reaches a log line never leaks its secret.

Classes:
    JSONFormatter: JSON format for structured logging
    TextFormatter: Human-readable text format

Example:
    >>> handler.setFormatter(get_formatter("json"))
"""

import json
import logging
from datetime import datetime
from typing import Any, Dict, Optional

from ..core.utils import StringUtils

# LogRecord attributes that are never treated as extra fields
_STANDARD_FIELDS = frozenset({
    "name", "msg", "args", "levelname", "levelno", "pathname",
    "filename", "module", "lineno", "funcName", "created",
    "msecs", "relativeCreated", "thread", "threadName",
    "processName", "process", "message", "exc_info", "exc_text",
    "stack_info", "taskName",
})


def _extra_fields(record: logging.LogRecord, exclude: frozenset) -> Dict[str, Any]:
    return {
        key: value
        for key, value in record.__dict__.items()
        if key not in _STANDARD_FIELDS and key not in exclude
    }


class JSONFormatter(logging.Formatter):
    """JSON formatter for structured log output.

    Example:
        {"message": "Connected", "timestamp": "2024-03-01T10:30:45.123456",
         "level": "INFO", "logger": "adapter.postgresql.default"}
    """

    def __init__(
        self,
        *,
        include_module: bool = False,
        include_line_number: bool = False,
        exclude_fields: Optional[list] = None,
    ) -> None:
        super().__init__()
        self.include_module = include_module
        self.include_line_number = include_line_number
        self.exclude_fields = frozenset(exclude_fields or [])

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as a single JSON line."""
        log_data: Dict[str, Any] = {
            "message": StringUtils.mask_credentials(record.getMessage()),
            "timestamp": datetime.fromtimestamp(record.created).isoformat(),
            "level": record.levelname,
            "logger": record.name,
        }

        if self.include_module:
            log_data["module"] = record.module
        if self.include_line_number:
            log_data["line"] = record.lineno

        if record.exc_info:
            log_data["exception"] = {
                "type": record.exc_info[0].__name__ if record.exc_info[0] else None,
                "message": str(record.exc_info[1]) if record.exc_info[1] else None,
                "traceback": self.formatException(record.exc_info),
            }

        for key, value in _extra_fields(record, self.exclude_fields).items():
            if isinstance(value, str):
                value = StringUtils.mask_credentials(value)
            log_data[key] = value

        return json.dumps(log_data, default=str, separators=(",", ":"))


class TextFormatter(logging.Formatter):
    """Human-readable text formatter.

    Example:
        2024-03-01 10:30:45.123 [INFO] session: Connected (dialect=mysql)
    """

    def __init__(self, *, include_extras: bool = True, max_line_length: Optional[int] = None) -> None:
        super().__init__()
        self.include_extras = include_extras
        self.max_line_length = max_line_length

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as human-readable text."""
        dt = datetime.fromtimestamp(record.created)
        parts = [
            dt.strftime("%Y-%m-%d %H:%M:%S.") + f"{dt.microsecond:06d}"[:3],
            f"[{record.levelname}]",
            f"{record.name}:",
            record.getMessage(),
        ]

        if self.include_extras:
            extras = [
                f"{key}={value}" if isinstance(value, str) else f"{key}={value!r}"
                for key, value in _extra_fields(record, frozenset()).items()
            ]
            if extras:
                parts.append("(" + ", ".join(extras) + ")")

        formatted = StringUtils.mask_credentials(" ".join(parts))

        if record.exc_info:
            formatted += "\n" + self.formatException(record.exc_info)

        if self.max_line_length:
            formatted = StringUtils.truncate_string(formatted, self.max_line_length)

        return formatted


def get_formatter(format_type: str, **kwargs: Any) -> logging.Formatter:
    """Get formatter instance by type.

    Args:
        format_type: Formatter type ('json' or 'text')
        **kwargs: Additional formatter arguments

    Raises:
        ValueError: If format_type is not supported
    """
    format_type = format_type.lower()

    if format_type == "json":
        return JSONFormatter(**kwargs)
    elif format_type == "text":
        return TextFormatter(**kwargs)
    else:
        raise ValueError(f"Unsupported formatter type: {format_type}")

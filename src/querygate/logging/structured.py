"""Structured logging implementation for QueryGate.

This module provides structured logging with context management and
correlation IDs so every log line emitted by an adapter or session can be
traced back to the operation that produced it.

Classes:
    StructuredLogger: Main structured logging interface
    LogContext: Thread-local context storage
    ContextFilter: Filter for adding context to stdlib log records

Example:
    >>> logger = StructuredLogger("adapter.postgresql.default")
    >>> with logger.context(dialect="postgresql", operation="list_tables"):
    ...     logger.info("Running introspection query")
"""

import logging
import threading
import time
import uuid
from contextlib import contextmanager
from datetime import datetime
from typing import Any, Dict, Generator, Optional

import structlog

from ..core.exceptions import QueryGateException


class LogContext:
    """Thread-local context for log correlation and metadata.

    Example:
        >>> context = LogContext()
        >>> context.set("dialect", "sqlite")
        >>> context.get_all()
        {'dialect': 'sqlite'}
    """

    def __init__(self) -> None:
        self._local = threading.local()

    def _data(self) -> Dict[str, Any]:
        if not hasattr(self._local, "context"):
            self._local.context = {}
        return self._local.context

    def set(self, key: str, value: Any) -> None:
        """Set context value."""
        self._data()[key] = value

    def get(self, key: str, default: Any = None) -> Any:
        """Get context value, or ``default`` if unset."""
        return self._data().get(key, default)

    def get_all(self) -> Dict[str, Any]:
        """Return a copy of all context values."""
        return self._data().copy()

    def clear(self) -> None:
        """Clear all context values."""
        self._data().clear()

    def update(self, context: Dict[str, Any]) -> None:
        """Update context with multiple values."""
        self._data().update(context)


class ContextFilter(logging.Filter):
    """Logging filter that adds context information to stdlib log records."""

    def __init__(self, context: LogContext) -> None:
        super().__init__()
        self._context = context

    def filter(self, record: logging.LogRecord) -> bool:
        """Add context information to log record.

        Returns:
            True (always allow record through)
        """
        for key, value in self._context.get_all().items():
            if not hasattr(record, key):
                setattr(record, key, value)

        if not hasattr(record, "correlation_id"):
            record.correlation_id = self._context.get("correlation_id", "unknown")

        if not hasattr(record, "timestamp_iso"):
            record.timestamp_iso = datetime.fromtimestamp(record.created).isoformat()

        return True


class StructuredLogger:
    """Structured logger with context management and correlation.

    Attributes:
        name: Logger name

    Example:
        >>> logger = StructuredLogger("session")
        >>> db_logger = logger.bind(dialect="mysql")
        >>> db_logger.info("Connected", server_version="8.0.36")
    """

    def __init__(
        self,
        name: str,
        *,
        level: str = "INFO",
        enable_correlation: bool = True,
        auto_correlation: bool = True,
    ) -> None:
        """Initialize structured logger.

        Args:
            name: Logger name (typically a dotted component path)
            level: Initial log level
            enable_correlation: Whether to attach correlation IDs
            auto_correlation: Whether to auto-generate a correlation ID
        """
        self.name = name
        self._enable_correlation = enable_correlation
        self._auto_correlation = auto_correlation

        self._logger = structlog.get_logger(name)
        self._context = LogContext()

        self._stdlib_logger = logging.getLogger(name)
        self._stdlib_logger.setLevel(getattr(logging, level.upper(), logging.INFO))
        if not any(isinstance(f, ContextFilter) for f in self._stdlib_logger.filters):
            self._stdlib_logger.addFilter(ContextFilter(self._context))

        if self._enable_correlation and self._auto_correlation:
            self._ensure_correlation_id()

    def _ensure_correlation_id(self) -> str:
        correlation_id = self._context.get("correlation_id")
        if not correlation_id:
            correlation_id = str(uuid.uuid4())
            self._context.set("correlation_id", correlation_id)
        return correlation_id

    def _prepare_event_dict(self, **kwargs: Any) -> Dict[str, Any]:
        event_dict = self._context.get_all()

        if self._enable_correlation:
            event_dict["correlation_id"] = self._ensure_correlation_id()

        event_dict.update(kwargs)
        return event_dict

    @contextmanager
    def context(self, **context_data: Any) -> Generator[None, None, None]:
        """Context manager for adding temporary context data.

        Example:
            >>> with logger.context(table="orders"):
            ...     logger.info("Describing table")
        """
        old_context = self._context.get_all()

        try:
            self._context.update(context_data)
            yield
        finally:
            self._context.clear()
            self._context.update(old_context)

    def bind(self, **context_data: Any) -> "StructuredLogger":
        """Create new logger instance with bound context."""
        bound_logger = StructuredLogger(
            self.name,
            level=self.get_level(),
            enable_correlation=self._enable_correlation,
            auto_correlation=False,
        )

        current_context = self._context.get_all()
        current_context.update(context_data)
        bound_logger._context.update(current_context)

        return bound_logger

    def set_level(self, level: str) -> None:
        """Set logging level.

        Raises:
            QueryGateException: If the level name is unknown
        """
        log_level = logging.getLevelName(level.upper()) if isinstance(level, str) else None
        if not isinstance(log_level, int):
            raise QueryGateException(
                f"Unknown log level: {level}",
                code="UNKNOWN_LOG_LEVEL",
            )

        self._stdlib_logger.setLevel(log_level)

    def get_level(self) -> str:
        """Get current logging level name."""
        return logging.getLevelName(self._stdlib_logger.getEffectiveLevel())

    def debug(self, message: str, **kwargs: Any) -> None:
        self._logger.debug(message, **self._prepare_event_dict(**kwargs))

    def info(self, message: str, **kwargs: Any) -> None:
        self._logger.info(message, **self._prepare_event_dict(**kwargs))

    def warning(self, message: str, **kwargs: Any) -> None:
        self._logger.warning(message, **self._prepare_event_dict(**kwargs))

    def error(self, message: str, **kwargs: Any) -> None:
        self._logger.error(message, **self._prepare_event_dict(**kwargs))

    def critical(self, message: str, **kwargs: Any) -> None:
        self._logger.critical(message, **self._prepare_event_dict(**kwargs))

    def exception(self, message: str, exc_info: bool = True, **kwargs: Any) -> None:
        """Log exception with traceback."""
        self._logger.error(message, exc_info=exc_info, **self._prepare_event_dict(**kwargs))

    def log_operation_start(self, operation: str, **context: Any) -> Dict[str, Any]:
        """Log operation start with timing context.

        Args:
            operation: Operation name
            **context: Operation context

        Returns:
            Operation context for completion logging
        """
        operation_context = {
            "operation_id": str(uuid.uuid4()),
            "operation": operation,
            "start_time": time.time(),
            **context,
        }

        self.info("Operation started", **operation_context)

        return operation_context

    def log_operation_success(self, operation_context: Dict[str, Any], **results: Any) -> None:
        """Log successful operation completion."""
        duration_ms = (time.time() - operation_context["start_time"]) * 1000

        self.info(
            "Operation completed successfully",
            duration_ms=duration_ms,
            **operation_context,
            **results,
        )

    def log_operation_failure(
        self,
        operation_context: Dict[str, Any],
        error: Exception,
        **error_context: Any,
    ) -> None:
        """Log operation failure.

        QueryGate exceptions contribute their code to the log line.
        """
        duration_ms = (time.time() - operation_context["start_time"]) * 1000
        if isinstance(error, QueryGateException):
            error_context.setdefault("error_code", error.code)
            message = error.message
        else:
            message = str(error)

        self.error(
            "Operation failed",
            duration_ms=duration_ms,
            error=message,
            error_type=type(error).__name__,
            **operation_context,
            **error_context,
        )

    def set_correlation_id(self, correlation_id: str) -> None:
        if not self._enable_correlation:
            return

        self._context.set("correlation_id", correlation_id)

    def get_correlation_id(self) -> Optional[str]:
        if not self._enable_correlation:
            return None

        return self._context.get("correlation_id")

    def clear_context(self) -> None:
        """Clear all context data."""
        self._context.clear()

        if self._enable_correlation and self._auto_correlation:
            self._ensure_correlation_id()

    def get_context(self) -> Dict[str, Any]:
        return self._context.get_all()

    def __repr__(self) -> str:
        return (
            f"StructuredLogger("
            f"name={self.name!r}, "
            f"level={self.get_level()!r}, "
            f"correlation={self._enable_correlation})"
        )

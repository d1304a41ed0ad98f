"""Tests for structured logging module."""

import logging
import threading
import time
import uuid
from unittest.mock import Mock, patch

import pytest
import structlog

from querygate.core.exceptions import ConnectionError, ErrorCodes, QueryGateException
from querygate.logging.structured import ContextFilter, LogContext, StructuredLogger


def _record(name: str = "adapter.sqlite.default") -> logging.LogRecord:
    return logging.LogRecord(
        name=name,
        level=logging.INFO,
        pathname="test.py",
        lineno=42,
        msg="Query executed",
        args=(),
        exc_info=None,
    )


class TestLogContext:
    """Test cases for LogContext class."""

    def test_context_initialization(self):
        """Test LogContext initializes correctly."""
        context = LogContext()
        assert context.get_all() == {}

    def test_set_and_get_context_value(self):
        """Test setting and getting context values."""
        context = LogContext()

        context.set("dialect", "postgresql")
        context.set("row_count", 42)

        assert context.get("dialect") == "postgresql"
        assert context.get("row_count") == 42
        assert context.get("nonexistent") is None
        assert context.get("nonexistent", "default") == "default"

    def test_update_context(self):
        """Test updating context with multiple values."""
        context = LogContext()

        context.set("existing", "value")
        context.update({"table": "orders", "existing": "replaced"})

        assert context.get_all() == {"existing": "replaced", "table": "orders"}

    def test_get_all_returns_copy(self):
        context = LogContext()
        context.set("dialect", "mysql")

        snapshot = context.get_all()
        snapshot["dialect"] = "sqlite"

        assert context.get("dialect") == "mysql"

    def test_clear_context(self):
        """Test clearing all context values."""
        context = LogContext()

        context.set("key1", "value1")
        context.set("key2", "value2")
        context.clear()

        assert context.get_all() == {}

    def test_thread_isolation(self):
        """Test that context is isolated between threads."""
        context = LogContext()
        results = {}

        def thread_func(thread_id):
            context.set("thread_id", thread_id)
            context.set("table", f"table_{thread_id}")
            time.sleep(0.05)
            results[thread_id] = context.get_all()

        threads = [threading.Thread(target=thread_func, args=(i,)) for i in range(3)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        for i in range(3):
            assert results[i] == {"thread_id": i, "table": f"table_{i}"}


class TestContextFilter:
    """Test cases for ContextFilter class."""

    def test_filter_adds_context_to_record(self):
        """Test that filter adds context to log records."""
        context = LogContext()
        context.set("dialect", "sqlite")
        context.set("connection_id", "default")

        record = _record()
        result = ContextFilter(context).filter(record)

        assert result is True
        assert record.dialect == "sqlite"
        assert record.connection_id == "default"

    def test_filter_adds_standard_metadata(self):
        """Test that filter adds correlation and timestamp metadata."""
        context = LogContext()
        context.set("correlation_id", "test_correlation")

        record = _record()
        ContextFilter(context).filter(record)

        assert record.correlation_id == "test_correlation"
        assert isinstance(record.timestamp_iso, str)

    def test_filter_defaults_unknown_correlation(self):
        record = _record()
        ContextFilter(LogContext()).filter(record)

        assert record.correlation_id == "unknown"

    def test_filter_doesnt_override_existing_attributes(self):
        """Test that filter doesn't override existing record attributes."""
        context = LogContext()
        context.set("name", "context_name")

        record = _record("original_logger_name")
        ContextFilter(context).filter(record)

        assert record.name == "original_logger_name"


class TestStructuredLogger:
    """Test cases for StructuredLogger class."""

    def test_logger_initialization(self):
        """Test StructuredLogger initializes correctly."""
        logger = StructuredLogger("session.sqlite.default")

        assert logger.name == "session.sqlite.default"
        assert logger.get_level() in ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        assert logger._enable_correlation is True

    def test_logger_initialization_with_options(self):
        """Test StructuredLogger initialization with custom options."""
        logger = StructuredLogger(
            "session.options",
            level="DEBUG",
            enable_correlation=False,
            auto_correlation=False,
        )

        assert logger.get_level() == "DEBUG"
        assert logger._enable_correlation is False
        assert logger._auto_correlation is False

    def test_set_and_get_level(self):
        """Test setting and getting log levels."""
        logger = StructuredLogger("session.levels")

        logger.set_level("DEBUG")
        assert logger.get_level() == "DEBUG"

        logger.set_level("error")
        assert logger.get_level() == "ERROR"

    def test_invalid_log_level_raises_exception(self):
        """Test that invalid log level raises exception."""
        logger = StructuredLogger("session.invalid")

        with pytest.raises(QueryGateException) as exc_info:
            logger.set_level("INVALID_LEVEL")

        assert exc_info.value.code == "UNKNOWN_LOG_LEVEL"

    @patch("structlog.get_logger")
    def test_logging_methods_call_structlog(self, mock_get_logger):
        """Test that logging methods call structlog correctly."""
        mock_structlog_logger = Mock()
        mock_get_logger.return_value = mock_structlog_logger

        logger = StructuredLogger("session.calls")

        logger.debug("Debug message", table="orders")
        logger.info("Info message", table="orders")
        logger.warning("Warning message", table="orders")
        logger.error("Error message", table="orders")
        logger.critical("Critical message", table="orders")

        mock_structlog_logger.debug.assert_called_once()
        mock_structlog_logger.info.assert_called_once()
        mock_structlog_logger.warning.assert_called_once()
        mock_structlog_logger.error.assert_called_once()
        mock_structlog_logger.critical.assert_called_once()

        _, kwargs = mock_structlog_logger.info.call_args
        assert kwargs["table"] == "orders"
        assert "correlation_id" in kwargs

    def test_context_manager(self):
        """Test logger context manager functionality."""
        logger = StructuredLogger("session.context")
        logger._context.set("initial", "value")

        with logger.context(table="orders", operation="describe_table"):
            context = logger._context.get_all()
            assert context["initial"] == "value"
            assert context["table"] == "orders"
            assert context["operation"] == "describe_table"

        context = logger._context.get_all()
        assert "initial" in context
        assert "table" not in context
        assert "operation" not in context

    def test_bind_creates_new_logger_with_context(self):
        """Test that bind creates new logger with bound context."""
        logger = StructuredLogger("session.bind")
        logger._context.set("original", "value")

        bound_logger = logger.bind(dialect="mysql", connection_id="reporting")

        assert "dialect" not in logger._context.get_all()

        bound_context = bound_logger._context.get_all()
        assert bound_context["original"] == "value"
        assert bound_context["dialect"] == "mysql"
        assert bound_context["connection_id"] == "reporting"

        assert logger is not bound_logger
        assert logger.name == bound_logger.name

    def test_bound_structlog_logger_usable(self):
        """Test that a bound structlog logger accepts events under the test configuration."""
        bound = structlog.get_logger("session.bind").bind(dialect="sqlite")

        bound.info("Connection opened", connection_id="analytics")
        bound.warning("Slow query", duration_ms=1200)

    def test_correlation_id_generation(self):
        """Test automatic correlation ID generation."""
        logger = StructuredLogger("session.correlation", enable_correlation=True)

        correlation_id = logger.get_correlation_id()

        assert isinstance(correlation_id, str)
        uuid.UUID(correlation_id)

    def test_correlation_id_setting(self):
        """Test manual correlation ID setting."""
        logger = StructuredLogger("session.correlation_set", enable_correlation=True)

        logger.set_correlation_id("request-123")

        assert logger.get_correlation_id() == "request-123"

    def test_correlation_disabled(self):
        """Test correlation ID when disabled."""
        logger = StructuredLogger("session.no_correlation", enable_correlation=False)

        assert logger.get_correlation_id() is None

        logger.set_correlation_id("ignored")
        assert logger.get_correlation_id() is None

    def test_operation_logging_success(self):
        """Test operation logging for successful operations."""
        logger = StructuredLogger("adapter.test")

        operation_context = logger.log_operation_start("connect", dialect="sqlite")

        assert operation_context["operation"] == "connect"
        assert operation_context["dialect"] == "sqlite"
        assert "operation_id" in operation_context
        assert "start_time" in operation_context

        logger.log_operation_success(operation_context, server_version="3.45.0")

    def test_operation_failure_includes_error_code(self):
        logger = StructuredLogger("adapter.failure")
        logger.error = Mock()

        operation_context = logger.log_operation_start("connect")
        error = ConnectionError("Connection refused", code=ErrorCodes.NETWORK_UNREACHABLE)
        logger.log_operation_failure(operation_context, error, reason="unreachable")

        _, kwargs = logger.error.call_args
        assert kwargs["error_code"] == ErrorCodes.NETWORK_UNREACHABLE
        assert kwargs["error"] == "Connection refused"
        assert kwargs["error_type"] == "ConnectionError"
        assert kwargs["reason"] == "unreachable"

    def test_operation_failure_plain_exception(self):
        logger = StructuredLogger("adapter.failure_plain")
        logger.error = Mock()

        operation_context = logger.log_operation_start("connect")
        logger.log_operation_failure(operation_context, RuntimeError("boom"))

        _, kwargs = logger.error.call_args
        assert kwargs["error"] == "boom"
        assert "error_code" not in kwargs

    def test_clear_context(self):
        """Test clearing logger context."""
        logger = StructuredLogger("session.clear", enable_correlation=True, auto_correlation=True)

        logger._context.set("key1", "value1")
        initial_correlation = logger.get_correlation_id()

        logger.clear_context()

        assert "key1" not in logger.get_context()
        new_correlation = logger.get_correlation_id()
        assert new_correlation is not None
        assert new_correlation != initial_correlation

    def test_exception_logging(self):
        """Test exception logging with traceback."""
        logger = StructuredLogger("session.exception")

        try:
            raise ValueError("Test exception")
        except ValueError:
            logger.exception("An error occurred", operation="execute_query")

    def test_logger_repr(self):
        """Test logger string representation."""
        logger = StructuredLogger("session.repr", level="DEBUG", enable_correlation=True)

        repr_str = repr(logger)

        assert "StructuredLogger" in repr_str
        assert "session.repr" in repr_str
        assert "DEBUG" in repr_str

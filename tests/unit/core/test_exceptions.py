"""Unit tests for QueryGate exception hierarchy.

This module tests the exception classes to ensure proper error reporting
and context management.
"""

import pytest

from querygate.core.exceptions import (
    REASON_ERROR_CODES,
    ConfigurationError,
    ConnectionError,
    ConnectionFailureReason,
    ErrorCodes,
    InvalidIdentifierError,
    ObjectNotFoundError,
    QueryExecutionError,
    QueryGateException,
    SecurityError,
    UnrecognizedDialectError,
    UnsafeQueryError,
    UnsupportedFeatureError,
    ValidationError,
)


class TestQueryGateException:
    """Test base QueryGate exception class."""

    def test_basic_exception_creation(self):
        exc = QueryGateException("Test error message")

        assert str(exc) == "QueryGateException: Test error message"
        assert exc.message == "Test error message"
        assert exc.code == "QueryGateException"
        assert exc.context == {}
        assert exc.cause is None

    def test_exception_with_custom_code(self):
        exc = QueryGateException("Test error", code="CUSTOM_ERROR")

        assert exc.code == "CUSTOM_ERROR"
        assert str(exc) == "CUSTOM_ERROR: Test error"

    def test_exception_with_context_and_cause(self):
        original_error = ValueError("Original error")
        exc = QueryGateException(
            "Wrapped error",
            context={"dialect": "postgresql"},
            cause=original_error,
        )

        assert exc.context == {"dialect": "postgresql"}
        assert exc.cause is original_error

    def test_exception_to_dict(self):
        exc = QueryGateException(
            "Test error",
            code="TEST_ERROR",
            context={"table": "orders"},
            cause=RuntimeError("driver"),
        )

        assert exc.to_dict() == {
            "error_type": "QueryGateException",
            "message": "Test error",
            "code": "TEST_ERROR",
            "context": {"table": "orders"},
            "cause": "driver",
        }

    def test_exception_repr(self):
        exc = QueryGateException("Test error", code="TEST_ERROR")

        assert repr(exc) == (
            "QueryGateException(message='Test error', code='TEST_ERROR', context={}, cause=None)"
        )


class TestExceptionHierarchy:
    """Test the inheritance relationships callers rely on."""

    @pytest.mark.parametrize(
        "exception_class, parent",
        [
            (ConfigurationError, QueryGateException),
            (ValidationError, ConfigurationError),
            (InvalidIdentifierError, ValidationError),
            (UnrecognizedDialectError, ConfigurationError),
            (ConnectionError, QueryGateException),
            (UnsafeQueryError, SecurityError),
            (QueryExecutionError, QueryGateException),
            (ObjectNotFoundError, QueryGateException),
        ],
    )
    def test_inheritance(self, exception_class, parent):
        assert issubclass(exception_class, parent)

    def test_connection_error_is_not_builtin(self):
        import builtins

        assert not issubclass(ConnectionError, builtins.ConnectionError)


class TestValidationError:
    """ValidationError carries every problem found."""

    def test_errors_default_to_message(self):
        exc = ValidationError("Connection string is required")

        assert exc.errors == ["Connection string is required"]

    def test_errors_list_preserved(self):
        errors = [
            "PostgreSQL connection string must include hostname",
            "PostgreSQL connection string must include database name",
        ]
        exc = ValidationError("Invalid connection string", errors=errors)

        assert exc.errors == errors
        assert exc.errors is not errors
        assert exc.to_dict()["errors"] == errors


class TestConnectionError:
    """ConnectionError reason and hint."""

    def test_reason_and_hint(self):
        exc = ConnectionError(
            "Failed to connect to MySQL: Access denied",
            reason=ConnectionFailureReason.AUTH,
            hint="Check your MySQL username and password",
            code=ErrorCodes.AUTH_FAILED,
        )

        data = exc.to_dict()

        assert exc.reason is ConnectionFailureReason.AUTH
        assert data["reason"] == "auth"
        assert data["hint"] == "Check your MySQL username and password"
        assert data["code"] == "AUTH_FAILED"

    def test_without_reason(self):
        exc = ConnectionError("Database not connected", code=ErrorCodes.NOT_CONNECTED)

        assert exc.reason is None
        assert exc.to_dict()["reason"] is None

    def test_every_reason_has_error_code(self):
        assert set(REASON_ERROR_CODES) == set(ConnectionFailureReason)
        assert REASON_ERROR_CODES[ConnectionFailureReason.SSL] == ErrorCodes.SSL_NEGOTIATION_FAILED


class TestSpecializedErrors:
    """Attributes carried by query-side errors."""

    def test_unsafe_query_rule(self):
        exc = UnsafeQueryError("Query cannot be empty", rule="empty_query", code=ErrorCodes.UNSAFE_QUERY)

        assert exc.rule == "empty_query"
        assert str(exc) == "UNSAFE_QUERY: Query cannot be empty"

    def test_unsupported_feature_attributes(self):
        exc = UnsupportedFeatureError(
            "EXPLAIN ANALYZE is not supported for SQLite",
            dialect="sqlite",
            feature="explain_analyze",
        )

        assert exc.dialect == "sqlite"
        assert exc.feature == "explain_analyze"
        assert exc.code == "UnsupportedFeatureError"

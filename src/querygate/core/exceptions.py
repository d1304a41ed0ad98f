"""QueryGate exception hierarchy.

This module defines the structured exceptions raised by QueryGate. Every
exception carries an error code, context information and an optional cause
so failures can be logged and reported consistently.

Classes:
    QueryGateException: Base exception for all QueryGate operations
    ConfigurationError: Configuration related errors
    ValidationError: Structural validation errors (carries every problem found)
    UnrecognizedDialectError: Connection string matched no known dialect
    ConnectionError: Connect-time failures tagged with a failure reason
    UnsafeQueryError: Query rejected by the safety validator
    QueryExecutionError: Driver-level failure during execution
    UnsupportedFeatureError: Dialect lacks an introspection capability

Example:
    >>> try:
    ...     await adapter.connect()
    ... except ConnectionError as e:
    ...     logger.error("Connection failed", reason=e.reason, hint=e.hint)
"""

from enum import Enum
from typing import Any, Dict, List, Optional


class QueryGateException(Exception):
    """Base exception for all QueryGate operations.

    Attributes:
        code: Unique error code for categorization
        context: Additional context information about the error
        cause: Original exception that caused this error (if any)

    Example:
        >>> raise QueryGateException(
        ...     "Operation failed",
        ...     code="OPERATION_FAILED",
        ...     context={"dialect": "postgresql"}
        ... )
    """

    def __init__(
        self,
        message: str,
        *,
        code: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
    ) -> None:
        """Initialize QueryGate exception.

        Args:
            message: Human-readable error description
            code: Unique error code for categorization (defaults to class name)
            context: Additional context information
            cause: Original exception that caused this error
        """
        super().__init__(message)
        self.code: str = code or self.__class__.__name__
        self.context: Dict[str, Any] = context or {}
        self.cause: Optional[Exception] = cause

    @property
    def message(self) -> str:
        """Return the raw error message without the code prefix."""
        return super().__str__()

    def __str__(self) -> str:
        """Return formatted error message with code."""
        return f"{self.code}: {self.message}"

    def __repr__(self) -> str:
        """Return detailed representation of the exception."""
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"code={self.code!r}, "
            f"context={self.context!r}, "
            f"cause={self.cause!r})"
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for serialization.

        Returns:
            Dictionary representation of the exception
        """
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "code": self.code,
            "context": self.context,
            "cause": str(self.cause) if self.cause else None,
        }


class ConfigurationError(QueryGateException):
    """Configuration related errors.

    Raised when configuration is invalid, missing, or cannot be processed.
    """
    pass


class ValidationError(ConfigurationError):
    """Structural validation errors.

    Carries every problem found rather than only the first one, so callers
    can report all issues at once.
    """

    def __init__(
        self,
        message: str,
        *,
        errors: Optional[List[str]] = None,
        code: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
    ) -> None:
        super().__init__(message, code=code, context=context, cause=cause)
        self.errors: List[str] = list(errors) if errors else [message]

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["errors"] = list(self.errors)
        return data


class UnrecognizedDialectError(ConfigurationError):
    """Raised when a connection string matches no supported dialect."""
    pass


class InvalidIdentifierError(ValidationError):
    """Raised when a table, column or schema name fails the identifier allow-list."""
    pass


class ConnectionFailureReason(str, Enum):
    """Sub-reason attached to connect-time failures."""

    TIMEOUT = "timeout"
    AUTH = "auth"
    SSL = "ssl"
    UNREACHABLE = "unreachable"


class ConnectionError(QueryGateException):
    """Database connection errors.

    Raised on connect-time failures and when a query is issued without a
    live connection. Connect failures carry a ``reason`` so callers can offer
    targeted remediation, and a human-readable ``hint``.
    """

    def __init__(
        self,
        message: str,
        *,
        reason: Optional[ConnectionFailureReason] = None,
        hint: Optional[str] = None,
        code: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
    ) -> None:
        super().__init__(message, code=code, context=context, cause=cause)
        self.reason: Optional[ConnectionFailureReason] = reason
        self.hint: Optional[str] = hint

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["reason"] = self.reason.value if self.reason else None
        data["hint"] = self.hint
        return data


class SecurityError(QueryGateException):
    """Security related errors."""
    pass


class UnsafeQueryError(SecurityError):
    """Query rejected by the safety validator.

    Attributes:
        rule: Name of the violated rule (``empty_query``, ``leading_keyword``,
            ``denied_keyword`` or ``restricted_statement``)
    """

    def __init__(
        self,
        message: str,
        *,
        rule: str,
        code: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
    ) -> None:
        super().__init__(message, code=code, context=context, cause=cause)
        self.rule = rule


class QueryExecutionError(QueryGateException):
    """Driver-level failure during query execution.

    The driver's message is passed through verbatim as ``message``.
    """
    pass


class UnsupportedFeatureError(QueryGateException):
    """Raised when a dialect genuinely lacks a requested capability."""

    def __init__(
        self,
        message: str,
        *,
        dialect: Optional[str] = None,
        feature: Optional[str] = None,
        code: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
    ) -> None:
        super().__init__(message, code=code, context=context, cause=cause)
        self.dialect = dialect
        self.feature = feature


class ObjectNotFoundError(QueryGateException):
    """Raised when a requested table or other catalog object does not exist."""
    pass


# Error code constants for common scenarios
class ErrorCodes:
    """Common error codes for QueryGate exceptions."""

    # Configuration errors
    CONFIG_NOT_FOUND = "CONFIG_NOT_FOUND"
    CONFIG_INVALID = "CONFIG_INVALID"
    CONFIG_VALIDATION_FAILED = "CONFIG_VALIDATION_FAILED"
    UNRECOGNIZED_DIALECT = "UNRECOGNIZED_DIALECT"
    INVALID_IDENTIFIER = "INVALID_IDENTIFIER"

    # Connection errors
    CONNECTION_TIMEOUT = "CONNECTION_TIMEOUT"
    AUTH_FAILED = "AUTH_FAILED"
    SSL_NEGOTIATION_FAILED = "SSL_NEGOTIATION_FAILED"
    NETWORK_UNREACHABLE = "NETWORK_UNREACHABLE"
    NOT_CONNECTED = "NOT_CONNECTED"

    # Query errors
    QUERY_EXECUTION_FAILED = "QUERY_EXECUTION_FAILED"
    UNSAFE_QUERY = "UNSAFE_QUERY"
    OBJECT_NOT_FOUND = "OBJECT_NOT_FOUND"
    UNSUPPORTED_FEATURE = "UNSUPPORTED_FEATURE"

    # Component lifecycle
    INIT_FAILED = "INIT_FAILED"


REASON_ERROR_CODES: Dict[ConnectionFailureReason, str] = {
    ConnectionFailureReason.TIMEOUT: ErrorCodes.CONNECTION_TIMEOUT,
    ConnectionFailureReason.AUTH: ErrorCodes.AUTH_FAILED,
    ConnectionFailureReason.SSL: ErrorCodes.SSL_NEGOTIATION_FAILED,
    ConnectionFailureReason.UNREACHABLE: ErrorCodes.NETWORK_UNREACHABLE,
}

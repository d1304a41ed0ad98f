"""QueryGate core framework.

Base component classes, the exception hierarchy and shared utilities.

Example:
    >>> from querygate.core import AsyncComponent, QueryGateException
"""

from .base import AsyncComponent, BaseComponent
from .exceptions import (
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
from .utils import StringUtils, ValidationUtils

__all__ = [
    # Base classes
    "AsyncComponent",
    "BaseComponent",

    # Exceptions
    "ConfigurationError",
    "ConnectionError",
    "ConnectionFailureReason",
    "ErrorCodes",
    "InvalidIdentifierError",
    "ObjectNotFoundError",
    "QueryExecutionError",
    "QueryGateException",
    "SecurityError",
    "UnrecognizedDialectError",
    "UnsafeQueryError",
    "UnsupportedFeatureError",
    "ValidationError",

    # Utilities
    "StringUtils",
    "ValidationUtils",
]

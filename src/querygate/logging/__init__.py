"""QueryGate structured logging framework.

Classes:
    StructuredLogger: Main structured logging interface
    PerformanceLogger: Operation timing and aggregates
    LoggerFactory: Logger creation and configuration

Example:
    >>> from querygate.logging import get_logger, get_performance_logger
    >>> logger = get_logger(__name__)
    >>> logger.info("Session opened", dialect="sqlite")
    >>>
    >>> perf_logger = get_performance_logger("adapter.sqlite.default")
    >>> with perf_logger.measure("query"):
    ...     pass
"""

from .factory import (
    LoggerConfig,
    LoggerFactory,
    configure_logging,
    get_factory,
    get_logger,
    get_performance_logger,
    redact_credentials,
    shutdown_logging,
)
from .formatters import JSONFormatter, TextFormatter, get_formatter
from .handlers import ConsoleHandler, RotatingFileHandler
from .performance import PerformanceLogger, PerformanceMetrics, TimingContext
from .structured import LogContext, StructuredLogger

__all__ = [
    # Factory and configuration
    "LoggerConfig",
    "LoggerFactory",
    "configure_logging",
    "get_factory",
    "get_logger",
    "get_performance_logger",
    "redact_credentials",
    "shutdown_logging",

    # Formatters
    "JSONFormatter",
    "TextFormatter",
    "get_formatter",

    # Handlers
    "ConsoleHandler",
    "RotatingFileHandler",

    # Performance logging
    "PerformanceLogger",
    "PerformanceMetrics",
    "TimingContext",

    # Structured logging
    "LogContext",
    "StructuredLogger",
]

"""Logger factory and configuration for QueryGate.

This module provides centralized logger creation and configuration for the
QueryGate logging system. Console output goes to stderr and every event
passes through a credential-redaction processor before rendering.

Classes:
    LoggerFactory: Main logger factory and configuration manager
    LoggerConfig: Configuration for logger instances

Functions:
    configure_logging: Configure logging system globally
    get_logger: Convenience function for getting loggers
    get_performance_logger: Convenience function for performance loggers
    redact_credentials: structlog processor masking connection credentials

Example:
    >>> from querygate.logging import get_logger, configure_logging
    >>> configure_logging(level="INFO", format="json")
    >>> logger = get_logger(__name__)
    >>> logger.info("Session opened", dialect="postgresql")
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

import structlog

from .formatters import get_formatter
from .handlers import ConsoleHandler, RotatingFileHandler
from .performance import PerformanceLogger
from .structured import StructuredLogger
from ..config.models import LoggingConfig
from ..core.exceptions import ValidationError
from ..core.utils import StringUtils


@dataclass
class LoggerConfig:
    """Configuration for logger instances.

    Attributes:
        level: Log level
        format: Log format (json, text)
        console_output: Enable console (stderr) output
        file_output: Enable file output
        file_path: Log file path
        max_file_size: Maximum file size before rotation
        backup_count: Number of backup files to keep
        correlation_ids: Enable correlation ID tracking
    """
    level: str = "INFO"
    format: str = "json"
    console_output: bool = True
    file_output: bool = False
    file_path: Optional[str] = None
    max_file_size: int = 10485760  # 10MB
    backup_count: int = 5
    correlation_ids: bool = True


def redact_credentials(logger: Any, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
    """structlog processor that masks ``user:password@`` in string values."""
    for key, value in event_dict.items():
        if isinstance(value, str):
            event_dict[key] = StringUtils.mask_credentials(value)
    return event_dict


class LoggerFactory:
    """Factory for creating and configuring QueryGate loggers.

    Attributes:
        config: Default logger configuration
        initialized: Whether the logging system has been configured

    Example:
        >>> factory = LoggerFactory()
        >>> factory.configure_from_config(settings.logging)
        >>> logger = factory.get_logger("adapter.mysql.default")
    """

    def __init__(self, config: Optional[LoggerConfig] = None) -> None:
        self.config = config or LoggerConfig()
        self.initialized = False
        self._loggers: Dict[str, StructuredLogger] = {}
        self._performance_loggers: Dict[str, PerformanceLogger] = {}

    def configure_from_config(self, logging_config: LoggingConfig) -> None:
        """Configure factory from a LoggingConfig instance."""
        self.config = LoggerConfig(
            level=logging_config.level,
            format=logging_config.format,
            console_output=logging_config.console_output,
            file_output=logging_config.file_path is not None,
            file_path=str(logging_config.file_path) if logging_config.file_path else None,
            max_file_size=logging_config.max_file_size,
            backup_count=logging_config.backup_count,
        )

        self._configure_logging_system(force=True)

    def configure_from_dict(self, config_dict: Dict[str, Any]) -> None:
        """Configure factory from dictionary.

        Unknown keys are ignored.
        """
        for key, value in config_dict.items():
            if hasattr(self.config, key):
                setattr(self.config, key, value)

        self._configure_logging_system(force=True)

    def _configure_logging_system(self, *, force: bool = False) -> None:
        if self.initialized and not force:
            return

        self._configure_stdlib_logging()
        self._configure_structlog()

        self.initialized = True

    def _configure_stdlib_logging(self) -> None:
        level = getattr(logging, self.config.level.upper(), logging.INFO)
        root_logger = logging.getLogger()
        root_logger.setLevel(level)

        for handler in list(root_logger.handlers):
            root_logger.removeHandler(handler)
            handler.close()

        handlers: List[logging.Handler] = []

        if self.config.console_output:
            handlers.append(ConsoleHandler(colors=self.config.format != "json"))

        if self.config.file_output and self.config.file_path:
            handlers.append(
                RotatingFileHandler(
                    filename=Path(self.config.file_path),
                    maxBytes=self.config.max_file_size,
                    backupCount=self.config.backup_count,
                )
            )

        for handler in handlers:
            handler.setLevel(level)
            handler.setFormatter(get_formatter(self.config.format))
            root_logger.addHandler(handler)

    def _configure_structlog(self) -> None:
        processors: List[Any] = [
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            redact_credentials,
        ]

        if self.config.format.lower() == "json":
            processors.append(structlog.processors.JSONRenderer())
        else:
            processors.append(structlog.dev.ConsoleRenderer(colors=False))

        structlog.configure(
            processors=processors,
            wrapper_class=structlog.stdlib.BoundLogger,
            logger_factory=structlog.stdlib.LoggerFactory(),
            context_class=dict,
            cache_logger_on_first_use=True,
        )

    def get_logger(
        self,
        name: str,
        *,
        level: Optional[str] = None,
        enable_correlation: Optional[bool] = None,
    ) -> StructuredLogger:
        """Get or create a structured logger.

        Args:
            name: Logger name
            level: Override default log level
            enable_correlation: Override correlation ID setting
        """
        if not self.initialized:
            self._configure_logging_system()

        cache_key = f"{name}_{level}_{enable_correlation}"
        if cache_key not in self._loggers:
            self._loggers[cache_key] = StructuredLogger(
                name=name,
                level=level or self.config.level,
                enable_correlation=(
                    enable_correlation if enable_correlation is not None else self.config.correlation_ids
                ),
            )

        return self._loggers[cache_key]

    def get_performance_logger(
        self,
        name: str,
        *,
        auto_log: Optional[bool] = None,
        track_metrics: bool = True,
    ) -> PerformanceLogger:
        """Get or create a performance logger.

        Args:
            name: Logger name
            auto_log: Whether to automatically log timing results
            track_metrics: Whether to track aggregated metrics
        """
        if not self.initialized:
            self._configure_logging_system()

        cache_key = f"{name}_{auto_log}_{track_metrics}"
        if cache_key not in self._performance_loggers:
            self._performance_loggers[cache_key] = PerformanceLogger(
                name=name,
                auto_log=auto_log if auto_log is not None else True,
                track_metrics=track_metrics,
                logger=self.get_logger(f"perf.{name}"),
            )

        return self._performance_loggers[cache_key]

    def set_level(self, level: str, logger_name: Optional[str] = None) -> None:
        """Set log level for a specific logger or all loggers.

        Raises:
            ValidationError: If the level name is unknown
        """
        log_level = logging.getLevelName(level.upper())
        if not isinstance(log_level, int):
            raise ValidationError(f"Invalid log level: {level}")

        if logger_name:
            logging.getLogger(logger_name).setLevel(log_level)
            return

        self.config.level = level.upper()
        for logger in self._loggers.values():
            logger.set_level(level)
        logging.getLogger().setLevel(log_level)

    def get_logger_info(self) -> Dict[str, Any]:
        """Describe the current logging configuration."""
        return {
            "config": {
                "level": self.config.level,
                "format": self.config.format,
                "console_output": self.config.console_output,
                "file_output": self.config.file_output,
                "file_path": self.config.file_path,
            },
            "initialized": self.initialized,
            "loggers": {
                "structured": list(self._loggers.keys()),
                "performance": list(self._performance_loggers.keys()),
            },
            "handlers": [type(handler).__name__ for handler in logging.getLogger().handlers],
        }

    def shutdown(self) -> None:
        """Clear caches and release handler resources."""
        self._loggers.clear()
        self._performance_loggers.clear()

        root_logger = logging.getLogger()
        for handler in list(root_logger.handlers):
            handler.flush()
            handler.close()
            root_logger.removeHandler(handler)

        self.initialized = False

    def __repr__(self) -> str:
        return (
            f"LoggerFactory("
            f"level={self.config.level!r}, "
            f"format={self.config.format!r}, "
            f"initialized={self.initialized})"
        )


# Global logger factory instance
_global_factory = LoggerFactory()


def configure_logging(
    *,
    level: str = "INFO",
    format: str = "json",
    console_output: bool = True,
    file_path: Optional[str] = None,
    **kwargs: Any,
) -> None:
    """Configure QueryGate logging globally.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        format: Log format (json, text)
        console_output: Enable stderr output
        file_path: Optional rotating log file
        **kwargs: Additional LoggerConfig options

    Example:
        >>> configure_logging(level="DEBUG", format="text")
    """
    _global_factory.configure_from_dict({
        "level": level,
        "format": format,
        "console_output": console_output,
        "file_output": file_path is not None,
        "file_path": file_path,
        **kwargs,
    })


def get_logger(
    name: str,
    *,
    level: Optional[str] = None,
    enable_correlation: Optional[bool] = None,
) -> StructuredLogger:
    """Get or create a structured logger using the global factory.

    Example:
        >>> logger = get_logger(__name__)
        >>> logger.info("Adapter created", dialect="sqlite")
    """
    return _global_factory.get_logger(name=name, level=level, enable_correlation=enable_correlation)


def get_performance_logger(
    name: str,
    *,
    auto_log: Optional[bool] = None,
    track_metrics: bool = True,
) -> PerformanceLogger:
    """Get or create a performance logger using the global factory.

    Example:
        >>> perf_logger = get_performance_logger("adapter.sqlite.default")
        >>> with perf_logger.measure("query"):
        ...     ...
    """
    return _global_factory.get_performance_logger(
        name=name,
        auto_log=auto_log,
        track_metrics=track_metrics,
    )


def get_factory() -> LoggerFactory:
    """Return the global logger factory instance."""
    return _global_factory


def shutdown_logging() -> None:
    """Shutdown the global logging system."""
    _global_factory.shutdown()

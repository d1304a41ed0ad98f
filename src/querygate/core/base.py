"""Base classes for QueryGate components.

This module provides the foundational abstract base classes that QueryGate
components inherit from, ensuring consistent configuration handling,
lifecycle management and health reporting.

Classes:
    BaseComponent: Generic base class for all QueryGate components
    AsyncComponent: Base class for async-capable components

Example:
    >>> class PostgreSQLAdapter(AsyncComponent[ConnectionConfig]):
    ...     async def _async_initialize(self) -> None:
    ...         self._connection = await asyncpg.connect(...)
"""

import asyncio
import time
from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, ClassVar, Dict, Generic, TypeVar

import structlog

from .exceptions import (
    ConfigurationError,
    ErrorCodes,
    QueryGateException,
    ValidationError,
)


# Type variable for configuration objects
T = TypeVar("T")


class BaseComponent(Generic[T], ABC):
    """Base class for all QueryGate components.

    Type Parameters:
        T: Type of configuration object this component accepts

    Attributes:
        component_name: Name of the component for logging and identification
        version: Component version for compatibility checking
    """

    # Class-level component metadata
    component_name: ClassVar[str] = "BaseComponent"
    version: ClassVar[str] = "1.0.0"

    def __init__(self, config: T) -> None:
        """Initialize base component.

        Args:
            config: Configuration object for this component

        Raises:
            ValidationError: If configuration is None
            ConfigurationError: If configuration fails component validation
        """
        if config is None:
            raise ValidationError(
                "Configuration cannot be None",
                code="CONFIG_NULL",
                context={"component": self.component_name},
            )

        self._config: T = config
        self._initialized: bool = False
        self._creation_time: float = time.time()
        self._logger = structlog.get_logger(self.__class__.__name__)

        if not self.validate_config():
            raise ConfigurationError(
                f"Invalid configuration for {self.component_name}",
                code=ErrorCodes.CONFIG_INVALID,
                context={"component": self.component_name},
            )

    @property
    def config(self) -> T:
        """Get component configuration."""
        return self._config

    @property
    def is_initialized(self) -> bool:
        """Check if component is initialized."""
        return self._initialized

    @property
    def uptime(self) -> float:
        """Get component uptime in seconds."""
        return time.time() - self._creation_time

    def validate_config(self) -> bool:
        """Validate component configuration.

        Subclasses should override this method to implement
        component-specific configuration validation.

        Returns:
            True if configuration is valid
        """
        return self._config is not None

    def get_health_status(self) -> Dict[str, Any]:
        """Get component health status.

        Returns:
            Dictionary containing component health information
        """
        return {
            "component": self.component_name,
            "version": self.version,
            "initialized": self._initialized,
            "uptime_seconds": self.uptime,
            "status": "healthy" if self._initialized else "not_initialized",
        }

    def __repr__(self) -> str:
        """Return string representation of component."""
        return (
            f"{self.__class__.__name__}("
            f"name={self.component_name!r}, "
            f"initialized={self._initialized}, "
            f"uptime={self.uptime:.2f}s)"
        )


class AsyncComponent(BaseComponent[T]):
    """Base class for async-capable components.

    This class provides async initialization and cleanup support for
    components that perform I/O. Initialization and cleanup are each guarded
    by a lock so concurrent callers cannot run them twice.
    """

    def __init__(self, config: T) -> None:
        """Initialize async component.

        Args:
            config: Configuration object for this component
        """
        super().__init__(config)
        self._initialization_lock = asyncio.Lock()
        self._cleanup_lock = asyncio.Lock()

    async def initialize(self) -> None:
        """Initialize component asynchronously.

        QueryGate exceptions raised by ``_async_initialize`` propagate
        unchanged; anything else is wrapped with code ``INIT_FAILED``.

        Raises:
            QueryGateException: If initialization fails
        """
        async with self._initialization_lock:
            if self._initialized:
                return

            self._logger.info("Initializing component", component=self.component_name)

            try:
                await self._async_initialize()
            except QueryGateException as e:
                self._logger.error(
                    "Component initialization failed",
                    component=self.component_name,
                    error=e.message,
                    code=e.code,
                )
                raise
            except Exception as e:
                self._logger.error(
                    "Component initialization failed",
                    component=self.component_name,
                    error=str(e),
                )
                raise QueryGateException(
                    f"Failed to initialize {self.component_name}: {e}",
                    code=ErrorCodes.INIT_FAILED,
                    context={"component": self.component_name},
                    cause=e,
                ) from e

            self._initialized = True
            self._logger.info(
                "Component initialized successfully",
                component=self.component_name,
            )

    async def cleanup(self) -> None:
        """Clean up component resources asynchronously.

        Calling cleanup on a component that is not initialized is a no-op.
        Errors raised while releasing resources are logged and the component
        is still marked as not initialized.
        """
        async with self._cleanup_lock:
            if not self._initialized:
                return

            self._logger.info("Cleaning up component", component=self.component_name)

            try:
                await self._async_cleanup()
            except Exception as e:
                self._logger.error(
                    "Component cleanup failed",
                    component=self.component_name,
                    error=str(e),
                )
            finally:
                self._initialized = False

            self._logger.info(
                "Component cleaned up",
                component=self.component_name,
            )

    @abstractmethod
    async def _async_initialize(self) -> None:
        """Perform async initialization work."""
        pass

    async def _async_cleanup(self) -> None:
        """Perform async cleanup work."""
        pass

    @asynccontextmanager
    async def managed_lifecycle(self) -> AsyncGenerator["AsyncComponent[T]", None]:
        """Context manager for automatic lifecycle management.

        Yields:
            The initialized component

        Example:
            >>> async with adapter.managed_lifecycle() as db:
            ...     await db.query("SELECT 1")
        """
        try:
            await self.initialize()
            yield self
        finally:
            await self.cleanup()

    async def __aenter__(self) -> "AsyncComponent[T]":
        """Async context manager entry."""
        await self.initialize()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Async context manager exit."""
        await self.cleanup()

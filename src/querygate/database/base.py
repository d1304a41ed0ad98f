"""Base class for QueryGate database adapters.

Every adapter owns exactly one driver connection, opened by ``connect()``
and reused sequentially for every query until ``close()``. Queries on the
same adapter are serialized with an asyncio lock.
"""

import asyncio
import ssl
from abc import ABC, abstractmethod
from typing import Any, ClassVar, Dict, Optional, Sequence, Tuple, Type

from .detection import parse_connection_string
from .models import DialectKind, InfoQuerySet, QueryResult, SchemaQuerySet
from .ssl import describe_policy
from ..config.models import ConnectionConfig
from ..core import AsyncComponent
from ..core.exceptions import (
    REASON_ERROR_CODES,
    ConnectionError,
    ConnectionFailureReason,
    ErrorCodes,
    QueryExecutionError,
)
from ..logging import get_logger, get_performance_logger

TIMEOUT_HINT = "Check your network connection and database availability"
SSL_HINT = "SSL negotiation failed; check whether the server requires SSL and accepts its certificate"
AUTH_HINT = "Check your username and password"
UNREACHABLE_HINT = "Check that the database server is running and reachable"


class BaseDatabaseAdapter(AsyncComponent[ConnectionConfig], ABC):
    """Abstract base class for all dialect adapters.

    Class attributes:
        dialect: DialectKind served by the adapter
        driver_errors: Driver exception types converted to QueryExecutionError
        restricted_statements: Extra statements denied for this dialect

    Example:
        >>> adapter = create_adapter("./local.sqlite")
        >>> await adapter.connect()
        >>> result = await adapter.query("SELECT 1 AS one")
        >>> result.rows
        [{'one': 1}]
    """

    component_name: ClassVar[str] = "BaseDatabaseAdapter"
    dialect: ClassVar[DialectKind]
    driver_errors: ClassVar[Tuple[Type[BaseException], ...]] = ()
    restricted_statements: ClassVar[Tuple[str, ...]] = ()

    def __init__(self, config: ConnectionConfig) -> None:
        super().__init__(config)
        self.params = parse_connection_string(config.connection_string.get_secret_value())
        self.logger = get_logger(f"adapter.{self.dialect.value}.{config.id}")
        self.perf_logger = get_performance_logger(f"adapter.{self.dialect.value}.{config.id}")

        self._connection: Any = None
        self._query_lock = asyncio.Lock()
        self._server_version: Optional[str] = None

    def validate_config(self) -> bool:
        return self._config is not None and self._config.dialect == self.dialect.value

    # Lifecycle

    async def connect(self) -> None:
        """Open the connection, re-opening it if the driver handle dropped.

        Raises:
            ConnectionError: With ``reason`` timeout, auth, ssl or unreachable
        """
        if self.is_initialized and not self.get_connection_status():
            self.logger.warning("Connection handle dropped, reopening")
            await self.cleanup()

        await self.initialize()

    async def close(self) -> None:
        """Release the connection. Calling close twice is a no-op.

        Errors raised by the driver while closing are logged as
        ``Component cleanup failed`` and not re-raised; the adapter is
        marked disconnected either way.
        """
        await self.cleanup()

    async def _async_initialize(self) -> None:
        operation = self.logger.log_operation_start(
            "connect",
            dialect=self.dialect.value,
            ssl=describe_policy(self.config.ssl_policy, self.dialect),
        )

        try:
            self._connection = await asyncio.wait_for(
                self._open_connection(),
                timeout=self.config.connect_timeout,
            )
        except asyncio.TimeoutError as e:
            error = self._connection_error(
                ConnectionFailureReason.TIMEOUT,
                f"Connection to {self.dialect.display_name} timed out after "
                f"{self.config.connect_timeout_ms} ms",
                TIMEOUT_HINT,
                e,
            )
            self.logger.log_operation_failure(operation, error, reason=error.reason.value)
            raise error from e
        except ConnectionError as e:
            self.logger.log_operation_failure(operation, e, reason=e.reason.value if e.reason else None)
            raise
        except Exception as e:
            reason, hint = self._classify_connection_error(e)
            error = self._connection_error(
                reason,
                f"Failed to connect to {self.dialect.display_name}: {e}",
                hint,
                e,
            )
            self.logger.log_operation_failure(operation, error, reason=reason.value, hint=hint)
            raise error from e

        self.logger.log_operation_success(operation, server_version=self._server_version)

    async def _async_cleanup(self) -> None:
        connection, self._connection = self._connection, None
        if connection is not None:
            await self._close_connection(connection)
            self.logger.info("Connection closed", dialect=self.dialect.value)

    def _connection_error(
        self,
        reason: ConnectionFailureReason,
        message: str,
        hint: str,
        cause: Optional[Exception] = None,
    ) -> ConnectionError:
        return ConnectionError(
            message,
            reason=reason,
            hint=hint,
            code=REASON_ERROR_CODES[reason],
            context={
                "dialect": self.dialect.value,
                "host": self.params.host,
                "database": self.params.database or self.params.path,
            },
            cause=cause,
        )

    def _classify_connection_error(self, exc: Exception) -> Tuple[ConnectionFailureReason, str]:
        """Map a connect-time exception to a failure reason and hint."""
        if isinstance(exc, (asyncio.TimeoutError, TimeoutError)):
            return ConnectionFailureReason.TIMEOUT, TIMEOUT_HINT

        classified = self._classify_driver_error(exc)
        if classified is not None:
            return classified

        message = str(exc).lower()
        if isinstance(exc, ssl.SSLError) or "certificate" in message or "ssl" in message:
            return ConnectionFailureReason.SSL, SSL_HINT
        if "timeout" in message or "timed out" in message:
            return ConnectionFailureReason.TIMEOUT, TIMEOUT_HINT
        if "password" in message or "authentication" in message or "access denied" in message:
            return ConnectionFailureReason.AUTH, AUTH_HINT
        return ConnectionFailureReason.UNREACHABLE, UNREACHABLE_HINT

    def _classify_driver_error(
        self, exc: Exception
    ) -> Optional[Tuple[ConnectionFailureReason, str]]:
        """Dialect-specific classification; None falls back to message matching."""
        return None

    # Status

    def get_connection_status(self) -> bool:
        """True after a successful connect, before close, while the handle is open."""
        return self.is_initialized and self._connection is not None and self._connection_is_open()

    def get_type(self) -> DialectKind:
        return self.dialect

    def get_connection_info(self) -> Dict[str, Any]:
        """Masked connection summary for diagnostics."""
        return {
            "dialect": self.dialect.value,
            "display_name": self.dialect.display_name,
            "host": self.params.host,
            "port": self.params.port,
            "database": self.params.database or self.params.path,
            "connected": self.get_connection_status(),
            "server_version": self._server_version,
            "ssl_enabled": self.config.ssl_policy.enabled,
            "connection": self.config.masked_connection_string,
        }

    def get_health_status(self) -> Dict[str, Any]:
        status = super().get_health_status()
        status["connection"] = self.get_connection_info()
        status["performance"] = self.perf_logger.get_summary()
        return status

    # Queries

    async def query(self, sql: str, params: Optional[Sequence[Any]] = None) -> QueryResult:
        """Execute a statement on the single connection.

        Args:
            sql: Statement text using the driver's placeholder style
            params: Positional parameters

        Raises:
            ConnectionError: If the adapter is not connected
            QueryExecutionError: If the driver rejects the statement; the
                driver's message is preserved verbatim
        """
        if not self.get_connection_status():
            raise ConnectionError(
                "Database not connected",
                code=ErrorCodes.NOT_CONNECTED,
                context={"dialect": self.dialect.value},
            )

        async with self._query_lock:
            with self.perf_logger.measure("query", dialect=self.dialect.value) as timer:
                try:
                    result = await self._execute(sql, list(params) if params else [])
                except self.driver_errors as e:
                    raise QueryExecutionError(
                        str(e),
                        code=ErrorCodes.QUERY_EXECUTION_FAILED,
                        context={"dialect": self.dialect.value},
                        cause=e,
                    ) from e

        result.execution_time = timer.duration or 0.0
        return result

    # Dialect hooks

    @abstractmethod
    async def _open_connection(self) -> Any:
        """Open and return the driver connection."""

    @abstractmethod
    async def _close_connection(self, connection: Any) -> None:
        """Close a driver connection."""

    @abstractmethod
    def _connection_is_open(self) -> bool:
        """Whether the driver reports the current handle as open."""

    @abstractmethod
    async def _execute(self, sql: str, params: Sequence[Any]) -> QueryResult:
        """Run a statement on the open connection."""

    @abstractmethod
    def get_schema_queries(self) -> SchemaQuerySet:
        """Return the dialect's catalog templates."""

    @abstractmethod
    def get_info_queries(self) -> InfoQuerySet:
        """Return the dialect's server information queries."""

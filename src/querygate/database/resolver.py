"""Connection config resolution.

Turns a connection string plus process settings into an immutable
ConnectionConfig: timeouts, the single-connection limit and the SSL policy.
"""

from typing import Optional

from .detection import parse_connection_string
from .ssl import describe_policy, resolve_ssl_policy
from ..config.models import ConnectionConfig, Settings
from ..core.exceptions import ConfigurationError, ErrorCodes
from ..logging import get_logger


class ConnectionConfigResolver:
    """Resolve ConnectionConfig objects from connection strings.

    Example:
        >>> resolver = ConnectionConfigResolver(Settings(skip_tls_verify=True))
        >>> resolver.resolve("mysql://app@localhost/app").ssl_policy.enabled
        True
    """

    def __init__(self, settings: Optional[Settings] = None) -> None:
        self.settings = settings or Settings.from_env()
        self.logger = get_logger("database.resolver")

    def connection_string(self, connection_string: Optional[str] = None) -> str:
        """Pick the explicit connection string, falling back to DATABASE_URL.

        Raises:
            ConfigurationError: If neither is available
        """
        if connection_string and connection_string.strip():
            return connection_string.strip()

        if self.settings.database_url is not None:
            configured = self.settings.database_url.get_secret_value().strip()
            if configured:
                return configured

        raise ConfigurationError(
            "No connection string provided and DATABASE_URL is not set",
            code=ErrorCodes.CONFIG_NOT_FOUND,
        )

    def resolve(
        self,
        connection_string: Optional[str] = None,
        *,
        connection_id: str = "default",
    ) -> ConnectionConfig:
        """Resolve a ConnectionConfig.

        Args:
            connection_string: Explicit connection string (else DATABASE_URL)
            connection_id: Identifier used in adapter logger names

        Raises:
            ConfigurationError: If no connection string is available
            UnrecognizedDialectError: If the dialect cannot be detected
        """
        raw = self.connection_string(connection_string)
        params = parse_connection_string(raw)
        policy = resolve_ssl_policy(params, skip_tls_verify=self.settings.skip_tls_verify)

        config = ConnectionConfig(
            id=connection_id,
            connection_string=raw,
            dialect=params.dialect.value,
            connect_timeout_ms=self.settings.connect_timeout_ms,
            idle_timeout_ms=self.settings.idle_timeout_ms,
            ssl_policy=policy,
        )

        self.logger.debug(
            "Connection config resolved",
            dialect=config.dialect,
            connection=config.masked_connection_string,
            ssl=describe_policy(policy, params.dialect),
            connect_timeout_ms=config.connect_timeout_ms,
        )
        return config


def resolve_connection_config(
    connection_string: Optional[str] = None,
    *,
    settings: Optional[Settings] = None,
    connection_id: str = "default",
) -> ConnectionConfig:
    """Resolve a ConnectionConfig with a one-off resolver."""
    return ConnectionConfigResolver(settings).resolve(connection_string, connection_id=connection_id)

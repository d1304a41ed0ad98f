"""Adapter factory for QueryGate."""

from typing import Dict, List, Optional, Union

from .base import BaseDatabaseAdapter
from .detection import (
    detect_dialect,
    get_connection_string_examples,
    get_display_name,
    validate_connection_string,
)
from .models import DialectKind
from .registry import AdapterRegistry, default_registry
from .resolver import ConnectionConfigResolver
from ..config.models import Settings
from ..core.exceptions import ErrorCodes, ValidationError
from ..core.utils import StringUtils
from ..logging import get_logger


class DatabaseAdapterFactory:
    """Create dialect adapters from connection strings.

    Creation never opens a connection; call ``connect()`` on the result.

    Example:
        >>> factory = DatabaseAdapterFactory()
        >>> adapter = factory.create("./local.sqlite")
        >>> adapter.get_type()
        <DialectKind.SQLITE: 'sqlite'>
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        registry: Optional[AdapterRegistry] = None,
    ) -> None:
        self.logger = get_logger("database.factory")
        self._settings = settings
        self._registry = registry or default_registry

    def create(
        self,
        connection_string: Optional[str] = None,
        *,
        connection_id: str = "default",
    ) -> BaseDatabaseAdapter:
        """Detect, validate, resolve and instantiate.

        Args:
            connection_string: Connection string (DATABASE_URL when omitted)
            connection_id: Identifier used in adapter logger names

        Raises:
            ConfigurationError: If no connection string is available
            UnrecognizedDialectError: If the dialect cannot be detected
            ValidationError: Listing every structural problem found
        """
        resolver = ConnectionConfigResolver(self._settings)
        raw = resolver.connection_string(connection_string)
        masked = StringUtils.mask_credentials(raw)

        dialect = detect_dialect(raw)
        validation = validate_connection_string(raw)
        if not validation.is_valid:
            self.logger.warning(
                "Connection string failed validation",
                dialect=dialect.value,
                connection=masked,
                errors=validation.errors,
            )
            raise ValidationError(
                f"Invalid {dialect.display_name} connection string: {'; '.join(validation.errors)}",
                errors=validation.errors,
                code=ErrorCodes.CONFIG_VALIDATION_FAILED,
                context={"dialect": dialect.value},
            )

        config = resolver.resolve(raw, connection_id=connection_id)
        adapter_class = self._registry.get_adapter_class(dialect)
        adapter = adapter_class(config)

        self.logger.info(
            "Database adapter created",
            dialect=dialect.value,
            adapter=adapter_class.__name__,
            connection=masked,
        )
        return adapter

    def get_supported_dialects(self) -> Dict[str, Dict[str, str]]:
        return self._registry.list_adapters()

    def is_dialect_supported(self, dialect: Union[str, DialectKind]) -> bool:
        return self._registry.is_supported(dialect)


def create_adapter(
    connection_string: Optional[str] = None,
    *,
    settings: Optional[Settings] = None,
    connection_id: str = "default",
) -> BaseDatabaseAdapter:
    """Create an adapter using the default registry.

    Args:
        connection_string: Connection string (DATABASE_URL when omitted)
        settings: Process settings (read from the environment when omitted)
        connection_id: Identifier used in adapter logger names
    """
    return DatabaseAdapterFactory(settings).create(connection_string, connection_id=connection_id)


def get_supported_dialects() -> List[str]:
    return default_registry.list_dialects()


def is_dialect_supported(dialect: Union[str, DialectKind]) -> bool:
    return default_registry.is_supported(dialect)


__all__ = [
    "DatabaseAdapterFactory",
    "create_adapter",
    "detect_dialect",
    "get_connection_string_examples",
    "get_display_name",
    "get_supported_dialects",
    "is_dialect_supported",
    "validate_connection_string",
]

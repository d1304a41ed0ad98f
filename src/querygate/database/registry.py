"""Adapter registry mapping dialects to adapter classes."""

from typing import Dict, List, Optional, Type, Union

from .adapters import MySQLAdapter, PostgreSQLAdapter, SnowflakeAdapter, SQLiteAdapter
from .base import BaseDatabaseAdapter
from .models import DialectKind
from ..core.exceptions import ConfigurationError, ErrorCodes, UnrecognizedDialectError
from ..logging import get_logger


class AdapterRegistry:
    """Registry of adapter classes keyed by dialect.

    The default registry covers every DialectKind; ``verify_complete`` is
    run when the module is imported so a dialect without an adapter fails
    immediately rather than at first use.
    """

    def __init__(self) -> None:
        self.logger = get_logger("database.registry")
        self._adapters: Dict[DialectKind, Type[BaseDatabaseAdapter]] = {}

    def register(self, adapter_class: Type[BaseDatabaseAdapter]) -> None:
        """Register an adapter class under its ``dialect``.

        Raises:
            ConfigurationError: If the class is not a BaseDatabaseAdapter
        """
        if not (isinstance(adapter_class, type) and issubclass(adapter_class, BaseDatabaseAdapter)):
            raise ConfigurationError(
                f"Adapter class {adapter_class!r} must extend BaseDatabaseAdapter",
                code=ErrorCodes.CONFIG_INVALID,
            )

        dialect = adapter_class.dialect
        if dialect in self._adapters:
            self.logger.warning(
                "Overriding existing adapter registration",
                dialect=dialect.value,
                existing_class=self._adapters[dialect].__name__,
                new_class=adapter_class.__name__,
            )

        self._adapters[dialect] = adapter_class
        self.logger.debug(
            "Adapter registered",
            dialect=dialect.value,
            class_name=adapter_class.__name__,
        )

    def get_adapter_class(self, dialect: Union[str, DialectKind]) -> Type[BaseDatabaseAdapter]:
        """Return the adapter class for a dialect.

        Raises:
            UnrecognizedDialectError: If no adapter serves the dialect
        """
        kind = _coerce(dialect)
        if kind is None or kind not in self._adapters:
            raise UnrecognizedDialectError(
                f"No adapter registered for dialect: {dialect}",
                code=ErrorCodes.UNRECOGNIZED_DIALECT,
                context={"supported": self.list_dialects()},
            )
        return self._adapters[kind]

    def is_supported(self, dialect: Union[str, DialectKind]) -> bool:
        kind = _coerce(dialect)
        return kind is not None and kind in self._adapters

    def list_dialects(self) -> List[str]:
        return [kind.value for kind in DialectKind if kind in self._adapters]

    def list_adapters(self) -> Dict[str, Dict[str, str]]:
        """Describe every registered adapter."""
        return {
            kind.value: {
                "class_name": adapter_class.__name__,
                "display_name": kind.display_name,
                "version": adapter_class.version,
            }
            for kind, adapter_class in self._adapters.items()
        }

    def verify_complete(self) -> None:
        """Raise if any DialectKind lacks an adapter.

        Raises:
            ConfigurationError: Naming the dialects without an adapter
        """
        missing = [kind.value for kind in DialectKind if kind not in self._adapters]
        if missing:
            raise ConfigurationError(
                f"No adapter registered for dialects: {', '.join(missing)}",
                code=ErrorCodes.CONFIG_INVALID,
                context={"missing": missing},
            )


def _coerce(dialect: Union[str, DialectKind]) -> Optional[DialectKind]:
    try:
        return DialectKind(dialect)
    except ValueError:
        return None


def _build_default_registry() -> AdapterRegistry:
    registry = AdapterRegistry()
    for adapter_class in (PostgreSQLAdapter, MySQLAdapter, SQLiteAdapter, SnowflakeAdapter):
        registry.register(adapter_class)
    registry.verify_complete()
    return registry


default_registry = _build_default_registry()

"""Database models shared by the QueryGate adapters."""

from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Any, Dict, List, Optional

from ..core.exceptions import ErrorCodes, UnsupportedFeatureError


class DialectKind(str, Enum):
    """Supported database engines."""

    POSTGRESQL = "postgresql"
    MYSQL = "mysql"
    SQLITE = "sqlite"
    SNOWFLAKE = "snowflake"

    @property
    def display_name(self) -> str:
        return _DISPLAY_NAMES[self]

    @property
    def is_networked(self) -> bool:
        """Whether connections for this dialect travel over a network transport."""
        return self is not DialectKind.SQLITE


_DISPLAY_NAMES = {
    DialectKind.POSTGRESQL: "PostgreSQL",
    DialectKind.MYSQL: "MySQL",
    DialectKind.SQLITE: "SQLite",
    DialectKind.SNOWFLAKE: "Snowflake",
}


@dataclass
class FieldDescriptor:
    """Name and driver-reported type of a result column."""
    name: str
    data_type: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "dataType": self.data_type}


@dataclass
class QueryResult:
    """Standardized query result across all dialects.

    ``row_count`` is the number of rows the engine returned, before any
    truncation applied by the result formatter.
    """
    rows: List[Dict[str, Any]]
    row_count: int
    command: str = "SELECT"
    fields: Optional[List[FieldDescriptor]] = None
    execution_time: float = 0.0

    @property
    def columns(self) -> List[str]:
        if self.fields:
            return [f.name for f in self.fields]
        return list(self.rows[0].keys()) if self.rows else []


@dataclass
class ValidationResult:
    """Outcome of structural connection string validation."""
    is_valid: bool
    errors: List[str] = field(default_factory=list)
    dialect: Optional[DialectKind] = None


@dataclass
class ConnectionParameters:
    """Parsed form of a connection string.

    Attributes:
        dialect: Detected dialect
        host: Hostname (for snowflake, ``<account>.snowflakecomputing.com``)
        port: Port number, when present
        username: User name, when present
        password: Password, when present
        database: Database name (first path segment)
        schema: Schema name (snowflake second path segment)
        path: Filesystem path (sqlite)
        account: Snowflake account identifier
        warehouse: Snowflake warehouse (query parameter)
        role: Snowflake role (query parameter)
        options: Remaining query parameters, keys lower-cased
    """
    dialect: DialectKind
    host: Optional[str] = None
    port: Optional[int] = None
    username: Optional[str] = None
    password: Optional[str] = field(default=None, repr=False)
    database: Optional[str] = None
    schema: Optional[str] = None
    path: Optional[str] = None
    account: Optional[str] = None
    warehouse: Optional[str] = None
    role: Optional[str] = None
    options: Dict[str, str] = field(default_factory=dict)

    def to_dict(self, *, mask_secrets: bool = True) -> Dict[str, Any]:
        data = {f.name: getattr(self, f.name) for f in fields(self)}
        data["dialect"] = self.dialect.value
        if mask_secrets and self.password:
            data["password"] = "***MASKED***"
        return data


@dataclass(frozen=True)
class SchemaQuerySet:
    """Catalog query templates for one dialect.

    The four required templates take the table name as their sole
    positional parameter where one applies. The ``*_for_schema`` variants
    take the schema name instead. Optional templates are None when
    the dialect has no catalog equivalent.
    """
    dialect: DialectKind
    list_tables: str
    list_schemas: str
    describe_table: str
    list_indexes: str
    list_indexes_for_table: Optional[str] = None
    table_constraints: Optional[str] = None
    foreign_keys: Optional[str] = None
    foreign_keys_for_table: Optional[str] = None
    list_functions: Optional[str] = None
    list_functions_for_schema: Optional[str] = None
    table_sizes: Optional[str] = None
    table_sizes_for_schema: Optional[str] = None
    column_statistics: Optional[str] = None
    column_statistics_for_schema: Optional[str] = None

    def has(self, name: str) -> bool:
        return getattr(self, name, None) is not None

    def require(self, name: str) -> str:
        """Return a template, raising if the dialect does not provide it.

        Raises:
            UnsupportedFeatureError: If the template is absent
        """
        template = getattr(self, name, None)
        if template is None:
            raise UnsupportedFeatureError(
                f"{name} is not supported for {self.dialect.display_name}",
                dialect=self.dialect.value,
                feature=name,
                code=ErrorCodes.UNSUPPORTED_FEATURE,
            )
        return template


@dataclass(frozen=True)
class InfoQuerySet:
    """Server information queries for one dialect."""
    dialect: DialectKind
    version: str
    size: Optional[str] = None
    settings: Optional[str] = None
    activity: Optional[str] = None

    def available(self) -> Dict[str, str]:
        """Map each provided info query name to its SQL."""
        return {
            name: sql
            for name, sql in (
                ("version", self.version),
                ("size", self.size),
                ("settings", self.settings),
                ("activity", self.activity),
            )
            if sql is not None
        }

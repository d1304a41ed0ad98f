"""QueryGate configuration models.

Example:
    >>> from querygate.config import Settings
    >>> settings = Settings.from_env()
"""

from .models import (
    BaseConfig,
    ConnectionConfig,
    DialectName,
    LoggingConfig,
    Settings,
    SSLPolicy,
)

__all__ = [
    "BaseConfig",
    "ConnectionConfig",
    "DialectName",
    "LoggingConfig",
    "Settings",
    "SSLPolicy",
]

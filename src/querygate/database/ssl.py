"""SSL policy resolution for networked dialects.

Managed database providers commonly issue certificates that do not verify
against the system trust store. When a connection targets a recognized
managed-cloud host, explicitly asks for SSL, or the global skip-verify
override is set, SSL is enabled with certificate and hostname verification
relaxed. Everything else stays at the driver default.

SQLite has no network transport and always gets the driver default policy.
"""

import ipaddress
import ssl
from typing import Dict, Optional

from .models import ConnectionParameters, DialectKind
from ..config.models import SSLPolicy

MANAGED_CLOUD_DOMAINS = (
    "amazonaws.com",
    "rds.amazonaws.com",
    "database.windows.net",
    "database.azure.com",
    "azure.com",
    "ondigitalocean.com",
    "digitalocean.com",
    "googleusercontent.com",
    "snowflakecomputing.com",
)

_LOCAL_HOSTNAMES = {"localhost", "localhost.localdomain"}


def is_private_host(host: Optional[str]) -> bool:
    """Return True for localhost, loopback and private-range addresses."""
    if not host:
        return False

    host = host.strip("[]").lower()
    if host in _LOCAL_HOSTNAMES:
        return True

    try:
        address = ipaddress.ip_address(host)
    except ValueError:
        return False
    return address.is_private or address.is_loopback


def is_managed_cloud_host(host: Optional[str]) -> bool:
    """Return True if ``host`` belongs to a recognized managed-cloud domain.

    Example:
        >>> is_managed_cloud_host("mydb.abc123.us-east-1.rds.amazonaws.com")
        True
        >>> is_managed_cloud_host("localhost")
        False
    """
    if not host or is_private_host(host):
        return False

    host = host.lower().rstrip(".")
    return any(host == domain or host.endswith(f".{domain}") for domain in MANAGED_CLOUD_DOMAINS)


def requests_ssl(options: Dict[str, str]) -> bool:
    """Return True if the query parameters explicitly require SSL."""
    sslmode = options.get("sslmode", "").lower()
    ssl_flag = options.get("ssl", "").lower()
    ssl_mode = options.get("ssl-mode", "").lower()
    return sslmode == "require" or ssl_flag in ("true", "1") or ssl_mode == "required"


def resolve_ssl_policy(params: ConnectionParameters, *, skip_tls_verify: bool = False) -> SSLPolicy:
    """Derive the SSL policy for a parsed connection string.

    Args:
        params: Parsed connection parameters
        skip_tls_verify: Global override forcing relaxed SSL

    Returns:
        The relaxed policy when any trigger applies, the driver default
        otherwise
    """
    if not params.dialect.is_networked:
        return SSLPolicy.driver_default()

    if (
        skip_tls_verify
        or is_managed_cloud_host(params.host)
        or requests_ssl(params.options)
    ):
        return SSLPolicy.relaxed()

    return SSLPolicy.driver_default()


def build_ssl_context(policy: SSLPolicy) -> Optional[ssl.SSLContext]:
    """Build an ``ssl.SSLContext`` for asyncpg or aiomysql.

    Returns:
        None when SSL is left at the driver default
    """
    if not policy.enabled:
        return None

    context = ssl.create_default_context()
    if policy.skip_hostname_check or not policy.reject_unauthorized:
        context.check_hostname = False
    if not policy.reject_unauthorized:
        context.verify_mode = ssl.CERT_NONE
    return context


def describe_policy(policy: SSLPolicy, dialect: DialectKind) -> str:
    """One-line description of the policy for log output."""
    if not dialect.is_networked:
        return "not applicable"
    if not policy.enabled:
        return "driver default"
    if not policy.reject_unauthorized:
        return "enabled with relaxed certificate verification"
    return "enabled"

"""
URL Utilities

Single place for every URL the service has to understand:
- original URLs submitted for shortening
- the public base URL short links are built on
- the server listen address
- database connection strings
"""

from typing import Tuple
from urllib.parse import urlparse, urlsplit

from sqlalchemy.engine import make_url

MAX_URL_LENGTH = 2048
ALLOWED_SCHEMES = {"http", "https"}
MALICIOUS_PATTERNS = ("javascript:", "data:", "file:", "vbscript:")

_ASYNC_DRIVERS = {
    "postgres": "postgresql+asyncpg",
    "postgresql": "postgresql+asyncpg",
    "sqlite": "sqlite+aiosqlite",
}


def is_valid_url(url: str) -> bool:
    """
    Validate URL format and security.

    Checks that URL uses http/https, has valid domain, and doesn't contain
    malicious patterns. Prevents javascript:, file:, and other dangerous schemes.

    Args:
        url: The URL string to validate

    Returns:
        True if valid and safe, False otherwise
    """
    if not url or not isinstance(url, str):
        return False

    if len(url) > MAX_URL_LENGTH:
        return False

    try:
        result = urlparse(url)
    except ValueError:
        return False

    if not result.scheme or not result.netloc:
        return False

    if result.scheme.lower() not in ALLOWED_SCHEMES:
        return False

    domain = result.hostname or ""
    if domain != "localhost" and "." not in domain:
        return False

    url_lower = url.lower()
    if any(pattern in url_lower for pattern in MALICIOUS_PATTERNS):
        return False

    return True


def normalize_base_url(base_url: str) -> str:
    """
    Normalize the public base URL short links are built on.

    Accepts "localhost:8080" as well as "http://localhost:8080/".

    Returns:
        URL with a scheme and without a trailing slash
    """
    base_url = base_url.strip()
    if not base_url:
        raise ValueError("Base URL must not be empty")

    if "://" not in base_url:
        base_url = f"http://{base_url}"

    parts = urlsplit(base_url)
    if not parts.netloc:
        raise ValueError(f"Base URL has no host: {base_url}")

    return base_url.rstrip("/")


def build_short_url(base_url: str, short_key: str) -> str:
    """Join a normalized base URL and a short key."""
    return f"{normalize_base_url(base_url)}/{short_key}"


def parse_server_address(address: str, default_port: int = 8080) -> Tuple[str, int]:
    """
    Split a listen address into host and port.

    Examples:
        ":8080"                 -> ("0.0.0.0", 8080)
        "localhost:8080"        -> ("localhost", 8080)
        "http://127.0.0.1:9000" -> ("127.0.0.1", 9000)
    """
    address = address.strip()
    if "://" not in address:
        address = f"//{address}"

    parts = urlsplit(address)
    try:
        port = parts.port or default_port
    except ValueError as e:
        raise ValueError(f"Invalid port in server address: {address}") from e

    host = parts.hostname or "0.0.0.0"
    return host, port


def to_async_database_url(dsn: str) -> str:
    """
    Map a database DSN onto the async SQLAlchemy driver for its backend.

    "postgres://u:p@h/db" becomes "postgresql+asyncpg://u:p@h/db".
    DSNs that already name a driver are returned unchanged.
    """
    url = make_url(dsn)
    if "+" in url.drivername:
        return dsn

    drivername = _ASYNC_DRIVERS.get(url.drivername)
    if drivername is None:
        raise ValueError(f"Unsupported database backend: {url.drivername}")

    return url.set(drivername=drivername).render_as_string(hide_password=False)

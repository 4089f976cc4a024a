"""Building the public URLs that go links are reached at."""

from typing import Mapping, Optional

from .validators import ALLOWED_SCHEMES


def _first_hop(value: Optional[str]) -> Optional[str]:
    # Proxy chains append values: "https, http" means the client used https
    if not value:
        return None
    first = value.split(",")[0].strip()
    return first or None


def public_base_url(
    headers: Mapping[str, str],
    fallback_base_url: str,
    request_scheme: Optional[str] = None,
    request_host: Optional[str] = None,
) -> str:
    """Work out the scheme and host clients use to reach the registry.

    Priority:
    1. X-Forwarded-Proto + X-Forwarded-Host (first hop of each)
    2. Request scheme + host
    3. Configured base URL

    A forwarded scheme other than http/https is ignored.

    Args:
        headers: Request headers (any case)
        fallback_base_url: Configured base URL
        request_scheme: Scheme the request arrived with
        request_host: Host header of the request

    Returns:
        Base URL without a trailing slash (e.g., https://go.example.com)
    """
    headers_lower = {k.lower(): v for k, v in headers.items()}
    proto = _first_hop(headers_lower.get("x-forwarded-proto"))
    host = _first_hop(headers_lower.get("x-forwarded-host"))

    if proto and host and proto.lower() in ALLOWED_SCHEMES:
        return f"{proto.lower()}://{host}"

    if request_scheme and request_host:
        return f"{request_scheme}://{request_host}"

    return fallback_base_url.rstrip("/")


def build_short_url(
    key: str,
    base_url: str,
    path_prefix: str = "",
) -> str:
    """Build the public URL that redirects to a key's target.

    Args:
        key: The go link key
        base_url: Base URL (e.g., https://go.example.com)
        path_prefix: Optional path prefix (e.g., /v)

    Returns:
        Complete short URL
    """
    base = base_url.rstrip("/")
    prefix = path_prefix.strip("/")

    if prefix:
        return f"{base}/{prefix}/{key}"
    return f"{base}/{key}"

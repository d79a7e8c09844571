"""Host parsing and tenant URL helpers."""

import ipaddress
from urllib.parse import urlsplit

LOCAL_HOSTNAMES = frozenset({"localhost"})


def normalize_host(host: str) -> str:
    """Lowercase, drop the port and any trailing dot.

    >>> normalize_host("Acme.Example.com:8443")
    'acme.example.com'
    """
    host = host.strip().lower()
    if host.startswith("["):
        # Bracketed IPv6 literal, e.g. "[::1]:8000"
        return host[1:].split("]", 1)[0]
    if host.count(":") == 1:
        host = host.split(":", 1)[0]
    return host.rstrip(".")


def is_local_host(host: str) -> bool:
    """True for localhost and loopback / private-network IP literals."""
    host = normalize_host(host)
    if host in LOCAL_HOSTNAMES:
        return True
    try:
        address = ipaddress.ip_address(host)
    except ValueError:
        return False
    return address.is_loopback or address.is_private


def tenant_url(slug: str, base_domain: str, origin: str | None = None) -> str:
    """Public URL of a tenant portal.

    On a local origin there are no real subdomains, so the tenant is selected
    with the ``tenant`` query parameter instead.
    """
    if origin and is_local_host(urlsplit(origin).netloc):
        return f"{origin.rstrip('/')}?tenant={slug}"
    return f"https://{slug}.{base_domain}"


def platform_admin_url(base_domain: str, origin: str | None = None) -> str:
    if origin and is_local_host(urlsplit(origin).netloc):
        return origin.rstrip("/")
    return f"https://admin.{base_domain}"

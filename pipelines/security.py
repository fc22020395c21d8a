"""Origin safety checks for SiteNav.

The service crawls whatever origin a caller names, so deployments reachable
from untrusted pages can turn on ``block_private_origins`` to refuse origins
pointing at loopback, private networks, cloud metadata endpoints or well-known
internal service ports.

Two layers apply when enabled: :func:`check_url_ssrf` rejects a requested
origin up front, and :class:`SSRFProtectedConnector` re-checks every host the
fetcher actually connects to, so redirects and DNS answers that change between
the two checks are still refused.
"""

import asyncio
import ipaddress
import socket
from typing import Iterable, Optional
from urllib.parse import urlsplit
import logging

import aiohttp

logger = logging.getLogger(__name__)

PRIVATE_IP_RANGES = [
    ipaddress.ip_network('10.0.0.0/8'),        # RFC 1918
    ipaddress.ip_network('172.16.0.0/12'),     # RFC 1918
    ipaddress.ip_network('192.168.0.0/16'),    # RFC 1918
    ipaddress.ip_network('127.0.0.0/8'),       # Loopback
    ipaddress.ip_network('169.254.0.0/16'),    # Link-local
    ipaddress.ip_network('0.0.0.0/8'),
    ipaddress.ip_network('::1/128'),           # IPv6 loopback
    ipaddress.ip_network('fc00::/7'),          # IPv6 unique local
    ipaddress.ip_network('fe80::/10'),         # IPv6 link-local
]

BLOCKED_PORTS = {22, 23, 25, 3306, 5432, 6379, 9200, 11211, 27017}

BLOCKED_HOSTNAMES = {'localhost', 'metadata', 'metadata.google.internal'}

ALLOWED_SCHEMES = {'http', 'https'}


class SSRFError(ValueError):
    """Raised when an origin is refused by the SSRF guard."""


def is_private_ip(ip_str: str) -> bool:
    try:
        ip = ipaddress.ip_address(ip_str)
    except ValueError:
        # Unparseable addresses are treated as unsafe
        return True
    return any(ip in network for network in PRIVATE_IP_RANGES)


def is_blocked_hostname(hostname: str) -> bool:
    hostname = hostname.lower().rstrip('.')
    return hostname in BLOCKED_HOSTNAMES or hostname.endswith('.localhost')


async def resolve_hostname(hostname: str) -> Iterable[str]:
    """Resolve a hostname to its IP addresses without blocking the event loop."""
    loop = asyncio.get_running_loop()
    try:
        infos = await loop.getaddrinfo(hostname, None)
    except socket.gaierror as e:
        raise SSRFError(f"Failed to resolve hostname {hostname}: {e}")
    return {info[4][0] for info in infos}


async def validate_url_security(url: str) -> Optional[str]:
    """Return a reason the URL is unsafe, or None when it may be crawled."""
    try:
        parts = urlsplit(url)
        port = parts.port
    except ValueError as e:
        return f"Malformed URL: {e}"

    if parts.scheme.lower() not in ALLOWED_SCHEMES:
        return f"Scheme '{parts.scheme}' not allowed"

    hostname = (parts.hostname or '').lower()
    if not hostname:
        return "URL must have a hostname"
    if is_blocked_hostname(hostname):
        return f"Hostname '{hostname}' is blocked"
    if port is not None and port in BLOCKED_PORTS:
        return f"Port {port} is blocked"

    try:
        ipaddress.ip_address(hostname)
        addresses = [hostname]
    except ValueError:
        try:
            addresses = list(await resolve_hostname(hostname))
        except SSRFError as e:
            return str(e)

    private = [ip for ip in addresses if is_private_ip(ip)]
    if private:
        return f"Private IP address detected for '{hostname}': {private}"

    return None


async def check_url_ssrf(url: str) -> None:
    """Raise SSRFError if the URL should not be crawled."""
    reason = await validate_url_security(url)
    if reason:
        logger.warning(f"SSRF protection blocked {url}: {reason}", extra={"url": url})
        raise SSRFError(f"Origin blocked: {reason}")


class SSRFProtectedConnector(aiohttp.TCPConnector):
    """TCP connector that refuses blocked hosts, ports and resolved addresses.

    Runs for every connection the session opens, including redirect hops.
    """

    async def _resolve_host(self, host, port, traces=None):
        if is_blocked_hostname(host):
            raise SSRFError(f"Hostname '{host}' is blocked")
        if port in BLOCKED_PORTS:
            raise SSRFError(f"Port {port} is blocked")

        hosts = await super()._resolve_host(host, port, traces=traces)

        private = [entry['host'] for entry in hosts if is_private_ip(entry['host'])]
        if private:
            raise SSRFError(f"Private IP address detected for '{host}': {private}")
        return hosts


def get_safe_connector() -> SSRFProtectedConnector:
    """Get an aiohttp connector with SSRF protection."""
    return SSRFProtectedConnector()

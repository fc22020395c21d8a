"""Same-origin link discovery for the origin crawler."""

import logging
from typing import List, Optional
from urllib.parse import urljoin, urlsplit, urlunsplit

from bs4 import BeautifulSoup

from indexer.models import CrawlQueueItem

logger = logging.getLogger(__name__)

DEFAULT_PORTS = {'http': 80, 'https': 443}
SKIPPED_PREFIXES = ('mailto:', 'javascript:')


def origin_of(url: str) -> Optional[str]:
    """Return ``scheme://host[:port]`` for an absolute http(s) URL.

    Default ports are dropped so ``https://a.com:443`` and ``https://a.com``
    compare equal. Returns None for relative, non-http or malformed URLs.
    """
    try:
        parts = urlsplit(url)
        port = parts.port
    except ValueError:
        return None

    scheme = parts.scheme.lower()
    if scheme not in DEFAULT_PORTS or not parts.hostname:
        return None

    host = parts.hostname.lower()
    if ':' in host:
        host = f"[{host}]"
    if port is not None and port != DEFAULT_PORTS[scheme]:
        return f"{scheme}://{host}:{port}"
    return f"{scheme}://{host}"


def normalize_url(url: str) -> Optional[str]:
    """Canonical spelling of an absolute http(s) URL, or None.

    Scheme and host are lowercased, a default port is dropped, the fragment is
    removed and an empty path becomes '/', so one resource has one spelling.
    """
    origin = origin_of(url)
    if origin is None:
        return None
    parts = urlsplit(url)
    netloc = origin.split('://', 1)[1]
    return urlunsplit((parts.scheme.lower(), netloc, parts.path or '/', parts.query, ''))


def extract_links(html: str, base_url: str, depth: int) -> List[CrawlQueueItem]:
    """Extract same-origin links from HTML content.

    Args:
        html: Raw page HTML
        base_url: URL the page was fetched from, used to resolve relative hrefs
        depth: Depth of the page; discovered links get ``depth + 1``

    Returns:
        Deduplicated, normalized queue items in document order
    """
    base_origin = origin_of(base_url)
    if base_origin is None:
        return []

    soup = BeautifulSoup(html, 'html.parser')
    seen = set()
    items = []

    for anchor in soup.find_all('a', href=True):
        href = anchor['href'].strip()
        if href.lower().startswith(SKIPPED_PREFIXES):
            continue

        try:
            absolute_url = normalize_url(urljoin(base_url, href))
        except ValueError:
            logger.debug(f"Skipping malformed link {href!r} on {base_url}")
            continue

        if absolute_url is None or origin_of(absolute_url) != base_origin:
            continue
        if absolute_url in seen:
            continue

        seen.add(absolute_url)
        items.append(CrawlQueueItem(href=absolute_url, depth=depth + 1))

    return items

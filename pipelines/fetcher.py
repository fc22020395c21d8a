"""Single-page HTML fetcher used by the origin crawler.

Failures are soft: anything that prevents us from getting HTML back (network
errors, timeouts, non-2xx statuses, non-HTML content, hosts refused by the
private-network guard) yields ``None`` so the
crawler can skip the page and carry on.
"""

import asyncio
import logging
from typing import Optional

import aiohttp

from observability.prometheus_metrics import record_fetch
from .security import SSRFError, get_safe_connector

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = "SiteNavIndexer/1.0"
HTML_CONTENT_TYPES = ('text/html', 'application/xhtml+xml')


def is_html_content_type(content_type: str) -> bool:
    return content_type.split(';', 1)[0].strip().lower() in HTML_CONTENT_TYPES


class PageFetcher:
    """Asynchronous HTML fetcher with a lazily created aiohttp session."""

    def __init__(self,
                 user_agent: str = DEFAULT_USER_AGENT,
                 request_timeout: float = 10.0,
                 session: Optional[aiohttp.ClientSession] = None,
                 block_private: bool = False):
        """Initialize fetcher.

        Args:
            user_agent: User agent string identifying the indexer
            request_timeout: Total timeout per fetch in seconds
            session: Optional externally owned session (not closed by us)
            block_private: Refuse connections to private or internal hosts,
                redirect targets included
        """
        self.user_agent = user_agent
        self.request_timeout = request_timeout
        self.session = session
        self.block_private = block_private
        self._owns_session = session is None

    async def __aenter__(self):
        await self._ensure_session()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def _ensure_session(self) -> aiohttp.ClientSession:
        if self.session is None or self.session.closed:
            timeout = aiohttp.ClientTimeout(total=self.request_timeout)
            connector = get_safe_connector() if self.block_private else None
            self.session = aiohttp.ClientSession(
                connector=connector,
                timeout=timeout,
                headers={'User-Agent': self.user_agent}
            )
            self._owns_session = True
        return self.session

    async def close(self):
        """Close the fetcher session if we created it."""
        if self.session and self._owns_session and not self.session.closed:
            await self.session.close()
        if self._owns_session:
            self.session = None

    async def fetch_page(self, url: str) -> Optional[str]:
        """Fetch a page and return its HTML, or None if it is unavailable."""
        session = await self._ensure_session()

        try:
            async with session.get(url, allow_redirects=True) as response:
                if not 200 <= response.status < 300:
                    logger.info(f"Skipping {url} due to status {response.status}")
                    record_fetch("http_error")
                    return None

                content_type = response.headers.get('content-type', '')
                if not is_html_content_type(content_type):
                    logger.info(f"Skipping {url}: non-HTML content type {content_type!r}")
                    record_fetch("not_html")
                    return None

                html = await response.text(errors='replace')
        except asyncio.TimeoutError:
            logger.warning(f"Timeout fetching {url} after {self.request_timeout}s")
            record_fetch("network_error")
            return None
        except aiohttp.ClientError as e:
            logger.warning(f"Failed to fetch {url}: {e}", extra={"url": url})
            record_fetch("network_error")
            return None
        except SSRFError as e:
            logger.warning(f"Refused to fetch {url}: {e}", extra={"url": url})
            record_fetch("blocked")
            return None

        record_fetch("ok")
        return html

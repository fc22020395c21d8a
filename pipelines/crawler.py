"""Origin crawler for SiteNav.

Breadth-first traversal of a single origin, bounded by page count and depth,
producing the section list the search index is built from.
"""

import asyncio
import logging
import time
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Deque, List, Optional, Protocol, Set, Tuple

from indexer.models import CrawlQueueItem, Section
from observability.prometheus_metrics import record_crawl
from .extractor import extract_sections
from .links import extract_links, origin_of

logger = logging.getLogger(__name__)

MAX_PAGES = 12
MAX_DEPTH = 2


class Fetcher(Protocol):
    async def fetch_page(self, url: str) -> Optional[str]:
        ...


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class CrawlStats:
    """Statistics for a crawl session."""
    origin: str
    visited_urls: List[str] = field(default_factory=list)
    fetched: int = 0
    failed: int = 0
    skipped_depth: int = 0
    sections: int = 0
    start_time: datetime = field(default_factory=_utcnow)
    end_time: Optional[datetime] = None

    @property
    def duration(self) -> Optional[timedelta]:
        if self.end_time:
            return self.end_time - self.start_time
        return None

    def finish(self):
        """Mark crawl as finished."""
        self.end_time = _utcnow()


class OriginCrawler:
    """Bounded breadth-first crawler for one origin at a time."""

    def __init__(self,
                 fetcher: Fetcher,
                 max_pages: int = MAX_PAGES,
                 max_depth: int = MAX_DEPTH,
                 concurrency: int = 1):
        """Initialize crawler.

        Args:
            fetcher: Object exposing ``async fetch_page(url) -> str | None``
            max_pages: Maximum distinct URLs visited per crawl
            max_depth: Maximum link hops from the origin root
            concurrency: Pages fetched at once; 1 keeps the crawl sequential
        """
        if max_pages < 1:
            raise ValueError("max_pages must be at least 1")
        if concurrency < 1:
            raise ValueError("concurrency must be at least 1")

        self.fetcher = fetcher
        self.max_pages = max_pages
        self.max_depth = max_depth
        self.concurrency = concurrency

    async def crawl_origin(self, origin: str) -> List[Section]:
        """Crawl an origin and return its sections in BFS discovery order."""
        sections, _ = await self.crawl_with_stats(origin)
        return sections

    async def crawl_with_stats(self, origin: str) -> Tuple[List[Section], CrawlStats]:
        """Crawl an origin.

        Args:
            origin: Origin URL (``scheme://host[:port]``); a path is ignored

        Returns:
            Tuple of (sections, stats)
        """
        normalized = origin_of(origin)
        if normalized is None:
            raise ValueError(f"Not an absolute http(s) origin: {origin!r}")

        stats = CrawlStats(origin=normalized)
        started = time.monotonic()
        logger.info(f"Starting crawl of {normalized} (max_pages={self.max_pages}, "
                    f"max_depth={self.max_depth}, concurrency={self.concurrency})")

        try:
            sections = await self._crawl(normalized, stats)
        except Exception as e:
            record_crawl(time.monotonic() - started, 0, error=type(e).__name__)
            raise

        stats.sections = len(sections)
        stats.finish()
        elapsed = time.monotonic() - started
        record_crawl(elapsed, len(sections))

        logger.info(f"Crawl of {normalized} completed: {stats.fetched} fetched, {stats.failed} unavailable, "
                    f"{len(stats.visited_urls)} visited, {stats.sections} sections",
                    extra={"origin": normalized, "pages": stats.fetched, "sections": stats.sections,
                           "duration_ms": round(elapsed * 1000)})
        return sections, stats

    async def _crawl(self, origin: str, stats: CrawlStats) -> List[Section]:
        root = CrawlQueueItem(href=f"{origin}/", depth=0)
        queue: Deque[CrawlQueueItem] = deque([root])
        queued: Set[str] = {root.href}
        visited: Set[str] = set()
        sections: List[Section] = []

        while queue and len(visited) < self.max_pages:
            batch = self._claim_batch(queue, queued, visited, stats)
            if not batch:
                continue

            pages = await self._fetch_batch(batch)

            # Process in dequeue order so sections keep BFS order
            for item, html in zip(batch, pages):
                if html is None:
                    stats.failed += 1
                    continue

                stats.fetched += 1
                sections.extend(extract_sections(html, item.href))
                self._enqueue_links(html, item, queue, queued, visited)

        return sections

    def _claim_batch(self, queue: Deque[CrawlQueueItem], queued: Set[str],
                     visited: Set[str], stats: CrawlStats) -> List[CrawlQueueItem]:
        """Dequeue up to ``concurrency`` unvisited items and mark them visited.

        Runs without awaiting, so check-and-mark cannot interleave with
        another batch and the page cap holds under concurrent fetching.
        """
        batch = []
        while queue and len(batch) < self.concurrency and len(visited) < self.max_pages:
            item = queue.popleft()
            queued.discard(item.href)
            if item.href in visited:
                continue

            visited.add(item.href)
            stats.visited_urls.append(item.href)

            if item.depth > self.max_depth:
                stats.skipped_depth += 1
                continue

            batch.append(item)
        return batch

    async def _fetch_batch(self, batch: List[CrawlQueueItem]) -> List[Optional[str]]:
        if len(batch) == 1:
            return [await self.fetcher.fetch_page(batch[0].href)]
        return list(await asyncio.gather(*(self.fetcher.fetch_page(item.href) for item in batch)))

    def _enqueue_links(self, html: str, item: CrawlQueueItem, queue: Deque[CrawlQueueItem],
                       queued: Set[str], visited: Set[str]):
        """Queue same-origin links found on a page, within depth and page budget."""
        if item.depth + 1 > self.max_depth:
            return

        added = 0
        for link in extract_links(html, item.href, item.depth):
            if link.href in visited or link.href in queued:
                continue
            # Never admit more URLs than could still be visited
            if len(visited) + len(queue) >= self.max_pages:
                break
            queue.append(link)
            queued.add(link.href)
            added += 1

        if added:
            logger.debug(f"Queued {added} links at depth {item.depth + 1} from {item.href}")

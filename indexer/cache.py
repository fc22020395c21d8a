"""Per-origin index cache with a time-to-live.

Each origin maps to one :class:`OriginIndexEntry`. A fresh entry is served as
is; a missing or stale one is rebuilt by crawling. Concurrent lookups for the
same origin share a single in-flight crawl, and a stale entry stays visible
until its replacement is stored.
"""

import asyncio
import logging
import math
import time
from typing import Awaitable, Callable, Dict, List, Optional

from observability.prometheus_metrics import record_cache_lookup
from .models import OriginIndexEntry, Section

logger = logging.getLogger(__name__)

CACHE_TTL_SECONDS = 600.0

CrawlFunction = Callable[[str], Awaitable[List[Section]]]


class OriginIndexCache:
    """Memoizes crawl results per origin."""

    def __init__(self,
                 crawl: CrawlFunction,
                 ttl_seconds: float = CACHE_TTL_SECONDS,
                 clock: Callable[[], float] = time.time):
        """Initialize cache.

        Args:
            crawl: Coroutine function building the section list for an origin
            ttl_seconds: Age after which an entry must be rebuilt
            clock: Returns the current time in seconds
        """
        self._crawl = crawl
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: Dict[str, OriginIndexEntry] = {}
        self._inflight: Dict[str, asyncio.Task] = {}

    def is_fresh(self, entry: OriginIndexEntry) -> bool:
        return entry.age(self._clock()) < self.ttl_seconds

    def peek(self, origin: str) -> Optional[OriginIndexEntry]:
        """Return the stored entry, fresh or stale, without crawling."""
        return self._entries.get(origin)

    def origins(self) -> List[str]:
        return list(self._entries)

    def invalidate(self, origin: str) -> bool:
        """Drop an origin's entry so the next lookup crawls again."""
        removed = self._entries.pop(origin, None) is not None
        if removed:
            logger.info(f"Invalidated index for {origin}")
        return removed

    async def get(self, origin: str, force: bool = False) -> List[Section]:
        """Return the sections for an origin, crawling when missing or stale.

        Args:
            origin: Normalized origin string used as the cache key
            force: Rebuild even if the stored entry is still fresh
        """
        entry = self._entries.get(origin)
        if entry is not None and not force and self.is_fresh(entry):
            record_cache_lookup("hit")
            logger.debug(f"Cache hit for {origin} (age {entry.age(self._clock()):.1f}s)")
            return list(entry.sections)

        task = self._inflight.get(origin)
        if task is None:
            result = "miss" if entry is None else "stale"
            record_cache_lookup(result)
            logger.info(f"Cache {result} for {origin}, crawling",
                        extra={"origin": origin, "cache_result": result})
            task = asyncio.ensure_future(self._rebuild(origin))
            self._inflight[origin] = task
        else:
            record_cache_lookup("joined")
            logger.debug(f"Joining in-flight crawl for {origin}")

        # Shielded so one cancelled caller does not abort the shared crawl
        entry = await asyncio.shield(task)
        return list(entry.sections)

    async def _rebuild(self, origin: str) -> OriginIndexEntry:
        try:
            sections = await self._crawl(origin)

            indexed_at = self._clock()
            previous = self._entries.get(origin)
            if previous is not None and indexed_at <= previous.indexed_at:
                indexed_at = math.nextafter(previous.indexed_at, math.inf)

            entry = OriginIndexEntry(origin=origin, sections=tuple(sections), indexed_at=indexed_at)
            self._entries[origin] = entry
            logger.info(f"Indexed {origin}: {len(entry.sections)} sections",
                        extra={"origin": origin, "sections": len(entry.sections)})
            return entry
        finally:
            self._inflight.pop(origin, None)

"""Search service: origin resolution, cached indexing and ranked results.

This is the seam the HTTP layer talks to. It owns the origin cache (and,
through it, the crawler and fetcher) and shapes every response the
navigation widget consumes.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from config.settings import Settings
from indexer.cache import OriginIndexCache
from indexer.scorer import score_sections
from observability.prometheus_metrics import record_search_metrics
from pipelines.crawler import OriginCrawler
from pipelines.fetcher import PageFetcher
from pipelines.links import origin_of
from pipelines.security import check_url_ssrf

logger = logging.getLogger(__name__)

EMPTY_QUERY_MESSAGE = "Empty query."
NO_MATCHES_MESSAGE = "No relevant matches found."
CLARIFICATION_MESSAGE = "Multiple sections match equally well. Which one did you mean?"
UNRESOLVED_ORIGIN_MESSAGE = ("Could not determine which website to search. "
                             "Provide an origin URL or a website hostname.")


class OriginResolutionError(ValueError):
    """No request field named a usable website origin."""


def parse_origin(value: Optional[str], assume_https: bool = False) -> Optional[str]:
    """Parse a candidate into an origin, or None if it is not a valid absolute URL."""
    if not value or not value.strip():
        return None
    value = value.strip()
    if assume_https and "://" not in value:
        value = f"https://{value}"
    return origin_of(value)


def resolve_origin(origin: Optional[str] = None,
                   website: Optional[str] = None,
                   origin_header: Optional[str] = None,
                   referer: Optional[str] = None) -> str:
    """Pick the origin to search.

    Candidates are tried in order: explicit origin, bare website hostname
    (coerced to https), the request's Origin header, then its Referer. The
    first one that parses into an absolute http(s) URL wins.
    """
    candidates = [
        (origin, False),
        (website, True),
        (origin_header, False),
        (referer, False),
    ]
    for value, assume_https in candidates:
        resolved = parse_origin(value, assume_https)
        if resolved:
            return resolved
    raise OriginResolutionError(UNRESOLVED_ORIGIN_MESSAGE)


def _isoformat(timestamp: float) -> str:
    return datetime.fromtimestamp(timestamp, tz=timezone.utc).isoformat()


class SearchService:
    """Facade over the origin cache and the scorer."""

    def __init__(self,
                 cache: OriginIndexCache,
                 block_private_origins: bool = False,
                 fetcher: Optional[PageFetcher] = None):
        self.cache = cache
        self.block_private_origins = block_private_origins
        self._fetcher = fetcher

    @classmethod
    def from_settings(cls, settings: Settings) -> 'SearchService':
        """Wire fetcher, crawler and cache from settings."""
        fetcher = PageFetcher(
            user_agent=settings.user_agent,
            request_timeout=settings.fetch_timeout_seconds,
            block_private=settings.block_private_origins
        )
        crawler = OriginCrawler(
            fetcher,
            max_pages=settings.max_pages,
            max_depth=settings.max_depth,
            concurrency=settings.crawl_concurrency
        )
        cache = OriginIndexCache(crawler.crawl_origin, ttl_seconds=settings.cache_ttl_seconds)
        return cls(cache, block_private_origins=settings.block_private_origins, fetcher=fetcher)

    async def close(self):
        if self._fetcher is not None:
            await self._fetcher.close()

    async def resolve(self, **candidates: Optional[str]) -> str:
        """Resolve an origin and apply the SSRF guard when enabled."""
        origin = resolve_origin(**candidates)
        if self.block_private_origins:
            await check_url_ssrf(origin)
        return origin

    async def search(self,
                     query: Optional[str],
                     origin: Optional[str] = None,
                     website: Optional[str] = None,
                     origin_header: Optional[str] = None,
                     referer: Optional[str] = None,
                     limit: Optional[int] = None) -> Dict[str, Any]:
        """Search one origin's index.

        Returns:
            ``{results, query, origin, needsClarification, message?}``

        Raises:
            OriginResolutionError: No candidate named a valid origin
            SSRFError: The origin was refused by the SSRF guard
        """
        query = query or ""
        if not query.strip():
            return {
                "results": [],
                "query": query,
                "needsClarification": False,
                "message": EMPTY_QUERY_MESSAGE
            }

        resolved = await self.resolve(origin=origin, website=website,
                                      origin_header=origin_header, referer=referer)

        try:
            sections = await self.cache.get(resolved)
            scored = score_sections(sections, query)
        except Exception as e:
            record_search_metrics(0, error=type(e).__name__)
            raise

        results = scored.results
        if limit is not None:
            results = results[:limit]

        response: Dict[str, Any] = {
            "results": [result.to_dict() for result in results],
            "query": query,
            "origin": resolved,
            "needsClarification": scored.needs_clarification
        }
        if scored.needs_clarification:
            response["message"] = CLARIFICATION_MESSAGE
        elif not scored.results:
            response["message"] = NO_MATCHES_MESSAGE

        record_search_metrics(len(results))
        logger.info(f"Search {query!r} on {resolved}: {len(scored.results)} matches, "
                    f"clarification={scored.needs_clarification}",
                    extra={"origin": resolved, "query": query, "results": len(results)})
        return response

    async def website_index(self, origin: Optional[str], refresh: bool = False) -> Dict[str, Any]:
        """Return the cached or freshly built index of an origin."""
        resolved = await self.resolve(origin=origin)
        sections = await self.cache.get(resolved, force=refresh)

        entry = self.cache.peek(resolved)
        response: Dict[str, Any] = {
            "origin": resolved,
            "count": len(sections),
            "sections": [section.to_dict() for section in sections]
        }
        if entry is not None:
            response["indexedAt"] = _isoformat(entry.indexed_at)
        return response

    def invalidate(self, origin: Optional[str]) -> Dict[str, Any]:
        resolved = resolve_origin(origin=origin)
        return {"origin": resolved, "invalidated": self.cache.invalidate(resolved)}

    def health(self) -> Dict[str, Any]:
        return {"status": "ok", "cachedOrigins": self.cache.origins()}

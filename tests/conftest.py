"""Shared fixtures: an in-memory site fetcher and a manual clock."""

import asyncio
from typing import Dict, List, Optional, Tuple

import pytest

from indexer.cache import OriginIndexCache
from pipelines.crawler import OriginCrawler
from services.search import SearchService


class FakeFetcher:
    """Serves pages from a dict; unknown URLs are unavailable."""

    def __init__(self, pages: Optional[Dict[str, str]] = None, delay: float = 0.0):
        self.pages = pages or {}
        self.delay = delay
        self.calls: List[str] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def fetch_page(self, url: str) -> Optional[str]:
        self.calls.append(url)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
            return self.pages.get(url)
        finally:
            self.in_flight -= 1

    async def close(self):
        pass

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()


class ManualClock:
    """Clock that only moves when told to."""

    def __init__(self, now: float = 1_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


def page(title: str = "", body: str = "", links: List[str] = ()) -> str:
    """Build a small HTML page."""
    anchors = "".join(f'<a href="{href}">{href}</a>' for href in links)
    return f"<html><head><title>{title}</title></head><body>{body}{anchors}</body></html>"


def make_service(pages: Optional[Dict[str, str]] = None, clock: Optional[ManualClock] = None,
                 **kwargs) -> Tuple[SearchService, FakeFetcher]:
    """Search service over an in-memory site."""
    fetcher = FakeFetcher(pages)
    crawler = OriginCrawler(fetcher)
    cache = OriginIndexCache(crawler.crawl_origin, clock=clock or ManualClock())
    return SearchService(cache, **kwargs), fetcher


@pytest.fixture
def clock():
    return ManualClock()


@pytest.fixture
def docs_site():
    """Three-level site rooted at https://docs.example.com."""
    return {
        "https://docs.example.com/": page(
            "Docs Home",
            "<h1>Welcome</h1><p>Start here.</p>",
            ["/intro", "/css", "https://other.example.com/", "mailto:team@example.com"]
        ),
        "https://docs.example.com/intro": page(
            "Intro",
            "<h2>JS Introduction</h2><p>Variables and functions.</p>",
            ["/deep"]
        ),
        "https://docs.example.com/css": page(
            "CSS",
            "<h2>CSS Introduction</h2><p>Selectors and layout.</p>"
        ),
        "https://docs.example.com/deep": page(
            "Deep",
            "<h3>Advanced Topics</h3>",
            ["/deeper"]
        ),
        "https://docs.example.com/deeper": page("Deeper", "<h2>Never reached</h2>"),
    }

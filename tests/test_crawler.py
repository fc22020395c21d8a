"""Tests for the bounded breadth-first origin crawler."""

import pytest

from indexer.models import SectionType
from pipelines.crawler import MAX_PAGES, OriginCrawler

from conftest import FakeFetcher, page

ORIGIN = "https://docs.example.com"


def wide_site(count: int):
    """Root page linking to ``count`` leaf pages."""
    links = [f"/p{i}" for i in range(count)]
    pages = {f"{ORIGIN}/": page("Root", "<h1>Root</h1>", links)}
    for i in range(count):
        pages[f"{ORIGIN}/p{i}"] = page(f"P{i}", f"<h2>Page {i}</h2>")
    return pages


class TestOriginCrawler:
    @pytest.mark.asyncio
    async def test_breadth_first_order(self, docs_site):
        """Pages are visited level by level and sections keep that order."""
        fetcher = FakeFetcher(docs_site)
        sections = await OriginCrawler(fetcher).crawl_origin(ORIGIN)

        assert fetcher.calls == [
            f"{ORIGIN}/",
            f"{ORIGIN}/intro",
            f"{ORIGIN}/css",
            f"{ORIGIN}/deep",
        ]
        assert [(s.section_type, s.title) for s in sections] == [
            (SectionType.H1, "Welcome"),
            (SectionType.BODY, "Docs Home"),
            (SectionType.H2, "JS Introduction"),
            (SectionType.BODY, "Intro"),
            (SectionType.H2, "CSS Introduction"),
            (SectionType.BODY, "CSS"),
            (SectionType.H3, "Advanced Topics"),
            (SectionType.BODY, "Deep"),
        ]

    @pytest.mark.asyncio
    async def test_depth_limit(self, docs_site):
        """Links beyond the maximum depth are never fetched."""
        fetcher = FakeFetcher(docs_site)
        await OriginCrawler(fetcher).crawl_origin(ORIGIN)
        assert f"{ORIGIN}/deeper" not in fetcher.calls

        fetcher = FakeFetcher(docs_site)
        await OriginCrawler(fetcher, max_depth=0).crawl_origin(ORIGIN)
        assert fetcher.calls == [f"{ORIGIN}/"]

    @pytest.mark.asyncio
    async def test_page_limit(self):
        """No more than max_pages distinct URLs are visited."""
        fetcher = FakeFetcher(wide_site(30))
        sections, stats = await OriginCrawler(fetcher).crawl_with_stats(ORIGIN)

        assert len(fetcher.calls) == MAX_PAGES
        assert len(set(fetcher.calls)) == MAX_PAGES
        assert len(stats.visited_urls) == MAX_PAGES
        assert fetcher.calls[1:] == [f"{ORIGIN}/p{i}" for i in range(MAX_PAGES - 1)]

    @pytest.mark.asyncio
    async def test_single_page_budget(self):
        fetcher = FakeFetcher(wide_site(5))
        await OriginCrawler(fetcher, max_pages=1).crawl_origin(ORIGIN)
        assert fetcher.calls == [f"{ORIGIN}/"]

    @pytest.mark.asyncio
    async def test_stays_on_origin(self, docs_site):
        fetcher = FakeFetcher(docs_site)
        await OriginCrawler(fetcher).crawl_origin(ORIGIN)
        assert all(url.startswith(f"{ORIGIN}/") for url in fetcher.calls)

    @pytest.mark.asyncio
    async def test_alternate_spellings_fetched_once(self):
        """Host case and default port variants count as the same page."""
        pages = {
            f"{ORIGIN}/": page("Root", "<h1>Root</h1>", [
                "/a",
                "https://DOCS.example.com/a",
                "https://docs.example.com:443/a",
                "https://Docs.Example.com/",
            ]),
            f"{ORIGIN}/a": page("A", "<h2>A</h2>"),
        }
        fetcher = FakeFetcher(pages)
        sections, stats = await OriginCrawler(fetcher).crawl_with_stats(ORIGIN)

        assert fetcher.calls == [f"{ORIGIN}/", f"{ORIGIN}/a"]
        assert stats.visited_urls == [f"{ORIGIN}/", f"{ORIGIN}/a"]

    @pytest.mark.asyncio
    async def test_each_url_fetched_once(self):
        """Cycles and repeated links do not cause refetches."""
        pages = {
            f"{ORIGIN}/": page("Root", "<h1>Root</h1>", ["/a", "/b", "/a#frag", "/"]),
            f"{ORIGIN}/a": page("A", "<h2>A</h2>", ["/", "/b"]),
            f"{ORIGIN}/b": page("B", "<h2>B</h2>", ["/a"]),
        }
        fetcher = FakeFetcher(pages)
        await OriginCrawler(fetcher).crawl_origin(ORIGIN)
        assert fetcher.calls == [f"{ORIGIN}/", f"{ORIGIN}/a", f"{ORIGIN}/b"]

    @pytest.mark.asyncio
    async def test_unavailable_pages_are_skipped(self):
        pages = {f"{ORIGIN}/": page("Root", "<h1>Root</h1>", ["/gone", "/here"]),
                 f"{ORIGIN}/here": page("Here", "<h2>Here</h2>")}
        fetcher = FakeFetcher(pages)
        sections, stats = await OriginCrawler(fetcher).crawl_with_stats(ORIGIN)

        assert stats.fetched == 2
        assert stats.failed == 1
        assert {s.page_url for s in sections} == {f"{ORIGIN}/", f"{ORIGIN}/here"}

    @pytest.mark.asyncio
    async def test_unreachable_origin_yields_no_sections(self):
        fetcher = FakeFetcher({})
        sections, stats = await OriginCrawler(fetcher).crawl_with_stats(ORIGIN)

        assert sections == []
        assert fetcher.calls == [f"{ORIGIN}/"]
        assert stats.failed == 1
        assert stats.duration is not None

    @pytest.mark.asyncio
    async def test_origin_is_normalized(self, docs_site):
        fetcher = FakeFetcher(docs_site)
        await OriginCrawler(fetcher).crawl_origin("HTTPS://Docs.Example.com:443/some/path?q=1")
        assert fetcher.calls[0] == f"{ORIGIN}/"

    @pytest.mark.asyncio
    async def test_invalid_origin_raises(self):
        with pytest.raises(ValueError):
            await OriginCrawler(FakeFetcher()).crawl_origin("not a url")

    def test_invalid_bounds_raise(self):
        with pytest.raises(ValueError):
            OriginCrawler(FakeFetcher(), max_pages=0)
        with pytest.raises(ValueError):
            OriginCrawler(FakeFetcher(), concurrency=0)


class TestConcurrentCrawl:
    @pytest.mark.asyncio
    async def test_page_cap_holds(self):
        fetcher = FakeFetcher(wide_site(30), delay=0.01)
        await OriginCrawler(fetcher, concurrency=4).crawl_origin(ORIGIN)

        assert len(fetcher.calls) == MAX_PAGES
        assert len(set(fetcher.calls)) == MAX_PAGES
        assert 1 < fetcher.max_in_flight <= 4

    @pytest.mark.asyncio
    async def test_same_result_as_sequential(self, docs_site):
        """Concurrent fetching does not change section order."""
        sequential = await OriginCrawler(FakeFetcher(docs_site)).crawl_origin(ORIGIN)
        concurrent = await OriginCrawler(FakeFetcher(docs_site, delay=0.01),
                                         concurrency=3).crawl_origin(ORIGIN)
        assert concurrent == sequential

    @pytest.mark.asyncio
    async def test_sequential_by_default(self):
        fetcher = FakeFetcher(wide_site(5), delay=0.01)
        await OriginCrawler(fetcher).crawl_origin(ORIGIN)
        assert fetcher.max_in_flight == 1

#!/usr/bin/env python3
"""SiteNav command line tool.

Crawls an origin in-process (no API server needed) and prints its index or
ranked search results.

    python -m scripts.sitenav_cli crawl https://docs.example.com
    python -m scripts.sitenav_cli search https://docs.example.com "getting started"
"""

import argparse
import asyncio
import json
import sys
from typing import List, Optional

from rich.console import Console
from rich.table import Table

from config.settings import Settings
from indexer.scorer import score_sections
from observability.logging import setup_logging
from pipelines.crawler import OriginCrawler
from pipelines.fetcher import PageFetcher
from services.search import OriginResolutionError, resolve_origin, CLARIFICATION_MESSAGE

console = Console()
err_console = Console(stderr=True)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="SiteNav origin indexer")
    parser.add_argument("--max-pages", type=int, help="Maximum pages to visit")
    parser.add_argument("--max-depth", type=int, help="Maximum link depth from the root")
    parser.add_argument("--concurrency", type=int, help="Concurrent fetches (1-4)")
    parser.add_argument("--json", action="store_true", help="Print JSON instead of a table")
    parser.add_argument("--log-level", default="WARNING", help="Log level")

    subparsers = parser.add_subparsers(dest="command", required=True)

    crawl = subparsers.add_parser("crawl", help="Crawl an origin and print its sections")
    crawl.add_argument("origin", help="Origin URL or hostname")

    search = subparsers.add_parser("search", help="Crawl an origin and rank its sections")
    search.add_argument("origin", help="Origin URL or hostname")
    search.add_argument("query", nargs="+", help="Search query")
    search.add_argument("--limit", type=int, default=10, help="Number of results to print")

    return parser


def _settings_from_args(args: argparse.Namespace) -> Settings:
    overrides = {
        "max_pages": args.max_pages,
        "max_depth": args.max_depth,
        "crawl_concurrency": args.concurrency,
    }
    base = Settings.from_env().model_dump()
    base.update({key: value for key, value in overrides.items() if value is not None})
    return Settings(**base)


async def run(args: argparse.Namespace) -> int:
    settings = _settings_from_args(args)

    try:
        origin = resolve_origin(origin=args.origin, website=args.origin)
    except OriginResolutionError as e:
        console.print(f"❌ {e}", style="bold red")
        return 2

    async with PageFetcher(user_agent=settings.user_agent,
                           request_timeout=settings.fetch_timeout_seconds) as fetcher:
        crawler = OriginCrawler(fetcher, max_pages=settings.max_pages,
                                max_depth=settings.max_depth,
                                concurrency=settings.crawl_concurrency)
        with err_console.status(f"[bold blue]Crawling {origin}..."):
            sections, stats = await crawler.crawl_with_stats(origin)

    if args.command == "crawl":
        if args.json:
            print(json.dumps({"origin": origin, "count": len(sections),
                              "sections": [s.to_dict() for s in sections]}, indent=2))
            return 0

        table = Table(show_header=True, header_style="bold blue")
        table.add_column("Type", width=5)
        table.add_column("Title", style="bold")
        table.add_column("Page", style="dim")
        for section in sections:
            table.add_row(section.section_type.value, section.title, section.page_url)
        console.print(table)
        console.print(f"📊 {len(sections)} sections from {stats.fetched} pages "
                      f"({stats.failed} unavailable, {len(stats.visited_urls)} visited)")
        return 0

    query = " ".join(args.query)
    scored = score_sections(sections, query)
    results = scored.results[:args.limit]

    if args.json:
        print(json.dumps({"query": query, "origin": origin,
                          "needsClarification": scored.needs_clarification,
                          "results": [r.to_dict() for r in results]}, indent=2))
        return 0

    console.print(f"\n🔍 Query: [bold]{query}[/bold] on {origin}")
    if not results:
        console.print("No relevant matches found.", style="yellow")
        return 0

    table = Table(show_header=True, header_style="bold blue")
    table.add_column("#", style="dim", width=3)
    table.add_column("Section", style="bold")
    table.add_column("Page")
    table.add_column("Score", justify="right", width=6)
    for i, result in enumerate(results, 1):
        table.add_row(str(i), result.section.title, result.section.page_url, str(result.score))
    console.print(table)

    if scored.needs_clarification:
        console.print(CLARIFICATION_MESSAGE, style="bold yellow")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(level=args.log_level)
    return asyncio.run(run(args))


if __name__ == "__main__":
    sys.exit(main())

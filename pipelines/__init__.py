"""Pipelines package for SiteNav.

Provides page fetching, section and link extraction, and origin crawling.
"""

from .crawler import OriginCrawler, CrawlStats, MAX_PAGES, MAX_DEPTH
from .extractor import extract_sections, sanitize_html
from .fetcher import PageFetcher
from .links import extract_links, origin_of
from .security import SSRFError, check_url_ssrf

__all__ = [
    # Crawler
    'OriginCrawler',
    'CrawlStats',
    'MAX_PAGES',
    'MAX_DEPTH',

    # Extraction
    'extract_sections',
    'sanitize_html',
    'extract_links',
    'origin_of',

    # Fetching
    'PageFetcher',

    # Security
    'SSRFError',
    'check_url_ssrf'
]

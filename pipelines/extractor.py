"""Section extraction from raw page HTML.

A page yields one section per ``<h1>``-``<h3>`` heading plus a single BODY
section summarising the whole page. Text is sanitized (scripts and styles
removed, tags dropped, entities decoded, whitespace collapsed) and capped.
"""

import re
from typing import List, Optional

from bs4 import BeautifulSoup

from indexer.models import Section, SectionType

TITLE_MAX_LENGTH = 120
HEADING_MAX_LENGTH = 160
BODY_MAX_LENGTH = 600
DEFAULT_BODY_TITLE = "Page"

HEADING_TYPES = {
    'h1': SectionType.H1,
    'h2': SectionType.H2,
    'h3': SectionType.H3,
}

_WHITESPACE_RE = re.compile(r"\s+")


def clean_text(text: str) -> str:
    """Collapse whitespace (including non-breaking spaces) and trim."""
    return _WHITESPACE_RE.sub(" ", text).strip()


def _node_text(node) -> str:
    return clean_text(node.get_text(" "))


def parse_html(html: str) -> BeautifulSoup:
    """Parse HTML with script and style blocks removed."""
    soup = BeautifulSoup(html, 'html.parser')
    for tag in soup(['script', 'style']):
        tag.decompose()
    return soup


def sanitize_html(html: str) -> str:
    """Return the visible text of an HTML fragment."""
    return _node_text(parse_html(html))


def extract_title(soup: BeautifulSoup) -> Optional[str]:
    title_tag = soup.find('title')
    if title_tag is None:
        return None
    title = _node_text(title_tag)[:TITLE_MAX_LENGTH]
    return title or None


def extract_sections(html: str, page_url: str) -> List[Section]:
    """Convert raw HTML into heading sections followed by one BODY section."""
    soup = parse_html(html)
    sections = []

    for heading in soup.find_all(list(HEADING_TYPES)):
        text = _node_text(heading)[:HEADING_MAX_LENGTH]
        if not text:
            continue
        sections.append(Section(
            page_url=page_url,
            title=text,
            summary=text,
            section_type=HEADING_TYPES[heading.name]
        ))

    body = soup.body or soup
    body_text = _node_text(body)[:BODY_MAX_LENGTH]
    if body_text:
        sections.append(Section(
            page_url=page_url,
            title=extract_title(soup) or DEFAULT_BODY_TITLE,
            summary=body_text,
            section_type=SectionType.BODY
        ))

    return sections

"""Index data model: sections, scored sections, crawl items and cache entries."""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Tuple


class SectionType(str, Enum):
    """Kind of page content a section was built from."""
    H1 = "H1"
    H2 = "H2"
    H3 = "H3"
    BODY = "BODY"


@dataclass(frozen=True)
class Section:
    """One indexable unit of page content (a heading or the page body)."""
    page_url: str
    title: str
    summary: str
    section_type: SectionType

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the JSON shape consumed by the navigation widget."""
        return {
            'pageURL': self.page_url,
            'sectionTitle': self.title,
            'sectionSummary': self.summary,
            'sectionType': self.section_type.value
        }


@dataclass(frozen=True)
class ScoredSection:
    """A section ranked against one query."""
    section: Section
    score: int

    def to_dict(self) -> Dict[str, Any]:
        result = self.section.to_dict()
        result['score'] = self.score
        return result


@dataclass(frozen=True)
class CrawlQueueItem:
    href: str
    depth: int


@dataclass(frozen=True)
class OriginIndexEntry:
    """Crawl result for one origin, replaced wholesale on re-crawl."""
    origin: str
    sections: Tuple[Section, ...]
    indexed_at: float

    def age(self, now: float) -> float:
        return now - self.indexed_at

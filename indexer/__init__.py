"""Indexer package for SiteNav.

Holds the index data model, the per-origin cache, and the keyword scorer.
"""

from .models import Section, SectionType, ScoredSection, CrawlQueueItem, OriginIndexEntry
from .cache import OriginIndexCache, CACHE_TTL_SECONDS
from .keywords import expand, stem, tokenize, normalize_query, ALIASES
from .scorer import ScoredResult, score_sections, needs_clarification

__all__ = [
    # Models
    'Section',
    'SectionType',
    'ScoredSection',
    'CrawlQueueItem',
    'OriginIndexEntry',

    # Cache
    'OriginIndexCache',
    'CACHE_TTL_SECONDS',

    # Keywords and scoring
    'expand',
    'stem',
    'tokenize',
    'normalize_query',
    'ALIASES',
    'ScoredResult',
    'score_sections',
    'needs_clarification'
]

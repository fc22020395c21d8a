"""Lexical relevance scoring of sections against a query."""

from dataclasses import dataclass
from typing import Iterable, List, Set

from .keywords import expand, normalize_query
from .models import ScoredSection, Section

TITLE_WEIGHT = 6
SUMMARY_WEIGHT = 2
URL_WEIGHT = 1
PHRASE_BONUS = 3


@dataclass(frozen=True)
class ScoredResult:
    """Ranked sections plus the disambiguation signal."""
    results: List[ScoredSection]
    needs_clarification: bool


def score_section(section: Section, keywords: Set[str], phrase: str) -> int:
    """Sum the weighted substring matches of every keyword in one section."""
    title = section.title.lower()
    summary = section.summary.lower()
    url = section.page_url.lower()
    combined = title + summary + url

    score = 0
    for keyword in keywords:
        if keyword in title:
            score += TITLE_WEIGHT
        if keyword in summary:
            score += SUMMARY_WEIGHT
        if keyword in url:
            score += URL_WEIGHT
        if keyword == phrase and keyword in combined:
            score += PHRASE_BONUS
    return score


def needs_clarification(results: List[ScoredSection]) -> bool:
    """True when the two best results are tied."""
    return len(results) > 1 and results[0].score == results[1].score


def score_sections(sections: Iterable[Section], query: str) -> ScoredResult:
    """Rank sections against a query.

    Sections scoring zero are dropped. The rest are sorted by descending
    score; ties keep their index order.
    """
    keywords = expand(query)
    phrase = normalize_query(query)

    scored = []
    for section in sections:
        score = score_section(section, keywords, phrase)
        if score > 0:
            scored.append(ScoredSection(section=section, score=score))

    scored.sort(key=lambda s: s.score, reverse=True)
    return ScoredResult(results=scored, needs_clarification=needs_clarification(scored))

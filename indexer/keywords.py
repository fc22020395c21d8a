"""Query keyword expansion.

Turns a raw query into the set of lowercase keywords the scorer matches
against: the query tokens, their stems, domain aliases of each token (and the
aliases' stems), plus the whole query as a phrase.
"""

import re
from typing import Dict, FrozenSet, Iterable, List, Set

_NON_ALNUM_RE = re.compile(r"[^a-z0-9]")

MIN_PHRASE_LENGTH = 3

# Every member of a group is an alias of every other member.
ALIAS_GROUPS = [
    ("javascript", "js", "script", "node", "typescript"),
    ("css", "style", "design", "layout"),
    ("intro", "introduction", "getting started", "overview"),
    ("html", "markup", "tags"),
    ("python", "py"),
    ("docs", "documentation", "guide", "manual"),
    ("api", "endpoint", "reference"),
    ("tutorial", "lesson", "walkthrough", "example"),
    ("install", "installation", "setup", "download"),
    ("config", "configuration", "settings", "options"),
    ("contact", "support", "help", "email"),
    ("faq", "questions", "help"),
    ("price", "pricing", "cost", "plans"),
    ("about", "company", "team"),
    ("login", "signin", "sign in", "account"),
    ("signup", "register", "sign up"),
    ("blog", "news", "articles"),
]


def _build_alias_table(groups: Iterable[Iterable[str]]) -> Dict[str, FrozenSet[str]]:
    table: Dict[str, Set[str]] = {}
    for group in groups:
        members = set(group)
        for member in members:
            table.setdefault(member, set()).update(members - {member})
    return {term: frozenset(aliases) for term, aliases in table.items()}


ALIASES = _build_alias_table(ALIAS_GROUPS)


def normalize_query(query: str) -> str:
    """Trimmed, lowercased query used as the phrase keyword."""
    return query.strip().lower()


def tokenize(query: str) -> List[str]:
    """Lowercase, split on anything outside [a-z0-9], drop 1-char tokens."""
    cleaned = _NON_ALNUM_RE.sub(" ", query.lower())
    return [token for token in cleaned.split() if len(token) > 1]


def stem(word: str) -> str:
    """Strip one common English suffix.

    Rules are tried in order and the first whose suffix matches and whose
    remaining length clears the minimum wins: ``ing`` (>4), ``ed`` (>3),
    ``es`` (>3), ``s`` (>2).
    """
    if word.endswith("ing") and len(word) - 3 > 4:
        return word[:-3]
    if word.endswith("ed") and len(word) - 2 > 3:
        return word[:-2]
    if word.endswith("es") and len(word) - 2 > 3:
        return word[:-2]
    if word.endswith("s") and len(word) - 1 > 2:
        return word[:-1]
    return word


def expand(query: str) -> Set[str]:
    """Expand a raw query into its keyword set."""
    keywords: Set[str] = set()

    for token in tokenize(query):
        keywords.add(token)
        keywords.add(stem(token))
        for alias in ALIASES.get(token, ()):
            keywords.add(alias)
            keywords.add(stem(alias))

    phrase = normalize_query(query)
    if len(phrase) >= MIN_PHRASE_LENGTH:
        keywords.add(phrase)

    return keywords

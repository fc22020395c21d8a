"""Service layer for SiteNav."""

from .search import (
    SearchService,
    OriginResolutionError,
    resolve_origin,
    parse_origin,
    EMPTY_QUERY_MESSAGE,
    NO_MATCHES_MESSAGE,
    CLARIFICATION_MESSAGE
)

__all__ = [
    'SearchService',
    'OriginResolutionError',
    'resolve_origin',
    'parse_origin',
    'EMPTY_QUERY_MESSAGE',
    'NO_MATCHES_MESSAGE',
    'CLARIFICATION_MESSAGE'
]

"""Observability package for SiteNav."""

from .logging import setup_logging, JSONFormatter, CONTEXT_FIELDS
from .prometheus_metrics import (
    setup_prometheus_metrics,
    record_fetch,
    record_crawl,
    record_cache_lookup,
    record_search_metrics,
    PrometheusMiddleware,
    sitenav_registry
)

__all__ = [
    'setup_logging',
    'JSONFormatter',
    'CONTEXT_FIELDS',
    'setup_prometheus_metrics',
    'record_fetch',
    'record_crawl',
    'record_cache_lookup',
    'record_search_metrics',
    'PrometheusMiddleware',
    'sitenav_registry'
]

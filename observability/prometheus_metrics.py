"""Prometheus metrics integration for the SiteNav API."""

from prometheus_client import Counter, Histogram, Info, generate_latest, CONTENT_TYPE_LATEST
from prometheus_client.core import CollectorRegistry
from fastapi import FastAPI, Request, Response
import re
import time
from typing import Optional
import logging

logger = logging.getLogger(__name__)

# Dedicated registry so tests and embedded use never clash with the default one
sitenav_registry = CollectorRegistry()

# Request metrics
request_count = Counter(
    'sitenav_http_requests_total',
    'Total number of HTTP requests',
    ['method', 'endpoint', 'status_code'],
    registry=sitenav_registry
)

request_duration = Histogram(
    'sitenav_http_request_duration_seconds',
    'HTTP request duration in seconds',
    ['method', 'endpoint'],
    buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0],
    registry=sitenav_registry
)

# Fetch and crawl metrics
pages_fetched = Counter(
    'sitenav_pages_fetched_total',
    'Page fetch attempts by outcome',
    ['outcome'],
    registry=sitenav_registry
)

crawls_total = Counter(
    'sitenav_crawls_total',
    'Completed origin crawls',
    ['status'],
    registry=sitenav_registry
)

crawl_duration = Histogram(
    'sitenav_crawl_duration_seconds',
    'Origin crawl duration in seconds',
    buckets=[0.1, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0],
    registry=sitenav_registry
)

crawl_sections = Histogram(
    'sitenav_crawl_sections_count',
    'Sections indexed per crawl',
    buckets=[0, 1, 5, 10, 25, 50, 100, 250],
    registry=sitenav_registry
)

# Cache metrics
cache_lookups = Counter(
    'sitenav_cache_lookups_total',
    'Origin cache lookups by result',
    ['result'],
    registry=sitenav_registry
)

# Search metrics
search_requests = Counter(
    'sitenav_search_requests_total',
    'Total number of search requests',
    ['status'],
    registry=sitenav_registry
)

search_results_count = Histogram(
    'sitenav_search_results_count',
    'Number of search results returned',
    buckets=[0, 1, 2, 5, 10, 25, 50, 100],
    registry=sitenav_registry
)

app_info = Info(
    'sitenav_app_info',
    'SiteNav application information',
    registry=sitenav_registry
)

class PrometheusMiddleware:
    """Middleware to collect Prometheus metrics for HTTP requests."""

    def __init__(self, app: FastAPI):
        self.app = app

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        request = Request(scope, receive)
        method = request.method
        endpoint = self._normalize_endpoint(request.url.path)

        start_time = time.time()
        status_code = 500

        async def send_wrapper(message):
            nonlocal status_code
            if message["type"] == "http.response.start":
                status_code = message["status"]
            await send(message)

        try:
            await self.app(scope, receive, send_wrapper)
        finally:
            request_count.labels(
                method=method,
                endpoint=endpoint,
                status_code=str(status_code)
            ).inc()
            request_duration.labels(method=method, endpoint=endpoint).observe(time.time() - start_time)

    def _normalize_endpoint(self, path: str) -> str:
        """Normalize endpoint path to reduce cardinality."""
        return re.sub(r'/\d+', '/{id}', path)

def setup_prometheus_metrics(app: FastAPI, version: str = "unknown") -> None:
    """Setup Prometheus metrics collection for FastAPI app."""
    app.add_middleware(PrometheusMiddleware)

    @app.get("/metrics")
    async def metrics_endpoint():
        """Prometheus metrics endpoint."""
        return Response(generate_latest(sitenav_registry), media_type=CONTENT_TYPE_LATEST)

    app_info.info({'version': version})
    logger.info("Prometheus metrics configured")

def record_fetch(outcome: str) -> None:
    """Record a page fetch outcome (ok, http_error, not_html, network_error, blocked)."""
    pages_fetched.labels(outcome=outcome).inc()

def record_crawl(duration: float, section_count: int, error: Optional[str] = None) -> None:
    """Record crawl-related metrics."""
    crawls_total.labels(status="error" if error else "success").inc()
    if not error:
        crawl_duration.observe(duration)
        crawl_sections.observe(section_count)

def record_cache_lookup(result: str) -> None:
    """Record an origin cache lookup (hit, miss, stale, joined)."""
    cache_lookups.labels(result=result).inc()

def record_search_metrics(result_count: int, error: Optional[str] = None) -> None:
    """Record search-related metrics."""
    search_requests.labels(status="error" if error else "success").inc()
    if not error:
        search_results_count.observe(result_count)

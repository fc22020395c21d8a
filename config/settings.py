"""Runtime settings for the SiteNav index service.

All knobs are read from ``SITENAV_*`` environment variables so the same
process can be tuned per deployment without code changes.
"""

import os
import logging
from typing import List, Optional
from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


class Settings(BaseModel):
    """Crawler, cache and service configuration."""
    # Crawl bounds
    max_pages: int = Field(default=12, ge=1, description="Maximum distinct URLs visited per crawl")
    max_depth: int = Field(default=2, ge=0, description="Maximum link hops from the origin root")
    crawl_concurrency: int = Field(default=1, ge=1, le=4, description="Concurrent fetches within one crawl")

    # Fetching
    fetch_timeout_seconds: float = Field(default=10.0, gt=0, description="Total timeout per page fetch")
    user_agent: str = Field(default="SiteNavIndexer/1.0", description="User-Agent sent with every fetch")

    # Cache
    cache_ttl_seconds: float = Field(default=600.0, gt=0, description="Age after which an origin index is rebuilt")

    # Security
    block_private_origins: bool = Field(default=False, description="Reject origins resolving to private networks")
    allowed_origins: List[str] = Field(default_factory=lambda: ["*"], description="CORS allowed origins")

    # Server
    host: str = Field(default="0.0.0.0", description="Bind address for the API server")
    port: int = Field(default=5000, ge=1, le=65535, description="Port for the API server")

    # Logging
    log_level: str = Field(default="INFO", description="Root log level")
    log_json: bool = Field(default=False, description="Emit JSON log lines on the console")
    log_file: Optional[str] = Field(default=None, description="Optional JSON log file")

    @classmethod
    def from_env(cls) -> 'Settings':
        """Create settings from environment variables."""
        origins = os.getenv('SITENAV_ALLOWED_ORIGINS', '')
        allowed = [o.strip() for o in origins.split(',') if o.strip()] or ["*"]

        return cls(
            max_pages=int(os.getenv('SITENAV_MAX_PAGES', '12')),
            max_depth=int(os.getenv('SITENAV_MAX_DEPTH', '2')),
            crawl_concurrency=int(os.getenv('SITENAV_CRAWL_CONCURRENCY', '1')),
            fetch_timeout_seconds=float(os.getenv('SITENAV_FETCH_TIMEOUT', '10')),
            user_agent=os.getenv('SITENAV_USER_AGENT', 'SiteNavIndexer/1.0'),
            cache_ttl_seconds=float(os.getenv('SITENAV_CACHE_TTL', '600')),
            block_private_origins=_env_bool('SITENAV_BLOCK_PRIVATE_ORIGINS'),
            allowed_origins=allowed,
            host=os.getenv('SITENAV_HOST', '0.0.0.0'),
            port=int(os.getenv('SITENAV_PORT', '5000')),
            log_level=os.getenv('LOG_LEVEL', 'INFO'),
            log_json=_env_bool('SITENAV_LOG_JSON'),
            log_file=os.getenv('SITENAV_LOG_FILE') or None,
        )

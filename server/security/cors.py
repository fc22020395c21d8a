"""CORS (Cross-Origin Resource Sharing) configuration for the SiteNav API.

The navigation widget is injected into arbitrary third-party pages, so by
default any origin may call the API. Deployments narrow this through
``Settings.allowed_origins`` (``SITENAV_ALLOWED_ORIGINS``).
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from typing import List
import logging

logger = logging.getLogger(__name__)

def get_cors_config(allowed_origins: List[str]) -> dict:
    """Build CORSMiddleware keyword arguments."""
    return {
        "allow_origins": allowed_origins,
        # Credentials cannot be combined with a wildcard origin
        "allow_credentials": "*" not in allowed_origins,
        "allow_methods": ["GET", "POST", "DELETE", "OPTIONS"],
        "allow_headers": ["Accept", "Content-Type", "X-Requested-With"],
        "max_age": 600
    }

def setup_cors(app: FastAPI, allowed_origins: List[str]) -> None:
    """Setup CORS middleware for FastAPI application."""
    app.add_middleware(CORSMiddleware, **get_cors_config(allowed_origins))
    logger.info(f"CORS configured with origins: {allowed_origins}")

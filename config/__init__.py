"""Configuration module for SiteNav.

Provides the settings model shared by the crawler, cache and API.
"""

from .settings import Settings

__all__ = [
    'Settings'
]

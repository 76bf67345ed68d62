"""
Caching components for the scraper service.
"""

from .cache_key import canonicalize
from .cache_store import RedisCacheStore

__all__ = ["canonicalize", "RedisCacheStore"]

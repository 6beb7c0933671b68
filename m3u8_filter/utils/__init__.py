"""Collaborators of the playlist processor: HTTP fetching, caching, rate limiting."""

from .cache import FileCache, MemoryCache, cache_key
from .http_client import HttpClient
from .rate_limit import RequestRateLimiter

__all__ = ["FileCache", "MemoryCache", "cache_key", "HttpClient", "RequestRateLimiter"]

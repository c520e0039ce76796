"""
Response caching for upstream MeteoSwiss requests.
"""

from .http_cache import MIN_TTL, CacheEntry, HttpCache, StaleValidators, normalize_headers

__all__ = ["MIN_TTL", "CacheEntry", "HttpCache", "StaleValidators", "normalize_headers"]

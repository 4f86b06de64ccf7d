"""
Response caching package.

Wraps route handlers with a read-through cache keyed by the request URL.
Entries expire by TTL only; writes elsewhere in the service never
invalidate them.
"""

from .keys import derive_cache_key
from .payload import CachedPayload
from .response_cache import CacheOptions, CapturedResponse, ResponseCache, cached_route_class
from .stores import CacheStore, InMemoryCacheStore
from .redis_store import RedisCacheStore

__all__ = [
    "derive_cache_key",
    "CachedPayload",
    "CacheOptions",
    "CapturedResponse",
    "ResponseCache",
    "cached_route_class",
    "CacheStore",
    "InMemoryCacheStore",
    "RedisCacheStore",
]

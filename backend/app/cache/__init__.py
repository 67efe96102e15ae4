"""Cache collaborator for memoizing chain results."""

from backend.app.cache.store import (
    Cache,
    CacheTTL,
    InMemoryCache,
    RedisCache,
    build_cache_key,
)

__all__ = ["Cache", "CacheTTL", "InMemoryCache", "RedisCache", "build_cache_key"]

"""Key/value cache with TTL used by chains to memoize model calls."""

from __future__ import annotations

import json
import logging
import threading
from collections.abc import Awaitable, Callable
from datetime import UTC, datetime, timedelta
from enum import IntEnum
from typing import Any, Protocol

import redis.asyncio as redis
from redis.exceptions import RedisError

from backend.app.models.common import compute_digest

logger = logging.getLogger(__name__)

CACHE_KEY_PREFIX = "llm"


class CacheTTL(IntEnum):
    """TTL tiers in seconds."""

    SHORT = 300
    MEDIUM = 1800
    DEFAULT = 3600
    LONG = 86400


def build_cache_key(chain: str, locale: str, payload: Any) -> str:
    """Deterministic key for a chain invocation.

    Args:
        chain: Chain name, e.g. "intent".
        locale: Resolved locale.
        payload: JSON-serializable normalized input.

    Returns:
        Key of the form ``llm:<chain>:<locale>:<sha256>``.
    """
    return f"{CACHE_KEY_PREFIX}:{chain}:{locale}:{compute_digest(payload)}"


class Cache(Protocol):
    """Async cache contract. Values must be JSON-serializable."""

    async def get(self, key: str) -> Any | None:
        """Get value, or None when absent or expired."""
        ...

    async def set(self, key: str, value: Any, ttl_seconds: int) -> None:
        """Store value with a TTL."""
        ...

    async def delete(self, key: str) -> None:
        """Remove value if present."""
        ...

    async def get_or_set(
        self,
        key: str,
        factory: Callable[[], Awaitable[Any]],
        ttl_seconds: int,
    ) -> Any:
        """Get value, computing and storing it on a miss."""
        ...


class _GetOrSetMixin:
    async def get_or_set(
        self,
        key: str,
        factory: Callable[[], Awaitable[Any]],
        ttl_seconds: int,
    ) -> Any:
        cached = await self.get(key)  # type: ignore[attr-defined]
        if cached is not None:
            logger.debug(f"Cache hit: {key}")
            return cached
        value = await factory()
        if value is not None:
            await self.set(key, value, ttl_seconds)  # type: ignore[attr-defined]
        return value


class InMemoryCache(_GetOrSetMixin):
    """Simple in-memory cache with TTL support."""

    def __init__(self) -> None:
        self._store: dict[str, tuple[Any, datetime]] = {}
        self._lock = threading.Lock()

    async def get(self, key: str) -> Any | None:
        """Get value from cache if not expired."""
        with self._lock:
            if key not in self._store:
                return None
            value, expires_at = self._store[key]
            if datetime.now(UTC) > expires_at:
                del self._store[key]
                return None
            return value

    async def set(self, key: str, value: Any, ttl_seconds: int) -> None:
        """Set value in cache with TTL."""
        with self._lock:
            expires_at = datetime.now(UTC) + timedelta(seconds=ttl_seconds)
            self._store[key] = (value, expires_at)

    async def delete(self, key: str) -> None:
        with self._lock:
            self._store.pop(key, None)

    def __len__(self) -> int:
        with self._lock:
            return len(self._store)


class RedisCache(_GetOrSetMixin):
    """Redis-backed cache storing JSON-encoded values.

    Backend failures are logged and behave as misses so a Redis outage never
    fails a chain.
    """

    def __init__(self, client: redis.Redis) -> None:
        self.client = client

    @classmethod
    def from_url(cls, url: str) -> RedisCache:
        return cls(redis.from_url(url, decode_responses=True))

    async def get(self, key: str) -> Any | None:
        try:
            raw = await self.client.get(key)
        except RedisError as e:
            logger.warning(f"Cache get failed for {key}: {e}")
            return None
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except ValueError as e:
            logger.warning(f"Discarding undecodable cache entry {key}: {e}")
            return None

    async def set(self, key: str, value: Any, ttl_seconds: int) -> None:
        try:
            await self.client.set(key, json.dumps(value, ensure_ascii=False), ex=ttl_seconds)
        except RedisError as e:
            logger.warning(f"Cache set failed for {key}: {e}")

    async def delete(self, key: str) -> None:
        try:
            await self.client.delete(key)
        except RedisError as e:
            logger.warning(f"Cache delete failed for {key}: {e}")

    async def ping(self) -> bool:
        """Whether the Redis server answers PING."""
        try:
            return bool(await self.client.ping())
        except RedisError as e:
            logger.warning(f"Redis ping failed: {e}")
            return False

    async def aclose(self) -> None:
        await self.client.aclose()

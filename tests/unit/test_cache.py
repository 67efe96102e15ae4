"""Tests for the in-memory and Redis caches."""

import json
from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock, patch

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from backend.app.cache import CacheTTL, InMemoryCache, RedisCache, build_cache_key


def test_key_is_deterministic_and_namespaced() -> None:
    first = build_cache_key("intent", "en", {"query": "auckland", "context": []})
    second = build_cache_key("intent", "en", {"context": [], "query": "auckland"})
    other = build_cache_key("intent", "zh", {"query": "auckland", "context": []})

    assert first == second
    assert first != other
    prefix, chain, locale, digest = first.split(":")
    assert (prefix, chain, locale) == ("llm", "intent", "en")
    assert len(digest) == 64


def test_ttl_tiers() -> None:
    assert CacheTTL.SHORT == 300
    assert CacheTTL.MEDIUM == 1800
    assert CacheTTL.DEFAULT == 3600
    assert CacheTTL.LONG == 86400


async def test_in_memory_get_set_delete() -> None:
    cache = InMemoryCache()
    await cache.set("k", {"a": 1}, 60)
    assert await cache.get("k") == {"a": 1}

    await cache.delete("k")
    assert await cache.get("k") is None


async def test_in_memory_entry_expires() -> None:
    cache = InMemoryCache()
    await cache.set("k", "v", 60)

    later = datetime.now(UTC) + timedelta(seconds=61)
    with patch("backend.app.cache.store.datetime") as mock_datetime:
        mock_datetime.now.return_value = later
        assert await cache.get("k") is None
    assert len(cache) == 0


async def test_get_or_set_computes_once() -> None:
    cache = InMemoryCache()
    factory = AsyncMock(return_value={"n": 1})

    assert await cache.get_or_set("k", factory, 60) == {"n": 1}
    assert await cache.get_or_set("k", factory, 60) == {"n": 1}
    factory.assert_awaited_once()


async def test_get_or_set_does_not_store_none() -> None:
    cache = InMemoryCache()
    assert await cache.get_or_set("k", AsyncMock(return_value=None), 60) is None
    assert len(cache) == 0


async def test_get_or_set_propagates_factory_errors() -> None:
    cache = InMemoryCache()
    with pytest.raises(ValueError):
        await cache.get_or_set("k", AsyncMock(side_effect=ValueError("bad")), 60)
    assert len(cache) == 0


@pytest.fixture
def redis_client() -> AsyncMock:
    return AsyncMock()


async def test_redis_set_writes_json_with_ttl(redis_client: AsyncMock) -> None:
    cache = RedisCache(redis_client)
    await cache.set("k", {"title": "奥克兰"}, 300)
    redis_client.set.assert_awaited_once_with("k", '{"title": "奥克兰"}', ex=300)


async def test_redis_get_decodes_json(redis_client: AsyncMock) -> None:
    redis_client.get.return_value = json.dumps({"a": [1, 2]})
    assert await RedisCache(redis_client).get("k") == {"a": [1, 2]}


async def test_redis_miss_and_garbage_are_none(redis_client: AsyncMock) -> None:
    cache = RedisCache(redis_client)
    redis_client.get.return_value = None
    assert await cache.get("k") is None
    redis_client.get.return_value = "{not json"
    assert await cache.get("k") is None


async def test_redis_outage_behaves_as_miss(redis_client: AsyncMock) -> None:
    redis_client.get.side_effect = RedisConnectionError("refused")
    redis_client.set.side_effect = RedisConnectionError("refused")
    cache = RedisCache(redis_client)

    value = await cache.get_or_set("k", AsyncMock(return_value={"ok": True}), 60)

    assert value == {"ok": True}


async def test_redis_ping(redis_client: AsyncMock) -> None:
    cache = RedisCache(redis_client)
    redis_client.ping.return_value = True
    assert await cache.ping() is True

    redis_client.ping.side_effect = RedisConnectionError("refused")
    assert await cache.ping() is False

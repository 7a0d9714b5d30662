"""
Cache Facade — Redis Cache Backend Tests

Tests the serialized backend against fakeredis: JSON payloads, type
metadata, TTL handling, sliding entries, namespace isolation and the
translation of redis errors.
"""

import asyncio
import json
from datetime import timedelta
from unittest.mock import AsyncMock

import fakeredis
import pytest
from pydantic import BaseModel
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import ResponseError

from cache_facade.cache.backends.redis import SLIDE_SUFFIX, RedisCacheBackend
from cache_facade.cache.expiration import ExpirationPolicy
from cache_facade.cache.interface import StoreCapability
from cache_facade.errors import CacheConnectionError, CacheOperationError, SerializationError
from cache_facade.serialization import type_name_of


class Distributor(BaseModel):
    name: str
    region: str = "EMEA"


class TestRedisCacheBackend:
    """Test suite for RedisCacheBackend."""

    def test_requires_url_or_client(self) -> None:
        with pytest.raises(ValueError):
            RedisCacheBackend(redis_url="")

    async def test_capability(self, redis_backend: RedisCacheBackend) -> None:
        assert redis_backend.capability == StoreCapability.SERIALIZED

    async def test_add_stores_json(self, redis_backend: RedisCacheBackend) -> None:
        assert await redis_backend.add({"msg": "hello"}, "greeting") is True
        raw = await redis_backend.fetch_raw("greeting")
        assert isinstance(raw, str)
        assert json.loads(raw) == {"msg": "hello"}

    async def test_fetch_missing_key(self, redis_backend: RedisCacheBackend) -> None:
        assert await redis_backend.fetch_raw("nope") is None
        stats = await redis_backend.get_stats()
        assert stats["misses"] == 1
        assert stats["backend"] == "redis"

    async def test_add_with_type_metadata(self, redis_backend: RedisCacheBackend) -> None:
        await redis_backend.add(Distributor(name="Acme"), "dist", with_type_metadata=True)
        data = json.loads(await redis_backend.fetch_raw("dist"))
        assert data == {"$type": type_name_of(Distributor), "name": "Acme", "region": "EMEA"}

    async def test_model_without_type_metadata(self, redis_backend: RedisCacheBackend) -> None:
        await redis_backend.add(Distributor(name="Acme"), "dist")
        data = json.loads(await redis_backend.fetch_raw("dist"))
        assert "$type" not in data

    async def test_unserializable_value(self, redis_backend: RedisCacheBackend) -> None:
        with pytest.raises(SerializationError):
            await redis_backend.add(object(), "bad")

    async def test_remove_is_idempotent(self, redis_backend: RedisCacheBackend) -> None:
        await redis_backend.add("value", "key")
        assert await redis_backend.remove("key") is True
        assert await redis_backend.exists("key") is False
        assert await redis_backend.remove("key") is True

    async def test_absolute_ttl_is_set(
        self, redis_backend: RedisCacheBackend, fake_redis_client: fakeredis.FakeAsyncRedis
    ) -> None:
        await redis_backend.add("value", "key", ExpirationPolicy.absolute(timedelta(minutes=10)))
        pttl = await fake_redis_client.pttl("test:key")
        assert 0 < pttl <= 600_000

    async def test_default_ttl_applied(
        self, redis_backend: RedisCacheBackend, fake_redis_client: fakeredis.FakeAsyncRedis
    ) -> None:
        await redis_backend.add("value", "key")
        ttl = await fake_redis_client.ttl("test:key")
        assert 0 < ttl <= 3600

    async def test_extend_expiration(
        self, redis_backend: RedisCacheBackend, fake_redis_client: fakeredis.FakeAsyncRedis
    ) -> None:
        await redis_backend.add("value", "key", ExpirationPolicy.absolute(timedelta(seconds=5)))
        assert await redis_backend.extend_expiration("key", timedelta(minutes=30)) is True
        ttl = await fake_redis_client.ttl("test:key")
        assert ttl > 5

    async def test_extend_with_non_positive_duration_expires(
        self, redis_backend: RedisCacheBackend, fake_redis_client: fakeredis.FakeAsyncRedis
    ) -> None:
        await redis_backend.add("value", "key", ExpirationPolicy.sliding(timedelta(minutes=10)))

        assert await redis_backend.extend_expiration("key", timedelta(0)) is True
        assert await fake_redis_client.pttl("test:key") == -2
        assert await fake_redis_client.exists("test:key" + SLIDE_SUFFIX) == 0
        assert await redis_backend.extend_expiration("key", timedelta(seconds=-1)) is False

    async def test_extend_missing_key(self, redis_backend: RedisCacheBackend) -> None:
        assert await redis_backend.extend_expiration("missing", timedelta(minutes=1)) is False

    async def test_sliding_entry_rearmed_on_fetch(self, redis_backend: RedisCacheBackend) -> None:
        await redis_backend.add("value", "key", ExpirationPolicy.sliding(timedelta(milliseconds=400)))
        await asyncio.sleep(0.25)
        assert await redis_backend.fetch_raw("key") is not None
        await asyncio.sleep(0.25)
        assert await redis_backend.exists("key") is True
        await asyncio.sleep(0.5)
        assert await redis_backend.exists("key") is False

    async def test_absolute_overwrite_drops_sliding(
        self, redis_backend: RedisCacheBackend, fake_redis_client: fakeredis.FakeAsyncRedis
    ) -> None:
        await redis_backend.add("v1", "key", ExpirationPolicy.sliding(timedelta(minutes=1)))
        await redis_backend.add("v2", "key", ExpirationPolicy.absolute(timedelta(minutes=1)))
        assert await fake_redis_client.exists("test:key:__slide__") == 0

    async def test_namespace_isolation(self, fake_redis_client: fakeredis.FakeAsyncRedis) -> None:
        first = RedisCacheBackend(namespace="one", client=fake_redis_client)
        second = RedisCacheBackend(namespace="two", client=fake_redis_client)

        await first.add("a", "key")
        await second.add("b", "key")
        await first.clear()

        assert await first.fetch_raw("key") is None
        assert json.loads(await second.fetch_raw("key")) == "b"

    async def test_connection_error_translated(self) -> None:
        client = AsyncMock()
        client.exists.side_effect = RedisConnectionError("refused")
        backend = RedisCacheBackend(client=client)

        with pytest.raises(CacheConnectionError):
            await backend.exists("key")

    async def test_response_error_translated(self) -> None:
        client = AsyncMock()
        client.delete.side_effect = ResponseError("WRONGTYPE")
        backend = RedisCacheBackend(client=client)

        with pytest.raises(CacheOperationError):
            await backend.remove("key")

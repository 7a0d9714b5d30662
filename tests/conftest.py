"""
Cache Facade — Test Configuration and Shared Fixtures

Provides pytest configuration and shared fixtures for unit and integration tests.
The Redis backend runs against fakeredis, so no Redis server is needed.
"""

import os
from collections.abc import AsyncGenerator, Generator

import fakeredis
import pytest

from cache_facade.cache.backends.memory import MemoryCacheBackend
from cache_facade.cache.backends.redis import RedisCacheBackend

# Set test environment
os.environ["ENVIRONMENT"] = "test"
os.environ["LOG_LEVEL"] = "DEBUG"


class FakeClock:
    """Manually advanced time source for the memory backend."""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def memory_backend(clock: FakeClock) -> MemoryCacheBackend:
    """Memory backend driven by the fake clock."""
    return MemoryCacheBackend(max_size=100, default_ttl=3600, namespace="test", clock=clock)


@pytest.fixture
def fake_redis_client() -> fakeredis.FakeAsyncRedis:
    """Isolated in-process Redis."""
    return fakeredis.FakeAsyncRedis(server=fakeredis.FakeServer(), decode_responses=True)


@pytest.fixture
async def redis_backend(fake_redis_client: fakeredis.FakeAsyncRedis) -> AsyncGenerator[RedisCacheBackend, None]:
    """Redis backend on top of fakeredis."""
    backend = RedisCacheBackend(namespace="test", default_ttl=3600, client=fake_redis_client)
    yield backend
    await backend.clear()
    await backend.close()


@pytest.fixture
def mock_env_memory(monkeypatch: pytest.MonkeyPatch) -> None:
    """Set environment variables for memory cache backend."""
    monkeypatch.delenv("REDIS_URL", raising=False)
    monkeypatch.setenv("CACHE_BACKEND", "memory")
    monkeypatch.setenv("CACHE_MAX_SIZE", "100")
    monkeypatch.setenv("CACHE_TTL_SECONDS", "3600")
    monkeypatch.setenv("CACHE_NAMESPACE", "test")


@pytest.fixture(autouse=True)
def reset_backend_instances() -> Generator[None, None, None]:
    """Forget named backends after each test to prevent state leakage."""
    yield
    from cache_facade.cache.factory import reset_instances

    reset_instances()

"""
Cache Facade — Backend Construction Integration Tests

Tests building backends from configuration, the shared instance per name,
and wiring a facade (backend, default duration, logging) from a FacadeConfig.
"""

import logging
from collections.abc import Generator
from datetime import timedelta

import pytest

from cache_facade.cache.backends.memory import MemoryCacheBackend
from cache_facade.cache.factory import build_backend, get_instance
from cache_facade.cache.interface import CacheBackendInterface, StoreCapability
from cache_facade.config import CacheBackend, CacheConfig, FacadeConfig, MappingConfigSource, reload_config
from cache_facade.errors import ConfigurationError
from cache_facade.facade import create_facade
from cache_facade.observability import JSONFormatter


@pytest.fixture
def package_logger() -> Generator[logging.Logger, None, None]:
    """The package logger, restored after the test reconfigures it."""
    logger = logging.getLogger("cache_facade")
    handlers, level = list(logger.handlers), logger.level
    yield logger
    logger.handlers[:] = handlers
    logger.setLevel(level)


class TestBuildBackend:
    def test_memory_backend_from_config(self) -> None:
        config = CacheConfig(backend=CacheBackend.MEMORY, ttl_seconds=600, max_size=5, namespace="explicit")
        backend = build_backend(config)

        assert isinstance(backend, MemoryCacheBackend)
        assert backend.capability == StoreCapability.NATIVE
        assert backend.default_ttl == 600
        assert backend.max_size == 5

    def test_redis_backend_from_config(self) -> None:
        config = CacheConfig(backend=CacheBackend.REDIS, redis_url="redis://localhost:6379/15", namespace="r")
        backend = build_backend(config)

        assert backend.capability == StoreCapability.SERIALIZED
        assert backend.namespace == "r"  # type: ignore[attr-defined]

    def test_redis_without_url(self) -> None:
        config = CacheConfig.model_construct(backend=CacheBackend.REDIS, redis_url=None)
        with pytest.raises(ConfigurationError):
            build_backend(config)

    def test_unknown_backend(self) -> None:
        config = CacheConfig.model_construct(backend="memcached")
        with pytest.raises(ConfigurationError) as exc_info:
            build_backend(config)
        assert exc_info.value.details["supported"] == ["memory", "redis"]

    def test_builds_a_new_backend_each_call(self) -> None:
        config = CacheConfig()
        assert build_backend(config) is not build_backend(config)


class TestGetInstance:
    def test_same_name_returns_same_instance(self) -> None:
        first = get_instance("shared", CacheConfig(backend=CacheBackend.MEMORY))
        second = get_instance("shared", CacheConfig(backend=CacheBackend.MEMORY, max_size=2))

        assert first is second
        assert isinstance(first, CacheBackendInterface)

    def test_names_are_independent(self) -> None:
        assert get_instance("a", CacheConfig()) is not get_instance("b", CacheConfig())

    def test_defaults_to_global_config(self, mock_env_memory: None) -> None:
        reload_config(env_file="does-not-exist.env")
        backend = get_instance()

        assert isinstance(backend, MemoryCacheBackend)
        assert backend.namespace == "test"
        assert backend.max_size == 100


class TestCreateFacade:
    def test_duration_from_setting(self) -> None:
        config = FacadeConfig(
            cache=CacheConfig(default_duration_setting="QuoteCacheMinutes", default_duration_minutes=5),
        )
        facade = create_facade(
            config,
            name="quotes",
            config_source=MappingConfigSource({"QuoteCacheMinutes": "20"}),
        )

        assert facade.default_duration == timedelta(minutes=20)
        assert facade.capability == StoreCapability.NATIVE

    def test_duration_setting_fallback(self) -> None:
        config = FacadeConfig(
            cache=CacheConfig(default_duration_setting="QuoteCacheMinutes", default_duration_minutes=5),
        )
        facade = create_facade(config, name="fallback", config_source=MappingConfigSource())

        assert facade.default_duration == timedelta(minutes=5)

    def test_static_duration(self) -> None:
        facade = create_facade(FacadeConfig(cache=CacheConfig(default_duration_minutes=7)), name="static")
        assert facade.default_duration == timedelta(minutes=7)

    def test_facades_share_named_backend(self) -> None:
        first = create_facade(FacadeConfig(), name="orders", config_source=MappingConfigSource())
        second = create_facade(FacadeConfig(), name="orders", config_source=MappingConfigSource())
        assert first.backend is second.backend

    def test_logging_left_alone_by_default(self, package_logger: logging.Logger) -> None:
        before = list(package_logger.handlers)
        create_facade(FacadeConfig(), name="quiet", config_source=MappingConfigSource())
        assert package_logger.handlers == before

    def test_setup_logging_from_config(self, package_logger: logging.Logger) -> None:
        config = FacadeConfig(log_level="WARNING", json_logs=True)
        create_facade(config, name="logged", config_source=MappingConfigSource(), setup_logging=True)

        assert package_logger.level == logging.WARNING
        assert isinstance(package_logger.handlers[0].formatter, JSONFormatter)

    async def test_end_to_end(self) -> None:
        facade = create_facade(FacadeConfig(), name="e2e", config_source=MappingConfigSource())

        assert await facade.add({"total": 10}, "order:1", duration=timedelta(minutes=1)) is True
        assert await facade.get("order:1") == {"total": 10}
        assert await facade.remove("order:1") is True
        assert await facade.get("order:1") is None

"""
Cache Facade — Backend Construction

build_backend() turns a CacheConfig into a backend; get_instance() hands out
one shared backend per name, so every facade created under a name reads and
writes the same store.
"""

import logging
from collections.abc import Callable

from ..config import CacheBackend, CacheConfig, get_config
from ..errors import ConfigurationError
from .backends.memory import MemoryCacheBackend
from .interface import CacheBackendInterface

logger = logging.getLogger(__name__)

_instances: dict[str, CacheBackendInterface] = {}


def _memory(config: CacheConfig) -> CacheBackendInterface:
    return MemoryCacheBackend(max_size=config.max_size, default_ttl=config.ttl_seconds, namespace=config.namespace)


def _redis(config: CacheConfig) -> CacheBackendInterface:
    if not config.redis_url:
        raise ConfigurationError("REDIS_URL must be set for the redis backend", details={"env": "REDIS_URL"})

    # Deferred so a memory-only setup never loads redis
    from .backends.redis import RedisCacheBackend

    return RedisCacheBackend(
        redis_url=config.redis_url,
        namespace=config.namespace,
        default_ttl=config.ttl_seconds,
        max_connections=config.redis_max_connections,
        socket_timeout=config.redis_socket_timeout,
    )


_BUILDERS: dict[CacheBackend, Callable[[CacheConfig], CacheBackendInterface]] = {
    CacheBackend.MEMORY: _memory,
    CacheBackend.REDIS: _redis,
}


def build_backend(config: CacheConfig) -> CacheBackendInterface:
    """
    Build a new backend from config.

    Raises:
        ConfigurationError: If the backend kind is unknown or the backend cannot be built
    """
    try:
        kind = CacheBackend(config.backend)
    except ValueError as e:
        raise ConfigurationError(
            f"Unknown cache backend: {config.backend}",
            details={"backend": str(config.backend), "supported": [b.value for b in CacheBackend]},
        ) from e

    try:
        return _BUILDERS[kind](config)
    except ConfigurationError:
        raise
    except Exception as e:
        raise ConfigurationError(
            f"Failed to build {kind.value} backend: {e}",
            details={"backend": kind.value, "error": str(e)},
        ) from e


def get_instance(name: str = "default", config: CacheConfig | None = None) -> CacheBackendInterface:
    """
    Return the backend registered under name, building it on first use.

    config (default: the global configuration's cache section) only applies
    to the first call for a name.
    """
    backend = _instances.get(name)
    if backend is None:
        config = config or get_config().cache
        backend = build_backend(config)
        _instances[name] = backend
        logger.info(
            f"Built {backend.capability.value} cache backend '{name}'",
            extra={"cache_name": name, "backend": str(config.backend)},
        )
    return backend


def reset_instances() -> None:
    """Forget all named backends without closing them. For tests."""
    _instances.clear()

"""
Cache Facade — Redis Cache Backend

Asynchronous Redis cache implementation with:
- JSON payloads, optionally carrying "$type" discriminators
- Per-key absolute or sliding expiration (millisecond precision)
- Namespace prefixing for safe multi-tenant usage

fetch_raw returns the stored JSON text untouched; turning it back into a
typed value is the facade's job.

Requires: redis>=5.0 with asyncio support

Example:
    cache = RedisCacheBackend(redis_url="redis://localhost:6379", namespace="quotes", default_ttl=3600)
    await cache.add({"msg": "hello"}, "greeting", ExpirationPolicy.absolute(timedelta(minutes=1)))
    raw = await cache.fetch_raw("greeting")  # '{"msg":"hello"}'
"""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import Any

from redis.asyncio import Redis
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import RedisError
from redis.exceptions import TimeoutError as RedisTimeoutError

from ...errors import CacheConnectionError, CacheOperationError, InvalidKeyError
from ...serialization.encoder import encode
from ..expiration import ExpirationPolicy
from ..interface import CacheBackendInterface, StoreCapability

logger = logging.getLogger(__name__)

# Suffix of the companion key that remembers a sliding entry's window (ms)
SLIDE_SUFFIX = ":__slide__"


def _to_ms(seconds: float | None) -> int | None:
    if seconds is None:
        return None
    return max(1, round(seconds * 1000))


class RedisCacheBackend(CacheBackendInterface):
    """
    Redis cache backend storing JSON payloads.

    Notes:
    - Keys are prefixed with the configured namespace to avoid collisions.
    - TTL is applied via PX milliseconds (None -> default_ttl, 0 -> no expiry).
    - Sliding entries keep their window in a companion key; every fetch
      re-arms both keys with PEXPIRE.
    """

    capability = StoreCapability.SERIALIZED

    def __init__(
        self,
        redis_url: str | None = None,
        namespace: str = "cache",
        default_ttl: int = 3600,
        max_connections: int = 10,
        socket_timeout: int = 5,
        client: Redis | None = None,
    ) -> None:
        """
        Initialize Redis cache backend.

        Args:
            redis_url: Connection URL, e.g., redis://localhost:6379/0 or rediss:// for TLS
            namespace: Prefix for all keys
            default_ttl: Default TTL in seconds (0 => no expiry)
            max_connections: Connection pool size
            socket_timeout: Socket timeout in seconds
            client: Pre-built asyncio client (takes precedence over redis_url)
        """
        if client is None and not redis_url:
            raise ValueError("redis_url is required")

        self.namespace = namespace.strip() or "cache"
        self.default_ttl = max(0, int(default_ttl))
        self._hits = 0
        self._misses = 0
        self._sets = 0
        self._deletes = 0

        if client is not None:
            self._client = client
        else:
            # Lazy connection; connects on first command
            self._client = Redis.from_url(  # type: ignore[call-overload]
                url=redis_url,
                decode_responses=True,
                max_connections=max_connections,
                socket_timeout=socket_timeout,
            )

    # ------------ Helpers ------------

    def _make_key(self, key: str) -> str:
        """Create namespaced key."""
        if not key or not isinstance(key, str):
            raise InvalidKeyError(key)
        return f"{self.namespace}:{key}"

    def _wrap(self, error: RedisError, operation: str, key: str | None = None) -> Exception:
        """Translate a redis-py error into the cache error hierarchy."""
        details = {"operation": operation, "namespace": self.namespace, "error": str(error)}
        if key is not None:
            details["key"] = key
        if isinstance(error, (RedisConnectionError, RedisTimeoutError)):
            return CacheConnectionError("redis", details)
        return CacheOperationError(f"Redis {operation} failed: {error}", details)

    @staticmethod
    def _as_text(data: str | bytes) -> str:
        if isinstance(data, bytes):
            return data.decode("utf-8")
        return data

    # ------------ Core Interface ------------

    async def add(
        self,
        value: Any,
        key: str,
        policy: ExpirationPolicy | None = None,
        with_type_metadata: bool = False,
    ) -> bool:
        """Serialize and store a value."""
        policy = policy or ExpirationPolicy()
        ns_key = self._make_key(key)
        px = _to_ms(policy.ttl_seconds(self.default_ttl))
        payload = encode(value, with_type_metadata)

        try:
            pipe = self._client.pipeline(transaction=True)
            pipe.set(ns_key, payload, px=px)
            if policy.is_sliding and px:
                pipe.set(ns_key + SLIDE_SUFFIX, px, px=px)
            else:
                pipe.delete(ns_key + SLIDE_SUFFIX)
            results = await pipe.execute()
        except RedisError as e:
            raise self._wrap(e, "add", key) from e

        # redis-py returns True or 'OK' depending on decode_responses
        success = bool(results[0])
        if success:
            self._sets += 1
        return success

    async def remove(self, key: str) -> bool:
        """Delete a key. Absent keys are not an error."""
        ns_key = self._make_key(key)
        try:
            deleted = await self._client.delete(ns_key, ns_key + SLIDE_SUFFIX)
        except RedisError as e:
            raise self._wrap(e, "remove", key) from e

        if deleted:
            self._deletes += 1
        return True

    async def fetch_raw(self, key: str) -> str | None:
        """Return the stored JSON text, re-arming sliding entries."""
        ns_key = self._make_key(key)
        try:
            pipe = self._client.pipeline(transaction=False)
            pipe.get(ns_key)
            pipe.get(ns_key + SLIDE_SUFFIX)
            data, slide_ms = await pipe.execute()

            if data is None:
                self._misses += 1
                return None

            if slide_ms is not None:
                window = int(slide_ms)
                pipe = self._client.pipeline(transaction=False)
                pipe.pexpire(ns_key, window)
                pipe.pexpire(ns_key + SLIDE_SUFFIX, window)
                await pipe.execute()
        except RedisError as e:
            raise self._wrap(e, "fetch", key) from e

        self._hits += 1
        return self._as_text(data)

    async def extend_expiration(self, key: str, duration: timedelta | None = None) -> bool:
        """Reset the key's expiry to now + duration with PEXPIRE."""
        ns_key = self._make_key(key)
        px = _to_ms(ExpirationPolicy.absolute(duration).ttl_seconds(self.default_ttl))

        try:
            if duration is not None and duration <= timedelta(0):
                # now + duration is already in the past
                deleted = await self._client.delete(ns_key, ns_key + SLIDE_SUFFIX)
                if deleted:
                    self._deletes += 1
                return bool(deleted)
            if px is None:
                return bool(await self._client.persist(ns_key)) or bool(await self._client.exists(ns_key))
            return bool(await self._client.pexpire(ns_key, px))
        except RedisError as e:
            raise self._wrap(e, "extend_expiration", key) from e

    async def exists(self, key: str) -> bool:
        """Check if a key exists."""
        ns_key = self._make_key(key)
        try:
            return bool(await self._client.exists(ns_key))
        except RedisError as e:
            raise self._wrap(e, "exists", key) from e

    async def clear(self) -> bool:
        """
        Clear all entries under the namespace.

        Implementation: SCAN match "<namespace>:*" and DEL in batches.
        """
        pattern = f"{self.namespace}:*"
        cursor = 0
        total_deleted = 0
        batch_size = 1000

        try:
            while True:
                cursor, keys = await self._client.scan(cursor=cursor, match=pattern, count=batch_size)
                if keys:
                    total_deleted += await self._client.delete(*keys)
                if cursor == 0:
                    break
        except RedisError as e:
            raise self._wrap(e, "clear") from e

        self._deletes += total_deleted
        logger.info(f"Cleared {total_deleted} keys from namespace '{self.namespace}'")
        return True

    async def get_stats(self) -> dict[str, Any]:
        """Return cache statistics and basic Redis info."""
        stats: dict[str, Any] = {
            "backend": "redis",
            "capability": self.capability.value,
            "namespace": self.namespace,
            "default_ttl": self.default_ttl,
            "hits": self._hits,
            "misses": self._misses,
            "hit_rate": 0.0,
            "sets": self._sets,
            "deletes": self._deletes,
            "connected": False,
        }

        total_requests = self._hits + self._misses
        stats["hit_rate"] = round((self._hits / total_requests) * 100, 2) if total_requests else 0.0

        try:
            stats["connected"] = bool(await self._client.ping())
            info = await self._client.info(section="server")
            stats["redis_version"] = info.get("redis_version")
            stats["redis_mode"] = info.get("redis_mode")
        except RedisError as e:
            # INFO may be restricted; keep minimal stats
            logger.warning(f"Failed to get Redis INFO (restricted or unavailable): {e}", extra={"error": str(e)})

        return stats

    async def close(self) -> None:
        """Close the Redis client and release resources."""
        try:
            await self._client.aclose()
            logger.info(f"Closed Redis cache backend for namespace '{self.namespace}'")
        except RedisError as e:
            logger.error(
                f"Error closing Redis client: {e}", extra={"namespace": self.namespace, "error": str(e)}, exc_info=True
            )

"""
Cache Facade — Memory Cache Backend

In-process native-object cache with LRU eviction and TTL support.
Values are stored and returned as the Python objects they are; nothing is
serialized. Safe for concurrent use from one event loop.
"""

import asyncio
import logging
import time
from collections import OrderedDict
from collections.abc import Callable
from datetime import timedelta
from typing import Any

from ...errors import InvalidKeyError
from ..expiration import ExpirationPolicy
from ..interface import CacheBackendInterface, StoreCapability

logger = logging.getLogger(__name__)


class _Entry:
    __slots__ = ("value", "expiry", "slide_seconds")

    def __init__(self, value: Any, expiry: float | None, slide_seconds: float | None):
        self.value = value
        self.expiry = expiry
        self.slide_seconds = slide_seconds


class MemoryCacheBackend(CacheBackendInterface):
    """
    In-memory cache backend with LRU eviction.

    Features:
    - LRU eviction when max_size is reached
    - Per-key absolute or sliding expiration
    - In-place expiry extension
    - O(1) add/fetch/remove operations
    """

    capability = StoreCapability.NATIVE

    def __init__(
        self,
        max_size: int = 1000,
        default_ttl: int = 3600,
        namespace: str = "cache",
        clock: Callable[[], float] = time.time,
    ):
        """
        Initialize memory cache backend.

        Args:
            max_size: Maximum number of entries (LRU eviction when exceeded)
            default_ttl: Default TTL in seconds (0 = no expiry)
            namespace: Cache key namespace/prefix
            clock: Time source in seconds, replaceable in tests
        """
        self.max_size = max_size
        self.default_ttl = default_ttl
        self.namespace = namespace
        self._clock = clock

        self._cache: OrderedDict[str, _Entry] = OrderedDict()

        # Stats
        self._hits = 0
        self._misses = 0
        self._sets = 0
        self._deletes = 0
        self._evictions = 0

        self._lock = asyncio.Lock()

    def _make_key(self, key: str) -> str:
        """Create namespaced cache key."""
        if not key or not isinstance(key, str):
            raise InvalidKeyError(key)
        return f"{self.namespace}:{key}"

    def _is_expired(self, entry: _Entry) -> bool:
        if entry.expiry is None:
            return False
        return self._clock() > entry.expiry

    def _expiry_for(self, seconds: float | None) -> float | None:
        return self._clock() + seconds if seconds else None

    def _live_entry(self, cache_key: str) -> _Entry | None:
        """Return the entry for cache_key, dropping it if expired. Caller holds the lock."""
        entry = self._cache.get(cache_key)
        if entry is None:
            return None
        if self._is_expired(entry):
            del self._cache[cache_key]
            return None
        return entry

    async def add(
        self,
        value: Any,
        key: str,
        policy: ExpirationPolicy | None = None,
        with_type_metadata: bool = False,
    ) -> bool:
        """Store value in cache. with_type_metadata has no effect on a native store."""
        policy = policy or ExpirationPolicy()
        cache_key = self._make_key(key)
        ttl = policy.ttl_seconds(self.default_ttl)

        async with self._lock:
            # Evict if at capacity and key is new
            if cache_key not in self._cache and len(self._cache) >= self.max_size:
                evicted_key, _ = self._cache.popitem(last=False)
                self._evictions += 1
                logger.debug(f"Evicted key from memory cache: {evicted_key}")

            self._cache[cache_key] = _Entry(
                value,
                self._expiry_for(ttl),
                ttl if policy.is_sliding else None,
            )
            self._cache.move_to_end(cache_key)
            self._sets += 1

            return True

    async def remove(self, key: str) -> bool:
        """Delete key from cache. Absent keys are not an error."""
        cache_key = self._make_key(key)

        async with self._lock:
            if self._cache.pop(cache_key, None) is not None:
                self._deletes += 1
            return True

    async def fetch_raw(self, key: str) -> Any | None:
        """Retrieve the stored object, refreshing sliding entries."""
        cache_key = self._make_key(key)

        async with self._lock:
            entry = self._live_entry(cache_key)
            if entry is None:
                self._misses += 1
                return None

            if entry.slide_seconds:
                entry.expiry = self._expiry_for(entry.slide_seconds)

            # Mark as recently used
            self._cache.move_to_end(cache_key)
            self._hits += 1

            return entry.value

    async def extend_expiration(self, key: str, duration: timedelta | None = None) -> bool:
        """Reset the key's expiry to now + duration."""
        cache_key = self._make_key(key)
        ttl = ExpirationPolicy.absolute(duration).ttl_seconds(self.default_ttl)

        async with self._lock:
            entry = self._live_entry(cache_key)
            if entry is None:
                return False

            if duration is not None and duration <= timedelta(0):
                # now + duration is already in the past
                del self._cache[cache_key]
                self._deletes += 1
                return True

            entry.expiry = self._expiry_for(ttl)
            return True

    async def exists(self, key: str) -> bool:
        """Check if key exists and is not expired."""
        cache_key = self._make_key(key)

        async with self._lock:
            return self._live_entry(cache_key) is not None

    async def clear(self) -> bool:
        """Clear all entries from cache."""
        async with self._lock:
            size = len(self._cache)
            self._cache.clear()
            logger.info(f"Cleared {size} entries from memory cache namespace '{self.namespace}'")
            return True

    async def get_stats(self) -> dict[str, Any]:
        """Get cache statistics."""
        async with self._lock:
            total_requests = self._hits + self._misses
            hit_rate = (self._hits / total_requests * 100) if total_requests > 0 else 0.0

            return {
                "backend": "memory",
                "capability": self.capability.value,
                "size": len(self._cache),
                "max_size": self.max_size,
                "hits": self._hits,
                "misses": self._misses,
                "hit_rate": round(hit_rate, 2),
                "sets": self._sets,
                "deletes": self._deletes,
                "evictions": self._evictions,
                "namespace": self.namespace,
            }

    async def close(self) -> None:
        """Close cache and release resources."""
        # Nothing to release; data lives in-process
        logger.debug(f"Memory cache backend closed for namespace '{self.namespace}'")

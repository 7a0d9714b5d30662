"""
Cache Facade — Cache Backend Interface

Defines the abstract interface that all cache backends must implement.
"""

from abc import ABC, abstractmethod
from datetime import timedelta
from enum import Enum
from typing import Any, ClassVar

from .expiration import ExpirationPolicy


class StoreCapability(str, Enum):
    """What a backend hands back from fetch_raw."""

    SERIALIZED = "serialized"  # JSON payload strings
    NATIVE = "native"  # the Python objects that were stored


class CacheBackendInterface(ABC):
    """
    Abstract base class for cache backends.

    Backends raise on failure (CacheError and subclasses); turning failures
    into misses is the facade's job, not theirs.
    """

    capability: ClassVar[StoreCapability]

    @abstractmethod
    async def add(
        self,
        value: Any,
        key: str,
        policy: ExpirationPolicy | None = None,
        with_type_metadata: bool = False,
    ) -> bool:
        """
        Store a value, replacing any existing entry for key.

        Args:
            value: Value to cache
            key: Cache key
            policy: Expiration policy (None = backend default TTL, absolute)
            with_type_metadata: Embed type discriminators in serialized payloads

        Returns:
            True if the backend accepted the write
        """
        pass

    @abstractmethod
    async def remove(self, key: str) -> bool:
        """
        Delete a key. Removing an absent key is not an error.

        Returns:
            True once the backend completed the delete
        """
        pass

    @abstractmethod
    async def fetch_raw(self, key: str) -> Any | None:
        """
        Retrieve the stored representation of a key.

        Returns:
            JSON string (serialized stores) or the stored object (native
            stores); None if the key is absent or expired
        """
        pass

    @abstractmethod
    async def extend_expiration(self, key: str, duration: timedelta | None = None) -> bool:
        """
        Reset a key's expiry horizon to now + duration, in place.

        Args:
            key: Cache key
            duration: New time-to-live (None = backend default TTL). Zero or
                negative puts the horizon in the past, so the entry expires now.

        Returns:
            True if the key existed and its horizon was reset, False if absent
        """
        pass

    @abstractmethod
    async def exists(self, key: str) -> bool:
        """Check if a key exists and is not expired."""
        pass

    @abstractmethod
    async def clear(self) -> bool:
        """Clear all entries in this backend's namespace."""
        pass

    @abstractmethod
    async def get_stats(self) -> dict[str, Any]:
        """Get backend statistics (hits, misses, size, ...)."""
        pass

    @abstractmethod
    async def close(self) -> None:
        """
        Close the backend and release resources.

        Should be called during graceful shutdown.
        """
        pass

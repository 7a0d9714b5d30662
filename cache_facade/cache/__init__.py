"""
Cache Facade — Cache Module

Backend contract, expiration policy, backends and backend construction.

Usage:
    from cache_facade.cache import get_instance, ExpirationPolicy

    backend = get_instance()
    await backend.add("value", "key", ExpirationPolicy.absolute(timedelta(minutes=5)))
    raw = await backend.fetch_raw("key")
"""

from .expiration import ExpirationKind, ExpirationPolicy, resolve_expiration
from .factory import build_backend, get_instance, reset_instances
from .interface import CacheBackendInterface, StoreCapability

__all__ = [
    # Construction
    "build_backend",
    "get_instance",
    "reset_instances",
    # Interface
    "CacheBackendInterface",
    "StoreCapability",
    # Expiration
    "ExpirationKind",
    "ExpirationPolicy",
    "resolve_expiration",
]

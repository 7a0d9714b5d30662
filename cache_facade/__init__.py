"""
Cache Facade

Instrumented, type-aware caching over an in-process or Redis backend.
A cache failure is never an application failure: reads come back None and
writes come back False, with the reason kept on the CacheResult.

Usage:
    from cache_facade import CacheFacade, create_facade

    facade = create_facade()
    await facade.add(report, "report:2024", duration=timedelta(minutes=30))
    report = await facade.get("report:2024", Report)
"""

from .cache import (
    CacheBackendInterface,
    ExpirationKind,
    ExpirationPolicy,
    StoreCapability,
    get_instance,
    resolve_expiration,
)
from .errors import CacheFacadeError, ErrorCode
from .facade import CacheFacade, create_facade
from .instrumentation import CacheResult, OperationId, run_instrumented
from .serialization import DeserializationOutcome, TypeRegistry, TypeResolvingDeserializer

__version__ = "1.0.0"

__all__ = [
    "CacheFacade",
    "create_facade",
    "CacheResult",
    "OperationId",
    "run_instrumented",
    "CacheBackendInterface",
    "StoreCapability",
    "ExpirationKind",
    "ExpirationPolicy",
    "resolve_expiration",
    "get_instance",
    "TypeRegistry",
    "TypeResolvingDeserializer",
    "DeserializationOutcome",
    "CacheFacadeError",
    "ErrorCode",
]

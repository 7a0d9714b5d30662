"""
Cache Facade — CacheFacade

Instrumented, type-aware add / remove / get on top of a pluggable backend.

The facade never lets a cache problem reach the caller: every operation
runs through run_instrumented(), and add/remove/get map any failure to
False/None with CacheResult.or_miss(). Callers that need to know why a
call came back empty use the *_result variants instead.

Whether payloads are JSON (serialized store) or live objects (native store)
is decided once, at construction, from the backend's StoreCapability tag.

Example:
    facade = CacheFacade(MemoryCacheBackend(), type_registry=TypeRegistry.of(Customer))
    await facade.add(customer, "customer:42", duration=timedelta(minutes=10))
    cached = await facade.get("customer:42", Customer, slide_expiration=True)
"""

import logging
from datetime import timedelta
from typing import Any, TypeVar

from .cache.expiration import ExpirationKind, ExpirationPolicy, resolve_expiration
from .cache.factory import get_instance
from .cache.interface import CacheBackendInterface, StoreCapability
from .config import ConfigSource, EnvironmentConfigSource, FacadeConfig, get_config
from .errors import DeserializationError, ErrorCode, InvalidKeyError
from .instrumentation import CacheResult, OperationId, run_instrumented
from .observability import configure_logging_from_config
from .serialization import TypeRegistry, TypeResolvingDeserializer

T = TypeVar("T")

COMPONENT = "cache_facade.CacheFacade"

# Returned by the inner get when the backend has nothing for the key
_MISS = object()


class CacheFacade:
    """Caching facade over a serialized or native backend."""

    def __init__(
        self,
        backend: CacheBackendInterface,
        *,
        logger: logging.Logger | None = None,
        config_source: ConfigSource | None = None,
        type_registry: TypeRegistry | None = None,
        capability: StoreCapability | None = None,
        default_duration: timedelta | None = None,
    ):
        """
        Args:
            backend: Cache backend doing the storage
            logger: Destination for operation logs (default: this module's logger)
            config_source: Where resolve_default_duration() reads settings
            type_registry: Types allowed for polymorphic deserialization
            capability: Override the backend's StoreCapability tag
            default_duration: Initial default duration for sliding reads
        """
        self._backend = backend
        self._capability = StoreCapability(capability or backend.capability)
        self._logger = logger or logging.getLogger(__name__)
        self._config_source = config_source or EnvironmentConfigSource()
        self._deserializer = TypeResolvingDeserializer(type_registry)
        self.default_duration = default_duration

    @property
    def backend(self) -> CacheBackendInterface:
        return self._backend

    @property
    def capability(self) -> StoreCapability:
        return self._capability

    @property
    def is_serialized(self) -> bool:
        return self._capability == StoreCapability.SERIALIZED

    def resolve_default_duration(self, setting_name: str, default_minutes: int = 0) -> timedelta:
        """
        Set the default duration from a configuration setting.

        A positive integer setting is taken as minutes; anything else falls
        back to default_minutes. A zero result clears the default so that
        the backend's own TTL applies.
        """
        duration = resolve_expiration(self._config_source, setting_name, default_minutes)
        self.default_duration = duration if duration > timedelta(0) else None
        self._logger.debug(
            f"Default cache duration set to {duration} from '{setting_name}'",
            extra={"component": COMPONENT, "operation": f"{COMPONENT}.resolve_default_duration"},
        )
        return duration

    @staticmethod
    def _check_key(key: str) -> None:
        if not key or not isinstance(key, str):
            raise InvalidKeyError(key)

    # ------------ Result-returning operations ------------

    async def add_result(
        self,
        value: Any,
        key: str,
        duration: timedelta | None = None,
        serialize_with_type: bool = False,
        sliding: bool = False,
    ) -> CacheResult[bool]:
        """Write value under key; see add()."""
        kind = ExpirationKind.SLIDING if sliding else ExpirationKind.ABSOLUTE
        policy = ExpirationPolicy(duration, kind) if duration is not None or sliding else None

        async def _add() -> bool:
            self._check_key(key)
            return await self._backend.add(value, key, policy, serialize_with_type)

        result = await run_instrumented(OperationId(COMPONENT, "add", key), _add, self._logger)
        if result.ok and not result.value:
            return CacheResult(ok=False, value=False, reason=ErrorCode.CACHE_FAILURE, elapsed=result.elapsed)
        return result

    async def remove_result(self, key: str) -> CacheResult[bool]:
        """Delete key; see remove()."""

        async def _remove() -> bool:
            self._check_key(key)
            return await self._backend.remove(key)

        return await run_instrumented(OperationId(COMPONENT, "remove", key), _remove, self._logger)

    async def get_result(
        self,
        key: str,
        type_: Any = Any,
        slide_expiration: bool = False,
        duration: timedelta | None = None,
        deserialize_with_type: bool = False,
    ) -> CacheResult[Any]:
        """Read key; see get()."""
        errors: list[str] = []

        async def _get() -> Any:
            self._check_key(key)
            raw = await self._backend.fetch_raw(key)
            if raw is None:
                return _MISS

            if self.is_serialized:
                try:
                    outcome = self._deserializer.deserialize_or_raise(raw, type_, with_type=deserialize_with_type)
                except DeserializationError as e:
                    errors.extend(e.errors)
                    raise
                errors.extend(outcome.errors)
                value = outcome.value
            else:
                value = raw

            if slide_expiration:
                await self._backend.extend_expiration(
                    key, duration if duration is not None else self.default_duration
                )
            return value

        result = await run_instrumented(OperationId(COMPONENT, "get", key), _get, self._logger)
        result.deserialization_errors = errors

        if errors:
            self._logger.warning(
                f"Key: {key} get met {len(errors)} deserialization error(s), first: {errors[0]}",
                extra={
                    "component": COMPONENT,
                    "operation": f"{COMPONENT}.get",
                    "key": key,
                    "deserialization_errors": errors,
                },
            )

        if result.ok and result.value is _MISS:
            miss: CacheResult[Any] = CacheResult.failure(ErrorCode.CACHE_MISS, elapsed=result.elapsed)
            return miss
        return result

    # ------------ Caller-facing operations ------------

    async def add(
        self,
        value: Any,
        key: str,
        duration: timedelta | None = None,
        serialize_with_type: bool = False,
        sliding: bool = False,
    ) -> bool:
        """
        Cache value under key, replacing any existing entry.

        Args:
            value: Value to cache
            key: Cache key
            duration: Time-to-live; None uses the backend default
            serialize_with_type: Embed type discriminators (serialized stores)
            sliding: Reset the TTL on every read instead of expiring at a fixed time

        Returns:
            True if the backend stored the value, False on any failure
        """
        result = await self.add_result(value, key, duration, serialize_with_type, sliding)
        return bool(result.or_miss(False))

    async def remove(self, key: str) -> bool:
        """
        Remove key. Removing an absent key succeeds.

        Returns:
            True if the backend completed the delete, False on any failure
        """
        result = await self.remove_result(key)
        return bool(result.or_miss(False))

    async def get(
        self,
        key: str,
        type_: type[T] | Any = Any,
        slide_expiration: bool = False,
        duration: timedelta | None = None,
        deserialize_with_type: bool = False,
    ) -> T | None:
        """
        Read key as type_.

        Args:
            key: Cache key
            type_: Type to deserialize into (serialized stores only)
            slide_expiration: Reset the entry's expiry to now + duration
            duration: Sliding window; None uses default_duration, then the backend default
            deserialize_with_type: Resolve "$type" discriminators through the type registry

        Returns:
            The cached value, or None on a miss or any failure
        """
        result = await self.get_result(key, type_, slide_expiration, duration, deserialize_with_type)
        return result.or_miss(None)

    async def close(self) -> None:
        """Close the underlying backend."""
        await self._backend.close()


def create_facade(
    config: FacadeConfig | None = None,
    *,
    name: str = "default",
    logger: logging.Logger | None = None,
    config_source: ConfigSource | None = None,
    type_registry: TypeRegistry | None = None,
    setup_logging: bool = False,
) -> CacheFacade:
    """
    Build a facade from configuration.

    The backend is the shared instance registered under name. When the cache
    config names a duration setting, it is resolved through config_source;
    otherwise default_duration_minutes applies. With setup_logging, the
    package logger is configured from log_level and json_logs first.
    """
    if config is None:
        config = get_config()

    if setup_logging:
        configure_logging_from_config(config)

    facade = CacheFacade(
        get_instance(name, config.cache),
        logger=logger,
        config_source=config_source,
        type_registry=type_registry,
    )

    cache_config = config.cache
    if cache_config.default_duration_setting:
        facade.resolve_default_duration(
            cache_config.default_duration_setting,
            cache_config.default_duration_minutes,
        )
    elif cache_config.default_duration_minutes:
        facade.default_duration = timedelta(minutes=cache_config.default_duration_minutes)

    return facade

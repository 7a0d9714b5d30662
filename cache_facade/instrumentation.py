"""
Cache Facade — Instrumented Operations

Every cache call goes through run_instrumented(): it logs a start record,
awaits the operation exactly once, and logs a completion record with the
elapsed time whatever the outcome. Exceptions are caught and turned into a
failed CacheResult that keeps the error and its ErrorCode; nothing is
raised to the caller.

CacheResult.or_miss() is the one place a failure is mapped to the safe
default the caller sees (False for writes, None for reads).
"""

import logging
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

from .errors import ErrorCode, extract_error_code

R = TypeVar("R")
D = TypeVar("D")

_default_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OperationId:
    """Identifies one instrumented call: component + method + key."""

    component: str
    method: str
    key: str

    @property
    def operation(self) -> str:
        return f"{self.component}.{self.method}"

    def log_extra(self, **fields: Any) -> dict[str, Any]:
        return {"component": self.component, "operation": self.operation, "key": self.key, **fields}


@dataclass
class CacheResult(Generic[R]):
    """
    Outcome of a cache operation.

    A miss is ok=False with reason CACHE_MISS and no error.
    """

    ok: bool
    value: R | None = None
    reason: ErrorCode | None = None
    error: BaseException | None = None
    elapsed: float = 0.0
    deserialization_errors: list[str] = field(default_factory=list)

    @classmethod
    def success(cls, value: R, elapsed: float = 0.0) -> "CacheResult[R]":
        return cls(ok=True, value=value, elapsed=elapsed)

    @classmethod
    def failure(
        cls,
        reason: ErrorCode,
        error: BaseException | None = None,
        elapsed: float = 0.0,
    ) -> "CacheResult[R]":
        return cls(ok=False, reason=reason, error=error, elapsed=elapsed)

    @property
    def is_miss(self) -> bool:
        return self.reason == ErrorCode.CACHE_MISS

    def or_miss(self, default: D = None) -> R | D:  # type: ignore[assignment]
        """Return the value on success, otherwise the caller's miss default."""
        if self.ok:
            return self.value  # type: ignore[return-value]
        return default


async def run_instrumented(
    operation: OperationId,
    func: Callable[[], Awaitable[R]],
    logger: logging.Logger | None = None,
) -> CacheResult[R]:
    """
    Time and log a single cache operation.

    Args:
        operation: Who is calling what, for which key
        func: Zero-argument coroutine function performing the operation
        logger: Destination for the start/completion records

    Returns:
        CacheResult holding the operation's return value, or the failure
    """
    log = logger or _default_logger

    log.info(
        f"Key: {operation.key} {operation.method} started",
        extra=operation.log_extra(event="start"),
    )
    started = time.perf_counter()

    try:
        value = await func()
    except Exception as e:
        elapsed = time.perf_counter() - started
        reason = extract_error_code(e)
        log.error(
            f"Key: {operation.key} {operation.method} FAILED after {elapsed:.6f}s: {e}",
            extra=operation.log_extra(
                event="failed",
                elapsed_seconds=elapsed,
                error=str(e),
                error_type=type(e).__name__,
                reason=reason.value,
            ),
            exc_info=True,
        )
        return CacheResult.failure(reason, e, elapsed)

    elapsed = time.perf_counter() - started
    log.info(
        f"Key: {operation.key} {operation.method} completed in {elapsed:.6f}s",
        extra=operation.log_extra(event="completed", elapsed_seconds=elapsed),
    )
    return CacheResult.success(value, elapsed)

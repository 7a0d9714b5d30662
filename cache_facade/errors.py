"""
Cache Facade — Core Error Types

Defines the exception hierarchy for the cache facade and its backends.
All exceptions inherit from CacheFacadeError for consistent error handling.

Failures never escape the facade itself; they are converted into a
CacheResult carrying an ErrorCode (see instrumentation.py). The codes here
are the reasons a caller can inspect on that result.
"""

from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """
    Reason codes attached to failed cache operations.

    A miss is reported with CACHE_MISS so that callers who care can tell it
    apart from a failure; callers using or_miss() see both as None/False.
    """

    CACHE_MISS = "CACHE_MISS"
    CACHE_FAILURE = "CACHE_FAILURE"
    CACHE_UNAVAILABLE = "CACHE_UNAVAILABLE"
    INVALID_KEY = "INVALID_KEY"

    # Payload handling
    SERIALIZATION_FAILED = "SERIALIZATION_FAILED"
    DESERIALIZATION_FAILED = "DESERIALIZATION_FAILED"
    UNKNOWN_TYPE = "UNKNOWN_TYPE"

    # Configuration
    INVALID_CONFIGURATION = "INVALID_CONFIGURATION"

    INTERNAL_ERROR = "INTERNAL_ERROR"


class CacheFacadeError(Exception):
    """Base exception for all cache facade errors."""

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for structured logs."""
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "details": self.details,
        }


class ConfigurationError(CacheFacadeError):
    """Raised when configuration is invalid or missing."""


class CacheError(CacheFacadeError):
    """Base exception for cache backend errors."""


class CacheConnectionError(CacheError):
    """Raised when the cache backend cannot be reached."""

    def __init__(self, backend: str, details: dict[str, Any] | None = None):
        message = f"Failed to connect to cache backend: {backend}"
        super().__init__(message, details)
        self.backend = backend


class CacheOperationError(CacheError):
    """Raised when a cache backend operation fails."""

    pass


class InvalidKeyError(CacheError):
    """Raised when a cache key is empty or not a string."""

    def __init__(self, key: Any):
        super().__init__("Cache key must be a non-empty string", {"key": repr(key)})


class SerializationError(CacheFacadeError):
    """Raised when a value cannot be encoded for a serialized store."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message, details)


class DeserializationError(CacheFacadeError):
    """Raised when a cached payload cannot be turned into a value at all."""

    def __init__(self, message: str, errors: list[str] | None = None):
        errors = list(errors or [])
        super().__init__(message, {"errors": errors})
        self.errors = errors


class UnknownTypeError(DeserializationError):
    """Raised when a payload discriminator is not in the type allow-list."""

    def __init__(self, type_name: str):
        message = f"Type '{type_name}' is not registered for polymorphic deserialization"
        super().__init__(message, [message])
        self.type_name = type_name


def extract_error_code(error: BaseException) -> ErrorCode:
    """
    Map an exception to the ErrorCode reported on a failed result.

    Args:
        error: Exception raised by a cache operation

    Returns:
        Appropriate ErrorCode for the exception
    """
    if isinstance(error, UnknownTypeError):
        return ErrorCode.UNKNOWN_TYPE

    if isinstance(error, DeserializationError):
        return ErrorCode.DESERIALIZATION_FAILED

    if isinstance(error, SerializationError):
        return ErrorCode.SERIALIZATION_FAILED

    if isinstance(error, InvalidKeyError):
        return ErrorCode.INVALID_KEY

    if isinstance(error, CacheConnectionError):
        return ErrorCode.CACHE_UNAVAILABLE

    if isinstance(error, CacheError):
        return ErrorCode.CACHE_FAILURE

    if isinstance(error, ConfigurationError):
        return ErrorCode.INVALID_CONFIGURATION

    return ErrorCode.INTERNAL_ERROR

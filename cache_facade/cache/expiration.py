"""
Cache Facade — Expiration Policy

Expiration value objects shared by the facade and its backends, and the
resolver that turns a configured setting into a default duration.
"""

import logging
from dataclasses import dataclass
from datetime import timedelta
from enum import Enum

from ..config.sources import ConfigSource

logger = logging.getLogger(__name__)


class ExpirationKind(str, Enum):
    """How an entry's expiry horizon behaves after it is written."""

    ABSOLUTE = "absolute"  # fixed from write time
    SLIDING = "sliding"  # reset relative to last access


@dataclass(frozen=True)
class ExpirationPolicy:
    """
    Expiration policy for one cache entry.

    A duration of None means "use the backend default TTL".
    """

    duration: timedelta | None = None
    kind: ExpirationKind = ExpirationKind.ABSOLUTE

    @classmethod
    def absolute(cls, duration: timedelta | None) -> "ExpirationPolicy":
        return cls(duration=duration, kind=ExpirationKind.ABSOLUTE)

    @classmethod
    def sliding(cls, duration: timedelta) -> "ExpirationPolicy":
        return cls(duration=duration, kind=ExpirationKind.SLIDING)

    @property
    def is_sliding(self) -> bool:
        return self.kind == ExpirationKind.SLIDING

    def ttl_seconds(self, default_ttl: int) -> float | None:
        """
        Normalize to seconds for a backend:
        - None duration -> default_ttl
        - 0 or negative -> no expiry (None)
        """
        if self.duration is None:
            seconds = float(default_ttl)
        else:
            seconds = self.duration.total_seconds()
        return seconds if seconds > 0 else None


def resolve_expiration(
    source: ConfigSource,
    setting_name: str,
    default_minutes: int = 0,
) -> timedelta:
    """
    Resolve a duration in minutes from a configuration setting.

    A value that parses as a positive integer is used as the number of
    minutes. Anything else (unset, blank, not a number, zero, negative)
    falls back to default_minutes, itself floored at zero. Never raises.

    Args:
        source: Where to look the setting up
        setting_name: Name of the setting
        default_minutes: Fallback duration in minutes

    Returns:
        The resolved duration
    """
    raw = source.get_value(setting_name)

    if raw is not None and raw.strip():
        try:
            minutes = int(raw.strip())
        except ValueError:
            logger.debug(
                f"Setting '{setting_name}' is not an integer, using default of {default_minutes} minutes",
                extra={"setting": setting_name, "value": raw},
            )
        else:
            if minutes > 0:
                return timedelta(minutes=minutes)
            logger.debug(
                f"Setting '{setting_name}' is not positive, using default of {default_minutes} minutes",
                extra={"setting": setting_name, "value": raw},
            )

    return timedelta(minutes=max(default_minutes, 0))

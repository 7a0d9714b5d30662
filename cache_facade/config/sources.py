"""
Cache Facade — Configuration Sources

A ConfigSource answers "what is the raw value of setting X?". The facade
only ever reads settings through this protocol, so callers decide where
settings live (process environment, a .env file, a static mapping).
"""

import logging
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Protocol, runtime_checkable

from dotenv import dotenv_values

logger = logging.getLogger(__name__)


@runtime_checkable
class ConfigSource(Protocol):
    """Read-only lookup of raw setting values."""

    def get_value(self, setting_name: str) -> str | None:
        """Return the raw value of a setting, or None if it is not set."""
        ...


class MappingConfigSource:
    """ConfigSource backed by a plain mapping."""

    def __init__(self, values: Mapping[str, str] | None = None):
        self._values = dict(values or {})

    def get_value(self, setting_name: str) -> str | None:
        return self._values.get(setting_name)


class EnvironmentConfigSource:
    """
    ConfigSource backed by the process environment.

    Values from an optional .env file are consulted when the environment
    does not define the setting. The file is read once, at construction.
    """

    def __init__(self, env_file: str | Path | None = None):
        self._file_values: dict[str, str | None] = {}

        if env_file is not None:
            env_path = Path(env_file)
            if env_path.exists():
                logger.debug(f"Reading settings from {env_path}")
                self._file_values = dict(dotenv_values(env_path))
            else:
                logger.debug(f"Settings file {env_path} not found, using environment only")

    def get_value(self, setting_name: str) -> str | None:
        value = os.environ.get(setting_name)
        if value is None:
            value = self._file_values.get(setting_name)
        return value

"""
Cache Facade — Configuration Module

Provides typed configuration loading, validation and setting lookup.
"""

from .loader import get_config, load_config, reload_config
from .schemas import (
    CacheBackend,
    CacheConfig,
    Environment,
    FacadeConfig,
    LogLevel,
)
from .sources import ConfigSource, EnvironmentConfigSource, MappingConfigSource

__all__ = [
    # Loader functions
    "load_config",
    "get_config",
    "reload_config",
    # Main config
    "FacadeConfig",
    # Enums
    "Environment",
    "CacheBackend",
    "LogLevel",
    # Config sections
    "CacheConfig",
    # Setting sources
    "ConfigSource",
    "EnvironmentConfigSource",
    "MappingConfigSource",
]

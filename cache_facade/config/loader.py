"""
Cache Facade — Configuration Loader

Loads and validates configuration from environment variables and .env files.
Provides a shared configuration instance for the process.
"""

import logging
import os
from pathlib import Path

from dotenv import load_dotenv
from pydantic import ValidationError

from ..errors import ConfigurationError
from .schemas import FacadeConfig

logger = logging.getLogger(__name__)

_config_instance: FacadeConfig | None = None


def _int_env(name: str, default: str) -> int:
    raw = os.getenv(name, default)
    try:
        return int(raw)
    except ValueError as e:
        raise ConfigurationError(
            f"Environment variable {name} must be an integer, got '{raw}'",
            details={"env": name, "value": raw},
        ) from e


def load_config(
    env_file: str | None = None,
    reload: bool = False,
) -> FacadeConfig:
    """
    Load configuration from environment variables and .env file.

    Args:
        env_file: Path to .env file (default: .env in the working directory)
        reload: Force reload even if config already loaded

    Returns:
        Validated FacadeConfig instance

    Raises:
        ConfigurationError: If configuration is invalid
    """
    global _config_instance

    if _config_instance is not None and not reload:
        return _config_instance

    if env_file:
        env_path = Path(env_file)
    else:
        env_path = Path.cwd() / ".env"

    if env_path.exists():
        logger.info(f"Loading environment from {env_path}")
        try:
            load_dotenv(env_path, override=True)
        except Exception as e:
            logger.error(
                f"Failed to load .env file from {env_path}: {e}",
                extra={"path": str(env_path), "error": str(e)},
                exc_info=True,
            )
            raise ConfigurationError(
                f"Failed to load environment file: {e}",
                details={"path": str(env_path), "error": str(e)},
            ) from e
    else:
        logger.debug("No .env file found, using environment variables only")

    # Redis is selected automatically when REDIS_URL is set
    redis_url = os.getenv("REDIS_URL")
    cache_backend = "redis" if redis_url else "memory"

    config_dict = {
        "environment": os.getenv("ENVIRONMENT", "development"),
        "log_level": os.getenv("LOG_LEVEL", "INFO"),
        "json_logs": os.getenv("JSON_LOGS", "false").lower() == "true",
        "cache": {
            "backend": os.getenv("CACHE_BACKEND", cache_backend),
            "ttl_seconds": _int_env("CACHE_TTL_SECONDS", "3600"),
            "max_size": _int_env("CACHE_MAX_SIZE", "1000"),
            "namespace": os.getenv("CACHE_NAMESPACE", "cache"),
            "default_duration_setting": os.getenv("CACHE_DURATION_SETTING"),
            "default_duration_minutes": _int_env("CACHE_DURATION_MINUTES", "0"),
            "redis_url": redis_url,
            "redis_max_connections": _int_env("REDIS_MAX_CONNECTIONS", "10"),
            "redis_socket_timeout": _int_env("REDIS_SOCKET_TIMEOUT", "5"),
        },
    }

    try:
        _config_instance = FacadeConfig(**config_dict)  # type: ignore[arg-type]
        logger.info(
            f"Configuration loaded successfully (environment: {_config_instance.environment})",
            extra={"environment": _config_instance.environment, "cache_backend": _config_instance.cache.backend},
        )
        return _config_instance
    except ValidationError as e:
        logger.error(
            f"Configuration validation failed: {e}",
            extra={"validation_errors": e.errors(), "config_dict_keys": list(config_dict.keys())},
            exc_info=True,
        )
        raise ConfigurationError(
            "Configuration validation failed. Check your environment variables and configuration.",
            details={"validation_errors": e.errors()},
        ) from e


def get_config() -> FacadeConfig:
    """
    Get the current configuration instance, loading it on first access.

    Returns:
        Current FacadeConfig instance
    """
    if _config_instance is None:
        return load_config()

    return _config_instance


def reload_config(env_file: str | None = None) -> FacadeConfig:
    """
    Force reload configuration.

    Args:
        env_file: Optional path to .env file

    Returns:
        Reloaded FacadeConfig instance
    """
    return load_config(env_file=env_file, reload=True)

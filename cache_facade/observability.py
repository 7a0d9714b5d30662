"""
Cache Facade — Logging Setup

Structured logging for the cache facade. Operation records carry their
component, operation, key and elapsed time as extra fields; JSONFormatter
writes them out as one JSON object per line.
"""

import json
import logging
from datetime import UTC, datetime

from .config.schemas import FacadeConfig, LogLevel

# LogRecord attributes that are not user-supplied extra fields
_RESERVED = frozenset(
    (
        "args",
        "msg",
        "levelname",
        "levelno",
        "pathname",
        "filename",
        "module",
        "exc_info",
        "exc_text",
        "stack_info",
        "lineno",
        "funcName",
        "created",
        "msecs",
        "relativeCreated",
        "thread",
        "threadName",
        "processName",
        "process",
        "taskName",
        "name",
        "message",
    )
)


class JSONFormatter(logging.Formatter):
    """JSON log formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_data = {
            "timestamp": datetime.now(UTC).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        # Add any extra fields from record.__dict__
        for key, value in record.__dict__.items():
            if key not in log_data and not key.startswith("_") and key not in _RESERVED:
                log_data[key] = value

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


def configure_logging(
    level: LogLevel | str = LogLevel.INFO,
    json_logs: bool = False,
    logger_name: str = "cache_facade",
) -> logging.Logger:
    """
    Attach a stream handler to the package logger.

    Args:
        level: Minimum level to emit
        json_logs: Use JSONFormatter instead of a plain text format
        logger_name: Logger to configure

    Returns:
        The configured logger
    """
    logger = logging.getLogger(logger_name)
    logger.handlers.clear()

    handler = logging.StreamHandler()
    if json_logs:
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))
    logger.addHandler(handler)
    logger.setLevel(LogLevel(level).value)

    return logger


def configure_logging_from_config(config: FacadeConfig) -> logging.Logger:
    """Configure logging from the loaded FacadeConfig."""
    return configure_logging(config.log_level, config.json_logs)

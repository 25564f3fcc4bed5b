"""Structured logging configuration.

JSON logs with automatic context binding. Uses structlog with stdlib integration.
Request-scoped context (like request_id) is automatically included in all logs
via structlog.contextvars.

The sink is the stream of the ``svcutils`` handler. It defaults to stderr and
can be swapped at runtime with set_output(); the swap happens-before any log
call made after it returns.
"""

import logging
import logging.config
import sys
import threading
from datetime import UTC, datetime
from typing import IO, Any

import structlog
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from structlog.stdlib import BoundLogger

LOGGER_NAME = "svcutils"
HANDLER_NAME = "svcutils"

_output_lock = threading.Lock()


def _add_timestamp(
    _logger: object,
    _method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """Add ISO 8601 UTC timestamp with timezone offset."""
    event_dict["timestamp"] = datetime.now(UTC).isoformat()
    return event_dict


class LoggingSettings(BaseSettings):
    """Logging settings from environment variables."""

    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
    )


def configure_logging(settings: LoggingSettings, stream: IO[str] | None = None) -> None:
    """Configure structlog with JSON output to the given stream (stderr by default).

    Call once at startup. After this, all loggers created via get_logger()
    will output JSON with automatic context binding.
    """
    # Processors run on every log event
    processors: list[Any] = [
        structlog.contextvars.merge_contextvars,  # Auto-include bound context
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        _add_timestamp,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            *processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "json": {
                    "()": structlog.stdlib.ProcessorFormatter,
                    "processor": structlog.processors.JSONRenderer(),
                    "foreign_pre_chain": processors,
                },
            },
            "handlers": {
                HANDLER_NAME: {
                    "class": "logging.StreamHandler",
                    "formatter": "json",
                    "stream": stream or sys.stderr,
                },
            },
            "loggers": {
                LOGGER_NAME: {
                    "handlers": [HANDLER_NAME],
                    "level": settings.log_level,
                    "propagate": False,
                },
            },
        }
    )


def set_output(stream: IO[str]) -> None:
    """Redirect library log output to any writable text stream.

    Raises:
        ValueError: if stream is None.
    """
    if stream is None:
        raise ValueError("given stream is None")

    with _output_lock:
        for handler in logging.getLogger(LOGGER_NAME).handlers:
            if handler.get_name() == HANDLER_NAME and isinstance(handler, logging.StreamHandler):
                handler.setStream(stream)


# Configure once at module import
_settings = LoggingSettings()
configure_logging(_settings)


def get_logger(name: str) -> BoundLogger:
    """Get a structured logger.

    Args:
        name: Logger name, typically __name__ (anything under "svcutils"
            goes to the library sink)

    Returns:
        Logger that outputs JSON with automatic context binding.

    Example:
        logger = get_logger(__name__)
        logger.warning("error_context_sealed", key="user_id")
        # Output: {"event": "error_context_sealed", "key": "user_id", "level": "warning", ...}
    """
    return structlog.get_logger(name)  # type: ignore[no-any-return]

"""structlog setup for the connector and its CLI.

Logs go to stderr so command output on stdout stays machine readable.
"""

import logging
import sys
from typing import Any

import structlog

from tcmonitor.core.errors import ConfigurationError

LOG_FORMATS = ("json", "console")


def _level_number(level: int | str) -> int:
    if isinstance(level, int):
        return level
    number = logging.getLevelName(level.strip().upper())
    if not isinstance(number, int):
        raise ConfigurationError(f"Unknown log level '{level}'")
    return number


def _renderer(fmt: str) -> Any:
    if fmt == "json":
        return structlog.processors.JSONRenderer(ensure_ascii=False)
    if fmt == "console":
        return structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())
    raise ConfigurationError(f"Unknown log format '{fmt}', expected one of {', '.join(LOG_FORMATS)}")


def configure_logging(level: int | str = logging.INFO, fmt: str = "json") -> None:
    """Route structlog through stdlib logging at ``level``, rendered as ``fmt``."""

    number = _level_number(level)
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            _renderer(fmt),
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(level=number, format="%(message)s", stream=sys.stderr, force=True)


def bind_context(**kwargs: Any) -> structlog.stdlib.BoundLogger:
    """Logger carrying product/region/action fields on every event."""
    return structlog.get_logger().bind(**kwargs)

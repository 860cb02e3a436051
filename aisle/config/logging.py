"""
Structured logging configuration for Aisle.

Two output formats, selected by ``AISLE_LOG_FORMAT``:
- ``console``: human-readable, colored level when attached to a TTY
- ``json``: one JSON object per line, for log shippers

Usage:
    from aisle.config.logging import get_logger

    logger = get_logger(__name__)
    logger.warning("Provider failed", extra={"feature": "search"})
"""

import json
import logging
import os
import sys
from datetime import datetime, timezone


LOG_LEVEL = os.getenv("AISLE_LOG_LEVEL", "INFO").upper()
LOG_FORMAT = os.getenv("AISLE_LOG_FORMAT", "console")  # "console" or "json"

# LogRecord attributes that are not user-supplied extras
_STANDARD_LOG_ATTRS = frozenset(
    {
        "name",
        "msg",
        "args",
        "created",
        "filename",
        "funcName",
        "levelname",
        "levelno",
        "lineno",
        "module",
        "msecs",
        "pathname",
        "process",
        "processName",
        "relativeCreated",
        "stack_info",
        "exc_info",
        "exc_text",
        "thread",
        "threadName",
        "message",
        "asctime",
        "taskName",
    }
)

_NOISY_LOGGERS = (
    "httpx",
    "httpcore",
    "urllib3",
    "openai",
    "google",
    "grpc",
    "uvicorn.access",
)


def _extras(record: logging.LogRecord) -> dict:
    return {
        key: value
        for key, value in record.__dict__.items()
        if key not in _STANDARD_LOG_ATTRS and not key.startswith("_")
    }


class ConsoleFormatter(logging.Formatter):
    """Human-readable formatter: ``HH:MM:SS LEVEL message [k=v, ...]``."""

    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
        "RESET": "\033[0m",
    }

    def format(self, record: logging.LogRecord) -> str:
        use_colors = hasattr(sys.stdout, "isatty") and sys.stdout.isatty()
        timestamp = self.formatTime(record, "%H:%M:%S")

        level = record.levelname
        if use_colors:
            level_str = f"{self.COLORS.get(level, '')}{level:<8}{self.COLORS['RESET']}"
        else:
            level_str = f"{level:<8}"

        extras = [f"{key}={value}" for key, value in _extras(record).items()]
        extra_str = f" [{', '.join(extras)}]" if extras else ""

        line = f"{timestamp} {level_str} {record.getMessage()}{extra_str}"
        if record.exc_info:
            line = f"{line}\n{self.formatException(record.exc_info)}"
        return line


class JSONFormatter(logging.Formatter):
    """Machine-parseable JSON formatter for production."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        log_entry.update(_extras(record))

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_entry, default=str)


_configured = False


def configure_logging() -> None:
    """Configure the root logger once per process."""
    global _configured
    if _configured:
        return

    level = getattr(logging, LOG_LEVEL, logging.INFO)
    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    if LOG_FORMAT == "json":
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(ConsoleFormatter())
    root.addHandler(handler)

    for noisy_logger in _NOISY_LOGGERS:
        logging.getLogger(noisy_logger).setLevel(logging.WARNING)

    _configured = True


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance with consistent configuration.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured logger instance
    """
    configure_logging()
    return logging.getLogger(name)


__all__ = [
    "get_logger",
    "configure_logging",
    "ConsoleFormatter",
    "JSONFormatter",
    "LOG_LEVEL",
    "LOG_FORMAT",
]

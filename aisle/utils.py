"""
Shared utility functions.
"""

from __future__ import annotations

import importlib
import time
from contextlib import contextmanager
from types import ModuleType
from typing import TYPE_CHECKING, Callable, Generator

if TYPE_CHECKING:
    import logging


def require_import(
    package: str,
    *,
    pip_name: str | None = None,
) -> ModuleType:
    """Import a provider SDK with a standardized error message.

    Usage:
        openai = require_import("openai")
        genai = require_import("google.generativeai", pip_name="google-generativeai")

    Args:
        package: The Python package name to import.
        pip_name: The pip install name if different from package name.

    Returns:
        The imported module.

    Raises:
        ImportError: With a helpful message including install command.
    """
    try:
        return importlib.import_module(package)
    except ImportError as e:
        raise ImportError(
            f"{package} package required. Install with: pip install {pip_name or package}"
        ) from e


@contextmanager
def timed_operation(
    name: str,
    logger: logging.Logger | None = None,
    metrics_observer: Callable[[float], None] | None = None,
    log_format: str = "%s: %.0fms",
) -> Generator[None, None, None]:
    """Context manager for timing operations with optional logging and metrics.

    Usage:
        with timed_operation("Gemini generate", logger, observe_provider_duration):
            reply = model.generate_content(prompt)

    Args:
        name: Operation name for logging.
        logger: Logger instance for debug-level timing output.
        metrics_observer: Callback that receives duration in seconds.
        log_format: Format string for log message (name, ms).
    """
    t0 = time.perf_counter()
    try:
        yield
    finally:
        duration = time.perf_counter() - t0
        if metrics_observer is not None:
            metrics_observer(duration)
        if logger is not None:
            logger.debug(log_format, name, duration * 1000)


def split_csv(value: str | None) -> list[str]:
    """Split a comma-separated query parameter, dropping blanks."""
    if not value:
        return []
    return [item.strip() for item in value.split(",") if item.strip()]

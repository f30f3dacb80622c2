"""Logging utilities for ppcamix.

Every module logs through `get_logger(__name__)`, which returns a logger in
the `ppcamix` namespace with its own stderr handler. The loggers do not
propagate to the root logger, so importing ppcamix never changes an
application's logging output unless asked to via `configure_logging`.

Levels used across the package:
    DEBUG: per-call summaries (dataset sizes, re-estimated log-weights).
    INFO: EM progress and convergence.
    WARNING: log-likelihood decreases during EM.
    ERROR: non-finite log-likelihoods that stop EM.
"""

from __future__ import annotations

import logging
import sys
from typing import IO, Optional

PACKAGE = "ppcamix"
DEFAULT_FORMAT = "[%(levelname)s] %(name)s: %(message)s"

# Settings applied to loggers created from now on
_settings = {
    "level": logging.WARNING,
    "format": DEFAULT_FORMAT,
    "stream": None,
}

_loggers: dict[str, logging.Logger] = {}


def _qualified_name(name: Optional[str]) -> str:
    if not name or name == PACKAGE:
        return PACKAGE
    if name.startswith(PACKAGE + "."):
        return name
    return f"{PACKAGE}.{name}"


def _resolve_level(level: int | str) -> int:
    """Map a level name or number to a logging level number."""
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(level.upper())
    if not isinstance(resolved, int):
        raise ValueError(f"Unknown logging level: {level!r}")
    return resolved


def _attach_handler(logger: logging.Logger) -> None:
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)
    stream = _settings["stream"] if _settings["stream"] is not None else sys.stderr
    handler = logging.StreamHandler(stream)
    handler.setLevel(_settings["level"])
    handler.setFormatter(logging.Formatter(_settings["format"]))
    logger.addHandler(handler)
    logger.setLevel(_settings["level"])


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Return the ppcamix logger for a module.

    Names outside the package namespace are prefixed with ``ppcamix.``.
    Repeated calls return the same logger, which carries exactly one handler.

    Args:
        name: Usually the calling module's `__name__`. None gives the
            package logger.

    Returns:
        The cached logger.

    Example:
        >>> logger = get_logger("ppcamix.models.mixture")
        >>> logger.debug("iterate: %d samples", 100)
    """
    qualified = _qualified_name(name)
    logger = _loggers.get(qualified)
    if logger is None:
        logger = logging.getLogger(qualified)
        _attach_handler(logger)
        logger.propagate = False
        _loggers[qualified] = logger
    return logger


def set_log_level(level: int | str) -> None:
    """Change the level of every ppcamix logger, present and future.

    Args:
        level: A logging level number or name ('DEBUG', 'info', ...).

    Raises:
        ValueError: If `level` is an unknown name.
    """
    level = _resolve_level(level)
    _settings["level"] = level
    for logger in _loggers.values():
        logger.setLevel(level)
        for handler in logger.handlers:
            handler.setLevel(level)


def configure_logging(
    level: int | str = logging.WARNING,
    format_string: Optional[str] = None,
    stream: Optional[IO[str]] = None,
) -> None:
    """Reconfigure level, format and destination of all ppcamix loggers.

    Existing loggers get a fresh handler; loggers created later use the same
    settings.

    Args:
        level: Logging level number or name. Defaults to WARNING.
        format_string: Record format. Defaults to DEFAULT_FORMAT.
        stream: Destination. Defaults to sys.stderr.

    Raises:
        ValueError: If `level` is an unknown name.

    Example:
        >>> import logging
        >>> configure_logging(level=logging.INFO)  # show EM progress
    """
    _settings["level"] = _resolve_level(level)
    _settings["format"] = format_string or DEFAULT_FORMAT
    _settings["stream"] = stream
    for logger in _loggers.values():
        _attach_handler(logger)

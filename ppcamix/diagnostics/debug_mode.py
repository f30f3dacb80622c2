"""Debug mode for ppcamix.

With debug mode on, every mixture checks that its log-weights are normalized
when it is built, including the models returned by `iterate`. A NaN update
then raises immediately instead of being returned. Off by default; the
initial state is read from the PPCAMIX_DEBUG environment variable.
"""

from __future__ import annotations

import os
from contextlib import contextmanager
from typing import Iterator, Mapping, Optional

ENV_VAR = "PPCAMIX_DEBUG"
_TRUTHY = frozenset({"1", "true", "yes", "on"})


def debug_enabled_from_env(environ: Optional[Mapping[str, str]] = None) -> bool:
    """
    Parse the PPCAMIX_DEBUG flag.

    Parameters
    ----------
    environ:
        Mapping to read from. Defaults to os.environ.

    Returns
    -------
    bool
        True if the variable is set to 1, true, yes or on (any case).
    """
    if environ is None:
        environ = os.environ
    return environ.get(ENV_VAR, "").strip().lower() in _TRUTHY


_debug_enabled: bool = debug_enabled_from_env()


def is_debug_enabled() -> bool:
    """Return whether invariant checks are currently on."""
    return _debug_enabled


def set_debug_enabled(enabled: bool) -> bool:
    """
    Turn invariant checks on or off for the whole process.

    Parameters
    ----------
    enabled:
        New state.

    Returns
    -------
    bool
        The previous state, so callers can restore it.
    """
    global _debug_enabled
    previous = _debug_enabled
    _debug_enabled = bool(enabled)
    return previous


@contextmanager
def debug_context(enabled: bool = True) -> Iterator[None]:
    """
    Run a block with debug mode set to `enabled`, restoring the previous
    state on exit.

    Example
    -------
    >>> with debug_context(True):
    ...     model = model.iterate(dataset)  # raises if the new weights are NaN
    """
    previous = set_debug_enabled(enabled)
    try:
        yield
    finally:
        set_debug_enabled(previous)

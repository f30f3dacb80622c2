"""Diagnostics and debugging utilities for ppcamix."""

from .core import (
    assert_log_normalized,
    is_log_normalized,
    log_normalizers,
)
from .debug_mode import (
    debug_context,
    debug_enabled_from_env,
    is_debug_enabled,
    set_debug_enabled,
)

__all__ = [
    "log_normalizers",
    "is_log_normalized",
    "assert_log_normalized",
    "is_debug_enabled",
    "set_debug_enabled",
    "debug_context",
    "debug_enabled_from_env",
]

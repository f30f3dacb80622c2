"""Invariant checks for log-probability vectors."""

from __future__ import annotations

import numpy as np

from ..probabilistic.utils import logsumexp


def log_normalizers(log_probs: np.ndarray) -> np.ndarray:
    """
    Compute sum(exp(log_probs)) along the last axis.

    Parameters
    ----------
    log_probs:
        Log-probabilities with shape (..., n).

    Returns
    -------
    np.ndarray
        Linear-scale totals with shape (...).

    Raises
    ------
    ValueError
        If log_probs has fewer than 1 dimension.
    """
    log_probs = np.asarray(log_probs, dtype=np.float64)
    if log_probs.ndim < 1:
        raise ValueError("log_normalizers expects an array with at least 1 dimension.")
    return np.exp(logsumexp(log_probs, axis=-1))


def is_log_normalized(log_probs: np.ndarray, atol: float = 1e-9) -> bool:
    """
    Check whether exp(log_probs) sums to 1 along the last axis.

    Non-finite totals are never considered normalized.
    """
    totals = log_normalizers(log_probs)
    return bool(np.all(np.isfinite(totals)) and np.allclose(totals, 1.0, atol=atol, rtol=0.0))


def assert_log_normalized(log_probs: np.ndarray, atol: float = 1e-9) -> None:
    """
    Assert that exp(log_probs) sums to 1 within a tolerance.

    Parameters
    ----------
    log_probs:
        Log-probabilities with shape (..., n).
    atol:
        Absolute tolerance for |sum - 1|.

    Raises
    ------
    ValueError
        If the totals are non-finite or not 1 within the tolerance.
    """
    totals = log_normalizers(log_probs)
    if not np.all(np.isfinite(totals)):
        raise ValueError("Log-probabilities have non-finite totals.")

    if not np.allclose(totals, 1.0, atol=atol, rtol=0.0):
        raise ValueError(
            f"Log-probabilities are not normalized within tolerance {atol}. "
            f"Totals found: {np.atleast_1d(totals).tolist()}"
        )

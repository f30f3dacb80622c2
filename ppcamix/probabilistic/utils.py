"""Log-domain stabilizers for mixture inference.

Every mixture-level combination of probabilities goes through `logsumexp` or
`log_softmax`. Both subtract the maximum before exponentiating, so large
positive log-scores do not overflow and very negative ones do not underflow
to an all-zero sum.

NaN inputs are not filtered: they propagate into the result.
"""

from typing import Optional, Tuple

import numpy as np


def _shifted_log_norm(a: np.ndarray, axis: Optional[int]) -> Tuple[np.ndarray, np.ndarray]:
    """Return (m, log(sum(exp(a - m)))) with m the maximum along `axis`.

    Both outputs keep the reduced axis (size 1) so they broadcast against `a`.
    With axis=None the reduction runs over all elements.
    """
    a_max = np.max(a, axis=axis, keepdims=True)
    log_norm = np.log(np.sum(np.exp(a - a_max), axis=axis, keepdims=True))
    return a_max, log_norm


def logsumexp(a: np.ndarray, axis: Optional[int] = None) -> np.ndarray:
    """Compute log(sum(exp(a))) without overflow or underflow.

    Args:
        a: Log-values.
        axis: Axis to reduce. If None, reduces over every element.

    Returns:
        Reduced log-values: a scalar for axis=None, otherwise the input
        shape with `axis` removed. An empty input with axis=None gives -inf
        (the log of an empty sum).

    Examples:
        >>> logsumexp(np.array([-1000.0, -1000.0]))
        -999.306852...
        >>> logsumexp(np.array([[0.0, 0.0], [1.0, 1.0]]), axis=1)
        array([0.693147..., 1.693147...])
    """
    a = np.asarray(a, dtype=np.float64)
    if axis is None and a.size == 0:
        return np.array(-np.inf)
    a_max, log_norm = _shifted_log_norm(a, axis)
    result = a_max + log_norm
    if axis is None:
        return result.ravel()[0]
    return np.squeeze(result, axis=axis)


log_softnorm = logsumexp


def log_softmax(a: np.ndarray, axis: Optional[int] = None) -> np.ndarray:
    """Normalize log-scores into log-probabilities.

    Computes a_i - m - log(sum_j exp(a_j - m)) with m = max(a), so that
    exp of the result sums to 1 along `axis`.

    Args:
        a: Unnormalized log-scores.
        axis: Axis to normalize along. If None, normalizes over the whole
            array and keeps the input shape.

    Returns:
        Normalized log-probabilities, same shape as the input.

    Raises:
        ValueError: If axis is None and the input is empty.

    Examples:
        >>> np.exp(log_softmax(np.array([0.0, 0.0])))
        array([0.5, 0.5])
    """
    a = np.asarray(a, dtype=np.float64)
    if axis is None and a.size == 0:
        raise ValueError("log_softmax requires at least one element.")
    a_max, log_norm = _shifted_log_norm(a, axis)
    return a - a_max - log_norm


def normalize_log_weights(log_w: np.ndarray) -> Tuple[np.ndarray, float]:
    """Turn log-weights into linear weights that sum to 1.

    Args:
        log_w: Unnormalized log-weights, shape (N,).

    Returns:
        Tuple (weights, log_total) where log_total = logsumexp(log_w) and
        weights = exp(log_w - log_total).

    Examples:
        >>> w, log_total = normalize_log_weights(np.log([1.0, 3.0]))
        >>> w
        array([0.25, 0.75])
    """
    log_total = float(logsumexp(log_w))
    return np.exp(np.asarray(log_w, dtype=np.float64) - log_total), log_total

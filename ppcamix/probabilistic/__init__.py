"""Log-domain numerical utilities used by the mixture model."""

from .utils import log_softmax, log_softnorm, logsumexp, normalize_log_weights

__all__ = [
    "logsumexp",
    "log_softnorm",
    "log_softmax",
    "normalize_log_weights",
]

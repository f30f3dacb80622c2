"""ppcamix - mixtures of probabilistic PCA for partially-observed data."""

__version__ = "0.1.0"

# Data containers
from .data import FILL_VALUE, Dataset, MaskedSample

# Diagnostics
from .diagnostics import (
    assert_log_normalized,
    debug_context,
    is_debug_enabled,
    is_log_normalized,
    log_normalizers,
    set_debug_enabled,
)

# Models
from .models import Component, DiagonalGaussian, PPCAMixture

# Log-domain utilities
from .probabilistic import log_softmax, log_softnorm, logsumexp, normalize_log_weights

# Training
from .training import (
    EMCallback,
    EMConfig,
    EMHistory,
    EMStepInfo,
    MixtureTrainer,
    fit_mixture,
)

__all__ = [
    # Version
    "__version__",
    # Data
    "FILL_VALUE",
    "MaskedSample",
    "Dataset",
    # Models
    "Component",
    "DiagonalGaussian",
    "PPCAMixture",
    # Log-domain utilities
    "logsumexp",
    "log_softnorm",
    "log_softmax",
    "normalize_log_weights",
    # Training
    "EMConfig",
    "EMStepInfo",
    "EMHistory",
    "EMCallback",
    "MixtureTrainer",
    "fit_mixture",
    # Diagnostics
    "log_normalizers",
    "is_log_normalized",
    "assert_log_normalized",
    "is_debug_enabled",
    "set_debug_enabled",
    "debug_context",
]

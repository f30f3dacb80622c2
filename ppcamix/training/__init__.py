"""EM fitting utilities for mixture models."""

from .em import (
    EMCallback,
    EMConfig,
    EMHistory,
    EMStepInfo,
    MixtureTrainer,
    fit_mixture,
)

__all__ = [
    "EMConfig",
    "EMStepInfo",
    "EMHistory",
    "EMCallback",
    "MixtureTrainer",
    "fit_mixture",
]

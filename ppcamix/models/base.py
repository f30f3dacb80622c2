"""Contract for a single mixture component."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

import numpy as np

from ..data import Dataset, MaskedSample


@runtime_checkable
class Component(Protocol):
    """
    Protocol for one latent-variable component of a mixture.

    The mixture treats components as opaque: it only combines their
    per-sample outputs. Implementations must be immutable; `iterate` and
    `to_canonical` return new components.
    """

    def output_size(self) -> int:
        """Dimensionality of the observed vectors."""
        ...

    def state_size(self) -> int:
        """Dimensionality of the latent state."""
        ...

    def n_parameters(self) -> int:
        """Number of free parameters."""
        ...

    def sample_one(self, mask_probability: float, rng: np.random.Generator) -> MaskedSample:
        """
        Draw one sample, marking each coordinate unobserved independently
        with probability `mask_probability`.
        """
        ...

    def llks(self, dataset: Dataset) -> np.ndarray:
        """Log-likelihood of each sample, shape (len(dataset),)."""
        ...

    def smooth(self, dataset: Dataset) -> Dataset:
        """Fully-observed posterior-mean reconstruction of each sample."""
        ...

    def extrapolate(self, dataset: Dataset) -> Dataset:
        """Fully-observed sample with the missing coordinates imputed."""
        ...

    def iterate(self, dataset: Dataset) -> "Component":
        """Fit a new component to the weighted dataset (one EM update)."""
        ...

    def to_canonical(self) -> "Component":
        """Equivalent component in canonical parameterization."""
        ...

"""Axis-aligned Gaussian component.

A Gaussian with diagonal covariance and no latent state. It satisfies the
`Component` contract with closed-form marginals over any subset of observed
coordinates, which makes it a convenient baseline and test component.
"""

from __future__ import annotations

from typing import Optional

import numpy as np

from ..data import Dataset, MaskedSample

_LOG_2PI = np.log(2 * np.pi)


class DiagonalGaussian:
    """Gaussian with diagonal covariance over partially-observed vectors.

    Args:
        mean: Mean vector, shape (output_size,).
        variance: Per-coordinate variances, shape (output_size,). Must be
            positive.
        min_variance: Lower bound applied to variances re-estimated by
            `iterate`.

    Raises:
        ValueError: If shapes are incompatible or a variance is not positive.
    """

    def __init__(self, mean: np.ndarray, variance: np.ndarray, min_variance: float = 1e-6):
        mean = np.array(mean, dtype=np.float64)
        variance = np.array(variance, dtype=np.float64)
        if mean.ndim != 1:
            raise ValueError(f"mean must be 1D, got shape {mean.shape}")
        if variance.shape != mean.shape:
            raise ValueError(f"variance shape {variance.shape} != mean shape {mean.shape}")
        if np.any(variance <= 0):
            raise ValueError("variance must be positive")
        if min_variance <= 0:
            raise ValueError("min_variance must be > 0")
        mean.setflags(write=False)
        variance.setflags(write=False)
        self._mean = mean
        self._variance = variance
        self.min_variance = float(min_variance)

    @classmethod
    def from_dataset(
        cls,
        dataset: Dataset,
        rng: Optional[np.random.Generator] = None,
        jitter: float = 0.0,
        min_variance: float = 1e-6,
    ) -> "DiagonalGaussian":
        """Initialize from the observed coordinates of a dataset.

        Coordinates that are never observed start at mean 0 and variance 1.

        Args:
            dataset: Data to initialize from. Sample weights are honoured.
            rng: Random number generator for the jitter. If None, uses
                default_rng().
            jitter: Scale of the random offset added to the mean, in units of
                the per-coordinate standard deviation. Use a non-zero jitter
                to seed distinct mixture components.
            min_variance: Variance floor.

        Returns:
            New component.
        """
        mean, variance = _weighted_moments(
            dataset, np.zeros(dataset.output_size()), np.ones(dataset.output_size()), min_variance
        )
        if jitter > 0:
            if rng is None:
                rng = np.random.default_rng()
            mean = mean + jitter * np.sqrt(variance) * rng.standard_normal(mean.shape[0])
        return cls(mean, variance, min_variance=min_variance)

    @property
    def mean(self) -> np.ndarray:
        return self._mean

    @property
    def variance(self) -> np.ndarray:
        return self._variance

    def output_size(self) -> int:
        return self._mean.shape[0]

    def state_size(self) -> int:
        return 0

    def n_parameters(self) -> int:
        return 2 * self.output_size()

    def sample_one(self, mask_probability: float, rng: np.random.Generator) -> MaskedSample:
        values = self._mean + np.sqrt(self._variance) * rng.standard_normal(self.output_size())
        observed = rng.random(self.output_size()) >= mask_probability
        return MaskedSample(values, observed)

    def llks(self, dataset: Dataset) -> np.ndarray:
        """Log-density of the observed coordinates of each sample.

        A sample with no observed coordinate has log-likelihood 0.
        """
        _check_size(self, dataset)
        diff = dataset.data_array() - self._mean
        per_coord = -0.5 * (_LOG_2PI + np.log(self._variance) + diff**2 / self._variance)
        return np.sum(np.where(dataset.mask_array(), per_coord, 0.0), axis=1)

    def smooth(self, dataset: Dataset) -> Dataset:
        # The latent state is zero-dimensional, so the posterior mean is the mean.
        _check_size(self, dataset)
        return Dataset.unmasked(np.tile(self._mean, (len(dataset), 1)))

    def extrapolate(self, dataset: Dataset) -> Dataset:
        _check_size(self, dataset)
        filled = np.where(dataset.mask_array(), dataset.data_array(), self._mean)
        return Dataset.unmasked(filled.reshape(len(dataset), self.output_size()))

    def iterate(self, dataset: Dataset) -> "DiagonalGaussian":
        """Weighted maximum-likelihood update over observed coordinates.

        Coordinates with zero total observed weight keep their current
        parameters.
        """
        _check_size(self, dataset)
        mean, variance = _weighted_moments(dataset, self._mean, self._variance, self.min_variance)
        return DiagonalGaussian(mean, variance, min_variance=self.min_variance)

    def to_canonical(self) -> "DiagonalGaussian":
        return DiagonalGaussian(self._mean, self._variance, min_variance=self.min_variance)

    def __repr__(self) -> str:
        return f"DiagonalGaussian(mean={self._mean.tolist()}, variance={self._variance.tolist()})"


def _check_size(component: DiagonalGaussian, dataset: Dataset) -> None:
    if len(dataset) and dataset.output_size() != component.output_size():
        raise ValueError(
            f"Dataset output size {dataset.output_size()} != component output size "
            f"{component.output_size()}"
        )


def _weighted_moments(
    dataset: Dataset,
    prev_mean: np.ndarray,
    prev_variance: np.ndarray,
    min_variance: float,
) -> tuple[np.ndarray, np.ndarray]:
    """Per-coordinate weighted mean and variance over observed entries."""
    X = dataset.data_array()
    w = dataset.weights[:, np.newaxis] * dataset.mask_array()
    total = np.sum(w, axis=0)
    # NaN totals count as weighted so they poison the update instead of being skipped
    has_weight = ~(total == 0)
    safe_total = np.where(has_weight, total, 1.0)

    mean = np.sum(w * X, axis=0) / safe_total
    variance = np.sum(w * (X - mean) ** 2, axis=0) / safe_total
    variance = np.maximum(variance, min_variance)

    mean = np.where(has_weight, mean, prev_mean)
    variance = np.where(has_weight, variance, prev_variance)
    return mean, variance

"""Pytest configuration and shared fixtures for ppcamix tests.

This module provides:
- A deterministic numpy Generator fixture
- Small mixtures and datasets used across test modules
"""

import os

import numpy as np
import pytest

from ppcamix import Dataset, DiagonalGaussian, PPCAMixture


@pytest.fixture(scope="function")
def rng() -> np.random.Generator:
    """Provide a deterministic numpy RNG for tests.

    Uses seed from TEST_RNG_SEED environment variable (default: 0).

    Returns:
        A seeded numpy.random.Generator instance.
    """
    seed = int(os.environ.get("TEST_RNG_SEED", "0"))
    return np.random.default_rng(seed)


@pytest.fixture
def two_cluster_mixture() -> PPCAMixture:
    """Well-separated 2-component mixture in 3 dimensions, weights 0.25/0.75."""
    return PPCAMixture(
        [
            DiagonalGaussian(np.array([-5.0, 0.0, 5.0]), np.array([0.5, 0.5, 0.5])),
            DiagonalGaussian(np.array([5.0, 0.0, -5.0]), np.array([0.5, 0.5, 0.5])),
        ],
        np.log([0.25, 0.75]),
    )


@pytest.fixture
def two_cluster_data(two_cluster_mixture: PPCAMixture, rng: np.random.Generator) -> Dataset:
    """300 fully-observed samples drawn from `two_cluster_mixture`."""
    return two_cluster_mixture.sample(300, mask_probability=0.0, rng=rng)


@pytest.fixture
def initial_mixture(two_cluster_data: Dataset, rng: np.random.Generator) -> PPCAMixture:
    """Uniform 2-component mixture seeded from the data with jittered means."""
    components = [
        DiagonalGaussian.from_dataset(two_cluster_data, rng=rng, jitter=1.0) for _ in range(2)
    ]
    return PPCAMixture.uniform(components)

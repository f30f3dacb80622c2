"""Tests for the DiagonalGaussian component."""

import numpy as np
import pytest

from ppcamix import Component, Dataset, DiagonalGaussian


def test_satisfies_component_protocol():
    assert isinstance(DiagonalGaussian(np.zeros(2), np.ones(2)), Component)


def test_descriptors():
    g = DiagonalGaussian(np.zeros(4), np.ones(4))
    assert g.output_size() == 4
    assert g.state_size() == 0
    assert g.n_parameters() == 8


@pytest.mark.parametrize(
    "mean, variance, match",
    [
        (np.zeros((2, 2)), np.ones((2, 2)), "1D"),
        (np.zeros(2), np.ones(3), "variance shape"),
        (np.zeros(2), np.array([1.0, 0.0]), "positive"),
    ],
)
def test_rejects_invalid_parameters(mean, variance, match):
    with pytest.raises(ValueError, match=match):
        DiagonalGaussian(mean, variance)


def test_llks_standard_normal():
    g = DiagonalGaussian(np.zeros(2), np.ones(2))
    ds = Dataset.from_array([[0.0, 0.0], [1.0, 0.0]])
    expected = np.array([-np.log(2 * np.pi), -np.log(2 * np.pi) - 0.5])
    np.testing.assert_allclose(g.llks(ds), expected)


def test_llks_marginalizes_missing_coordinates():
    g = DiagonalGaussian(np.zeros(2), np.ones(2))
    ds = Dataset.from_array([[0.0, np.nan], [np.nan, np.nan]])
    llks = g.llks(ds)
    assert llks[0] == pytest.approx(-0.5 * np.log(2 * np.pi))
    assert llks[1] == 0.0


def test_llks_rejects_wrong_output_size():
    g = DiagonalGaussian(np.zeros(2), np.ones(2))
    with pytest.raises(ValueError, match="output size"):
        g.llks(Dataset.from_array([[0.0, 0.0, 0.0]]))


def test_smooth_and_extrapolate():
    g = DiagonalGaussian(np.array([1.0, 2.0]), np.ones(2))
    ds = Dataset.from_array([[5.0, np.nan]])

    smoothed = g.smooth(ds)
    np.testing.assert_array_equal(smoothed.to_array(), [[1.0, 2.0]])
    assert smoothed[0].is_fully_observed()

    extrapolated = g.extrapolate(ds)
    np.testing.assert_array_equal(extrapolated.to_array(), [[5.0, 2.0]])
    assert extrapolated[0].is_fully_observed()


def test_iterate_weighted_mle():
    g = DiagonalGaussian(np.zeros(1), np.ones(1))
    ds = Dataset.from_array([[0.0], [2.0], [100.0]]).with_weights([1.0, 1.0, 0.0])
    updated = g.iterate(ds)
    np.testing.assert_allclose(updated.mean, [1.0])
    np.testing.assert_allclose(updated.variance, [1.0])


def test_iterate_weights_are_scale_free():
    g = DiagonalGaussian(np.zeros(2), np.ones(2))
    X = np.array([[0.0, 1.0], [3.0, -1.0], [1.0, 4.0]])
    a = g.iterate(Dataset.from_array(X).with_weights([1.0, 0.5, 0.25]))
    b = g.iterate(Dataset.from_array(X).with_weights([4.0, 2.0, 1.0]))
    np.testing.assert_allclose(a.mean, b.mean)
    np.testing.assert_allclose(a.variance, b.variance)


def test_iterate_ignores_unobserved_and_keeps_unseen_coordinates():
    g = DiagonalGaussian(np.array([0.0, 7.0]), np.array([1.0, 3.0]))
    ds = Dataset.from_array([[1.0, np.nan], [3.0, np.nan]])
    updated = g.iterate(ds)
    np.testing.assert_allclose(updated.mean, [2.0, 7.0])
    np.testing.assert_allclose(updated.variance, [1.0, 3.0])


def test_iterate_applies_variance_floor():
    g = DiagonalGaussian(np.zeros(1), np.ones(1), min_variance=1e-3)
    updated = g.iterate(Dataset.from_array([[2.0], [2.0]]))
    np.testing.assert_allclose(updated.variance, [1e-3])


def test_iterate_nan_weights_poison_update():
    g = DiagonalGaussian(np.zeros(1), np.ones(1))
    ds = Dataset.from_array([[0.0], [1.0]]).with_weights([np.nan, 1.0])
    updated = g.iterate(ds)
    assert np.isnan(updated.mean[0])


def test_iterate_does_not_mutate():
    g = DiagonalGaussian(np.zeros(1), np.ones(1))
    g.iterate(Dataset.from_array([[5.0], [6.0]]))
    np.testing.assert_array_equal(g.mean, [0.0])
    np.testing.assert_array_equal(g.variance, [1.0])


def test_sample_one_masking(rng):
    g = DiagonalGaussian(np.zeros(50), np.ones(50))
    assert g.sample_one(0.0, rng).is_fully_observed()
    assert g.sample_one(1.0, rng).is_empty()
    partial = g.sample_one(0.5, rng)
    assert 0 < partial.n_observed() < 50


def test_from_dataset(rng):
    ds = Dataset.from_array([[0.0, np.nan], [2.0, np.nan]])
    g = DiagonalGaussian.from_dataset(ds)
    np.testing.assert_allclose(g.mean, [1.0, 0.0])
    np.testing.assert_allclose(g.variance, [1.0, 1.0])

    jittered = DiagonalGaussian.from_dataset(ds, rng=rng, jitter=1.0)
    assert not np.allclose(jittered.mean, g.mean)


def test_to_canonical_is_equivalent():
    g = DiagonalGaussian(np.array([1.0, -1.0]), np.array([2.0, 0.5]))
    ds = Dataset.from_array([[0.0, 1.0], [3.0, np.nan]])
    np.testing.assert_allclose(g.to_canonical().llks(ds), g.llks(ds))

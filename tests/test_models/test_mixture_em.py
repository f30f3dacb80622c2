"""Tests for PPCAMixture.iterate (one EM step)."""

import numpy as np
import pytest
from fakes import ScriptedComponent

from ppcamix import Dataset, DiagonalGaussian, MaskedSample, PPCAMixture, debug_context


def _llks(*values):
    return lambda ds: np.array(values, dtype=float)


def test_log_weights_stay_normalized(initial_mixture, two_cluster_data):
    model = initial_mixture
    for _ in range(5):
        model = model.iterate(two_cluster_data)
        assert np.sum(np.exp(model.log_weights)) == pytest.approx(1.0, abs=1e-9)


def test_new_weights_are_mean_responsibilities(initial_mixture, two_cluster_data):
    """The K responsibility masses add up to the dataset's total responsibility."""
    expected = np.mean(np.exp(initial_mixture.infer_cluster(two_cluster_data)), axis=0)
    updated = initial_mixture.iterate(two_cluster_data)
    np.testing.assert_allclose(updated.weights(), expected, rtol=1e-10)


def test_components_receive_unnormalized_responsibilities():
    received_a, received_b = [], []
    mix = PPCAMixture(
        [
            ScriptedComponent(llk_fn=_llks(0.0, -1.0, -3.0), received=received_a),
            ScriptedComponent(llk_fn=_llks(-2.0, 0.0, 0.0), received=received_b),
        ],
        np.log([0.4, 0.6]),
    )
    ds = Dataset.from_array(np.zeros((3, 2)))
    log_post = mix.infer_cluster(ds)
    mix.iterate(ds)

    for k, received in enumerate([received_a, received_b]):
        assert len(received) == 1
        weights = received[0]
        assert np.max(weights) == 1.0
        np.testing.assert_allclose(weights, np.exp(log_post[:, k] - np.max(log_post[:, k])))


def test_input_weights_are_replaced():
    received = []
    mix = PPCAMixture.uniform([ScriptedComponent(received=received)])
    ds = Dataset.from_array(np.zeros((3, 2))).with_weights([5.0, 0.0, 2.0])
    mix.iterate(ds)
    np.testing.assert_array_equal(received[0], [1.0, 1.0, 1.0])


def test_does_not_mutate(initial_mixture, two_cluster_data):
    before_llk = initial_mixture.llk(two_cluster_data)
    before_weights = initial_mixture.log_weights
    before_components = initial_mixture.components

    updated = initial_mixture.iterate(two_cluster_data)

    assert updated is not initial_mixture
    assert initial_mixture.llk(two_cluster_data) == before_llk
    np.testing.assert_array_equal(initial_mixture.log_weights, before_weights)
    assert initial_mixture.components == before_components
    assert updated.n_components() == initial_mixture.n_components()
    assert updated.output_size() == initial_mixture.output_size()


def test_likelihood_never_decreases(initial_mixture, two_cluster_data):
    model = initial_mixture
    prev = model.llk(two_cluster_data)
    for _ in range(15):
        model = model.iterate(two_cluster_data)
        llk = model.llk(two_cluster_data)
        assert llk >= prev - 1e-8 * abs(prev)
        prev = llk


def test_likelihood_never_decreases_with_missing_values(two_cluster_mixture, rng):
    ds = two_cluster_mixture.sample(300, mask_probability=0.3, rng=rng)
    model = PPCAMixture.uniform(
        [DiagonalGaussian.from_dataset(ds, rng=rng, jitter=1.0) for _ in range(2)]
    )
    prev = model.llk(ds)
    for _ in range(15):
        model = model.iterate(ds)
        llk = model.llk(ds)
        assert llk >= prev - 1e-8 * abs(prev)
        prev = llk


def test_recovers_weights(initial_mixture, two_cluster_data):
    model = initial_mixture
    for _ in range(50):
        model = model.iterate(two_cluster_data)
    np.testing.assert_allclose(np.sort(model.weights()), [0.25, 0.75], atol=0.1)


def test_fully_unobserved_sample_is_harmless(initial_mixture, two_cluster_data):
    samples = list(two_cluster_data) + [MaskedSample.mask_all([0.0, 0.0, 0.0])]
    ds = Dataset(samples)
    updated = initial_mixture.iterate(ds)
    assert np.all(np.isfinite(updated.log_weights))
    for component in updated.components:
        assert np.all(np.isfinite(component.mean))
        assert np.all(np.isfinite(component.variance))
    assert np.isfinite(updated.llk(ds))


def test_empty_dataset_raises(initial_mixture):
    with pytest.raises(ValueError, match="no responsibilities"):
        initial_mixture.iterate(Dataset.empty(3))


def test_all_nan_responsibilities_raise():
    mix = PPCAMixture.uniform([ScriptedComponent(llk_fn=_llks(np.nan, np.nan))])
    with pytest.raises(ValueError, match="Cannot re-estimate component 0"):
        mix.iterate(Dataset.from_array(np.zeros((2, 2))))


def test_nan_poisons_update_without_raising():
    received_a, received_b = [], []
    mix = PPCAMixture.uniform(
        [
            ScriptedComponent(llk_fn=_llks(0.0, np.nan, -1.0), received=received_a),
            ScriptedComponent(llk_fn=_llks(-1.0, 0.0, 0.0), received=received_b),
        ]
    )
    updated = mix.iterate(Dataset.from_array(np.zeros((3, 2))))

    assert np.all(np.isnan(updated.log_weights))
    for received in (received_a, received_b):
        weights = received[0]
        assert np.isnan(weights[1])
        assert np.nanmax(weights) == 1.0


def test_debug_mode_rejects_nan_weights():
    mix = PPCAMixture.uniform(
        [
            ScriptedComponent(llk_fn=_llks(0.0, np.nan)),
            ScriptedComponent(llk_fn=_llks(0.0, 0.0)),
        ]
    )
    ds = Dataset.from_array(np.zeros((2, 2)))
    with debug_context(True):
        with pytest.raises(ValueError, match="non-finite"):
            mix.iterate(ds)
    # Outside debug mode the NaN model is returned as-is.
    assert np.all(np.isnan(mix.iterate(ds).log_weights))


def test_iterate_then_canonical(initial_mixture, two_cluster_data):
    updated = initial_mixture.iterate(two_cluster_data)
    canonical = updated.to_canonical()
    assert canonical.llk(two_cluster_data) == pytest.approx(updated.llk(two_cluster_data))

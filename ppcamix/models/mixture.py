"""Mixture of probabilistic PCA components.

Fits, scores and imputes partially-observed data with K latent-variable
components and mixing weights. All mixture-level probability arithmetic is
done in the log domain through `logsumexp` and `log_softmax`.

Per-sample work is vectorized: every component is queried once per call, its
per-sample outputs are stacked into an (n_samples, K) table (or a
(K, n_samples, output_size) block for imputation), and the reduction runs
row-wise over that read-only table.

Non-finite values are never filtered. A numerically degenerate component or
input shows up as NaN in the returned scores or in the re-estimated model.

References:
    Tipping, M. E. & Bishop, C. M. (1999). Mixtures of Probabilistic
    Principal Component Analyzers. Neural Computation 11(2).
"""

from __future__ import annotations

from typing import List, Optional, Sequence, Tuple

import numpy as np

from ..data import Dataset
from ..diagnostics import assert_log_normalized, is_debug_enabled
from ..logging import get_logger
from ..probabilistic.utils import log_softmax, logsumexp, normalize_log_weights
from .base import Component

logger = get_logger(__name__)


class PPCAMixture:
    """Immutable mixture of latent-variable components.

    `iterate` and `to_canonical` return new mixtures; earlier instances stay
    valid.

    Args:
        components: Non-empty sequence of components sharing one output size.
        log_weights: Unnormalized log mixing weights, one per component. They
            are normalized with `log_softmax`.

    Raises:
        ValueError: If there are no components, the number of log-weights
            differs from the number of components, the components' output
            sizes differ, or the log-weights are degenerate (NaN, +inf, or
            all -inf).

    Examples:
        >>> from ppcamix import DiagonalGaussian
        >>> c = DiagonalGaussian(np.zeros(3), np.ones(3))
        >>> mix = PPCAMixture([c, c], np.array([0.0, 0.0]))
        >>> np.exp(mix.log_weights)
        array([0.5, 0.5])
    """

    def __init__(self, components: Sequence[Component], log_weights: Sequence[float] | np.ndarray):
        components = list(components)
        if not components:
            raise ValueError("A mixture needs at least one component.")

        raw = np.array(log_weights, dtype=np.float64)
        if raw.ndim != 1:
            raise ValueError(f"log_weights must be 1D, got shape {raw.shape}")
        if raw.shape[0] != len(components):
            raise ValueError(
                f"Got {raw.shape[0]} log-weights for {len(components)} components."
            )

        output_sizes = [component.output_size() for component in components]
        if len(set(output_sizes)) != 1:
            raise ValueError(f"Component output sizes are not the same: {output_sizes}")

        if np.any(np.isnan(raw)) or np.any(raw == np.inf):
            raise ValueError(f"log_weights must not contain NaN or +inf, got {raw.tolist()}")
        if not np.any(np.isfinite(raw)):
            raise ValueError("At least one log-weight must be finite; all are -inf.")

        self._init(output_sizes[0], components, log_softmax(raw))

    @classmethod
    def uniform(cls, components: Sequence[Component]) -> "PPCAMixture":
        """Mixture with equal weight on every component."""
        components = list(components)
        return cls(components, np.zeros(len(components)))

    @classmethod
    def _from_parts(
        cls,
        output_size: int,
        components: List[Component],
        log_weights: np.ndarray,
    ) -> "PPCAMixture":
        # Skips the public guards so NaN from re-estimation reaches the caller.
        mixture = cls.__new__(cls)
        mixture._init(output_size, components, log_weights)
        return mixture

    def _init(self, output_size: int, components: List[Component], log_weights: np.ndarray) -> None:
        log_weights = np.array(log_weights, dtype=np.float64)
        log_weights.setflags(write=False)
        self._output_size = int(output_size)
        self._components = tuple(components)
        self._log_weights = log_weights
        if is_debug_enabled():
            assert_log_normalized(self._log_weights)

    @property
    def components(self) -> Tuple[Component, ...]:
        return self._components

    @property
    def log_weights(self) -> np.ndarray:
        """Normalized log mixing weights, shape (K,)."""
        return self._log_weights.copy()

    def weights(self) -> np.ndarray:
        return np.exp(self._log_weights)

    def n_components(self) -> int:
        return len(self._components)

    def output_size(self) -> int:
        return self._output_size

    def state_sizes(self) -> List[int]:
        return [component.state_size() for component in self._components]

    def n_parameters(self) -> int:
        """Component parameters plus K - 1 free mixing weights."""
        return sum(component.n_parameters() for component in self._components) + len(self._components) - 1

    def sample(
        self,
        count: int,
        mask_probability: float = 0.0,
        rng: Optional[np.random.Generator] = None,
    ) -> Dataset:
        """Draw samples from the mixture.

        Each sample picks a component from the mixing weights, then draws from
        it with each coordinate unobserved with probability `mask_probability`.

        Args:
            count: Number of samples to draw.
            mask_probability: Per-coordinate probability of being unobserved.
            rng: Random number generator. If None, uses default_rng().

        Returns:
            Dataset of `count` samples.

        Raises:
            ValueError: If count is negative or mask_probability is outside [0, 1].
        """
        if count < 0:
            raise ValueError(f"count must be >= 0, got {count}")
        if not 0.0 <= mask_probability <= 1.0:
            raise ValueError(f"mask_probability must be in [0, 1], got {mask_probability}")
        if rng is None:
            rng = np.random.default_rng()
        if count == 0:
            return Dataset.empty(self._output_size)

        probs, _ = normalize_log_weights(self._log_weights)
        choices = rng.choice(len(self._components), size=count, p=probs)
        return Dataset(self._components[k].sample_one(mask_probability, rng) for k in choices)

    def llks(self, dataset: Dataset) -> np.ndarray:
        """Mixture log-likelihood of each sample, shape (n_samples,)."""
        return logsumexp(self._joint_log_scores(dataset), axis=1)

    def llk(self, dataset: Dataset) -> float:
        """Total log-likelihood of the dataset."""
        return float(np.sum(self.llks(dataset)))

    def infer_cluster(self, dataset: Dataset) -> np.ndarray:
        """Log-posterior of component membership.

        Args:
            dataset: Samples to cluster.

        Returns:
            Log-probabilities, shape (n_samples, K). exp of every row sums to 1.
        """
        return log_softmax(self._joint_log_scores(dataset), axis=1)

    def predict(self, dataset: Dataset) -> np.ndarray:
        """Most probable component of each sample, shape (n_samples,)."""
        return np.argmax(self.infer_cluster(dataset), axis=1)

    def smooth(self, dataset: Dataset) -> Dataset:
        """Posterior-mean reconstruction of every sample.

        Each component's reconstruction is weighted by the sample's cluster
        posterior. The result is fully observed.
        """
        self._check_dataset(dataset)
        if len(dataset) == 0:
            return Dataset.empty(self._output_size)
        smoothed = [component.smooth(dataset) for component in self._components]
        return self._blend(dataset, smoothed)

    def extrapolate(self, dataset: Dataset) -> Dataset:
        """Impute the missing coordinates of every sample.

        Each component's extrapolation is weighted by the sample's cluster
        posterior. The result is fully observed.
        """
        self._check_dataset(dataset)
        if len(dataset) == 0:
            return Dataset.empty(self._output_size)
        extrapolated = [component.extrapolate(dataset) for component in self._components]
        return self._blend(dataset, extrapolated)

    def iterate(self, dataset: Dataset) -> "PPCAMixture":
        """Run one EM step and return the re-estimated mixture.

        Responsibilities are computed once for all components. Each component
        is then updated on the dataset reweighted by its unnormalized
        responsibilities exp(log_posterior - max), and the new mixing weights
        are the normalized total responsibility masses. Any weights already
        attached to `dataset` are replaced.

        Args:
            dataset: Training samples.

        Returns:
            New mixture with every component updated.

        Raises:
            ValueError: If the dataset has the wrong output size, or a
                component has no non-NaN responsibility (e.g. empty dataset).
        """
        log_posteriors = self.infer_cluster(dataset)

        components = []
        log_masses = np.empty(len(self._components), dtype=np.float64)
        for k, component in enumerate(self._components):
            updated, log_masses[k] = _reestimate_component(component, dataset, log_posteriors[:, k], k)
            components.append(updated)

        new_log_weights = log_softmax(log_masses)
        logger.debug(
            "iterate: %d samples, log-masses %s, new log-weights %s",
            len(dataset),
            log_masses.tolist(),
            new_log_weights.tolist(),
        )
        return PPCAMixture._from_parts(self._output_size, components, new_log_weights)

    def to_canonical(self) -> "PPCAMixture":
        """Mixture with every component in canonical form and the same weights."""
        return PPCAMixture._from_parts(
            self._output_size,
            [component.to_canonical() for component in self._components],
            self._log_weights,
        )

    def _check_dataset(self, dataset: Dataset) -> None:
        if len(dataset) and dataset.output_size() != self._output_size:
            raise ValueError(
                f"Dataset output size {dataset.output_size()} != mixture output size {self._output_size}"
            )

    def _joint_log_scores(self, dataset: Dataset) -> np.ndarray:
        """log p(x_i | k) + log pi_k for every sample and component, shape (n_samples, K)."""
        self._check_dataset(dataset)
        n_samples = len(dataset)
        table = np.empty((n_samples, len(self._components)), dtype=np.float64)
        if n_samples == 0:
            # An empty dataset may not carry the mixture output size
            return table
        for k, component in enumerate(self._components):
            llks = np.asarray(component.llks(dataset), dtype=np.float64)
            if llks.shape != (n_samples,):
                raise ValueError(
                    f"Component {k} returned log-likelihoods of shape {llks.shape}, "
                    f"expected ({n_samples},)"
                )
            table[:, k] = llks
        return table + self._log_weights

    def _blend(self, dataset: Dataset, outputs: List[Dataset]) -> Dataset:
        """Posterior-weighted sum of per-component reconstructions."""
        n_samples = len(dataset)
        blocks = []
        for k, output in enumerate(outputs):
            block = output.data_array()
            if block.shape != (n_samples, self._output_size):
                raise ValueError(
                    f"Component {k} returned reconstructions of shape {block.shape}, "
                    f"expected ({n_samples}, {self._output_size})"
                )
            blocks.append(block)

        posterior = np.exp(self.infer_cluster(dataset))
        blended = np.einsum("nk,knd->nd", posterior, np.stack(blocks))
        return Dataset.unmasked(blended)


def _reestimate_component(
    component: Component,
    dataset: Dataset,
    log_posteriors: np.ndarray,
    k: int,
) -> Tuple[Component, float]:
    """Update one component on its responsibility-weighted view of the dataset.

    Returns the updated component and its log total responsibility mass.
    """
    not_nan = log_posteriors[~np.isnan(log_posteriors)]
    if not_nan.size == 0:
        raise ValueError(
            f"Cannot re-estimate component {k}: no responsibilities available "
            f"(dataset has {len(dataset)} samples)."
        )
    # NaN entries stay in the weights and poison this component's update.
    max_posterior = np.max(not_nan)
    # At least one weight is exactly 1.0.
    unnorm_posteriors = np.exp(log_posteriors - max_posterior)
    log_mass = float(np.log(np.sum(unnorm_posteriors)) + max_posterior)
    return component.iterate(dataset.with_weights(unnorm_posteriors)), log_mass

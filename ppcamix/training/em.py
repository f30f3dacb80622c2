"""Expectation-Maximization loop for mixture models."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Protocol, Tuple

import numpy as np

from ..data import Dataset
from ..logging import get_logger
from ..models.mixture import PPCAMixture

logger = get_logger(__name__)


@dataclass
class EMConfig:
    """
    Configuration for the EM loop.

    Args:
        max_iter: Maximum number of EM steps.
        tol: Stop once the log-likelihood improves by less than this amount.
        canonicalize: If True, put the components in canonical form after
            every step.

    Raises:
        ValueError: If max_iter < 1 or tol < 0.
    """

    max_iter: int = 100
    tol: float = 1e-6
    canonicalize: bool = False

    def __post_init__(self) -> None:
        if self.max_iter < 1:
            raise ValueError(f"max_iter must be >= 1, got {self.max_iter}")
        if self.tol < 0:
            raise ValueError(f"tol must be >= 0, got {self.tol}")


@dataclass
class EMStepInfo:
    """
    Metrics recorded at each EM step.

    Args:
        iteration: Step number (1-indexed).
        llk: Dataset log-likelihood of the model before this step.
        improvement: Change in llk since the previous step. None on the
            first step.
        log_weights: Mixing log-weights of the model before this step.
    """

    iteration: int
    llk: float
    improvement: Optional[float]
    log_weights: np.ndarray


@dataclass
class EMHistory:
    """Accumulated EM metrics."""

    steps: List[EMStepInfo] = field(default_factory=list)

    def record(self, info: EMStepInfo) -> None:
        self.steps.append(info)

    def llks(self) -> List[float]:
        return [step.llk for step in self.steps]

    def best_llk(self) -> Optional[float]:
        """Highest log-likelihood recorded, or None if nothing was recorded."""
        finite = [llk for llk in self.llks() if np.isfinite(llk)]
        if not finite:
            return None
        return max(finite)

    def num_steps(self) -> int:
        return len(self.steps)


class EMCallback(Protocol):
    """
    Protocol for EM callbacks.

    A callback receives the EMStepInfo of every step and may perform side
    effects such as logging or checkpointing.
    """

    def __call__(self, info: EMStepInfo) -> None:
        ...


class MixtureTrainer:
    """
    Runs EM steps on a mixture until the log-likelihood stops improving.

    Args:
        model: Initial mixture.
        config: EM configuration. If None, uses EMConfig().

    Attributes:
        model: Latest mixture. Updated by `run`; earlier models are not
            modified.
        config: EM configuration.
        history: Metrics of every step run so far.
    """

    def __init__(self, model: PPCAMixture, config: Optional[EMConfig] = None) -> None:
        self.model = model
        self.config = config if config is not None else EMConfig()
        self.history = EMHistory()

    def run(
        self,
        dataset: Dataset,
        callbacks: Optional[List[EMCallback]] = None,
    ) -> EMHistory:
        """
        Run the EM loop on `dataset`.

        Each step scores the current model, then replaces it with its EM
        update. The loop stops after max_iter steps, when the improvement
        drops below tol, or when the log-likelihood is not finite.

        Args:
            dataset: Training samples.
            callbacks: Optional callbacks invoked after each step.

        Returns:
            EMHistory containing all recorded steps.
        """
        callbacks = callbacks or []
        prev_llk: Optional[float] = None

        for iteration in range(1, self.config.max_iter + 1):
            llk = self.model.llk(dataset)
            improvement = None if prev_llk is None else llk - prev_llk
            info = EMStepInfo(
                iteration=iteration,
                llk=llk,
                improvement=improvement,
                log_weights=self.model.log_weights,
            )
            self.history.record(info)
            for cb in callbacks:
                cb(info)

            if not np.isfinite(llk):
                logger.error("EM step %d: log-likelihood is %s, stopping", iteration, llk)
                break

            logger.info("EM step %d: llk=%.6f", iteration, llk)
            if improvement is not None:
                if improvement < -self.config.tol:
                    logger.warning(
                        "EM step %d: log-likelihood decreased by %.3g", iteration, -improvement
                    )
                elif improvement < self.config.tol:
                    logger.info("Converged after %d steps", iteration - 1)
                    break

            model = self.model.iterate(dataset)
            if self.config.canonicalize:
                model = model.to_canonical()
            self.model = model
            prev_llk = llk

        return self.history


def fit_mixture(
    model: PPCAMixture,
    dataset: Dataset,
    config: Optional[EMConfig] = None,
    callbacks: Optional[List[EMCallback]] = None,
) -> Tuple[PPCAMixture, EMHistory]:
    """
    Fit a mixture with EM.

    Args:
        model: Initial mixture.
        dataset: Training samples.
        config: EM configuration. If None, uses EMConfig().
        callbacks: Optional callbacks invoked after each step.

    Returns:
        Tuple of (fitted mixture, history).
    """
    trainer = MixtureTrainer(model, config)
    history = trainer.run(dataset, callbacks=callbacks)
    return trainer.model, history

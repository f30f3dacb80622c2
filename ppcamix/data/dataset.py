"""Partially-observed samples and datasets.

A `MaskedSample` is a real vector plus a boolean mask (True = observed). A
`Dataset` is an ordered, fixed-length collection of samples of equal length,
each carrying a non-negative weight. Datasets are stored as dense
(n_samples, output_size) arrays so per-sample work can be vectorized.
"""

from __future__ import annotations

from typing import Iterable, Iterator, Optional, Sequence, Union, overload

import numpy as np

FILL_VALUE = 0.0


class MaskedSample:
    """A single vector with some coordinates possibly unobserved.

    Args:
        data: 1D vector of values. Values at unobserved coordinates are
            ignored.
        mask: Boolean vector, True where the coordinate is observed. If None,
            every coordinate is observed.

    Raises:
        ValueError: If data is not 1D or mask does not match its shape.
    """

    __slots__ = ("_data", "_mask")

    def __init__(self, data: Sequence[float] | np.ndarray, mask: Optional[Sequence[bool] | np.ndarray] = None):
        data = np.array(data, dtype=np.float64)
        if data.ndim != 1:
            raise ValueError(f"MaskedSample expects a 1D vector, got shape {data.shape}.")
        if mask is None:
            mask = np.ones(data.shape, dtype=bool)
        else:
            mask = np.array(mask, dtype=bool)
            if mask.shape != data.shape:
                raise ValueError(f"mask shape {mask.shape} != data shape {data.shape}")
        data.setflags(write=False)
        mask.setflags(write=False)
        self._data = data
        self._mask = mask

    @classmethod
    def unmasked(cls, data: Sequence[float] | np.ndarray) -> "MaskedSample":
        """Build a fully-observed sample."""
        return cls(data)

    @classmethod
    def mask_all(cls, data: Sequence[float] | np.ndarray) -> "MaskedSample":
        """Build a sample with every coordinate unobserved."""
        data = np.asarray(data, dtype=np.float64)
        return cls(data, np.zeros(data.shape, dtype=bool))

    @property
    def data(self) -> np.ndarray:
        return self._data

    @property
    def mask(self) -> np.ndarray:
        return self._mask

    def output_size(self) -> int:
        return self._data.shape[0]

    def n_observed(self) -> int:
        return int(np.count_nonzero(self._mask))

    def is_fully_observed(self) -> bool:
        return bool(np.all(self._mask))

    def is_empty(self) -> bool:
        """True if no coordinate is observed."""
        return not np.any(self._mask)

    def masked_vector(self) -> np.ndarray:
        """Return the values with unobserved coordinates set to the fill value (0.0)."""
        return np.where(self._mask, self._data, FILL_VALUE)

    def __len__(self) -> int:
        return self.output_size()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, MaskedSample):
            return NotImplemented
        return bool(
            np.array_equal(self._mask, other._mask)
            and np.array_equal(self.masked_vector(), other.masked_vector())
        )

    def __repr__(self) -> str:
        return f"MaskedSample(data={self.masked_vector().tolist()}, mask={self._mask.tolist()})"


class Dataset:
    """Ordered collection of partially-observed samples with per-sample weights.

    Datasets are immutable; `with_weights` and `reorder` return new views that
    share nothing mutable with the receiver.

    Args:
        samples: Iterable (lazy or eager) of `MaskedSample`, all of the same
            output size.
        weights: Optional non-negative per-sample weights. Defaults to 1.0.

    Raises:
        ValueError: If samples differ in output size or weights are invalid.

    Examples:
        >>> ds = Dataset([MaskedSample([1.0, 2.0]), MaskedSample([3.0, 0.0], [True, False])])
        >>> len(ds), ds.output_size()
        (2, 2)
    """

    def __init__(
        self,
        samples: Iterable[MaskedSample] = (),
        weights: Optional[Sequence[float] | np.ndarray] = None,
    ):
        samples = list(samples)
        sizes = sorted({sample.output_size() for sample in samples})
        if len(sizes) > 1:
            raise ValueError(f"Samples have different output sizes: {sizes}")
        output_size = sizes[0] if sizes else 0
        data = np.zeros((len(samples), output_size), dtype=np.float64)
        mask = np.zeros((len(samples), output_size), dtype=bool)
        for i, sample in enumerate(samples):
            data[i] = sample.masked_vector()
            mask[i] = sample.mask
        self._init_arrays(data, mask, weights)

    def _init_arrays(
        self,
        data: np.ndarray,
        mask: np.ndarray,
        weights: Optional[Sequence[float] | np.ndarray],
    ) -> None:
        n_samples = data.shape[0]
        if weights is None:
            weights = np.ones(n_samples, dtype=np.float64)
        else:
            weights = np.array(weights, dtype=np.float64)
            if weights.shape != (n_samples,):
                raise ValueError(
                    f"Expected {n_samples} weights, got array of shape {weights.shape}."
                )
            # NaN weights pass through so numerical failures stay visible
            if np.any(weights < 0):
                raise ValueError("Sample weights must be non-negative.")
        for array in (data, mask, weights):
            array.setflags(write=False)
        self._data = data
        self._mask = mask
        self._weights = weights

    @classmethod
    def _from_arrays(
        cls,
        data: np.ndarray,
        mask: np.ndarray,
        weights: Optional[np.ndarray] = None,
    ) -> "Dataset":
        dataset = cls.__new__(cls)
        dataset._init_arrays(np.where(mask, data, FILL_VALUE), mask.astype(bool), weights)
        return dataset

    @classmethod
    def from_array(
        cls,
        X: Sequence[Sequence[float]] | np.ndarray,
        mask: Optional[np.ndarray] = None,
        weights: Optional[Sequence[float] | np.ndarray] = None,
    ) -> "Dataset":
        """Build a dataset from an (n_samples, output_size) array.

        Args:
            X: Sample matrix.
            mask: Optional boolean matrix, True where observed. If None, NaN
                entries of X are treated as unobserved.
            weights: Optional per-sample weights.

        Returns:
            New dataset.

        Raises:
            ValueError: If X is not 2D or mask does not match its shape.
        """
        X = np.array(X, dtype=np.float64)
        if X.ndim != 2:
            raise ValueError(f"Expected 2D array, got shape {X.shape}.")
        if mask is None:
            mask = ~np.isnan(X)
        else:
            mask = np.asarray(mask, dtype=bool)
            if mask.shape != X.shape:
                raise ValueError(f"mask shape {mask.shape} != data shape {X.shape}")
        return cls._from_arrays(X, mask, weights)

    @classmethod
    def unmasked(cls, X: Sequence[Sequence[float]] | np.ndarray) -> "Dataset":
        """Build a fully-observed dataset. NaN entries stay observed values."""
        X = np.array(X, dtype=np.float64)
        if X.ndim != 2:
            raise ValueError(f"Expected 2D array, got shape {X.shape}.")
        return cls._from_arrays(X, np.ones(X.shape, dtype=bool))

    @classmethod
    def empty(cls, output_size: int) -> "Dataset":
        return cls._from_arrays(
            np.zeros((0, output_size), dtype=np.float64),
            np.zeros((0, output_size), dtype=bool),
        )

    def __len__(self) -> int:
        return self._data.shape[0]

    @overload
    def __getitem__(self, index: int) -> MaskedSample: ...

    @overload
    def __getitem__(self, index: Union[slice, Sequence[int], np.ndarray]) -> "Dataset": ...

    def __getitem__(self, index):
        if isinstance(index, (int, np.integer)):
            return MaskedSample(self._data[index], self._mask[index])
        return self.reorder(np.arange(len(self))[index])

    def __iter__(self) -> Iterator[MaskedSample]:
        for i in range(len(self)):
            yield MaskedSample(self._data[i], self._mask[i])

    def __repr__(self) -> str:
        return f"Dataset(n_samples={len(self)}, output_size={self.output_size()})"

    def output_size(self) -> int:
        return self._data.shape[1]

    @property
    def weights(self) -> np.ndarray:
        return self._weights.copy()

    def data_array(self) -> np.ndarray:
        """Sample matrix with unobserved coordinates set to the fill value (0.0)."""
        return self._data.copy()

    def mask_array(self) -> np.ndarray:
        """Boolean matrix, True where observed."""
        return self._mask.copy()

    def to_array(self, fill: float = np.nan) -> np.ndarray:
        """Sample matrix with unobserved coordinates set to `fill`."""
        return np.where(self._mask, self._data, fill)

    def with_weights(self, weights: Sequence[float] | np.ndarray) -> "Dataset":
        """Return the same samples with new per-sample weights attached."""
        return Dataset._from_arrays(self._data, self._mask, np.asarray(weights, dtype=np.float64))

    def reorder(self, indices: Sequence[int] | np.ndarray) -> "Dataset":
        """Return the samples (and weights) at `indices`, in that order."""
        indices = np.asarray(indices, dtype=np.intp)
        if indices.ndim != 1:
            raise ValueError(f"Expected 1D index array, got shape {indices.shape}.")
        return Dataset._from_arrays(
            self._data[indices], self._mask[indices], self._weights[indices]
        )

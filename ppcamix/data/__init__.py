"""Partially-observed sample and dataset containers."""

from .dataset import FILL_VALUE, Dataset, MaskedSample

__all__ = [
    "FILL_VALUE",
    "MaskedSample",
    "Dataset",
]

"""Mixture model and component implementations."""

from .base import Component
from .gaussian import DiagonalGaussian
from .mixture import PPCAMixture

__all__ = [
    "Component",
    "DiagonalGaussian",
    "PPCAMixture",
]

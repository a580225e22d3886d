"""Core numerical primitives for layerchain."""

from . import activations, regularization, types

__all__ = ["activations", "regularization", "types"]

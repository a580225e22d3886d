"""Contract between trainable models and external optimizers."""

from __future__ import annotations

from typing import Protocol, Sequence

from .core.types import Array


class Optimizable(Protocol):
    """Flat-vector view of a model as consumed by optimizers.

    ``gradient`` uses the same ordering as ``current_parameters``.
    ``indices`` select training samples; ``None`` means all of them.
    """

    def dimension(self) -> int:
        """Number of trainable parameters."""

    def examples(self) -> int:
        """Number of bound training samples."""

    def initialize(self) -> None:
        """Re-sample all parameters."""

    def current_parameters(self) -> Array:
        """Copy of the flat parameter vector."""

    def set_parameters(self, parameters: Array) -> None:
        """Write ``parameters`` back into the model."""

    def error(self, indices: Sequence[int] | None = None) -> float:
        """Scalar loss (with penalties) over the selected samples."""

    def gradient(self, indices: Sequence[int] | None = None) -> Array:
        """Flat gradient over the selected samples."""

    def error_gradient(self, indices: Sequence[int] | None = None) -> tuple[float, Array]:
        """Loss and gradient from a single forward/backward pass."""

    def finished_iteration(self) -> None:
        """Hook called by optimizers after each parameter update."""


__all__ = ["Optimizable"]

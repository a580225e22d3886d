"""Weight regularization policy shared by parameterized layers."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from ..errors import ConfigurationError
from .types import Array, ErrorAccumulator


@dataclass(frozen=True)
class Regularization:
    """L1/L2 penalties and a max squared row norm for weight matrices.

    A value of zero disables the respective term.
    """

    l1_penalty: float = 0.0
    l2_penalty: float = 0.0
    max_squared_weight_norm: float = 0.0

    def __post_init__(self) -> None:
        for name in ("l1_penalty", "l2_penalty", "max_squared_weight_norm"):
            if getattr(self, name) < 0.0:
                raise ConfigurationError(f"{name} must be non-negative")

    def penalty(self, weights: Array) -> float:
        total = 0.0
        if self.l1_penalty > 0.0:
            total += self.l1_penalty * float(np.abs(weights).sum())
        if self.l2_penalty > 0.0:
            total += self.l2_penalty * float(np.square(weights).sum()) / 2.0
        return total

    def add_penalty(self, weights: Array, error: ErrorAccumulator | None) -> None:
        if error is not None and (self.l1_penalty > 0.0 or self.l2_penalty > 0.0):
            error.add(self.penalty(weights))

    def add_gradient(self, weights: Array, derivatives: Array) -> None:
        """Add penalty gradients to ``derivatives`` in place.

        ``sign(0) == 0``, so an exactly zero weight receives no L1 term.
        """

        if self.l1_penalty > 0.0:
            derivatives += self.l1_penalty * np.sign(weights)
        if self.l2_penalty > 0.0:
            derivatives += self.l2_penalty * weights

    def project(self, weights: Array) -> None:
        """Rescale rows of ``weights`` whose squared norm exceeds the cap."""

        cap = self.max_squared_weight_norm
        if cap <= 0.0:
            return
        rows = weights.reshape(weights.shape[0], -1) if weights.ndim > 1 else weights[None, :]
        squared = np.square(rows).sum(axis=1)
        over = squared > cap
        if np.any(over):
            rows[over] *= np.sqrt(cap / squared[over])[:, None]


NO_REGULARIZATION = Regularization()

__all__ = ["NO_REGULARIZATION", "Regularization"]

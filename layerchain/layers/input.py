"""Pass-through layer at the head of every net."""

from __future__ import annotations

from typing import List

import numpy as np

from ..core.types import Array, ErrorAccumulator, OutputInfo, ParameterBlock
from .base import Layer


class Input(Layer):
    """Identity layer that fixes the input shape of a net."""

    def initialize(
        self, blocks: List[ParameterBlock], rng: np.random.Generator | None = None
    ) -> OutputInfo:
        self._bind_rng(rng)
        return self.info

    def forward_propagate(
        self, x: Array, dropout: bool = False, error: ErrorAccumulator | None = None
    ) -> Array:
        self.y = self._accept_input(x)
        return self.y

    def backpropagate(self, ein: Array, backprop_to_previous: bool = True) -> Array:
        self.e = self._accept_error(ein)
        return self.e

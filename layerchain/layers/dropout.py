"""Stochastic dropout."""

from __future__ import annotations

from typing import List

import numpy as np

from ..core.types import Array, ErrorAccumulator, OutputInfo, ParameterBlock
from ..errors import ConfigurationError
from .base import Layer


class Dropout(Layer):
    """Zero each unit with probability ``p`` while training.

    Surviving units pass through unscaled; at inference every unit is
    multiplied by ``1 - p`` instead.
    """

    def __init__(self, info: OutputInfo, dropout_probability: float) -> None:
        super().__init__(info)
        if not 0.0 <= dropout_probability < 1.0:
            raise ConfigurationError("dropout_probability must be in [0, 1)")
        self.dropout_probability = float(dropout_probability)
        self.mask: Array = np.zeros((0, info.outputs()))

    def initialize(
        self, blocks: List[ParameterBlock], rng: np.random.Generator | None = None
    ) -> OutputInfo:
        self._bind_rng(rng)
        return self.info

    def forward_propagate(
        self,
        x: Array,
        dropout: bool = False,
        error: ErrorAccumulator | None = None,
        rng: np.random.Generator | None = None,
    ) -> Array:
        x = self._accept_input(x)
        if dropout:
            draws = (rng or self.rng).random(x.shape)
            self.mask = (draws >= self.dropout_probability).astype(np.float64)
        else:
            self.mask = np.full(x.shape, 1.0 - self.dropout_probability)
        self.a = x
        self.y = x * self.mask
        return self.y

    def backpropagate(self, ein: Array, backprop_to_previous: bool = True) -> Array:
        ein = self._accept_error(ein)
        self.deltas = ein
        if backprop_to_previous:
            self.e = ein * self.mask
        return self.e

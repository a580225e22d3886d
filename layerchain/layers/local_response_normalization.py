"""Local response normalization across neighbouring feature maps."""

from __future__ import annotations

from typing import List

import numpy as np

from ..core.types import Array, ErrorAccumulator, OutputInfo, ParameterBlock
from ..errors import ConfigurationError
from .base import Layer


class LocalResponseNormalization(Layer):
    """Normalize each unit by the energy of the adjacent feature maps.

    ``y_c = x_c / (k + alpha * sum_{c' in W(c)} x_{c'}^2) ** beta`` where
    ``W(c)`` holds the maps ``c - n // 2 .. c + n // 2`` that exist, taken at
    the same spatial position.
    """

    def __init__(
        self, info: OutputInfo, k: float, n: int, alpha: float, beta: float
    ) -> None:
        super().__init__(info)
        self.channels, self.rows, self.cols = self._spatial_dimensions()
        if n <= 0:
            raise ConfigurationError("Normalization window must be positive")
        if k <= 0.0:
            raise ConfigurationError("Normalization offset k must be positive")
        self.k = float(k)
        self.n = int(n)
        self.alpha = float(alpha)
        self.beta = float(beta)
        half = self.n // 2
        c = np.arange(self.channels)
        self._lower = np.maximum(c - half, 0)
        self._upper = np.minimum(c + half + 1, self.channels)
        self.scale: Array = np.zeros((0, self.channels, self.rows * self.cols))

    def initialize(
        self, blocks: List[ParameterBlock], rng: np.random.Generator | None = None
    ) -> OutputInfo:
        self._bind_rng(rng)
        return self.info

    def _window_sum(self, values: Array) -> Array:
        """Sum ``values`` of shape ``(N, C, P)`` over each channel window."""

        totals = np.cumsum(values, axis=1)
        totals = np.concatenate([np.zeros_like(values[:, :1]), totals], axis=1)
        return totals[:, self._upper] - totals[:, self._lower]

    def forward_propagate(
        self, x: Array, dropout: bool = False, error: ErrorAccumulator | None = None
    ) -> Array:
        x = self._accept_input(x)
        n = x.shape[0]
        maps = x.reshape(n, self.channels, -1)
        self.scale = self.k + self.alpha * self._window_sum(maps * maps)
        self.a = x
        self.y = (maps * self.scale ** (-self.beta)).reshape(n, -1)
        return self.y

    def backpropagate(self, ein: Array, backprop_to_previous: bool = True) -> Array:
        ein = self._accept_error(ein)
        n = ein.shape[0]
        self.deltas = ein
        if backprop_to_previous:
            maps = self.x.reshape(n, self.channels, -1)
            errors = ein.reshape(n, self.channels, -1)
            cross = self._window_sum(errors * maps * self.scale ** (-self.beta - 1.0))
            e = errors * self.scale ** (-self.beta) - 2.0 * self.alpha * self.beta * maps * cross
            self.e = e.reshape(n, -1)
        return self.e

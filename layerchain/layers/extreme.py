"""Dense layer with a fixed random projection."""

from __future__ import annotations

from typing import List

import numpy as np

from ..core.activations import (
    ActivationFunction,
    activation_function,
    activation_function_derivative,
    resolve,
)
from ..core.types import Array, ErrorAccumulator, OutputInfo, ParameterBlock
from ..errors import ConfigurationError
from .base import Layer


class Extreme(Layer):
    """Fully connected layer whose weights are sampled once and never trained.

    It registers no parameters but still passes error signals to the
    previous layer.
    """

    def __init__(
        self,
        info: OutputInfo,
        units: int,
        bias: bool = True,
        act: ActivationFunction | str = ActivationFunction.LOGISTIC,
        std_dev: float = 5.0,
    ) -> None:
        super().__init__(info)
        if units <= 0:
            raise ConfigurationError("Extreme needs at least one unit")
        self.I = info.outputs()
        self.J = int(units)
        self.bias = bool(bias)
        self.act = resolve(act)
        self.std_dev = float(std_dev)
        self.W = np.zeros((self.J, self.I))
        self.b = np.zeros(self.J)

    def initialize(
        self, blocks: List[ParameterBlock], rng: np.random.Generator | None = None
    ) -> OutputInfo:
        self._bind_rng(rng)
        self.initialize_parameters()
        return OutputInfo((self.J,))

    def initialize_parameters(self) -> None:
        self.W = self.rng.normal(0.0, self.std_dev, size=(self.J, self.I))
        if self.bias:
            self.b = self.rng.normal(0.0, self.std_dev, size=self.J)

    def forward_propagate(
        self, x: Array, dropout: bool = False, error: ErrorAccumulator | None = None
    ) -> Array:
        x = self._accept_input(x)
        self.a = x @ self.W.T + self.b
        self.y = activation_function(self.act, self.a)
        return self.y

    def backpropagate(self, ein: Array, backprop_to_previous: bool = True) -> Array:
        ein = self._accept_error(ein)
        self.yd = activation_function_derivative(self.act, self.y)
        self.deltas = self.yd * ein
        if backprop_to_previous:
            self.e = self.deltas @ self.W
        return self.e

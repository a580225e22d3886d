"""Dense layer."""

from __future__ import annotations

from typing import List

import numpy as np

from ..core.activations import (
    ActivationFunction,
    activation_function,
    activation_function_derivative,
    resolve,
)
from ..core.regularization import NO_REGULARIZATION, Regularization
from ..core.types import Array, ErrorAccumulator, OutputInfo, ParameterBlock
from ..errors import ConfigurationError
from .base import Layer


class FullyConnected(Layer):
    """Fully connected layer computing ``act(x W^T + b)``.

    Parameters are stored per output unit: its ``I`` incoming weights
    followed by its bias when ``bias`` is set.
    """

    def __init__(
        self,
        info: OutputInfo,
        units: int,
        bias: bool = True,
        act: ActivationFunction | str = ActivationFunction.TANH,
        std_dev: float = 0.05,
        regularization: Regularization = NO_REGULARIZATION,
    ) -> None:
        super().__init__(info)
        if units <= 0:
            raise ConfigurationError("FullyConnected needs at least one unit")
        self.I = info.outputs()
        self.J = int(units)
        self.bias = bool(bias)
        self.act = resolve(act)
        self.std_dev = float(std_dev)
        self.regularization = regularization

    def initialize(
        self, blocks: List[ParameterBlock], rng: np.random.Generator | None = None
    ) -> OutputInfo:
        self._bind_rng(rng)
        columns = self.I + int(self.bias)
        self._allocate(blocks, self.J * columns)
        storage = self.parameter_storage.reshape(self.J, columns)
        derivatives = self.derivative_storage.reshape(self.J, columns)
        self.W = storage[:, : self.I]
        self.Wd = derivatives[:, : self.I]
        if self.bias:
            self.b = storage[:, self.I]
            self.bd = derivatives[:, self.I]
        self.initialize_parameters()
        return OutputInfo((self.J,))

    def initialize_parameters(self) -> None:
        self.W[...] = self.rng.normal(0.0, self.std_dev, size=self.W.shape)
        if self.bias:
            self.b[...] = self.rng.normal(0.0, self.std_dev, size=self.b.shape)

    def updated_parameters(self) -> None:
        self.regularization.project(self.W)

    def forward_propagate(
        self, x: Array, dropout: bool = False, error: ErrorAccumulator | None = None
    ) -> Array:
        x = self._accept_input(x)
        self.a = x @ self.W.T
        if self.bias:
            self.a += self.b
        self.y = activation_function(self.act, self.a)
        self.regularization.add_penalty(self.W, error)
        return self.y

    def backpropagate(self, ein: Array, backprop_to_previous: bool = True) -> Array:
        ein = self._accept_error(ein)
        self.yd = activation_function_derivative(self.act, self.y)
        self.deltas = self.yd * ein
        self.Wd[...] = self.deltas.T @ self.x
        if self.bias:
            self.bd[...] = self.deltas.sum(axis=0)
        self.regularization.add_gradient(self.W, self.Wd)
        if backprop_to_previous:
            self.e = self.deltas @ self.W
        return self.e

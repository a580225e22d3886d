"""Dense layer with weights expressed in a fixed compression basis."""

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

COMPRESSIONS = ("average", "gaussian", "sparse", "dct")


def compression_matrix(
    method: str, params: int, inputs: int, rng: np.random.Generator
) -> Array:
    """Return a ``(params, inputs)`` basis for the compressed weights."""

    if method == "average":
        phi = np.zeros((params, inputs))
        for row, block in enumerate(np.array_split(np.arange(inputs), params)):
            phi[row, block] = 1.0
        return phi
    if method == "gaussian":
        return rng.standard_normal((params, inputs))
    if method == "sparse":
        draws = rng.random((params, inputs))
        phi = np.zeros((params, inputs))
        phi[draws < 1.0 / 6.0] = np.sqrt(3.0)
        phi[draws > 5.0 / 6.0] = -np.sqrt(3.0)
        return phi
    if method == "dct":
        m = np.arange(params)[:, None]
        i = np.arange(inputs)[None, :]
        return np.cos(np.pi * m * (i + 0.5) / inputs)
    raise ConfigurationError(
        f"Unknown compression {method!r}. Available: {', '.join(COMPRESSIONS)}"
    )


class Compressed(Layer):
    """Fully connected layer with ``W = alpha phi``.

    Only the coefficients ``alpha`` (``units x params``) and the optional
    bias are trainable; ``phi`` is generated once at initialization.
    """

    def __init__(
        self,
        info: OutputInfo,
        units: int,
        params: int,
        bias: bool = True,
        act: ActivationFunction | str = ActivationFunction.TANH,
        compression: str = "gaussian",
        std_dev: float = 0.05,
        regularization: Regularization = NO_REGULARIZATION,
    ) -> None:
        super().__init__(info)
        if compression not in COMPRESSIONS:
            raise ConfigurationError(
                f"Unknown compression {compression!r}. Available: {', '.join(COMPRESSIONS)}"
            )
        if units <= 0 or params <= 0:
            raise ConfigurationError("Compressed needs positive units and params")
        self.I = info.outputs()
        self.J = int(units)
        self.M = int(params)
        self.bias = bool(bias)
        self.act = resolve(act)
        self.compression = compression
        self.std_dev = float(std_dev)
        self.regularization = regularization
        self.phi = np.zeros((self.M, self.I))
        self.W = np.zeros((self.J, self.I))

    def initialize(
        self, blocks: List[ParameterBlock], rng: np.random.Generator | None = None
    ) -> OutputInfo:
        self._bind_rng(rng)
        columns = self.M + int(self.bias)
        self._allocate(blocks, self.J * columns)
        storage = self.parameter_storage.reshape(self.J, columns)
        derivatives = self.derivative_storage.reshape(self.J, columns)
        self.alpha = storage[:, : self.M]
        self.alphad = derivatives[:, : self.M]
        if self.bias:
            self.b = storage[:, self.M]
            self.bd = derivatives[:, self.M]
        self.phi = compression_matrix(self.compression, self.M, self.I, self.rng)
        self.initialize_parameters()
        return OutputInfo((self.J,))

    def initialize_parameters(self) -> None:
        self.alpha[...] = self.rng.normal(0.0, self.std_dev, size=self.alpha.shape)
        if self.bias:
            self.b[...] = self.rng.normal(0.0, self.std_dev, size=self.b.shape)
        self.updated_parameters()

    def updated_parameters(self) -> None:
        self.regularization.project(self.alpha)
        self.W = self.alpha @ self.phi

    def forward_propagate(
        self, x: Array, dropout: bool = False, error: ErrorAccumulator | None = None
    ) -> Array:
        x = self._accept_input(x)
        # alpha may have been written through the flat view since the last hook
        self.W = self.alpha @ self.phi
        self.a = x @ self.W.T
        if self.bias:
            self.a += self.b
        self.y = activation_function(self.act, self.a)
        self.regularization.add_penalty(self.alpha, error)
        return self.y

    def backpropagate(self, ein: Array, backprop_to_previous: bool = True) -> Array:
        ein = self._accept_error(ein)
        self.yd = activation_function_derivative(self.act, self.y)
        self.deltas = self.yd * ein
        self.alphad[...] = (self.deltas.T @ self.x) @ self.phi.T
        if self.bias:
            self.bd[...] = self.deltas.sum(axis=0)
        self.regularization.add_gradient(self.alpha, self.alphad)
        if backprop_to_previous:
            self.e = self.deltas @ self.W
        return self.e

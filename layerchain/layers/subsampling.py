"""Learned sum pooling."""

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
from .base import Layer
from .max_pooling import pooled_geometry


class Subsampling(Layer):
    """Sum non-overlapping windows and scale each sum by a trainable weight.

    Every output unit owns one weight and, when ``bias`` is set, one bias:
    ``a = w * sum(window) + b``.
    """

    def __init__(
        self,
        info: OutputInfo,
        kernel_rows: int,
        kernel_cols: int,
        bias: bool = True,
        act: ActivationFunction | str = ActivationFunction.TANH,
        std_dev: float = 0.05,
        regularization: Regularization = NO_REGULARIZATION,
    ) -> None:
        super().__init__(info)
        self.channels, self.rows, self.cols = self._spatial_dimensions()
        self.kernel_rows, self.kernel_cols, self.out_rows, self.out_cols = pooled_geometry(
            type(self).__name__, self.rows, self.cols, kernel_rows, kernel_cols
        )
        self.bias = bool(bias)
        self.act = resolve(act)
        self.std_dev = float(std_dev)
        self.regularization = regularization
        self.units = self.channels * self.out_rows * self.out_cols
        self.sums: Array = np.zeros((0, self.units))

    def initialize(
        self, blocks: List[ParameterBlock], rng: np.random.Generator | None = None
    ) -> OutputInfo:
        self._bind_rng(rng)
        columns = 1 + int(self.bias)
        self._allocate(blocks, self.units * columns)
        storage = self.parameter_storage.reshape(self.units, columns)
        derivatives = self.derivative_storage.reshape(self.units, columns)
        self.w = storage[:, 0]
        self.wd = derivatives[:, 0]
        if self.bias:
            self.b = storage[:, 1]
            self.bd = derivatives[:, 1]
        self.initialize_parameters()
        return OutputInfo((self.channels, self.out_rows, self.out_cols))

    def initialize_parameters(self) -> None:
        self.w[...] = self.rng.normal(0.0, self.std_dev, size=self.w.shape)
        if self.bias:
            self.b[...] = self.rng.normal(0.0, self.std_dev, size=self.b.shape)

    def updated_parameters(self) -> None:
        # one row per feature map
        self.regularization.project(self.w.reshape(self.channels, -1))

    def forward_propagate(
        self, x: Array, dropout: bool = False, error: ErrorAccumulator | None = None
    ) -> Array:
        x = self._accept_input(x)
        n = x.shape[0]
        windows = x.reshape(
            n, self.channels, self.out_rows, self.kernel_rows, self.out_cols, self.kernel_cols
        )
        self.sums = windows.sum(axis=(3, 5)).reshape(n, self.units)
        self.a = self.sums * self.w
        if self.bias:
            self.a += self.b
        self.y = activation_function(self.act, self.a)
        self.regularization.add_penalty(self.w, error)
        return self.y

    def backpropagate(self, ein: Array, backprop_to_previous: bool = True) -> Array:
        ein = self._accept_error(ein)
        n = ein.shape[0]
        self.yd = activation_function_derivative(self.act, self.y)
        self.deltas = self.yd * ein
        self.wd[...] = (self.deltas * self.sums).sum(axis=0)
        if self.bias:
            self.bd[...] = self.deltas.sum(axis=0)
        self.regularization.add_gradient(self.w, self.wd)
        if backprop_to_previous:
            spread = (self.deltas * self.w).reshape(
                n, self.channels, self.out_rows, self.out_cols
            )
            spread = np.repeat(np.repeat(spread, self.kernel_rows, axis=2), self.kernel_cols, axis=3)
            self.e = spread.reshape(n, -1)
        return self.e

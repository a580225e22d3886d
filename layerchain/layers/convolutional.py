"""Convolutional layer (valid cross-correlation, unit stride)."""

from __future__ import annotations

from typing import List

import numpy as np
from numpy.lib.stride_tricks import sliding_window_view

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


class Convolutional(Layer):
    """Slide ``feature_maps`` kernels of size ``kernel_rows x kernel_cols``
    over every input channel.

    Output shape is ``(feature_maps, rows - kernel_rows + 1,
    cols - kernel_cols + 1)``. Each output map stores its
    ``channels * kernel_rows * kernel_cols`` weights followed by its bias.
    """

    def __init__(
        self,
        info: OutputInfo,
        feature_maps: int,
        kernel_rows: int,
        kernel_cols: int,
        bias: bool = True,
        act: ActivationFunction | str = ActivationFunction.TANH,
        std_dev: float = 0.05,
        regularization: Regularization = NO_REGULARIZATION,
    ) -> None:
        super().__init__(info)
        self.channels, self.rows, self.cols = self._spatial_dimensions()
        if feature_maps <= 0 or kernel_rows <= 0 or kernel_cols <= 0:
            raise ConfigurationError("Convolutional geometry must be positive")
        if kernel_rows > self.rows or kernel_cols > self.cols:
            raise ConfigurationError(
                f"Kernel {kernel_rows}x{kernel_cols} does not fit input "
                f"{self.rows}x{self.cols}"
            )
        self.feature_maps = int(feature_maps)
        self.kernel_rows = int(kernel_rows)
        self.kernel_cols = int(kernel_cols)
        self.out_rows = self.rows - self.kernel_rows + 1
        self.out_cols = self.cols - self.kernel_cols + 1
        self.bias = bool(bias)
        self.act = resolve(act)
        self.std_dev = float(std_dev)
        self.regularization = regularization
        self.K = self.channels * self.kernel_rows * self.kernel_cols
        self.cols_cache: Array = np.zeros((0, 0, self.K))

    def initialize(
        self, blocks: List[ParameterBlock], rng: np.random.Generator | None = None
    ) -> OutputInfo:
        self._bind_rng(rng)
        columns = self.K + int(self.bias)
        self._allocate(blocks, self.feature_maps * columns)
        storage = self.parameter_storage.reshape(self.feature_maps, columns)
        derivatives = self.derivative_storage.reshape(self.feature_maps, columns)
        self.W = storage[:, : self.K]
        self.Wd = derivatives[:, : self.K]
        if self.bias:
            self.b = storage[:, self.K]
            self.bd = derivatives[:, self.K]
        self.initialize_parameters()
        return OutputInfo((self.feature_maps, self.out_rows, self.out_cols))

    def initialize_parameters(self) -> None:
        self.W[...] = self.rng.normal(0.0, self.std_dev, size=self.W.shape)
        if self.bias:
            self.b[...] = self.rng.normal(0.0, self.std_dev, size=self.b.shape)

    def updated_parameters(self) -> None:
        self.regularization.project(self.W)

    def _im2col(self, x: Array) -> Array:
        n = x.shape[0]
        images = x.reshape(n, self.channels, self.rows, self.cols)
        windows = sliding_window_view(
            images, (self.kernel_rows, self.kernel_cols), axis=(2, 3)
        )
        # (N, C, Ho, Wo, kr, kc) -> (N, Ho*Wo, C*kr*kc)
        return windows.transpose(0, 2, 3, 1, 4, 5).reshape(
            n, self.out_rows * self.out_cols, self.K
        )

    def forward_propagate(
        self, x: Array, dropout: bool = False, error: ErrorAccumulator | None = None
    ) -> Array:
        x = self._accept_input(x)
        n = x.shape[0]
        self.cols_cache = self._im2col(x)
        a = self.cols_cache @ self.W.T
        if self.bias:
            a += self.b
        self.a = a.transpose(0, 2, 1).reshape(n, -1)
        self.y = activation_function(self.act, self.a)
        self.regularization.add_penalty(self.W, error)
        return self.y

    def backpropagate(self, ein: Array, backprop_to_previous: bool = True) -> Array:
        ein = self._accept_error(ein)
        n = ein.shape[0]
        self.yd = activation_function_derivative(self.act, self.y)
        self.deltas = self.yd * ein
        positions = self.out_rows * self.out_cols
        deltas = self.deltas.reshape(n, self.feature_maps, positions)
        self.Wd[...] = np.einsum("nfp,npk->fk", deltas, self.cols_cache)
        if self.bias:
            self.bd[...] = deltas.sum(axis=(0, 2))
        self.regularization.add_gradient(self.W, self.Wd)
        if backprop_to_previous:
            self.e = self._col2im(np.einsum("nfp,fk->npk", deltas, self.W))
        return self.e

    def _col2im(self, columns: Array) -> Array:
        n = columns.shape[0]
        patches = columns.reshape(
            n, self.out_rows, self.out_cols, self.channels, self.kernel_rows, self.kernel_cols
        )
        images = np.zeros((n, self.channels, self.rows, self.cols))
        for u in range(self.kernel_rows):
            for v in range(self.kernel_cols):
                images[:, :, u : u + self.out_rows, v : v + self.out_cols] += patches[
                    :, :, :, :, u, v
                ].transpose(0, 3, 1, 2)
        return images.reshape(n, -1)

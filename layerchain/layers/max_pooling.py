"""Max pooling over non-overlapping windows."""

from __future__ import annotations

from typing import List

import numpy as np

from ..core.types import Array, ErrorAccumulator, OutputInfo, ParameterBlock
from ..errors import ConfigurationError
from .base import Layer


def pooled_geometry(
    name: str, rows: int, cols: int, kernel_rows: int, kernel_cols: int
) -> tuple[int, int, int, int]:
    """Validate a pooling window and return ``(kr, kc, out_rows, out_cols)``."""

    kernel_rows, kernel_cols = int(kernel_rows), int(kernel_cols)
    if kernel_rows <= 0 or kernel_cols <= 0:
        raise ConfigurationError(f"{name} window must be positive")
    if rows % kernel_rows or cols % kernel_cols:
        raise ConfigurationError(
            f"{name} window {kernel_rows}x{kernel_cols} does not divide input {rows}x{cols}"
        )
    return kernel_rows, kernel_cols, rows // kernel_rows, cols // kernel_cols


class MaxPooling(Layer):
    """Keep the maximum of each window and remember where it came from."""

    def __init__(self, info: OutputInfo, kernel_rows: int, kernel_cols: int) -> None:
        super().__init__(info)
        self.channels, self.rows, self.cols = self._spatial_dimensions()
        self.kernel_rows, self.kernel_cols, self.out_rows, self.out_cols = pooled_geometry(
            type(self).__name__, self.rows, self.cols, kernel_rows, kernel_cols
        )
        self.argmax: Array = np.zeros((0,), dtype=np.intp)

    def initialize(
        self, blocks: List[ParameterBlock], rng: np.random.Generator | None = None
    ) -> OutputInfo:
        self._bind_rng(rng)
        return OutputInfo((self.channels, self.out_rows, self.out_cols))

    def _windows(self, images: Array) -> Array:
        n = images.shape[0]
        blocks = images.reshape(
            n, self.channels, self.out_rows, self.kernel_rows, self.out_cols, self.kernel_cols
        )
        return blocks.transpose(0, 1, 2, 4, 3, 5).reshape(
            n, self.channels, self.out_rows, self.out_cols, self.kernel_rows * self.kernel_cols
        )

    def forward_propagate(
        self, x: Array, dropout: bool = False, error: ErrorAccumulator | None = None
    ) -> Array:
        x = self._accept_input(x)
        n = x.shape[0]
        windows = self._windows(x)
        self.argmax = windows.argmax(axis=-1)
        pooled = np.take_along_axis(windows, self.argmax[..., None], axis=-1)
        self.a = pooled.reshape(n, -1)
        self.y = self.a
        return self.y

    def backpropagate(self, ein: Array, backprop_to_previous: bool = True) -> Array:
        ein = self._accept_error(ein)
        n = ein.shape[0]
        self.deltas = ein
        if backprop_to_previous:
            routed = np.zeros(
                (n, self.channels, self.out_rows, self.out_cols, self.kernel_rows * self.kernel_cols)
            )
            np.put_along_axis(
                routed,
                self.argmax[..., None],
                ein.reshape(n, self.channels, self.out_rows, self.out_cols, 1),
                axis=-1,
            )
            routed = routed.reshape(
                n, self.channels, self.out_rows, self.out_cols, self.kernel_rows, self.kernel_cols
            )
            self.e = routed.transpose(0, 1, 2, 4, 3, 5).reshape(n, -1)
        return self.e

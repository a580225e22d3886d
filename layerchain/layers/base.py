"""Contract shared by every layer variant."""

from __future__ import annotations

import abc
from typing import List

import numpy as np

from ..core.types import Array, ErrorAccumulator, OutputInfo, ParameterBlock
from ..errors import ConfigurationError, PreconditionError


class Layer(abc.ABC):
    """A batch transformation with a forward and a backward rule.

    Parameters live in one contiguous ``parameter_storage`` vector per layer
    with a matching ``derivative_storage``; weight matrices are views into
    these arrays, so writes through a :class:`ParameterBlock` are seen by the
    next forward pass without any copy.

    The activation cache (``x``, ``a``, ``y``, ``yd``, ``deltas``) is only
    valid between a forward call and the backward call that follows it.
    """

    def __init__(self, info: OutputInfo) -> None:
        self.info = info
        self.parameter_storage: Array = np.zeros(0)
        self.derivative_storage: Array = np.zeros(0)
        self.rng: np.random.Generator = np.random.default_rng()
        self.x: Array | None = None
        self.a: Array = np.zeros((0, 0))
        self.y: Array = np.zeros((0, 0))
        self.yd: Array = np.zeros((0, 0))
        self.deltas: Array = np.zeros((0, 0))
        self.e: Array = np.zeros((0, info.outputs()))
        self._pending_rows: int | None = None

    @abc.abstractmethod
    def initialize(
        self, blocks: List[ParameterBlock], rng: np.random.Generator | None = None
    ) -> OutputInfo:
        """Allocate parameters, register them in ``blocks`` and return the output shape."""

    def initialize_parameters(self) -> None:
        """Re-sample the parameters from the layer's generator."""

    @abc.abstractmethod
    def forward_propagate(
        self, x: Array, dropout: bool = False, error: ErrorAccumulator | None = None
    ) -> Array:
        """Return the activations for the batch ``x``."""

    @abc.abstractmethod
    def backpropagate(self, ein: Array, backprop_to_previous: bool = True) -> Array:
        """Compute parameter derivatives and the error of the previous layer."""

    def updated_parameters(self) -> None:
        """Hook invoked by optimizers after every parameter update."""

    def get_output(self) -> Array:
        return self.y

    def get_parameters(self) -> Array:
        return self.parameter_storage.copy()

    def parameter_count(self) -> int:
        return int(self.parameter_storage.size)

    # ------------------------------------------------------------------
    # Helpers for subclasses

    def _spatial_dimensions(self) -> tuple[int, int, int]:
        if len(self.info.dimensions) != 3:
            raise ConfigurationError(
                f"{type(self).__name__} needs a (channels, rows, cols) input, "
                f"got {self.info.dimensions}"
            )
        channels, rows, cols = self.info.dimensions
        return channels, rows, cols

    def _bind_rng(self, rng: np.random.Generator | None) -> None:
        if rng is not None:
            self.rng = rng

    def _allocate(self, blocks: List[ParameterBlock], count: int) -> None:
        self.parameter_storage = np.zeros(count)
        self.derivative_storage = np.zeros(count)
        if count > 0:
            blocks.append(ParameterBlock(self, 0, count))

    def _accept_input(self, x: Array) -> Array:
        x = np.asarray(x, dtype=np.float64)
        if x.ndim != 2 or x.shape[1] != self.info.outputs():
            raise PreconditionError(
                f"{type(self).__name__} expects batches of width {self.info.outputs()}, "
                f"got shape {x.shape}"
            )
        self.x = x
        self._pending_rows = x.shape[0]
        return x

    def _accept_error(self, ein: Array) -> Array:
        if self._pending_rows is None:
            raise PreconditionError(
                f"{type(self).__name__}.backpropagate called without a preceding forward pass"
            )
        ein = np.asarray(ein, dtype=np.float64)
        if ein.shape != self.y.shape:
            raise PreconditionError(
                f"{type(self).__name__} expected an error signal of shape {self.y.shape}, "
                f"got {ein.shape}"
            )
        self._pending_rows = None
        return ein

    def __repr__(self) -> str:
        return f"{type(self).__name__}(input={self.info.dimensions})"


__all__ = ["Layer"]

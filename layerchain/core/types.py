"""Core typing contracts for layerchain."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Tuple

import numpy as np

from ..errors import ConfigurationError, PreconditionError

if TYPE_CHECKING:  # pragma: no cover
    from ..layers.base import Layer

Array = np.ndarray


@dataclass(frozen=True)
class OutputInfo:
    """Shape of a layer's output as ordered per-axis sizes.

    Spatial layers use ``(channels, rows, cols)``; dense layers a single
    flat length.
    """

    dimensions: Tuple[int, ...]

    def __post_init__(self) -> None:
        dims = tuple(int(d) for d in self.dimensions)
        if not dims or any(d <= 0 for d in dims):
            raise ConfigurationError(f"Invalid output dimensions: {self.dimensions!r}")
        object.__setattr__(self, "dimensions", dims)

    def outputs(self) -> int:
        return int(np.prod(self.dimensions))


@dataclass(frozen=True, eq=False)
class ParameterBlock:
    """Location of a contiguous parameter range owned by a layer.

    The same ``(offset, length)`` addresses both the parameter storage and
    the derivative storage of ``layer``.
    """

    layer: "Layer"
    offset: int
    length: int

    def values(self) -> Array:
        return self.layer.parameter_storage[self.offset : self.offset + self.length]

    def derivatives(self) -> Array:
        return self.layer.derivative_storage[self.offset : self.offset + self.length]


@dataclass
class ErrorAccumulator:
    """Running scalar that forward passes add regularization penalties to."""

    value: float = 0.0

    def add(self, amount: float) -> None:
        self.value += float(amount)


@dataclass(frozen=True)
class Batch:
    """A single mini-batch of data."""

    inputs: Array
    targets: Array


@dataclass
class ParameterView:
    """Flat view over a sequence of parameter blocks."""

    blocks: list = field(default_factory=list)

    def dimension(self) -> int:
        return int(sum(block.length for block in self.blocks))

    def read(self) -> Array:
        if not self.blocks:
            return np.zeros(0)
        return np.concatenate([block.values() for block in self.blocks])

    def read_derivatives(self) -> Array:
        if not self.blocks:
            return np.zeros(0)
        return np.concatenate([block.derivatives() for block in self.blocks])

    def write(self, parameters: Array) -> None:
        parameters = np.asarray(parameters, dtype=np.float64).reshape(-1)
        if parameters.size != self.dimension():
            raise PreconditionError(
                f"Expected {self.dimension()} parameters, got {parameters.size}"
            )
        start = 0
        for block in self.blocks:
            block.values()[...] = parameters[start : start + block.length]
            start += block.length

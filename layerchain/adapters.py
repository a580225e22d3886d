"""Expose a single layer through the optimizable contract."""

from __future__ import annotations

from typing import Sequence

import numpy as np

from .core.types import Array, ErrorAccumulator, OutputInfo, ParameterView
from .data.dataset import DataSet, DirectStorageDataSet, gather
from .layers.base import Layer


class LayerAdapter:
    """Train or gradient-check one layer with a squared-error loss.

    The layer is initialized on construction and bound to one random input
    and target sample until :meth:`training_set` replaces them.
    """

    def __init__(
        self,
        layer: Layer,
        info: OutputInfo,
        seed: int | None = 0,
        rng: np.random.Generator | None = None,
    ) -> None:
        self.layer = layer
        self.info = info
        self.rng = rng if rng is not None else np.random.default_rng(seed)
        self.view = ParameterView()
        self.output_info = layer.initialize(self.view.blocks, self.rng)
        self.dataset = DirectStorageDataSet(
            self.rng.uniform(-1.0, 1.0, size=(1, info.outputs())),
            self.rng.uniform(-1.0, 1.0, size=(1, self.output_info.outputs())),
        )

    def training_set(self, dataset: DataSet | Array, targets: Array | None = None) -> "LayerAdapter":
        if targets is not None:
            dataset = DirectStorageDataSet(dataset, targets)
        self.dataset = dataset
        return self

    def examples(self) -> int:
        return self.dataset.samples()

    def dimension(self) -> int:
        return self.view.dimension()

    def current_parameters(self) -> Array:
        return self.view.read()

    def set_parameters(self, parameters: Array) -> None:
        self.view.write(parameters)

    def initialize(self) -> None:
        self.layer.initialize_parameters()

    def finished_iteration(self) -> None:
        self.layer.updated_parameters()

    def _forward(self, indices: Sequence[int] | None):
        batch = gather(self.dataset, indices)
        penalty = ErrorAccumulator()
        y = self.layer.forward_propagate(batch.inputs, False, penalty)
        diff = y - batch.targets
        return 0.5 * float(np.square(diff).sum()) + penalty.value, diff

    def error(self, indices: Sequence[int] | None = None) -> float:
        return self._forward(indices)[0]

    def error_gradient(self, indices: Sequence[int] | None = None) -> tuple[float, Array]:
        value, diff = self._forward(indices)
        self.layer.backpropagate(diff, False)
        return value, self.view.read_derivatives()

    def gradient(self, indices: Sequence[int] | None = None) -> Array:
        return self.error_gradient(indices)[1]

    def input_gradient(self, indices: Sequence[int] | None = None) -> Array:
        _, diff = self._forward(indices)
        return self.layer.backpropagate(diff, True).copy()


__all__ = ["LayerAdapter"]

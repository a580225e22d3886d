"""Intrinsic plasticity: unsupervised adaptation of logistic units."""

from __future__ import annotations

from typing import Sequence

import numpy as np

from .core.activations import ActivationFunction, activation_function
from .core.types import Array
from .data.dataset import DataSet, DirectStorageDataSet, gather
from .errors import ConfigurationError, PreconditionError


class IntrinsicPlasticity:
    """Adapt slope ``a`` and bias ``b`` of ``y = logistic(a x + b)`` per node.

    The learning rule drives the output distribution of each node towards
    an exponential distribution with mean ``mu``. Targets of the bound
    dataset are ignored. Parameters are laid out as ``[a..., b...]``.
    """

    def __init__(
        self,
        nodes: int,
        mu: float,
        std_dev: float = 0.05,
        seed: int | None = None,
        rng: np.random.Generator | None = None,
    ) -> None:
        if nodes <= 0:
            raise ConfigurationError("IntrinsicPlasticity needs at least one node")
        if not 0.0 < mu < 1.0:
            raise ConfigurationError("mu must lie in (0, 1)")
        self.nodes = int(nodes)
        self.mu = float(mu)
        self.std_dev = float(std_dev)
        self.rng = rng if rng is not None else np.random.default_rng(seed)
        self.parameters = np.zeros(2 * self.nodes)
        self.a = self.parameters[: self.nodes]
        self.b = self.parameters[self.nodes :]
        self.dataset: DataSet | None = None
        self.initialize()

    def training_set(self, dataset: DataSet | Array, targets: Array | None = None) -> "IntrinsicPlasticity":
        if isinstance(dataset, (np.ndarray, list)):
            X = np.asarray(dataset, dtype=np.float64)
            dataset = DirectStorageDataSet(X, np.zeros_like(X) if targets is None else targets)
        if dataset.inputs() != self.nodes:
            raise ConfigurationError(
                f"Dataset has {dataset.inputs()} inputs, expected {self.nodes}"
            )
        self.dataset = dataset
        return self

    def __call__(self, x: Array) -> Array:
        return activation_function(ActivationFunction.LOGISTIC, self.a * np.asarray(x) + self.b)

    def examples(self) -> int:
        return self.dataset.samples() if self.dataset is not None else 0

    def dimension(self) -> int:
        return 2 * self.nodes

    def initialize(self) -> None:
        self.a[...] = 1.0
        self.b[...] = self.rng.normal(0.0, self.std_dev, size=self.nodes)

    def current_parameters(self) -> Array:
        return self.parameters.copy()

    def set_parameters(self, parameters: Array) -> None:
        parameters = np.asarray(parameters, dtype=np.float64).reshape(-1)
        if parameters.size != self.parameters.size:
            raise PreconditionError(
                f"Expected {self.parameters.size} parameters, got {parameters.size}"
            )
        self.parameters[...] = parameters

    def _inputs(self, indices: Sequence[int] | None) -> Array:
        if self.dataset is None:
            raise PreconditionError("No training set bound")
        return gather(self.dataset, indices).inputs

    def error(self, indices: Sequence[int] | None = None) -> float:
        y = self(self._inputs(indices))
        return float(np.square(y - self.mu).sum()) / 2.0

    def error_gradient(self, indices: Sequence[int] | None = None) -> tuple[float, Array]:
        x = self._inputs(indices)
        y = self(x)
        tmp = 1.0 - (2.0 + 1.0 / self.mu) * y + y * y / self.mu
        gradient = np.concatenate(
            [(-1.0 / self.a - x * tmp).sum(axis=0), (-tmp).sum(axis=0)]
        )
        return float(np.square(y - self.mu).sum()) / 2.0, gradient

    def gradient(self, indices: Sequence[int] | None = None) -> Array:
        return self.error_gradient(indices)[1]

    def finished_iteration(self) -> None:
        pass


__all__ = ["IntrinsicPlasticity"]

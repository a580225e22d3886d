"""Higher-order sigma-pi layer."""

from __future__ import annotations

import itertools
from dataclasses import dataclass
from typing import Callable, List, Optional

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

Constraint = Callable[..., float]
"""Maps the input positions of a product term to a sharing key.

All terms of a node whose positions map to the same value share one weight.
"""


@dataclass
class _NodeGroup:
    """Nodes of one order that share their term layout."""

    count: int
    positions: Array  # (terms, order) input indices
    weight_index: Array  # (terms,) index into the node's weights
    weights: int  # distinct weights per node
    offset: int = 0  # first node of the group in the output


def _term_layout(
    inputs: int, order: int, constraint: Optional[Constraint]
) -> tuple[Array, Array, int]:
    positions = np.array(list(itertools.combinations(range(inputs), order)), dtype=np.intp)
    if positions.size == 0:
        raise ConfigurationError(f"Need at least {order} inputs for order-{order} nodes")
    if constraint is None:
        return positions, np.arange(len(positions)), len(positions)
    keys: dict = {}
    weight_index = np.empty(len(positions), dtype=np.intp)
    for term, pos in enumerate(positions):
        key = constraint(*(int(p) for p in pos))
        weight_index[term] = keys.setdefault(key, len(keys))
    return positions, weight_index, len(keys)


class SigmaPi(Layer):
    """Nodes that sum weighted products of input pairs or triples.

    Add node groups with :meth:`second_order_nodes` and
    :meth:`third_order_nodes` before the layer is initialized. Each node
    stores its weights followed by its bias.
    """

    def __init__(
        self,
        info: OutputInfo,
        bias: bool = False,
        act: ActivationFunction | str = ActivationFunction.TANH,
        std_dev: float = 0.05,
    ) -> None:
        super().__init__(info)
        self.I = info.outputs()
        self.bias = bool(bias)
        self.act = resolve(act)
        self.std_dev = float(std_dev)
        self.groups: List[_NodeGroup] = []
        self.J = 0
        self._initialized = False

    def second_order_nodes(self, count: int, constraint: Optional[Constraint] = None) -> "SigmaPi":
        return self._add_nodes(2, count, constraint)

    def third_order_nodes(self, count: int, constraint: Optional[Constraint] = None) -> "SigmaPi":
        return self._add_nodes(3, count, constraint)

    def _add_nodes(self, order: int, count: int, constraint: Optional[Constraint]) -> "SigmaPi":
        if self._initialized:
            raise ConfigurationError("SigmaPi nodes must be added before initialization")
        if count <= 0:
            raise ConfigurationError("SigmaPi node count must be positive")
        positions, weight_index, weights = _term_layout(self.I, order, constraint)
        self.groups.append(
            _NodeGroup(int(count), positions, weight_index, weights, offset=self.J)
        )
        self.J += int(count)
        return self

    def _node_width(self, group: _NodeGroup) -> int:
        return group.weights + int(self.bias)

    def initialize(
        self, blocks: List[ParameterBlock], rng: np.random.Generator | None = None
    ) -> OutputInfo:
        if not self.groups:
            raise ConfigurationError("SigmaPi needs at least one node group")
        self._bind_rng(rng)
        total = sum(group.count * self._node_width(group) for group in self.groups)
        self._allocate(blocks, total)
        self._views = []
        start = 0
        for group in self.groups:
            width = self._node_width(group)
            stop = start + group.count * width
            storage = self.parameter_storage[start:stop].reshape(group.count, width)
            derivatives = self.derivative_storage[start:stop].reshape(group.count, width)
            self._views.append((storage, derivatives))
            start = stop
        self._initialized = True
        self.initialize_parameters()
        return OutputInfo((self.J,))

    def initialize_parameters(self) -> None:
        self.parameter_storage[...] = self.rng.normal(
            0.0, self.std_dev, size=self.parameter_storage.shape
        )

    @staticmethod
    def _products(x: Array, positions: Array, skip: int | None = None) -> Array:
        product = np.ones((x.shape[0], positions.shape[0]))
        for k in range(positions.shape[1]):
            if k != skip:
                product *= x[:, positions[:, k]]
        return product

    def forward_propagate(
        self, x: Array, dropout: bool = False, error: ErrorAccumulator | None = None
    ) -> Array:
        x = self._accept_input(x)
        self.a = np.zeros((x.shape[0], self.J))
        for group, (storage, _) in zip(self.groups, self._views):
            weights = storage[:, group.weight_index]
            nodes = slice(group.offset, group.offset + group.count)
            self.a[:, nodes] = self._products(x, group.positions) @ weights.T
            if self.bias:
                self.a[:, nodes] += storage[:, group.weights]
        self.y = activation_function(self.act, self.a)
        return self.y

    def backpropagate(self, ein: Array, backprop_to_previous: bool = True) -> Array:
        ein = self._accept_error(ein)
        self.yd = activation_function_derivative(self.act, self.y)
        self.deltas = self.yd * ein
        if backprop_to_previous:
            self.e = np.zeros_like(self.x)
        for group, (storage, derivatives) in zip(self.groups, self._views):
            nodes = slice(group.offset, group.offset + group.count)
            deltas = self.deltas[:, nodes]
            term_gradient = deltas.T @ self._products(self.x, group.positions)
            shared = np.zeros((group.weights, group.count))
            np.add.at(shared, group.weight_index, term_gradient.T)
            derivatives[:, : group.weights] = shared.T
            if self.bias:
                derivatives[:, group.weights] = deltas.sum(axis=0)
            if backprop_to_previous:
                coefficients = deltas @ storage[:, group.weight_index]
                for k in range(group.positions.shape[1]):
                    partial = coefficients * self._products(self.x, group.positions, skip=k)
                    np.add.at(self.e.T, group.positions[:, k], partial.T)
        return self.e

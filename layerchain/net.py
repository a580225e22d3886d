"""Ordered chain of layers exposed through the optimizable contract."""

from __future__ import annotations

import logging
import warnings
from enum import Enum
from typing import List, Sequence

import numpy as np

from .core.activations import ActivationFunction
from .core.regularization import Regularization
from .core.types import Array, ErrorAccumulator, OutputInfo, ParameterView
from .data.dataset import DataSet, DirectStorageDataSet, gather
from .errors import ConfigurationError, PreconditionError
from .layers import (
    Compressed,
    Convolutional,
    Dropout,
    Extreme,
    FullyConnected,
    Input,
    Layer,
    LocalResponseNormalization,
    MaxPooling,
    Subsampling,
)
from .training.losses import REGISTRY as ERROR_FUNCTIONS
from .training.losses import ErrorFunction

logger = logging.getLogger(__name__)


class NetState(str, Enum):
    EMPTY = "empty"
    BUILDING = "building"
    FINALIZED = "finalized"


class Net:
    """Feed-forward chain of heterogeneous layers.

    Layers are appended in order; each append initializes the new layer
    from the shape produced by its predecessor. Once finalized (by an
    output layer, :meth:`finalize` or binding a training set) the topology
    is frozen and the parameters of all layers are reachable through one
    flat vector whose entries alias the layers' own storage.
    """

    def __init__(self, seed: int | None = None, rng: np.random.Generator | None = None) -> None:
        self.rng = rng if rng is not None else np.random.default_rng(seed)
        self.layers: List[Layer] = []
        self.infos: List[OutputInfo] = []
        self.view = ParameterView()
        self.regularization = Regularization()
        self.error_function: ErrorFunction = ERROR_FUNCTIONS.get("sse")
        self.dropout = False
        self.dataset: DataSet | None = None
        self.state = NetState.EMPTY

    # ------------------------------------------------------------------
    # Configuration

    def set_regularization(
        self,
        l1_penalty: float = 0.0,
        l2_penalty: float = 0.0,
        max_squared_weight_norm: float = 0.0,
    ) -> "Net":
        """Regularization applied to every layer appended afterwards."""

        self.regularization = Regularization(l1_penalty, l2_penalty, max_squared_weight_norm)
        return self

    def set_error_function(self, name: str | ErrorFunction) -> "Net":
        self.error_function = ERROR_FUNCTIONS.get(name)
        return self

    def use_dropout(self, activate: bool = True) -> "Net":
        """Enable training-mode dropout for gradient computations."""

        self.dropout = bool(activate)
        return self

    # ------------------------------------------------------------------
    # Construction

    def input_layer(self, dim1: int, dim2: int = 1, dim3: int = 1) -> "Net":
        if self.state is not NetState.EMPTY:
            raise ConfigurationError("The input layer must be the first layer")
        dims = (dim1,) if dim2 == 1 and dim3 == 1 else (dim1, dim2, dim3)
        return self.add_layer(Input(OutputInfo(dims)))

    def fully_connected_layer(
        self,
        units: int,
        act: ActivationFunction | str = ActivationFunction.TANH,
        std_dev: float = 0.05,
        bias: bool = True,
    ) -> "Net":
        return self.add_layer(
            FullyConnected(self._current_info(), units, bias, act, std_dev, self.regularization)
        )

    def extreme_layer(
        self,
        units: int,
        act: ActivationFunction | str = ActivationFunction.LOGISTIC,
        std_dev: float = 5.0,
        bias: bool = True,
    ) -> "Net":
        return self.add_layer(Extreme(self._current_info(), units, bias, act, std_dev))

    def compressed_layer(
        self,
        units: int,
        params: int,
        act: ActivationFunction | str = ActivationFunction.TANH,
        compression: str = "gaussian",
        std_dev: float = 0.05,
        bias: bool = True,
    ) -> "Net":
        return self.add_layer(
            Compressed(
                self._current_info(),
                units,
                params,
                bias,
                act,
                compression,
                std_dev,
                self.regularization,
            )
        )

    def convolutional_layer(
        self,
        feature_maps: int,
        kernel_rows: int,
        kernel_cols: int,
        act: ActivationFunction | str = ActivationFunction.TANH,
        std_dev: float = 0.05,
        bias: bool = True,
    ) -> "Net":
        return self.add_layer(
            Convolutional(
                self._current_info(),
                feature_maps,
                kernel_rows,
                kernel_cols,
                bias,
                act,
                std_dev,
                self.regularization,
            )
        )

    def subsampling_layer(
        self,
        kernel_rows: int,
        kernel_cols: int,
        act: ActivationFunction | str = ActivationFunction.TANH,
        std_dev: float = 0.05,
        bias: bool = True,
    ) -> "Net":
        return self.add_layer(
            Subsampling(
                self._current_info(),
                kernel_rows,
                kernel_cols,
                bias,
                act,
                std_dev,
                self.regularization,
            )
        )

    def max_pooling_layer(self, kernel_rows: int, kernel_cols: int) -> "Net":
        return self.add_layer(MaxPooling(self._current_info(), kernel_rows, kernel_cols))

    def local_response_normalization_layer(
        self, k: float = 2.0, n: int = 5, alpha: float = 1e-4, beta: float = 0.75
    ) -> "Net":
        return self.add_layer(LocalResponseNormalization(self._current_info(), k, n, alpha, beta))

    def dropout_layer(self, dropout_probability: float) -> "Net":
        return self.add_layer(Dropout(self._current_info(), dropout_probability))

    def add_layer(self, layer: Layer) -> "Net":
        """Append ``layer`` after checking that it accepts the current output shape."""

        if self.state is NetState.FINALIZED:
            raise ConfigurationError("Cannot add layers to a finalized net")
        if self.state is NetState.EMPTY and not isinstance(layer, Input):
            raise ConfigurationError("The first layer must be an input layer")
        if self.infos and layer.info != self.infos[-1]:
            raise ConfigurationError(
                f"{type(layer).__name__} expects input {layer.info.dimensions}, "
                f"previous layer produces {self.infos[-1].dimensions}"
            )
        info = layer.initialize(self.view.blocks, self.rng)
        self.layers.append(layer)
        self.infos.append(info)
        self.state = NetState.BUILDING
        logger.debug("Appended %r -> %s", layer, info.dimensions)
        return self

    def output_layer(
        self,
        units: int,
        act: ActivationFunction | str = ActivationFunction.LINEAR,
        std_dev: float = 0.05,
        bias: bool = True,
    ) -> "Net":
        self.fully_connected_layer(units, act, std_dev, bias)
        return self.finalize()

    def compressed_output_layer(
        self,
        units: int,
        params: int,
        act: ActivationFunction | str = ActivationFunction.LINEAR,
        compression: str = "gaussian",
        std_dev: float = 0.05,
        bias: bool = True,
    ) -> "Net":
        self.compressed_layer(units, params, act, compression, std_dev, bias)
        return self.finalize()

    def add_output_layer(self, layer: Layer) -> "Net":
        self.add_layer(layer)
        return self.finalize()

    def finalize(self) -> "Net":
        """Freeze the topology and expose the flat parameter view."""

        if self.state is NetState.FINALIZED:
            return self
        if self.state is NetState.EMPTY:
            raise ConfigurationError("Cannot finalize a net without layers")
        if self.error_function.name == "ce":
            last = self.layers[-1]
            if getattr(last, "act", None) is not ActivationFunction.SOFTMAX:
                warnings.warn(
                    "Cross-entropy error expects a softmax output layer",
                    RuntimeWarning,
                    stacklevel=2,
                )
        self.state = NetState.FINALIZED
        for layer in self.layers:
            logger.debug("%r holds %d parameters", layer, layer.parameter_count())
        logger.info(
            "Finalized net with %d layers and %d parameters", len(self.layers), self.dimension()
        )
        return self

    def _current_info(self) -> OutputInfo:
        if not self.infos:
            raise ConfigurationError("Add an input layer first")
        return self.infos[-1]

    # ------------------------------------------------------------------
    # Data

    def training_set(self, dataset: DataSet | Array, targets: Array | None = None) -> "Net":
        """Bind a dataset (or input/target arrays) without copying it."""

        if targets is not None:
            dataset = DirectStorageDataSet(dataset, targets)
        self.finalize()
        if dataset.inputs() != self.infos[0].outputs():
            raise ConfigurationError(
                f"Dataset inputs {dataset.inputs()} do not match net input {self.infos[0].outputs()}"
            )
        if dataset.outputs() != self.infos[-1].outputs():
            raise ConfigurationError(
                f"Dataset outputs {dataset.outputs()} do not match net output {self.infos[-1].outputs()}"
            )
        self.dataset = dataset
        return self

    def examples(self) -> int:
        return self.dataset.samples() if self.dataset is not None else 0

    # ------------------------------------------------------------------
    # Propagation

    def forward_propagate(
        self, x: Array, dropout: bool = False, error: ErrorAccumulator | None = None
    ) -> Array:
        y = np.asarray(x, dtype=np.float64)
        for layer in self.layers:
            y = layer.forward_propagate(y, dropout, error)
        return y

    def backpropagate(self, ein: Array, backprop_to_previous: bool = False) -> Array:
        """Run the chain backwards; only the first layer honours ``backprop_to_previous``."""

        e = ein
        last = len(self.layers) - 1
        for idx in range(last, -1, -1):
            e = self.layers[idx].backpropagate(e, idx > 0 or backprop_to_previous)
        return e

    def predict(self, x: Array) -> Array:
        x = np.asarray(x, dtype=np.float64)
        single = x.ndim == 1
        y = self.forward_propagate(x.reshape(1, -1) if single else x)
        return y[0].copy() if single else y.copy()

    def input_gradient(self, indices: Sequence[int] | None = None) -> Array:
        """Derivative of the error with respect to the selected inputs."""

        batch = self._batch(indices)
        y = self.forward_propagate(batch.inputs, False)
        _, grad = self.error_function(y, batch.targets)
        return self.backpropagate(grad, backprop_to_previous=True).copy()

    # ------------------------------------------------------------------
    # Optimizable

    def dimension(self) -> int:
        return self.view.dimension()

    def current_parameters(self) -> Array:
        return self.view.read()

    def set_parameters(self, parameters: Array) -> None:
        self.view.write(parameters)

    def initialize(self) -> None:
        for layer in self.layers:
            layer.initialize_parameters()

    def error(self, indices: Sequence[int] | None = None) -> float:
        batch = self._batch(indices)
        penalty = ErrorAccumulator()
        y = self.forward_propagate(batch.inputs, False, penalty)
        loss, _ = self.error_function(y, batch.targets)
        return loss + penalty.value

    def gradient(self, indices: Sequence[int] | None = None) -> Array:
        return self.error_gradient(indices)[1]

    def error_gradient(self, indices: Sequence[int] | None = None) -> tuple[float, Array]:
        batch = self._batch(indices)
        penalty = ErrorAccumulator()
        y = self.forward_propagate(batch.inputs, self.dropout, penalty)
        loss, grad = self.error_function(y, batch.targets)
        self.backpropagate(grad)
        return loss + penalty.value, self.view.read_derivatives()

    def finished_iteration(self) -> None:
        for layer in self.layers:
            layer.updated_parameters()

    def _batch(self, indices: Sequence[int] | None):
        if self.dataset is None:
            raise PreconditionError("No training set bound to the net")
        return gather(self.dataset, indices)

    def __repr__(self) -> str:
        shapes = " -> ".join(str(info.dimensions) for info in self.infos)
        return f"Net({self.state.value}: {shapes})"


__all__ = ["Net", "NetState"]

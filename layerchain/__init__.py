"""layerchain public API."""

from . import finite_differences
from .adapters import LayerAdapter
from .config import build_net, load_config, load_preset, presets
from .core.activations import ActivationFunction
from .core.regularization import Regularization
from .core.types import Batch, ErrorAccumulator, OutputInfo, ParameterBlock
from .data.dataset import DataSet, DirectStorageDataSet
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
    SigmaPi,
    Subsampling,
)
from .net import Net, NetState
from .optimizable import Optimizable
from .optimization import MBSGD, StoppingCriteria
from .plasticity import IntrinsicPlasticity

__all__ = [
    "ActivationFunction",
    "Batch",
    "Compressed",
    "ConfigurationError",
    "Convolutional",
    "DataSet",
    "DirectStorageDataSet",
    "Dropout",
    "ErrorAccumulator",
    "Extreme",
    "FullyConnected",
    "Input",
    "IntrinsicPlasticity",
    "Layer",
    "LayerAdapter",
    "LocalResponseNormalization",
    "MBSGD",
    "MaxPooling",
    "Net",
    "NetState",
    "Optimizable",
    "OutputInfo",
    "ParameterBlock",
    "PreconditionError",
    "Regularization",
    "SigmaPi",
    "StoppingCriteria",
    "Subsampling",
    "build_net",
    "finite_differences",
    "load_config",
    "load_preset",
    "presets",
]

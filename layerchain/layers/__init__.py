"""Layer variants implementing the common forward/backward contract."""

from .base import Layer
from .compressed import COMPRESSIONS, Compressed, compression_matrix
from .convolutional import Convolutional
from .dropout import Dropout
from .extreme import Extreme
from .fully_connected import FullyConnected
from .input import Input
from .local_response_normalization import LocalResponseNormalization
from .max_pooling import MaxPooling
from .sigma_pi import Constraint, SigmaPi
from .subsampling import Subsampling

__all__ = [
    "COMPRESSIONS",
    "Compressed",
    "Constraint",
    "Convolutional",
    "Dropout",
    "Extreme",
    "FullyConnected",
    "Input",
    "Layer",
    "LocalResponseNormalization",
    "MaxPooling",
    "SigmaPi",
    "Subsampling",
    "compression_matrix",
]

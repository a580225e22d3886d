"""Elementwise activation functions and their derivatives."""

from __future__ import annotations

from enum import Enum

import numpy as np

from ..errors import ConfigurationError
from .types import Array

_SCALED_TANH_GAIN = 1.7159
_SCALED_TANH_SLOPE = 2.0 / 3.0


class ActivationFunction(str, Enum):
    """Activation functions understood by every layer."""

    LOGISTIC = "logistic"
    TANH = "tanh"
    TANH_SCALED = "tanh_scaled"
    RECTIFIER = "rectifier"
    LINEAR = "linear"
    SOFTMAX = "softmax"


def resolve(act: ActivationFunction | str) -> ActivationFunction:
    """Return the :class:`ActivationFunction` named by ``act``."""

    if isinstance(act, ActivationFunction):
        return act
    try:
        return ActivationFunction(str(act).lower())
    except ValueError as exc:
        available = ", ".join(a.value for a in ActivationFunction)
        raise ConfigurationError(
            f"Unknown activation function {act!r}. Available: {available}"
        ) from exc


def softmax(a: Array) -> Array:
    shifted = a - a.max(axis=1, keepdims=True)
    e = np.exp(shifted)
    return e / e.sum(axis=1, keepdims=True)


def activation_function(act: ActivationFunction | str, a: Array) -> Array:
    """Apply ``act`` to the pre-activations ``a``."""

    act = resolve(act)
    if act is ActivationFunction.LOGISTIC:
        return 1.0 / (1.0 + np.exp(-a))
    if act is ActivationFunction.TANH:
        return np.tanh(a)
    if act is ActivationFunction.TANH_SCALED:
        return _SCALED_TANH_GAIN * np.tanh(_SCALED_TANH_SLOPE * a)
    if act is ActivationFunction.RECTIFIER:
        return np.maximum(a, 0.0)
    if act is ActivationFunction.SOFTMAX:
        return softmax(a)
    return a.copy()


def activation_function_derivative(act: ActivationFunction | str, y: Array) -> Array:
    """Return the derivative of ``act`` expressed through its output ``y``.

    The softmax derivative is reported as one: softmax outputs are only
    paired with the cross-entropy error, whose gradient already folds in
    the Jacobian.
    """

    act = resolve(act)
    if act is ActivationFunction.LOGISTIC:
        return y * (1.0 - y)
    if act is ActivationFunction.TANH:
        return 1.0 - y * y
    if act is ActivationFunction.TANH_SCALED:
        normalized = y / _SCALED_TANH_GAIN
        return _SCALED_TANH_SLOPE * _SCALED_TANH_GAIN * (1.0 - normalized * normalized)
    if act is ActivationFunction.RECTIFIER:
        return (y > 0.0).astype(np.float64)
    return np.ones_like(y)


__all__ = [
    "ActivationFunction",
    "activation_function",
    "activation_function_derivative",
    "resolve",
    "softmax",
]

"""Error functions comparing net outputs with targets."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, Iterable

import numpy as np

from ..core.types import Array
from ..errors import ConfigurationError

ErrorFn = Callable[[Array, Array], tuple[float, Array]]


@dataclass(frozen=True)
class ErrorFunction:
    """Named error function returning the scalar error and ``dE/dy``."""

    name: str
    evaluate: ErrorFn

    def __call__(self, outputs: Array, targets: Array) -> tuple[float, Array]:
        return self.evaluate(outputs, targets)


class ErrorFunctionRegistry:
    """Error functions addressable by name."""

    def __init__(self) -> None:
        self._functions: Dict[str, ErrorFunction] = {}

    def register(self, name: str) -> Callable[[ErrorFn], ErrorFn]:
        def decorator(fn: ErrorFn) -> ErrorFn:
            self._functions[name] = ErrorFunction(name, fn)
            return fn

        return decorator

    def get(self, name: str | ErrorFunction) -> ErrorFunction:
        if isinstance(name, ErrorFunction):
            return name
        key = str(name).lower()
        if key not in self._functions:
            available = ", ".join(self.names())
            raise ConfigurationError(
                f"Unknown error function {name!r}. Available: {available}"
            )
        return self._functions[key]

    def names(self) -> Iterable[str]:
        return sorted(self._functions)


REGISTRY = ErrorFunctionRegistry()


@REGISTRY.register("sse")
def sum_of_squared_errors(outputs: Array, targets: Array) -> tuple[float, Array]:
    diff = outputs - targets
    return 0.5 * float(np.square(diff).sum()), diff


@REGISTRY.register("mse")
def mean_squared_error(outputs: Array, targets: Array) -> tuple[float, Array]:
    n = max(outputs.shape[0], 1)
    value, diff = sum_of_squared_errors(outputs, targets)
    return value / n, diff / n


@REGISTRY.register("ce")
def cross_entropy(outputs: Array, targets: Array) -> tuple[float, Array]:
    """Cross-entropy of softmax ``outputs``; the gradient is taken w.r.t. the pre-activations."""

    n = max(outputs.shape[0], 1)
    value = -float(np.sum(targets * np.log(outputs + 1e-12))) / n
    return value, (outputs - targets) / n


__all__ = [
    "REGISTRY",
    "ErrorFunction",
    "ErrorFunctionRegistry",
    "cross_entropy",
    "mean_squared_error",
    "sum_of_squared_errors",
]

"""Centered finite-difference estimates of analytic gradients."""

from __future__ import annotations

from typing import Protocol, Sequence

import numpy as np

from .core.types import Array
from .optimizable import Optimizable


class _Rebindable(Protocol):
    def training_set(self, dataset: object, targets: Array | None = None) -> object: ...

    def error(self, indices: Sequence[int] | None = None) -> float: ...


def parameter_derivative(
    opt: Optimizable,
    index: int,
    indices: Sequence[int] | None = None,
    epsilon: float = 1e-5,
) -> float:
    """Estimate ``dE/dp[index]`` with ``(E(p + h) - E(p - h)) / 2h``.

    ``h`` is ``epsilon`` scaled by the magnitude of the parameter when it
    exceeds one. The parameters are restored afterwards.
    """

    parameters = opt.current_parameters()
    if not 0 <= index < parameters.size:
        raise IndexError(f"Parameter index {index} out of range [0, {parameters.size})")
    step = epsilon * max(1.0, abs(float(parameters[index])))
    shifted = parameters.copy()
    try:
        shifted[index] = parameters[index] + step
        opt.set_parameters(shifted)
        upper = opt.error(indices)
        shifted[index] = parameters[index] - step
        opt.set_parameters(shifted)
        lower = opt.error(indices)
    finally:
        opt.set_parameters(parameters)
    return (upper - lower) / (2.0 * step)


def parameter_gradient(
    opt: Optimizable,
    indices: Sequence[int] | None = None,
    epsilon: float = 1e-5,
) -> Array:
    """Estimate the full parameter gradient of ``opt``."""

    return np.array(
        [parameter_derivative(opt, i, indices, epsilon) for i in range(opt.dimension())]
    )


def input_gradient(
    x: Array, y: Array, opt: _Rebindable, epsilon: float = 1e-5
) -> Array:
    """Estimate ``dE/dx`` with the targets ``y`` held fixed.

    Every coordinate of ``x`` is perturbed in turn by rebinding the training
    set of ``opt``. The dataset bound before the call (read from
    ``opt.dataset``) is bound again on return; when there was none, the
    unperturbed ``(x, y)`` pair is bound instead.
    """

    x = np.array(x, dtype=np.float64, ndmin=2)
    y = np.array(y, dtype=np.float64, ndmin=2)
    estimate = np.zeros_like(x)
    bound = getattr(opt, "dataset", None)
    shifted = x.copy()
    try:
        for idx in np.ndindex(*x.shape):
            shifted[idx] = x[idx] + epsilon
            opt.training_set(shifted, y)
            upper = opt.error()
            shifted[idx] = x[idx] - epsilon
            opt.training_set(shifted, y)
            lower = opt.error()
            shifted[idx] = x[idx]
            estimate[idx] = (upper - lower) / (2.0 * epsilon)
    finally:
        if bound is not None:
            opt.training_set(bound)
        else:
            opt.training_set(x, y)
    return estimate


__all__ = ["input_gradient", "parameter_derivative", "parameter_gradient"]

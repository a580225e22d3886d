"""Mini-batch stochastic gradient descent over the optimizable contract."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

import numpy as np

from ..core.types import Array
from ..errors import ConfigurationError
from ..optimizable import Optimizable

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StoppingCriteria:
    """When :meth:`MBSGD.optimize` stops."""

    maximal_iterations: int = 1
    minimal_value: float = float("-inf")


@dataclass
class MBSGD:
    """Momentum SGD that visits every sample once per iteration."""

    learning_rate: float = 0.01
    momentum: float = 0.5
    batch_size: int = 10
    seed: int | None = None
    iterations: int = field(init=False, default=0)
    _velocity: Array | None = field(init=False, default=None, repr=False)

    def __post_init__(self) -> None:
        if self.batch_size <= 0:
            raise ConfigurationError("batch_size must be positive")
        if not 0.0 <= self.momentum < 1.0:
            raise ConfigurationError("momentum must be in [0, 1)")
        self._rng = np.random.default_rng(self.seed)

    def step(self, opt: Optimizable) -> float:
        """Run one epoch and return the accumulated training error."""

        n = opt.examples()
        if self._velocity is None or self._velocity.size != opt.dimension():
            self._velocity = np.zeros(opt.dimension())
        order = self._rng.permutation(n)
        total = 0.0
        for start in range(0, n, self.batch_size):
            batch = order[start : start + self.batch_size]
            value, gradient = opt.error_gradient(batch)
            total += value
            self._velocity = self.momentum * self._velocity - self.learning_rate * gradient
            opt.set_parameters(opt.current_parameters() + self._velocity)
            opt.finished_iteration()
        self.iterations += 1
        logger.debug("MBSGD iteration %d: error %.6g", self.iterations, total)
        return total

    def optimize(self, opt: Optimizable, stop: StoppingCriteria | None = None) -> Array:
        stop = stop or StoppingCriteria()
        for _ in range(stop.maximal_iterations):
            if self.step(opt) <= stop.minimal_value:
                break
        return opt.current_parameters()


__all__ = ["MBSGD", "StoppingCriteria"]

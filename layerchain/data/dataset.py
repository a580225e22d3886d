"""Dataset contract consumed by nets and gradient checks."""

from __future__ import annotations

from typing import Protocol, Sequence

import numpy as np

from ..core.types import Array, Batch
from ..errors import ConfigurationError


class DataSet(Protocol):
    """Indexed access to input/target pairs."""

    def samples(self) -> int:
        """Number of samples."""

    def inputs(self) -> int:
        """Input dimensionality."""

    def outputs(self) -> int:
        """Target dimensionality."""

    def get_instance(self, n: int) -> Array:
        """Input vector of sample ``n``."""

    def get_target(self, n: int) -> Array:
        """Target vector of sample ``n``."""


class DirectStorageDataSet:
    """Dataset backed by two row-major arrays that are not copied."""

    def __init__(self, X: Array, Y: Array) -> None:
        X = np.asarray(X, dtype=np.float64)
        Y = np.asarray(Y, dtype=np.float64)
        if X.ndim == 1:
            X = X.reshape(1, -1)
        if Y.ndim == 1:
            Y = Y.reshape(1, -1)
        if X.shape[0] != Y.shape[0]:
            raise ConfigurationError(
                f"Inputs and targets disagree on sample count: {X.shape[0]} vs {Y.shape[0]}"
            )
        self.X = X
        self.Y = Y

    def samples(self) -> int:
        return int(self.X.shape[0])

    def inputs(self) -> int:
        return int(self.X.shape[1])

    def outputs(self) -> int:
        return int(self.Y.shape[1])

    def get_instance(self, n: int) -> Array:
        return self.X[n]

    def get_target(self, n: int) -> Array:
        return self.Y[n]

    def batch(self, indices: Sequence[int]) -> Batch:
        index = np.asarray(indices, dtype=np.intp)
        return Batch(inputs=self.X[index], targets=self.Y[index])


def gather(dataset: DataSet, indices: Sequence[int] | None = None) -> Batch:
    """Collect ``indices`` of ``dataset`` (all samples by default) into a batch."""

    if indices is None:
        indices = range(dataset.samples())
    if isinstance(dataset, DirectStorageDataSet):
        return dataset.batch(list(indices))
    indices = list(indices)
    inputs = np.stack([np.asarray(dataset.get_instance(n), dtype=np.float64) for n in indices])
    targets = np.stack([np.asarray(dataset.get_target(n), dtype=np.float64) for n in indices])
    return Batch(inputs=inputs, targets=targets)


__all__ = ["DataSet", "DirectStorageDataSet", "gather"]

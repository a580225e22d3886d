"""Exception types raised by layerchain."""

from __future__ import annotations


class ConfigurationError(ValueError):
    """Raised when a layer or net is configured inconsistently.

    Configuration errors are detected at construction or initialization time,
    never deferred to the first forward pass.
    """


class PreconditionError(RuntimeError):
    """Raised when a call violates the forward/backward protocol."""


__all__ = ["ConfigurationError", "PreconditionError"]

"""Error functions used by nets."""

from .losses import REGISTRY, ErrorFunction, ErrorFunctionRegistry

__all__ = ["ErrorFunction", "ErrorFunctionRegistry", "REGISTRY"]

"""Reference optimizer driving the optimizable contract."""

from .mbsgd import MBSGD, StoppingCriteria

__all__ = ["MBSGD", "StoppingCriteria"]

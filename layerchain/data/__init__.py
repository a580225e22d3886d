"""Dataset adapters."""

from .dataset import DataSet, DirectStorageDataSet, gather

__all__ = ["DataSet", "DirectStorageDataSet", "gather"]

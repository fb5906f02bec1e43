"""
Shared data structures.
"""

from .data_structures import Dataset, ResponseArrays

__all__ = [
    "Dataset",
    "ResponseArrays",
]

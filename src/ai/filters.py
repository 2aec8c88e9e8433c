"""
Convolution Filters
===================

Fixed, hand-authored square kernels. Filters are never learned; once
created their weights are read-only.
"""

import numpy as np

from src.errors import ArgumentError
from src.serialization import grammar


class Filter:
    """
    A named dim x dim kernel.

    Attributes:
        name: Unique name within the owning pipeline
        dim: Side length of the kernel
        weights: Read-only float64 matrix

    Example:
        >>> diagonal = Filter([[1, 0, 0], [0, 1, 0], [0, 0, 1]])
        >>> diagonal.name
        '100010001'
    """

    def __init__(self, matrix, name: str = ""):
        weights = np.array(matrix, dtype=np.float64)
        if weights.ndim != 2 or weights.shape[0] != weights.shape[1] or weights.size == 0:
            raise ArgumentError("Filter dimensions aren't equal size", expected="square matrix",
                                actual=weights.shape)
        weights.setflags(write=False)

        self._weights = weights
        self._name = name or default_filter_name(weights)
        grammar.check_name(self._name)

    @property
    def name(self) -> str:
        return self._name

    @property
    def dim(self) -> int:
        return self._weights.shape[0]

    @property
    def weights(self) -> np.ndarray:
        return self._weights

    def serialized(self) -> str:
        """Weights as one digit per cell, row-major (cells must be 0-9)."""
        return grammar.format_digits(self._weights)

    @classmethod
    def from_serialized(cls, name: str, digits: str, dim: int) -> 'Filter':
        return cls(grammar.parse_digits(digits, dim, dim), name)

    def __eq__(self, other) -> bool:
        if not isinstance(other, Filter):
            return NotImplemented
        return self.name == other.name and np.array_equal(self.weights, other.weights)

    def __repr__(self) -> str:
        return f"Filter(name={self.name!r}, dim={self.dim})"


def default_filter_name(weights: np.ndarray) -> str:
    """Concatenate the formatted weights row-major, e.g. [[1, 0], [0, 1]] -> '1001'."""
    return ''.join(f"{value:g}" for value in weights.ravel())

from __future__ import annotations


class KdTreeError(Exception):
    """Base class for every error raised by this package."""


class KeyNotFoundError(KdTreeError, KeyError):
    """Raised by lookups that require the point to be stored in the tree."""

    def __init__(self, point) -> None:
        super().__init__(point)
        self.point = point

    def __str__(self) -> str:
        return f"point {self.point!r} does not exist in the tree"


class EmptyQueueError(KdTreeError, IndexError):
    """Raised when the minimum or the worst entry is asked of an empty queue."""


class DimensionMismatchError(KdTreeError, ValueError):
    """Raised when a point does not have the dimension the caller expects."""

    def __init__(self, expected: int, actual: int) -> None:
        super().__init__(f"expected a point of dimension {expected}, got {actual}")
        self.expected = expected
        self.actual = actual

from __future__ import annotations

import operator
from typing import Iterable, Iterator

import numpy as np
import numpy.typing as npt

from knn_kdtree.errors import DimensionMismatchError


class Point:
    """Fixed-dimension vector of real coordinates.

    The number of coordinates is decided at construction and never changes.
    Components can be read and written by index; any index outside
    ``[0, dimension)`` raises ``IndexError``.
    """

    __slots__ = ("_coords",)

    def __init__(self, coords: Iterable[float] | npt.ArrayLike):
        if isinstance(coords, Point):
            values = coords._coords.copy()
        else:
            if not isinstance(coords, np.ndarray) and not hasattr(coords, "__len__"):
                # Generators and other one-shot iterables.
                coords = list(coords)
            values = np.array(coords, dtype=np.float64)

        if values.ndim != 1:
            raise ValueError(f"coordinates must be one-dimensional, got shape {values.shape}")
        if values.size == 0:
            raise ValueError("a point needs at least one coordinate")

        self._coords: npt.NDArray[np.float64] = values

    @classmethod
    def zeros(cls, dimension: int) -> Point:
        if dimension <= 0:
            raise ValueError(f"dimension must be positive, got {dimension}")
        return cls(np.zeros(dimension, dtype=np.float64))

    def _check_index(self, index) -> int:
        index = operator.index(index)
        if not 0 <= index < self._coords.size:
            raise IndexError(
                f"coordinate index {index} out of range for a point of dimension {self._coords.size}"
            )
        return index

    def __len__(self) -> int:
        return int(self._coords.size)

    def __getitem__(self, index: int) -> float:
        return float(self._coords[self._check_index(index)])

    def __setitem__(self, index: int, value: float) -> None:
        self._coords[self._check_index(index)] = float(value)

    def __iter__(self) -> Iterator[float]:
        return iter(self._coords.tolist())

    def __eq__(self, other) -> bool:
        if isinstance(other, Point):
            return self._coords.shape == other._coords.shape and bool((self._coords == other._coords).all())
        if isinstance(other, (tuple, list, np.ndarray)):
            return bool(np.array_equal(self._coords, np.asarray(other, dtype=np.float64)))
        return NotImplemented

    # Mutable, so not usable as a dict key.
    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"Point({self._coords.tolist()!r})"

    def copy(self) -> Point:
        return Point(self)

    def to_numpy(self) -> npt.NDArray[np.float64]:
        return self._coords.copy()

    def to_tuple(self) -> tuple[float, ...]:
        return tuple(self._coords.tolist())

    @property
    def dimension(self) -> int:
        return int(self._coords.size)


def as_point(obj, dimension: int | None = None) -> Point:
    """Return ``obj`` as a ``Point``, checking its dimension when one is given.

    Args:
        obj: A ``Point`` (returned as is) or any one-dimensional sequence of reals.
        dimension: Expected number of coordinates, or None to accept any.

    Returns:
        The point.
    """
    point = obj if isinstance(obj, Point) else Point(obj)
    if dimension is not None and len(point) != dimension:
        raise DimensionMismatchError(dimension, len(point))
    return point


def distance(a, b) -> float:
    """Euclidean distance between two points of the same dimension."""
    a = as_point(a)
    b = as_point(b, len(a))
    return float(np.linalg.norm(a._coords - b._coords))

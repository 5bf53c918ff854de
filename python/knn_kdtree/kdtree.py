from __future__ import annotations

import copy as copy_module
import itertools
import logging
import operator
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Iterator, NamedTuple

from knn_kdtree.bounded_pqueue import BoundedPQueue
from knn_kdtree.errors import DimensionMismatchError, KeyNotFoundError
from knn_kdtree.kdtree_node import KdTreeNode
from knn_kdtree.point import Point, as_point, distance

logger = logging.getLogger(__name__)


class Neighbor(NamedTuple):
    key: Point
    value: Any
    distance: float


@dataclass(frozen=True)
class Vote:
    """Result of a majority vote.

    A frequency of 0 means nobody voted, i.e. there is no answer and ``value``
    only holds the default.
    """

    value: Any
    frequency: int


def most_common_value(values: Iterable[Any], default: Any = None) -> Vote:
    """Returns the most frequent of ``values``.

    The values are scanned in ascending order and a candidate only replaces
    the current best when its frequency is strictly higher, so ties go to the
    smallest value.

    Args:
        values: Orderable values to vote on.
        default: Value reported when ``values`` is empty.

    Returns:
        The winning value and the number of votes it got.
    """
    best = default
    best_frequency = 0
    for value, group in itertools.groupby(sorted(values)):
        frequency = sum(1 for _ in group)
        if frequency > best_frequency:
            best = value
            best_frequency = frequency
    return Vote(best, best_frequency)


class KdTree:
    """k-d tree mapping points of a fixed dimension to values.

    The tree is never rebalanced. Its shape is a function of the insertion
    order only; use ``from_items`` to get a balanced tree out of a batch.
    """

    def __init__(self, dimension: int, default_factory: Callable[[], Any] | None = None):
        if dimension <= 0:
            raise ValueError(f"dimension must be positive, got {dimension}")
        self._dimension = dimension
        self.default_factory = default_factory
        self._root: KdTreeNode | None = None
        self._size = 0

    @classmethod
    def from_items(
        cls,
        items: Iterable[tuple[Any, Any]],
        dimension: int | None = None,
        default_factory: Callable[[], Any] | None = None,
    ) -> KdTree:
        """Builds a tree from (point, value) pairs.

        Points are inserted median first on each level's axis, so the tree
        comes out balanced. When a point appears more than once the last
        value wins.
        """
        pairs = [(as_point(point), value) for point, value in items]
        if dimension is None:
            if not pairs:
                raise ValueError("cannot infer the dimension of an empty batch")
            dimension = len(pairs[0][0])

        tree = cls(dimension, default_factory)

        latest: dict[tuple[float, ...], tuple[Point, Any]] = {}
        for point, value in pairs:
            if len(point) != dimension:
                raise DimensionMismatchError(dimension, len(point))
            latest[point.to_tuple()] = (point, value)

        for point, value in _median_order(list(latest.values()), 0, dimension):
            tree.insert(point, value)

        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(
                "Built tree from %d items: %d points, height %d",
                len(pairs),
                tree.size(),
                tree.height(),
            )
        return tree

    # Size and shape

    def dimension(self) -> int:
        return self._dimension

    def size(self) -> int:
        return self._size

    def empty(self) -> bool:
        return self._size == 0

    def height(self) -> int:
        """Number of nodes on the longest root-to-leaf path, 0 when empty."""
        return max((node.depth + 1 for node in self.iter_nodes()), default=0)

    @property
    def root(self) -> KdTreeNode | None:
        return self._root

    def clear(self) -> None:
        self._root = None
        self._size = 0

    def __len__(self) -> int:
        return self._size

    def __repr__(self) -> str:
        return f"KdTree(dimension={self._dimension}, size={self._size})"

    # Point lookups

    def _descend(self, point: Point) -> tuple[KdTreeNode | None, KdTreeNode | None, int]:
        # Returns (match, parent, depth): the node holding point, or None with
        # the parent a new node would hang from and that node's depth.
        parent = None
        node = self._root
        depth = 0
        while node is not None:
            if node.key == point:
                return node, parent, depth
            parent = node
            node = node.child_for(point)
            depth += 1
        return None, parent, depth

    def _attach(self, point: Point, value: Any, parent: KdTreeNode | None, depth: int) -> KdTreeNode:
        # Keys are copied so later changes to the caller's point cannot break the partition.
        node = KdTreeNode(
            key=point.copy(),
            value=value,
            depth=depth,
            axis=depth % self._dimension,
        )
        if parent is None:
            self._root = node
        elif point[parent.axis] < parent.key[parent.axis]:
            parent.left_child = node
        else:
            parent.right_child = node
        self._size += 1
        return node

    def _default_value(self) -> Any:
        return self.default_factory() if self.default_factory is not None else None

    def insert(self, point, value: Any) -> None:
        """Associates value with point, overwriting the value of an existing key."""
        point = as_point(point, self._dimension)
        node, parent, depth = self._descend(point)
        if node is not None:
            node.value = value
            return
        self._attach(point, value, parent, depth)

    def get_or_insert_default(self, point) -> Any:
        """Returns the value stored at point, inserting the default value first if needed.

        This mutates the tree when the point is missing, so callers sharing the
        tree between threads must treat it as a write.
        """
        point = as_point(point, self._dimension)
        node, parent, depth = self._descend(point)
        if node is None:
            node = self._attach(point, self._default_value(), parent, depth)
        return node.value

    def at(self, point) -> Any:
        point = as_point(point, self._dimension)
        node, _, _ = self._descend(point)
        if node is None:
            raise KeyNotFoundError(point)
        return node.value

    def get(self, point, default: Any = None) -> Any:
        try:
            return self.at(point)
        except KeyNotFoundError:
            return default

    def contains(self, point) -> bool:
        point = as_point(point, self._dimension)
        node, _, _ = self._descend(point)
        return node is not None

    def __contains__(self, point) -> bool:
        return self.contains(point)

    def __getitem__(self, point) -> Any:
        return self.at(point)

    def __setitem__(self, point, value: Any) -> None:
        self.insert(point, value)

    # Iteration

    def iter_nodes(self) -> Iterator[KdTreeNode]:
        """Yields every node in pre-order."""
        stack = [self._root] if self._root is not None else []
        while stack:
            node = stack.pop()
            yield node
            if node.right_child is not None:
                stack.append(node.right_child)
            if node.left_child is not None:
                stack.append(node.left_child)

    def items(self) -> Iterator[tuple[Point, Any]]:
        for node in self.iter_nodes():
            yield node.key.copy(), node.value

    def keys(self) -> Iterator[Point]:
        for node in self.iter_nodes():
            yield node.key.copy()

    def values(self) -> Iterator[Any]:
        for node in self.iter_nodes():
            yield node.value

    def __iter__(self) -> Iterator[Point]:
        return self.keys()

    # Neighbour search

    def _search(self, query: Point, k: int, exhaustive: bool) -> BoundedPQueue[KdTreeNode]:
        k = operator.index(k)
        if k < 0:
            raise ValueError(f"k must not be negative, got {k}")

        queue: BoundedPQueue[KdTreeNode] = BoundedPQueue(k)
        if k == 0 or self._root is None:
            return queue

        visited = 0
        # (node, split): split is the parent whose far side node lies on, or
        # None for a near side that is always visited. Far sides are popped
        # only after the whole near subtree is done, as in the recursive form.
        stack: list[tuple[KdTreeNode, KdTreeNode | None]] = [(self._root, None)]
        while stack:
            node, split = stack.pop()

            if split is not None and not exhaustive and queue.full():
                axis = split.axis
                # The candidate sphere does not reach across the splitting plane.
                if not abs(split.key[axis] - query[axis]) < queue.worst():
                    continue

            visited += 1
            queue.enqueue(node, distance(node.key, query))

            if query[node.axis] < node.key[node.axis]:
                near, far = node.left_child, node.right_child
            else:
                near, far = node.right_child, node.left_child

            if far is not None:
                stack.append((far, node))
            if near is not None:
                stack.append((near, None))

        logger.debug(
            "kNN search k=%d visited %d of %d nodes (exhaustive=%s)",
            k,
            visited,
            self._size,
            exhaustive,
        )
        return queue

    def nearest(self, query, k: int, exhaustive: bool = False) -> list[Neighbor]:
        """Returns the k stored points closest to query.

        Args:
            query: Point to search around.
            k: Number of neighbours wanted.
            exhaustive: Visit every node instead of pruning subtrees that
                cannot hold a closer point. The result is the same either way.

        Returns:
            Up to k neighbours sorted by increasing distance.
        """
        query = as_point(query, self._dimension)
        queue = self._search(query, k, exhaustive)

        neighbors = []
        while not queue.empty():
            dist = queue.peek_min_priority()
            node = queue.dequeue_min()
            neighbors.append(Neighbor(node.key.copy(), node.value, dist))
        return neighbors

    def knn_vote(self, query, k: int) -> Vote:
        query = as_point(query, self._dimension)
        queue = self._search(query, k, exhaustive=False)

        values = []
        while not queue.empty():
            values.append(queue.dequeue_min().value)

        if not values:
            return Vote(self._default_value(), 0)
        return most_common_value(values)

    def knn_value(self, query, k: int) -> Any:
        """Returns the most common value among the k points nearest to query.

        Ties go to the smallest value. With k == 0 or an empty tree the
        default value is returned; use ``knn_vote`` to tell that apart from a
        real answer.
        """
        return self.knn_vote(query, k).value

    def within_radius(self, query, radius: float) -> list[Neighbor]:
        """Returns every stored point at distance <= radius, nearest first."""
        if radius < 0:
            raise ValueError(f"radius must not be negative, got {radius}")
        query = as_point(query, self._dimension)
        max_dist2 = radius * radius

        found = []
        stack = [self._root] if self._root is not None else []
        while stack:
            node = stack.pop()

            axis = node.axis
            delta = query[axis] - node.key[axis]

            dist = distance(node.key, query)
            if dist <= radius:
                found.append(Neighbor(node.key.copy(), node.value, dist))

            if delta < 0:
                near, far = node.left_child, node.right_child
            else:
                near, far = node.right_child, node.left_child

            if near is not None:
                stack.append(near)
            if far is not None and delta * delta <= max_dist2:
                stack.append(far)

        found.sort(key=lambda neighbor: neighbor.distance)
        return found

    # Copying

    def copy(self) -> KdTree:
        """Returns an independent deep copy, node for node."""
        return copy_module.deepcopy(self)

    def __copy__(self) -> KdTree:
        return self.copy()

    def __deepcopy__(self, memo: dict) -> KdTree:
        clone = type(self).__new__(type(self))
        memo[id(self)] = clone
        clone._dimension = self._dimension
        clone.default_factory = self.default_factory
        clone._size = self._size
        clone._root = _copy_subtree(self._root, memo)
        logger.debug("Copied tree of %d points", self._size)
        return clone


def _copy_subtree(root: KdTreeNode | None, memo: dict) -> KdTreeNode | None:
    if root is None:
        return None

    def clone(node: KdTreeNode) -> KdTreeNode:
        return KdTreeNode(
            key=node.key.copy(),
            value=copy_module.deepcopy(node.value, memo),
            depth=node.depth,
            axis=node.axis,
        )

    root_copy = clone(root)
    stack = [(root, root_copy)]
    while stack:
        source, target = stack.pop()
        if source.left_child is not None:
            target.left_child = clone(source.left_child)
            stack.append((source.left_child, target.left_child))
        if source.right_child is not None:
            target.right_child = clone(source.right_child)
            stack.append((source.right_child, target.right_child))
    return root_copy


def _median_order(pairs: list[tuple[Point, Any]], depth: int, dimension: int) -> Iterator[tuple[Point, Any]]:
    if not pairs:
        return

    # Decide which axis for splitting.
    axis = depth % dimension

    pairs = sorted(pairs, key=lambda pair: pair[0][axis])
    median = len(pairs) // 2
    # Equal coordinates go right, so the median starts its run of equal values.
    while median > 0 and pairs[median - 1][0][axis] == pairs[median][0][axis]:
        median -= 1

    yield pairs[median]
    yield from _median_order(pairs[:median], depth + 1, dimension)
    yield from _median_order(pairs[median + 1 :], depth + 1, dimension)

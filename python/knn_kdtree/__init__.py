"""k-d tree with k-nearest-neighbour majority-vote classification."""

from knn_kdtree.bounded_pqueue import BoundedPQueue
from knn_kdtree.errors import (
    DimensionMismatchError,
    EmptyQueueError,
    KdTreeError,
    KeyNotFoundError,
)
from knn_kdtree.kdtree import KdTree, Neighbor, Vote, most_common_value
from knn_kdtree.kdtree_node import KdTreeNode
from knn_kdtree.point import Point, as_point, distance

__all__ = [
    "BoundedPQueue",
    "DimensionMismatchError",
    "EmptyQueueError",
    "KdTree",
    "KdTreeError",
    "KdTreeNode",
    "KeyNotFoundError",
    "Neighbor",
    "Point",
    "Vote",
    "as_point",
    "distance",
    "most_common_value",
]

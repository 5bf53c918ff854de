from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from knn_kdtree.point import Point


@dataclass(eq=False)
class KdTreeNode:
    key: Point
    value: Any = None
    depth: int = 0
    # Split axis, always depth % dimension of the owning tree.
    axis: int = 0
    left_child: KdTreeNode | None = None
    right_child: KdTreeNode | None = None

    def child_for(self, point: Point) -> KdTreeNode | None:
        """Returns the subtree a point with different key would descend into."""
        if point[self.axis] < self.key[self.axis]:
            return self.left_child
        return self.right_child

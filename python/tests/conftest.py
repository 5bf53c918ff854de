import matplotlib

matplotlib.use("Agg")

import numpy as np
import pytest

from knn_kdtree import KdTree


@pytest.fixture()
def rng():
    return np.random.default_rng(0)


@pytest.fixture()
def grid_tree():
    """5x5 grid of 2-D points, each labelled with its own coordinates."""

    tree = KdTree(2)
    for x in range(5):
        for y in range(5):
            tree.insert((x, y), f"{x},{y}")
    return tree


def check_partition(tree):
    """Asserts the left/right split of every node over its whole subtree."""

    def subtree(node):
        stack = [node] if node is not None else []
        while stack:
            current = stack.pop()
            yield current
            stack.extend(child for child in (current.left_child, current.right_child) if child is not None)

    for node in tree.iter_nodes():
        axis = node.axis
        assert axis == node.depth % tree.dimension()
        for child in (node.left_child, node.right_child):
            if child is not None:
                assert child.depth == node.depth + 1
        for below in subtree(node.left_child):
            assert below.key[axis] < node.key[axis]
        for below in subtree(node.right_child):
            assert below.key[axis] >= node.key[axis]

import numpy as np
import pytest

from knn_kdtree import KdTree, Vote, distance, most_common_value


def brute_force(points, labels, query, k):
    order = sorted(range(len(points)), key=lambda i: distance(points[i], query))
    return order[:k]


def test_scenario_two_blue_neighbours():
    tree = KdTree(2)
    tree.insert((0, 0), "red")
    tree.insert((10, 10), "blue")
    tree.insert((10, 11), "blue")

    assert tree.knn_value((9, 9), 2) == "blue"
    assert tree.knn_vote((9, 9), 2) == Vote("blue", 2)


def test_k_one_on_stored_point_returns_its_value(grid_tree):
    for x in range(5):
        for y in range(5):
            assert grid_tree.knn_value((x, y), 1) == f"{x},{y}"


def test_k_one_off_grid_returns_nearest(grid_tree):
    assert grid_tree.knn_value((3.2, 0.9), 1) == "3,1"
    assert grid_tree.knn_value((-10, 10), 1) == "0,4"


def test_ties_go_to_the_smallest_value():
    tree = KdTree(2)
    tree.insert((1, 0), "B")
    tree.insert((-1, 0), "A")
    tree.insert((0, 1), "B")
    tree.insert((0, -1), "A")
    tree.insert((5, 5), "A")

    assert tree.knn_vote((0, 0), 4) == Vote("A", 2)

    reordered = KdTree(2)
    for point, value in reversed(list(tree.items())):
        reordered.insert(point, value)
    assert reordered.knn_value((0, 0), 4) == "A"


def test_majority_beats_nearest():
    tree = KdTree(1)
    tree.insert([0], 9)
    tree.insert([1], 3)
    tree.insert([-1], 3)
    tree.insert([100], 9)

    assert tree.knn_value([0], 1) == 9
    assert tree.knn_value([0], 3) == 3


def test_k_larger_than_tree_uses_every_point():
    tree = KdTree(2)
    tree.insert((0, 0), "x")
    tree.insert((1, 1), "y")
    tree.insert((2, 2), "y")

    assert tree.knn_vote((0, 0), 10) == Vote("y", 2)
    assert len(tree.nearest((0, 0), 10)) == 3


def test_empty_tree_gives_default():
    assert KdTree(2).knn_value((1, 1), 3) is None
    assert KdTree(2, default_factory=str).knn_vote((1, 1), 3) == Vote("", 0)


def test_k_zero_gives_no_answer(grid_tree):
    vote = grid_tree.knn_vote((1, 1), 0)

    assert vote.frequency == 0
    assert vote.value is None
    assert grid_tree.nearest((1, 1), 0) == []


def test_negative_k_is_rejected(grid_tree):
    with pytest.raises(ValueError):
        grid_tree.knn_value((1, 1), -1)


def test_nearest_is_sorted_by_distance(grid_tree):
    neighbors = grid_tree.nearest((2.1, 2.0), 3)

    assert [n.value for n in neighbors[:2]] == ["2,2", "3,2"]
    # (2, 1) and (2, 3) are equally far away.
    assert neighbors[2].value in {"2,1", "2,3"}
    assert neighbors[0].distance == pytest.approx(0.1)
    assert [n.distance for n in neighbors] == sorted(n.distance for n in neighbors)


def test_query_does_not_mutate(grid_tree):
    before = [(key.to_tuple(), value) for key, value in grid_tree.items()]
    grid_tree.knn_value((2, 2), 5)
    grid_tree.nearest((0, 0), 25, exhaustive=True)

    assert [(key.to_tuple(), value) for key, value in grid_tree.items()] == before
    assert grid_tree.size() == 25


@pytest.mark.parametrize("dimension", [1, 2, 3, 5])
def test_pruned_search_matches_exhaustive_and_brute_force(rng, dimension):
    for _ in range(10):
        count = int(rng.integers(1, 150))
        points = rng.uniform(-10, 10, size=(count, dimension))
        labels = [int(label) for label in rng.integers(0, 4, size=count)]

        tree = KdTree(dimension)
        for point, label in zip(points, labels):
            tree.insert(point, label)

        for _ in range(20):
            query = rng.uniform(-12, 12, size=dimension)
            k = int(rng.integers(1, 12))

            pruned = tree.nearest(query, k)
            exhaustive = tree.nearest(query, k, exhaustive=True)
            assert [n.key for n in pruned] == [n.key for n in exhaustive]
            assert [n.distance for n in pruned] == [n.distance for n in exhaustive]

            expected = brute_force(points, labels, query, k)
            assert [n.key for n in pruned] == [points[i] for i in expected]

            assert tree.knn_value(query, k) == most_common_value(labels[i] for i in expected).value


def test_pruned_search_on_integer_lattice_with_ties(rng):
    tree = KdTree(2)
    for point in rng.integers(0, 6, size=(60, 2)):
        tree.insert(point, int(point.sum()) % 3)

    for query in rng.integers(-1, 7, size=(40, 2)):
        for k in (1, 2, 4, 7):
            pruned = tree.nearest(query, k)
            exhaustive = tree.nearest(query, k, exhaustive=True)
            assert [(n.key, n.value, n.distance) for n in pruned] == [
                (n.key, n.value, n.distance) for n in exhaustive
            ]
            assert tree.knn_vote(query, k) == most_common_value(n.value for n in exhaustive)


def test_within_radius_matches_brute_force(rng):
    points = rng.uniform(0, 1, size=(300, 2))
    tree = KdTree.from_items((point, i) for i, point in enumerate(points))

    for _ in range(20):
        query = rng.uniform(0, 1, size=2)
        radius = float(rng.uniform(0, 0.3))
        found = tree.within_radius(query, radius)

        expected = sorted(
            (i for i, point in enumerate(points) if np.linalg.norm(point - query) <= radius),
            key=lambda i: np.linalg.norm(points[i] - query),
        )
        assert [n.value for n in found] == expected
        assert all(n.distance <= radius for n in found)


def test_within_radius_includes_boundary(grid_tree):
    found = grid_tree.within_radius((2, 2), 1.0)

    assert sorted(n.value for n in found) == ["1,2", "2,1", "2,2", "2,3", "3,2"]
    assert found[0].value == "2,2"
    assert KdTree(2).within_radius((0, 0), 5) == []
    with pytest.raises(ValueError):
        grid_tree.within_radius((0, 0), -1)


def test_most_common_value():
    assert most_common_value([]) == Vote(None, 0)
    assert most_common_value([], default="none") == Vote("none", 0)
    assert most_common_value(["b", "a", "b"]) == Vote("b", 2)
    assert most_common_value(["b", "a", "b", "a"]) == Vote("a", 2)
    assert most_common_value([3, 1, 2]) == Vote(1, 1)


def test_non_integer_k_is_rejected():
    tree = KdTree(1)
    for point, value in [([0], "a"), ([1], "a"), ([10], "b"), ([11], "b"), ([12], "b")]:
        tree.insert(point, value)

    with pytest.raises(TypeError):
        tree.nearest([0], 1.5)
    with pytest.raises(TypeError):
        tree.knn_value([0], 1.5)
    assert tree.knn_value([0], np.int64(2)) == "a"

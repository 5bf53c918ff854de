from __future__ import annotations

import argparse
import logging

import matplotlib.colors as mcolors
import matplotlib.patches as patches
import matplotlib.pyplot as plt
import numpy as np
import numpy.typing as npt
import rerun as rr

from knn_kdtree.config import DemoSettings, get_settings
from knn_kdtree.kdtree import KdTree
from knn_kdtree.log import configure_logging

logger = logging.getLogger(__name__)

LABELS = ["red", "green", "blue", "orange", "purple", "brown", "pink", "gray"]


def make_clusters(
    rng: np.random.Generator, clusters: int, points_per_cluster: int, spread: float
) -> tuple[npt.NDArray, list[str]]:
    """Generate labelled gaussian clusters inside the unit square.

    Args:
        rng: Random generator.
        clusters: Number of clusters, one label each.
        points_per_cluster: Number of samples drawn around each center.
        spread: Standard deviation of each cluster.

    Returns:
        Points as an (n, 2) array and the label of each point.
    """
    if not 1 <= clusters <= len(LABELS):
        raise ValueError(f"clusters must be between 1 and {len(LABELS)}, got {clusters}")

    centers = rng.uniform(0.2, 0.8, size=(clusters, 2))

    points = []
    labels = []
    for label, center in zip(LABELS, centers):
        samples = rng.normal(center, spread, size=(points_per_cluster, 2))
        points.append(np.clip(samples, 0.0, 1.0))
        labels.extend([label] * points_per_cluster)

    return np.concatenate(points), labels


def classify_grid(tree: KdTree, k: int, resolution: int) -> tuple[npt.NDArray, list[str]]:
    """Classify every point of a resolution x resolution grid over the unit square.

    Returns:
        Grid points as an (resolution**2, 2) array and the label of each one.
    """
    axis = np.linspace(0.0, 1.0, resolution)
    xs, ys = np.meshgrid(axis, axis)
    grid = np.column_stack([xs.ravel(), ys.ravel()])

    labels = [tree.knn_value(point, k) for point in grid]
    return grid, labels


def to_rgb(labels: list[str]) -> npt.NDArray:
    return np.array([mcolors.to_rgb(label) for label in labels])


def to_rgb8(labels: list[str]) -> npt.NDArray:
    return np.round(to_rgb(labels) * 255).astype(np.uint8)


def show_with_matplotlib(
    points: npt.NDArray,
    labels: list[str],
    grid: npt.NDArray,
    grid_labels: list[str],
    tree: KdTree,
    k: int,
    output: str | None,
):
    ax = plt.axes()

    # Decision map first so the samples are drawn on top.
    ax.scatter(grid[:, 0], grid[:, 1], c=to_rgb(grid_labels), s=6, alpha=0.25, marker="s")
    ax.scatter(points[:, 0], points[:, 1], c=to_rgb(labels), s=14, edgecolors="black", linewidths=0.3)

    # Show how far the search had to reach for the center of the square.
    probe = np.array([0.5, 0.5])
    neighbors = tree.nearest(probe, k)
    if neighbors:
        c = patches.Circle(
            (probe[0], probe[1]),
            radius=neighbors[-1].distance,
            edgecolor="black",
            facecolor="none",
            linewidth=1,
        )
        ax.add_patch(c)
        nearest_points = np.array([neighbor.key.to_numpy() for neighbor in neighbors])
        ax.scatter(nearest_points[:, 0], nearest_points[:, 1], s=40, facecolors="none", edgecolors="black")
        ax.scatter(probe[0], probe[1], c="black", marker="x")
        ax.set_title(f"k={k}: ({probe[0]}, {probe[1]}) is {tree.knn_value(probe, k)}")

    plt.axis("square")
    plt.xlim(0, 1)
    plt.ylim(0, 1)
    plt.xticks(np.arange(0, 1.1, step=0.1))
    plt.yticks(np.arange(0, 1.1, step=0.1))

    if output:
        plt.savefig(output)
        logger.info("Saved figure to %s", output)
    else:
        plt.show()
    plt.close()


def show_with_rerun(points: npt.NDArray, labels: list[str], grid: npt.NDArray, grid_labels: list[str]):
    rr.init("knn", spawn=True)
    rr.log("grid", rr.Points2D(grid, colors=to_rgb8(grid_labels), radii=0.004))
    rr.log("points", rr.Points2D(points, colors=to_rgb8(labels), radii=0.01))


def parse_args(settings: DemoSettings, argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Classify the unit square with a kNN vote over a k-d tree.")
    parser.add_argument("--seed", type=int, default=settings.seed, help="Random seed")
    parser.add_argument("--clusters", type=int, default=settings.clusters, help="Number of labelled clusters")
    parser.add_argument(
        "--points-per-cluster",
        type=int,
        default=settings.points_per_cluster,
        help="Samples per cluster",
    )
    parser.add_argument("--spread", type=float, default=settings.spread, help="Standard deviation of each cluster")
    parser.add_argument("-k", type=int, default=settings.k, help="Number of neighbours that vote")
    parser.add_argument(
        "--resolution",
        type=int,
        default=settings.grid_resolution,
        help="Number of grid cells per side of the decision map",
    )
    parser.add_argument("--rerun", action="store_true", help="Stream to a rerun viewer instead of matplotlib")
    parser.add_argument("-o", "--output", type=str, help="Save the matplotlib figure instead of showing it")
    parser.add_argument(
        "--log-level",
        type=str.upper,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        default=settings.log_level,
        help="Logging level",
    )

    args = parser.parse_args(argv)
    if args.k < 1:
        parser.error("-k must be at least 1")
    if args.resolution < 2:
        parser.error("--resolution must be at least 2")
    return args


def main(argv: list[str] | None = None):
    args = parse_args(get_settings(), argv)
    configure_logging(args.log_level)

    rng = np.random.default_rng(args.seed)
    points, labels = make_clusters(rng, args.clusters, args.points_per_cluster, args.spread)

    tree = KdTree.from_items(zip(points, labels), dimension=2)
    logger.info("Built k-d tree with %d points (height %d)", tree.size(), tree.height())

    grid, grid_labels = classify_grid(tree, args.k, args.resolution)
    logger.info("Classified %d grid points with k=%d", len(grid), args.k)

    if args.rerun:
        show_with_rerun(points, labels, grid, grid_labels)
    else:
        show_with_matplotlib(points, labels, grid, grid_labels, tree, args.k, args.output)


if __name__ == "__main__":
    main()

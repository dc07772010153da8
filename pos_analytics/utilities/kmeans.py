# pos_analytics/utilities/kmeans.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import numpy as np

from sklearn.cluster import kmeans_plusplus

from pos_analytics.domain.errors import InvalidClusterCountError

DEFAULT_MAX_ITER = 100


@dataclass(frozen=True)
class KMeansResult:
    labels: np.ndarray      # (n_points,) ints in [0, k)
    centroids: np.ndarray   # (k, n_dims)
    inertia: float
    n_iter: int
    converged: bool


def _squared_distances(points: np.ndarray, centroids: np.ndarray) -> np.ndarray:
    diff = points[:, None, :] - centroids[None, :, :]
    return np.einsum("ijk,ijk->ij", diff, diff)


def _assign_labels(points: np.ndarray, centroids: np.ndarray) -> np.ndarray:
    """Nearest centroid per point; equidistant points go to the lowest index."""
    return np.argmin(_squared_distances(points, centroids), axis=1)


def _relocate_empty_clusters(
    points: np.ndarray,
    labels: np.ndarray,
    centroids: np.ndarray,
    k: int,
) -> np.ndarray:
    """
    Give every empty cluster one point.

    For each empty cluster (ascending id) the point farthest from its own
    centroid is moved there, taken only from clusters that keep at least one
    point afterwards. Ties go to the lowest row index. With k <= n_points a
    donor always exists.
    """
    counts = np.bincount(labels, minlength=k)
    if counts.all():
        return labels

    labels = labels.copy()
    own_dist = ((points - centroids[labels]) ** 2).sum(axis=1)

    for cluster in np.flatnonzero(counts == 0):
        candidates = counts[labels] > 1
        masked = np.where(candidates, own_dist, -np.inf)
        donor = int(np.argmax(masked))

        counts[labels[donor]] -= 1
        labels[donor] = cluster
        counts[cluster] += 1
        own_dist[donor] = -np.inf  # never move the same point twice

    return labels


def _update_centroids(points: np.ndarray, labels: np.ndarray, k: int) -> np.ndarray:
    centroids = np.zeros((k, points.shape[1]), dtype=float)
    for c in range(k):
        centroids[c] = points[labels == c].mean(axis=0)
    return centroids


def lloyd_kmeans(
    points: np.ndarray,
    k: int,
    *,
    random_state: Optional[int] = None,
    max_iter: int = DEFAULT_MAX_ITER,
) -> KMeansResult:
    """
    Partition points into k clusters with Lloyd's iteration.

    Initialization: k-means++ seeding (scikit-learn `kmeans_plusplus`) driven
    by `random_state`; a fixed seed gives identical results on identical input.

    Each iteration assigns every point to its nearest centroid by squared
    Euclidean distance (the lowest centroid index wins ties), refills empty
    clusters, then moves each centroid to the mean of its points. Stops when
    the assignment no longer changes or after `max_iter` iterations.
    """
    X = np.asarray(points, dtype=float)
    if X.ndim == 1:
        X = X.reshape(-1, 1)
    n = X.shape[0]

    if not isinstance(k, (int, np.integer)) or k < 1 or k > n:
        raise InvalidClusterCountError(f"k must be in [1, {n}] for {n} points, got {k!r}")
    if max_iter < 1:
        raise ValueError("max_iter must be >= 1")

    centroids, _ = kmeans_plusplus(X, n_clusters=int(k), random_state=random_state)
    centroids = np.asarray(centroids, dtype=float)

    # -1 never matches a real assignment, so the first pass cannot "converge"
    labels = np.full(n, -1, dtype=int)
    converged = False
    n_iter = 0

    for n_iter in range(1, max_iter + 1):
        new_labels = _assign_labels(X, centroids)
        new_labels = _relocate_empty_clusters(X, new_labels, centroids, int(k))
        centroids = _update_centroids(X, new_labels, int(k))

        converged = np.array_equal(labels, new_labels)
        labels = new_labels
        if converged:
            break

    inertia = float(((X - centroids[labels]) ** 2).sum())

    return KMeansResult(
        labels=labels.astype(int),
        centroids=centroids,
        inertia=inertia,
        n_iter=n_iter,
        converged=converged,
    )

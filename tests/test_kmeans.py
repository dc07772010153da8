from __future__ import annotations

import numpy as np
import pytest

from pos_analytics.domain.errors import InvalidClusterCountError
from pos_analytics.utilities.kmeans import _assign_labels, _relocate_empty_clusters, lloyd_kmeans


def _two_blobs() -> np.ndarray:
    rng = np.random.default_rng(0)
    a = rng.normal(loc=(-5.0, -5.0), scale=0.3, size=(15, 2))
    b = rng.normal(loc=(5.0, 5.0), scale=0.3, size=(15, 2))
    return np.vstack([a, b])


@pytest.mark.parametrize("k", [0, -1, 31])
def test_invalid_cluster_count(k):
    with pytest.raises(InvalidClusterCountError):
        lloyd_kmeans(_two_blobs(), k)


def test_separated_blobs_are_recovered():
    X = _two_blobs()
    result = lloyd_kmeans(X, 2, random_state=1)

    first, second = result.labels[:15], result.labels[15:]
    assert len(set(first)) == 1
    assert len(set(second)) == 1
    assert first[0] != second[0]
    assert result.converged


def test_same_seed_same_assignment():
    X = _two_blobs()
    a = lloyd_kmeans(X, 3, random_state=42)
    b = lloyd_kmeans(X, 3, random_state=42)
    np.testing.assert_array_equal(a.labels, b.labels)
    np.testing.assert_array_equal(a.centroids, b.centroids)


@pytest.mark.parametrize("k", [1, 2, 3, 4])
def test_every_label_in_range_and_no_empty_cluster(k):
    X = _two_blobs()
    result = lloyd_kmeans(X, k, random_state=5)

    assert result.labels.shape == (len(X),)
    assert result.labels.min() >= 0
    assert result.labels.max() < k
    assert (np.bincount(result.labels, minlength=k) > 0).all()
    assert result.centroids.shape == (k, 2)


def test_k_equal_to_point_count_gives_singletons():
    X = np.array([[0.0, 0.0], [1.0, 0.0], [0.0, 1.0], [3.0, 3.0]])
    result = lloyd_kmeans(X, 4, random_state=0)
    assert sorted(result.labels.tolist()) == [0, 1, 2, 3]
    assert result.inertia == pytest.approx(0.0)


def test_identical_points_still_fill_every_cluster():
    X = np.zeros((3, 2))
    result = lloyd_kmeans(X, 2, random_state=0)
    assert (np.bincount(result.labels, minlength=2) > 0).all()


def test_centroids_are_cluster_means():
    X = _two_blobs()
    result = lloyd_kmeans(X, 2, random_state=3)
    for c in range(2):
        np.testing.assert_allclose(result.centroids[c], X[result.labels == c].mean(axis=0))


def test_max_iter_bounds_the_iterations():
    X = _two_blobs()
    result = lloyd_kmeans(X, 3, random_state=2, max_iter=1)
    assert result.n_iter == 1
    assert not result.converged


def test_relocation_moves_farthest_point_from_a_shared_cluster():
    X = np.array([[0.0], [1.0], [10.0], [20.0]])
    labels = np.array([0, 0, 0, 1])
    centroids = np.array([[0.0], [20.0], [100.0]])

    relocated = _relocate_empty_clusters(X, labels, centroids, 3)

    # cluster 2 was empty; row 2 is the farthest from centroid 0
    assert relocated.tolist() == [0, 0, 2, 1]
    assert labels.tolist() == [0, 0, 0, 1]


def test_relocation_is_a_no_op_without_empty_clusters():
    X = np.array([[0.0], [1.0]])
    labels = np.array([0, 1])
    relocated = _relocate_empty_clusters(X, labels, np.array([[0.0], [1.0]]), 2)
    assert relocated is labels


def test_equidistant_point_goes_to_lowest_centroid_index():
    X = np.array([[0.0], [1.0], [2.0]])

    labels = _assign_labels(X, np.array([[0.0], [2.0]]))
    assert labels.tolist() == [0, 0, 1]

    # same geometry with the centroids swapped: the tie still goes to index 0
    labels = _assign_labels(X, np.array([[2.0], [0.0]]))
    assert labels.tolist() == [1, 0, 0]


def test_tie_break_holds_in_two_dimensions():
    X = np.array([[0.0, 0.0]])
    centroids = np.array([[1.0, 0.0], [0.0, 1.0], [-1.0, 0.0]])
    assert _assign_labels(X, centroids).tolist() == [0]

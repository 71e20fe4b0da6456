import numpy as np
import pytest

from textclusters.clustering.clusterer import choose_k, default_k, kmeans, kmeans_plus_plus
from textclusters.exceptions import InputError

POINTS = np.array([[0.0, 0.0], [0.0, 1.0], [10.0, 10.0], [10.0, 11.0]])


def test_kmeans_separates_obvious_groups():
    result = kmeans(POINTS, 2, rng=0)
    a = result.assignments
    assert a[0] == a[1]
    assert a[2] == a[3]
    assert a[0] != a[2]
    assert result.converged
    assert result.centroids.shape == (2, 2)


def test_kmeans_centroids_are_member_means():
    result = kmeans(POINTS, 2, rng=0)
    for j in range(2):
        members = POINTS[result.assignments == j]
        np.testing.assert_allclose(result.centroids[j], members.mean(axis=0))


def test_assignments_in_range():
    rng = np.random.default_rng(2)
    X = rng.random((30, 3))
    result = kmeans(X, 4, rng=2, n_init=3)
    assert set(result.assignments.tolist()) <= set(range(4))
    assert len(result.assignments) == 30


@pytest.mark.parametrize("k", [0, -1, 5])
def test_kmeans_invalid_k_raises(k):
    with pytest.raises(InputError):
        kmeans(POINTS, k, rng=0)


def test_identical_vectors_leave_an_empty_cluster():
    X = np.ones((3, 2))
    result = kmeans(X, 2, rng=0)
    assert result.assignments.tolist() == [0, 0, 0]
    assert result.cluster_sizes().tolist() == [3, 0]


def test_kmeans_plus_plus_picks_input_rows():
    seeds = kmeans_plus_plus(POINTS, 3, rng=1)
    assert seeds.shape == (3, 2)
    for row in seeds:
        assert any(np.allclose(row, p) for p in POINTS)


def test_kmeans_is_reproducible_with_seed():
    rng = np.random.default_rng(3)
    X = rng.random((20, 2))
    r1 = kmeans(X, 3, rng=11)
    r2 = kmeans(X, 3, rng=11)
    assert r1.assignments.tolist() == r2.assignments.tolist()


def test_more_restarts_never_increase_inertia():
    rng = np.random.default_rng(4)
    X = rng.random((40, 2))
    single = kmeans(X, 5, rng=np.random.default_rng(9), n_init=1)
    multi = kmeans(X, 5, rng=np.random.default_rng(9), n_init=8)
    assert multi.inertia <= single.inertia + 1e-12


@pytest.mark.parametrize("n, expected", [(0, 2), (4, 2), (30, 3), (55, 5), (1000, 5)])
def test_default_k(n, expected):
    assert default_k(n) == expected


def test_choose_k_finds_three_blobs():
    rng = np.random.default_rng(5)
    centers = np.array([[0.0, 0.0], [10.0, 0.0], [0.0, 10.0]])
    X = np.vstack([c + rng.normal(0, 0.3, size=(6, 2)) for c in centers])
    assert choose_k(X, max_k=6, rng=5, n_init=5) == 3

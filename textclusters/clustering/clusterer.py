"""k-means with k-means++ seeding, plus silhouette-based choice of k."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

import numpy as np
from sklearn.metrics import silhouette_score

from ..exceptions import InputError
from .rng import RandomLike, make_rng

logger = logging.getLogger(__name__)


@dataclass
class KMeansResult:
    """Centroids (k, d) and per-point assignments in [0, k)."""

    centroids: np.ndarray
    assignments: np.ndarray
    iterations: int = 0
    converged: bool = False
    inertia: float = 0.0

    @property
    def k(self) -> int:
        return int(self.centroids.shape[0])

    def cluster_sizes(self) -> np.ndarray:
        return np.bincount(self.assignments, minlength=self.k)


def default_k(n_documents: int) -> int:
    """Cluster count used when the caller does not ask for one."""
    return min(5, max(2, n_documents // 10))


def _sq_distances(X: np.ndarray, centroids: np.ndarray) -> np.ndarray:
    diff = X[:, None, :] - centroids[None, :, :]
    return np.sum(diff * diff, axis=2)


def kmeans_plus_plus(X: np.ndarray, k: int, rng: RandomLike = None) -> np.ndarray:
    """Pick k initial centroids from the rows of X.

    The first is uniform; each next one is sampled with probability
    proportional to the squared distance to its nearest chosen centroid.
    When every point already coincides with a centroid, the first row is used.
    """
    rng = make_rng(rng)
    n = X.shape[0]
    centroids = [X[int(rng.integers(n))]]
    for _ in range(1, k):
        nearest = _sq_distances(X, np.asarray(centroids)).min(axis=1)
        total = float(nearest.sum())
        if total <= 0 or not np.isfinite(total):
            idx = 0
        else:
            idx = int(rng.choice(n, p=nearest / total))
        centroids.append(X[idx])
    return np.array(centroids, dtype=float)


def _lloyd(X: np.ndarray, centroids: np.ndarray, max_iterations: int) -> KMeansResult:
    n = X.shape[0]
    k = centroids.shape[0]
    assignments = np.zeros(n, dtype=int)
    changed = True
    iterations = 0

    while changed and iterations < max_iterations:
        iterations += 1
        # argmin breaks ties toward the lowest centroid index
        new_assignments = np.argmin(_sq_distances(X, centroids), axis=1)
        changed = bool(np.any(new_assignments != assignments))
        assignments = new_assignments

        for j in range(k):
            members = X[assignments == j]
            # Empty clusters keep their previous centroid
            if members.shape[0] > 0:
                centroids[j] = members.mean(axis=0)

    inertia = float(np.sum((X - centroids[assignments]) ** 2))
    return KMeansResult(
        centroids=centroids,
        assignments=assignments,
        iterations=iterations,
        converged=not changed,
        inertia=inertia,
    )


def kmeans(
    vectors: np.ndarray,
    k: int,
    max_iterations: int = 50,
    *,
    rng: RandomLike = None,
    n_init: int = 1,
) -> KMeansResult:
    """Lloyd's k-means seeded with k-means++.

    Iterates until an assignment pass changes nothing or ``max_iterations``
    is reached. With ``n_init > 1`` the run with the lowest inertia wins.

    Args:
        vectors: Input array (n_samples, n_features).
        k: Number of clusters, 1 <= k <= n_samples.
        max_iterations: Cap on assignment/update rounds.
        rng: Seed or Generator for the seeding step.
        n_init: Number of independently seeded runs.

    Returns:
        KMeansResult with centroids in the input space.

    Raises:
        InputError: k < 1 or fewer vectors than k.
    """
    X = np.asarray(vectors, dtype=float)
    if X.ndim == 1:
        X = X.reshape(-1, 1) if X.size else X.reshape(0, 1)
    n = X.shape[0]
    if k < 1:
        raise InputError(f"k must be at least 1, got {k}", stage="kmeans")
    if n < k:
        raise InputError(
            f"Not enough vectors for clustering. Need at least {k} vectors, got {n}.",
            stage="kmeans",
        )

    rng = make_rng(rng)
    best: Optional[KMeansResult] = None
    for _ in range(max(1, n_init)):
        result = _lloyd(X, kmeans_plus_plus(X, k, rng), max_iterations)
        if best is None or result.inertia < best.inertia:
            best = result

    if not best.converged:
        logger.debug("k-means stopped at the iteration cap (%d) before converging", max_iterations)
    return best


def choose_k(
    vectors: np.ndarray,
    *,
    min_k: int = 2,
    max_k: int = 12,
    max_iterations: int = 50,
    rng: RandomLike = None,
    n_init: int = 1,
) -> int:
    """Pick k in [min_k, max_k] with the best silhouette score.

    Candidates are capped at n - 1 (silhouette needs at least one cluster
    with two members). Returns ``min_k`` when no candidate can be scored.
    """
    X = np.asarray(vectors, dtype=float)
    n = X.shape[0]
    upper = min(max_k, n - 1)
    if upper < min_k:
        return max(1, min(min_k, n))

    rng = make_rng(rng)
    best_k = min_k
    best_score = -1.0
    for k in range(min_k, upper + 1):
        result = kmeans(X, k, max_iterations, rng=rng, n_init=n_init)
        if len(set(result.assignments.tolist())) <= 1:
            continue
        try:
            score = silhouette_score(X, result.assignments)
        except ValueError as exc:
            logger.debug("Silhouette failed for k=%d: %s", k, exc)
            continue
        if score > best_score:
            best_score = score
            best_k = k
    return best_k

"""2D projection: similarity-driven MDS and perplexity-calibrated t-SNE.

MDS is used on the TF-IDF path (only a similarity matrix is available);
t-SNE is used when documents carry precomputed dense vectors. Both are
quadratic in the number of documents per sweep/iteration.
"""

from __future__ import annotations

import logging
import math
from typing import Optional

import numpy as np

from ..exceptions import NumericInstabilityError
from .rng import RandomLike, make_rng
from .similarity import distance_matrix, pairwise_sq_euclidean

logger = logging.getLogger(__name__)

# Pairs closer than this are skipped to avoid dividing by ~0
MDS_EPSILON = 1e-6

SIGMA_MIN = 1e-4
SIGMA_MAX = 1000.0
SIGMA_SEARCH_STEPS = 50
ENTROPY_TOLERANCE = 0.01

# Coordinates beyond this are renormalized before the next periodic pass
_MAX_SPREAD = 1e6


def _degenerate(n: int, n_components: int) -> Optional[np.ndarray]:
    """Fewer than two points: nothing to lay out, place them at the origin."""
    if n < 2:
        return np.zeros((max(n, 0), n_components))
    return None


def normalize_points(points: np.ndarray) -> np.ndarray:
    """Center each axis at 0 and scale it to unit (population) std.

    An axis with zero spread is only centered.
    """
    points = np.asarray(points, dtype=float)
    if points.shape[0] == 0:
        return points
    mean = points.mean(axis=0)
    std = points.std(axis=0)
    std[std == 0] = 1.0
    return (points - mean) / std


def project_mds(
    similarity: np.ndarray,
    *,
    n_components: int = 2,
    iterations: int = 50,
    learning_rate: float = 0.1,
    rng: RandomLike = None,
    normalize: bool = True,
) -> np.ndarray:
    """Place points so pairwise distances approach 1 - similarity.

    Gradient-descent MDS: every sweep visits each unordered pair (i, j) and
    moves both points along their separating axis by
    ``learning_rate * (embedding_distance - target_distance)``, in opposite
    directions. Runs a fixed number of sweeps; there is no convergence test.

    Args:
        similarity: Square (n, n) similarity matrix.
        n_components: Output dimensions (2, or 3 for a 3-D view).
        iterations: Number of sweeps over all pairs.
        learning_rate: Fraction of the discrepancy corrected per pair visit.
        rng: Seed or Generator for the random initial layout.
        normalize: Rescale the final layout to zero mean / unit std per axis.

    Returns:
        numpy array of shape (n, n_components).
    """
    sim = np.asarray(similarity, dtype=float)
    n = sim.shape[0] if sim.ndim == 2 else 0
    degenerate = _degenerate(n, n_components)
    if degenerate is not None:
        return degenerate

    rng = make_rng(rng)
    target = distance_matrix(sim).tolist()
    # Plain lists: the pair updates are sequential, each sees the previous one
    pts = rng.uniform(-1.0, 1.0, size=(n, n_components)).tolist()
    dims = range(n_components)

    for _ in range(iterations):
        for i in range(n):
            pi = pts[i]
            row = target[i]
            for j in range(i + 1, n):
                pj = pts[j]
                delta = [pi[d] - pj[d] for d in dims]
                dist = math.sqrt(sum(x * x for x in delta))
                if dist < MDS_EPSILON:
                    continue
                step = learning_rate * (dist - row[j]) / dist
                for d in dims:
                    g = step * delta[d]
                    pi[d] -= g
                    pj[d] += g

    points = np.asarray(pts, dtype=float)
    bad = ~np.isfinite(points)
    if bad.any():
        logger.warning("MDS produced %d non-finite coordinates; zeroing them", int(bad.sum()))
        points[bad] = 0.0
    return normalize_points(points) if normalize else points


def perplexity_for(n: int) -> int:
    """Target perplexity: n / 5 bounded to [5, 30]."""
    return min(30, max(5, n // 5))


def _row_probabilities(sq_dists: np.ndarray, i: int, sigma: float) -> np.ndarray:
    """Gaussian affinities of point i to every other point, normalized to 1."""
    others = np.ones(sq_dists.shape[0], dtype=bool)
    others[i] = False
    # Shifting by the nearest distance leaves the normalized row unchanged
    shift = sq_dists[others].min() if others.any() else 0.0
    p = np.exp(-(sq_dists - shift) / (2.0 * sigma * sigma))
    p[i] = 0.0
    total = p.sum()
    if total <= 0 or not np.isfinite(total):
        p = others.astype(float)
        total = p.sum() or 1.0
    return p / total


def _entropy(p: np.ndarray) -> float:
    nz = p[p > 1e-10]
    return float(-np.sum(nz * np.log(nz)))


def find_sigma(sq_dists: np.ndarray, i: int, perplexity: float) -> float:
    """Bisect the kernel bandwidth until row entropy matches ln(perplexity)."""
    target = math.log(perplexity)
    lo, hi = SIGMA_MIN, SIGMA_MAX
    sigma = 1.0
    for _ in range(SIGMA_SEARCH_STEPS):
        entropy = _entropy(_row_probabilities(sq_dists, i, sigma))
        if abs(entropy - target) < ENTROPY_TOLERANCE:
            break
        if entropy < target:
            lo = sigma
            sigma = (sigma + hi) / 2.0
        else:
            hi = sigma
            sigma = (sigma + lo) / 2.0
    return sigma


def joint_probabilities(vectors: np.ndarray, perplexity: Optional[float] = None) -> np.ndarray:
    """Symmetrized high-dimensional affinities P, (P_ij + P_ji) / 2n."""
    X = np.asarray(vectors, dtype=float)
    n = X.shape[0]
    if perplexity is None:
        perplexity = perplexity_for(n)

    sq_dists = pairwise_sq_euclidean(X)
    conditional = np.zeros((n, n))
    for i in range(n):
        sigma = find_sigma(sq_dists[i], i, perplexity)
        conditional[i] = _row_probabilities(sq_dists[i], i, sigma)
    return (conditional + conditional.T) / (2.0 * n)


def _tsne_gradient(Y: np.ndarray, P: np.ndarray, exaggeration: float) -> np.ndarray:
    diff = Y[:, None, :] - Y[None, :, :]
    num = 1.0 / (1.0 + np.sum(diff * diff, axis=2))
    np.fill_diagonal(num, 0.0)
    total = num.sum()
    Q = num / total if total > 0 else num
    factor = 4.0 * (P * exaggeration - Q) * Q
    return np.einsum("ij,ijk->ik", factor, diff)


def project_tsne(
    vectors: np.ndarray,
    *,
    n_components: int = 2,
    iterations: int = 1000,
    learning_rate: float = 100.0,
    early_exaggeration: float = 12.0,
    normalize_every: int = 50,
    perplexity: Optional[float] = None,
    rng: RandomLike = None,
) -> np.ndarray:
    """Project dense vectors with t-SNE.

    Affinities use a per-point Gaussian bandwidth calibrated to the target
    perplexity; the low-dimensional side uses Student-t affinities
    normalized over all pairs. High-dimensional affinities are multiplied by
    ``early_exaggeration`` for the first fifth of the iterations. The layout
    is recentered and rescaled to unit std every ``normalize_every``
    iterations and once at the end.

    Args:
        vectors: Input array of shape (n_samples, n_features).
        n_components: Output dimensions.
        iterations: Gradient steps.
        learning_rate: Step size.
        early_exaggeration: Multiplier on P during the early phase.
        normalize_every: Interval of the periodic renormalization.
        perplexity: Override for the target perplexity (default n/5 in [5, 30]).
        rng: Seed or Generator for the initial jitter.

    Returns:
        numpy array of shape (n_samples, n_components).

    Raises:
        NumericInstabilityError: input or final layout is not finite.
    """
    X = np.asarray(vectors, dtype=float)
    if X.ndim != 2:
        raise NumericInstabilityError("t-SNE input must be a 2-D array", stage="tsne")
    n = X.shape[0]
    degenerate = _degenerate(n, n_components)
    if degenerate is not None:
        return degenerate
    if not np.all(np.isfinite(X)):
        raise NumericInstabilityError("t-SNE input contains non-finite values", stage="tsne")

    rng = make_rng(rng)
    P = joint_probabilities(X, perplexity)
    Y = rng.uniform(0.0, 1e-4, size=(n, n_components))

    exaggerated_until = iterations / 5.0
    skipped = 0
    for it in range(iterations):
        exaggeration = early_exaggeration if it < exaggerated_until else 1.0
        with np.errstate(over="ignore", invalid="ignore"):
            step = learning_rate * _tsne_gradient(Y, P, exaggeration)
            candidate = Y - step
        if not np.all(np.isfinite(candidate)):
            skipped += 1
        else:
            Y = candidate

        if (normalize_every and it % normalize_every == 0) or np.abs(Y).max() > _MAX_SPREAD:
            Y = normalize_points(Y)

    if skipped:
        logger.warning("t-SNE skipped %d non-finite gradient steps", skipped)

    Y = normalize_points(Y)
    if not np.all(np.isfinite(Y)):
        raise NumericInstabilityError("t-SNE produced non-finite coordinates", stage="tsne")
    return Y

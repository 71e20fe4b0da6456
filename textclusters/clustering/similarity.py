"""Cosine similarity, distances, and similarity-matrix repair."""

from __future__ import annotations

import logging
import math
from typing import Mapping, Sequence, Tuple, Union

import numpy as np

logger = logging.getLogger(__name__)

Vector = Union[Sequence[float], np.ndarray, Mapping[str, float]]


def _sparse_cosine(a: Mapping[str, float], b: Mapping[str, float]) -> float:
    if len(a) > len(b):
        a, b = b, a
    dot = sum(w * b.get(term, 0.0) for term, w in a.items())
    na2 = sum(w * w for w in a.values())
    nb2 = sum(w * w for w in b.values())
    if na2 == 0 or nb2 == 0:
        return 0.0
    sim = dot / math.sqrt(na2 * nb2)
    return sim if math.isfinite(sim) else 0.0


def cosine_similarity(a: Vector, b: Vector) -> float:
    """dot(a, b) / (|a| |b|); 0.0 for zero-norm, mismatched, or non-finite input.

    Accepts dense sequences/arrays or sparse ``{term: weight}`` mappings
    (both arguments must be of the same kind).
    """
    if isinstance(a, Mapping) or isinstance(b, Mapping):
        if not (isinstance(a, Mapping) and isinstance(b, Mapping)):
            return 0.0
        return _sparse_cosine(a, b)

    va = np.asarray(a, dtype=float).ravel()
    vb = np.asarray(b, dtype=float).ravel()
    if va.shape != vb.shape or va.size == 0:
        return 0.0

    na2 = float(np.dot(va, va))
    nb2 = float(np.dot(vb, vb))
    if na2 == 0 or nb2 == 0:
        return 0.0
    sim = float(np.dot(va, vb)) / math.sqrt(na2 * nb2)
    if not math.isfinite(sim):
        return 0.0
    return sim


def to_distance(similarity: float) -> float:
    """1 - similarity clamped to [0, 2]; non-finite input maps to 1.0."""
    if similarity is None or not math.isfinite(similarity):
        return 1.0
    return min(2.0, max(0.0, 1.0 - similarity))


def pairwise_cosine(vectors: np.ndarray) -> np.ndarray:
    """Raw n x n cosine matrix.

    Zero-norm rows give 0 similarity; non-finite input values propagate as
    NaN so ``sanitize_similarity`` can count and repair them.
    """
    X = np.asarray(vectors, dtype=float)
    if X.ndim != 2 or X.shape[0] == 0:
        return np.zeros((0, 0))

    with np.errstate(divide="ignore", invalid="ignore", over="ignore"):
        gram = X @ X.T
        sq = np.diag(gram).copy()
        denom = np.sqrt(np.outer(sq, sq))
        sim = gram / denom
    sim[denom == 0] = 0.0
    return sim


def sanitize_similarity(sim: np.ndarray) -> Tuple[np.ndarray, int]:
    """Replace non-finite entries (1.0 on the diagonal, 0.0 elsewhere).

    Also pins the diagonal to 1.0, clips to [-1, 1] and symmetrizes.
    Returns the repaired matrix and the number of entries that were replaced.
    """
    sim = np.array(sim, dtype=float, copy=True)
    n = sim.shape[0]
    if n == 0:
        return sim, 0

    bad = ~np.isfinite(sim)
    n_bad = int(bad.sum())
    if n_bad:
        fallback = np.eye(n)
        sim = np.where(bad, fallback, sim)

    sim = np.clip(sim, -1.0, 1.0)
    sim = (sim + sim.T) / 2.0
    np.fill_diagonal(sim, 1.0)
    return sim, n_bad


def similarity_matrix(vectors: np.ndarray) -> np.ndarray:
    """Symmetric, finite cosine similarity matrix for the MDS projector."""
    sim, n_bad = sanitize_similarity(pairwise_cosine(vectors))
    if n_bad:
        logger.warning("Replaced %d non-finite similarity entries", n_bad)
    return sim


def distance_matrix(similarity: np.ndarray) -> np.ndarray:
    """Element-wise ``to_distance`` over a similarity matrix."""
    sim = np.nan_to_num(np.asarray(similarity, dtype=float), nan=0.0, posinf=0.0, neginf=0.0)
    return np.clip(1.0 - sim, 0.0, 2.0)


def pairwise_sq_euclidean(X: np.ndarray) -> np.ndarray:
    """Squared Euclidean distances between all rows of X (clamped at 0)."""
    X = np.asarray(X, dtype=float)
    sq = np.sum(X * X, axis=1)
    d2 = sq[:, None] + sq[None, :] - 2.0 * (X @ X.T)
    np.maximum(d2, 0.0, out=d2)
    np.fill_diagonal(d2, 0.0)
    return d2

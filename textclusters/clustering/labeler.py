"""Cluster summaries: ranked key terms, an example, and sample texts."""

from __future__ import annotations

import logging
from collections import Counter
from typing import Dict, Iterable, List, Optional, Sequence

import numpy as np

from ..models.cluster import ClusterSummary
from ..nlp.cleaner import word_tokens

logger = logging.getLogger(__name__)

EMPTY_CLUSTER_TERM = "Empty cluster"
NO_TERMS_FOUND = "No key terms found"
ERROR_TERM = "Error processing cluster"

# Defaults for the two keyword sources
TFIDF_TOP_TERMS = 5
RAW_TOP_TERMS = 10


def rank_terms(term_lists: Iterable[Sequence[str]], top_n: int) -> List[str]:
    """Count term occurrences across documents and return the top N.

    Ties keep first-seen order.
    """
    counts: Counter = Counter()
    for terms in term_lists:
        counts.update(terms)
    return [term for term, _ in counts.most_common(top_n)]


def _placeholder(cluster_id: int, term: str, centroid: List[float]) -> ClusterSummary:
    return ClusterSummary(
        cluster_id=cluster_id,
        size=0,
        key_terms=[term],
        example="",
        samples=[],
        centroid=centroid,
    )


def summarize_clusters(
    assignments: Sequence[int],
    k: int,
    texts: Sequence[str],
    *,
    term_lists: Optional[Sequence[Sequence[str]]] = None,
    top_n: Optional[int] = None,
    terms_per_doc: int = 5,
    n_samples: int = 5,
    centroids: Optional[np.ndarray] = None,
) -> List[ClusterSummary]:
    """Summarize every cluster id in [0, k), including empty ones.

    Key terms come from each member's top ``terms_per_doc`` TF-IDF terms when
    ``term_lists`` is given, otherwise from raw words (4+ characters) of the
    visible text.

    Args:
        assignments: Cluster id per document.
        k: Number of clusters.
        texts: Visible document texts, aligned with ``assignments``.
        term_lists: Per-document terms sorted by descending TF-IDF weight.
        top_n: Key terms per cluster (5 for TF-IDF terms, 10 for raw words).
        terms_per_doc: How many of each member's top terms are tallied.
        n_samples: Sample texts kept per cluster.
        centroids: Optional (k, d) centroids copied onto the summaries.

    Returns:
        List of ClusterSummary ordered by cluster id. Never raises.
    """
    if top_n is None:
        top_n = TFIDF_TOP_TERMS if term_lists is not None else RAW_TOP_TERMS

    members: Dict[int, List[int]] = {cid: [] for cid in range(k)}
    for i, label in enumerate(assignments):
        members.setdefault(int(label), []).append(i)

    summaries: List[ClusterSummary] = []
    for cid in range(k):
        centroid: List[float] = []
        if centroids is not None and cid < len(centroids):
            centroid = [float(v) for v in centroids[cid]]

        try:
            idx = members.get(cid, [])
            if not idx:
                summaries.append(_placeholder(cid, EMPTY_CLUSTER_TERM, centroid))
                continue

            if term_lists is not None:
                sources = [list(term_lists[i])[:terms_per_doc] for i in idx if i < len(term_lists)]
            else:
                sources = [word_tokens(texts[i]) for i in idx if i < len(texts)]
            key_terms = rank_terms(sources, top_n)

            member_texts = [texts[i] for i in idx if i < len(texts)]
            summaries.append(ClusterSummary(
                cluster_id=cid,
                size=len(idx),
                key_terms=key_terms or [NO_TERMS_FOUND],
                example=member_texts[0] if member_texts else "",
                samples=member_texts[:n_samples],
                centroid=centroid,
            ))
        except Exception:
            logger.exception("Error creating summary for cluster %d", cid)
            summaries.append(_placeholder(cid, ERROR_TERM, centroid))

    return summaries

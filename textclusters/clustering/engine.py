"""End-to-end clustering of a document set.

Two paths, chosen by the input:

- TF-IDF path: preprocess -> TF-IDF -> cosine similarity -> MDS layout;
  k-means on the (L2-normalized) TF-IDF vectors.
- Vector path (every document carries a precomputed embedding): t-SNE
  layout; k-means on the embeddings.

Nothing in here raises for degenerate data. Every fallback is logged and
recorded as a Diagnostic on the returned AnalysisOutcome; only ``None``
input raises InputError.
"""

from __future__ import annotations

import logging
from typing import Any, List, Optional, Sequence, Tuple

import numpy as np

from ..config import ClusteringSettings, load_settings
from ..exceptions import (
    ExternalDataError,
    InputError,
    NumericInstabilityError,
    TextClustersError,
)
from ..models.cluster import (
    AnalysisOutcome,
    ClusteringResult,
    ClusterPoint,
    ClusterSummary,
    Diagnostic,
)
from ..models.document import Document
from ..nlp.cleaner import clean_text, preprocess
from ..nlp.tfidf import TfidfModel
from .clusterer import KMeansResult, choose_k, default_k, kmeans
from .labeler import summarize_clusters
from .projector import project_mds, project_tsne
from .rng import RandomLike, make_rng
from .similarity import pairwise_cosine, sanitize_similarity, similarity_matrix

logger = logging.getLogger(__name__)

METHOD_TFIDF = "tfidf-mds"
METHOD_VECTORS = "vector-tsne"

VOCABULARY_PREVIEW = 100


class _Run:
    """Per-invocation state: settings, random source, collected diagnostics."""

    def __init__(self, settings: ClusteringSettings, rng: np.random.Generator):
        self.settings = settings
        self.rng = rng
        self.diagnostics: List[Diagnostic] = []

    def note(self, kind: str, stage: str, message: str) -> Diagnostic:
        logger.warning("[%s] %s", stage, message)
        diag = Diagnostic(kind=kind, stage=stage, message=message)
        self.diagnostics.append(diag)
        return diag

    def note_error(self, exc: TextClustersError, stage: str = "") -> Diagnostic:
        return self.note(exc.kind, exc.stage or stage, exc.message)

    def fail(self, diag: Diagnostic, method: str) -> AnalysisOutcome:
        return AnalysisOutcome(
            result=ClusteringResult(method=method),
            error=diag,
            diagnostics=self.diagnostics,
        )


def _coerce_documents(documents: Sequence[Any]) -> List[Document]:
    docs: List[Document] = []
    for i, doc in enumerate(documents):
        if isinstance(doc, Document):
            docs.append(doc)
        else:
            docs.append(Document.from_record(doc, i))
    return docs


def display_text(text: str, limit: int = 100) -> str:
    """Single-line preview, cut at ``limit`` characters with a trailing '...'."""
    text = clean_text(text)
    if len(text) > limit:
        return text[:limit] + "..."
    return text


def external_vectors(documents: Sequence[Document]) -> Optional[np.ndarray]:
    """Stack the documents' precomputed vectors into an (n, d) array.

    Returns None when no document carries a vector.

    Raises:
        ExternalDataError: vectors are only partially present, have mixed
            dimensions, or contain non-finite values.
    """
    present = [d for d in documents if d.has_vector]
    if not present:
        return None
    if len(present) != len(documents):
        raise ExternalDataError(
            f"{len(documents) - len(present)} of {len(documents)} documents have no vector",
            stage="vectors",
        )
    dims = {len(d.vector) for d in present}
    if len(dims) != 1:
        raise ExternalDataError(f"Vectors have mixed dimensions: {sorted(dims)}", stage="vectors")
    X = np.asarray([d.vector for d in present], dtype=float)
    if not np.all(np.isfinite(X)):
        raise ExternalDataError("Vectors contain NaN or infinite values", stage="vectors")
    return X


def l2_normalize(X: np.ndarray) -> np.ndarray:
    """Row-wise L2 normalization; zero rows stay zero."""
    norms = np.linalg.norm(X, axis=1, keepdims=True)
    norms[norms == 0] = 1.0
    return X / norms


def _resolve_k(
    run: _Run,
    n: int,
    requested: Optional[int],
    features: np.ndarray,
    max_iterations: int,
) -> int:
    settings = run.settings
    if requested is None:
        if settings.auto_k and n >= 3:
            return choose_k(
                features,
                max_k=settings.max_k,
                max_iterations=max_iterations,
                rng=run.rng,
                n_init=settings.kmeans_n_init,
            )
        k = default_k(n)
    elif requested < 1:
        k = default_k(n)
        run.note("input", "kmeans", f"Invalid k={requested}; using k={min(k, n)}")
    else:
        k = requested

    if k > n:
        run.note("input", "kmeans", f"Requested k={k} but only {n} documents; using k={n}")
        k = n
    return k


def _cluster(run: _Run, features: np.ndarray, k: int, max_iterations: int) -> KMeansResult:
    try:
        return kmeans(features, k, max_iterations, rng=run.rng, n_init=run.settings.kmeans_n_init)
    except InputError as exc:
        # Only reachable if k was not reduced beforehand
        run.note_error(exc, "kmeans")
        reduced = max(1, min(k, features.shape[0]))
        return kmeans(features, reduced, max_iterations, rng=run.rng, n_init=run.settings.kmeans_n_init)


def _build_result(
    run: _Run,
    method: str,
    docs: Sequence[Document],
    coords: np.ndarray,
    km: KMeansResult,
    summaries: List[ClusterSummary],
    vocabulary: Sequence[str] = (),
) -> ClusteringResult:
    limit = run.settings.display_chars
    three_d = coords.shape[1] >= 3
    points = [
        ClusterPoint(
            id=doc.id,
            text=display_text(doc.text, limit),
            full_text=doc.text,
            x=float(coords[i, 0]),
            y=float(coords[i, 1]) if coords.shape[1] > 1 else 0.0,
            z=float(coords[i, 2]) if three_d else None,
            cluster=int(km.assignments[i]),
        )
        for i, doc in enumerate(docs)
    ]
    return ClusteringResult(
        method=method,
        n_clusters=km.k,
        points=points,
        clusters=summaries,
        vocabulary=list(vocabulary)[:VOCABULARY_PREVIEW],
    )


def _analyze_tfidf(run: _Run, docs: List[Document], k: Optional[int]) -> AnalysisOutcome:
    settings = run.settings

    usable: List[Tuple[Document, str]] = []
    for doc in docs:
        processed = preprocess(doc.text)
        if processed:
            usable.append((doc, processed))
    dropped = len(docs) - len(usable)
    if dropped:
        run.note("input", "preprocess", f"Dropped {dropped} documents with no usable terms")

    if len(usable) < 2:
        diag = run.note("input", "preprocess", f"Need at least 2 usable documents, got {len(usable)}")
        return run.fail(diag, METHOD_TFIDF)

    kept = [doc for doc, _ in usable]
    model = TfidfModel.from_texts(processed for _, processed in usable)
    if not model.vocabulary:
        diag = run.note("input", "tfidf", "Vocabulary is empty after preprocessing")
        return run.fail(diag, METHOD_TFIDF)
    logger.info("TF-IDF: %d documents, %d terms", model.n_documents, len(model.vocabulary))

    matrix = model.matrix()
    sim, n_bad = sanitize_similarity(pairwise_cosine(matrix))
    if n_bad:
        run.note("numeric", "similarity", f"Replaced {n_bad} non-finite similarity entries")

    coords = project_mds(
        sim,
        n_components=settings.n_components,
        iterations=settings.mds_iterations,
        learning_rate=settings.mds_learning_rate,
        rng=run.rng,
    )

    features = coords if settings.cluster_on == "coordinates" else l2_normalize(matrix)
    n_clusters = _resolve_k(run, len(kept), k, features, settings.kmeans_max_iterations)
    km = _cluster(run, features, n_clusters, settings.kmeans_max_iterations)

    term_lists = [[term for term, _ in model.terms_for(i)] for i in range(model.n_documents)]
    summaries = summarize_clusters(
        km.assignments,
        km.k,
        [doc.text for doc in kept],
        term_lists=term_lists,
        top_n=settings.top_terms,
        centroids=km.centroids,
    )
    result = _build_result(run, METHOD_TFIDF, kept, coords, km, summaries, model.vocabulary)
    return AnalysisOutcome(result=result, diagnostics=run.diagnostics)


def _analyze_vectors(run: _Run, docs: List[Document], X: np.ndarray, k: Optional[int]) -> AnalysisOutcome:
    settings = run.settings
    n = len(docs)
    if n < 2:
        diag = run.note("input", "vectors", f"Need at least 2 documents, got {n}")
        return run.fail(diag, METHOD_VECTORS)

    try:
        coords = project_tsne(
            X,
            n_components=settings.n_components,
            iterations=settings.tsne_iterations,
            learning_rate=settings.tsne_learning_rate,
            early_exaggeration=settings.tsne_early_exaggeration,
            normalize_every=settings.tsne_normalize_every,
            rng=run.rng,
        )
    except NumericInstabilityError as exc:
        run.note_error(exc, "tsne")
        coords = project_mds(
            similarity_matrix(X),
            n_components=settings.n_components,
            iterations=settings.mds_iterations,
            learning_rate=settings.mds_learning_rate,
            rng=run.rng,
        )

    features = coords if settings.cluster_on == "coordinates" else X
    n_clusters = _resolve_k(run, n, k, features, settings.kmeans_vector_max_iterations)
    km = _cluster(run, features, n_clusters, settings.kmeans_vector_max_iterations)

    summaries = summarize_clusters(
        km.assignments,
        km.k,
        [doc.text for doc in docs],
        centroids=km.centroids,
    )
    result = _build_result(run, METHOD_VECTORS, docs, coords, km, summaries)
    return AnalysisOutcome(result=result, diagnostics=run.diagnostics)


def analyze(
    documents: Optional[Sequence[Any]],
    k: Optional[int] = None,
    *,
    settings: Optional[ClusteringSettings] = None,
    rng: RandomLike = None,
) -> AnalysisOutcome:
    """Cluster documents and lay them out in 2D (or 3D).

    Args:
        documents: Documents, raw records (dicts with ``content``/``text`` and
            optional ``id``/``vector``) or plain strings.
        k: Number of clusters; defaults to min(5, max(2, n // 10)), or a
            silhouette search when ``settings.auto_k`` is set.
        settings: Algorithm parameters (defaults from the environment).
        rng: Seed or Generator; falls back to ``settings.seed``.

    Returns:
        AnalysisOutcome whose ``result`` is always well-formed.

    Raises:
        InputError: ``documents`` is None.
    """
    if documents is None:
        raise InputError("No documents supplied", stage="input")

    settings = settings or load_settings()
    run = _Run(settings, make_rng(rng if rng is not None else settings.seed))

    if isinstance(documents, (str, bytes, dict)) or not hasattr(documents, "__iter__"):
        diag = run.note("input", "input", f"Expected a list of documents, got {type(documents).__name__}")
        return run.fail(diag, METHOD_TFIDF)

    docs = _coerce_documents(list(documents))
    if len(docs) > settings.max_documents:
        run.note(
            "input", "input",
            f"Truncated {len(docs)} documents to the first {settings.max_documents}",
        )
        docs = docs[: settings.max_documents]

    try:
        X = external_vectors(docs)
    except ExternalDataError as exc:
        run.note_error(exc, "vectors")
        X = None

    if X is not None:
        outcome = _analyze_vectors(run, docs, X, k)
    else:
        outcome = _analyze_tfidf(run, docs, k)

    if outcome.ok:
        logger.info(
            "Clustered %d documents into %d clusters (%s)",
            len(outcome.result.points), outcome.result.n_clusters, outcome.result.method,
        )
    return outcome

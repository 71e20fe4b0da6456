import numpy as np
import pytest

from textclusters.clustering import engine
from textclusters.clustering.engine import analyze, display_text, external_vectors, l2_normalize
from textclusters.config import load_settings
from textclusters.exceptions import ExternalDataError, InputError
from textclusters.models.document import Document


def _clusters(outcome):
    return [p.cluster for p in outcome.result.points]


def test_two_topics_are_separated(cat_quantum_docs):
    outcome = analyze(cat_quantum_docs, 2, rng=1)

    assert outcome.ok
    result = outcome.result
    assert result.method == "tfidf-mds"
    assert result.n_clusters == 2
    c = _clusters(outcome)
    assert c[0] == c[1]
    assert c[2] == c[3]
    assert c[0] != c[2]

    by_id = {s.cluster_id: s for s in result.clusters}
    assert "cat" in by_id[c[0]].key_terms
    assert "quantum" in by_id[c[2]].key_terms
    assert by_id[c[0]].size == 2


def test_points_are_finite_and_keep_ids(cat_quantum_docs):
    outcome = analyze(cat_quantum_docs, 2, rng=1)
    points = outcome.result.points
    assert [p.id for p in points] == ["cat-1", "cat-2", "q-1", "q-2"]
    assert all(np.isfinite([p.x, p.y]).all() for p in points)
    assert all(p.z is None for p in points)


def test_same_seed_same_result(cat_quantum_docs):
    a = analyze(cat_quantum_docs, 2, rng=9)
    b = analyze(cat_quantum_docs, 2, rng=9)
    assert [(p.x, p.y, p.cluster) for p in a.result.points] == \
        [(p.x, p.y, p.cluster) for p in b.result.points]


def test_seed_from_settings(cat_quantum_docs):
    settings = load_settings(seed=3)
    a = analyze(cat_quantum_docs, 2, settings=settings)
    b = analyze(cat_quantum_docs, 2, settings=settings)
    assert [p.x for p in a.result.points] == [p.x for p in b.result.points]


def test_none_input_raises():
    with pytest.raises(InputError):
        analyze(None)


@pytest.mark.parametrize("documents", [[], ["only one document about cats"], "not a list"])
def test_too_few_documents_gives_empty_result(documents):
    outcome = analyze(documents, rng=0)
    assert not outcome.ok
    assert outcome.error.kind == "input"
    assert outcome.result.points == []
    assert outcome.result.n_clusters == 0


def test_documents_without_terms_are_dropped(cat_quantum_docs):
    docs = [{"id": "stop", "content": "the and of it"}, {"id": "blank", "content": "   "}] + cat_quantum_docs
    outcome = analyze(docs, 2, rng=1)
    assert outcome.ok
    assert [p.id for p in outcome.result.points] == ["cat-1", "cat-2", "q-1", "q-2"]
    assert any(d.stage == "preprocess" for d in outcome.diagnostics)


def test_identical_documents_leave_an_empty_cluster():
    outcome = analyze(["cat on mat"] * 3, 2, rng=0)
    assert outcome.ok
    assert _clusters(outcome) == [0, 0, 0]
    sizes = [s.size for s in outcome.result.clusters]
    assert sizes == [3, 0]
    assert outcome.result.clusters[1].key_terms == ["Empty cluster"]


def test_k_larger_than_document_count_is_reduced(cat_quantum_docs):
    outcome = analyze(cat_quantum_docs, 10, rng=0)
    assert outcome.ok
    assert outcome.result.n_clusters == 4
    assert any(d.kind == "input" and d.stage == "kmeans" for d in outcome.diagnostics)


def test_default_k(cat_quantum_docs):
    outcome = analyze(cat_quantum_docs, rng=0)
    assert outcome.result.n_clusters == 2
    assert len(outcome.result.clusters) == 2


def test_auto_k_stays_in_range(cat_quantum_docs):
    outcome = analyze(cat_quantum_docs, settings=load_settings(auto_k=True), rng=0)
    assert outcome.ok
    assert 2 <= outcome.result.n_clusters <= 3


def test_cluster_on_coordinates(cat_quantum_docs):
    outcome = analyze(cat_quantum_docs, 2, settings=load_settings(cluster_on="coordinates"), rng=1)
    assert outcome.ok
    assert len(outcome.result.clusters[0].centroid) == 2


def test_three_dimensional_layout(cat_quantum_docs):
    outcome = analyze(cat_quantum_docs, 2, settings=load_settings(n_components=3), rng=1)
    assert all(p.z is not None for p in outcome.result.points)
    assert "z" in outcome.result.to_dataframe().columns


def test_max_documents_cap(cat_quantum_docs):
    outcome = analyze(cat_quantum_docs, 2, settings=load_settings(max_documents=3), rng=1)
    assert len(outcome.result.points) == 3
    assert any("Truncated" in d.message for d in outcome.diagnostics)


def test_display_text_truncation():
    long_text = "cats " * 60
    docs = [long_text, "quantum qubits and quantum hardware"]
    outcome = analyze(docs, 2, rng=0)
    point = outcome.result.points[0]
    assert point.text.endswith("...")
    assert len(point.text) == 103
    assert point.full_text == long_text
    assert display_text("short") == "short"


def test_vocabulary_is_capped_and_ordered():
    docs = [" ".join(f"word{i}x{j}" for j in range(60)) for i in range(3)]
    outcome = analyze(docs, 2, rng=0)
    vocab = outcome.result.vocabulary
    assert len(vocab) == 100
    assert vocab[0] == "word0x0"


def test_external_vectors_use_tsne(two_blobs, fast_settings):
    docs = [
        {"id": str(i), "content": f"document {i}", "vector": row.tolist()}
        for i, row in enumerate(two_blobs)
    ]
    outcome = analyze(docs, 2, settings=fast_settings)
    assert outcome.ok
    assert outcome.result.method == "vector-tsne"
    c = _clusters(outcome)
    assert len(set(c[:5])) == 1
    assert len(set(c[5:])) == 1
    assert c[0] != c[5]
    assert outcome.result.clusters[0].key_terms == ["document"]


def test_partial_vectors_fall_back_to_tfidf(cat_quantum_docs):
    docs = [dict(d) for d in cat_quantum_docs]
    docs[0]["vector"] = [0.1, 0.2]
    outcome = analyze(docs, 2, rng=1)
    assert outcome.ok
    assert outcome.result.method == "tfidf-mds"
    assert any(d.kind == "external_data" for d in outcome.diagnostics)


def test_external_vectors_validation():
    assert external_vectors([Document(id="a", text="x")]) is None
    with pytest.raises(ExternalDataError):
        external_vectors([Document(id="a", vector=[1.0]), Document(id="b", vector=[1.0, 2.0])])
    with pytest.raises(ExternalDataError):
        external_vectors([Document(id="a", vector=[float("nan")]), Document(id="b", vector=[1.0])])
    X = external_vectors([Document(id="a", vector=[1.0, 0.0]), Document(id="b", vector=[0.0, 1.0])])
    assert X.shape == (2, 2)


def test_l2_normalize_keeps_zero_rows():
    out = l2_normalize(np.array([[3.0, 4.0], [0.0, 0.0]]))
    np.testing.assert_allclose(out, [[0.6, 0.8], [0.0, 0.0]])


@pytest.mark.parametrize("seed", range(10))
def test_stemmed_topics_are_separated(seed):
    docs = ["the cat sat", "cats sat on mats", "quantum entanglement theory", "entangled quantum states"]
    outcome = analyze(docs, 2, rng=seed)

    assert outcome.ok
    result = outcome.result
    c = _clusters(outcome)
    assert c[0] == c[1]
    assert c[2] == c[3]
    assert c[0] != c[2]
    assert sum(s.size for s in result.clusters) == len(result.points)

    by_id = {s.cluster_id: s for s in result.clusters}
    assert "cat" in by_id[c[0]].key_terms
    assert "entangl" in by_id[c[2]].key_terms
    assert "quantum" in by_id[c[2]].key_terms


def test_vector_layout_is_centered_and_unit_scaled(two_blobs, fast_settings):
    docs = [{"id": str(i), "vector": row.tolist()} for i, row in enumerate(two_blobs)]
    outcome = analyze(docs, 2, settings=fast_settings)
    coords = np.array([[p.x, p.y] for p in outcome.result.points])
    np.testing.assert_allclose(coords.mean(axis=0), 0.0, atol=0.05)
    np.testing.assert_allclose(coords.std(axis=0), 1.0, atol=0.05)


def test_auto_k_uses_final_clustering_parameters(monkeypatch, cat_quantum_docs):
    seen = {}

    def fake_choose_k(features, **kwargs):
        seen.update(kwargs)
        return 2

    monkeypatch.setattr(engine, "choose_k", fake_choose_k)
    settings = load_settings(auto_k=True, kmeans_max_iterations=7, kmeans_n_init=3)
    outcome = analyze(cat_quantum_docs, settings=settings, rng=0)

    assert outcome.result.n_clusters == 2
    assert seen["max_iterations"] == 7
    assert seen["n_init"] == 3


def test_failure_diagnostic_carries_error_kind(cat_quantum_docs):
    docs = [dict(d) for d in cat_quantum_docs]
    docs[1]["vector"] = [1.0, float("inf")]
    outcome = analyze(docs, 2, rng=0)
    diag = next(d for d in outcome.diagnostics if d.kind == "external_data")
    assert diag.stage == "vectors"

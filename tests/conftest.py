import numpy as np
import pytest

from textclusters.config import load_settings


@pytest.fixture
def cat_quantum_docs():
    """Two topics with no shared vocabulary after preprocessing."""
    return [
        {"id": "cat-1", "content": "The cat sat on the mat with another cat"},
        {"id": "cat-2", "content": "A small cat sleeps on the warm mat"},
        {"id": "q-1", "content": "Quantum computers use qubits for quantum computation"},
        {"id": "q-2", "content": "Qubits enable quantum algorithms on quantum hardware"},
    ]


@pytest.fixture
def fast_settings():
    """Default settings with a short t-SNE run and a fixed seed."""
    return load_settings(tsne_iterations=200, seed=7)


@pytest.fixture
def two_blobs():
    """Ten 5-d points: five near the origin, five near (10, ..., 10)."""
    rng = np.random.default_rng(0)
    a = rng.normal(0.0, 0.1, size=(5, 5))
    b = rng.normal(10.0, 0.1, size=(5, 5))
    return np.vstack([a, b])

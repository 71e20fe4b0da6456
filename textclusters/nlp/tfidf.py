"""In-memory TF-IDF model with an explicit build/query split.

``TfidfCorpus`` collects documents and raw term counts; ``build()`` freezes it
into a ``TfidfModel`` that only answers queries. Documents are expected to be
preprocessed (space-separated stemmed tokens, see ``nlp.cleaner.preprocess``).

Weighting:
    tf(t, d)  = count(t, d) / len(d)
    idf(t)    = 1 + ln(N / (1 + df(t)))
    tfidf     = tf * idf

The idf form stays positive for every df <= N, so a term shared by the whole
corpus still contributes a (small) weight instead of vanishing.
"""

from __future__ import annotations

import math
from collections import Counter
from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping, Tuple

import numpy as np


class TfidfCorpus:
    """Append-only document collection (the build phase)."""

    def __init__(self) -> None:
        self._counts: List[Counter] = []
        self._lengths: List[int] = []
        self._df: Counter = Counter()
        # First-seen order gives the same axis mapping for the same corpus
        self._vocabulary: Dict[str, int] = {}

    def __len__(self) -> int:
        return len(self._counts)

    def add_document(self, text: str) -> int:
        """Append a document and update term statistics. Returns its index.

        Non-string or empty input is stored as an empty document: it keeps its
        index but contributes no terms.
        """
        tokens = text.split() if isinstance(text, str) else []
        counts = Counter(tokens)
        for term in counts:
            self._df[term] += 1
            if term not in self._vocabulary:
                self._vocabulary[term] = len(self._vocabulary)
        self._counts.append(counts)
        self._lengths.append(len(tokens))
        return len(self._counts) - 1

    def add_documents(self, texts: Iterable[str]) -> None:
        for text in texts:
            self.add_document(text)

    def build(self) -> "TfidfModel":
        """Freeze the corpus into an immutable, queryable model."""
        n_docs = len(self._counts)
        idf = {
            term: 1.0 + math.log(n_docs / (1.0 + df))
            for term, df in self._df.items()
        }
        weights: List[Mapping[str, float]] = []
        for counts, length in zip(self._counts, self._lengths):
            if length == 0:
                weights.append(MappingProxyType({}))
                continue
            weights.append(MappingProxyType({
                term: (count / length) * idf[term] for term, count in counts.items()
            }))
        vocabulary = tuple(sorted(self._vocabulary, key=self._vocabulary.__getitem__))
        return TfidfModel(weights, MappingProxyType(idf), vocabulary)


class TfidfModel:
    """Read-only TF-IDF weights for a built corpus (the query phase)."""

    def __init__(
        self,
        weights: List[Mapping[str, float]],
        idf: Mapping[str, float],
        vocabulary: Tuple[str, ...],
    ) -> None:
        self._weights = tuple(weights)
        self._idf = idf
        self._vocabulary = vocabulary
        self._index = MappingProxyType({term: i for i, term in enumerate(vocabulary)})

    @classmethod
    def from_texts(cls, texts: Iterable[str]) -> "TfidfModel":
        corpus = TfidfCorpus()
        corpus.add_documents(texts)
        return corpus.build()

    @property
    def n_documents(self) -> int:
        return len(self._weights)

    @property
    def vocabulary(self) -> Tuple[str, ...]:
        """All terms in stable first-seen order."""
        return self._vocabulary

    def idf(self, term: str) -> float:
        return self._idf.get(term, 0.0)

    def weight(self, term: str, doc_index: int) -> float:
        """TF-IDF score of ``term`` in a document; 0 when absent or out of range."""
        if not 0 <= doc_index < len(self._weights):
            return 0.0
        return self._weights[doc_index].get(term, 0.0)

    def terms_for(self, doc_index: int) -> List[Tuple[str, float]]:
        """Terms of a document sorted by descending weight (ties by term)."""
        if not 0 <= doc_index < len(self._weights):
            return []
        return sorted(self._weights[doc_index].items(), key=lambda kv: (-kv[1], kv[0]))

    def sparse_vector(self, doc_index: int) -> Dict[str, float]:
        if not 0 <= doc_index < len(self._weights):
            return {}
        return dict(self._weights[doc_index])

    def vector(self, doc_index: int) -> np.ndarray:
        """Dense vector sized to the vocabulary, in vocabulary order."""
        vec = np.zeros(len(self._vocabulary), dtype=float)
        if not 0 <= doc_index < len(self._weights):
            return vec
        for term, w in self._weights[doc_index].items():
            vec[self._index[term]] = w
        return vec

    def matrix(self) -> np.ndarray:
        """Dense (n_documents, vocabulary_size) matrix."""
        mat = np.zeros((len(self._weights), len(self._vocabulary)), dtype=float)
        for i, doc_weights in enumerate(self._weights):
            for term, w in doc_weights.items():
                mat[i, self._index[term]] = w
        return mat

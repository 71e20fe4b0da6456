"""Text normalization for clustering: tokenizing, stopword removal, stemming."""

from __future__ import annotations

import re
from typing import Any, List

from nltk.stem import PorterStemmer
from sklearn.feature_extraction.text import ENGLISH_STOP_WORDS

_TOKEN_RE = re.compile(r"[a-z0-9]+")
_WORD_SPLIT_RE = re.compile(r"[^a-z0-9_]+")
_WHITESPACE_RE = re.compile(r"\s+")

# Tokens this short carry no topical signal
MIN_TOKEN_LENGTH = 3

# Upper bound on stem-of-stem passes; Porter settles in one or two
_MAX_STEM_PASSES = 5

STOP_WORDS = frozenset(ENGLISH_STOP_WORDS)

_stemmer = PorterStemmer()


def clean_text(text: Any) -> str:
    """Normalize whitespace in raw text to a single line."""
    if not text or not isinstance(text, str):
        return ""
    text = re.sub(r"\r|\t|\u00A0", " ", text)
    return _WHITESPACE_RE.sub(" ", text).strip()


def tokenize(text: str) -> List[str]:
    """Split lowercased text into alphanumeric word tokens."""
    return _TOKEN_RE.findall(text)


def _keep(token: str) -> bool:
    return len(token) >= MIN_TOKEN_LENGTH and token not in STOP_WORDS


def _stem(token: str) -> str:
    """Stem until the stemmer leaves the token unchanged.

    Returns "" when no fixed point is reached, so every emitted token is
    stable under a second pass.
    """
    for _ in range(_MAX_STEM_PASSES):
        stemmed = _stemmer.stem(token)
        if stemmed == token:
            return token
        token = stemmed
    return ""


def preprocess(text: Any) -> str:
    """Lowercase, tokenize, drop stopwords and short tokens, stem, rejoin.

    Never raises: ``None``, non-strings and empty strings give "". The output
    is a fixed point, i.e. ``preprocess(preprocess(x)) == preprocess(x)``.
    """
    if not text or not isinstance(text, str):
        return ""

    lowered = _WHITESPACE_RE.sub(" ", text.lower()).strip()

    out: List[str] = []
    for token in tokenize(lowered):
        if not _keep(token):
            continue
        stemmed = _stem(token)
        # Stemming can shorten a token or land on a stopword ("others" -> "other")
        if stemmed and _keep(stemmed):
            out.append(stemmed)
    return " ".join(out)


def word_tokens(text: Any, min_length: int = 4) -> List[str]:
    """Raw lowercase word tokens of at least ``min_length`` characters.

    Used for keyword tallies when documents carry external vectors and no
    TF-IDF term data exists.
    """
    if not text or not isinstance(text, str):
        return []
    return [w for w in _WORD_SPLIT_RE.split(text.lower()) if len(w) >= min_length]

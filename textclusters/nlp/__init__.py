"""Text preprocessing and TF-IDF vectorization."""

from .cleaner import clean_text, preprocess, tokenize, word_tokens
from .tfidf import TfidfCorpus, TfidfModel

__all__ = [
    "clean_text",
    "preprocess",
    "tokenize",
    "word_tokens",
    "TfidfCorpus",
    "TfidfModel",
]

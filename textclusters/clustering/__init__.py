"""TF-IDF/MDS and vector/t-SNE document clustering."""

from .similarity import cosine_similarity, similarity_matrix
from .projector import project_mds, project_tsne
from .clusterer import KMeansResult, choose_k, default_k, kmeans
from .labeler import summarize_clusters
from .engine import analyze

__all__ = [
    "cosine_similarity",
    "similarity_matrix",
    "project_mds",
    "project_tsne",
    "KMeansResult",
    "choose_k",
    "default_k",
    "kmeans",
    "summarize_clusters",
    "analyze",
]

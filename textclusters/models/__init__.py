"""Pydantic data models for textclusters."""

from .document import Document, documents_from_records
from .cluster import (
    AnalysisOutcome,
    ClusteringResult,
    ClusterPoint,
    ClusterSummary,
    Diagnostic,
)

__all__ = [
    "Document",
    "documents_from_records",
    "AnalysisOutcome",
    "ClusteringResult",
    "ClusterPoint",
    "ClusterSummary",
    "Diagnostic",
]

"""Cluster data models."""

from __future__ import annotations

from typing import List, Optional

import pandas as pd
from pydantic import BaseModel, Field


class ClusterPoint(BaseModel):
    """One projected document, tagged with its cluster."""

    id: str
    text: str = ""
    full_text: str = ""
    x: float = 0.0
    y: float = 0.0
    z: Optional[float] = None
    cluster: int = 0


class ClusterSummary(BaseModel):
    """Information about a single cluster."""

    cluster_id: int
    size: int = 0
    key_terms: List[str] = Field(default_factory=list)
    example: str = ""
    samples: List[str] = Field(default_factory=list)
    centroid: List[float] = Field(default_factory=list)


class ClusteringResult(BaseModel):
    """Full clustering result: scatter points plus per-cluster summaries."""

    method: str = ""
    n_clusters: int = 0
    points: List[ClusterPoint] = Field(default_factory=list)
    clusters: List[ClusterSummary] = Field(default_factory=list)
    vocabulary: List[str] = Field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.points

    def to_dataframe(self) -> pd.DataFrame:
        """Flatten the points into a DataFrame for plotting or export."""
        columns = ["id", "x", "y", "cluster", "text"]
        if any(p.z is not None for p in self.points):
            columns.insert(3, "z")
        rows = [
            {
                "id": p.id,
                "x": p.x,
                "y": p.y,
                "z": p.z,
                "cluster": p.cluster,
                "text": p.text,
            }
            for p in self.points
        ]
        return pd.DataFrame(rows, columns=columns)


class Diagnostic(BaseModel):
    """A recovered failure: what went wrong, where, and what was substituted."""

    kind: str
    stage: str = ""
    message: str = ""


class AnalysisOutcome(BaseModel):
    """Result of one analysis run.

    ``result`` is always a well-formed ClusteringResult (possibly empty).
    ``error`` is set when no clustering could be produced; ``diagnostics``
    lists every local fallback taken along the way.
    """

    result: ClusteringResult = Field(default_factory=ClusteringResult)
    error: Optional[Diagnostic] = None
    diagnostics: List[Diagnostic] = Field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.error is None

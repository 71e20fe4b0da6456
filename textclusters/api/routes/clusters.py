"""Cluster endpoints: cluster posted documents, cluster the bundled sample."""

from __future__ import annotations

import asyncio
from functools import partial
from typing import Any, Dict, List, Literal, Optional, Union

from fastapi import APIRouter, HTTPException, Query, Request
from pydantic import BaseModel, Field

from ...clustering.engine import analyze
from ...config import DEFAULT_SAMPLE_DATA, ClusteringSettings, load_settings

router = APIRouter(tags=["clusters"])


class ClusterRequest(BaseModel):
    documents: List[Union[str, Dict[str, Any]]]
    k: Optional[int] = Field(None, ge=1, le=100)
    seed: Optional[int] = None
    auto_k: Optional[bool] = None
    cluster_on: Optional[Literal["vectors", "coordinates"]] = None
    n_components: Optional[Literal[2, 3]] = None


def _settings_for(request: Request, **overrides) -> ClusteringSettings:
    base = getattr(request.app.state, "settings", None) or load_settings()
    update = {k: v for k, v in overrides.items() if v is not None}
    return base.model_copy(update=update)


def _compute_clusters(
    documents: List[Any],
    k: Optional[int],
    settings: ClusteringSettings,
) -> Dict[str, Any]:
    """Run the analysis synchronously (runs in thread pool)."""
    outcome = analyze(documents, k, settings=settings)
    return outcome.model_dump()


@router.post("/clusters")
async def cluster_documents(request: Request, body: ClusterRequest) -> Dict[str, Any]:
    """Cluster the posted documents.

    Degenerate input (too few documents, no usable terms) is not an HTTP
    error: the response carries an empty result and an ``error`` entry.
    """
    settings = _settings_for(
        request,
        seed=body.seed,
        auto_k=body.auto_k,
        cluster_on=body.cluster_on,
        n_components=body.n_components,
    )

    loop = asyncio.get_event_loop()
    return await loop.run_in_executor(
        None, partial(_compute_clusters, body.documents, body.k, settings)
    )


@router.get("/clusters/sample")
async def cluster_sample(
    request: Request,
    k: Optional[int] = Query(None, ge=1, le=100),
    seed: Optional[int] = Query(None),
) -> Dict[str, Any]:
    """Cluster the bundled sample documents."""
    from ...pipeline import load_documents

    if not DEFAULT_SAMPLE_DATA.exists():
        raise HTTPException(status_code=404, detail="Sample documents not found")

    documents = load_documents(str(DEFAULT_SAMPLE_DATA))
    settings = _settings_for(request, seed=seed)

    loop = asyncio.get_event_loop()
    return await loop.run_in_executor(
        None, partial(_compute_clusters, documents, k, settings)
    )

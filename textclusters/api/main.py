"""FastAPI application entry point."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .. import __version__
from ..config import load_settings

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle events."""
    # Environment defaults are resolved once; requests override per call
    app.state.settings = load_settings()
    logger.info(
        "textclusters API ready (max_documents=%d, cluster_on=%s)",
        app.state.settings.max_documents, app.state.settings.cluster_on,
    )

    yield

    logger.info("Shutting down textclusters API.")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="textclusters API",
        description="Document clustering with TF-IDF/MDS and vector/t-SNE layouts.",
        version=__version__,
        lifespan=lifespan,
    )

    # CORS - allow local front-end dev servers
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[
            "http://localhost:5173",
            "http://localhost:3000",
            "http://127.0.0.1:5173",
            "http://127.0.0.1:3000",
        ],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    from .routes import clusters
    app.include_router(clusters.router, prefix="/api")

    @app.get("/")
    async def root():
        """Root endpoint with API information."""
        return {
            "name": "textclusters API",
            "version": __version__,
            "status": "running",
            "docs": "/docs",
            "health": "/api/health",
            "endpoints": {
                "clusters": "/api/clusters",
            },
        }

    @app.get("/api/health")
    async def health():
        return {"status": "ok", "version": __version__}

    return app


# For uvicorn direct run
app = create_app()

"""
Configuration settings for textclusters.

Every value has a working default; nothing needs to be configured to run the
engine. Defaults can be overridden through TEXTCLUSTERS_* environment
variables or a .env file in the project root.
"""

import os
from pathlib import Path
from typing import Literal, Optional

from dotenv import load_dotenv
from pydantic import BaseModel

# Load environment variables from .env file
# Look for .env file in project root (parent of textclusters/)
_project_root = Path(__file__).parent.parent
_env_path = _project_root / ".env"
if _env_path.exists():
    load_dotenv(dotenv_path=_env_path)

# ===================
# Project Paths
# ===================

PROJECT_ROOT = _project_root
DATA_DIR = PROJECT_ROOT / "data"

DEFAULT_SAMPLE_DATA = DATA_DIR / "sample_documents.json"

# ===================
# Logging
# ===================

LOG_LEVEL = os.getenv("TEXTCLUSTERS_LOG_LEVEL", "INFO")


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return int(raw)


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return float(raw)


def _env_optional_int(name: str) -> Optional[int]:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return None
    return int(raw)


# ===================
# Algorithm Defaults
# ===================

# Similarity-driven (MDS) projector
MDS_ITERATIONS = _env_int("TEXTCLUSTERS_MDS_ITERATIONS", 50)
MDS_LEARNING_RATE = _env_float("TEXTCLUSTERS_MDS_LEARNING_RATE", 0.1)

# Vector-driven (t-SNE) projector
TSNE_ITERATIONS = _env_int("TEXTCLUSTERS_TSNE_ITERATIONS", 1000)
TSNE_LEARNING_RATE = _env_float("TEXTCLUSTERS_TSNE_LEARNING_RATE", 100.0)
TSNE_EARLY_EXAGGERATION = _env_float("TEXTCLUSTERS_TSNE_EARLY_EXAGGERATION", 12.0)
TSNE_NORMALIZE_EVERY = _env_int("TEXTCLUSTERS_TSNE_NORMALIZE_EVERY", 50)

# k-means iteration caps (TF-IDF path / external-vector path)
KMEANS_MAX_ITERATIONS = _env_int("TEXTCLUSTERS_KMEANS_MAX_ITERATIONS", 10)
KMEANS_VECTOR_MAX_ITERATIONS = _env_int("TEXTCLUSTERS_KMEANS_VECTOR_MAX_ITERATIONS", 50)
KMEANS_N_INIT = _env_int("TEXTCLUSTERS_KMEANS_N_INIT", 10)

# Cluster summaries
TOP_TERMS = _env_int("TEXTCLUSTERS_TOP_TERMS", 5)
DISPLAY_CHARS = _env_int("TEXTCLUSTERS_DISPLAY_CHARS", 100)

# Both projectors are quadratic in document count
MAX_DOCUMENTS = _env_int("TEXTCLUSTERS_MAX_DOCUMENTS", 500)

# Fixed seed for reproducible runs (unset -> fresh seed per invocation)
SEED = _env_optional_int("TEXTCLUSTERS_SEED")


class ClusteringSettings(BaseModel):
    """Tunable parameters for one analysis run.

    The learning rates and iteration counts are empirical defaults; they are
    exposed here rather than hard-coded so callers can tune them per corpus.
    """

    n_components: int = 2
    mds_iterations: int = MDS_ITERATIONS
    mds_learning_rate: float = MDS_LEARNING_RATE
    tsne_iterations: int = TSNE_ITERATIONS
    tsne_learning_rate: float = TSNE_LEARNING_RATE
    tsne_early_exaggeration: float = TSNE_EARLY_EXAGGERATION
    tsne_normalize_every: int = TSNE_NORMALIZE_EVERY
    kmeans_max_iterations: int = KMEANS_MAX_ITERATIONS
    kmeans_vector_max_iterations: int = KMEANS_VECTOR_MAX_ITERATIONS
    kmeans_n_init: int = KMEANS_N_INIT
    top_terms: int = TOP_TERMS
    display_chars: int = DISPLAY_CHARS
    max_documents: int = MAX_DOCUMENTS
    auto_k: bool = False
    max_k: int = 12
    cluster_on: Literal["vectors", "coordinates"] = "vectors"
    seed: Optional[int] = SEED


def load_settings(**overrides) -> ClusteringSettings:
    """Build settings from the environment defaults plus per-call overrides.

    ``None`` overrides are ignored so CLI/API callers can pass optional
    arguments straight through.
    """
    values = {k: v for k, v in overrides.items() if v is not None}
    return ClusteringSettings(**values)

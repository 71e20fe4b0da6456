"""
textclusters Pipeline - Main Entry Point

This module provides the primary interface for:
- Loading documents from JSON, JSONL or CSV files
- Clustering them and printing / exporting the result
- Running the FastAPI backend

Example usage:
    # Cluster the bundled sample documents
    python -m textclusters.pipeline cluster

    # Cluster a file into 4 groups, reproducibly, and export the points
    python -m textclusters.pipeline cluster --data docs.json --k 4 --seed 7 --out points.csv

    # Start the FastAPI backend
    python -m textclusters.pipeline serve --port 8000
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, List, Optional

import pandas as pd

from .config import DEFAULT_SAMPLE_DATA, LOG_LEVEL, load_settings
from .models.cluster import AnalysisOutcome

logger = logging.getLogger(__name__)


def load_documents(path: Optional[str] = None) -> List[Any]:
    """Load document records from a file.

    Args:
        path: Path to a .json, .jsonl or .csv file. If None, uses the
            bundled sample data.

    Returns:
        List of records (dicts with ``content`` or ``text``, optional ``id``
        and ``vector``) or plain strings.

    The JSON can be either:
    - A list of documents directly
    - A dict with a 'documents' key containing the list

    Raises:
        FileNotFoundError: the file does not exist.
        ValueError: the file does not hold a document list.
    """
    data_path = Path(path) if path else DEFAULT_SAMPLE_DATA

    if not data_path.exists():
        raise FileNotFoundError(f"Document file not found: {data_path}")

    logger.info("Loading documents from %s", data_path)
    suffix = data_path.suffix.lower()
    if suffix == ".csv":
        df = pd.read_csv(data_path)
        if "content" not in df.columns and "text" not in df.columns:
            raise ValueError("CSV must have a 'content' or 'text' column")
        documents: List[Any] = df.fillna("").to_dict(orient="records")
    elif suffix == ".jsonl":
        with open(data_path, "r", encoding="utf-8") as f:
            documents = [json.loads(line) for line in f if line.strip()]
    else:
        with open(data_path, "r", encoding="utf-8") as f:
            data = json.load(f)
        # Handle both list and dict with 'documents' key
        if isinstance(data, list):
            documents = data
        elif isinstance(data, dict) and "documents" in data:
            documents = data["documents"]
        else:
            raise ValueError("JSON must be a list of documents or a dict with 'documents' key")

    logger.info("Loaded %d documents", len(documents))
    return documents


def _print_outcome(outcome: AnalysisOutcome) -> None:
    result = outcome.result
    for diag in outcome.diagnostics:
        print(f"  [{diag.kind}] {diag.stage}: {diag.message}")

    if not outcome.ok:
        print(f"\nNo clustering produced: {outcome.error.message}")
        return

    print(f"\n{len(result.points)} documents, {result.n_clusters} clusters ({result.method})\n")
    for summary in result.clusters:
        print(f"[{summary.cluster_id}] {summary.size} documents: {', '.join(summary.key_terms)}")
        if summary.example:
            example = summary.example[:120]
            print(f"    e.g. {example}{'...' if len(summary.example) > 120 else ''}")
    print()


def cluster(
    data_path: Optional[str] = None,
    k: Optional[int] = None,
    *,
    seed: Optional[int] = None,
    auto_k: bool = False,
    n_components: int = 2,
    cluster_on: Optional[str] = None,
    out: Optional[str] = None,
    as_json: bool = False,
) -> AnalysisOutcome:
    """Cluster documents from a file and report the result.

    Args:
        data_path: Document file (default: data/sample_documents.json).
        k: Number of clusters (default: derived from the document count).
        seed: Seed for reproducible layouts and clusterings.
        auto_k: Pick k by silhouette score when ``k`` is not given.
        n_components: 2 or 3 output dimensions.
        cluster_on: "vectors" or "coordinates".
        out: Optional CSV path for the projected points.
        as_json: Print the full outcome as JSON instead of a summary.

    Returns:
        The AnalysisOutcome.
    """
    from .clustering.engine import analyze

    documents = load_documents(data_path)
    settings = load_settings(
        seed=seed,
        auto_k=auto_k or None,
        n_components=n_components,
        cluster_on=cluster_on,
    )
    outcome = analyze(documents, k, settings=settings)

    if as_json:
        print(outcome.model_dump_json(indent=2))
    else:
        _print_outcome(outcome)

    if out and outcome.ok:
        df = outcome.result.to_dataframe()
        df.to_csv(out, index=False)
        print(f"Saved {len(df)} points to {out}")

    return outcome


def serve(port: int = 8000, reload: bool = False) -> None:
    """Start the FastAPI backend server.

    Args:
        port: Port to run on
        reload: Enable auto-reload for development
    """
    try:
        import uvicorn
    except ImportError:
        print("Error: uvicorn not installed. Run: pip install 'textclusters[api]'")
        sys.exit(1)

    print(f"Starting textclusters API on http://localhost:{port}")
    uvicorn.run(
        "textclusters.api.main:app",
        host="0.0.0.0",
        port=port,
        reload=reload,
    )


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="textclusters - Document clustering toolkit",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Cluster the bundled sample documents
  python -m textclusters.pipeline cluster

  # Choose k automatically and export a 3-D layout
  python -m textclusters.pipeline cluster --data docs.jsonl --auto-k --dims 3 --out points.csv

  # Start FastAPI backend
  python -m textclusters.pipeline serve
        """,
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Cluster command
    cluster_parser = subparsers.add_parser("cluster", help="Cluster documents from a file")
    cluster_parser.add_argument(
        "--data", "-d", type=str, default=None,
        help="Path to JSON/JSONL/CSV document file (default: data/sample_documents.json)",
    )
    cluster_parser.add_argument("--k", "-k", type=int, default=None, help="Number of clusters")
    cluster_parser.add_argument("--seed", "-s", type=int, default=None, help="Random seed")
    cluster_parser.add_argument("--auto-k", action="store_true", help="Choose k by silhouette score")
    cluster_parser.add_argument("--dims", type=int, choices=[2, 3], default=2, help="Output dimensions (default: 2)")
    cluster_parser.add_argument(
        "--cluster-on", choices=["vectors", "coordinates"], default=None,
        help="Cluster the document vectors or the projected coordinates",
    )
    cluster_parser.add_argument("--out", "-o", type=str, default=None, help="Write points to this CSV file")
    cluster_parser.add_argument("--json", action="store_true", help="Print the full result as JSON")

    # FastAPI serve command
    serve_parser = subparsers.add_parser("serve", help="Start FastAPI backend")
    serve_parser.add_argument("--port", "-p", type=int, default=8000, help="Port (default: 8000)")
    serve_parser.add_argument("--reload", action="store_true", help="Enable auto-reload")

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command is None:
        parser.print_help()
        return 0

    try:
        if args.command == "cluster":
            outcome = cluster(
                args.data,
                args.k,
                seed=args.seed,
                auto_k=args.auto_k,
                n_components=args.dims,
                cluster_on=args.cluster_on,
                out=args.out,
                as_json=args.json,
            )
            return 0 if outcome.ok else 2
        elif args.command == "serve":
            serve(port=args.port, reload=args.reload)
    except KeyboardInterrupt:
        print("\nInterrupted.")
        return 0
    except Exception as e:
        logger.debug("Command failed", exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())

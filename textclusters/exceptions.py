"""Error taxonomy for the clustering engine.

Every error carries a ``kind`` so the engine can turn a recovered failure into
a :class:`~textclusters.models.cluster.Diagnostic` without inspecting types.
"""

from __future__ import annotations


class TextClustersError(Exception):
    """Base class for all textclusters errors."""

    kind = "error"

    def __init__(self, message: str, *, stage: str = ""):
        super().__init__(message)
        self.message = message
        self.stage = stage


class InputError(TextClustersError):
    """Missing or invalid documents, or too few documents for the requested k."""

    kind = "input"


class NumericInstabilityError(TextClustersError):
    """NaN/Infinity produced by degenerate vectors or near-zero norms."""

    kind = "numeric"


class ExternalDataError(TextClustersError):
    """Malformed or partially present externally supplied vectors."""

    kind = "external_data"

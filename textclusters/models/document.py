"""Document input model."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict


class Document(BaseModel):
    """A single free-text record, optionally carrying a precomputed embedding."""

    model_config = ConfigDict(frozen=True)

    id: str
    text: str = ""
    vector: Optional[List[float]] = None

    @property
    def has_vector(self) -> bool:
        return bool(self.vector)

    @classmethod
    def from_record(cls, record: Any, index: int = 0) -> "Document":
        """Create a Document from an uploaded record (dict or plain string).

        The text comes from ``content`` or ``text``; the identifier from
        ``id`` or ``_id`` and falls back to the record's position.
        """
        if isinstance(record, str):
            return cls(id=str(index), text=record)
        if not isinstance(record, dict):
            return cls(id=str(index), text="")

        text = record.get("content") or record.get("text") or ""
        if not isinstance(text, str):
            text = str(text)

        doc_id = record.get("id", record.get("_id"))
        vector = record.get("vector")
        return cls(
            id=str(doc_id) if doc_id is not None else str(index),
            text=text,
            vector=_coerce_vector(vector),
        )


def _coerce_vector(value: Any) -> Optional[List[float]]:
    """Best-effort conversion of an external vector field.

    Anything that is not a list of numbers is kept as ``None``; the engine
    decides later whether the set of vectors is usable.
    """
    if value is None or isinstance(value, (str, bytes, dict)):
        return None
    try:
        return [float(v) for v in value]
    except (TypeError, ValueError):
        return None


def documents_from_records(records: List[Dict[str, Any]]) -> List[Document]:
    """Map a list of raw records to Documents, keeping their order."""
    return [Document.from_record(rec, i) for i, rec in enumerate(records)]

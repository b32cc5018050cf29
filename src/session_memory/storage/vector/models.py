"""
Models for vector storage.

Defines the data structures exchanged with vector index implementations.
Payloads are validated into MemoryPayload at the index boundary, so nothing
downstream reads raw payload dictionaries.
"""

from typing import List, Optional

from pydantic import BaseModel

from session_memory.models import MemoryPayload


class VectorPoint(BaseModel):
    """A point to write: id, embedding and payload."""

    id: str
    vector: List[float]
    payload: MemoryPayload


class IndexedPoint(BaseModel):
    """A point read back from the index (vectors are never returned)."""

    id: str
    payload: MemoryPayload


class ScoredPoint(IndexedPoint):
    """A search hit."""

    score: float


class ScrollPage(BaseModel):
    """One page of a scroll. ``next_cursor`` is None when there is no more data."""

    points: List[IndexedPoint]
    next_cursor: Optional[str] = None

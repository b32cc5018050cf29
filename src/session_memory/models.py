from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field, model_validator

MemoryType = Literal["basic", "interact", "plan"]


class Session(BaseModel):
    """A named container scoping a set of memories and one vector collection."""

    id: str = Field(..., description="Session id, also the name of its vector collection")
    name: str
    tags: List[str] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=datetime.now)


class MemoryPayload(BaseModel):
    """Payload stored with each point in a session's vector collection."""

    content: str
    memory_type: MemoryType = "basic"
    importance: Optional[int] = Field(default=None, ge=1, le=10)
    created_at: str  # ISO format timestamp
    document_id: Optional[str] = Field(
        default=None, description="Key of the canonical record in the document store"
    )


class MemoryRecord(BaseModel):
    """Canonical memory record kept in the document store (dual-write topology)."""

    id: str = Field(..., description="Document-store key")
    memory_id: str = Field(..., description="Id of the point in the vector index")
    session_id: str
    content: str
    memory_type: MemoryType = "basic"
    importance: Optional[int] = Field(default=None, ge=1, le=10)
    created_at: datetime = Field(default_factory=datetime.now)


class Memory(BaseModel):
    """A memory as returned to callers."""

    id: str
    session_id: str = Field(..., description="Back-reference for lookup only")
    content: str
    memory_type: MemoryType = "basic"
    importance: Optional[int] = Field(default=None, ge=1, le=10)
    created_at: datetime
    document_id: Optional[str] = None


class SearchResult(BaseModel):
    """Ranked search result; ``scores[i]`` is the similarity of ``memories[i]``."""

    memories: List[Memory] = Field(default_factory=list)
    scores: List[float] = Field(default_factory=list)

    @model_validator(mode="after")
    def _check_aligned(self) -> "SearchResult":
        if len(self.memories) != len(self.scores):
            raise ValueError(
                f"memories and scores must be index-aligned "
                f"({len(self.memories)} != {len(self.scores)})"
            )
        return self

    def __len__(self) -> int:
        return len(self.memories)


class MemoryPage(BaseModel):
    """One page of a chronological listing. ``next_cursor`` is None at the end."""

    memories: List[Memory] = Field(default_factory=list)
    next_cursor: Optional[str] = None

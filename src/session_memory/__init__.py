"""
session-memory: Session-scoped semantic memory over a vector index and a document store.

Core components:
- sessions: Session lifecycle (document record + one vector collection per session)
- memory_coordinator: Ingestion, similarity search, chronological listing, deletion
- intelligence: Importance scoring of new memories
- embeddings: Batch text embedding protocol and OpenAI adapter
- storage: Protocol abstractions for document stores and vector indexes
- models: Core data models (Session, Memory, SearchResult, etc.)
"""

__version__ = "0.1.0"

from session_memory.config import MemoryConfig
from session_memory.consistency import OrphanTracker
from session_memory.errors import (
    CollectionExistsError,
    ConsistencyError,
    ConsistencyWarning,
    IndexNotReadyError,
    MemoryServiceError,
    NotFoundError,
    OrphanedCollectionError,
    ProviderError,
    ScoreParseError,
    StoreError,
    ValidationError,
    VectorIndexError,
)
from session_memory.factory import MemorySystem, create_memory_system
from session_memory.memory_coordinator import MemoryCoordinator
from session_memory.models import Memory, MemoryPage, SearchResult, Session
from session_memory.sessions import SessionLifecycleManager

__all__ = [
    "__version__",
    # Models
    "Session",
    "Memory",
    "SearchResult",
    "MemoryPage",
    # Components
    "MemoryConfig",
    "SessionLifecycleManager",
    "MemoryCoordinator",
    "OrphanTracker",
    "MemorySystem",
    "create_memory_system",
    # Errors
    "MemoryServiceError",
    "ValidationError",
    "NotFoundError",
    "ProviderError",
    "ScoreParseError",
    "StoreError",
    "ConsistencyError",
    "VectorIndexError",
    "CollectionExistsError",
    "IndexNotReadyError",
    "OrphanedCollectionError",
    "ConsistencyWarning",
]

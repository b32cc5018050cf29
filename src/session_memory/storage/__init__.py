"""
Storage protocols for sessions and memories.

Provides protocol definitions for the document store and the vector index.
Implementations can use various backends (Qdrant, PostgreSQL, SQLite,
in-memory, etc.) as long as they satisfy the protocol interface.
"""

from session_memory.storage.protocols import MemoryRecordStore, SessionStore, VectorIndex

__all__ = [
    "SessionStore",
    "MemoryRecordStore",
    "VectorIndex",
]

# Vector index implementations
try:
    from session_memory.storage.vector.memory import InMemoryVectorIndex  # noqa: F401

    __all__.append("InMemoryVectorIndex")
except ImportError:
    pass

try:
    from session_memory.storage.vector.qdrant import QdrantVectorIndex  # noqa: F401

    __all__.append("QdrantVectorIndex")
except ImportError:
    pass

# Document store implementations
try:
    from session_memory.storage.documents.memory import (  # noqa: F401
        InMemoryMemoryRecordStore,
        InMemorySessionStore,
    )

    __all__.extend(["InMemorySessionStore", "InMemoryMemoryRecordStore"])
except ImportError:
    pass

try:
    from session_memory.storage.documents.sqlalchemy import (  # noqa: F401
        SQLAlchemyMemoryRecordStore,
        SQLAlchemySessionStore,
    )

    __all__.extend(["SQLAlchemySessionStore", "SQLAlchemyMemoryRecordStore"])
except ImportError:
    pass

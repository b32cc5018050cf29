"""Shared fixtures: a deterministic keyword embedder and in-memory backends."""

import re
import zlib
from typing import List

import pytest

from session_memory.config import MemoryConfig
from session_memory.consistency import OrphanTracker
from session_memory.embeddings import Embedding
from session_memory.memory_coordinator import MemoryCoordinator
from session_memory.sessions import SessionLifecycleManager
from session_memory.storage.documents.memory import (
    InMemoryMemoryRecordStore,
    InMemorySessionStore,
)
from session_memory.storage.vector.memory import InMemoryVectorIndex

VECTOR_SIZE = 8

# Concept words map to dedicated dimensions; every other word adds a little noise
CONCEPTS = {
    "name": 0,
    "may": 0,
    "age": 1,
    "old": 1,
    "years": 1,
    "nationality": 2,
    "national": 2,
    "descent": 2,
    "german": 2,
    "japanese": 2,
    "pizza": 3,
    "food": 3,
}
NOISE_DIMS = range(4, VECTOR_SIZE)


class KeywordEmbedding:
    """
    Bag-of-words embedder for tests.

    Returns the batch in reverse order (with correct indexes) so callers
    that trust response order get caught.
    """

    def __init__(self, dimension: int = VECTOR_SIZE):
        self._dimension = dimension
        self.calls: List[List[str]] = []

    @property
    def dimension(self) -> int:
        return self._dimension

    @property
    def model_name(self) -> str:
        return "keyword-test"

    def vector(self, text: str) -> List[float]:
        vector = [0.0] * self._dimension
        for word in re.findall(r"[a-z]+", text.lower()):
            if word in CONCEPTS:
                vector[CONCEPTS[word]] += 1.0
            else:
                vector[NOISE_DIMS[zlib.crc32(word.encode()) % len(NOISE_DIMS)]] += 0.1
        return vector

    async def embed(self, texts: List[str]) -> List[Embedding]:
        self.calls.append(list(texts))
        embeddings = [Embedding(index=i, vector=self.vector(text)) for i, text in enumerate(texts)]
        return list(reversed(embeddings))


@pytest.fixture
def config():
    """Config sized for the keyword embedder, no score threshold."""
    return MemoryConfig(vector_size=VECTOR_SIZE, search_score_threshold=None, _env_file=None)


@pytest.fixture
def embedder():
    return KeywordEmbedding()


@pytest.fixture
def vector_index():
    return InMemoryVectorIndex()


@pytest.fixture
def session_store():
    return InMemorySessionStore()


@pytest.fixture
def memory_records():
    return InMemoryMemoryRecordStore()


@pytest.fixture
def orphans():
    return OrphanTracker()


@pytest.fixture
def session_manager(session_store, vector_index, config, memory_records, orphans):
    """Session manager in the dual-write topology."""
    return SessionLifecycleManager(
        session_store, vector_index, config, memory_records=memory_records, orphans=orphans
    )


@pytest.fixture
def coordinator(session_store, vector_index, embedder, config, memory_records, orphans):
    """Coordinator in the dual-write topology."""
    return MemoryCoordinator(
        session_store, vector_index, embedder, config, memory_records=memory_records, orphans=orphans
    )


@pytest.fixture
def payload_coordinator(session_store, vector_index, embedder, config, orphans):
    """Coordinator in the payload-only topology."""
    return MemoryCoordinator(session_store, vector_index, embedder, config, orphans=orphans)

"""Tests for create_memory_system wiring."""

from types import SimpleNamespace
from unittest.mock import AsyncMock, Mock

import pytest
from sqlalchemy import create_engine

from session_memory.config import MemoryConfig
from session_memory.factory import create_memory_system
from session_memory.storage.documents.sqlalchemy import SQLAlchemyMemoryRecordStore
from session_memory.storage.vector.memory import InMemoryVectorIndex


@pytest.fixture
def engine():
    return create_engine("sqlite:///:memory:")


@pytest.mark.asyncio
async def test_dual_write_system_end_to_end(config, engine, embedder):
    system = create_memory_system(
        config, engine=engine, vector_index=InMemoryVectorIndex(), embedding=embedder
    )

    assert isinstance(system.memories.memory_records, SQLAlchemyMemoryRecordStore)
    assert system.sessions.memory_records is system.memories.memory_records
    assert system.sessions.orphans is system.memories.orphans is system.orphans
    assert system.memories.annotator is None

    session = await system.sessions.create_session("May")
    ids = await system.memories.add_memories(session.id, ["My name is May.", "I am 14 years old."])
    result = await system.memories.search(session.id, "your age")

    assert result.memories[0].id == ids[1]
    assert result.memories[0].document_id is not None

    await system.sessions.delete_session(session.id)
    assert system.memories.memory_records.find_by_ids(
        [memory.document_id for memory in result.memories]
    ) == []

    metrics = system.get_metrics()
    assert metrics["sessions_created_count"] == 1
    assert metrics["memories_added_count"] == 2
    await system.close()


@pytest.mark.asyncio
async def test_payload_only_system(engine, embedder):
    config = MemoryConfig(vector_size=8, dual_write=False, _env_file=None)

    system = create_memory_system(
        config, engine=engine, vector_index=InMemoryVectorIndex(), embedding=embedder
    )

    assert system.memories.memory_records is None
    assert system.sessions.memory_records is None


def test_dimension_mismatch_is_rejected(engine, embedder):
    config = MemoryConfig(vector_size=1536, _env_file=None)

    with pytest.raises(ValueError, match="vector_size"):
        create_memory_system(
            config, engine=engine, vector_index=InMemoryVectorIndex(), embedding=embedder
        )


@pytest.mark.asyncio
async def test_importance_scoring_uses_given_provider(engine, embedder):
    config = MemoryConfig(vector_size=8, score_importance=True, _env_file=None)
    llm_provider = Mock()
    llm_provider.chat = AsyncMock(return_value=SimpleNamespace(content="4, 9"))

    system = create_memory_system(
        config,
        engine=engine,
        vector_index=InMemoryVectorIndex(),
        embedding=embedder,
        llm_provider=llm_provider,
    )
    session = await system.sessions.create_session("May")
    ids = await system.memories.add_memories(session.id, ["My name is May.", "I am 14 years old."])

    assert system.memories.annotator is not None
    assert (await system.memories.get_memory(session.id, ids[1])).importance == 9
    llm_provider.chat.assert_awaited_once()


def test_default_production_components(engine, monkeypatch):
    pytest.importorskip("openai")
    pytest.importorskip("qdrant_client")
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test-key-for-testing")

    from session_memory.embeddings import OpenAIEmbedding
    from session_memory.storage.vector.qdrant import QdrantVectorIndex

    system = create_memory_system(MemoryConfig(_env_file=None), engine=engine)

    assert isinstance(system.vector_index, QdrantVectorIndex)
    assert isinstance(system.memories.embedding, OpenAIEmbedding)
    assert system.memories.embedding.dimension == 1536

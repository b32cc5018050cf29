"""
Wiring for the production stack.

Builds the SQLAlchemy document stores, the Qdrant vector index, the OpenAI
embedder and (optionally) the importance annotator from one MemoryConfig, and
hands them to the SessionLifecycleManager and MemoryCoordinator explicitly.
Any component can be passed in to replace the default one.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from casual_llm import LLMProvider, ModelConfig, Provider, create_provider
from sqlalchemy import Engine, create_engine

from session_memory.config import MemoryConfig
from session_memory.consistency import OrphanTracker
from session_memory.embeddings import TextEmbedding
from session_memory.embeddings.openai_embedding import OpenAIEmbedding
from session_memory.intelligence import ImportanceAnnotator, LLMCompletionProvider
from session_memory.memory_coordinator import MemoryCoordinator
from session_memory.sessions import SessionLifecycleManager
from session_memory.storage.documents.sqlalchemy import (
    SQLAlchemyMemoryRecordStore,
    SQLAlchemySessionStore,
)
from session_memory.storage.protocols import VectorIndex
from session_memory.storage.vector.qdrant import QdrantVectorIndex

logger = logging.getLogger(__name__)


@dataclass
class MemorySystem:
    """The wired components. ``sessions`` and ``memories`` are the public entry points."""

    config: MemoryConfig
    sessions: SessionLifecycleManager
    memories: MemoryCoordinator
    vector_index: VectorIndex
    orphans: OrphanTracker

    def get_metrics(self) -> dict:
        return {**self.sessions.get_metrics(), **self.memories.get_metrics()}

    async def close(self) -> None:
        """Close the vector index connection, if it has one."""
        close = getattr(self.vector_index, "close", None)
        if close is not None:
            await close()


def create_memory_system(
    config: Optional[MemoryConfig] = None,
    *,
    engine: Optional[Engine] = None,
    vector_index: Optional[VectorIndex] = None,
    embedding: Optional[TextEmbedding] = None,
    llm_provider: Optional[LLMProvider] = None,
) -> MemorySystem:
    """
    Build a MemorySystem.

    Args:
        config: Runtime configuration (default: read from the environment)
        engine: SQLAlchemy engine (default: created from ``config.database_url``)
        vector_index: Vector index (default: Qdrant at ``config.qdrant_url``)
        embedding: Embedder (default: OpenAI ``config.embedding_model``)
        llm_provider: casual-llm provider for importance scoring, used when
            ``config.score_importance`` is set (default: OpenAI ``config.completion_model``)

    Raises:
        ValueError: If the embedder's dimension differs from ``config.vector_size``
    """
    config = config or MemoryConfig()

    engine = engine or create_engine(config.database_url)
    session_store = SQLAlchemySessionStore(engine)
    session_store.create_tables()
    memory_records = SQLAlchemyMemoryRecordStore(engine) if config.dual_write else None

    if vector_index is None:
        vector_index = QdrantVectorIndex(url=config.qdrant_url, api_key=config.qdrant_api_key)

    if embedding is None:
        embedding = OpenAIEmbedding(
            model=config.embedding_model,
            api_key=config.openai_api_key,
            base_url=config.openai_base_url,
            dimensions=(
                config.vector_size if config.embedding_model.startswith("text-embedding-3") else None
            ),
        )
    if embedding.dimension != config.vector_size:
        raise ValueError(
            f"Embedder {embedding.model_name} produces {embedding.dimension}-d vectors "
            f"but vector_size is {config.vector_size}"
        )

    annotator = None
    if config.score_importance:
        if llm_provider is None:
            llm_provider = create_provider(
                ModelConfig(
                    name=config.completion_model,
                    provider=Provider.OPENAI,
                    base_url=config.openai_base_url,
                    api_key=config.openai_api_key,
                )
            )
        annotator = ImportanceAnnotator(
            LLMCompletionProvider(llm_provider, model_name=config.completion_model)
        )

    orphans = OrphanTracker()
    sessions = SessionLifecycleManager(
        session_store, vector_index, config, memory_records=memory_records, orphans=orphans
    )
    memories = MemoryCoordinator(
        session_store,
        vector_index,
        embedding,
        config,
        memory_records=memory_records,
        annotator=annotator,
        orphans=orphans,
    )

    logger.info(
        f"Memory system ready: database={engine.url}, "
        f"vector_index={type(vector_index).__name__}, embedding={embedding.model_name}"
    )
    return MemorySystem(
        config=config,
        sessions=sessions,
        memories=memories,
        vector_index=vector_index,
        orphans=orphans,
    )

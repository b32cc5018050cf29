"""
Memory coordination across the vector index and the document store.

Ingestion embeds a batch once, upserts it into the session's collection in one
call and then (in the dual-write topology) inserts the canonical records in
one call. Search ranks with the vector index and joins against the document
store without trusting the store's result order. Listing pages through the
index's native scroll. Every operation first confirms the session in the
session store; its collection alone does not keep a session alive.

The vector index is the primary write. A document-store failure after a
successful upsert leaves orphaned points, which are logged, counted and warned
about but do not fail the call.
"""

import logging
from datetime import datetime
from typing import Dict, List, Optional, get_args

from session_memory.config import MemoryConfig
from session_memory.consistency import (
    DOCUMENT_WITHOUT_VECTOR,
    VECTOR_WITHOUT_DOCUMENT,
    OrphanTracker,
)
from session_memory.embeddings import TextEmbedding
from session_memory.errors import (
    ConsistencyError,
    MemoryServiceError,
    NotFoundError,
    ProviderError,
    StoreError,
    ValidationError,
)
from session_memory.ids import (
    new_document_id,
    new_memory_ids,
    validate_memory_id,
    validate_session_id,
)
from session_memory.intelligence.importance import ImportanceAnnotator
from session_memory.models import (
    Memory,
    MemoryPage,
    MemoryPayload,
    MemoryRecord,
    MemoryType,
    SearchResult,
)
from session_memory.storage.protocols import MemoryRecordStore, SessionStore, VectorIndex
from session_memory.storage.vector.models import IndexedPoint, VectorPoint

logger = logging.getLogger(__name__)

_MEMORY_TYPES = get_args(MemoryType)


def _add_context(error: MemoryServiceError, operation: str, session_id: str) -> None:
    """Fill in operation and session on an error raised by a collaborator."""
    if error.operation is None:
        error.operation = operation
    if error.session_id is None:
        error.session_id = session_id


def _memory_from_payload(session_id: str, point: IndexedPoint) -> Memory:
    payload = point.payload
    return Memory(
        id=point.id,
        session_id=session_id,
        content=payload.content,
        memory_type=payload.memory_type,
        importance=payload.importance,
        created_at=datetime.fromisoformat(payload.created_at),
        document_id=payload.document_id,
    )


def _memory_from_record(point: IndexedPoint, record: MemoryRecord) -> Memory:
    return Memory(
        id=point.id,
        session_id=record.session_id,
        content=record.content,
        memory_type=record.memory_type,
        importance=record.importance,
        created_at=record.created_at,
        document_id=record.id,
    )


class MemoryCoordinator:
    """
    Ingests, searches, lists and deletes the memories of one session at a time.

    Args:
        session_store: Canonical session store; a session absent here is not
            served, whatever its collection still holds
        vector_index: Vector index with one collection per session
        embedding: Batch text embedder; its vectors must have ``config.vector_size``
        config: Runtime configuration (vector size, default limits, threshold)
        memory_records: Canonical record store. None selects the payload-only
            topology, where the vector payload is the sole source of content.
        annotator: Optional importance scorer run on every ingested batch
        orphans: Orphan tracker shared with the SessionLifecycleManager

    Example:
        >>> coordinator = MemoryCoordinator(sessions, index, embedder, MemoryConfig())
        >>> ids = await coordinator.add_memories(session.id, ["My name is May."])
        >>> result = await coordinator.search(session.id, "What is your name?")
    """

    def __init__(
        self,
        session_store: SessionStore,
        vector_index: VectorIndex,
        embedding: TextEmbedding,
        config: MemoryConfig,
        memory_records: Optional[MemoryRecordStore] = None,
        annotator: Optional[ImportanceAnnotator] = None,
        orphans: Optional[OrphanTracker] = None,
    ):
        self.session_store = session_store
        self.vector_index = vector_index
        self.embedding = embedding
        self.config = config
        self.memory_records = memory_records
        self.annotator = annotator
        self.orphans = orphans or OrphanTracker()

        self.memories_added_count = 0
        self.memories_deleted_count = 0
        self.search_count = 0
        self.search_orphan_hit_count = 0

        logger.info(
            f"MemoryCoordinator initialized: vector_size={config.vector_size}, "
            f"topology={'dual_write' if memory_records is not None else 'payload_only'}, "
            f"importance={'on' if annotator is not None else 'off'}"
        )

    @property
    def dual_write(self) -> bool:
        return self.memory_records is not None

    async def _require_session(self, session_id: str, operation: str) -> None:
        """
        Fail with NotFoundError unless the session record and its collection exist.

        The session store is checked first: a session deleted from it whose
        collection could not be dropped is gone. The collection is never created.
        """
        try:
            session = self.session_store.get(session_id)
        except StoreError as e:
            _add_context(e, operation, session_id)
            raise
        if session is None:
            raise NotFoundError(
                f"session {session_id} not found", operation=operation, session_id=session_id
            )

        try:
            exists = await self.vector_index.collection_exists(session_id)
        except MemoryServiceError as e:
            _add_context(e, operation, session_id)
            raise
        if not exists:
            raise NotFoundError(
                f"no collection for session {session_id}",
                operation=operation,
                session_id=session_id,
            )

    async def _embed(self, session_id: str, texts: List[str], operation: str) -> List[List[float]]:
        """
        Embed a batch in one request and return the vectors in input order.

        The provider may answer out of order; vectors are placed by the index
        each one carries, never by response position.
        """
        try:
            embeddings = await self.embedding.embed(texts)
        except MemoryServiceError as e:
            _add_context(e, operation, session_id)
            raise

        def fail(reason: str) -> ProviderError:
            logger.error(f"Unusable embedding response for {len(texts)} texts: {reason}")
            return ProviderError(
                f"embedding response unusable: {reason}",
                operation=operation,
                session_id=session_id,
                batch_size=len(texts),
            )

        if len(embeddings) != len(texts):
            raise fail(f"expected {len(texts)} vectors, got {len(embeddings)}")

        vectors: List[Optional[List[float]]] = [None] * len(texts)
        for embedding in embeddings:
            if not 0 <= embedding.index < len(texts) or vectors[embedding.index] is not None:
                raise fail(f"unexpected or repeated index {embedding.index}")
            if len(embedding.vector) != self.config.vector_size:
                raise fail(
                    f"vector size {len(embedding.vector)} does not match "
                    f"configured size {self.config.vector_size}"
                )
            vectors[embedding.index] = list(embedding.vector)

        return vectors

    async def add_memories(
        self, session_id: str, contents: List[str], memory_type: MemoryType = "basic"
    ) -> List[str]:
        """
        Ingest a batch of memories into a session.

        Args:
            session_id: Session whose collection receives the memories
            contents: Memory texts (at least one, none blank)
            memory_type: Type tag stored with every memory of the batch

        Returns:
            The new memory ids, in input order

        Raises:
            ValidationError: On a malformed id, an empty batch, a blank text or
                an unknown memory type
            NotFoundError: If the session or its collection does not exist
            ProviderError: If embedding or importance scoring fails (nothing written)
            VectorIndexError: If the upsert fails (nothing written)
        """
        validate_session_id(session_id)
        if isinstance(contents, str) or not contents:
            raise ValidationError(
                "contents must be a non-empty list of strings",
                operation="add_memories",
                session_id=session_id,
            )
        if any(not isinstance(content, str) or not content.strip() for content in contents):
            raise ValidationError(
                "memory contents must not be blank",
                operation="add_memories",
                session_id=session_id,
                batch_size=len(contents),
            )
        if memory_type not in _MEMORY_TYPES:
            raise ValidationError(
                f"unknown memory type {memory_type!r}, expected one of {_MEMORY_TYPES}",
                operation="add_memories",
                session_id=session_id,
            )

        contents = list(contents)
        await self._require_session(session_id, "add_memories")

        vectors = await self._embed(session_id, contents, "add_memories")

        importances: List[Optional[int]] = [None] * len(contents)
        if self.annotator is not None:
            try:
                importances = await self.annotator.score(contents)
            except MemoryServiceError as e:
                _add_context(e, "add_memories", session_id)
                raise

        memory_ids = new_memory_ids(len(contents))
        document_ids = [new_document_id() if self.dual_write else None for _ in contents]
        created_at = datetime.now()

        points = [
            VectorPoint(
                id=memory_id,
                vector=vector,
                payload=MemoryPayload(
                    content=content,
                    memory_type=memory_type,
                    importance=importance,
                    created_at=created_at.isoformat(),
                    document_id=document_id,
                ),
            )
            for memory_id, vector, content, importance, document_id in zip(
                memory_ids, vectors, contents, importances, document_ids
            )
        ]

        try:
            await self.vector_index.upsert(session_id, points, wait=True)
        except MemoryServiceError as e:
            _add_context(e, "add_memories", session_id)
            raise

        if self.dual_write:
            records = [
                MemoryRecord(
                    id=document_id,
                    memory_id=memory_id,
                    session_id=session_id,
                    content=content,
                    memory_type=memory_type,
                    importance=importance,
                    created_at=created_at,
                )
                for memory_id, content, importance, document_id in zip(
                    memory_ids, contents, importances, document_ids
                )
            ]
            try:
                self.memory_records.insert_many(records)
            except StoreError as e:
                logger.error(
                    f"Document insert failed after upsert of {len(records)} memories "
                    f"in session {session_id}: {e}"
                )
                self.orphans.record(
                    VECTOR_WITHOUT_DOCUMENT, session_id, memory_ids, reason=f"insert failed: {e}"
                )

        self.memories_added_count += len(memory_ids)
        logger.info(f"Added {len(memory_ids)} memories to session {session_id}")
        return memory_ids

    async def search(
        self,
        session_id: str,
        query: str,
        limit: Optional[int] = None,
        score_threshold: Optional[float] = None,
    ) -> SearchResult:
        """
        Similarity search within one session.

        Args:
            session_id: Session to search
            query: Query text
            limit: Maximum results (default: ``config.search_limit``)
            score_threshold: Minimum similarity (default: ``config.search_score_threshold``)

        Returns:
            Memories in descending score order with index-aligned scores.
            An empty result is valid.

        Raises:
            ConsistencyError: If every hit referenced a missing document
        """
        validate_session_id(session_id)
        if not isinstance(query, str) or not query.strip():
            raise ValidationError(
                "search query must not be blank", operation="search", session_id=session_id
            )
        if limit is None:
            limit = self.config.search_limit
        if limit <= 0:
            raise ValidationError(
                f"limit must be positive, got {limit}", operation="search", session_id=session_id
            )
        if score_threshold is None:
            score_threshold = self.config.search_score_threshold

        await self._require_session(session_id, "search")
        vector = (await self._embed(session_id, [query], "search"))[0]

        try:
            hits = await self.vector_index.search(
                session_id, vector, limit=limit, score_threshold=score_threshold
            )
        except MemoryServiceError as e:
            _add_context(e, "search", session_id)
            raise

        self.search_count += 1

        keys = [hit.payload.document_id for hit in hits if hit.payload.document_id]
        if not self.dual_write or not keys:
            memories = [_memory_from_payload(session_id, hit) for hit in hits]
            scores = [hit.score for hit in hits]
            logger.info(f"{len(memories)} memories found in session {session_id}")
            return SearchResult(memories=memories, scores=scores)

        try:
            records = self.memory_records.find_by_ids(keys)
        except StoreError as e:
            _add_context(e, "search", session_id)
            raise

        # find_by_ids order is arbitrary; the hit list is the ranking
        records_by_key: Dict[str, MemoryRecord] = {record.id: record for record in records}

        memories: List[Memory] = []
        scores: List[float] = []
        missing: List[str] = []
        for hit in hits:
            key = hit.payload.document_id
            if key is None:
                memories.append(_memory_from_payload(session_id, hit))
            elif key in records_by_key:
                memories.append(_memory_from_record(hit, records_by_key[key]))
            else:
                missing.append(hit.id)
                continue
            scores.append(hit.score)

        if missing:
            self.search_orphan_hit_count += len(missing)
            self.orphans.record(
                VECTOR_WITHOUT_DOCUMENT, session_id, missing, reason="search hit without document"
            )
            if not memories:
                raise ConsistencyError(
                    f"all {len(hits)} search hits reference missing documents",
                    operation="search",
                    session_id=session_id,
                    batch_size=len(hits),
                )

        logger.info(
            f"{len(memories)} memories found in session {session_id} ({len(missing)} orphans dropped)"
        )
        return SearchResult(memories=memories, scores=scores)

    async def list_memories(
        self, session_id: str, cursor: Optional[str] = None, limit: Optional[int] = None
    ) -> MemoryPage:
        """
        Page through a session's memories in creation order.

        Args:
            session_id: Session to list
            cursor: ``next_cursor`` of the previous page (None or "" = first page).
                Cursors come from the index scroll and are not session ids.
            limit: Page size (default: ``config.list_limit``)

        Returns:
            The page, verbatim in index order, and the cursor of the next page
            (None at the end of data)
        """
        validate_session_id(session_id)
        if cursor:
            cursor = validate_memory_id(cursor)
        else:
            cursor = None
        if limit is None:
            limit = self.config.list_limit
        if limit <= 0:
            raise ValidationError(
                f"limit must be positive, got {limit}",
                operation="list_memories",
                session_id=session_id,
            )

        await self._require_session(session_id, "list_memories")

        try:
            page = await self.vector_index.scroll(session_id, cursor, limit)
        except MemoryServiceError as e:
            _add_context(e, "list_memories", session_id)
            raise

        memories = [_memory_from_payload(session_id, point) for point in page.points]
        logger.debug(
            f"Listed {len(memories)} memories of session {session_id} (next={page.next_cursor})"
        )
        return MemoryPage(memories=memories, next_cursor=page.next_cursor)

    async def get_memory(self, session_id: str, memory_id: str) -> Memory:
        """
        Fetch one memory by id.

        Raises:
            NotFoundError: If the memory does not exist, or (dual write) its
                canonical record is missing
        """
        validate_session_id(session_id)
        memory_id = validate_memory_id(memory_id)
        await self._require_session(session_id, "get_memory")

        try:
            points = await self.vector_index.retrieve(session_id, [memory_id])
        except MemoryServiceError as e:
            _add_context(e, "get_memory", session_id)
            raise
        if not points:
            raise NotFoundError(
                f"memory {memory_id} not found", operation="get_memory", session_id=session_id
            )
        point = points[0]

        key = point.payload.document_id
        if not self.dual_write or key is None:
            return _memory_from_payload(session_id, point)

        try:
            record = self.memory_records.find_by_id(key)
        except StoreError as e:
            _add_context(e, "get_memory", session_id)
            raise
        if record is None:
            self.orphans.record(
                VECTOR_WITHOUT_DOCUMENT, session_id, [memory_id], reason="point without document"
            )
            raise NotFoundError(
                f"memory {memory_id} has no document", operation="get_memory", session_id=session_id
            )
        return _memory_from_record(point, record)

    async def delete_memories(self, session_id: str, memory_ids: List[str]) -> int:
        """
        Delete memories by id.

        Every id must exist; otherwise nothing is deleted. Points are deleted
        first (waiting for visibility), then their document records. A record
        delete failure leaves orphaned records, which are counted, not raised.

        Returns:
            Number of memories deleted

        Raises:
            NotFoundError: If any id is unknown in the session
        """
        validate_session_id(session_id)
        if isinstance(memory_ids, str) or not memory_ids:
            raise ValidationError(
                "memory ids must be a non-empty list",
                operation="delete_memories",
                session_id=session_id,
            )
        ids = list(dict.fromkeys(validate_memory_id(memory_id) for memory_id in memory_ids))

        await self._require_session(session_id, "delete_memories")

        try:
            points = await self.vector_index.retrieve(session_id, ids)
        except MemoryServiceError as e:
            _add_context(e, "delete_memories", session_id)
            raise
        found = {point.id for point in points}
        unknown = [memory_id for memory_id in ids if memory_id not in found]
        if unknown:
            raise NotFoundError(
                f"memories not found: {unknown}",
                operation="delete_memories",
                session_id=session_id,
                batch_size=len(ids),
            )

        try:
            await self.vector_index.delete(session_id, ids, wait=True)
        except MemoryServiceError as e:
            _add_context(e, "delete_memories", session_id)
            raise

        if self.dual_write:
            keys_by_memory = {
                point.id: point.payload.document_id for point in points if point.payload.document_id
            }
            keys = list(keys_by_memory.values())
            try:
                present = {record.id for record in self.memory_records.find_by_ids(keys)}
                removed = self.memory_records.delete_many(keys)
            except StoreError as e:
                logger.error(f"Document delete failed after point delete in {session_id}: {e}")
                self.orphans.record(
                    DOCUMENT_WITHOUT_VECTOR, session_id, keys, reason=f"delete failed: {e}"
                )
            else:
                # Points whose document was already gone were orphans until now
                missing = [
                    memory_id for memory_id, key in keys_by_memory.items() if key not in present
                ]
                self.orphans.record(
                    VECTOR_WITHOUT_DOCUMENT,
                    session_id,
                    missing,
                    reason="deleted point had no document",
                )
                if removed != len(present):
                    logger.warning(
                        f"Expected to delete {len(present)} documents in {session_id}, "
                        f"deleted {removed}"
                    )

        self.memories_deleted_count += len(ids)
        logger.info(f"Deleted {len(ids)} memories from session {session_id}")
        return len(ids)

    def get_metrics(self) -> dict:
        """Coordinator counters plus orphan counts."""
        return {
            "memories_added_count": self.memories_added_count,
            "memories_deleted_count": self.memories_deleted_count,
            "search_count": self.search_count,
            "search_orphan_hit_count": self.search_orphan_hit_count,
            **self.orphans.get_metrics(),
        }

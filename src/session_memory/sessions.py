"""
Session lifecycle management.

A session is a document-store record plus exactly one vector-index collection
named by the session id. The document store is written first and is the
authority on whether a session exists; the collection follows it. Neither
side is rolled back when the other fails. Failures surface as distinct error
classes (IndexNotReadyError, OrphanedCollectionError) that name the retry to
perform.
"""

import logging
from typing import List, Optional

from session_memory.config import MemoryConfig
from session_memory.consistency import (
    COLLECTION_WITHOUT_SESSION,
    DOCUMENT_WITHOUT_VECTOR,
    OrphanTracker,
)
from session_memory.errors import (
    CollectionExistsError,
    IndexNotReadyError,
    NotFoundError,
    OrphanedCollectionError,
    StoreError,
    ValidationError,
    VectorIndexError,
)
from session_memory.ids import new_session_id, validate_session_id
from session_memory.models import Session
from session_memory.storage.protocols import MemoryRecordStore, SessionStore, VectorIndex

logger = logging.getLogger(__name__)


def _validate_name(name: Optional[str]) -> str:
    if not isinstance(name, str) or not name.strip():
        raise ValidationError(f"invalid session name: {name!r}")
    return name


def _validate_tags(tags: Optional[List[str]]) -> List[str]:
    if tags is None:
        return []
    if isinstance(tags, str) or not all(isinstance(tag, str) for tag in tags):
        raise ValidationError(f"session tags must be a list of strings: {tags!r}")
    return list(tags)


class SessionLifecycleManager:
    """
    Creates, lists, updates and deletes sessions together with their collections.

    Args:
        session_store: Document store for session records
        vector_index: Vector index holding one collection per session
        config: Runtime configuration (vector size, default page size)
        memory_records: Memory record store, in the dual-write topology only.
            Its records for a session are removed when the session is deleted.
        orphans: Orphan tracker shared with the MemoryCoordinator
    """

    def __init__(
        self,
        session_store: SessionStore,
        vector_index: VectorIndex,
        config: MemoryConfig,
        memory_records: Optional[MemoryRecordStore] = None,
        orphans: Optional[OrphanTracker] = None,
    ):
        self.session_store = session_store
        self.vector_index = vector_index
        self.config = config
        self.memory_records = memory_records
        self.orphans = orphans or OrphanTracker()

        self.sessions_created_count = 0
        self.sessions_deleted_count = 0
        self.collections_created_count = 0
        self.index_not_ready_count = 0

        logger.info(
            f"SessionLifecycleManager initialized: vector_size={config.vector_size}, "
            f"dual_write={memory_records is not None}"
        )

    async def create_session(self, name: str, tags: Optional[List[str]] = None) -> Session:
        """
        Create a session record and its vector collection.

        Returns:
            The stored session

        Raises:
            ValidationError: If name or tags are malformed
            StoreError: If the session record could not be written
            IndexNotReadyError: If the record was written but the collection
                could not be created. The error carries the session; call
                ``ensure_collection(error.session.id)`` before first use.
        """
        session = Session(id=new_session_id(), name=_validate_name(name), tags=_validate_tags(tags))

        self.session_store.insert(session)
        self.sessions_created_count += 1
        logger.info(f"Created session {session.id} ({session.name})")

        try:
            await self.ensure_collection(session.id)
        except VectorIndexError as e:
            self.index_not_ready_count += 1
            logger.error(f"Session {session.id} stored but its collection is not ready: {e}")
            raise IndexNotReadyError(
                f"collection for session {session.id} could not be created: {e}",
                session=session,
                operation="create_session",
            ) from e

        return session

    async def ensure_collection(self, session_id: str) -> bool:
        """
        Create the session's collection unless it already exists.

        Idempotent. Existence check and create are two calls, so concurrent
        callers can race; losing the race ("already exists") counts as success.

        Returns:
            True if this call created the collection, False if it already existed

        Raises:
            VectorIndexError: If the lookup or the create fails for any other reason
        """
        validate_session_id(session_id)

        if await self.vector_index.collection_exists(session_id):
            logger.debug(f"Collection {session_id} already exists")
            return False

        try:
            await self.vector_index.create_collection(session_id, self.config.vector_size)
        except CollectionExistsError:
            logger.warning(f"Collection {session_id} was created concurrently")
            return False

        self.collections_created_count += 1
        return True

    def get_session(self, session_id: str) -> Session:
        """
        Fetch a session by id.

        Raises:
            ValidationError: If the id is malformed
            NotFoundError: If no such session exists
        """
        validate_session_id(session_id)
        session = self.session_store.get(session_id)
        if session is None:
            raise NotFoundError(
                f"session {session_id} not found", operation="get_session", session_id=session_id
            )
        return session

    def update_session(
        self,
        session_id: str,
        name: Optional[str] = None,
        tags: Optional[List[str]] = None,
    ) -> Session:
        """Rename and/or retag a session. Fields left as None are unchanged."""
        validate_session_id(session_id)
        if name is not None:
            _validate_name(name)
        if tags is not None:
            tags = _validate_tags(tags)

        session = self.session_store.update(session_id, name=name, tags=tags)
        if session is None:
            raise NotFoundError(
                f"session {session_id} not found",
                operation="update_session",
                session_id=session_id,
            )

        logger.info(f"Updated session {session_id}")
        return session

    def list_sessions(self, cursor: Optional[str] = None, limit: Optional[int] = None) -> List[Session]:
        """
        List sessions older than ``cursor``, newest first.

        Args:
            cursor: Id of the last session of the previous page (None or "" = newest page)
            limit: Page size (default: ``config.session_list_limit``)

        Returns:
            At most ``limit`` sessions. Pass the id of the last one as the next cursor.
        """
        if cursor:
            validate_session_id(cursor)
        else:
            cursor = None

        if limit is None:
            limit = self.config.session_list_limit
        if limit <= 0:
            raise ValidationError(f"limit must be positive, got {limit}", operation="list_sessions")

        sessions = self.session_store.list_before(cursor, limit)
        logger.debug(f"Listed {len(sessions)} sessions before {cursor}")
        return sessions

    async def delete_session(self, session_id: str) -> None:
        """
        Delete a session record, then its collection and memory records.

        Raises:
            ValidationError: If the id is malformed
            NotFoundError: If no session record was deleted (the index is not touched)
            OrphanedCollectionError: If the record is gone but the collection
                could not be deleted; retry with ``delete_collection``
            StoreError: If the session's memory records could not be removed
        """
        validate_session_id(session_id)

        if self.session_store.delete(session_id) == 0:
            raise NotFoundError(
                f"session {session_id} not found",
                operation="delete_session",
                session_id=session_id,
            )
        self.sessions_deleted_count += 1
        logger.info(f"Deleted session record {session_id}")

        collection_error = None
        try:
            await self.delete_collection(session_id)
        except OrphanedCollectionError as e:
            self.orphans.record(
                COLLECTION_WITHOUT_SESSION, session_id, [session_id], reason=str(e.__cause__ or e)
            )
            collection_error = e

        if self.memory_records is not None:
            try:
                removed = self.memory_records.delete_by_session(session_id)
                logger.info(f"Removed {removed} memory records of session {session_id}")
            except StoreError as e:
                self.orphans.record(
                    DOCUMENT_WITHOUT_VECTOR,
                    session_id,
                    [session_id],
                    reason=f"memory records of deleted session not removed: {e}",
                )
                if collection_error is None:
                    raise

        if collection_error is not None:
            raise collection_error

    async def delete_collection(self, session_id: str) -> bool:
        """
        Delete a session's vector collection.

        Also the retry hook after OrphanedCollectionError.

        Returns:
            True if a collection was deleted, False if none existed

        Raises:
            OrphanedCollectionError: If the index failed to delete it
        """
        validate_session_id(session_id)

        try:
            deleted = await self.vector_index.delete_collection(session_id)
        except NotFoundError:
            deleted = False
        except VectorIndexError as e:
            logger.error(f"Failed to delete collection {session_id}: {e}")
            raise OrphanedCollectionError(
                f"collection {session_id} could not be deleted: {e}",
                operation="delete_collection",
                session_id=session_id,
            ) from e

        if not deleted:
            logger.warning(f"Collection {session_id} did not exist")
        return deleted

    def get_metrics(self) -> dict:
        """Lifecycle counters plus orphan counts."""
        return {
            "sessions_created_count": self.sessions_created_count,
            "sessions_deleted_count": self.sessions_deleted_count,
            "collections_created_count": self.collections_created_count,
            "index_not_ready_count": self.index_not_ready_count,
            **self.orphans.get_metrics(),
        }

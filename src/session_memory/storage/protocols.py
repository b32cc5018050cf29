"""
Storage protocol definitions for sessions and memories.

These protocols define the interface that storage implementations must provide.
They are implementation-agnostic: the document-store protocols can be backed
by any SQLAlchemy database or kept in memory, the vector index by Qdrant or
kept in memory for testing.

Backends raise the session-memory error taxonomy: StoreError from document
stores, VectorIndexError (or NotFoundError for a missing collection) from
vector indexes.
"""

from typing import List, Optional, Protocol

from session_memory.models import MemoryRecord, Session
from session_memory.storage.vector.models import IndexedPoint, ScoredPoint, ScrollPage, VectorPoint


class SessionStore(Protocol):
    """
    Protocol for session records in the document store.

    Session ids sort by creation time, so "newer" and "older" are plain id
    comparisons.
    """

    def insert(self, session: Session) -> str:
        """
        Insert a new session record.

        Args:
            session: The session to store (id already assigned)

        Returns:
            The session id
        """
        ...

    def get(self, session_id: str) -> Optional[Session]:
        """
        Retrieve a session by id.

        Returns:
            The session if found, None otherwise
        """
        ...

    def list_before(self, cursor: Optional[str], limit: int) -> List[Session]:
        """
        List sessions strictly older than ``cursor``, newest first.

        Args:
            cursor: Session id to page from (None = newest page)
            limit: Maximum number of sessions to return

        Returns:
            Sessions with id < cursor, sorted by id descending
        """
        ...

    def update(
        self,
        session_id: str,
        name: Optional[str] = None,
        tags: Optional[List[str]] = None,
    ) -> Optional[Session]:
        """
        Update the name and/or tags of a session.

        Returns:
            The updated session, None if it does not exist
        """
        ...

    def delete(self, session_id: str) -> int:
        """
        Delete a session record.

        Returns:
            Number of records deleted (0 or 1)
        """
        ...


class MemoryRecordStore(Protocol):
    """
    Protocol for canonical memory records in the document store.

    Only used in the dual-write topology, where the vector payload carries the
    record key in ``document_id``.
    """

    def insert_many(self, records: List[MemoryRecord]) -> List[str]:
        """
        Insert a batch of records in one call.

        Returns:
            The inserted record ids, in input order
        """
        ...

    def find_by_id(self, record_id: str) -> Optional[MemoryRecord]:
        """Retrieve one record by its key."""
        ...

    def find_by_ids(self, record_ids: List[str]) -> List[MemoryRecord]:
        """
        Retrieve the records whose keys are in ``record_ids``.

        The result order is unspecified and unknown keys are skipped.
        Callers that need a particular order must impose it themselves.
        """
        ...

    def delete_many(self, record_ids: List[str]) -> int:
        """
        Delete records by key.

        Returns:
            Number of records deleted
        """
        ...

    def delete_by_session(self, session_id: str) -> int:
        """
        Delete every record of a session.

        Returns:
            Number of records deleted
        """
        ...


class VectorIndex(Protocol):
    """
    Protocol for a per-collection vector index.

    Each session owns exactly one collection, named by the session id. All
    methods are coroutines: every call is a network round trip and a
    cancellation point.
    """

    async def collection_exists(self, collection: str) -> bool:
        """
        Check whether a collection exists.

        Returns False only when the index reports "not found"; any other
        lookup failure raises VectorIndexError.
        """
        ...

    async def create_collection(self, collection: str, vector_size: int) -> None:
        """
        Create a collection with cosine distance.

        Raises:
            CollectionExistsError: If the collection already exists
            VectorIndexError: On any other failure
        """
        ...

    async def delete_collection(self, collection: str) -> bool:
        """
        Delete a collection and every point in it.

        Returns:
            True if a collection was deleted, False if none existed
        """
        ...

    async def upsert(self, collection: str, points: List[VectorPoint], wait: bool = True) -> None:
        """
        Insert or replace a batch of points in one call.

        Args:
            collection: Collection name
            points: Points to write
            wait: Do not return before the write is visible to search/scroll
        """
        ...

    async def search(
        self,
        collection: str,
        vector: List[float],
        limit: int,
        score_threshold: Optional[float] = None,
    ) -> List[ScoredPoint]:
        """
        Nearest-neighbour search.

        Returns:
            Up to ``limit`` points with payloads (no vectors), in descending
            score order, excluding points scoring below ``score_threshold``
        """
        ...

    async def scroll(self, collection: str, cursor: Optional[str], limit: int) -> ScrollPage:
        """
        Page through a collection in ascending id order.

        Args:
            collection: Collection name
            cursor: Opaque cursor from a previous page (None = first page)
            limit: Page size

        Returns:
            The page and the cursor of the next page (None at the end)
        """
        ...

    async def retrieve(self, collection: str, ids: List[str]) -> List[IndexedPoint]:
        """Fetch points by id. Unknown ids are skipped."""
        ...

    async def delete(self, collection: str, ids: List[str], wait: bool = True) -> None:
        """Delete points by id."""
        ...

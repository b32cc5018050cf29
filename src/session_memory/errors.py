"""
Error taxonomy for session-memory.

Every failure that crosses a component boundary is one of these classes.
Backend adapters translate their native exceptions into the matching class
(keeping the original as ``__cause__``), and the coordinators attach enough
context (operation, session id, batch size) to diagnose a failure without
re-running it.
"""

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from session_memory.models import Session


class MemoryServiceError(Exception):
    """Base class for all session-memory errors."""

    def __init__(
        self,
        message: str,
        operation: Optional[str] = None,
        session_id: Optional[str] = None,
        batch_size: Optional[int] = None,
    ):
        super().__init__(message)
        self.message = message
        self.operation = operation
        self.session_id = session_id
        self.batch_size = batch_size

    def __str__(self) -> str:
        context = []
        if self.operation:
            context.append(f"operation={self.operation}")
        if self.session_id:
            context.append(f"session_id={self.session_id}")
        if self.batch_size is not None:
            context.append(f"batch_size={self.batch_size}")
        if not context:
            return self.message
        return f"{self.message} ({', '.join(context)})"


class ValidationError(MemoryServiceError, ValueError):
    """Malformed identifier, cursor or request shape. Never retried."""


class NotFoundError(MemoryServiceError, LookupError):
    """A session or memory does not exist."""


class ProviderError(MemoryServiceError):
    """The embedding or completion provider failed."""


class ScoreParseError(ProviderError, ValueError):
    """The importance scorer replied with something that can't be aligned to the batch."""

    def __init__(self, message: str, raw_response: str, expected: int, **context):
        super().__init__(message, **context)
        self.raw_response = raw_response
        self.expected = expected


class StoreError(MemoryServiceError):
    """The document store failed."""


class ConsistencyError(StoreError):
    """Every ranked hit referenced a document that no longer exists."""


class VectorIndexError(MemoryServiceError):
    """The vector index failed."""


class CollectionExistsError(VectorIndexError):
    """A collection create lost a race with another creator."""


class IndexNotReadyError(VectorIndexError):
    """
    The session record was stored but its vector collection could not be created.

    The session is NOT rolled back. Callers should retry
    ``SessionLifecycleManager.ensure_collection(error.session.id)`` before
    adding or searching memories.
    """

    def __init__(self, message: str, session: "Session", **context):
        super().__init__(message, session_id=session.id, **context)
        self.session = session


class OrphanedCollectionError(VectorIndexError):
    """
    The session record was deleted but its vector collection was not.

    Deletion is not rolled back; retry with
    ``SessionLifecycleManager.delete_collection(error.session_id)``.
    """


class ConsistencyWarning(UserWarning):
    """Emitted when a record exists in one store but not in the other."""

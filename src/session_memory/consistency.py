"""
Orphan accounting.

The document store and the vector index fail independently, so a memory can
end up present in one and missing from the other. Those orphans are tolerated
but never silent: each occurrence is logged, counted and emitted as a
ConsistencyWarning.
"""

import logging
import warnings
from collections import Counter
from typing import Iterable, List, Optional

from session_memory.errors import ConsistencyWarning

logger = logging.getLogger(__name__)

# Orphan kinds
VECTOR_WITHOUT_DOCUMENT = "vector_without_document"
DOCUMENT_WITHOUT_VECTOR = "document_without_vector"
COLLECTION_WITHOUT_SESSION = "collection_without_session"


class OrphanTracker:
    """Counts orphans by kind. Shared by the session manager and the coordinator."""

    def __init__(self):
        self._counts: Counter = Counter()

    def record(self, kind: str, session_id: str, ids: Iterable[str], reason: str = "") -> int:
        """
        Record a batch of orphans.

        Args:
            kind: Orphan kind (one of the module constants)
            session_id: Session the orphans belong to
            ids: Ids left behind (memory ids, document ids or the collection name)
            reason: Short description of what caused them

        Returns:
            Number of orphans recorded
        """
        orphan_ids: List[str] = list(ids)
        if not orphan_ids:
            return 0

        self._counts[kind] += len(orphan_ids)
        message = (
            f"{len(orphan_ids)} orphan(s) of kind {kind} in session {session_id}"
            f"{f': {reason}' if reason else ''}"
        )
        logger.warning(f"{message} ids={orphan_ids[:10]}")
        warnings.warn(message, ConsistencyWarning, stacklevel=2)
        return len(orphan_ids)

    def count(self, kind: Optional[str] = None) -> int:
        """Total orphans recorded, optionally for one kind."""
        if kind is None:
            return sum(self._counts.values())
        return self._counts[kind]

    def get_metrics(self) -> dict:
        """Orphan counts as a flat metrics dictionary."""
        metrics = {f"orphans_{kind}_count": count for kind, count in self._counts.items()}
        metrics["orphans_total_count"] = self.count()
        return metrics

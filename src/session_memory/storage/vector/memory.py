"""
In-memory vector index implementation.

Provides a simple in-memory index with per-collection cosine similarity
search and id-ordered scrolling, suitable for testing and development.
For production, use the Qdrant implementation.
"""

import logging
import uuid
from typing import Any, Dict, List, Optional

from session_memory.errors import CollectionExistsError, NotFoundError, ValidationError
from session_memory.models import MemoryPayload
from session_memory.storage.vector.models import IndexedPoint, ScoredPoint, ScrollPage, VectorPoint

logger = logging.getLogger(__name__)


class InMemoryVectorIndex:
    """
    In-memory implementation of the VectorIndex protocol.

    Stores vectors and payloads in dictionaries, one per collection.
    Data is lost on restart.
    """

    def __init__(self):
        # collection -> {point id -> {vector, payload, size}}
        self._collections: Dict[str, Dict[str, Dict[str, Any]]] = {}
        self._vector_sizes: Dict[str, int] = {}

        logger.info("InMemoryVectorIndex initialized")

    def _points(self, collection: str) -> Dict[str, Dict[str, Any]]:
        if collection not in self._collections:
            raise NotFoundError(f"collection {collection} not found", session_id=collection)
        return self._collections[collection]

    def _cosine_similarity(self, vec1: List[float], vec2: List[float]) -> float:
        """Calculate cosine similarity between two vectors."""
        if len(vec1) != len(vec2):
            raise ValueError("Vectors must have the same length")

        dot_product = sum(a * b for a, b in zip(vec1, vec2))
        magnitude1 = sum(a * a for a in vec1) ** 0.5
        magnitude2 = sum(b * b for b in vec2) ** 0.5

        if magnitude1 == 0 or magnitude2 == 0:
            return 0.0

        return dot_product / (magnitude1 * magnitude2)

    async def collection_exists(self, collection: str) -> bool:
        return collection in self._collections

    async def create_collection(self, collection: str, vector_size: int) -> None:
        if collection in self._collections:
            raise CollectionExistsError(
                f"collection {collection} already exists", session_id=collection
            )
        self._collections[collection] = {}
        self._vector_sizes[collection] = vector_size
        logger.info(f"Created collection {collection} (size={vector_size})")

    async def delete_collection(self, collection: str) -> bool:
        if collection not in self._collections:
            return False
        count = len(self._collections.pop(collection))
        self._vector_sizes.pop(collection, None)
        logger.info(f"Deleted collection {collection} ({count} points)")
        return True

    async def upsert(self, collection: str, points: List[VectorPoint], wait: bool = True) -> None:
        stored = self._points(collection)
        size = self._vector_sizes[collection]
        for point in points:
            if len(point.vector) != size:
                raise ValidationError(
                    f"vector size {len(point.vector)} does not match collection size {size}",
                    operation="upsert",
                    session_id=collection,
                    batch_size=len(points),
                )
        for point in points:
            stored[point.id] = {
                "vector": list(point.vector),
                "payload": point.payload.model_dump(),
            }
        logger.debug(f"Upserted {len(points)} points into {collection}")

    async def search(
        self,
        collection: str,
        vector: List[float],
        limit: int,
        score_threshold: Optional[float] = None,
    ) -> List[ScoredPoint]:
        results = []
        for point_id, data in self._points(collection).items():
            score = self._cosine_similarity(vector, data["vector"])
            if score_threshold is not None and score < score_threshold:
                continue
            results.append(
                ScoredPoint(id=point_id, score=score, payload=MemoryPayload(**data["payload"]))
            )

        # Sort by score (highest first) and limit
        results.sort(key=lambda hit: hit.score, reverse=True)
        results = results[:limit]

        logger.debug(f"{len(results)} hits in {collection} (threshold={score_threshold})")
        return results

    async def scroll(self, collection: str, cursor: Optional[str], limit: int) -> ScrollPage:
        stored = self._points(collection)
        ordered = sorted(stored, key=lambda point_id: uuid.UUID(point_id).int)

        start = 0
        if cursor is not None:
            cursor_value = uuid.UUID(cursor).int
            start = next(
                (i for i, point_id in enumerate(ordered) if uuid.UUID(point_id).int >= cursor_value),
                len(ordered),
            )

        page_ids = ordered[start : start + limit]
        next_cursor = ordered[start + limit] if start + limit < len(ordered) else None

        points = [
            IndexedPoint(id=point_id, payload=MemoryPayload(**stored[point_id]["payload"]))
            for point_id in page_ids
        ]
        return ScrollPage(points=points, next_cursor=next_cursor)

    async def retrieve(self, collection: str, ids: List[str]) -> List[IndexedPoint]:
        stored = self._points(collection)
        return [
            IndexedPoint(id=point_id, payload=MemoryPayload(**stored[point_id]["payload"]))
            for point_id in ids
            if point_id in stored
        ]

    async def delete(self, collection: str, ids: List[str], wait: bool = True) -> None:
        stored = self._points(collection)
        for point_id in ids:
            stored.pop(point_id, None)
        logger.debug(f"Deleted {len(ids)} points from {collection}")

    def count(self, collection: str) -> int:
        """Number of points in a collection."""
        return len(self._points(collection))

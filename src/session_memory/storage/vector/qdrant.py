import logging
from contextlib import contextmanager
from typing import List, Optional

from qdrant_client import AsyncQdrantClient
from qdrant_client.http.exceptions import UnexpectedResponse
from qdrant_client.models import Distance, PointIdsList, PointStruct, VectorParams

from session_memory.errors import (
    CollectionExistsError,
    MemoryServiceError,
    NotFoundError,
    VectorIndexError,
)
from session_memory.models import MemoryPayload
from session_memory.storage.vector.models import IndexedPoint, ScoredPoint, ScrollPage, VectorPoint

logger = logging.getLogger(__name__)


class QdrantVectorIndex:
    def __init__(
        self,
        url: str = "http://localhost:6333",
        api_key: Optional[str] = None,
        client: Optional[AsyncQdrantClient] = None,
    ):
        """
        Initialize the Qdrant vector index.

        Args:
            url: Qdrant URL (default: http://localhost:6333)
            api_key: Optional Qdrant API key
            client: Pre-built client; takes precedence over url/api_key
        """
        self.client = client or AsyncQdrantClient(url=url, api_key=api_key)
        logger.info(f"QdrantVectorIndex initialized ({url if client is None else 'custom client'})")

    @contextmanager
    def _translate_errors(self, operation: str, collection: str, batch_size: Optional[int] = None):
        """Map qdrant-client failures onto the error taxonomy."""
        try:
            yield
        except MemoryServiceError:
            raise
        except UnexpectedResponse as e:
            if e.status_code == 404:
                raise NotFoundError(
                    f"collection {collection} not found",
                    operation=operation,
                    session_id=collection,
                    batch_size=batch_size,
                ) from e
            logger.error(f"Qdrant {operation} failed on {collection}: {e}")
            raise VectorIndexError(
                f"qdrant {operation} failed: {e}",
                operation=operation,
                session_id=collection,
                batch_size=batch_size,
            ) from e
        except Exception as e:
            logger.error(f"Qdrant {operation} failed on {collection}: {e}")
            raise VectorIndexError(
                f"qdrant {operation} failed: {e}",
                operation=operation,
                session_id=collection,
                batch_size=batch_size,
            ) from e

    async def collection_exists(self, collection: str) -> bool:
        with self._translate_errors("collection_exists", collection):
            return await self.client.collection_exists(collection_name=collection)

    async def create_collection(self, collection: str, vector_size: int) -> None:
        try:
            await self.client.create_collection(
                collection_name=collection,
                vectors_config=VectorParams(size=vector_size, distance=Distance.COSINE),
            )
        except UnexpectedResponse as e:
            if e.status_code == 409:
                raise CollectionExistsError(
                    f"collection {collection} already exists",
                    operation="create_collection",
                    session_id=collection,
                ) from e
            cause = e
        except Exception as e:
            cause = e
        else:
            logger.info(f"Created collection {collection} (size={vector_size}, distance=cosine)")
            return

        # Older servers report a duplicate create as a plain bad request
        if await self.collection_exists(collection):
            raise CollectionExistsError(
                f"collection {collection} already exists",
                operation="create_collection",
                session_id=collection,
            ) from cause

        logger.error(f"Failed to create collection {collection}: {cause}")
        raise VectorIndexError(
            f"qdrant create_collection failed: {cause}",
            operation="create_collection",
            session_id=collection,
        ) from cause

    async def delete_collection(self, collection: str) -> bool:
        with self._translate_errors("delete_collection", collection):
            deleted = await self.client.delete_collection(collection_name=collection)
        logger.info(f"Deleted collection {collection} (deleted={deleted})")
        return bool(deleted)

    async def upsert(self, collection: str, points: List[VectorPoint], wait: bool = True) -> None:
        with self._translate_errors("upsert", collection, batch_size=len(points)):
            await self.client.upsert(
                collection_name=collection,
                points=[
                    PointStruct(id=point.id, vector=point.vector, payload=point.payload.model_dump())
                    for point in points
                ],
                wait=wait,
            )
        logger.debug(f"Upserted {len(points)} points into {collection} (wait={wait})")

    async def search(
        self,
        collection: str,
        vector: List[float],
        limit: int,
        score_threshold: Optional[float] = None,
    ) -> List[ScoredPoint]:
        with self._translate_errors("search", collection):
            response = await self.client.query_points(
                collection_name=collection,
                query=vector,
                limit=limit,
                score_threshold=score_threshold,
                with_payload=True,
                with_vectors=False,
            )
            hits = [
                ScoredPoint(id=str(hit.id), score=hit.score, payload=MemoryPayload(**hit.payload))
                for hit in response.points
            ]

        logger.debug(f"{len(hits)} hits found in {collection}")
        return hits

    async def scroll(self, collection: str, cursor: Optional[str], limit: int) -> ScrollPage:
        with self._translate_errors("scroll", collection):
            records, next_offset = await self.client.scroll(
                collection_name=collection,
                offset=cursor,
                limit=limit,
                with_payload=True,
                with_vectors=False,
            )
            points = [
                IndexedPoint(id=str(record.id), payload=MemoryPayload(**record.payload))
                for record in records
            ]

        return ScrollPage(
            points=points, next_cursor=str(next_offset) if next_offset is not None else None
        )

    async def retrieve(self, collection: str, ids: List[str]) -> List[IndexedPoint]:
        with self._translate_errors("retrieve", collection, batch_size=len(ids)):
            records = await self.client.retrieve(
                collection_name=collection,
                ids=ids,
                with_payload=True,
                with_vectors=False,
            )
            return [
                IndexedPoint(id=str(record.id), payload=MemoryPayload(**record.payload))
                for record in records
            ]

    async def delete(self, collection: str, ids: List[str], wait: bool = True) -> None:
        with self._translate_errors("delete", collection, batch_size=len(ids)):
            await self.client.delete(
                collection_name=collection,
                points_selector=PointIdsList(points=ids),
                wait=wait,
            )
        logger.debug(f"Deleted {len(ids)} points from {collection}")

    async def close(self) -> None:
        await self.client.close()

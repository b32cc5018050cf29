"""
Unit tests for the in-memory vector index.

Tests collection lifecycle, cosine search, scrolling and point management.
"""

from datetime import datetime

import pytest
import pytest_asyncio

from session_memory.errors import CollectionExistsError, NotFoundError, ValidationError
from session_memory.ids import new_memory_ids
from session_memory.models import MemoryPayload
from session_memory.storage.vector.memory import InMemoryVectorIndex
from session_memory.storage.vector.models import VectorPoint

COLLECTION = "6650f0a1c2d3e4f5a6b7c8d9"


@pytest.fixture
def index():
    """Create a fresh in-memory vector index."""
    return InMemoryVectorIndex()


@pytest.fixture
def sample_vectors():
    """Sample vectors for testing."""
    return {
        "vec1": [1.0, 0.0, 0.0],  # Orthogonal to vec2
        "vec2": [0.0, 1.0, 0.0],  # Orthogonal to vec1
        "vec3": [0.9, 0.1, 0.0],  # Similar to vec1
        "vec4": [0.1, 0.9, 0.0],  # Similar to vec2
    }


def _point(point_id: str, vector, content: str) -> VectorPoint:
    return VectorPoint(
        id=point_id,
        vector=vector,
        payload=MemoryPayload(content=content, created_at=datetime.now().isoformat()),
    )


@pytest_asyncio.fixture
async def populated(index, sample_vectors):
    await index.create_collection(COLLECTION, 3)
    ids = new_memory_ids(4)
    await index.upsert(
        COLLECTION,
        [_point(point_id, sample_vectors[name], name) for point_id, name in zip(ids, sample_vectors)],
    )
    return ids


@pytest.mark.asyncio
async def test_collection_lifecycle(index):
    assert not await index.collection_exists(COLLECTION)

    await index.create_collection(COLLECTION, 3)
    assert await index.collection_exists(COLLECTION)

    with pytest.raises(CollectionExistsError):
        await index.create_collection(COLLECTION, 3)

    assert await index.delete_collection(COLLECTION) is True
    assert await index.delete_collection(COLLECTION) is False
    assert not await index.collection_exists(COLLECTION)


@pytest.mark.asyncio
async def test_missing_collection_is_not_found(index, sample_vectors):
    with pytest.raises(NotFoundError):
        await index.search(COLLECTION, sample_vectors["vec1"], limit=5)
    with pytest.raises(NotFoundError):
        await index.scroll(COLLECTION, None, 5)
    with pytest.raises(NotFoundError):
        await index.upsert(COLLECTION, [_point(new_memory_ids(1)[0], sample_vectors["vec1"], "x")])


@pytest.mark.asyncio
async def test_upsert_rejects_wrong_vector_size(index):
    await index.create_collection(COLLECTION, 3)

    with pytest.raises(ValidationError):
        await index.upsert(COLLECTION, [_point(new_memory_ids(1)[0], [1.0, 0.0], "short")])

    assert index.count(COLLECTION) == 0


@pytest.mark.asyncio
async def test_upsert_replaces_existing_point(index, sample_vectors):
    await index.create_collection(COLLECTION, 3)
    point_id = new_memory_ids(1)[0]

    await index.upsert(COLLECTION, [_point(point_id, sample_vectors["vec1"], "first")])
    await index.upsert(COLLECTION, [_point(point_id, sample_vectors["vec2"], "second")])

    assert index.count(COLLECTION) == 1
    points = await index.retrieve(COLLECTION, [point_id])
    assert points[0].payload.content == "second"


@pytest.mark.asyncio
async def test_search_orders_by_similarity(index, sample_vectors, populated):
    hits = await index.search(COLLECTION, sample_vectors["vec1"], limit=4)

    assert [hit.payload.content for hit in hits[:2]] == ["vec1", "vec3"]
    assert hits[0].score == pytest.approx(1.0)
    assert [hit.score for hit in hits] == sorted((hit.score for hit in hits), reverse=True)


@pytest.mark.asyncio
async def test_search_threshold_and_limit(index, sample_vectors, populated):
    hits = await index.search(COLLECTION, sample_vectors["vec1"], limit=4, score_threshold=0.9)
    assert [hit.payload.content for hit in hits] == ["vec1", "vec3"]

    hits = await index.search(COLLECTION, sample_vectors["vec1"], limit=1)
    assert len(hits) == 1


@pytest.mark.asyncio
async def test_scroll_pages_in_id_order(index, populated):
    first = await index.scroll(COLLECTION, None, 3)
    assert [point.id for point in first.points] == populated[:3]
    assert first.next_cursor == populated[3]

    second = await index.scroll(COLLECTION, first.next_cursor, 3)
    assert [point.id for point in second.points] == populated[3:]
    assert second.next_cursor is None


@pytest.mark.asyncio
async def test_scroll_exact_page(index, populated):
    page = await index.scroll(COLLECTION, None, 4)

    assert len(page.points) == 4
    assert page.next_cursor is None


@pytest.mark.asyncio
async def test_retrieve_skips_unknown_ids(index, populated):
    unknown = new_memory_ids(1)[0]

    points = await index.retrieve(COLLECTION, [populated[1], unknown])

    assert [point.id for point in points] == [populated[1]]
    assert points[0].payload.content == "vec2"


@pytest.mark.asyncio
async def test_delete_points(index, populated):
    await index.delete(COLLECTION, populated[:2])

    assert index.count(COLLECTION) == 2
    assert await index.retrieve(COLLECTION, populated[:2]) == []

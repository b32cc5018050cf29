"""Tests for core data models."""

from datetime import datetime

import pytest
from pydantic import ValidationError as PydanticValidationError

from session_memory.models import Memory, MemoryPayload, SearchResult


def _memory(content: str) -> Memory:
    return Memory(
        id="0190a8b2-0000-7000-8000-000000000000",
        session_id="6650f0a1c2d3e4f5a6b7c8d9",
        content=content,
        created_at=datetime.now(),
    )


def test_search_result_is_index_aligned():
    result = SearchResult(memories=[_memory("a"), _memory("b")], scores=[0.9, 0.5])

    assert len(result) == 2


def test_search_result_rejects_misaligned_scores():
    with pytest.raises(PydanticValidationError):
        SearchResult(memories=[_memory("a")], scores=[0.9, 0.5])


def test_payload_defaults():
    payload = MemoryPayload(content="hello", created_at=datetime.now().isoformat())

    assert payload.memory_type == "basic"
    assert payload.importance is None
    assert payload.document_id is None


@pytest.mark.parametrize("importance", [0, 11])
def test_payload_rejects_out_of_range_importance(importance):
    with pytest.raises(PydanticValidationError):
        MemoryPayload(content="x", created_at="2024-01-01T00:00:00", importance=importance)


def test_payload_rejects_unknown_memory_type():
    with pytest.raises(PydanticValidationError):
        MemoryPayload(content="x", created_at="2024-01-01T00:00:00", memory_type="dream")

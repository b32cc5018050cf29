"""Tests for OpenAI embedding adapter."""

import os
from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest

from session_memory.errors import ProviderError, ValidationError


@pytest.fixture
def mock_openai_env(monkeypatch):
    """Set mock OpenAI API key for testing."""
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test-key-for-testing")


@pytest.fixture
def embedder(mock_openai_env):
    pytest.importorskip("openai")

    from session_memory.embeddings import OpenAIEmbedding

    return OpenAIEmbedding(model="text-embedding-3-small", dimensions=4)


def _response(*items):
    return SimpleNamespace(
        data=[SimpleNamespace(index=index, embedding=vector) for index, vector in items]
    )


def test_openai_initialization(mock_openai_env):
    """Test OpenAI embedder initialization."""
    pytest.importorskip("openai")

    from session_memory.embeddings import OpenAIEmbedding

    embedder = OpenAIEmbedding(model="text-embedding-3-small", dimensions=768)

    assert embedder.model_name == "text-embedding-3-small"
    assert embedder.dimension == 768


def test_openai_default_dimensions(mock_openai_env):
    """Test default dimensions for known models."""
    pytest.importorskip("openai")

    from session_memory.embeddings import OpenAIEmbedding

    assert OpenAIEmbedding(model="text-embedding-3-small").dimension == 1536
    assert OpenAIEmbedding(model="text-embedding-3-large").dimension == 3072
    assert OpenAIEmbedding(model="text-embedding-ada-002").dimension == 1536


def test_openai_unknown_model_needs_dimensions(mock_openai_env):
    pytest.importorskip("openai")

    from session_memory.embeddings import OpenAIEmbedding

    with pytest.raises(ValueError):
        OpenAIEmbedding(model="my-local-model")

    embedder = OpenAIEmbedding(
        model="my-local-model", dimensions=384, base_url="http://localhost:8080/v1"
    )
    assert embedder.dimension == 384


@pytest.mark.asyncio
async def test_embed_keeps_response_indexes(embedder):
    """Vectors come back tagged with their input position, whatever the response order."""
    embedder._client.embeddings.create = AsyncMock(
        return_value=_response((1, [0.0, 1.0, 0.0, 0.0]), (0, [1.0, 0.0, 0.0, 0.0]))
    )

    embeddings = await embedder.embed(["first", "second"])

    assert [(e.index, e.vector) for e in embeddings] == [
        (1, [0.0, 1.0, 0.0, 0.0]),
        (0, [1.0, 0.0, 0.0, 0.0]),
    ]
    kwargs = embedder._client.embeddings.create.call_args.kwargs
    assert kwargs["input"] == ["first", "second"]
    assert kwargs["dimensions"] == 4
    embedder._client.embeddings.create.assert_awaited_once()


@pytest.mark.asyncio
async def test_embed_empty_batch(embedder):
    embedder._client.embeddings.create = AsyncMock()

    assert await embedder.embed([]) == []
    embedder._client.embeddings.create.assert_not_called()


@pytest.mark.asyncio
async def test_embed_rejects_blank_text(embedder):
    embedder._client.embeddings.create = AsyncMock()

    with pytest.raises(ValidationError):
        await embedder.embed(["I like pizza", "  "])

    embedder._client.embeddings.create.assert_not_called()


@pytest.mark.asyncio
async def test_embed_wraps_api_errors(embedder):
    from openai import OpenAIError

    embedder._client.embeddings.create = AsyncMock(side_effect=OpenAIError("rate limited"))

    with pytest.raises(ProviderError) as exc_info:
        await embedder.embed(["I like pizza", "I enjoy hiking"])

    assert exc_info.value.operation == "embed"
    assert exc_info.value.batch_size == 2
    assert isinstance(exc_info.value.__cause__, OpenAIError)


@pytest.mark.asyncio
@pytest.mark.skipif(
    not os.getenv("OPENAI_API_KEY") or os.getenv("OPENAI_API_KEY", "").startswith("sk-test"),
    reason="Requires valid OPENAI_API_KEY for integration test",
)
async def test_openai_embed_batch_integration():
    """Integration test for batch embedding (requires valid API key)."""
    pytest.importorskip("openai")

    from session_memory.embeddings import OpenAIEmbedding

    embedder = OpenAIEmbedding(model="text-embedding-3-small", dimensions=768)

    texts = ["I like pizza", "I enjoy hiking", "Python is great"]
    embeddings = await embedder.embed(texts)

    assert sorted(e.index for e in embeddings) == [0, 1, 2]
    assert all(len(e.vector) == 768 for e in embeddings)

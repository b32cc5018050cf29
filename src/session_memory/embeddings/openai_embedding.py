"""OpenAI embedding adapter for session-memory."""

import logging
import os
from typing import List, Optional

from session_memory.embeddings.protocol import Embedding
from session_memory.errors import ProviderError, ValidationError

logger = logging.getLogger(__name__)

_DEFAULT_DIMENSIONS = {
    "text-embedding-3-small": 1536,
    "text-embedding-3-large": 3072,
    "text-embedding-ada-002": 1536,
}


class OpenAIEmbedding:
    """
    Embedding adapter using OpenAI's embedding API.

    Supports OpenAI's embedding models via API:
    - text-embedding-3-small (1536 dims, configurable 512-1536)
    - text-embedding-3-large (3072 dims)
    - text-embedding-ada-002 (1536 dims, legacy)

    Also compatible with OpenAI-compatible APIs (Azure, OpenRouter, etc.)

    Example:
        >>> embedder = OpenAIEmbedding(model="text-embedding-3-small", api_key="sk-...")
        >>> embeddings = await embedder.embed(["I like pizza"])
        >>> len(embeddings[0].vector)
        1536
    """

    def __init__(
        self,
        model: str = "text-embedding-3-small",
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        dimensions: Optional[int] = None,
        timeout: float = 30.0,
        max_retries: int = 3,
    ):
        """
        Initialize OpenAI embedder.

        Args:
            model: OpenAI model name (default: text-embedding-3-small)
            api_key: OpenAI API key (None = use OPENAI_API_KEY env var)
            base_url: Custom endpoint (None = official OpenAI, or Azure/OpenRouter)
            dimensions: Output dimension (only for 3-* models)
            timeout: Request timeout in seconds
            max_retries: Number of retry attempts made by the OpenAI client
        """
        try:
            from openai import AsyncOpenAI
        except ImportError as e:
            raise ImportError(
                "openai is required for OpenAIEmbedding. Install with: pip install openai"
            ) from e

        if dimensions is None and model not in _DEFAULT_DIMENSIONS:
            raise ValueError(
                f"Unknown embedding model {model}; pass dimensions explicitly"
            )

        self._model = model
        self._dimensions = dimensions
        self._dimension = dimensions if dimensions is not None else _DEFAULT_DIMENSIONS[model]

        self._client = AsyncOpenAI(
            api_key=api_key or os.getenv("OPENAI_API_KEY"),
            base_url=base_url,
            timeout=timeout,
            max_retries=max_retries,
        )

        logger.info(f"OpenAI embedder initialized: {model} ({self._dimension} dimensions)")

    @property
    def dimension(self) -> int:
        """Vector dimension produced by this model."""
        return self._dimension

    @property
    def model_name(self) -> str:
        """Identifier of the OpenAI model."""
        return self._model

    async def embed(self, texts: List[str]) -> List[Embedding]:
        """
        Embed a batch of texts in one API request.

        The response items carry the input position in ``index``; it is kept
        as-is so callers can re-associate vectors with their texts.

        Raises:
            ValidationError: If any text is empty
            ProviderError: If the API request fails
        """
        if not texts:
            return []

        if any(not text or not text.strip() for text in texts):
            raise ValidationError("Cannot embed empty texts in batch", batch_size=len(texts))

        from openai import OpenAIError

        kwargs = {"model": self._model, "input": texts}
        if self._dimensions is not None:
            kwargs["dimensions"] = self._dimensions

        try:
            response = await self._client.embeddings.create(**kwargs)
        except OpenAIError as e:
            logger.error(f"OpenAI embedding request failed for {len(texts)} texts: {e}")
            raise ProviderError(
                f"embedding request failed: {e}", operation="embed", batch_size=len(texts)
            ) from e

        logger.debug(f"Embedded {len(response.data)} texts with {self._model}")
        return [Embedding(index=item.index, vector=item.embedding) for item in response.data]

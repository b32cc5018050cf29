"""
Text embedding protocol for session-memory.

Provides a unified interface for embedding a batch of texts into dense
vectors for semantic similarity search.
"""

from dataclasses import dataclass
from typing import List, Protocol

from typing_extensions import runtime_checkable


@dataclass(frozen=True)
class Embedding:
    """
    One embedding from a batch request.

    Attributes:
        index: Position of the source text in the request batch
        vector: The embedding vector
    """

    index: int
    vector: List[float]


@runtime_checkable
class TextEmbedding(Protocol):
    """
    Protocol for text embedding providers.

    All implementations must:

    1. Embed a whole batch in a single request
    2. Tag every returned vector with the input position it belongs to.
       Vectors may come back in any order; callers re-associate by ``index``.
    3. Expose their output dimension for collection compatibility checks

    Example:
        >>> embedder = OpenAIEmbedding()
        >>> embeddings = await embedder.embed(["Hello", "World"])
        >>> sorted(e.index for e in embeddings)
        [0, 1]
    """

    @property
    def dimension(self) -> int:
        """
        Vector dimension produced by this embedder.

        Every vector-index collection is created with this size, so all
        vectors of a deployment must share it.
        """
        ...

    @property
    def model_name(self) -> str:
        """Model name or identifier (e.g., "text-embedding-3-small")."""
        ...

    async def embed(self, texts: List[str]) -> List[Embedding]:
        """
        Embed a batch of texts in one request.

        Args:
            texts: Texts to embed

        Returns:
            One Embedding per input text, in any order

        Raises:
            ValidationError: If any text is empty
            ProviderError: If the provider request fails
        """
        ...

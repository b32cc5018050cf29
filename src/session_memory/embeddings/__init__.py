"""
Text embedding abstractions for session-memory.

Provides the batch embedding protocol and the OpenAI adapter.
"""

from session_memory.embeddings.protocol import Embedding, TextEmbedding

__all__ = [
    "Embedding",
    "TextEmbedding",
]

# Optional adapters (import only if dependencies available)
try:
    from session_memory.embeddings.openai_embedding import OpenAIEmbedding  # noqa: F401

    __all__.append("OpenAIEmbedding")
except ImportError:
    pass

"""
Completion provider seam for importance scoring.

The annotator only needs "send these prompt messages plus this batch of
memories, give me the raw reply text". LLMCompletionProvider implements that
on top of any casual-llm provider (OpenAI, Ollama, etc.).
"""

import logging
from typing import List, Protocol

from casual_llm import ChatMessage, LLMProvider, UserMessage
from typing_extensions import runtime_checkable

from session_memory.errors import ProviderError

logger = logging.getLogger(__name__)


def format_memory_batch(memories: List[str]) -> str:
    """Render a batch as a numbered list, one memory per line."""
    return "\n".join(f"{position}. {memory}" for position, memory in enumerate(memories, start=1))


@runtime_checkable
class CompletionProvider(Protocol):
    """Protocol for the completion backend used by ImportanceAnnotator."""

    async def score(self, prompt_messages: List[ChatMessage], memories: List[str]) -> str:
        """
        Send the prompt messages followed by the memory batch in one request.

        Args:
            prompt_messages: Fixed instruction messages (system prompt, examples)
            memories: Memory contents, in batch order

        Returns:
            The raw reply text, unparsed

        Raises:
            ProviderError: If the request fails
        """
        ...


class LLMCompletionProvider:
    """CompletionProvider backed by a casual-llm provider."""

    def __init__(self, llm_provider: LLMProvider, model_name: str, temperature: float = 0.0):
        """
        Initialize the completion provider.

        Args:
            llm_provider: LLM provider instance (OpenAI, Ollama, etc.)
            model_name: Name of the model (for logging)
            temperature: Sampling temperature for scoring requests
        """
        self.llm_provider = llm_provider
        self.model_name = model_name
        self.temperature = temperature

        logger.info(f"LLMCompletionProvider initialized: model={model_name}")

    async def score(self, prompt_messages: List[ChatMessage], memories: List[str]) -> str:
        messages = list(prompt_messages) + [UserMessage(content=format_memory_batch(memories))]

        try:
            response = await self.llm_provider.chat(
                messages,
                response_format="text",
                temperature=self.temperature,
            )
        except Exception as e:
            logger.error(f"Completion request to {self.model_name} failed: {e}")
            raise ProviderError(
                f"completion request failed: {e}",
                operation="score_importance",
                batch_size=len(memories),
            ) from e

        logger.debug(f"Completion reply for {len(memories)} memories: {response.content!r}")
        return response.content or ""

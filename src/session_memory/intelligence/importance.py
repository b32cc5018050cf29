"""
Importance annotation for newly ingested memories.

Scores a whole batch with one completion request and aligns the reply to the
batch strictly: the reply must be exactly one integer in [1, 10] per memory,
comma separated, in batch order. Anything else fails the batch; no alignment
is guessed and nothing is retried.
"""

import logging
from typing import List, Optional

from casual_llm import ChatMessage, SystemMessage

from session_memory.errors import ProviderError, ScoreParseError, ValidationError
from session_memory.intelligence.completion import CompletionProvider
from session_memory.intelligence.prompts import IMPORTANCE_SCORING_PROMPT

logger = logging.getLogger(__name__)

MIN_IMPORTANCE = 1
MAX_IMPORTANCE = 10


def parse_importance_scores(raw: str, expected: int) -> List[int]:
    """
    Parse a comma-separated importance reply.

    Args:
        raw: The raw reply text
        expected: Number of memories in the batch

    Returns:
        One score per memory, in batch order

    Raises:
        ScoreParseError: On a non-integer token, an out-of-range score or a
            count different from ``expected``
    """
    tokens = [token.strip() for token in raw.strip().split(",")]
    if tokens == [""]:
        tokens = []

    scores = []
    for token in tokens:
        try:
            score = int(token)
        except ValueError:
            raise ScoreParseError(
                f"non-integer token {token!r} in importance reply",
                raw_response=raw,
                expected=expected,
                operation="score_importance",
                batch_size=expected,
            ) from None
        if not MIN_IMPORTANCE <= score <= MAX_IMPORTANCE:
            raise ScoreParseError(
                f"importance {score} outside [{MIN_IMPORTANCE}, {MAX_IMPORTANCE}]",
                raw_response=raw,
                expected=expected,
                operation="score_importance",
                batch_size=expected,
            )
        scores.append(score)

    if len(scores) != expected:
        raise ScoreParseError(
            f"expected {expected} importance scores, got {len(scores)}",
            raw_response=raw,
            expected=expected,
            operation="score_importance",
            batch_size=expected,
        )

    return scores


class ImportanceAnnotator:
    """
    Assigns a 1-10 importance score to each memory of a batch.

    Example:
        >>> annotator = ImportanceAnnotator(LLMCompletionProvider(provider, "gpt-4o-mini"))
        >>> await annotator.score(["I lost my headphones last night."])
        [3]
    """

    def __init__(self, completion_provider: CompletionProvider, prompt: str = IMPORTANCE_SCORING_PROMPT):
        """
        Initialize the annotator.

        Args:
            completion_provider: Backend that returns the raw reply text
            prompt: System prompt used when the caller passes no prompt context
        """
        self.completion_provider = completion_provider
        self.prompt = prompt
        self.score_call_count = 0
        self.score_success_count = 0
        self.parse_failure_count = 0
        self.provider_failure_count = 0

        logger.info("ImportanceAnnotator initialized")

    async def score(
        self, contents: List[str], prompt_context: Optional[List[ChatMessage]] = None
    ) -> List[int]:
        """
        Score a batch of memories in one request.

        Args:
            contents: Memory contents to score
            prompt_context: Instruction messages to send ahead of the batch
                (default: the system prompt given at construction)

        Returns:
            Exactly one score per memory, in input order

        Raises:
            ValidationError: If any content is empty
            ProviderError: If the completion request fails
            ScoreParseError: If the reply cannot be aligned to the batch
        """
        if not contents:
            return []
        if any(not content or not content.strip() for content in contents):
            raise ValidationError("Cannot score empty memories", batch_size=len(contents))

        messages = prompt_context if prompt_context is not None else [
            SystemMessage(content=self.prompt)
        ]

        self.score_call_count += 1
        try:
            raw = await self.completion_provider.score(messages, contents)
        except ProviderError:
            self.provider_failure_count += 1
            raise

        try:
            scores = parse_importance_scores(raw, expected=len(contents))
        except ScoreParseError as e:
            self.parse_failure_count += 1
            logger.warning(f"Unusable importance reply for {len(contents)} memories: {e}")
            raise

        self.score_success_count += 1
        logger.debug(f"Scored {len(scores)} memories: {scores}")
        return scores

    def get_metrics(self) -> dict:
        """
        Get annotator metrics.

        Returns:
            Dictionary with call counts and success rate
        """
        success_rate = (
            self.score_success_count / self.score_call_count * 100
            if self.score_call_count > 0
            else 0.0
        )
        return {
            "score_call_count": self.score_call_count,
            "score_success_count": self.score_success_count,
            "parse_failure_count": self.parse_failure_count,
            "provider_failure_count": self.provider_failure_count,
            "score_success_rate_percent": round(success_rate, 2),
        }

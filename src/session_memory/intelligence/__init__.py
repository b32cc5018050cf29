"""
Intelligence components for memory enrichment.

Provides LLM-based importance scoring of newly ingested memories.
"""

from session_memory.intelligence.completion import CompletionProvider, LLMCompletionProvider
from session_memory.intelligence.importance import ImportanceAnnotator, parse_importance_scores
from session_memory.intelligence.prompts import IMPORTANCE_SCORING_PROMPT

__all__ = [
    # Completion backends
    "CompletionProvider",
    "LLMCompletionProvider",
    # Importance scoring
    "ImportanceAnnotator",
    "parse_importance_scores",
    "IMPORTANCE_SCORING_PROMPT",
]

"""Tests for MemoryConfig."""

import os

import pytest
from pydantic import ValidationError as PydanticValidationError

from session_memory.config import MemoryConfig


def test_defaults(monkeypatch):
    """Defaults: 1536-d vectors, page size 5, dual write on, no threshold."""
    for name in [name for name in os.environ if name.startswith("MEMO_")]:
        monkeypatch.delenv(name)

    config = MemoryConfig(_env_file=None)

    assert config.vector_size == 1536
    assert config.search_limit == 5
    assert config.search_score_threshold is None
    assert config.list_limit == 5
    assert config.session_list_limit == 5
    assert config.dual_write is True
    assert config.score_importance is False


def test_reads_prefixed_environment(monkeypatch):
    monkeypatch.setenv("MEMO_VECTOR_SIZE", "768")
    monkeypatch.setenv("MEMO_SEARCH_SCORE_THRESHOLD", "0.6")
    monkeypatch.setenv("MEMO_DUAL_WRITE", "false")

    config = MemoryConfig(_env_file=None)

    assert config.vector_size == 768
    assert config.search_score_threshold == 0.6
    assert config.dual_write is False


@pytest.mark.parametrize(
    "overrides",
    [
        {"vector_size": 0},
        {"search_limit": 0},
        {"list_limit": -1},
        {"session_list_limit": 0},
        {"search_score_threshold": 1.5},
    ],
)
def test_rejects_invalid_values(overrides):
    with pytest.raises(PydanticValidationError):
        MemoryConfig(_env_file=None, **overrides)


def test_is_frozen():
    config = MemoryConfig(_env_file=None)

    with pytest.raises(PydanticValidationError):
        config.search_limit = 10

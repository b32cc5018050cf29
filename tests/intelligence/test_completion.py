"""Tests for the casual-llm backed completion provider."""

from types import SimpleNamespace
from unittest.mock import AsyncMock, Mock

import pytest
from casual_llm import SystemMessage, UserMessage

from session_memory.errors import ProviderError
from session_memory.intelligence import CompletionProvider, LLMCompletionProvider
from session_memory.intelligence.completion import format_memory_batch


@pytest.fixture
def llm_provider():
    """Mock casual-llm provider."""
    provider = Mock()
    provider.chat = AsyncMock(return_value=SimpleNamespace(content="2, 6"))
    return provider


def test_format_memory_batch():
    assert format_memory_batch(["first", "second"]) == "1. first\n2. second"


def test_is_protocol(llm_provider):
    assert isinstance(LLMCompletionProvider(llm_provider, "gpt-4o-mini"), CompletionProvider)


@pytest.mark.asyncio
async def test_score_appends_numbered_batch(llm_provider):
    provider = LLMCompletionProvider(llm_provider, "gpt-4o-mini", temperature=0.0)
    prompt = [SystemMessage(content="Rate importance.")]

    reply = await provider.score(prompt, ["first", "second"])

    assert reply == "2, 6"
    messages = llm_provider.chat.call_args.args[0]
    assert messages[0] == prompt[0]
    assert isinstance(messages[1], UserMessage)
    assert messages[1].content == "1. first\n2. second"
    assert llm_provider.chat.call_args.kwargs["response_format"] == "text"
    assert llm_provider.chat.call_args.kwargs["temperature"] == 0.0
    assert len(prompt) == 1


@pytest.mark.asyncio
async def test_score_wraps_failures(llm_provider):
    llm_provider.chat.side_effect = RuntimeError("connection reset")
    provider = LLMCompletionProvider(llm_provider, "gpt-4o-mini")

    with pytest.raises(ProviderError) as exc_info:
        await provider.score([SystemMessage(content="Rate importance.")], ["first"])

    assert exc_info.value.operation == "score_importance"
    assert exc_info.value.batch_size == 1
    assert isinstance(exc_info.value.__cause__, RuntimeError)

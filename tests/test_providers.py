"""Unit tests for provider adapters, no real API calls."""

import asyncio
from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest

from config.config_loader import ModelConfig
from roundtable.models import ChatMessage, CompletionRequest
from roundtable.providers.anthropic import _to_anthropic_kwargs
from roundtable.providers.base import ProviderError
from roundtable.providers.gemini import _to_gemini
from roundtable.providers.openai_provider import OpenAIProvider

_REQUEST = CompletionRequest(
    messages=(ChatMessage("system", "You are the Editor."), ChatMessage("user", "Brief: sunset")),
    temperature=0.8,
    max_tokens=300,
)


def _completion(content: str | None) -> SimpleNamespace:
    return SimpleNamespace(
        choices=[SimpleNamespace(message=SimpleNamespace(content=content))],
        usage=SimpleNamespace(total_tokens=12),
    )


def _chunk(content: str | None) -> SimpleNamespace:
    return SimpleNamespace(choices=[SimpleNamespace(delta=SimpleNamespace(content=content))])


@pytest.fixture
def openai_provider(sample_model_config: ModelConfig, monkeypatch) -> OpenAIProvider:
    monkeypatch.setenv("TEST_API_KEY", "sk-test")
    return OpenAIProvider(sample_model_config)


def test_missing_key_raises(sample_model_config, monkeypatch):
    monkeypatch.delenv("TEST_API_KEY", raising=False)
    with pytest.raises(ProviderError, match="Missing API key"):
        OpenAIProvider(sample_model_config)


async def test_openai_complete_passes_stage_parameters(openai_provider):
    create = AsyncMock(return_value=_completion("Wide and patient."))
    openai_provider._client.chat.completions.create = create

    assert await openai_provider.complete(_REQUEST) == "Wide and patient."
    kwargs = create.call_args.kwargs
    assert kwargs["model"] == "test-model-1"
    assert kwargs["temperature"] == 0.8
    assert kwargs["max_tokens"] == 300
    assert kwargs["messages"][0] == {"role": "system", "content": "You are the Editor."}


async def test_openai_empty_content_is_error(openai_provider):
    openai_provider._client.chat.completions.create = AsyncMock(return_value=_completion(None))
    with pytest.raises(ProviderError, match="Empty response content"):
        await openai_provider.complete(_REQUEST)


async def test_openai_timeout_is_provider_error(openai_provider, sample_model_config):
    async def hang(*args, **kwargs):
        await asyncio.sleep(9999)

    sample_model_config.timeout_sec = 0.05
    openai_provider._client.chat.completions.create = hang
    with pytest.raises(ProviderError, match="timed out"):
        await openai_provider.complete(_REQUEST)


async def test_openai_stream_skips_empty_deltas(openai_provider):
    async def fragments():
        for content in ["Wide ", None, "", "and patient."]:
            yield _chunk(content)

    create = AsyncMock(return_value=fragments())
    openai_provider._client.chat.completions.create = create

    assert [f async for f in openai_provider.stream(_REQUEST)] == ["Wide ", "and patient."]
    assert create.call_args.kwargs["stream"] is True


def test_anthropic_moves_system_prompt_out_of_messages():
    kwargs = _to_anthropic_kwargs("claude-test", _REQUEST)
    assert kwargs["system"] == "You are the Editor."
    assert kwargs["messages"] == [{"role": "user", "content": "Brief: sunset"}]
    assert kwargs["max_tokens"] == 300


def test_gemini_uses_system_instruction():
    contents, config = _to_gemini(_REQUEST)
    assert [c.role for c in contents] == ["user"]
    assert "You are the Editor." in str(config.system_instruction)
    assert config.max_output_tokens == 300
    assert config.temperature == 0.8

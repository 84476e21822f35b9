"""Anthropic Claude provider using anthropic SDK with native async."""

import asyncio
import logging
import os
import time
from collections.abc import AsyncIterator
from typing import Any

import anthropic as anthropic_sdk

from config.config_loader import ModelConfig
from roundtable.models import CompletionRequest
from roundtable.providers.base import AIProvider, ProviderError, RateLimitError

logger = logging.getLogger(__name__)


def _to_anthropic_kwargs(model: str, request: CompletionRequest) -> dict[str, Any]:
    """Anthropic takes the system prompt as a parameter, not as a message."""
    system_parts = [m.content for m in request.messages if m.role == "system"]
    kwargs: dict[str, Any] = {
        "model": model,
        "max_tokens": request.max_tokens,
        "temperature": request.temperature,
        "messages": [
            {"role": m.role, "content": m.content}
            for m in request.messages
            if m.role != "system"
        ],
    }
    if system_parts:
        kwargs["system"] = "\n\n".join(system_parts)
    return kwargs


class AnthropicProvider(AIProvider):
    """Anthropic Claude provider via anthropic SDK."""

    def __init__(self, config: ModelConfig) -> None:
        self._config = config
        api_key = os.environ.get(config.api_key_env, "").strip()
        if not api_key:
            raise ProviderError(config.name, f"Missing API key: {config.api_key_env}")
        # Bounds streamed calls too, which are not wrapped in wait_for.
        self._client = anthropic_sdk.AsyncAnthropic(api_key=api_key, timeout=config.timeout_sec)

    def name(self) -> str:
        return self._config.name

    def model_string(self) -> str:
        return self._config.model

    async def complete(self, request: CompletionRequest) -> str:
        start = time.monotonic()
        try:
            response = await asyncio.wait_for(
                self._client.messages.create(**_to_anthropic_kwargs(self._config.model, request)),
                timeout=self._config.timeout_sec,
            )
        except anthropic_sdk.RateLimitError as exc:
            raise RateLimitError(self._config.name, f"Rate limited: {exc}") from exc
        except TimeoutError as exc:
            raise ProviderError(self._config.name, f"Request timed out after {self._config.timeout_sec}s") from exc
        except Exception as exc:
            raise ProviderError(self._config.name, f"API call failed: {exc}") from exc

        latency = time.monotonic() - start

        if not response.content:
            raise ProviderError(self._config.name, "Empty response content")

        text_blocks = [b.text for b in response.content if b.type == "text"]
        if not text_blocks:
            raise ProviderError(self._config.name, "No text blocks in response")

        token_count: int | None = None
        if response.usage:
            token_count = response.usage.input_tokens + response.usage.output_tokens

        logger.info("Anthropic completion: %.2fs, %s tokens", latency, token_count)
        return "\n".join(text_blocks)

    async def stream(self, request: CompletionRequest) -> AsyncIterator[str]:
        try:
            async with self._client.messages.stream(
                **_to_anthropic_kwargs(self._config.model, request)
            ) as message_stream:
                async for text in message_stream.text_stream:
                    if text:
                        yield text
        except anthropic_sdk.RateLimitError as exc:
            raise RateLimitError(self._config.name, f"Rate limited: {exc}") from exc
        except Exception as exc:
            raise ProviderError(self._config.name, f"Streaming call failed: {exc}") from exc

"""OpenAI provider using openai SDK with native async.

Also serves OpenAI-compatible endpoints (xAI Grok, DeepSeek) through base_url.
"""

import asyncio
import logging
import os
import time
from collections.abc import AsyncIterator

import openai
from openai import AsyncOpenAI

from config.config_loader import ModelConfig
from roundtable.models import CompletionRequest
from roundtable.providers.base import AIProvider, ProviderError, RateLimitError

logger = logging.getLogger(__name__)


def _to_openai_messages(request: CompletionRequest) -> list[dict[str, str]]:
    return [{"role": m.role, "content": m.content} for m in request.messages]


class OpenAIProvider(AIProvider):
    """OpenAI (or OpenAI-compatible) provider via openai SDK."""

    def __init__(self, config: ModelConfig) -> None:
        self._config = config
        api_key = os.environ.get(config.api_key_env, "").strip()
        if not api_key:
            raise ProviderError(config.name, f"Missing API key: {config.api_key_env}")
        if config.base_url:
            self._client = AsyncOpenAI(api_key=api_key, base_url=config.base_url)
        else:
            self._client = AsyncOpenAI(api_key=api_key)

    def name(self) -> str:
        return self._config.name

    def model_string(self) -> str:
        return self._config.model

    async def complete(self, request: CompletionRequest) -> str:
        start = time.monotonic()
        try:
            response = await asyncio.wait_for(
                self._client.chat.completions.create(
                    model=self._config.model,
                    messages=_to_openai_messages(request),
                    temperature=request.temperature,
                    max_tokens=request.max_tokens,
                ),
                timeout=self._config.timeout_sec,
            )
        except openai.RateLimitError as exc:
            raise RateLimitError(self._config.name, f"Rate limited: {exc}") from exc
        except TimeoutError as exc:
            raise ProviderError(self._config.name, f"Request timed out after {self._config.timeout_sec}s") from exc
        except Exception as exc:
            raise ProviderError(self._config.name, f"API call failed: {exc}") from exc

        latency = time.monotonic() - start

        choice = response.choices[0] if response.choices else None
        if not choice or not choice.message.content:
            raise ProviderError(self._config.name, "Empty response content")

        token_count: int | None = None
        if response.usage:
            token_count = response.usage.total_tokens

        logger.info("OpenAI completion: %.2fs, %s tokens", latency, token_count)
        return choice.message.content

    async def stream(self, request: CompletionRequest) -> AsyncIterator[str]:
        try:
            response_stream = await asyncio.wait_for(
                self._client.chat.completions.create(
                    model=self._config.model,
                    messages=_to_openai_messages(request),
                    temperature=request.temperature,
                    max_tokens=request.max_tokens,
                    stream=True,
                ),
                timeout=self._config.timeout_sec,
            )
            async for chunk in response_stream:
                content = chunk.choices[0].delta.content if chunk.choices else None
                if content:
                    yield content
        except openai.RateLimitError as exc:
            raise RateLimitError(self._config.name, f"Rate limited: {exc}") from exc
        except TimeoutError as exc:
            raise ProviderError(self._config.name, f"Request timed out after {self._config.timeout_sec}s") from exc
        except Exception as exc:
            raise ProviderError(self._config.name, f"Streaming call failed: {exc}") from exc

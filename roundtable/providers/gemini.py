"""Gemini provider using google-genai SDK with native async."""

import asyncio
import logging
import os
import time
from collections.abc import AsyncIterator

from google import genai
from google.genai import errors as genai_errors
from google.genai import types as genai_types

from config.config_loader import ModelConfig
from roundtable.models import CompletionRequest
from roundtable.providers.base import AIProvider, ProviderError, RateLimitError

logger = logging.getLogger(__name__)

_RATE_LIMIT_CODE = 429


def _to_gemini(request: CompletionRequest) -> tuple[list[genai_types.Content], genai_types.GenerateContentConfig]:
    system_parts = [m.content for m in request.messages if m.role == "system"]
    contents = [
        genai_types.Content(
            role="model" if m.role == "assistant" else "user",
            parts=[genai_types.Part(text=m.content)],
        )
        for m in request.messages
        if m.role != "system"
    ]
    config = genai_types.GenerateContentConfig(
        max_output_tokens=request.max_tokens,
        temperature=request.temperature,
        system_instruction="\n\n".join(system_parts) if system_parts else None,
    )
    return contents, config


class GeminiProvider(AIProvider):
    """Google Gemini provider via google-genai SDK."""

    def __init__(self, config: ModelConfig) -> None:
        self._config = config
        api_key = os.environ.get(config.api_key_env, "").strip()
        if not api_key:
            raise ProviderError(config.name, f"Missing API key: {config.api_key_env}")
        self._client = genai.Client(api_key=api_key)

    def name(self) -> str:
        return self._config.name

    def model_string(self) -> str:
        return self._config.model

    def _api_error(self, exc: genai_errors.APIError) -> ProviderError:
        if exc.code == _RATE_LIMIT_CODE:
            return RateLimitError(self._config.name, f"Rate limited: {exc}")
        return ProviderError(self._config.name, f"API call failed: {exc}")

    async def complete(self, request: CompletionRequest) -> str:
        contents, config = _to_gemini(request)
        start = time.monotonic()
        try:
            response = await asyncio.wait_for(
                self._client.aio.models.generate_content(
                    model=self._config.model,
                    contents=contents,
                    config=config,
                ),
                timeout=self._config.timeout_sec,
            )
        except genai_errors.APIError as exc:
            raise self._api_error(exc) from exc
        except TimeoutError as exc:
            raise ProviderError(self._config.name, f"Request timed out after {self._config.timeout_sec}s") from exc
        except Exception as exc:
            raise ProviderError(self._config.name, f"API call failed: {exc}") from exc

        latency = time.monotonic() - start

        if not response.text:
            raise ProviderError(self._config.name, "Empty response text")

        token_count: int | None = None
        if response.usage_metadata:
            token_count = response.usage_metadata.total_token_count

        logger.info("Gemini completion: %.2fs, %s tokens", latency, token_count)
        return response.text

    async def stream(self, request: CompletionRequest) -> AsyncIterator[str]:
        contents, config = _to_gemini(request)
        try:
            response_stream = await asyncio.wait_for(
                self._client.aio.models.generate_content_stream(
                    model=self._config.model,
                    contents=contents,
                    config=config,
                ),
                timeout=self._config.timeout_sec,
            )
            async for chunk in response_stream:
                if chunk.text:
                    yield chunk.text
        except genai_errors.APIError as exc:
            raise self._api_error(exc) from exc
        except TimeoutError as exc:
            raise ProviderError(self._config.name, f"Request timed out after {self._config.timeout_sec}s") from exc
        except Exception as exc:
            raise ProviderError(self._config.name, f"Streaming call failed: {exc}") from exc

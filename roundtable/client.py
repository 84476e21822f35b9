"""Completion client: one provider plus bounded exponential backoff on throttling."""

import asyncio
import logging
from collections.abc import AsyncIterator, Awaitable, Callable

from config.config_loader import RetryConfig
from roundtable.models import CompletionRequest
from roundtable.providers.base import AIProvider, RateLimitError

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[None]]


class CompletionClient:
    """Pure utility around an AIProvider. Knows nothing about stages or participants.

    Only RateLimitError is retried; every other failure surfaces on the first
    attempt. Retry state lives in the call, never on the instance.
    """

    def __init__(
        self,
        provider: AIProvider,
        retry: RetryConfig | None = None,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self._provider = provider
        self._retry = retry or RetryConfig()
        if self._retry.max_attempts < 1:
            raise ValueError(f"max_attempts must be at least 1, got {self._retry.max_attempts}")
        self._sleep = sleep

    @property
    def provider(self) -> AIProvider:
        return self._provider

    async def _backoff(self, attempt: int, exc: RateLimitError) -> None:
        delay = self._retry.delay_for(attempt)
        logger.warning(
            "Provider %s throttled (attempt %d/%d), retrying in %.1fs: %s",
            self._provider.name(), attempt + 1, self._retry.max_attempts, delay, exc,
        )
        await self._sleep(delay)

    async def complete(self, request: CompletionRequest) -> str:
        """Return the full completion text.

        Raises:
            RateLimitError: If throttling persists past max_attempts.
            ProviderError: On any non-throttling failure (not retried).
        """
        for attempt in range(self._retry.max_attempts):
            try:
                return await self._provider.complete(request)
            except RateLimitError as exc:
                if attempt + 1 >= self._retry.max_attempts:
                    logger.warning(
                        "Provider %s still throttled after %d attempts, giving up",
                        self._provider.name(), self._retry.max_attempts,
                    )
                    raise
                await self._backoff(attempt, exc)
        raise AssertionError("unreachable: retry loop always returns or raises")

    async def stream(self, request: CompletionRequest) -> AsyncIterator[str]:
        """Yield text fragments. Exhausting the iterator is the completion signal.

        A throttled stream is restarted only if nothing has been yielded yet,
        so callers never see duplicated fragments.
        """
        for attempt in range(self._retry.max_attempts):
            yielded = False
            try:
                async for fragment in self._provider.stream(request):
                    yielded = True
                    yield fragment
                return
            except RateLimitError as exc:
                if yielded or attempt + 1 >= self._retry.max_attempts:
                    raise
                await self._backoff(attempt, exc)

    async def send(self, request: CompletionRequest) -> str | AsyncIterator[str]:
        """Dispatch on request.stream: full text, or an iterator of fragments."""
        if request.stream:
            return self.stream(request)
        return await self.complete(request)

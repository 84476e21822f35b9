"""Abstract base for all completion providers."""

from abc import ABC, abstractmethod
from collections.abc import AsyncIterator

from roundtable.models import CompletionRequest


class ProviderError(Exception):
    """Raised when a provider call fails."""

    def __init__(self, provider_name: str, message: str) -> None:
        self.provider_name = provider_name
        super().__init__(f"[{provider_name}] {message}")


class RateLimitError(ProviderError):
    """Raised when the provider reports throttling. The only retryable failure."""


class AIProvider(ABC):
    """Abstract base for all completion providers."""

    @abstractmethod
    def name(self) -> str:
        """Return the short provider name (e.g. 'openai', 'claude')."""
        ...

    @abstractmethod
    def model_string(self) -> str:
        """Return the actual model identifier string."""
        ...

    @abstractmethod
    async def complete(self, request: CompletionRequest) -> str:
        """Return the full completion text for the request.

        Raises:
            RateLimitError: When the provider throttles the call.
            ProviderError: On any other API failure, timeout, or empty response.
        """
        ...

    @abstractmethod
    def stream(self, request: CompletionRequest) -> AsyncIterator[str]:
        """Yield incremental text fragments; iteration ending is the completion signal.

        Raises:
            RateLimitError: When the provider throttles the call.
            ProviderError: On any other API failure or timeout.
        """
        ...

"""Shared pytest fixtures."""

import re
from collections.abc import AsyncIterator, Callable
from pathlib import Path
from unittest.mock import AsyncMock

import pytest

from config.config_loader import (
    AppConfig,
    DefaultsConfig,
    InboxConfig,
    ModelConfig,
    RetryConfig,
    StageConfig,
    StagesConfig,
)
from roundtable.client import CompletionClient
from roundtable.events import EventEmitter, ProgressEvent
from roundtable.models import CompletionRequest, ParticipantResponse, RoundtableInput
from roundtable.providers.base import AIProvider

Reply = str | Callable[[CompletionRequest], str]
Failure = Callable[[CompletionRequest], Exception | None]

_SPEAKER = re.compile(r"^You are the (?P<name>.+?)(?: \(|\.)")


def system_text(request: CompletionRequest) -> str:
    return next((m.content for m in request.messages if m.role == "system"), "")


def user_text(request: CompletionRequest) -> str:
    return next((m.content for m in request.messages if m.role == "user"), "")


def speaker(request: CompletionRequest) -> str:
    """Name of the participant a request speaks as ("" if none)."""
    match = _SPEAKER.match(system_text(request))
    return match.group("name").strip() if match else ""


def is_conversational(request: CompletionRequest, name: str | None = None) -> bool:
    system = system_text(request)
    return "production meeting" in system and (name is None or speaker(request) == name)


def is_technical(request: CompletionRequest, name: str | None = None) -> bool:
    system = system_text(request)
    return "preparing a" in system and (name is None or speaker(request) == name)


def is_challenge(request: CompletionRequest) -> bool:
    return "Challenge the" in system_text(request)


def is_debate_response(request: CompletionRequest) -> bool:
    return "Respond to the" in system_text(request)


def is_synthesis(request: CompletionRequest) -> bool:
    return system_text(request).startswith("You are a creative cinematographer synthesizing")


def is_shots(request: CompletionRequest) -> bool:
    return system_text(request).startswith("Generate a technical shot list")


def is_hashtags(request: CompletionRequest) -> bool:
    return system_text(request).startswith("You suggest hashtags")


SAMPLE_SYNTHESIS = (
    "**Story & Direction**\n"
    "A lone figure watches the sun melt into the ocean, a quiet ending to a long day.\n\n"
    "**Format & Look**\n"
    "6s vertical, 180-degree shutter, fine 35mm grain.\n\n"
    "**Grade / Palette**\n"
    "Warm amber highlights, teal mids, lifted blacks."
)

SAMPLE_SHOTS = (
    '0.00-2.40 | "Horizon Reveal" | 24mm, slow dolly forward | Sun touches the waterline.\n'
    '2.40-4.50 | "Silhouette" | 85mm, static lock-off | Figure framed against the glow.\n'
    '4.50-6.00 | "Last Light" | 50mm, slow arc left | Final sliver of sun disappears.'
)


def roundtable_reply(request: CompletionRequest) -> str:
    """Deterministic stand-in for the model, keyed on the kind of request."""
    if is_synthesis(request):
        return SAMPLE_SYNTHESIS
    if is_shots(request):
        return SAMPLE_SHOTS
    if is_hashtags(request):
        return '["#sunset", "#oceanvibes", "#cinematic"]'
    if is_challenge(request):
        return "What if we hold the wide shot longer to let the horizon breathe?"
    if is_debate_response(request):
        return "Agreed, but a slow push keeps it alive on a small screen."
    if is_technical(request):
        return f"{speaker(request)} technical specs: 35mm, golden hour."
    if is_conversational(request):
        return f"{speaker(request)} here. This brief is beautiful! Let's make it sing."
    return "Mock response."


class MockProvider(AIProvider):
    """Scripted test double. Records every request it receives."""

    def __init__(
        self,
        provider_name: str = "mock",
        reply: Reply = roundtable_reply,
        fail: Failure | None = None,
    ) -> None:
        self._name = provider_name
        self._reply = reply
        self._fail = fail
        self.requests: list[CompletionRequest] = []

    def name(self) -> str:
        return self._name

    def model_string(self) -> str:
        return "mock-model"

    def _text_for(self, request: CompletionRequest) -> str:
        self.requests.append(request)
        if self._fail is not None:
            error = self._fail(request)
            if error is not None:
                raise error
        return self._reply(request) if callable(self._reply) else self._reply

    async def complete(self, request: CompletionRequest) -> str:
        return self._text_for(request)

    async def stream(self, request: CompletionRequest) -> AsyncIterator[str]:
        text = self._text_for(request)
        for fragment in re.findall(r"\S+\s*", text):
            yield fragment


class EventRecorder:
    """Listener that keeps every event it receives, in order."""

    def __init__(self) -> None:
        self.events: list[ProgressEvent] = []

    def __call__(self, event: ProgressEvent) -> None:
        self.events.append(event)

    @property
    def types(self) -> list[str]:
        return [e.type for e in self.events]

    def of_type(self, event_type: str) -> list[ProgressEvent]:
        return [e for e in self.events if e.type == event_type]


@pytest.fixture
def stages_config() -> StagesConfig:
    return StagesConfig(
        conversational=StageConfig(temperature=0.8, max_tokens=300),
        technical=StageConfig(temperature=0.7, max_tokens=500),
        debate=StageConfig(temperature=0.8, max_tokens=150),
        synthesis=StageConfig(temperature=0.5, max_tokens=2000),
        shots=StageConfig(temperature=0.5, max_tokens=800),
        hashtags=StageConfig(temperature=0.5, max_tokens=200),
    )


@pytest.fixture
def retry_config() -> RetryConfig:
    return RetryConfig(max_attempts=3, base_delay_sec=1.0, max_delay_sec=10.0)


@pytest.fixture
def sample_model_config() -> ModelConfig:
    return ModelConfig(
        name="test_model",
        sdk="openai",
        model="test-model-1",
        api_key_env="TEST_API_KEY",
        timeout_sec=30,
    )


@pytest.fixture
def sample_app_config(tmp_path: Path, stages_config: StagesConfig, retry_config: RetryConfig) -> AppConfig:
    model_cfg = ModelConfig(
        name="openai",
        sdk="openai",
        model="gpt-4o-mini",
        api_key_env="OPENAI_API_KEY",
        timeout_sec=60,
    )
    return AppConfig(
        defaults=DefaultsConfig(provider="openai", platform="TikTok", output_dir=tmp_path / "output"),
        inbox=InboxConfig(dir=tmp_path / "inbox", archive_dir=tmp_path / "inbox" / "archive"),
        models={"openai": model_cfg},
        stages=stages_config,
        retry=retry_config,
        debate_pairings=[("director", "cinematographer")],
        available_providers={"openai"},
    )


@pytest.fixture
def sunset_input() -> RoundtableInput:
    return RoundtableInput(brief="A cinematic shot of a sunset over the ocean", platform="TikTok")


@pytest.fixture
def mock_provider() -> MockProvider:
    return MockProvider()


@pytest.fixture
def no_sleep() -> AsyncMock:
    return AsyncMock(return_value=None)


@pytest.fixture
def client(mock_provider: MockProvider, retry_config: RetryConfig, no_sleep: AsyncMock) -> CompletionClient:
    return CompletionClient(mock_provider, retry_config, sleep=no_sleep)


@pytest.fixture
def recorder() -> EventRecorder:
    return EventRecorder()


@pytest.fixture
def emitter(recorder: EventRecorder) -> EventEmitter:
    emitter = EventEmitter()
    emitter.subscribe(recorder)
    return emitter


@pytest.fixture
def sample_responses() -> list[ParticipantResponse]:
    return [
        ParticipantResponse("director", "Director", "🎬", "Make it feel like a farewell.", "Three-beat arc."),
        ParticipantResponse("cinematographer", "Cinematographer", "📹", "Wide and patient.", "24mm, slow dolly."),
        ParticipantResponse("editor", "Editor", "✂️", "Long holds, one cut.", "4.0s average shot."),
        ParticipantResponse("colorist", "Colorist", "🎨", "Amber into teal.", "Warm highlights, teal mids."),
        ParticipantResponse("platform_expert", "Platform Expert", "📱", "Hook in the first second.", "9:16, 30fps."),
    ]

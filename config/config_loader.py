"""Load settings.yaml into typed dataclasses. Validates API keys at startup."""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

import yaml

logger = logging.getLogger(__name__)

_SETTINGS_PATH = Path(__file__).parent / "settings.yaml"

_STAGE_NAMES = ("conversational", "technical", "debate", "synthesis", "shots", "hashtags")


@dataclass
class ModelConfig:
    name: str
    sdk: str
    model: str
    api_key_env: str
    timeout_sec: int
    base_url: str | None = None


@dataclass
class StageConfig:
    temperature: float
    max_tokens: int


@dataclass
class StagesConfig:
    conversational: StageConfig
    technical: StageConfig
    debate: StageConfig
    synthesis: StageConfig
    shots: StageConfig
    hashtags: StageConfig


@dataclass
class RetryConfig:
    max_attempts: int = 4
    base_delay_sec: float = 1.0
    max_delay_sec: float = 20.0

    def delay_for(self, attempt: int) -> float:
        """Backoff before the retry that follows the given 0-indexed attempt."""
        return min(self.base_delay_sec * (2 ** attempt), self.max_delay_sec)


@dataclass
class DefaultsConfig:
    provider: str
    platform: str
    output_dir: Path


@dataclass
class InboxConfig:
    dir: Path
    archive_dir: Path


@dataclass
class AppConfig:
    defaults: DefaultsConfig
    inbox: InboxConfig
    models: dict[str, ModelConfig]
    stages: StagesConfig
    retry: RetryConfig
    debate_pairings: list[tuple[str, str]] = field(default_factory=list)
    available_providers: set[str] = field(default_factory=set)


def _load_stages(stages_raw: dict) -> StagesConfig:
    stages: dict[str, StageConfig] = {}
    for stage_name in _STAGE_NAMES:
        stage_raw = stages_raw[stage_name]
        stages[stage_name] = StageConfig(
            temperature=float(stage_raw["temperature"]),
            max_tokens=int(stage_raw["max_tokens"]),
        )
    return StagesConfig(**stages)


def load_config(settings_path: Path = _SETTINGS_PATH) -> AppConfig:
    """Load and validate configuration from settings.yaml.

    Raises FileNotFoundError if settings file missing.
    Logs missing API keys but does not raise; callers check
    available_providers.
    """
    if not settings_path.exists():
        raise FileNotFoundError(f"Settings file not found: {settings_path}")

    with settings_path.open("r", encoding="utf-8") as f:
        raw = yaml.safe_load(f)

    defaults_raw = raw["defaults"]
    defaults = DefaultsConfig(
        provider=str(defaults_raw["provider"]),
        platform=str(defaults_raw["platform"]),
        output_dir=Path(defaults_raw["output_dir"]),
    )

    inbox_raw = raw.get("inbox", {})
    inbox = InboxConfig(
        dir=Path(inbox_raw.get("dir", "./inbox")),
        archive_dir=Path(inbox_raw.get("archive_dir", "./inbox/archive")),
    )

    retry_raw = raw.get("retry", {})
    retry = RetryConfig(
        max_attempts=int(retry_raw.get("max_attempts", 4)),
        base_delay_sec=float(retry_raw.get("base_delay_sec", 1.0)),
        max_delay_sec=float(retry_raw.get("max_delay_sec", 20.0)),
    )
    if retry.max_attempts < 1:
        raise ValueError(f"retry.max_attempts must be at least 1, got {retry.max_attempts}")

    debate_pairings = [
        (str(p["challenger"]), str(p["responder"]))
        for p in raw.get("debate_pairings", [])
    ]

    models: dict[str, ModelConfig] = {}
    available_providers: set[str] = set()

    for provider_name, model_raw in raw["models"].items():
        model_cfg = ModelConfig(
            name=provider_name,
            sdk=model_raw["sdk"],
            model=model_raw["model"],
            api_key_env=model_raw["api_key_env"],
            timeout_sec=int(model_raw["timeout_sec"]),
            base_url=model_raw.get("base_url"),
        )
        models[provider_name] = model_cfg

        api_key = os.environ.get(model_raw["api_key_env"], "").strip()
        if api_key:
            available_providers.add(provider_name)
            logger.info("Provider available: %s", provider_name)
        else:
            logger.info(
                "Provider skipped (no API key): %s - set %s in .env",
                provider_name,
                model_raw["api_key_env"],
            )

    return AppConfig(
        defaults=defaults,
        inbox=inbox,
        models=models,
        stages=_load_stages(raw["stages"]),
        retry=retry,
        debate_pairings=debate_pairings,
        available_providers=available_providers,
    )

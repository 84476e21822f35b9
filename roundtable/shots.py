"""Timecoded shot list generated from the synthesized prompt."""

import logging
import re

from config.config_loader import StageConfig
from roundtable.client import CompletionClient
from roundtable.context import target_duration
from roundtable.events import EventEmitter
from roundtable.models import ChatMessage, CompletionRequest, RoundtableInput, Shot
from roundtable.streaming import fold_stream

logger = logging.getLogger(__name__)

_SYSTEM_PROMPT = """Generate a technical shot list. Write exactly one line per shot in this format:

START-END | "Shot Name" | focal length, movement | one-line visual description

Example:
0.00-2.40 | "Horizon Reveal" | 24mm, slow dolly forward | Sun touches the waterline as gulls cross frame left.

Requirements:
- Timecodes in seconds with two decimals, contiguous (0.00-2.40, 2.40-4.50, ...)
- Exact focal lengths (24mm, 35mm, 50mm, 85mm)
- Specific movement (slow dolly left, handheld tracking, static lock-off, slow arc)
- Fields separated by " | " and nothing else on the line
- Generate 2-4 shots that fit the total duration."""

_TIMECODE = r"\d+(?:[.:]\d{1,2})?s?"
_SHOT_LINE = re.compile(
    rf"^\s*(?:\d+[.)]\s+)?(?P<start>{_TIMECODE})\s*[-–—]\s*(?P<end>{_TIMECODE})\s*\|"
    r"\s*(?P<label>[^|]+?)\s*\|\s*(?P<camera>[^|]+?)\s*\|\s*(?P<description>.+?)\s*$"
)


def build_shot_messages(final_prompt: str, roundtable_input: RoundtableInput) -> tuple[ChatMessage, ...]:
    user = (
        f"Platform: {roundtable_input.platform} ({target_duration(roundtable_input.platform)})\n\n"
        "Based on this technical prompt, generate the optimized shot list:\n\n"
        f"{final_prompt}\n\n"
        "Shot list:"
    )
    return (ChatMessage("system", _SYSTEM_PROMPT), ChatMessage("user", user))


def parse_shot_list(text: str) -> list[Shot]:
    """Parse well-formed shot lines; anything else is skipped."""
    shots: list[Shot] = []
    for line in text.splitlines():
        match = _SHOT_LINE.match(line.strip().strip("*`"))
        if not match:
            continue
        shots.append(Shot(
            start=match.group("start"),
            end=match.group("end"),
            label=match.group("label").strip().strip('"“”'),
            camera=match.group("camera").strip().strip("()"),
            description=match.group("description"),
        ))
    return shots


async def generate_shot_list(
    final_prompt: str,
    roundtable_input: RoundtableInput,
    client: CompletionClient,
    stage: StageConfig,
    emitter: EventEmitter,
) -> str:
    """Stream the shot list and return its full text.

    Raises:
        ProviderError: If the call fails after retries (stage-critical).
        RuntimeError: If the model returns no shot list at all.
    """
    request = CompletionRequest(
        messages=build_shot_messages(final_prompt, roundtable_input),
        stream=True,
        temperature=stage.temperature,
        max_tokens=stage.max_tokens,
    )
    try:
        suggested_shots = await fold_stream(
            client.stream(request),
            lambda content: emitter.emit("shots_chunk", {"content": content}),
        )
        if not suggested_shots.strip():
            raise RuntimeError(f"Provider {client.provider.name()} returned an empty shot list")
    except Exception as exc:
        emitter.emit("shots_error", {"error": str(exc)})
        raise

    emitter.emit("shots_complete", {"suggestedShots": suggested_shots})
    logger.info("Shot list ready: %d parseable shots", len(parse_shot_list(suggested_shots)))
    return suggested_shots

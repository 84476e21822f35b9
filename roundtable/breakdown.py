"""Auxiliary breakdown: hashtags for the finished prompt. Cosmetic, never fatal."""

import json
import logging
import re

from config.config_loader import StageConfig
from roundtable.client import CompletionClient
from roundtable.events import EventEmitter
from roundtable.models import ChatMessage, CompletionRequest, RoundtableInput

logger = logging.getLogger(__name__)

_FENCE = re.compile(r"^\s*```(?:json)?\s*(?P<body>.*?)\s*```\s*$", re.DOTALL)


def build_hashtag_messages(final_prompt: str, roundtable_input: RoundtableInput) -> tuple[ChatMessage, ...]:
    system = (
        "You suggest hashtags for short-form video. Reply with a JSON array of 5-10 short "
        'hashtag strings, e.g. ["#sunset", "#oceanvibes"]. No branded hashtags. '
        "Reply with the JSON array only."
    )
    user = f"Platform: {roundtable_input.platform}\n\nVideo prompt:\n{final_prompt}"
    return (ChatMessage("system", system), ChatMessage("user", user))


def parse_hashtags(text: str) -> list[str]:
    """Parse the model's reply into a list of hashtag strings.

    Accepts a JSON array, or an object with a "hashtags" array, optionally in
    a markdown code fence. Non-string entries are dropped. Returns [] for
    anything unparseable.
    """
    body = text.strip()
    fenced = _FENCE.match(body)
    if fenced:
        body = fenced.group("body")
    try:
        parsed = json.loads(body)
    except (json.JSONDecodeError, TypeError):
        return []
    if isinstance(parsed, dict):
        parsed = parsed.get("hashtags")
    if not isinstance(parsed, list):
        return []
    return [tag.strip() for tag in parsed if isinstance(tag, str) and tag.strip()]


async def generate_hashtags(
    final_prompt: str,
    roundtable_input: RoundtableInput,
    client: CompletionClient,
    stage: StageConfig,
    emitter: EventEmitter,
) -> list[str]:
    """Request hashtags as a single non-streamed call. Returns [] on any failure."""
    emitter.emit("breakdown_start", {"message": "Generating hashtags and breakdown..."})
    request = CompletionRequest(
        messages=build_hashtag_messages(final_prompt, roundtable_input),
        stream=False,
        temperature=stage.temperature,
        max_tokens=stage.max_tokens,
    )
    try:
        reply = await client.complete(request)
    except Exception as exc:
        logger.warning("Hashtag generation failed, continuing without hashtags: %s", exc)
        return []

    hashtags = parse_hashtags(reply)
    if not hashtags:
        logger.warning("Could not parse hashtags from reply: %.80s", reply)
    return hashtags

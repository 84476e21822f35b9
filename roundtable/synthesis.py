"""Final synthesis: merge every participant's output into one structured creative brief."""

import logging
import re
from collections.abc import Sequence

from config.config_loader import StageConfig
from roundtable.client import CompletionClient
from roundtable.context import build_voice_profiles, target_duration
from roundtable.events import EventEmitter
from roundtable.models import ChatMessage, CompletionRequest, DebateTurn, ParticipantResponse, RoundtableInput
from roundtable.participants import get_participant
from roundtable.streaming import fold_stream

logger = logging.getLogger(__name__)

# Client-side chunks are sent once the buffer grows past this many characters.
SYNTHESIS_CHUNK_CHARS = 50

SECTION_TITLES = (
    "Story & Direction",
    "Format & Look",
    "Lenses & Filtration",
    "Grade / Palette",
    "Lighting & Atmosphere",
    "Location & Framing",
    "Wardrobe / Props / Extras",
    "Sound",
    "Optimized Shot List",
    "Camera Notes",
    "Finishing",
)

_SYSTEM_PROMPT = """You are a creative cinematographer synthesizing a video generation prompt that balances technical precision with compelling storytelling.

Output must follow this structure, each section under its bold header:

**Story & Direction**
Narrative arc, emotional beats, character motivations, scene purpose. If characters are provided, describe them EXACTLY as specified; character descriptions are locked.

**Format & Look**
Duration, shutter angle, capture format, grain, halation.

**Lenses & Filtration**
Focal lengths, spherical/anamorphic, filtration (Black Pro-Mist, ND, CPL).

**Grade / Palette**
Highlights, mids, blacks: specific color treatment for each tonal range.

**Lighting & Atmosphere**
Sources, direction, quality, bounce/fill/negative, atmospheric effects.

**Location & Framing**
Setting, foreground/midground/background, composition rules, brand avoidance.

**Wardrobe / Props / Extras**
Main subject with character details, extras, key props, wardrobe.

**Sound**
Diegetic/non-diegetic approach, sound elements, LUFS levels, foley notes. If screenplay dialogue is provided, include the actual lines as - CHARACTER: "line", followed by the character's voice profile when one is given.

**Optimized Shot List**
Numbered shots with timecodes, lens, movement and purpose.

**Camera Notes**
Why the technical choices work; what to preserve or avoid.

**Finishing**
Grain overlay, color finishing, mix priorities, poster frame.

Be specific with measurements, focal lengths and color values."""

_HEADER = re.compile(r"^\s*(?:\*\*(?P<bold>[^*]+?)\*\*|#{1,6}\s+(?P<hash>.+?))\s*:?\s*$")
_SECTION_KEYS = {title.lower(): title for title in SECTION_TITLES}


def _one_line(text: str) -> str:
    return " ".join(text.split())


def format_team_insights(responses: Sequence[ParticipantResponse]) -> str:
    """One "Name: text" line per participant, conversational then technical."""
    lines: list[str] = []
    for r in responses:
        conversational = _one_line(r.conversational)
        technical = _one_line(r.technical)
        text = conversational
        if technical:
            text = f"{conversational} | Technical: {technical}" if conversational else f"Technical: {technical}"
        lines.append(f"{r.name}: {text or '(no contribution)'}")
    return "\n".join(lines)


def format_debate(turns: Sequence[DebateTurn]) -> str:
    lines = [
        f"{get_participant(t.from_agent).name} to {get_participant(t.to_agent).name}: {_one_line(t.text)}"
        for t in turns
        if t.text.strip()
    ]
    return "\n".join(lines)


def build_synthesis_messages(
    roundtable_input: RoundtableInput,
    responses: Sequence[ParticipantResponse],
    debate: Sequence[DebateTurn] = (),
) -> tuple[ChatMessage, ...]:
    user = (
        f"Original Brief: {roundtable_input.brief}\n"
        f"Platform: {roundtable_input.platform}\n"
        f"Duration: {target_duration(roundtable_input.platform)}"
    )
    if roundtable_input.character_context and roundtable_input.character_context.strip():
        user += f"\n\nCHARACTERS:\n{roundtable_input.character_context.strip()}"
    voice_profiles = build_voice_profiles(roundtable_input)
    if voice_profiles:
        user += f"\n\n{voice_profiles}"
    if roundtable_input.screenplay_context and roundtable_input.screenplay_context.strip():
        user += f"\n\nSCREENPLAY EXCERPT:\n{roundtable_input.screenplay_context.strip()}"

    user += f"\n\nTeam Insights:\n{format_team_insights(responses)}"

    debate_block = format_debate(debate)
    if debate_block:
        user += f"\n\nCreative Debate:\n{debate_block}"

    user += (
        "\n\nGenerate the prompt following the required structure. "
        "Use character descriptions EXACTLY as provided above."
    )
    return (ChatMessage("system", _SYSTEM_PROMPT), ChatMessage("user", user))


def extract_sections(text: str) -> dict[str, str]:
    """Split the final prompt into {header: body}, in order of appearance.

    Headers are **Bold** lines or markdown # headings naming one of
    SECTION_TITLES; any other bold label stays in the current body. Text
    before the first header is ignored. Missing sections are simply absent.
    """
    sections: dict[str, str] = {}
    current: str | None = None
    body: list[str] = []
    for line in text.splitlines():
        match = _HEADER.match(line)
        title = None
        if match:
            label = (match.group("bold") or match.group("hash")).strip().rstrip(":").strip()
            title = _SECTION_KEYS.get(label.lower())
        if title:
            if current is not None:
                sections[current] = "\n".join(body).strip()
            current = title
            body = []
        elif current is not None:
            body.append(line)
    if current is not None:
        sections[current] = "\n".join(body).strip()
    return sections


async def synthesize(
    roundtable_input: RoundtableInput,
    responses: Sequence[ParticipantResponse],
    debate: Sequence[DebateTurn],
    client: CompletionClient,
    stage: StageConfig,
    emitter: EventEmitter,
) -> str:
    """Stream the synthesis and return the final prompt text.

    Raises:
        ProviderError: If the call fails after retries (stage-critical).
        RuntimeError: If the synthesizer returns empty content.
    """
    request = CompletionRequest(
        messages=build_synthesis_messages(roundtable_input, responses, debate),
        stream=True,
        temperature=stage.temperature,
        max_tokens=stage.max_tokens,
    )

    logger.info("Running synthesis via %s", client.provider.name())
    emitter.emit("synthesis_start", {"message": "Crafting final optimized prompt..."})

    try:
        final_prompt = await fold_stream(
            client.stream(request),
            lambda content: emitter.emit("synthesis_chunk", {"content": content}),
            min_chunk_chars=SYNTHESIS_CHUNK_CHARS,
        )
        if not final_prompt.strip():
            raise RuntimeError(f"Synthesizer {client.provider.name()} returned empty content")
    except Exception as exc:
        emitter.emit("synthesis_error", {"error": str(exc)})
        raise

    emitter.emit("synthesis_complete", {
        "optimizedPrompt": final_prompt,
        "characterCount": len(final_prompt),
    })
    missing = [t for t in SECTION_TITLES if t not in extract_sections(final_prompt)]
    if missing:
        logger.info("Synthesis is missing %d labeled sections: %s", len(missing), ", ".join(missing))
    return final_prompt

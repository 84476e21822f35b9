"""Shared context block injected into every participant prompt."""

import re

from roundtable.models import RoundtableInput

# Known style-hint keys and their labels, in render order.
_STYLE_HINT_LABELS = {
    "camera_style": "Camera",
    "lighting_mood": "Lighting",
    "color_palette": "Colors",
    "overall_tone": "Tone",
    "narrative_prefix": "Narrative",
}

_VOICE_FIELDS = ("tone", "pitch", "pace", "accent", "mannerisms", "vocal_quirks")

_SHORT_FORM_PLATFORMS = {"tiktok", "instagram", "reels", "instagram reels", "youtube shorts", "shorts"}


def _section(header: str, body: str) -> str:
    return f"{header}:\n{body.strip()}"


def _style_hints_line(style_hints: dict[str, str]) -> str:
    hints: list[str] = []
    for key, label in _STYLE_HINT_LABELS.items():
        value = str(style_hints.get(key) or "").strip()
        if value:
            hints.append(f"{label}: {value}")
    for key, value in style_hints.items():
        if key in _STYLE_HINT_LABELS:
            continue
        value = str(value or "").strip()
        if value:
            hints.append(f"{key.replace('_', ' ').capitalize()}: {value}")
    return ", ".join(hints)


def build_context(roundtable_input: RoundtableInput) -> str:
    """Render the non-empty context sections under fixed uppercase headers.

    Order: VISUAL TEMPLATE, CHARACTERS, SCREENPLAY EXCERPT, SETTINGS, STYLE HINTS.
    Returns "" when nothing is set.
    """
    sections: list[str] = []

    if roundtable_input.visual_template and roundtable_input.visual_template.strip():
        sections.append(_section("VISUAL TEMPLATE", roundtable_input.visual_template))

    if roundtable_input.character_context and roundtable_input.character_context.strip():
        sections.append(_section("CHARACTERS", roundtable_input.character_context))

    if roundtable_input.screenplay_context and roundtable_input.screenplay_context.strip():
        sections.append(_section("SCREENPLAY EXCERPT", roundtable_input.screenplay_context))

    setting_lines = [
        f"- {s.name}: {s.description}" if s.description.strip() else f"- {s.name}"
        for s in roundtable_input.settings
        if s.name.strip()
    ]
    if setting_lines:
        sections.append(_section("SETTINGS", "\n".join(setting_lines)))

    hints = _style_hints_line(roundtable_input.style_hints)
    if hints:
        sections.append(_section("STYLE HINTS", hints))

    return "\n\n".join(sections)


def build_voice_profiles(roundtable_input: RoundtableInput) -> str:
    """Render a CHARACTER VOICE PROFILES block, or "" if no profile has content."""
    lines: list[str] = []
    for character, profile in roundtable_input.voice_profiles.items():
        values = [str(profile.get(f) or "").strip() for f in _VOICE_FIELDS]
        values = [v for v in values if v]
        if not values:
            continue
        line = re.sub(r"\s+", " ", f"{character}: {', '.join(values)}").strip()
        lines.append(line)
    if not lines:
        return ""
    return _section("CHARACTER VOICE PROFILES", "\n".join(lines))


def target_duration(platform: str) -> str:
    if platform.strip().lower() in _SHORT_FORM_PLATFORMS:
        return "4-8s for short-form"
    return "8-12s for standard"

"""Tests for roundtable/participants.py: roster and prompt templates."""

import pytest

from roundtable.participants import (
    ROSTER,
    build_conversational_messages,
    build_technical_messages,
    get_participant,
)


def _text(messages) -> str:
    return "\n".join(m.content for m in messages)


def test_roster_is_fixed_and_ordered():
    assert [p.id for p in ROSTER] == ["director", "cinematographer", "editor", "colorist", "platform_expert"]
    assert len({p.emoji for p in ROSTER}) == 5


def test_get_participant_unknown_raises():
    with pytest.raises(ValueError, match="Unknown participant"):
        get_participant("sound_designer")


def test_platform_appears_verbatim_in_platform_expert_prompts(sunset_input):
    expert = get_participant("platform_expert")
    conversational = build_conversational_messages(expert, sunset_input, "", [])
    technical = build_technical_messages(expert, sunset_input, "", [])
    assert "TikTok Platform Specialist" in conversational[0].content
    assert "for TikTok" in technical[0].content


def test_first_participant_has_no_predecessor_block(sunset_input):
    messages = build_conversational_messages(ROSTER[0], sunset_input, "", [])
    assert "WHAT THE TEAM JUST SAID" not in _text(messages)
    assert sunset_input.brief in messages[1].content


def test_later_participants_quote_immediate_predecessors_verbatim(sunset_input):
    director, cinematographer, editor, colorist, _ = ROSTER
    previous = [
        (director, "Make it feel like a farewell."),
        (cinematographer, "Wide and patient, 24mm."),
        (editor, "One slow cut."),
    ]
    messages = build_conversational_messages(colorist, sunset_input, "", previous)
    user = messages[1].content
    assert '- Cinematographer: "Wide and patient, 24mm."' in user
    assert '- Editor: "One slow cut."' in user
    # Only the immediately preceding participants are quoted.
    assert "farewell" not in user


def test_failed_predecessor_is_marked(sunset_input):
    director, cinematographer = ROSTER[0], ROSTER[1]
    messages = build_conversational_messages(cinematographer, sunset_input, "", [(director, "")])
    assert "- Director: (no response)" in messages[1].content


def test_context_block_is_injected(sunset_input):
    messages = build_conversational_messages(ROSTER[0], sunset_input, "SETTINGS:\n- Pier", [])
    assert "SETTINGS:\n- Pier" in messages[1].content


def test_technical_prompt_sees_all_conversation_but_no_technical_output(sunset_input):
    conversation = [(p, f"{p.name} spoke.") for p in ROSTER]
    messages = build_technical_messages(ROSTER[2], sunset_input, "", conversation)
    user = messages[1].content
    for p in ROSTER:
        assert f"- {p.name}: {p.name} spoke." in user
    assert "technical specs:" not in user.lower()


def test_technical_prompt_skips_empty_conversation(sunset_input):
    conversation = [(ROSTER[0], ""), (ROSTER[1], "Wide.")]
    user = build_technical_messages(ROSTER[3], sunset_input, "", conversation)[1].content
    assert "- Director:" not in user
    assert "- Cinematographer: Wide." in user

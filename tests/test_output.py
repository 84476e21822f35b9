"""Tests for roundtable/output.py."""

from pathlib import Path

import pytest

from roundtable.events import ProgressEvent
from roundtable.models import DebateTurn, RunResult
from roundtable.output import _slug, print_event, print_result, save_to_file
from roundtable.shots import parse_shot_list
from tests.conftest import SAMPLE_SHOTS, SAMPLE_SYNTHESIS


def test_slug_basic():
    assert _slug("A cinematic shot of a sunset!") == "a-cinematic-shot-of-a-sunset"


def test_slug_max_len():
    assert len(_slug("a" * 100)) <= 40


def test_slug_special_chars():
    result = _slug("Sunset vs. Sunrise (2024)")
    assert "." not in result
    assert "(" not in result
    assert ")" not in result


@pytest.fixture
def sample_result(sample_responses) -> RunResult:
    sample_responses[4].error = "[mock] timed out"
    return RunResult(
        final_prompt=SAMPLE_SYNTHESIS,
        character_count=len(SAMPLE_SYNTHESIS),
        suggested_shots=SAMPLE_SHOTS,
        agent_responses=tuple(sample_responses),
        hashtags=("#sunset", "#ocean"),
        debate=(
            DebateTurn("director", "cinematographer", "Hold the wide longer?"),
            DebateTurn("cinematographer", "director", "", error="[mock] down"),
        ),
        shots=tuple(parse_shot_list(SAMPLE_SHOTS)),
    )


def test_save_to_file_creates_output_dir(tmp_path: Path, sample_result, sunset_input):
    output_dir = tmp_path / "nested" / "output"
    saved = save_to_file(sample_result, sunset_input, output_dir)
    assert saved.exists()
    assert saved.suffix == ".md"
    assert saved.parent == output_dir


def test_save_to_file_content(tmp_path: Path, sample_result, sunset_input):
    content = save_to_file(sample_result, sunset_input, tmp_path).read_text(encoding="utf-8")
    assert content.startswith("# Creative Roundtable: A cinematic shot of a sunset over the ocean")
    assert "**Platform:** TikTok" in content
    assert "**Sections:** Story & Direction, Format & Look, Grade / Palette" in content
    assert "## Round 1: Team" in content
    assert "### 🎬 Director" in content
    assert "*Error: [mock] timed out*" in content
    assert "**Director to Cinematographer:** Hold the wide longer?" in content
    assert "**Cinematographer to Director:** *(no response)*" in content
    assert SAMPLE_SYNTHESIS in content
    assert SAMPLE_SHOTS in content
    assert "#sunset #ocean" in content


def test_save_to_file_filename_has_slug(tmp_path: Path, sample_result, sunset_input):
    saved = save_to_file(sample_result, sunset_input, tmp_path)
    assert saved.name.endswith("_a-cinematic-shot-of-a-sunset-over-the-oc.md")


def test_save_to_file_slug_override(tmp_path: Path, sample_result, sunset_input):
    saved = save_to_file(sample_result, sunset_input, tmp_path, slug_override="inbox-brief")
    assert saved.name.endswith("_inbox-brief.md")


def test_print_functions_render(sample_result, capsys):
    print_event(ProgressEvent("status", {"stage": "round1", "message": "Round 1"}))
    print_event(ProgressEvent("message_complete", {
        "agent": "director", "name": "Director", "emoji": "🎬", "conversationalResponse": "Farewell.",
    }))
    print_event(ProgressEvent("debate_message", {"from": "director", "toName": "Cinematographer", "content": "Why?"}))
    print_event(ProgressEvent("message_chunk", {"agent": "director", "content": "ignored"}))
    print_result(sample_result)

    out = capsys.readouterr().out
    assert "Farewell." in out
    assert "Silhouette" in out
    assert "ignored" not in out

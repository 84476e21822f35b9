"""Rich console rendering of live events and results, plus markdown export."""

import logging
import re
from datetime import datetime
from pathlib import Path

from rich.console import Console
from rich.markdown import Markdown
from rich.panel import Panel
from rich.rule import Rule
from rich.table import Table
from rich.text import Text

from roundtable.events import ProgressEvent
from roundtable.models import RoundtableInput, RunResult
from roundtable.participants import get_participant
from roundtable.synthesis import extract_sections

logger = logging.getLogger(__name__)

console = Console(legacy_windows=False)


def _slug(text: str, max_len: int = 40) -> str:
    """Convert text to a filename-safe slug."""
    slug = re.sub(r"[^\w\s-]", "", text.lower())
    slug = re.sub(r"[\s_-]+", "-", slug).strip("-")
    return slug[:max_len]


def print_event(event: ProgressEvent) -> None:
    """Render one progress event. Chunk events are skipped; the complete ones carry the text."""
    data = event.data
    if event.type == "status":
        console.print(Rule(f"[bold cyan]{data.get('message', data.get('stage', ''))}[/bold cyan]"))
    elif event.type == "typing_start":
        console.print(Text(data.get("message", f"{data.get('name')} is typing..."), style="dim"))
    elif event.type == "message_complete" and data.get("conversationalResponse"):
        console.print(
            Panel(
                data["conversationalResponse"],
                title=f"{data.get('emoji', '')} [bold]{data.get('name')}[/bold]",
                border_style="dim",
            )
        )
    elif event.type == "agent_error":
        console.print(f"[red]FAIL[/red] {data.get('agent')}: {data.get('error')}")
    elif event.type == "debate_start":
        console.print(Text(data.get("message", ""), style="italic"))
    elif event.type == "debate_message" and data.get("content"):
        speaker = get_participant(data["from"])
        console.print(f"{speaker.emoji} [bold]{speaker.name}[/bold] -> {data.get('toName', data.get('to'))}: "
                      f"{data['content']}")
    elif event.type in ("synthesis_error", "shots_error"):
        console.print(f"[bold red]{event.type}:[/bold red] {data.get('error')}")


def print_result(result: RunResult) -> None:
    console.print(Rule("[bold green]Final Prompt[/bold green]"))
    console.print(Text(f"{result.character_count} characters", style="dim"))
    console.print(Markdown(result.final_prompt))

    console.print(Rule("[bold green]Shot List[/bold green]"))
    if result.shots:
        table = Table(show_lines=False)
        table.add_column("Time")
        table.add_column("Shot", style="bold")
        table.add_column("Camera")
        table.add_column("Description")
        for shot in result.shots:
            table.add_row(f"{shot.start}-{shot.end}", shot.label, shot.camera, shot.description)
        console.print(table)
    else:
        console.print(result.suggested_shots)

    if result.hashtags:
        console.print(Text(" ".join(result.hashtags), style="cyan"))


def save_to_file(
    result: RunResult,
    roundtable_input: RoundtableInput,
    output_dir: Path,
    slug_override: str | None = None,
) -> Path:
    """Save the roundtable transcript and outputs as a markdown file.

    Args:
        result: The completed RunResult.
        roundtable_input: The input the run was made with.
        output_dir: Directory to save the file in.
        slug_override: If provided, use this as the filename stem instead of
            deriving one from the brief. Useful for inbox mode.

    Returns:
        Path to the saved file.
    """
    output_dir.mkdir(parents=True, exist_ok=True)

    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    slug = slug_override if slug_override is not None else _slug(roundtable_input.brief)
    filepath = output_dir / f"{timestamp}_{slug}.md"

    sections = extract_sections(result.final_prompt)
    lines: list[str] = [
        f"# Creative Roundtable: {roundtable_input.brief[:80]}",
        "",
        f"**Date:** {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}",
        f"**Platform:** {roundtable_input.platform}",
        f"**Characters:** {result.character_count}",
        f"**Sections:** {', '.join(sections) if sections else 'none labeled'}",
        "",
        "---",
        "",
        "## Round 1: Team",
        "",
    ]
    for resp in result.agent_responses:
        lines.append(f"### {resp.emoji} {resp.name}")
        lines.append("")
        lines.append(resp.conversational or "*(no response)*")
        lines.append("")
        if resp.technical:
            lines.append("**Technical notes**")
            lines.append("")
            lines.append(resp.technical)
            lines.append("")
        if resp.error:
            lines.append(f"*Error: {resp.error}*")
            lines.append("")

    if result.debate:
        lines += ["## Round 2: Debate", ""]
        for turn in result.debate:
            speaker = get_participant(turn.from_agent)
            addressee = get_participant(turn.to_agent)
            lines.append(f"**{speaker.name} to {addressee.name}:** {turn.text or '*(no response)*'}")
            lines.append("")

    lines += ["## Final Prompt", "", result.final_prompt, "", "## Shot List", "", result.suggested_shots, ""]
    if result.hashtags:
        lines += ["## Hashtags", "", " ".join(result.hashtags), ""]

    filepath.write_text("\n".join(lines), encoding="utf-8")
    logger.info("Roundtable saved to: %s", filepath)
    return filepath

"""Click CLI: config loading, provider selection, live roundtable, and output."""

import asyncio
import logging
import sys
from pathlib import Path

import click
from dotenv import load_dotenv
from rich.console import Console
from rich.logging import RichHandler

from config.config_loader import AppConfig, load_config
from roundtable.client import CompletionClient
from roundtable.debate import resolve_pairings
from roundtable.events import EventEmitter, ProgressEvent
from roundtable.healthcheck import run_health_checks
from roundtable.inbox import archive_file, build_input, ensure_dirs, load_brief, parse_file, scan_inbox
from roundtable.models import RoundtableInput
from roundtable.output import print_event, print_result, save_to_file
from roundtable.pipeline import run_roundtable
from roundtable.providers.anthropic import AnthropicProvider
from roundtable.providers.base import AIProvider
from roundtable.providers.gemini import GeminiProvider
from roundtable.providers.openai_provider import OpenAIProvider

logger = logging.getLogger(__name__)

console = Console(legacy_windows=False)

PROVIDER_CLASSES: dict[str, type[AIProvider]] = {
    "openai": OpenAIProvider,
    "anthropic": AnthropicProvider,
    "gemini": GeminiProvider,
}


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(rich_tracebacks=True, show_path=False)],
    )


def _build_all_providers(config: AppConfig) -> dict[str, AIProvider]:
    """Build all available providers. Returns dict keyed by name."""
    providers: dict[str, AIProvider] = {}
    for name in sorted(config.available_providers):
        model_cfg = config.models[name]
        provider_class = PROVIDER_CLASSES.get(model_cfg.sdk)
        if provider_class is None:
            logger.warning("Provider '%s' uses unknown sdk '%s', skipping", name, model_cfg.sdk)
            continue
        try:
            providers[name] = provider_class(model_cfg)
        except Exception as exc:
            logger.warning("Failed to instantiate provider '%s': %s", name, exc)
    return providers


def _pick_provider(all_providers: dict[str, AIProvider], preferred: str) -> AIProvider:
    """Preferred provider if available, else the first available one."""
    if preferred in all_providers:
        return all_providers[preferred]
    fallback = next(iter(all_providers.values()))
    logger.warning("Provider '%s' unavailable, using '%s'", preferred, fallback.name())
    return fallback


def _check_provider(provider: AIProvider) -> bool:
    """Ping the provider and print the outcome."""
    console.print("\n[bold]Checking provider...[/bold]")
    results = asyncio.run(run_health_checks({provider.name(): provider}))
    ok, err = results[provider.name()]
    if ok:
        console.print(f"  [green]OK  [/green] {provider.name()}\n")
    else:
        short_err = err.splitlines()[0][:120] if err else "unknown error"
        console.print(f"  [red]FAIL[/red] {provider.name()}: {short_err}")
    return ok


def _event_printer(jsonl: bool):
    if not jsonl:
        return print_event

    def print_json(event: ProgressEvent) -> None:
        click.echo(event.to_json())

    return print_json


async def _run_single(
    roundtable_input: RoundtableInput,
    config: AppConfig,
    client: CompletionClient,
    output_dir: Path | None,
    jsonl: bool,
    slug_override: str | None = None,
) -> Path | None:
    """Run one roundtable, render it, and return the saved path (None when not saved)."""
    if not jsonl:
        console.print(
            f"\n[bold cyan]Creative Roundtable[/bold cyan] - {roundtable_input.platform} via {client.provider.name()}"
        )
        brief = roundtable_input.brief
        console.print(f"Brief: [italic]{brief[:80]}{'...' if len(brief) > 80 else ''}[/italic]\n")

    emitter = EventEmitter()
    emitter.subscribe(_event_printer(jsonl))
    result = await run_roundtable(
        roundtable_input,
        client=client,
        stages=config.stages,
        pairings=resolve_pairings(config.debate_pairings),
        emitter=emitter,
    )

    if not jsonl:
        print_result(result)

    if output_dir is None:
        return None
    saved_path = save_to_file(result, roundtable_input, output_dir, slug_override=slug_override)
    if not jsonl:
        console.print(f"\n[dim]Saved to: {saved_path}[/dim]")
    return saved_path


async def _run_inbox(
    config: AppConfig,
    client: CompletionClient,
    inbox_dir: Path,
    archive_dir: Path,
    platform: str,
    output_dir: Path | None,
    jsonl: bool,
) -> None:
    """Process all .md briefs in the inbox folder, oldest first."""
    ensure_dirs(inbox_dir, archive_dir)
    files = scan_inbox(inbox_dir)

    if not files:
        click.echo("No files in inbox.")
        return

    for file_path in files:
        try:
            roundtable_input = load_brief(file_path, platform)
            saved = await _run_single(
                roundtable_input, config, client, output_dir, jsonl, slug_override=file_path.stem,
            )
            archived = archive_file(file_path, archive_dir)
            click.echo(f"Processed: {file_path.name} -> {saved} (archived: {archived.name})")
        except Exception as e:
            logger.error("Failed: %s -- %s", file_path.name, e)
            archive_file(file_path, archive_dir, failed=True)


@click.command()
@click.argument("brief", required=False)
@click.option("--file", "brief_file", type=click.Path(exists=True), help="Read brief (with frontmatter) from .md file")
@click.option("--platform", default=None, help="Target platform, e.g. TikTok (default: from config)")
@click.option("--provider", "provider_name", default=None, help="Which model runs the roundtable (default: from config)")
@click.option("--output", "output_path", default=None, help="Output directory (default: from config)")
@click.option("--no-save", is_flag=True, default=False, help="Do not write the markdown transcript")
@click.option("--jsonl", is_flag=True, default=False, help="Print progress events as NDJSON lines")
@click.option("--verbose", is_flag=True, help="Enable DEBUG-level logging")
@click.option("--inbox", "use_inbox", is_flag=True, default=False, help="Process all .md briefs in inbox folder")
@click.option("--inbox-dir", "inbox_dir_override", default=None, help="Override inbox folder path (default: from config)")
@click.option("--skip-health-check", is_flag=True, default=False, help="Skip the API connectivity check at startup")
def main(
    brief: str | None,
    brief_file: str | None,
    platform: str | None,
    provider_name: str | None,
    output_path: str | None,
    no_save: bool,
    jsonl: bool,
    verbose: bool,
    use_inbox: bool,
    inbox_dir_override: str | None,
    skip_health_check: bool,
) -> None:
    """Creative Roundtable -- a simulated film crew turns a brief into a video prompt.

    \b
    Examples:
      roundtable "A cinematic shot of a sunset over the ocean" --platform TikTok
      roundtable --file brief.md --provider claude
      roundtable "Rainy neon alley chase" --jsonl --no-save
      roundtable --inbox --inbox-dir ./my_briefs
    """
    if sys.platform == "win32":
        if hasattr(sys.stdout, "reconfigure"):
            sys.stdout.reconfigure(encoding="utf-8", errors="replace")
        if hasattr(sys.stderr, "reconfigure"):
            sys.stderr.reconfigure(encoding="utf-8", errors="replace")

    load_dotenv()
    _setup_logging(verbose)

    try:
        config = load_config()
        resolve_pairings(config.debate_pairings)
    except (FileNotFoundError, ValueError) as exc:
        console.print(f"[bold red]Config error:[/bold red] {exc}")
        sys.exit(1)

    effective_platform = platform or config.defaults.platform
    effective_output = None if no_save else (Path(output_path) if output_path else config.defaults.output_dir)

    all_providers = _build_all_providers(config)
    if not all_providers:
        console.print("[bold red]Error:[/bold red] No providers available. Check API keys in .env.")
        sys.exit(1)

    provider = _pick_provider(all_providers, provider_name or config.defaults.provider)
    if not skip_health_check and not _check_provider(provider):
        sys.exit(1)
    client = CompletionClient(provider, config.retry)

    if use_inbox:
        inbox_dir = Path(inbox_dir_override) if inbox_dir_override else config.inbox.dir
        asyncio.run(
            _run_inbox(
                config=config,
                client=client,
                inbox_dir=inbox_dir,
                archive_dir=config.inbox.archive_dir,
                platform=effective_platform,
                output_dir=effective_output,
                jsonl=jsonl,
            )
        )
        return

    try:
        if brief_file:
            content, metadata = parse_file(Path(brief_file))
            if platform:
                metadata["platform"] = platform
            roundtable_input = build_input(content, metadata, effective_platform)
        elif brief:
            roundtable_input = build_input(brief, {}, effective_platform)
        else:
            console.print("[bold red]Error:[/bold red] Provide a BRIEF argument, --file, or --inbox.")
            sys.exit(1)
    except ValueError as exc:
        console.print(f"[bold red]Brief error:[/bold red] {exc}")
        sys.exit(1)

    try:
        asyncio.run(_run_single(roundtable_input, config, client, effective_output, jsonl))
    except Exception as exc:
        console.print(f"[bold red]Roundtable failed:[/bold red] {exc}")
        sys.exit(1)


if __name__ == "__main__":
    main()

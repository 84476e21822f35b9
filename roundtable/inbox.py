"""Brief files (markdown + YAML frontmatter), inbox scanning, and archive logic."""

import shutil
from datetime import datetime
from pathlib import Path

import frontmatter

from roundtable.models import RoundtableInput, Setting


def ensure_dirs(inbox_dir: Path, archive_dir: Path) -> None:
    """Create inbox and archive directories if they don't exist."""
    inbox_dir.mkdir(parents=True, exist_ok=True)
    archive_dir.mkdir(parents=True, exist_ok=True)


def scan_inbox(inbox_dir: Path) -> list[Path]:
    """Return all .md files in inbox_dir, sorted by mtime ascending (oldest first)."""
    files = list(inbox_dir.glob("*.md"))
    return sorted(files, key=lambda p: p.stat().st_mtime)


def parse_file(file_path: Path) -> tuple[str, dict]:
    """Parse a markdown file with optional YAML frontmatter.

    Returns:
        (content, metadata) where content is the body text and metadata the
        frontmatter mapping. If no frontmatter, metadata is {}.
    """
    post = frontmatter.load(str(file_path))
    content = post.content.strip()
    metadata = dict(post.metadata)
    return content, metadata


def _optional_text(value: object) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def build_input(brief: str, metadata: dict, default_platform: str) -> RoundtableInput:
    """Turn a brief body plus frontmatter into a RoundtableInput.

    Recognized keys: platform, visual_template, character_context,
    screenplay_context, settings (list of {name, description}),
    style_hints (mapping), voice_profiles (name -> mapping).

    Raises:
        ValueError: If the brief is empty or a structured key has the wrong shape.
    """
    if not brief.strip():
        raise ValueError("Brief is empty")

    settings_raw = metadata.get("settings") or []
    if not isinstance(settings_raw, list):
        raise ValueError("'settings' must be a list of {name, description} entries")
    settings = tuple(
        Setting(name=_optional_text(s.get("name")) or "", description=_optional_text(s.get("description")) or "")
        for s in settings_raw
        if isinstance(s, dict)
    )

    style_hints = metadata.get("style_hints") or {}
    voice_profiles = metadata.get("voice_profiles") or {}
    if not isinstance(style_hints, dict) or not isinstance(voice_profiles, dict):
        raise ValueError("'style_hints' and 'voice_profiles' must be mappings")

    return RoundtableInput(
        brief=brief.strip(),
        platform=str(metadata.get("platform") or default_platform),
        visual_template=_optional_text(metadata.get("visual_template")),
        character_context=_optional_text(metadata.get("character_context")),
        screenplay_context=_optional_text(metadata.get("screenplay_context")),
        settings=settings,
        voice_profiles={
            str(name): {str(k): str(v) for k, v in (profile or {}).items() if v is not None}
            for name, profile in voice_profiles.items()
            if isinstance(profile, dict) or profile is None
        },
        style_hints={str(k): str(v) for k, v in style_hints.items() if v is not None},
    )


def load_brief(file_path: Path, default_platform: str) -> RoundtableInput:
    content, metadata = parse_file(file_path)
    return build_input(content, metadata, default_platform)


def archive_file(file_path: Path, archive_dir: Path, *, failed: bool = False) -> Path:
    """Move file to archive_dir with a timestamp prefix.

    Args:
        file_path: Source file to archive.
        archive_dir: Destination directory.
        failed: If True, prefix filename with "FAILED_".

    Returns:
        Path to the archived file.
    """
    timestamp = datetime.now().strftime("%Y-%m-%dT%H%M")
    prefix = "FAILED_" if failed else ""
    dest_name = f"{prefix}{timestamp}_{file_path.name}"
    dest = archive_dir / dest_name
    shutil.move(str(file_path), str(dest))
    return dest

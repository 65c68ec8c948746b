"""Startup configuration and the summary prompt template.

Secrets (bot token, API keys) come from the environment or a .env file.
The prompt text is non-secret and may live in a file tracked in source
control.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from .errors import ConfigError
from .summarization.summarizer import DEFAULT_PROMPT_TEMPLATE
from .text_generators import SUPPORTED_APIS

REQUIRED_VARIABLES = ("DISCORD_TOKEN", "CLIENT_ID")


@dataclass(frozen=True)
class Settings:
    discord_token: str
    application_id: int
    summary_provider: str = "ollama"
    summary_model: Optional[str] = None
    history_deadline: Optional[float] = None
    log_level: str = "INFO"


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    """Read settings from *environ* (defaults to ``os.environ``).

    Raises:
        ConfigError: Listing every missing or malformed variable
    """
    env = os.environ if environ is None else environ
    problems: list[str] = []

    values = {name: (env.get(name) or "").strip() for name in REQUIRED_VARIABLES}
    for name, value in values.items():
        if not value:
            problems.append(f"{name} is not set")

    application_id = 0
    if values["CLIENT_ID"]:
        if values["CLIENT_ID"].isdigit():
            application_id = int(values["CLIENT_ID"])
        else:
            problems.append("CLIENT_ID must be a numeric application id")

    history_deadline: Optional[float] = None
    raw_deadline = (env.get("HISTORY_DEADLINE_SECONDS") or "").strip()
    if raw_deadline:
        try:
            history_deadline = float(raw_deadline)
        except ValueError:
            problems.append("HISTORY_DEADLINE_SECONDS must be a number of seconds")
        else:
            if history_deadline <= 0:
                problems.append("HISTORY_DEADLINE_SECONDS must be positive")

    provider = (env.get("SUMMARY_PROVIDER") or "ollama").strip().lower()
    if provider not in SUPPORTED_APIS:
        problems.append(f"SUMMARY_PROVIDER must be one of {', '.join(SUPPORTED_APIS)} (got {provider!r})")

    log_level = (env.get("LOG_LEVEL") or "INFO").strip().upper()
    if not isinstance(logging.getLevelName(log_level), int):
        problems.append(f"LOG_LEVEL must be a logging level name such as INFO or DEBUG (got {log_level!r})")

    if problems:
        raise ConfigError(problems)

    return Settings(
        discord_token=values["DISCORD_TOKEN"],
        application_id=application_id,
        summary_provider=provider,
        summary_model=(env.get("SUMMARY_MODEL") or "").strip() or None,
        history_deadline=history_deadline,
        log_level=log_level,
    )


# --------------------- Summary prompt template ---------------------

_PROMPT_CACHE: Optional[str] = None
_PROMPT_MTIME: Optional[float] = None
_PROMPT_PATH: Optional[Path] = None


def _project_root() -> Path:
    """Return the repository root path if determinable from this file.

    settings.py lives at src/summarybot/settings.py, two levels below the
    repository root.
    """
    return Path(__file__).resolve().parents[2]


def _candidate_prompt_paths() -> list[Path]:
    """Return possible paths for the prompt template file.

    Priority order:
    1) SUMMARY_PROMPT_FILE (as-is); if relative, also try as repo-root-relative.
    2) config/summary_prompt.txt (repo-root-relative).
    """
    env_val = os.getenv("SUMMARY_PROMPT_FILE", "").strip()
    candidates: list[Path] = []
    if env_val:
        p = Path(env_val).expanduser()
        candidates.append(p)
        if not p.is_absolute():
            candidates.append(_project_root() / p)
    candidates.append(_project_root() / "config" / "summary_prompt.txt")
    return candidates


def get_summary_prompt_template() -> str:
    """Load the summary prompt template from a file if available.

    The template should contain a ``{conversation}`` placeholder. Falls back
    to the built-in prompt when no file is readable. Uses a simple mtime
    cache to avoid re-reading unchanged files.
    """
    global _PROMPT_CACHE, _PROMPT_MTIME, _PROMPT_PATH  # noqa: PLW0603

    for path in _candidate_prompt_paths():
        try:
            if not path.is_file():
                continue
            mtime = path.stat().st_mtime
            if _PROMPT_PATH == path and _PROMPT_CACHE is not None and _PROMPT_MTIME == mtime:
                return _PROMPT_CACHE
            text = path.read_text(encoding="utf-8")
        except OSError:
            continue
        if not text.strip():
            continue
        _PROMPT_CACHE = text
        _PROMPT_MTIME = mtime
        _PROMPT_PATH = path
        return text
    return DEFAULT_PROMPT_TEMPLATE

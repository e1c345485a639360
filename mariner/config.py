"""Configuration management for Mariner."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, replace
from pathlib import Path

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

RENDERERS = ("walk", "gfm")

DEFAULT_DEBOUNCE_MS = 100
DEFAULT_RETRY_STEP_MS = 50
DEFAULT_MAX_RETRIES = 3
DEFAULT_STATE_FILE = Path.home() / ".mariner" / "scroll.json"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


@dataclass(frozen=True)
class Settings:
    debounce: float = DEFAULT_DEBOUNCE_MS / 1000
    retry_step: float = DEFAULT_RETRY_STEP_MS / 1000
    max_retries: int = DEFAULT_MAX_RETRIES
    renderer: str = "walk"
    state_file: Path = DEFAULT_STATE_FILE
    polling: bool = False
    log_level: str = "INFO"

    def with_overrides(self, **changes) -> "Settings":
        """Return a copy with every non-None keyword applied."""
        return replace(self, **{k: v for k, v in changes.items() if v is not None})


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning("Ignoring %s=%r: not an integer", name, raw)
        return default
    if value < 0:
        logger.warning("Ignoring %s=%r: must not be negative", name, raw)
        return default
    return value


def _env_bool(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def load_settings(env_file: str | None = None) -> Settings:
    """Build settings from the environment, after loading a .env file."""
    load_dotenv(env_file)

    renderer = os.getenv("MARINER_RENDERER", "walk").strip().lower()
    if renderer not in RENDERERS:
        logger.warning("Unknown renderer %r, using 'walk'", renderer)
        renderer = "walk"

    state_file = os.getenv("MARINER_STATE_FILE")

    return Settings(
        debounce=_env_int("MARINER_DEBOUNCE_MS", DEFAULT_DEBOUNCE_MS) / 1000,
        retry_step=_env_int("MARINER_RETRY_STEP_MS", DEFAULT_RETRY_STEP_MS) / 1000,
        max_retries=_env_int("MARINER_MAX_RETRIES", DEFAULT_MAX_RETRIES),
        renderer=renderer,
        state_file=Path(state_file).expanduser() if state_file else DEFAULT_STATE_FILE,
        polling=_env_bool("MARINER_POLLING"),
        log_level=os.getenv("MARINER_LOG_LEVEL", "INFO").upper(),
    )


def setup_logging(log_level: str = "INFO", tui: bool = False) -> None:
    """Route log records to textual's console in the TUI, stderr otherwise."""
    level = getattr(logging, log_level.upper(), logging.INFO)
    if tui:
        from textual.logging import TextualHandler

        root_logger = logging.getLogger()
        root_logger.setLevel(level)
        root_logger.addHandler(TextualHandler())
    else:
        logging.basicConfig(level=level, format=LOG_FORMAT)

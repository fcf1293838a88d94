"""Timer settings with JSON persistence.

Settings are stored next to the timer database:
    <app support dir>/settings.json

Usage::

    settings = load_settings()
    settings.update_interval = 0.5
    save_settings(settings)
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, asdict, fields

from .database.db import APP_SUPPORT_DIR

logger = logging.getLogger(__name__)

SETTINGS_PATH = APP_SUPPORT_DIR / "settings.json"


@dataclass
class Settings:
    """All configurable knobs of the timer core."""

    # ── live session ──────────────────────────────────────────────────
    update_interval: float = 1.0          # seconds between ticks
    emit_states: bool = True

    # ── storage ───────────────────────────────────────────────────────
    storage: str = "sql"                  # sql | memory
    database_url: str | None = None       # None -> SQLite file in APP_SUPPORT_DIR
    key_prefix: str = "persistableTimerKey"

    # ── finish-all ────────────────────────────────────────────────────
    finish_all_workers: int = 8


def load_settings() -> Settings:
    """Load settings from disk, falling back to defaults."""
    try:
        if SETTINGS_PATH.exists():
            data = json.loads(SETTINGS_PATH.read_text(encoding="utf-8"))
            # Only use keys that exist in the dataclass
            valid_keys = {f.name for f in fields(Settings)}
            filtered = {k: v for k, v in data.items() if k in valid_keys}
            return Settings(**filtered)
    except (OSError, ValueError, TypeError, AttributeError) as exc:
        logger.warning("Ignoring unreadable settings at %s: %s", SETTINGS_PATH, exc)
    return Settings()


def save_settings(settings: Settings) -> None:
    """Write settings to disk as JSON."""
    SETTINGS_PATH.parent.mkdir(parents=True, exist_ok=True)
    SETTINGS_PATH.write_text(
        json.dumps(asdict(settings), indent=2) + "\n",
        encoding="utf-8",
    )

"""Persistent JSON config helpers.

Stores search limits, hidden/gitignored-file preferences, and the preview
style. All access is defensive: malformed or missing config falls back safely.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path

from platformdirs import user_config_dir

APP_NAME = "reftree"
CONFIG_FILENAME = "config.json"
CONFIG_PATH = Path(user_config_dir(APP_NAME, appauthor=False)) / CONFIG_FILENAME

DEFAULT_MAX_MATCHES = 2_000
DEFAULT_MAX_FILES = 500
DEFAULT_STYLE = "monokai"


@dataclass(frozen=True)
class SearchSettings:
    """Knobs shared by the default location providers and the CLI."""

    max_matches: int = DEFAULT_MAX_MATCHES
    max_files: int = DEFAULT_MAX_FILES
    show_hidden: bool = False
    skip_gitignored: bool = True
    style: str = DEFAULT_STYLE


def load_config() -> dict[str, object]:
    """Load the persisted JSON config object.

    Returns an empty dict when the file is missing, unreadable, malformed, or
    does not decode to a top-level JSON object.
    """
    try:
        data = json.loads(CONFIG_PATH.read_text(encoding="utf-8"))
    except Exception:
        return {}
    return data if isinstance(data, dict) else {}


def save_config(data: dict[str, object]) -> None:
    """Persist config data as pretty-printed JSON.

    Any filesystem/serialization error is ignored to keep runtime behavior
    non-fatal when config cannot be written.
    """
    try:
        CONFIG_PATH.parent.mkdir(parents=True, exist_ok=True)
        CONFIG_PATH.write_text(json.dumps(data, indent=2) + "\n", encoding="utf-8")
    except Exception:
        pass


def _coerce_positive_int(value: object, default: int) -> int:
    """Booleans, non-integers, and values below 1 fall back to ``default``."""
    if isinstance(value, bool) or not isinstance(value, int):
        return default
    return value if value >= 1 else default


def _coerce_bool(value: object, default: bool) -> bool:
    return value if isinstance(value, bool) else default


def _coerce_style(value: object) -> str:
    if not isinstance(value, str):
        return DEFAULT_STYLE
    stripped = value.strip()
    return stripped if stripped else DEFAULT_STYLE


def load_search_settings() -> SearchSettings:
    """Load search settings, replacing invalid values with defaults."""
    data = load_config()
    return SearchSettings(
        max_matches=_coerce_positive_int(data.get("max_matches"), DEFAULT_MAX_MATCHES),
        max_files=_coerce_positive_int(data.get("max_files"), DEFAULT_MAX_FILES),
        show_hidden=_coerce_bool(data.get("show_hidden"), False),
        skip_gitignored=_coerce_bool(data.get("skip_gitignored"), True),
        style=_coerce_style(data.get("style")),
    )


def save_search_settings(settings: SearchSettings) -> None:
    """Merge ``settings`` into the persisted config."""
    config = load_config()
    config["max_matches"] = max(1, int(settings.max_matches))
    config["max_files"] = max(1, int(settings.max_files))
    config["show_hidden"] = bool(settings.show_hidden)
    config["skip_gitignored"] = bool(settings.skip_gitignored)
    config["style"] = _coerce_style(settings.style)
    save_config(config)

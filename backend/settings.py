from __future__ import annotations

"""Utility functions for loading and saving user settings.

The settings are stored as a list of dictionaries to preserve order.
Each dictionary contains ``key``, ``value`` and ``type`` entries.
"""

from pathlib import Path
import json
import logging
from typing import Any, List, Dict

from backend import (
    SEGMENTS,
    DEFAULT_REPETITIONS,
    DEFAULT_WEIGHT,
    DEFAULT_WORKOUT_PREFIX,
    DEFAULT_EXERCISE_PREFIX,
)

# Path to the JSON file where settings are persisted.
SETTINGS_PATH = Path(__file__).resolve().parents[1] / "data" / "settings.json"

# Default settings to initialize the file on first run.
DEFAULT_SETTINGS: List[Dict[str, Any]] = [
    {"key": "default_repetitions", "value": DEFAULT_REPETITIONS, "type": "str"},
    {"key": "default_weight", "value": DEFAULT_WEIGHT, "type": "str"},
    {"key": "workout_title_prefix", "value": DEFAULT_WORKOUT_PREFIX, "type": "str"},
    {"key": "exercise_name_prefix", "value": DEFAULT_EXERCISE_PREFIX, "type": "str"},
    {"key": "start_segment", "value": SEGMENTS[0], "type": "str"},
]

# Internal cache so settings are only read from disk once.
_settings_cache: List[Dict[str, Any]] | None = None


def _defaults() -> List[Dict[str, Any]]:
    return [dict(item) for item in DEFAULT_SETTINGS]


def load_settings() -> List[Dict[str, Any]]:
    """Load settings from :data:`SETTINGS_PATH` or create defaults."""
    if SETTINGS_PATH.exists():
        try:
            with SETTINGS_PATH.open("r", encoding="utf-8") as fh:
                data = json.load(fh)
        except (OSError, ValueError):
            logging.exception("Could not read settings from %s", SETTINGS_PATH)
        else:
            if isinstance(data, list):
                return data
            logging.warning("Ignoring malformed settings file %s", SETTINGS_PATH)
    settings = _defaults()
    save_settings(settings)
    return settings


def save_settings(settings: List[Dict[str, Any]]) -> None:
    """Persist ``settings`` to :data:`SETTINGS_PATH`."""
    SETTINGS_PATH.parent.mkdir(parents=True, exist_ok=True)
    with SETTINGS_PATH.open("w", encoding="utf-8") as fh:
        json.dump(settings, fh)


def get_settings() -> List[Dict[str, Any]]:
    """Return the cached settings list, loading from disk if needed."""
    global _settings_cache
    if _settings_cache is None:
        _settings_cache = load_settings()
    return _settings_cache


def reset_cache() -> None:
    """Forget cached settings so the next read hits the disk."""
    global _settings_cache
    _settings_cache = None


def get_value(key: str, default: Any = None) -> Any:
    """Fetch the value associated with ``key``."""
    for item in get_settings():
        if item.get("key") == key:
            return item.get("value")
    for item in DEFAULT_SETTINGS:
        if item["key"] == key:
            return item["value"]
    return default


def set_value(key: str, value: Any) -> None:
    """Update ``key`` with ``value`` and persist the change."""
    settings = get_settings()
    for item in settings:
        if item.get("key") == key:
            item["value"] = value
            break
    else:
        settings.append({"key": key, "value": value, "type": type(value).__name__})
    save_settings(settings)


def get_store_defaults() -> Dict[str, str]:
    """Return placeholder values for :class:`~backend.store.WorkoutStore`."""
    return {
        "repetitions": str(get_value("default_repetitions")),
        "weight": str(get_value("default_weight")),
        "workout_prefix": str(get_value("workout_title_prefix")),
        "exercise_prefix": str(get_value("exercise_name_prefix")),
    }


def get_start_segment() -> str:
    """Return the segment shown at launch, falling back to the first one."""
    segment = get_value("start_segment")
    return segment if segment in SEGMENTS else SEGMENTS[0]

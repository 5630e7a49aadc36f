"""Shared constants for backend modules."""

from __future__ import annotations

from pathlib import Path

# Fixed body-part segments, in display order
SEGMENTS = ("back", "chest", "legs")

# Default values used when new entities are created
DEFAULT_REPETITIONS = "10"
DEFAULT_WEIGHT = "75 kg"
DEFAULT_WORKOUT_PREFIX = "Workout"
DEFAULT_EXERCISE_PREFIX = "Exercise"

# Path to the local SQLite database used by the application
DEFAULT_DB_PATH = (
    Path(__file__).resolve().parent.parent / "data" / "workout.db"
)

# Schema shipped next to the database
SCHEMA_PATH = (
    Path(__file__).resolve().parent.parent / "data" / "workout_schema.sql"
)

__all__ = [
    "SEGMENTS",
    "DEFAULT_REPETITIONS",
    "DEFAULT_WEIGHT",
    "DEFAULT_WORKOUT_PREFIX",
    "DEFAULT_EXERCISE_PREFIX",
    "DEFAULT_DB_PATH",
    "SCHEMA_PATH",
]

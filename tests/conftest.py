from pathlib import Path
import sys

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))

from backend import settings as app_settings
from backend.database import WorkoutDatabase
from backend.store import WorkoutStore


@pytest.fixture
def db(tmp_path: Path) -> WorkoutDatabase:
    """Return an empty database created from the bundled schema."""
    return WorkoutDatabase(tmp_path / "workout.db")


@pytest.fixture
def store() -> WorkoutStore:
    """Store without persistence, one workout per segment."""
    store = WorkoutStore()
    store.ensure_segment_defaults()
    return store


@pytest.fixture
def db_store(db: WorkoutDatabase) -> WorkoutStore:
    """Store writing through to a temporary database."""
    store = WorkoutStore(db)
    store.load()
    store.ensure_segment_defaults()
    return store


@pytest.fixture
def settings_file(tmp_path: Path, monkeypatch) -> Path:
    """Point the settings module at a temporary file."""
    path = tmp_path / "settings.json"
    monkeypatch.setattr(app_settings, "SETTINGS_PATH", path)
    app_settings.reset_cache()
    yield path
    app_settings.reset_cache()


@pytest.fixture
def count_rows():
    """Return ``count(db, table)`` giving the number of rows in ``table``."""

    def count(db: WorkoutDatabase, table: str) -> int:
        with db.connect() as conn:
            return conn.execute(f"SELECT COUNT(*) FROM {table}").fetchone()[0]

    return count

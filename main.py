from kivymd.app import MDApp
from kivy.lang import Builder
from kivy.core.window import Window
from pathlib import Path
import logging
import os
import sqlite3
import sys

from backend import DEFAULT_DB_PATH
from backend import settings as app_settings
from backend.database import WorkoutDatabase
from backend.db_backup import create_backup, recover_database, BACKUP_PATH
from backend.store import WorkoutStore
from ui.screens.gym_screen import GymScreen  # noqa: F401 - registers the kv rule class


if os.name == "nt" or sys.platform.startswith("win"):
    Window.size = (280, 280 * (20 / 9))


class GymTrackApp(MDApp):
    """Single-screen workout tracker."""

    store: WorkoutStore | None = None
    db_path: Path = DEFAULT_DB_PATH
    backup_path: Path = BACKUP_PATH

    def open_store(self) -> WorkoutStore:
        """Open the database, load it and make sure every segment has a workout."""

        outcome = recover_database(self.db_path, self.backup_path)
        if outcome != "ok":
            logging.warning("Database was unreadable on start: %s", outcome)
        db = WorkoutDatabase(self.db_path)
        store = WorkoutStore(db, defaults=app_settings.get_store_defaults())
        store.load()
        store.ensure_segment_defaults()
        self.store = store
        return store

    def build(self):
        store = self.open_store()
        screen = Builder.load_file(str(Path(__file__).with_name("main.kv")))
        screen.current_segment = app_settings.get_start_segment()
        screen.store = store
        return screen

    def on_stop(self):
        if self.store is None:
            return
        try:
            create_backup(self.db_path, self.backup_path)
        except (OSError, sqlite3.Error):
            logging.exception("Backup on exit failed")


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    GymTrackApp().run()

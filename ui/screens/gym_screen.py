from pathlib import Path
import logging

from kivy.clock import Clock
from kivy.properties import ObjectProperty, StringProperty
from kivymd.toast import toast
from kivymd.uix.button import MDFlatButton, MDRaisedButton
from kivymd.uix.filemanager import MDFileManager
from kivymd.uix.screen import MDScreen

from backend import SEGMENTS
from backend import db_io
import backend.settings as app_settings
from ui.workout_widgets import AddRow, WorkoutSection

SEGMENT_LABELS = {"back": "Back", "chest": "Chest", "legs": "Legs"}


class GymScreen(MDScreen):
    """Single screen listing the workouts of the selected segment."""

    store = ObjectProperty(None, allownone=True)
    current_segment = StringProperty(SEGMENTS[0])
    segment_bar = ObjectProperty(None)
    workout_list = ObjectProperty(None)

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.sections: list[WorkoutSection] = []
        self.file_manager = None
        # Coalesce several store notifications into a single rebuild.
        self._refresh_trigger = Clock.create_trigger(lambda _dt: self.populate())

    def on_store(self, _inst, store) -> None:
        if store is not None:
            store.bind(self._on_store_changed)
        self.populate()

    def on_current_segment(self, *_args) -> None:
        self.populate()

    def on_leave(self, *args):
        if self.store is not None:
            self.store.unbind(self._on_store_changed)
        return super().on_leave(*args)

    def _on_store_changed(self, workout_id: str) -> None:
        self._refresh_trigger()

    def select_segment(self, segment: str) -> None:
        if segment not in SEGMENTS:
            raise ValueError(f"Unknown segment '{segment}'")
        self.current_segment = segment
        app_settings.set_value("start_segment", segment)

    def add_workout(self):
        return self.store.create_workout(self.current_segment)

    def export_db(self) -> None:
        try:
            dest = db_io.export_database(self.store.db.db_path)
        except FileNotFoundError:
            logging.exception("Database file missing during export")
            toast("Database file not found")
            return
        except PermissionError:
            logging.exception("Export permission denied")
            toast("Storage permission denied")
            return
        except OSError:
            logging.exception("OS error during export")
            toast("Export failed")
            return
        toast(f"Exported to {dest}")

    def export_json(self) -> None:
        try:
            dest = db_io.export_database_json(self.store.db.db_path)
        except FileNotFoundError:
            logging.exception("Database file missing during JSON export")
            toast("Database file not found")
            return
        except PermissionError:
            logging.exception("JSON export permission denied")
            toast("Storage permission denied")
            return
        except OSError:
            logging.exception("OS error during JSON export")
            toast("Export failed")
            return
        toast(f"Exported to {dest}")

    def open_import_db(self) -> None:
        try:
            start = db_io.get_downloads_dir()
        except PermissionError:
            logging.exception("Import permission denied")
            toast("Storage permission denied")
            return
        if not self.file_manager:
            self.file_manager = MDFileManager(
                exit_manager=self.close_file_manager,
                select_path=self.select_import_file,
                ext=[".db"],
            )
        self.file_manager.show(str(start))

    def close_file_manager(self, *args) -> None:
        if self.file_manager:
            self.file_manager.close()

    def select_import_file(self, path: str) -> None:
        self.close_file_manager()
        try:
            db_io.import_into_store(Path(path), self.store)
        except FileNotFoundError:
            logging.exception("Import file not found: %s", path)
            toast("File not found")
            return
        except PermissionError:
            logging.exception("Import permission denied")
            toast("Storage permission denied")
            return
        except ValueError as exc:
            logging.exception("Import validation failed")
            toast(f"Invalid database: {exc}")
            return
        except OSError:
            logging.exception("OS error during import")
            toast("Import failed")
            return
        self.populate()
        toast("Database imported")

    def populate_segment_bar(self) -> None:
        if not self.segment_bar:
            return
        self.segment_bar.clear_widgets()
        for segment in SEGMENTS:
            cls = MDRaisedButton if segment == self.current_segment else MDFlatButton
            self.segment_bar.add_widget(
                cls(
                    text=SEGMENT_LABELS[segment],
                    on_release=lambda _btn, s=segment: self.select_segment(s),
                )
            )

    def populate(self) -> None:
        """Rebuild the segment bar and the workout list."""

        self.populate_segment_bar()
        self.sections = []
        if not self.workout_list or self.store is None:
            return
        self.workout_list.clear_widgets()
        for workout in self.store.workouts_for_segment(self.current_segment):
            section = WorkoutSection(self.store, workout)
            self.sections.append(section)
            self.workout_list.add_widget(section)
        self.workout_list.add_widget(AddRow("Add workout", self.add_workout))

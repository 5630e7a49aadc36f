"""Import and export helpers for the workout database."""
from __future__ import annotations

from pathlib import Path
import json
import logging
import shutil
import sqlite3
from typing import Any, Dict, List, Tuple

from backend import DEFAULT_DB_PATH
from backend.export_utils import make_export_name

# Directory where database backups are stored before an import.
BACKUP_DIR = DEFAULT_DB_PATH.parent.parent / "backups"

# Tables that must exist in any valid workout database.
REQUIRED_TABLES = [
    "workouts",
    "exercises",
    "exercise_sets",
]


def get_downloads_dir() -> Path:
    """Return the public ``Download`` directory.

    Requests :class:`android.permissions.Permission.MANAGE_EXTERNAL_STORAGE` at
    runtime and returns the path to the shared ``Download`` folder. If the
    permission is denied or the Android APIs are unavailable a
    :class:`PermissionError` is raised. Callers must handle this error and
    inform the user that "All files access" is required.
    """

    try:  # pragma: no cover - imports require Android
        from android.permissions import (
            request_permissions,
            check_permission,
            Permission,
        )
        from android.storage import primary_external_storage_path
    except ImportError as exc:
        logging.exception("Android APIs unavailable: %s", exc)
        raise PermissionError("All files access not granted") from exc

    request_permissions([Permission.MANAGE_EXTERNAL_STORAGE])  # pragma: no cover
    if check_permission(Permission.MANAGE_EXTERNAL_STORAGE):  # pragma: no cover
        downloads = Path(primary_external_storage_path()) / "Download"
        downloads.mkdir(parents=True, exist_ok=True)
        return downloads.resolve()

    raise PermissionError("All files access not granted")  # pragma: no cover


def sqlite_to_json(db_path: Path) -> Dict[str, List[Dict[str, Any]]]:
    """Return a JSON-serialisable representation of ``db_path``.

    Every user table is converted to a list of dictionaries mapping column
    names to values.
    """
    result: Dict[str, List[Dict[str, Any]]] = {}
    conn = sqlite3.connect(str(db_path))
    try:
        conn.row_factory = sqlite3.Row
        cur = conn.cursor()
        cur.execute(
            "SELECT name FROM sqlite_master "
            "WHERE type='table' AND name NOT LIKE 'sqlite_%' ORDER BY name"
        )
        tables = [r[0] for r in cur.fetchall()]
        for table in tables:
            cur.execute(f'SELECT * FROM "{table}"')
            result[table] = [dict(row) for row in cur.fetchall()]
    finally:
        conn.close()
    return result


def export_database(
    db_path: Path = DEFAULT_DB_PATH, dest_dir: Path | None = None
) -> Path:
    """Export ``db_path`` to ``dest_dir`` as a ``.db`` file.

    On success the absolute path to the exported file is returned. File-system
    errors are logged with full stack traces and re-raised so the caller can
    present a meaningful error to the user.
    """

    dest_dir = dest_dir or get_downloads_dir()
    dest = (Path(dest_dir) / make_export_name("db")).resolve()
    try:
        shutil.copy2(db_path, dest)
    except FileNotFoundError:
        logging.exception("Database file not found: %s", db_path)
        raise
    except PermissionError:
        logging.exception("Permission denied writing export to %s", dest)
        raise
    except OSError:
        logging.exception("OS error exporting database to %s", dest)
        raise
    logging.info("Exported database to %s", dest)
    return dest


def export_database_json(
    db_path: Path = DEFAULT_DB_PATH, dest_dir: Path | None = None
) -> Path:
    """Export ``db_path`` to ``dest_dir`` as a JSON file."""

    dest_dir = dest_dir or get_downloads_dir()
    data = sqlite_to_json(db_path)
    dest = (Path(dest_dir) / make_export_name("json")).resolve()
    try:
        with dest.open("w", encoding="utf-8") as fh:
            json.dump(data, fh, ensure_ascii=False)
    except FileNotFoundError:
        logging.exception("Destination not found for JSON export: %s", dest)
        raise
    except PermissionError:
        logging.exception("Permission denied writing JSON export to %s", dest)
        raise
    except OSError:
        logging.exception("OS error exporting JSON database to %s", dest)
        raise
    logging.info("Exported database JSON to %s", dest)
    return dest


def validate_database(db_path: Path) -> Tuple[bool, List[str]]:
    """Run validation checks on ``db_path``.

    Ensures all tables listed in :data:`REQUIRED_TABLES` exist. The returned
    tuple contains a boolean indicating success and a list of error messages.
    """
    errors: List[str] = []
    conn = None
    try:
        conn = sqlite3.connect(str(db_path))
        cur = conn.cursor()
        for table in REQUIRED_TABLES:
            cur.execute(
                "SELECT name FROM sqlite_master WHERE type='table' AND name=?",
                (table,),
            )
            if not cur.fetchone():
                errors.append(f"missing table: {table}")
    except sqlite3.DatabaseError as exc:
        errors.append(str(exc))
    finally:
        if conn is not None:
            conn.close()
    return (len(errors) == 0, errors)


def import_database(
    src_path: Path, db_path: Path = DEFAULT_DB_PATH, backup_dir: Path = BACKUP_DIR
) -> Path:
    """Validate and replace the current database with ``src_path``.

    A backup of the existing database is created in ``backup_dir`` before the
    replacement occurs and its path is returned. Validation and file-system
    errors are logged and re-raised.
    """

    valid, errors = validate_database(src_path)
    if not valid:
        message = "; ".join(errors)
        logging.error("Import failed validation: %s", message)
        raise ValueError(message)

    backup_dir = Path(backup_dir)
    backup_path = backup_dir / f"{make_export_name('db')}.bak"
    try:
        backup_dir.mkdir(parents=True, exist_ok=True)
        if Path(db_path).exists():
            shutil.copy2(db_path, backup_path)
        shutil.copy2(src_path, db_path)
    except FileNotFoundError:
        logging.exception("Import failed, file not found")
        raise
    except PermissionError:
        logging.exception("Import failed, permission denied")
        raise
    except OSError:
        logging.exception("Import failed due to OS error")
        raise
    logging.info("Replaced database with %s (backup: %s)", src_path, backup_path)
    return backup_path


def import_into_store(src_path: Path, store, backup_dir: Path | None = None) -> Path:
    """Import ``src_path`` over the store's database and reload the store.

    Returns the path of the backup taken before the import.
    """

    backup_path = import_database(src_path, store.db.db_path, backup_dir or BACKUP_DIR)
    store.load()
    store.ensure_segment_defaults()
    return backup_path

"""Automatic backup and restoration helpers for the workout database.

The application keeps a single up-to-date copy of ``workout.db`` in
``data/backup``.  This module exposes utilities to create that backup and to
restore from it if corruption is detected when the database is opened.
Copies are performed using a temporary file followed by an atomic rename to
avoid partial writes.
"""
from __future__ import annotations

from pathlib import Path
import logging
import os
import sqlite3
import shutil

from backend import DEFAULT_DB_PATH

# Location of the single backup copy.
BACKUP_PATH = DEFAULT_DB_PATH.parent / "backup" / "workout.db"


def _atomic_copy(src: Path, dest: Path) -> None:
    """Copy ``src`` to ``dest`` using a temporary file then rename."""

    dest.parent.mkdir(parents=True, exist_ok=True)
    tmp = dest.with_suffix(".tmp")
    shutil.copy2(src, tmp)
    os.replace(tmp, dest)


def create_backup(
    db_path: Path = DEFAULT_DB_PATH, backup_path: Path = BACKUP_PATH
) -> Path:
    """Write a fresh backup of ``db_path`` to ``backup_path``."""

    backup_path = Path(backup_path)
    backup_path.parent.mkdir(parents=True, exist_ok=True)
    tmp_backup = backup_path.with_suffix(".tmp")
    src = sqlite3.connect(str(db_path))
    dst = sqlite3.connect(str(tmp_backup))
    try:
        src.backup(dst)
    finally:
        dst.close()
        src.close()
    try:
        os.replace(tmp_backup, backup_path)
    except PermissionError:
        # On Windows the destination may be locked if opened by another process.
        with open(tmp_backup, "rb") as fsrc, open(backup_path, "wb") as fdst:
            shutil.copyfileobj(fsrc, fdst)
        os.remove(tmp_backup)
    logging.info("Backed up %s to %s", db_path, backup_path)
    return backup_path


def is_healthy(db_path: Path) -> bool:
    """Return ``True`` if ``db_path`` passes ``PRAGMA integrity_check``."""

    conn = None
    try:
        conn = sqlite3.connect(str(db_path))
        result = conn.execute("PRAGMA integrity_check").fetchone()
    except sqlite3.DatabaseError:
        return False
    finally:
        if conn is not None:
            conn.close()
    return bool(result) and result[0] == "ok"


def restore_if_corrupt(
    db_path: Path = DEFAULT_DB_PATH, backup_path: Path = BACKUP_PATH
) -> bool:
    """Replace a corrupt database with the latest backup if available.

    Returns ``True`` when the backup was copied over ``db_path``.
    """

    db_path = Path(db_path)
    backup_path = Path(backup_path)
    if not db_path.exists() or is_healthy(db_path):
        return False
    if not backup_path.exists():
        logging.error("Database %s is corrupt and no backup exists", db_path)
        return False
    db_path.unlink()
    _atomic_copy(backup_path, db_path)
    logging.info("Restored %s from backup %s", db_path, backup_path)
    return True


def move_aside(db_path: Path) -> Path:
    """Rename ``db_path`` to ``<name>.corrupt`` and return the new path."""

    db_path = Path(db_path)
    dest = db_path.with_name(db_path.name + ".corrupt")
    os.replace(db_path, dest)
    logging.warning("Moved unreadable database %s to %s", db_path, dest)
    return dest


def recover_database(
    db_path: Path = DEFAULT_DB_PATH, backup_path: Path = BACKUP_PATH
) -> str:
    """Make ``db_path`` usable before it is opened.

    Returns ``"ok"`` for a missing or healthy file, ``"restored"`` when the
    backup replaced a corrupt file and ``"reset"`` when the corrupt file was
    moved aside so the app starts with an empty database.
    """

    db_path = Path(db_path)
    if not db_path.exists() or is_healthy(db_path):
        return "ok"
    if restore_if_corrupt(db_path, backup_path) and is_healthy(db_path):
        return "restored"
    move_aside(db_path)
    return "reset"

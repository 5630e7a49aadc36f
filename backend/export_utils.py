"""Utility helpers for exporting workout data."""
from __future__ import annotations

from datetime import datetime


def make_export_name(ext: str = "db") -> str:
    """Return an auto-generated export filename.

    The name follows the format ``gymtrack_YYYY_MM_DD_HH__MM__SS.<ext>``
    using the current local time.
    """
    stamp = datetime.now().strftime("%Y_%m_%d_%H__%M__%S")
    return f"gymtrack_{stamp}.{ext}"

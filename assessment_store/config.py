"""
Configuration constants for the ckd-assessments record store.
"""

import os
from pathlib import Path

APP_NAME = "ckd-assessments"

# Fixed database name; the on-disk file is derived from it.
DB_NAME = "ckd-prediction"
DB_FILE = f"{DB_NAME}.db"

DB_PATH_ENV = "CKD_ASSESSMENTS_DB_PATH"
BUSY_TIMEOUT_ENV = "CKD_ASSESSMENTS_BUSY_TIMEOUT"

# Seconds SQLite waits on a locked database before failing a transaction.
DEFAULT_BUSY_TIMEOUT = 5.0


def get_data_dir() -> Path:
    """Return the platform-appropriate directory holding the database."""
    if os.name == "nt":
        base = Path(os.environ.get("APPDATA", str(Path.home() / "AppData" / "Roaming")))
        return base / APP_NAME

    xdg = os.environ.get("XDG_DATA_HOME", "").strip()
    base = Path(xdg) if xdg else Path.home() / ".local" / "share"
    return base / APP_NAME


def get_db_path(explicit: str | os.PathLike | None = None) -> Path:
    """Resolve the database file path.

    Priority:
        1. ``explicit`` if provided (e.g. from CLI ``--db``).
        2. The ``CKD_ASSESSMENTS_DB_PATH`` environment variable.
        3. ``get_data_dir() / DB_FILE``.
    """
    if explicit:
        return Path(explicit).expanduser()

    override = os.environ.get(DB_PATH_ENV, "").strip()
    if override:
        return Path(override).expanduser()

    return get_data_dir() / DB_FILE


def get_busy_timeout() -> float:
    raw = os.environ.get(BUSY_TIMEOUT_ENV, "").strip()
    if not raw:
        return DEFAULT_BUSY_TIMEOUT
    try:
        value = float(raw)
    except ValueError:
        return DEFAULT_BUSY_TIMEOUT
    return value if value > 0 else DEFAULT_BUSY_TIMEOUT


__all__ = [
    "APP_NAME",
    "DB_NAME",
    "DB_FILE",
    "DB_PATH_ENV",
    "BUSY_TIMEOUT_ENV",
    "DEFAULT_BUSY_TIMEOUT",
    "get_data_dir",
    "get_db_path",
    "get_busy_timeout",
]

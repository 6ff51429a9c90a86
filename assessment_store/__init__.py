"""Local persistent store for computed CKD risk assessments."""

__version__ = "1.0.0"

from .database import SCHEMA_VERSION, get_schema_version, init_db, migrate
from .errors import (
    InitializationError,
    NotFoundError,
    SchemaVersionError,
    StoreError,
    StoreReadError,
    StoreWriteError,
)
from .record_store import RecordStore, StoreState, open_store

__all__ = [
    "__version__",
    "SCHEMA_VERSION",
    "get_schema_version",
    "init_db",
    "migrate",
    "RecordStore",
    "StoreState",
    "open_store",
    "StoreError",
    "InitializationError",
    "SchemaVersionError",
    "StoreWriteError",
    "StoreReadError",
    "NotFoundError",
]

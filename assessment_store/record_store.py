"""
RecordStore: asynchronous persistence for computed risk assessments.

Usage::

    store = await open_store()            # or RecordStore(path).open()

    record_id = await store.save({"age": 45, "sex": "male", "riskScore": 7})
    history = await store.list_all()      # newest first
    record = await store.get_by_id(record_id)
    await store.delete_by_id(record_id)   # succeeds even if already gone

Every operation runs in its own connection and transaction. Callers that need
one operation to observe another must await them in turn.
"""

import asyncio
import json
import logging
import time
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Mapping, Optional

import aiosqlite

from .config import get_db_path
from .database import TABLE_NAME, connection, init_db
from .errors import (
    InitializationError,
    NotFoundError,
    StoreReadError,
    StoreWriteError,
)

logger = logging.getLogger(__name__)

# Fields the store assigns itself; caller-supplied values are discarded.
RESERVED_FIELDS = frozenset({"id", "timestamp"})

# SQLite INTEGER is a signed 64-bit value; no stored id lies outside it.
SQLITE_MIN_INT = -(2 ** 63)
SQLITE_MAX_INT = 2 ** 63 - 1

# sqlite3 raises OverflowError when binding an int it cannot represent.
_STORAGE_ERRORS = (aiosqlite.Error, OSError, OverflowError)
# Corrupt payloads surface as ValueError (bad JSON) or TypeError (not an object).
_READ_ERRORS = (*_STORAGE_ERRORS, ValueError, TypeError)


class StoreState(str, Enum):
    UNOPENED = "unopened"
    OPENING = "opening"
    OPEN = "open"
    FAILED = "failed"


def now_ms() -> int:
    """Milliseconds since the epoch."""
    return time.time_ns() // 1_000_000


def _storable_id(record_id: int) -> bool:
    return SQLITE_MIN_INT <= record_id <= SQLITE_MAX_INT


def _indexed_risk_score(data: Mapping[str, Any]) -> Optional[float]:
    value = data.get("riskScore")
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    try:
        return float(value)
    except OverflowError:
        # Too large even for a double; the payload still keeps the exact value.
        return None


def _indexed_risk_level(data: Mapping[str, Any]) -> Optional[str]:
    value = data.get("riskLevel")
    return value if isinstance(value, str) else None


def _row_to_record(row: aiosqlite.Row) -> dict:
    record = json.loads(row["payload"])
    record["id"] = row["id"]
    record["timestamp"] = row["timestamp"]
    return record


class RecordStore:
    """Handle on the local assessment database.

    The handle moves through ``StoreState``: UNOPENED → OPENING → OPEN, or
    OPENING → FAILED when bootstrap fails. Only an OPEN store accepts
    operations; a FAILED store can be retried by calling ``open()`` again.
    """

    def __init__(self, db_path: str | Path, *,
                 clock: Callable[[], int] = now_ms,
                 timeout: float | None = None) -> None:
        self.db_path = Path(db_path).expanduser()
        self._clock = clock
        self._timeout = timeout
        self._state = StoreState.UNOPENED
        self._open_lock = asyncio.Lock()

    def __repr__(self) -> str:
        return f"RecordStore(db_path={str(self.db_path)!r}, state={self._state.value})"

    @property
    def state(self) -> StoreState:
        return self._state

    @property
    def is_open(self) -> bool:
        return self._state is StoreState.OPEN

    # ── Lifecycle ─────────────────────────────────────────────────────────

    async def open(self) -> "RecordStore":
        """Create or upgrade the database and mark the store open.

        Calling ``open()`` on an open store returns the same handle without
        touching the database. Concurrent callers share a single bootstrap.

        Raises:
            InitializationError: the database could not be opened or
                migrated. The store is left FAILED.
        """
        if self._state is StoreState.OPEN:
            return self

        async with self._open_lock:
            if self._state is StoreState.OPEN:
                return self

            self._state = StoreState.OPENING
            try:
                upgraded = await init_db(self.db_path, timeout=self._timeout)
            except InitializationError:
                self._state = StoreState.FAILED
                raise
            except _STORAGE_ERRORS as exc:
                self._state = StoreState.FAILED
                logger.warning("Database error opening %s: %s", self.db_path, exc)
                raise InitializationError(
                    f"Could not open assessment database at {self.db_path}: {exc}",
                    cause=exc,
                ) from exc

            self._state = StoreState.OPEN
            logger.info(
                "Database opened successfully: %s%s",
                self.db_path, " (schema upgraded)" if upgraded else "",
            )
        return self

    def _require_open(self) -> None:
        if self._state is not StoreState.OPEN:
            raise InitializationError(
                f"Database not initialized (store is {self._state.value})"
            )

    def _connect(self):
        return connection(self.db_path, timeout=self._timeout)

    # ── Writes ────────────────────────────────────────────────────────────

    async def save(self, payload: Mapping[str, Any]) -> int:
        """Persist a new assessment and return its store-assigned id.

        ``id`` and ``timestamp`` keys in *payload* are discarded; the store
        stamps the current time. All other fields are kept verbatim.

        The payload is stored as a JSON object, so it must be JSON-shaped:
        string keys at the top level, and values that come back as their
        JSON equivalents (tuples are returned as lists, nested non-string
        keys as strings).

        Raises:
            StoreWriteError: the payload has a non-string field name, is not
                JSON-serialisable, or the insert transaction failed. Nothing
                is written in any of these cases.
        """
        self._require_open()
        if not isinstance(payload, Mapping):
            raise TypeError(f"Assessment payload must be a mapping, not {type(payload).__name__}")

        bad_keys = [k for k in payload if not isinstance(k, str)]
        if bad_keys:
            raise StoreWriteError(
                f"Error saving assessment: field names must be strings, got {bad_keys[0]!r}"
            )

        data = {k: v for k, v in payload.items() if k not in RESERVED_FIELDS}
        try:
            encoded = json.dumps(data)
        except (TypeError, ValueError) as exc:
            raise StoreWriteError(
                f"Error saving assessment: payload is not serialisable ({exc})",
                cause=exc,
            ) from exc

        timestamp = self._clock()
        try:
            async with self._connect() as conn:
                cursor = await conn.execute(
                    f"""INSERT INTO {TABLE_NAME}
                           (timestamp, risk_score, risk_level, payload)
                       VALUES (?, ?, ?, ?)""",
                    (timestamp, _indexed_risk_score(data), _indexed_risk_level(data), encoded),
                )
                await conn.commit()
                record_id = cursor.lastrowid
        except _STORAGE_ERRORS as exc:
            logger.warning("Error saving assessment: %s", exc)
            raise StoreWriteError(f"Error saving assessment: {exc}", cause=exc) from exc

        logger.debug("Assessment saved with ID: %d", record_id)
        return record_id

    async def delete_by_id(self, record_id: int) -> None:
        """Delete the assessment with *record_id*.

        A missing id is not an error: the delete transaction succeeding is
        enough, so repeated deletes of the same id all succeed.

        Raises:
            StoreWriteError: the delete transaction failed.
        """
        self._require_open()
        if not _storable_id(record_id):
            logger.debug("Assessment %s cannot exist; nothing to delete", record_id)
            return
        try:
            async with self._connect() as conn:
                await conn.execute(f"DELETE FROM {TABLE_NAME} WHERE id = ?", (record_id,))
                await conn.commit()
        except _STORAGE_ERRORS as exc:
            logger.warning("Error deleting assessment %s: %s", record_id, exc)
            raise StoreWriteError(
                f"Error deleting assessment {record_id}: {exc}", cause=exc
            ) from exc
        logger.debug("Assessment deleted: %s", record_id)

    async def clear(self) -> int:
        """Delete every stored assessment. Returns the number removed.

        Ids handed out before the clear are still never reused.
        """
        self._require_open()
        try:
            async with self._connect() as conn:
                cursor = await conn.execute(f"DELETE FROM {TABLE_NAME}")
                await conn.commit()
                removed = cursor.rowcount
        except _STORAGE_ERRORS as exc:
            logger.warning("Error clearing assessments: %s", exc)
            raise StoreWriteError(f"Error clearing assessments: {exc}", cause=exc) from exc
        logger.info("Cleared %d stored assessment(s)", removed)
        return removed

    # ── Reads ─────────────────────────────────────────────────────────────

    async def list_all(self) -> list[dict]:
        """Return every assessment, most recent first.

        Records with equal timestamps are ordered by descending id, so a later
        save always comes first. The list is freshly built on each call.

        Raises:
            StoreReadError: the read transaction failed.
        """
        self._require_open()
        try:
            async with self._connect() as conn:
                rows = await conn.execute_fetchall(
                    f"""SELECT id, timestamp, payload FROM {TABLE_NAME}
                       ORDER BY timestamp DESC, id DESC"""
                )
            records = [_row_to_record(r) for r in rows]
        except _READ_ERRORS as exc:
            logger.warning("Error retrieving assessments: %s", exc)
            raise StoreReadError(f"Error retrieving assessments: {exc}", cause=exc) from exc

        logger.debug("Retrieved assessments: %d", len(records))
        return records

    async def get_by_id(self, record_id: int) -> dict:
        """Return the assessment with *record_id*.

        Raises:
            NotFoundError: no assessment has that id.
            StoreReadError: the read transaction failed.
        """
        self._require_open()
        if not _storable_id(record_id):
            raise NotFoundError(record_id)
        try:
            async with self._connect() as conn:
                async with conn.execute(
                    f"SELECT id, timestamp, payload FROM {TABLE_NAME} WHERE id = ?",
                    (record_id,),
                ) as cursor:
                    row = await cursor.fetchone()
            record = _row_to_record(row) if row is not None else None
        except _READ_ERRORS as exc:
            logger.warning("Error retrieving assessment %s: %s", record_id, exc)
            raise StoreReadError(
                f"Error retrieving assessment {record_id}: {exc}", cause=exc
            ) from exc

        if record is None:
            raise NotFoundError(record_id)
        return record

    async def count(self) -> int:
        """Return the number of stored assessments."""
        self._require_open()
        try:
            async with self._connect() as conn:
                async with conn.execute(f"SELECT COUNT(*) FROM {TABLE_NAME}") as cursor:
                    row = await cursor.fetchone()
        except _STORAGE_ERRORS as exc:
            raise StoreReadError(f"Error counting assessments: {exc}", cause=exc) from exc
        return row[0]


async def open_store(db_path: str | Path | None = None, **kwargs) -> RecordStore:
    """Build a ``RecordStore`` for *db_path* (or the configured default) and open it."""
    store = RecordStore(get_db_path(db_path), **kwargs)
    return await store.open()


__all__ = ["RESERVED_FIELDS", "RecordStore", "StoreState", "now_ms", "open_store"]

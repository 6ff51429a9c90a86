"""SQLite database primitives for the assessment record store.

The schema is versioned through a ``schema_version`` table. ``migrate`` brings
an older (or brand new) database up to ``SCHEMA_VERSION`` by applying each
pending step once, inside a single transaction.

Module layout::

    connection(db_path) → async context manager yielding aiosqlite.Connection
    get_schema_version(conn) → int
    migrate(conn) → bool
    init_db(db_path) → bool
"""

import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, Awaitable, Callable

import aiosqlite

from .config import get_busy_timeout
from .errors import SchemaVersionError

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 1

TABLE_NAME = "assessments"
DATE_INDEX = "by_date"
RISK_INDEX = "by_risk"


@asynccontextmanager
async def connection(db_path: Path, timeout: float | None = None) -> AsyncIterator[aiosqlite.Connection]:
    """Open a connection to the assessment database.

    WAL mode lets readers proceed while a writer holds the lock. Work that is
    not committed before the block exits is rolled back when the connection
    closes.
    """
    conn = await aiosqlite.connect(
        str(db_path),
        timeout=timeout if timeout is not None else get_busy_timeout(),
    )
    try:
        conn.row_factory = aiosqlite.Row
        await conn.execute("PRAGMA journal_mode=WAL")
        yield conn
    finally:
        await conn.close()


async def _table_exists(conn: aiosqlite.Connection, table: str) -> bool:
    """Return True if *table* exists in the database."""
    async with conn.execute(
        "SELECT 1 FROM sqlite_master WHERE type = 'table' AND name = ?", (table,)
    ) as cursor:
        return await cursor.fetchone() is not None


async def get_schema_version(conn: aiosqlite.Connection) -> int:
    """Return the stored schema version (0 for a database never migrated)."""
    if not await _table_exists(conn, "schema_version"):
        return 0
    async with conn.execute("SELECT MAX(version) FROM schema_version") as cursor:
        row = await cursor.fetchone()
    return row[0] if row[0] is not None else 0


async def _create_assessments(conn: aiosqlite.Connection) -> None:
    """Create the assessments table and its by_date / by_risk indexes."""
    await conn.execute(
        f"""CREATE TABLE IF NOT EXISTS {TABLE_NAME} (
               id INTEGER PRIMARY KEY AUTOINCREMENT,
               timestamp INTEGER NOT NULL,
               risk_score REAL,
               risk_level TEXT,
               payload TEXT NOT NULL
           )"""
    )
    await conn.execute(
        f"CREATE INDEX IF NOT EXISTS {DATE_INDEX} ON {TABLE_NAME}(timestamp)"
    )
    await conn.execute(
        f"CREATE INDEX IF NOT EXISTS {RISK_INDEX} ON {TABLE_NAME}(risk_score)"
    )


# (target version, step) pairs, applied in order.
_MIGRATIONS: tuple[tuple[int, Callable[[aiosqlite.Connection], Awaitable[None]]], ...] = (
    (1, _create_assessments),
)


async def migrate(conn: aiosqlite.Connection) -> bool:
    """Upgrade the schema to ``SCHEMA_VERSION`` if it is older.

    Steps only ever add tables and indexes, so existing records survive.
    Returns True when an upgrade was applied, False when the schema was
    already current.

    Raises:
        SchemaVersionError: the database was written by a newer version.
    """
    current = await get_schema_version(conn)
    if current > SCHEMA_VERSION:
        raise SchemaVersionError(current, SCHEMA_VERSION)
    if current == SCHEMA_VERSION:
        return False

    await conn.execute("BEGIN IMMEDIATE")
    try:
        # Re-read under the write lock: another process may have upgraded.
        current = await get_schema_version(conn)
        if current >= SCHEMA_VERSION:
            await conn.rollback()
            if current > SCHEMA_VERSION:
                raise SchemaVersionError(current, SCHEMA_VERSION)
            return False

        await conn.execute(
            "CREATE TABLE IF NOT EXISTS schema_version (version INTEGER PRIMARY KEY)"
        )
        for version, step in _MIGRATIONS:
            if version <= current:
                continue
            logger.info("Applying DB migration v%d: %s", version, step.__doc__)
            await step(conn)

        await conn.execute(
            "INSERT OR REPLACE INTO schema_version (version) VALUES (?)",
            (SCHEMA_VERSION,),
        )
        await conn.commit()
    except Exception:
        await conn.rollback()
        raise

    logger.info("Database schema upgraded from v%d to v%d", current, SCHEMA_VERSION)
    return True


async def init_db(db_path: Path, timeout: float | None = None) -> bool:
    """Create the database file if needed and bring its schema up to date."""
    db_path.parent.mkdir(parents=True, exist_ok=True)
    async with connection(db_path, timeout=timeout) as conn:
        return await migrate(conn)


__all__ = [
    "SCHEMA_VERSION",
    "TABLE_NAME",
    "DATE_INDEX",
    "RISK_INDEX",
    "connection",
    "get_schema_version",
    "migrate",
    "init_db",
]

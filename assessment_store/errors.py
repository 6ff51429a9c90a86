"""Error taxonomy for the assessment record store."""

from __future__ import annotations


class StoreError(Exception):
    """Base exception for record store failures.

    ``cause`` holds the underlying storage exception, when there is one.
    """

    def __init__(self, message: str, cause: BaseException | None = None):
        super().__init__(message)
        self.cause = cause


class InitializationError(StoreError):
    """Raised when the store is used before ``open()`` succeeded."""


class SchemaVersionError(InitializationError):
    """Raised when the database was written by a newer schema version."""

    def __init__(self, found: int, expected: int):
        super().__init__(
            f"Database schema version {found} is newer than supported version {expected}"
        )
        self.found = found
        self.expected = expected


class StoreWriteError(StoreError):
    """Raised when an insert or delete transaction fails."""


class StoreReadError(StoreError):
    """Raised when a read transaction fails."""


class NotFoundError(StoreError):
    """Raised by ``get_by_id`` when no record has the requested id."""

    def __init__(self, record_id: int):
        super().__init__(f"Assessment {record_id} not found")
        self.record_id = record_id


__all__ = [
    "StoreError",
    "InitializationError",
    "SchemaVersionError",
    "StoreWriteError",
    "StoreReadError",
    "NotFoundError",
]

"""
Shared fixtures for ckd-assessments tests.
"""

import sqlite3

import pytest
import pytest_asyncio

from assessment_store import RecordStore


class StepClock:
    """Deterministic millisecond clock: each call advances by ``step``."""

    def __init__(self, start: int = 1_700_000_000_000, step: int = 1000):
        self.now = start
        self.step = step
        self.calls = 0

    def __call__(self) -> int:
        value = self.now
        self.now += self.step
        self.calls += 1
        return value


@pytest.fixture
def db_path(tmp_path):
    """Path to a fresh (not yet created) database file."""
    return tmp_path / "history" / "ckd-prediction.db"


@pytest.fixture
def clock():
    return StepClock()


@pytest_asyncio.fixture
async def store(db_path, clock):
    """An open RecordStore on a fresh database with a stepping clock."""
    return await RecordStore(db_path, clock=clock).open()


@pytest.fixture
def raw_db(db_path):
    """Open a plain sqlite3 connection on the test database for inspection.

    Usage:
        conn = raw_db()
    """
    conns = []

    def _open():
        db_path.parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(str(db_path))
        conn.row_factory = sqlite3.Row
        conns.append(conn)
        return conn

    yield _open
    for conn in conns:
        conn.close()


@pytest.fixture
def patient_a():
    """Assessment payload for a 45 year old man."""
    return {
        "age": 45,
        "sex": "male",
        "duration": "5-10",
        "family_history": "yes",
        "family_diseases": ["diabetes", "hypertension"],
        "riskScore": 9,
        "riskLevel": "moderate",
    }


@pytest.fixture
def patient_b():
    """Assessment payload for a 60 year old woman."""
    return {
        "age": 60,
        "sex": "female",
        "duration": "10+",
        "family_history": "no",
        "family_diseases": [],
        "riskScore": 14.5,
        "riskLevel": "high",
    }

"""Shared fixtures: a real SQLite store on tmp_path with a controllable clock."""

from datetime import datetime, timedelta, timezone

import pytest

from drift.adapters.sqlite_store import SQLiteNudgeLog, SQLiteTaskStore, connect


class FakeClock:
    """Callable clock that tests can move forward by hand."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


@pytest.fixture
def now():
    # Wednesday
    return datetime(2025, 1, 15, 10, 0, tzinfo=timezone.utc)


@pytest.fixture
def clock(now):
    return FakeClock(now)


@pytest.fixture
def conn(tmp_path):
    connection = connect(tmp_path / "data" / "drift.db")
    yield connection
    connection.close()


@pytest.fixture
def store(conn, clock):
    return SQLiteTaskStore(conn, tz=timezone.utc, clock=clock)


@pytest.fixture
def nudge_log(conn, clock):
    return SQLiteNudgeLog(conn, tz=timezone.utc, clock=clock)

"""SQLite storage adapter for tasks and nudges."""

import json
import logging
import sqlite3
import uuid
from contextlib import contextmanager
from dataclasses import fields
from datetime import datetime, timezone, tzinfo
from pathlib import Path
from typing import Callable, Iterator

from drift.core.nudges import Nudge, NudgeType
from drift.core.recurrence import format_recurrence_days, parse_recurrence_days
from drift.core.tasks import (
    Difficulty,
    Priority,
    Recurrence,
    Status,
    Task,
    TaskDraft,
    TaskPatch,
    validate_fields,
)
from drift.ports.task_store import StoreError

logger = logging.getLogger(__name__)

SCHEMA = """
CREATE TABLE IF NOT EXISTS tasks (
    id TEXT PRIMARY KEY,
    content TEXT NOT NULL,
    notes TEXT,
    status TEXT NOT NULL DEFAULT 'active',
    priority TEXT,
    category TEXT,
    due_date INTEGER,
    due_time TEXT,
    recurrence TEXT DEFAULT 'none',
    recurrence_interval INTEGER DEFAULT 1,
    recurrence_days TEXT,
    recurrence_end_date INTEGER,
    last_notified_at INTEGER,
    completed_at INTEGER,
    created_at INTEGER NOT NULL,
    updated_at INTEGER NOT NULL,
    series_id TEXT,
    estimated_duration INTEGER,
    difficulty TEXT,
    focus_date TEXT,
    focus_order INTEGER
);

CREATE INDEX IF NOT EXISTS idx_tasks_status ON tasks(status);
CREATE INDEX IF NOT EXISTS idx_tasks_focus_date ON tasks(focus_date);

CREATE TABLE IF NOT EXISTS nudges (
    id TEXT PRIMARY KEY,
    type TEXT NOT NULL,
    message TEXT NOT NULL,
    task_ids TEXT,
    created_at INTEGER NOT NULL,
    dismissed INTEGER DEFAULT 0
);
"""

DATETIME_FIELDS = {
    "due_date",
    "recurrence_end_date",
    "last_notified_at",
    "completed_at",
    "created_at",
    "updated_at",
}
ENUM_FIELDS = {
    "status": Status,
    "priority": Priority,
    "recurrence": Recurrence,
    "difficulty": Difficulty,
}


def connect(db_path: Path | str) -> sqlite3.Connection:
    """Open (and create if needed) the drift database."""
    if str(db_path) != ":memory:":
        Path(db_path).expanduser().parent.mkdir(parents=True, exist_ok=True)
    try:
        conn = sqlite3.connect(str(db_path), timeout=10, check_same_thread=False)
        conn.execute("PRAGMA journal_mode=WAL")
        conn.row_factory = sqlite3.Row
        conn.executescript(SCHEMA)
    except sqlite3.Error as e:
        raise StoreError(f"Cannot open database {db_path}: {e}") from e
    return conn


@contextmanager
def _transaction(conn: sqlite3.Connection) -> Iterator[sqlite3.Connection]:
    """One transaction per store call; sqlite errors surface as StoreError."""
    try:
        with conn:
            yield conn
    except sqlite3.Error as e:
        logger.error(f"Database error: {e}")
        raise StoreError(str(e)) from e


class _SQLiteBase:
    def __init__(
        self,
        conn: sqlite3.Connection,
        tz: tzinfo | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        self.conn = conn
        self.tz = tz or timezone.utc
        self._clock = clock or (lambda: datetime.now(self.tz))

    def _to_ts(self, value: datetime | None) -> int | None:
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=self.tz)
        return int(value.timestamp())

    def _from_ts(self, value: int | None) -> datetime | None:
        if value is None:
            return None
        return datetime.fromtimestamp(value, self.tz)


class SQLiteTaskStore(_SQLiteBase):
    """
    SQLite task store.

    Implements TaskStore protocol. Instants are stored as epoch seconds and
    weekday sets as "1,3,5" strings, matching the existing drift.db layout.
    """

    def _to_column(self, name: str, value):
        if name in DATETIME_FIELDS:
            return self._to_ts(value)
        if name in ENUM_FIELDS:
            return value.value if value is not None else None
        if name == "recurrence_days":
            return format_recurrence_days(value)
        return value

    def _row_to_task(self, row: sqlite3.Row) -> Task:
        return Task(
            id=row["id"],
            content=row["content"],
            notes=row["notes"],
            status=Status(row["status"]),
            priority=Priority(row["priority"]) if row["priority"] else None,
            category=row["category"],
            due_date=self._from_ts(row["due_date"]),
            due_time=row["due_time"],
            recurrence=Recurrence(row["recurrence"] or "none"),
            recurrence_interval=row["recurrence_interval"] or 1,
            recurrence_days=parse_recurrence_days(row["recurrence_days"]),
            recurrence_end_date=self._from_ts(row["recurrence_end_date"]),
            last_notified_at=self._from_ts(row["last_notified_at"]),
            completed_at=self._from_ts(row["completed_at"]),
            created_at=self._from_ts(row["created_at"]),
            updated_at=self._from_ts(row["updated_at"]),
            series_id=row["series_id"],
            estimated_duration=row["estimated_duration"],
            difficulty=Difficulty(row["difficulty"]) if row["difficulty"] else None,
            focus_date=row["focus_date"],
            focus_order=row["focus_order"],
        )

    def _select(self, where: str = "", params: tuple = ()) -> list[Task]:
        with _transaction(self.conn) as conn:
            rows = conn.execute(f"SELECT * FROM tasks {where} ORDER BY rowid", params).fetchall()
        return [self._row_to_task(r) for r in rows]

    def get_all(self) -> list[Task]:
        return self._select()

    def get_by_status(self, status: Status) -> list[Task]:
        return self._select("WHERE status = ?", (status.value,))

    def get_by_focus_date(self, focus_date: str) -> list[Task]:
        return self._select("WHERE focus_date = ?", (focus_date,))

    def get(self, task_id: str) -> Task | None:
        tasks = self._select("WHERE id = ?", (task_id,))
        return tasks[0] if tasks else None

    def create(self, draft: TaskDraft) -> Task:
        values = {f.name: getattr(draft, f.name) for f in fields(draft)}
        validate_fields(values)

        now = self._clock()
        task_id = str(uuid.uuid4())
        values["id"] = task_id
        values["series_id"] = draft.series_id or task_id
        values["created_at"] = now
        values["updated_at"] = now
        if values["status"] == Status.COMPLETED:
            values["completed_at"] = values["completed_at"] or now
        else:
            values["completed_at"] = None

        columns = list(values)
        placeholders = ", ".join("?" for _ in columns)
        with _transaction(self.conn) as conn:
            conn.execute(
                f"INSERT INTO tasks ({', '.join(columns)}) VALUES ({placeholders})",
                [self._to_column(c, values[c]) for c in columns],
            )
        logger.debug(f"Created task {task_id}")
        return self.get(task_id)

    def update(self, task_id: str, patch: TaskPatch) -> Task | None:
        current = self.get(task_id)
        if current is None:
            return None

        changes = patch.changes()
        validate_fields(changes)

        now = self._clock()
        status = changes.get("status", current.status)
        if status == Status.COMPLETED:
            completed_at = changes.get("completed_at", current.completed_at)
            changes["completed_at"] = completed_at or now
        elif "status" in changes or "completed_at" in changes:
            changes["completed_at"] = None
        changes["updated_at"] = now

        assignments = ", ".join(f"{name} = ?" for name in changes)
        params = [self._to_column(name, value) for name, value in changes.items()]
        with _transaction(self.conn) as conn:
            conn.execute(f"UPDATE tasks SET {assignments} WHERE id = ?", [*params, task_id])
        return self.get(task_id)

    def delete(self, task_id: str) -> bool:
        with _transaction(self.conn) as conn:
            cursor = conn.execute("DELETE FROM tasks WHERE id = ?", (task_id,))
        return cursor.rowcount > 0


class SQLiteNudgeLog(_SQLiteBase):
    """
    SQLite nudge log.

    Implements NudgeLog protocol. Related task ids are stored as a JSON array.
    """

    def _row_to_nudge(self, row: sqlite3.Row) -> Nudge:
        return Nudge(
            id=row["id"],
            type=NudgeType(row["type"]),
            message=row["message"],
            task_ids=json.loads(row["task_ids"]) if row["task_ids"] else [],
            created_at=self._from_ts(row["created_at"]),
            dismissed=bool(row["dismissed"]),
        )

    def append(self, nudge_type: NudgeType, message: str, task_ids: list[str] | None = None) -> Nudge:
        nudge = Nudge(
            id=str(uuid.uuid4()),
            type=nudge_type,
            message=message,
            task_ids=list(task_ids or []),
            created_at=self._clock(),
        )
        with _transaction(self.conn) as conn:
            conn.execute(
                "INSERT INTO nudges (id, type, message, task_ids, created_at, dismissed) "
                "VALUES (?, ?, ?, ?, ?, 0)",
                (
                    nudge.id,
                    nudge.type.value,
                    nudge.message,
                    json.dumps(nudge.task_ids) if nudge.task_ids else None,
                    self._to_ts(nudge.created_at),
                ),
            )
        return nudge

    def recent(self, include_dismissed: bool = False) -> list[Nudge]:
        where = "" if include_dismissed else "WHERE dismissed = 0"
        with _transaction(self.conn) as conn:
            rows = conn.execute(
                f"SELECT * FROM nudges {where} ORDER BY created_at DESC, rowid DESC"
            ).fetchall()
        return [self._row_to_nudge(r) for r in rows]

    def latest(self) -> Nudge | None:
        nudges = self.recent()
        return nudges[0] if nudges else None

    def dismiss(self, nudge_id: str) -> bool:
        with _transaction(self.conn) as conn:
            cursor = conn.execute("UPDATE nudges SET dismissed = 1 WHERE id = ?", (nudge_id,))
        return cursor.rowcount > 0

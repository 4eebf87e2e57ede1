"""Pure task domain logic - no I/O dependencies."""

import re
from dataclasses import dataclass, fields
from datetime import datetime
from enum import Enum


class Priority(Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class Status(Enum):
    ACTIVE = "active"
    COMPLETED = "completed"


class Recurrence(Enum):
    """How often a task repeats."""

    NONE = "none"
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    CUSTOM = "custom"  # currently behaves like DAILY


class Difficulty(Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


DUE_TIME_RE = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


@dataclass
class Task:
    """A unit of work, possibly one instance of a recurring series."""

    id: str
    content: str
    created_at: datetime
    updated_at: datetime
    status: Status = Status.ACTIVE
    notes: str | None = None
    category: str | None = None
    priority: Priority | None = None
    due_date: datetime | None = None
    due_time: str | None = None  # HH:MM, independent of due_date's own time
    recurrence: Recurrence = Recurrence.NONE
    recurrence_interval: int = 1
    recurrence_days: frozenset[int] | None = None  # 0=Sunday .. 6=Saturday
    recurrence_end_date: datetime | None = None
    last_notified_at: datetime | None = None
    completed_at: datetime | None = None
    series_id: str | None = None
    estimated_duration: int | None = None  # minutes
    difficulty: Difficulty | None = None
    focus_date: str | None = None  # YYYY-MM-DD
    focus_order: int | None = None

    @property
    def is_active(self) -> bool:
        return self.status == Status.ACTIVE

    @property
    def is_recurring(self) -> bool:
        return self.recurrence != Recurrence.NONE

    def is_overdue(self, now: datetime) -> bool:
        """Due date set and strictly before now."""
        return self.due_date is not None and self.due_date < now

    def is_due_on(self, now: datetime) -> bool:
        """Due on the same local calendar day as now."""
        if self.due_date is None:
            return False
        return self.due_date.astimezone(now.tzinfo).date() == now.date()


@dataclass
class TaskDraft:
    """Payload for creating a task. The store assigns id and timestamps."""

    content: str
    status: Status = Status.ACTIVE
    notes: str | None = None
    category: str | None = None
    priority: Priority | None = None
    due_date: datetime | None = None
    due_time: str | None = None
    recurrence: Recurrence = Recurrence.NONE
    recurrence_interval: int = 1
    recurrence_days: frozenset[int] | None = None
    recurrence_end_date: datetime | None = None
    last_notified_at: datetime | None = None
    completed_at: datetime | None = None
    series_id: str | None = None
    estimated_duration: int | None = None
    difficulty: Difficulty | None = None
    focus_date: str | None = None
    focus_order: int | None = None


class _Unset:
    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False


UNSET = _Unset()


@dataclass
class TaskPatch:
    """
    Partial update of a task's mutable fields.

    Attributes left as UNSET are untouched; None clears the field. Identity and
    bookkeeping fields (id, series_id, created_at, updated_at) cannot be patched.
    """

    content: str | _Unset = UNSET
    notes: str | None | _Unset = UNSET
    category: str | None | _Unset = UNSET
    priority: Priority | None | _Unset = UNSET
    due_date: datetime | None | _Unset = UNSET
    due_time: str | None | _Unset = UNSET
    recurrence: Recurrence | _Unset = UNSET
    recurrence_interval: int | _Unset = UNSET
    recurrence_days: frozenset[int] | None | _Unset = UNSET
    recurrence_end_date: datetime | None | _Unset = UNSET
    last_notified_at: datetime | None | _Unset = UNSET
    status: Status | _Unset = UNSET
    completed_at: datetime | None | _Unset = UNSET
    estimated_duration: int | None | _Unset = UNSET
    difficulty: Difficulty | None | _Unset = UNSET
    focus_date: str | None | _Unset = UNSET
    focus_order: int | None | _Unset = UNSET

    def changes(self) -> dict:
        """Only the fields that were set."""
        return {
            f.name: getattr(self, f.name)
            for f in fields(self)
            if getattr(self, f.name) is not UNSET
        }


def validate_fields(values: dict) -> None:
    """
    Field-level validation shared by drafts and patches.

    Raises ValueError on the first invalid value.
    """
    if "content" in values and not (values["content"] or "").strip():
        raise ValueError("content must not be empty")

    due_time = values.get("due_time")
    if due_time is not None and not DUE_TIME_RE.match(due_time):
        raise ValueError(f"due_time must be HH:MM, got {due_time!r}")

    interval = values.get("recurrence_interval")
    if interval is not None and interval < 1:
        raise ValueError(f"recurrence_interval must be >= 1, got {interval}")

    days = values.get("recurrence_days")
    if days is not None:
        if not days:
            raise ValueError("recurrence_days must not be empty")
        bad = [d for d in days if not 0 <= d <= 6]
        if bad:
            raise ValueError(f"recurrence_days must be within 0-6, got {sorted(bad)}")

    order = values.get("focus_order")
    if order is not None and order < 0:
        raise ValueError(f"focus_order must be >= 0, got {order}")

    duration = values.get("estimated_duration")
    if duration is not None and duration < 0:
        raise ValueError(f"estimated_duration must be >= 0, got {duration}")


def filter_active(tasks: list[Task]) -> list[Task]:
    return [t for t in tasks if t.is_active]


def filter_overdue(tasks: list[Task], now: datetime) -> list[Task]:
    """Active tasks whose due instant has passed."""
    return [t for t in tasks if t.is_active and t.is_overdue(now)]


def filter_due_now(tasks: list[Task], now: datetime) -> list[Task]:
    """
    Active tasks due today whose due_time matches the current minute.

    Pure function - no I/O. Debouncing is left to the caller.
    """
    current = now.strftime("%H:%M")
    return [
        t
        for t in tasks
        if t.is_active and t.due_time and t.is_due_on(now) and t.due_time == current
    ]


def filter_due_today(tasks: list[Task], now: datetime) -> list[Task]:
    """Active tasks due on or before today, plus undated ones."""
    today = now.date()
    return [
        t
        for t in tasks
        if t.is_active
        and (t.due_date is None or t.due_date.astimezone(now.tzinfo).date() <= today)
    ]


def append_note(existing: str | None, note: str, stamp: datetime) -> str:
    """Append a timestamped note, separated from earlier notes by a rule."""
    header = f"[{stamp.strftime('%Y-%m-%d %H:%M')}]"
    if existing:
        return f"{existing}\n\n---\n{header}\n{note}"
    return f"{header}\n{note}"


CATEGORY_KEYWORDS = [
    ("work", ("work", "meeting", "email", "report")),
    ("shopping", ("buy", "shop", "groceries", "order")),
    ("communication", ("call", "text", "message", "email")),
    ("health", ("doctor", "dentist", "health", "gym")),
    ("home", ("home", "clean", "fix", "repair")),
    ("finance", ("pay", "bill", "bank", "budget")),
    ("learning", ("learn", "study", "read", "course")),
]

HIGH_PRIORITY_WORDS = ("urgent", "asap", "important", "critical")
MEDIUM_PRIORITY_WORDS = ("soon", "this week", "tomorrow")

DUE_IN_DAYS = [("today", 0), ("tomorrow", 1), ("this week", 7)]


@dataclass
class TaskGuess:
    """Fields inferred from a task's wording."""

    category: str | None
    priority: Priority
    due_in_days: int | None


def guess_fields(content: str) -> TaskGuess:
    """
    Rule-based category, priority and due-date guess from keywords.

    Matching is plain substring search on the lowercased text; the first
    matching category wins and priority defaults to low.
    """
    lower = content.lower()

    category = next(
        (name for name, words in CATEGORY_KEYWORDS if any(w in lower for w in words)),
        None,
    )

    if any(w in lower for w in HIGH_PRIORITY_WORDS):
        priority = Priority.HIGH
    elif any(w in lower for w in MEDIUM_PRIORITY_WORDS):
        priority = Priority.MEDIUM
    else:
        priority = Priority.LOW

    due_in_days = next((days for word, days in DUE_IN_DAYS if word in lower), None)

    return TaskGuess(category=category, priority=priority, due_in_days=due_in_days)

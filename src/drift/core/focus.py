"""Focus Queue domain logic - today's ranked plan, no I/O."""

from dataclasses import dataclass, field
from datetime import datetime

from .tasks import Task

CACHED_REASONING = "Cached from earlier today"
FALLBACK_REASONING = "planning failed, showing top items"
UNCONFIGURED_REASONING = "AI not configured. Showing closest due dates."

SELECTION_POLICY = """1. Prioritize OVERDUE and TODAY tasks.
2. If the list is huge, pick only 3-5 "Must Do" items to prevent overwhelm.
3. Mix "Quick Wins" (easy) with "Deep Work" (hard).
4. Order them logically (e.g. Eat the Frog: hardest first, or Snowball: easiest first)."""


@dataclass
class FocusQueue:
    """Today's plan: ordered task ids plus the rationale behind them."""

    task_ids: list[str]
    reasoning: str
    generated_at: datetime

    def __len__(self) -> int:
        return len(self.task_ids)


@dataclass
class FocusSelection:
    """What a ranking oracle returns: an ordered subset of candidate ids."""

    task_ids: list[str]
    reasoning: str


@dataclass
class TimeContext:
    """Enough of "now" for an oracle to reason about today."""

    now: datetime
    weekday: str
    date: str

    @classmethod
    def at(cls, now: datetime) -> "TimeContext":
        return cls(now=now, weekday=now.strftime("%A"), date=focus_date_for(now))


@dataclass
class TaskSummary:
    """Token-cheap view of a task handed to the ranking oracle."""

    id: str
    content: str
    priority: str | None = None
    due_date: str | None = None
    category: str | None = None
    difficulty: str | None = None
    estimated_duration: int | None = None
    is_overdue: bool = False

    @classmethod
    def from_task(cls, task: Task, now: datetime) -> "TaskSummary":
        return cls(
            id=task.id,
            content=task.content,
            priority=task.priority.value if task.priority else None,
            due_date=task.due_date.isoformat() if task.due_date else None,
            category=task.category,
            difficulty=task.difficulty.value if task.difficulty else None,
            estimated_duration=task.estimated_duration,
            is_overdue=task.is_overdue(now),
        )


@dataclass
class StatusItem:
    """Per-task input for the advisory message generator."""

    content: str
    priority: str | None = None
    is_overdue: bool = False

    @classmethod
    def from_task(cls, task: Task, now: datetime) -> "StatusItem":
        return cls(
            content=task.content,
            priority=task.priority.value if task.priority else None,
            is_overdue=task.is_overdue(now),
        )


def focus_date_for(now: datetime) -> str:
    """Calendar day key (YYYY-MM-DD) stored in Task.focus_date."""
    return now.date().isoformat()


def order_cached(tasks: list[Task]) -> list[Task]:
    """Sort by focus_order ascending, unranked last, ties broken by id."""

    def sort_key(t: Task) -> tuple[int, int, str]:
        if t.focus_order is None:
            return (1, 0, t.id)
        return (0, t.focus_order, t.id)

    return sorted(tasks, key=sort_key)


def sanitize_selection(task_ids: list[str], candidates: list[Task]) -> list[str]:
    """Keep only known candidate ids, first occurrence wins."""
    known = {t.id for t in candidates}
    seen: set[str] = set()
    result = []
    for task_id in task_ids:
        if task_id in known and task_id not in seen:
            seen.add(task_id)
            result.append(task_id)
    return result


def fallback_selection(active: list[Task], limit: int = 5) -> FocusSelection:
    """Deterministic plan used when the oracle fails: first N by id."""
    chosen = sorted(active, key=lambda t: t.id)[:limit]
    return FocusSelection(task_ids=[t.id for t in chosen], reasoning=FALLBACK_REASONING)


def closest_due_selection(active: list[Task], limit: int = 5) -> FocusSelection:
    """Plan used when no oracle is configured: closest due dates, undated last."""

    def sort_key(t: Task) -> tuple[int, float, str]:
        if t.due_date is None:
            return (1, 0.0, t.id)
        return (0, t.due_date.timestamp(), t.id)

    chosen = sorted(active, key=sort_key)[:limit]
    return FocusSelection(task_ids=[t.id for t in chosen], reasoning=UNCONFIGURED_REASONING)


@dataclass
class FocusPlanView:
    """A FocusQueue resolved against the tasks it names, for display."""

    queue: FocusQueue
    tasks: list[Task] = field(default_factory=list)

    @classmethod
    def resolve(cls, queue: FocusQueue, tasks: list[Task]) -> "FocusPlanView":
        by_id = {t.id: t for t in tasks}
        return cls(queue=queue, tasks=[by_id[i] for i in queue.task_ids if i in by_id])

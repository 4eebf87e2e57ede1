"""Nudges - advisory messages shown at check-ins and alerts."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from .tasks import Task


class NudgeType(Enum):
    WELCOME = "welcome"
    MORNING_CHECKIN = "morning-checkin"
    MIDDAY_CHECKIN = "midday-checkin"
    OVERDUE_REMINDER = "overdue-reminder"
    DUE_DATE_PROMPT = "due-date-prompt"
    PROGRESS_CHECK = "progress-check"
    COMPLETION_CELEBRATION = "completion-celebration"
    EMPTY_INBOX = "empty-inbox"


@dataclass
class Nudge:
    """An entry in the append-only nudge log. Only `dismissed` ever changes."""

    id: str
    type: NudgeType
    message: str
    created_at: datetime
    task_ids: list[str] = field(default_factory=list)
    dismissed: bool = False


@dataclass
class Notification:
    """A user-facing notification handed to a NotificationSink."""

    title: str
    body: str
    task_ids: list[str] = field(default_factory=list)


GREETINGS = {
    "morning": "Ready to make today count?",
    "midday": "How's the day going?",
    "evening": "Wrapping up the day?",
}


def default_nudge(task_count: int, time_of_day: str) -> str:
    """Canned check-in message used when no oracle is available."""
    if task_count == 0:
        return "Your slate is clean! Time to tackle something new or just enjoy the breather."
    greeting = GREETINGS.get(time_of_day, GREETINGS["midday"])
    noun = "thing" if task_count == 1 else "things"
    return f"{greeting} You've got {task_count} {noun} on your list."


def overdue_message(overdue: list[Task]) -> str:
    """Aggregate message for the hourly overdue sweep."""
    if len(overdue) == 1:
        return f'You have 1 overdue task: "{overdue[0].content[:40]}..."'
    return f"You have {len(overdue)} overdue tasks that need attention"

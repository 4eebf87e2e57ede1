"""Functional core - pure business logic with no I/O."""

from .tasks import (
    Difficulty,
    Priority,
    Recurrence,
    Status,
    Task,
    TaskDraft,
    TaskPatch,
    UNSET,
    filter_overdue,
    filter_due_now,
    guess_fields,
)
from .recurrence import next_due_date, parse_recurrence_days, format_recurrence_days
from .focus import FocusQueue, FocusSelection, TimeContext, TaskSummary, StatusItem
from .nudges import Nudge, NudgeType, Notification, default_nudge, overdue_message

__all__ = [
    # Tasks
    "Difficulty",
    "Priority",
    "Recurrence",
    "Status",
    "Task",
    "TaskDraft",
    "TaskPatch",
    "UNSET",
    "filter_overdue",
    "filter_due_now",
    "guess_fields",
    # Recurrence
    "next_due_date",
    "parse_recurrence_days",
    "format_recurrence_days",
    # Focus
    "FocusQueue",
    "FocusSelection",
    "TimeContext",
    "TaskSummary",
    "StatusItem",
    # Nudges
    "Nudge",
    "NudgeType",
    "Notification",
    "default_nudge",
    "overdue_message",
]

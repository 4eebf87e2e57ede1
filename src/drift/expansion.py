"""Recurrence expansion - materializes the next instance of a completed series."""

import logging
from datetime import datetime

from .core.recurrence import next_due_date, resolve_wall_time
from .core.tasks import Status, Task, TaskDraft, TaskPatch
from .ports.task_store import TaskStore

logger = logging.getLogger(__name__)


class RecurrenceExpansionService:
    """
    Creates the next series instance when a recurring task is completed.

    Expansion is tied to the active -> completed transition performed by
    complete(); store errors propagate to the caller untouched.
    """

    def __init__(self, store: TaskStore):
        self.store = store

    def on_task_completed(self, task: Task) -> Task | None:
        """Create the next instance for a just-completed task, if the series continues."""
        if not task.is_recurring or task.due_date is None:
            return None

        next_due = resolve_wall_time(
            next_due_date(
                task.due_date,
                task.recurrence,
                task.recurrence_interval,
                task.recurrence_days,
            )
        )

        end = task.recurrence_end_date
        if end is not None and next_due.timestamp() > end.timestamp():
            logger.info(f"Series for task {task.id} ended at {task.recurrence_end_date.isoformat()}")
            return None

        series_id = task.series_id or task.id
        if self._duplicate_exists(task, next_due, series_id):
            logger.info(f"Next instance of series {series_id} already exists, skipping")
            return None

        created = self.store.create(
            TaskDraft(
                content=task.content,
                notes=task.notes,
                category=task.category,
                priority=task.priority,
                due_date=next_due,
                due_time=task.due_time,
                recurrence=task.recurrence,
                recurrence_interval=task.recurrence_interval,
                recurrence_days=task.recurrence_days,
                recurrence_end_date=task.recurrence_end_date,
                series_id=series_id,
                estimated_duration=task.estimated_duration,
                difficulty=task.difficulty,
            )
        )
        logger.info(f"Created next instance {created.id} of series {series_id} due {next_due.isoformat()}")
        return created

    def _duplicate_exists(self, task: Task, next_due: datetime, series_id: str) -> bool:
        # Same-zone datetimes compare by wall clock, so compare instants
        target = next_due.timestamp()
        for other in self.store.get_by_status(Status.ACTIVE):
            if other.due_date is None or other.due_date.timestamp() != target:
                continue
            if other.series_id == series_id or other.content == task.content:
                return True
        return False

    def complete(self, task_id: str) -> Task | None:
        """
        Mark a task completed and expand its series.

        Returns the newly created instance, if any. Completing an already
        completed task changes nothing.
        """
        task = self._require(task_id)
        if task.status == Status.COMPLETED:
            logger.info(f"Task {task_id} already completed")
            return None

        completed = self.store.update(task_id, TaskPatch(status=Status.COMPLETED))
        if completed is None:
            raise KeyError(task_id)
        return self.on_task_completed(completed)

    def reopen(self, task_id: str) -> Task:
        """Move a completed task back to active. Never expands."""
        task = self._require(task_id)
        if task.status == Status.ACTIVE:
            return task
        reopened = self.store.update(task_id, TaskPatch(status=Status.ACTIVE))
        if reopened is None:
            raise KeyError(task_id)
        return reopened

    def toggle(self, task_id: str) -> Task | None:
        """Flip completion. Returns the new series instance when completing created one."""
        task = self._require(task_id)
        if task.status == Status.ACTIVE:
            return self.complete(task_id)
        self.reopen(task_id)
        return None

    def _require(self, task_id: str) -> Task:
        task = self.store.get(task_id)
        if task is None:
            raise KeyError(task_id)
        return task

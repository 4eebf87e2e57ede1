"""Task store interface."""

from typing import Protocol

from drift.core.tasks import Status, Task, TaskDraft, TaskPatch


class StoreError(Exception):
    """Raised when the backing store fails (I/O, constraint violation)."""

    pass


class TaskStore(Protocol):
    """Interface for persisting tasks in any backend."""

    def get_all(self) -> list[Task]:
        """Fetch all tasks."""
        ...

    def get_by_status(self, status: Status) -> list[Task]:
        """Fetch tasks with the given status."""
        ...

    def get_by_focus_date(self, focus_date: str) -> list[Task]:
        """Fetch tasks selected for a YYYY-MM-DD focus day."""
        ...

    def get(self, task_id: str) -> Task | None:
        """Fetch one task. Returns None if not found."""
        ...

    def create(self, draft: TaskDraft) -> Task:
        """Create a task in a single atomic operation."""
        ...

    def update(self, task_id: str, patch: TaskPatch) -> Task | None:
        """Apply a patch. Returns the updated task, or None if not found."""
        ...

    def delete(self, task_id: str) -> bool:
        """Delete a task. Returns True if something was deleted."""
        ...

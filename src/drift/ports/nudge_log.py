"""Nudge log interface."""

from typing import Protocol

from drift.core.nudges import Nudge, NudgeType


class NudgeLog(Protocol):
    """Append-only log of advisory messages."""

    def append(self, nudge_type: NudgeType, message: str, task_ids: list[str] | None = None) -> Nudge:
        """Persist a new nudge."""
        ...

    def latest(self) -> Nudge | None:
        """Most recent undismissed nudge, or None."""
        ...

    def recent(self, include_dismissed: bool = False) -> list[Nudge]:
        """Nudges, newest first."""
        ...

    def dismiss(self, nudge_id: str) -> bool:
        """Flag a nudge as dismissed. Returns False if not found."""
        ...

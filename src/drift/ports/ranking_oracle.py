"""Ranking oracle interface."""

from typing import Protocol

from drift.core.focus import FocusSelection, StatusItem, TaskSummary, TimeContext


class OracleError(Exception):
    """Raised when the oracle times out, fails, or answers malformed."""

    pass


class RankingOracle(Protocol):
    """Slow, fallible black box that ranks tasks and writes check-in messages."""

    def select_focus_tasks(self, candidates: list[TaskSummary], context: TimeContext) -> FocusSelection:
        """Pick and order today's focus tasks from the candidates."""
        ...

    def summarize_status(self, items: list[StatusItem], time_of_day: str) -> str:
        """Write a short check-in message for the given time of day."""
        ...

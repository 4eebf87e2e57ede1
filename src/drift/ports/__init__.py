"""Ports - interfaces/protocols for external dependencies."""

from .task_store import TaskStore, StoreError
from .nudge_log import NudgeLog
from .ranking_oracle import RankingOracle, OracleError
from .llm_service import LLMService
from .notification_sink import NotificationSink

__all__ = [
    "TaskStore",
    "StoreError",
    "NudgeLog",
    "RankingOracle",
    "OracleError",
    "LLMService",
    "NotificationSink",
]

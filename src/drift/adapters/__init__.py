"""Adapters - I/O implementations of ports."""

from .sqlite_store import SQLiteTaskStore, SQLiteNudgeLog, connect
from .claude_cli import ClaudeCLIService
from .anthropic_api import AnthropicAPIService
from .llm_oracle import LLMRankingOracle
from .console_sink import ConsoleNotificationSink

__all__ = [
    "SQLiteTaskStore",
    "SQLiteNudgeLog",
    "connect",
    "ClaudeCLIService",
    "AnthropicAPIService",
    "LLMRankingOracle",
    "ConsoleNotificationSink",
]

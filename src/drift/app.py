"""Composition root - wires adapters into the planner, expansion and scheduler."""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timezone, tzinfo
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .adapters.anthropic_api import AnthropicAPIService
from .adapters.claude_cli import ClaudeCLIService
from .adapters.console_sink import ConsoleNotificationSink
from .adapters.llm_oracle import LLMRankingOracle
from .adapters.sqlite_store import SQLiteNudgeLog, SQLiteTaskStore, connect
from .config import DRIFT_HOME, Config, load_config
from .core.focus import FocusQueue
from .core.nudges import Notification
from .expansion import RecurrenceExpansionService
from .planner import FocusQueuePlanner
from .ports.notification_sink import NotificationSink
from .ports.ranking_oracle import RankingOracle
from .scheduler import CheckInScheduler, CheckInSettings, SchedulerHandle

logger = logging.getLogger(__name__)


@dataclass
class App:
    config: Config
    store: SQLiteTaskStore
    nudges: SQLiteNudgeLog
    oracle: RankingOracle | None
    planner: FocusQueuePlanner
    expansion: RecurrenceExpansionService
    handle: SchedulerHandle
    checkins: CheckInScheduler

    def now(self) -> datetime:
        return self.planner.clock()


def get_timezone(config: Config) -> tzinfo:
    """Resolve the configured IANA zone, falling back to UTC."""
    try:
        return ZoneInfo(config.timezone)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning(f"Unknown timezone {config.timezone!r}, using UTC")
        return timezone.utc


def get_oracle(config: Config) -> RankingOracle | None:
    """Build the ranking oracle for the configured AI provider."""
    match config.ai_provider:
        case "anthropic":
            if not config.anthropic_api_key:
                logger.warning("AI_PROVIDER=anthropic but ANTHROPIC_API_KEY is not set, planning without AI")
                return None
            llm = AnthropicAPIService(
                config.anthropic_api_key,
                model=config.anthropic_model,
                timeout=config.oracle_timeout,
            )
        case "claude-cli":
            llm = ClaudeCLIService(cwd=DRIFT_HOME, timeout=config.oracle_timeout)
        case _:
            return None
    return LLMRankingOracle(llm)


def checkin_settings(config: Config) -> CheckInSettings:
    return CheckInSettings(
        morning_checkin_time=config.morning_checkin_time,
        midday_checkin_time=config.midday_checkin_time,
        notifications_enabled=config.notifications_enabled,
        overdue_sweep_minute=config.overdue_sweep_minute,
    )


def build_app(
    config: Config | None = None,
    sink: NotificationSink | None = None,
    oracle: RankingOracle | None = None,
) -> App:
    """Open the database and construct every service. Store failures propagate."""
    config = config or load_config()
    tz = get_timezone(config)

    def clock() -> datetime:
        return datetime.now(tz)

    conn = connect(config.database_path)
    store = SQLiteTaskStore(conn, tz=tz, clock=clock)
    nudges = SQLiteNudgeLog(conn, tz=tz, clock=clock)
    oracle = oracle if oracle is not None else get_oracle(config)

    planner = FocusQueuePlanner(
        store,
        oracle,
        clock=clock,
        oracle_timeout=config.oracle_timeout,
        fallback_size=config.focus_fallback_size,
    )
    handle = SchedulerHandle(tz=config.timezone if tz is not timezone.utc else "UTC")
    checkins = CheckInScheduler(
        handle,
        store,
        nudges,
        planner,
        sink or ConsoleNotificationSink(),
        oracle=oracle,
        clock=clock,
        oracle_timeout=config.oracle_timeout,
    )
    return App(
        config=config,
        store=store,
        nudges=nudges,
        oracle=oracle,
        planner=planner,
        expansion=RecurrenceExpansionService(store),
        handle=handle,
        checkins=checkins,
    )


async def run_service(app: App, stop: asyncio.Event | None = None) -> None:
    """Serve today's plan, start the check-in jobs and run until stopped."""
    stop = stop or asyncio.Event()

    def push_queue(queue: FocusQueue) -> None:
        app.checkins.sink.show(
            Notification(title="Focus Queue updated", body=queue.reasoning, task_ids=queue.task_ids)
        )

    app.planner.subscribe(push_queue)
    await app.planner.initialize_on_startup()
    app.checkins.schedule(checkin_settings(app.config))
    app.handle.start()
    try:
        await stop.wait()
    finally:
        app.handle.shutdown()

"""Check-in scheduler - timed nudges, overdue/due-time sweeps, plan refreshes."""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from .core.focus import StatusItem
from .core.nudges import Notification, NudgeType, default_nudge, overdue_message
from .core.tasks import Status, TaskPatch, filter_due_now, filter_overdue
from .planner import FocusQueuePlanner, call_blocking
from .ports.nudge_log import NudgeLog
from .ports.notification_sink import NotificationSink
from .ports.ranking_oracle import OracleError, RankingOracle
from .ports.task_store import TaskStore

logger = logging.getLogger(__name__)

DEBOUNCE_SECONDS = 60

CHECKIN_TITLES = {
    "morning": "Good Morning!",
    "midday": "Afternoon Check-in",
}


@dataclass
class CheckInSettings:
    """When check-ins fire. Times are local HH:MM."""

    morning_checkin_time: str = "09:00"
    midday_checkin_time: str = "13:00"
    notifications_enabled: bool = True
    overdue_sweep_minute: int = 30


def parse_hhmm(value: str) -> tuple[int, int]:
    """Parse "HH:MM" into (hour, minute). Raises ValueError when malformed."""
    hour, minute = map(int, value.split(":"))
    if not (0 <= hour <= 23 and 0 <= minute <= 59):
        raise ValueError(f"Time out of range: {value}")
    return hour, minute


class SchedulerHandle:
    """
    Owns the APScheduler instance and every job registered through it.

    Built once by the composition root and passed to whoever schedules work,
    so tests can inspect registrations or fire jobs by hand.
    """

    def __init__(self, scheduler: AsyncIOScheduler | None = None, tz: str | None = None):
        if scheduler is None:
            scheduler = AsyncIOScheduler(timezone=tz) if tz else AsyncIOScheduler()
        self.scheduler = scheduler
        self._job_ids: list[str] = []

    def cron(self, **fields) -> CronTrigger:
        """Cron trigger in the scheduler's timezone."""
        return CronTrigger(timezone=self.scheduler.timezone, **fields)

    def add(self, job_id: str, func: Callable, trigger: CronTrigger) -> None:
        # replace_existing is not applied to jobs queued before start()
        if self.scheduler.get_job(job_id) is not None:
            self.scheduler.remove_job(job_id)
        self.scheduler.add_job(func, trigger, id=job_id, replace_existing=True)
        if job_id not in self._job_ids:
            self._job_ids.append(job_id)

    def cancel_all(self) -> None:
        for job_id in self._job_ids:
            if self.scheduler.get_job(job_id) is not None:
                self.scheduler.remove_job(job_id)
        self._job_ids.clear()

    def job_ids(self) -> list[str]:
        return list(self._job_ids)

    def start(self) -> None:
        self.scheduler.start()
        logger.info("Scheduler started")

    def shutdown(self) -> None:
        self.cancel_all()
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
        logger.info("Scheduler shut down")


class CheckInScheduler:
    """
    Time-driven triggers around the task list.

    Each job is a plain coroutine method, so it can be run directly as well as
    from the scheduler.
    """

    def __init__(
        self,
        handle: SchedulerHandle,
        store: TaskStore,
        nudges: NudgeLog,
        planner: FocusQueuePlanner,
        sink: NotificationSink,
        oracle: RankingOracle | None = None,
        clock: Callable[[], datetime] | None = None,
        oracle_timeout: float = 60,
    ):
        self.handle = handle
        self.store = store
        self.nudges = nudges
        self.planner = planner
        self.sink = sink
        self.oracle = oracle
        self.clock = clock or (lambda: datetime.now(timezone.utc))
        self.oracle_timeout = oracle_timeout

    # ============== Scheduling ==============

    def schedule(self, settings: CheckInSettings) -> None:
        """Cancel every job and register them again from settings."""
        self.handle.cancel_all()

        if not settings.notifications_enabled:
            logger.info("Notifications disabled in settings")
            return

        for job_id, time_str, job in (
            ("morning_checkin", settings.morning_checkin_time, self.morning_checkin),
            ("midday_checkin", settings.midday_checkin_time, self.midday_checkin),
        ):
            try:
                hour, minute = parse_hhmm(time_str)
            except ValueError:
                logger.warning(f"Invalid {job_id} time format: {time_str}")
                continue
            self.handle.add(job_id, job, self.handle.cron(hour=hour, minute=minute))
            logger.info(f"Scheduled {job_id} at {hour:02d}:{minute:02d}")

        self.handle.add(
            "overdue_sweep",
            self.overdue_sweep,
            self.handle.cron(minute=settings.overdue_sweep_minute),
        )
        logger.info(f"Overdue sweep scheduled (every hour at :{settings.overdue_sweep_minute:02d})")

        self.handle.add("due_time_sweep", self.due_time_sweep, self.handle.cron(minute="*"))
        logger.info("Due-time sweep scheduled (every minute)")

    # ============== Jobs ==============

    async def morning_checkin(self) -> None:
        await self._checkin("morning", NudgeType.MORNING_CHECKIN)

    async def midday_checkin(self) -> None:
        await self._checkin("midday", NudgeType.MIDDAY_CHECKIN)

    async def overdue_sweep(self) -> None:
        """One aggregate reminder for every overdue active task."""
        now = self.clock()
        overdue = filter_overdue(self.store.get_by_status(Status.ACTIVE), now)
        if not overdue:
            return

        message = overdue_message(overdue)
        task_ids = [t.id for t in overdue]
        self.nudges.append(NudgeType.OVERDUE_REMINDER, message, task_ids)
        self.sink.show(Notification(title="Overdue Tasks", body=message, task_ids=task_ids))
        logger.info(f"Overdue reminder sent for {len(task_ids)} tasks")

    async def due_time_sweep(self) -> None:
        """Per-task alert for tasks due this minute, debounced by last_notified_at."""
        now = self.clock()
        for task in filter_due_now(self.store.get_by_status(Status.ACTIVE), now):
            if task.last_notified_at is not None:
                if (now - task.last_notified_at).total_seconds() < DEBOUNCE_SECONDS:
                    continue

            self.store.update(task.id, TaskPatch(last_notified_at=now))
            self.sink.show(Notification(title="Task Due Now", body=task.content, task_ids=[task.id]))
            logger.info(f"Due-time alert sent for task {task.id}")

    # ============== Helpers ==============

    async def _checkin(self, time_of_day: str, nudge_type: NudgeType) -> None:
        logger.info(f"Running {time_of_day} check-in...")
        now = self.clock()
        active = self.store.get_by_status(Status.ACTIVE)
        items = [StatusItem.from_task(t, now) for t in active]

        message = await self._status_message(items, time_of_day)
        self.nudges.append(nudge_type, message)
        self.sink.show(Notification(title=CHECKIN_TITLES[time_of_day], body=message))

        try:
            await self.planner.regenerate()
        except Exception as e:
            logger.error(f"Failed to regenerate focus queue after {time_of_day} check-in: {e}")

    async def _status_message(self, items: list[StatusItem], time_of_day: str) -> str:
        if self.oracle is None:
            return default_nudge(len(items), time_of_day)
        try:
            return await call_blocking(
                self.oracle.summarize_status,
                items,
                time_of_day,
                timeout=self.oracle_timeout,
            )
        except asyncio.TimeoutError:
            logger.warning(f"Check-in message timed out after {self.oracle_timeout}s")
        except OracleError as e:
            logger.warning(f"Check-in message generation failed: {e}")
        except Exception as e:
            logger.error(f"Unexpected error generating check-in message: {e}")
        return default_nudge(len(items), time_of_day)

"""Tests for check-in scheduling and the sweep jobs."""

import asyncio
import time
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest

from drift.core.focus import StatusItem
from drift.core.nudges import NudgeType
from drift.core.tasks import Priority, Status, TaskDraft, TaskPatch
from drift.ports.ranking_oracle import OracleError
from drift.scheduler import CheckInScheduler, CheckInSettings, SchedulerHandle, parse_hhmm


class FakeSink:
    def __init__(self):
        self.shown = []

    def show(self, notification):
        self.shown.append(notification)


@pytest.fixture
def sink():
    return FakeSink()


@pytest.fixture
def planner():
    planner = MagicMock()
    planner.regenerate = AsyncMock()
    return planner


@pytest.fixture
def handle():
    return SchedulerHandle(tz="UTC")


@pytest.fixture
def checkins(handle, store, nudge_log, planner, sink, clock):
    return CheckInScheduler(handle, store, nudge_log, planner, sink, clock=clock)


def trigger_fields(handle, job_id):
    job = handle.scheduler.get_job(job_id)
    return {f.name: str(f) for f in job.trigger.fields}


class TestParseHHMM:
    def test_valid(self):
        assert parse_hhmm("09:05") == (9, 5)

    @pytest.mark.parametrize("value", ["25:00", "9", "ab:cd", "12:75"])
    def test_invalid(self, value):
        with pytest.raises(ValueError):
            parse_hhmm(value)


class TestSchedule:
    def test_registers_all_jobs(self, checkins, handle):
        checkins.schedule(CheckInSettings())
        assert handle.job_ids() == ["morning_checkin", "midday_checkin", "overdue_sweep", "due_time_sweep"]

    def test_checkin_times(self, checkins, handle):
        checkins.schedule(CheckInSettings(morning_checkin_time="07:15", midday_checkin_time="12:45"))

        morning = trigger_fields(handle, "morning_checkin")
        assert (morning["hour"], morning["minute"]) == ("7", "15")
        midday = trigger_fields(handle, "midday_checkin")
        assert (midday["hour"], midday["minute"]) == ("12", "45")

    def test_sweep_triggers(self, checkins, handle):
        checkins.schedule(CheckInSettings(overdue_sweep_minute=10))
        assert trigger_fields(handle, "overdue_sweep")["minute"] == "10"
        assert trigger_fields(handle, "due_time_sweep")["minute"] == "*"

    def test_jobs_call_checkin_methods(self, checkins, handle):
        checkins.schedule(CheckInSettings())
        assert handle.scheduler.get_job("morning_checkin").func == checkins.morning_checkin
        assert handle.scheduler.get_job("due_time_sweep").func == checkins.due_time_sweep

    def test_disabled_registers_nothing(self, checkins, handle):
        checkins.schedule(CheckInSettings(notifications_enabled=False))
        assert handle.job_ids() == []
        assert handle.scheduler.get_jobs() == []

    def test_reschedule_replaces_jobs(self, checkins, handle):
        checkins.schedule(CheckInSettings(morning_checkin_time="08:00"))
        checkins.schedule(CheckInSettings(morning_checkin_time="10:30"))

        assert len(handle.scheduler.get_jobs()) == 4
        assert trigger_fields(handle, "morning_checkin")["hour"] == "10"

    def test_disabling_cancels_existing_jobs(self, checkins, handle):
        checkins.schedule(CheckInSettings())
        checkins.schedule(CheckInSettings(notifications_enabled=False))
        assert handle.scheduler.get_jobs() == []

    def test_invalid_time_skips_that_checkin(self, checkins, handle):
        checkins.schedule(CheckInSettings(morning_checkin_time="9am"))
        assert "morning_checkin" not in handle.job_ids()
        assert "midday_checkin" in handle.job_ids()


class TestCheckIns:
    def test_morning_without_oracle_uses_canned_message(self, checkins, store, nudge_log, sink, planner):
        store.create(TaskDraft(content="A"))
        store.create(TaskDraft(content="B"))

        asyncio.run(checkins.morning_checkin())

        nudge = nudge_log.latest()
        assert nudge.type == NudgeType.MORNING_CHECKIN
        assert nudge.message == "Ready to make today count? You've got 2 things on your list."
        assert sink.shown[0].title == "Good Morning!"
        assert sink.shown[0].body == nudge.message
        planner.regenerate.assert_awaited_once()

    def test_empty_list_message(self, checkins, nudge_log):
        asyncio.run(checkins.midday_checkin())
        nudge = nudge_log.latest()
        assert nudge.type == NudgeType.MIDDAY_CHECKIN
        assert nudge.message.startswith("Your slate is clean!")

    def test_uses_oracle_message(self, checkins, store, nudge_log, now):
        store.create(TaskDraft(content="Late", priority=Priority.HIGH, due_date=now - timedelta(days=1)))
        oracle = MagicMock()
        oracle.summarize_status.return_value = "You've got this."
        checkins.oracle = oracle

        asyncio.run(checkins.midday_checkin())

        assert nudge_log.latest().message == "You've got this."
        items, time_of_day = oracle.summarize_status.call_args[0]
        assert items == [StatusItem(content="Late", priority="high", is_overdue=True)]
        assert time_of_day == "midday"

    def test_oracle_failure_falls_back(self, checkins, store, nudge_log):
        store.create(TaskDraft(content="A"))
        oracle = MagicMock()
        oracle.summarize_status.side_effect = OracleError("rate limited")
        checkins.oracle = oracle

        asyncio.run(checkins.morning_checkin())

        assert nudge_log.latest().message == "Ready to make today count? You've got 1 thing on your list."

    def test_oracle_timeout_falls_back(self, checkins, store, nudge_log):
        def slow(*args):
            time.sleep(0.5)
            return "late"

        oracle = MagicMock()
        oracle.summarize_status.side_effect = slow
        checkins.oracle = oracle
        checkins.oracle_timeout = 0.05

        asyncio.run(checkins.morning_checkin())

        assert nudge_log.latest().message.startswith("Your slate is clean!")

    def test_regeneration_failure_is_logged(self, checkins, planner, sink):
        planner.regenerate.side_effect = RuntimeError("oracle down")
        asyncio.run(checkins.morning_checkin())
        assert len(sink.shown) == 1


class TestOverdueSweep:
    def test_nothing_overdue(self, checkins, store, nudge_log, sink, now):
        store.create(TaskDraft(content="Later", due_date=now + timedelta(hours=1)))
        asyncio.run(checkins.overdue_sweep())
        assert nudge_log.latest() is None
        assert sink.shown == []

    def test_single_overdue_task(self, checkins, store, nudge_log, sink, now):
        task = store.create(TaskDraft(content="Renew passport before the trip", due_date=now - timedelta(days=1)))

        asyncio.run(checkins.overdue_sweep())

        nudge = nudge_log.latest()
        assert nudge.type == NudgeType.OVERDUE_REMINDER
        assert nudge.message == 'You have 1 overdue task: "Renew passport before the trip..."'
        assert nudge.task_ids == [task.id]
        assert sink.shown[0].title == "Overdue Tasks"

    def test_aggregates_multiple(self, checkins, store, nudge_log, sink, now):
        ids = [store.create(TaskDraft(content=f"Old {i}", due_date=now - timedelta(days=i + 1))).id for i in range(3)]
        store.create(TaskDraft(content="Done", due_date=now - timedelta(days=1), status=Status.COMPLETED))

        asyncio.run(checkins.overdue_sweep())

        nudge = nudge_log.latest()
        assert nudge.message == "You have 3 overdue tasks that need attention"
        assert sorted(nudge.task_ids) == sorted(ids)
        assert len(sink.shown) == 1

    def test_truncates_long_content(self, checkins, store, nudge_log, now):
        store.create(TaskDraft(content="x" * 60, due_date=now - timedelta(days=1)))
        asyncio.run(checkins.overdue_sweep())
        assert nudge_log.latest().message == f'You have 1 overdue task: "{"x" * 40}..."'


class TestDueTimeSweep:
    @pytest.fixture
    def due_task(self, store):
        return store.create(
            TaskDraft(
                content="Standup",
                due_date=datetime(2025, 1, 15, tzinfo=timezone.utc),
                due_time="10:00",
            )
        )

    def test_alerts_and_records_notification(self, checkins, store, sink, due_task, now):
        asyncio.run(checkins.due_time_sweep())

        assert len(sink.shown) == 1
        assert sink.shown[0].title == "Task Due Now"
        assert sink.shown[0].body == "Standup"
        assert sink.shown[0].task_ids == [due_task.id]
        assert store.get(due_task.id).last_notified_at == now

    def test_debounced_within_a_minute(self, checkins, sink, due_task):
        asyncio.run(checkins.due_time_sweep())
        asyncio.run(checkins.due_time_sweep())
        assert len(sink.shown) == 1

    def test_old_notification_does_not_block(self, checkins, store, sink, due_task, now):
        store.update(due_task.id, TaskPatch(last_notified_at=now - timedelta(minutes=2)))
        asyncio.run(checkins.due_time_sweep())
        assert len(sink.shown) == 1

    def test_other_minutes_ignored(self, checkins, sink, due_task, clock):
        clock.advance(minutes=1)
        asyncio.run(checkins.due_time_sweep())
        assert sink.shown == []

    def test_completed_tasks_ignored(self, checkins, store, sink, due_task):
        store.update(due_task.id, TaskPatch(status=Status.COMPLETED))
        asyncio.run(checkins.due_time_sweep())
        assert sink.shown == []

    def test_due_on_another_day_ignored(self, checkins, store, sink, due_task):
        store.update(due_task.id, TaskPatch(due_date=datetime(2025, 1, 16, tzinfo=timezone.utc)))
        asyncio.run(checkins.due_time_sweep())
        assert sink.shown == []


class TestSchedulerHandle:
    def test_cancel_all_removes_only_own_jobs(self, handle):
        handle.scheduler.add_job(lambda: None, handle.cron(minute=0), id="foreign")
        handle.add("mine", lambda: None, handle.cron(minute=5))

        handle.cancel_all()

        assert handle.job_ids() == []
        assert [j.id for j in handle.scheduler.get_jobs()] == ["foreign"]

    def test_add_same_id_replaces(self, handle):
        handle.add("job", lambda: None, handle.cron(minute=1))
        handle.add("job", lambda: None, handle.cron(minute=2))
        assert handle.job_ids() == ["job"]
        assert len(handle.scheduler.get_jobs()) == 1

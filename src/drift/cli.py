"""Drift CLI - focus planner and recurring tasks."""

import asyncio
import json
import logging
import sys
from datetime import datetime, time, timedelta

import click

from .app import App, build_app, run_service
from .core.focus import FocusPlanView
from .core.nudges import Nudge
from .core.recurrence import parse_recurrence_days
from .core.tasks import (
    Difficulty,
    Priority,
    Recurrence,
    Status,
    Task,
    TaskDraft,
    TaskPatch,
    append_note,
    filter_due_today,
    guess_fields,
)
from .ports.task_store import StoreError


def _open_app() -> App:
    try:
        return build_app()
    except StoreError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


def _parse_date(app: App, value: str | None) -> datetime | None:
    """YYYY-MM-DD as midnight in the configured timezone."""
    if not value:
        return None
    try:
        day = datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError:
        raise click.BadParameter(f"expected YYYY-MM-DD, got {value!r}")
    return datetime.combine(day, time.min, tzinfo=app.store.tz)


def _task_json(t: Task) -> dict:
    return {
        "id": t.id,
        "content": t.content,
        "status": t.status.value,
        "priority": t.priority.value if t.priority else None,
        "category": t.category,
        "due_date": t.due_date.isoformat() if t.due_date else None,
        "due_time": t.due_time,
        "recurrence": t.recurrence.value,
        "series_id": t.series_id,
        "focus_date": t.focus_date,
        "focus_order": t.focus_order,
    }


def _task_line(t: Task) -> str:
    marker = "x" if t.status == Status.COMPLETED else " "
    due = f" (due {t.due_date.date().isoformat()}{' ' + t.due_time if t.due_time else ''})" if t.due_date else ""
    repeat = f" [{t.recurrence.value}]" if t.is_recurring else ""
    return f"[{marker}] {t.id[:8]}  {t.content}{due}{repeat}"


def _resolve_id(app: App, prefix: str) -> str:
    """Accept a full id or an unambiguous prefix."""
    matches = [t.id for t in app.store.get_all() if t.id.startswith(prefix)]
    if len(matches) != 1:
        reason = "No task" if not matches else "Ambiguous task id"
        click.echo(f"Error: {reason} matching {prefix!r}", err=True)
        sys.exit(1)
    return matches[0]


@click.group()
@click.version_option()
def main():
    """Drift - focus planner for your task list."""
    pass


@main.command()
@click.argument("content")
@click.option("--due", help="Due date (YYYY-MM-DD)")
@click.option("--time", "due_time", help="Due time (HH:MM)")
@click.option("--priority", type=click.Choice([p.value for p in Priority]))
@click.option("--category")
@click.option("--difficulty", type=click.Choice([d.value for d in Difficulty]))
@click.option("--estimate", type=int, help="Estimated minutes")
@click.option("--repeat", type=click.Choice([r.value for r in Recurrence]), default="none")
@click.option("--every", type=int, default=1, help="Repeat every N periods")
@click.option("--days", help="Weekdays for weekly repeats, e.g. 1,3,5 (0=Sunday)")
@click.option("--until", help="Last date of the series (YYYY-MM-DD)")
@click.option("--guess", is_flag=True, help="Fill unset category, priority and due date from keywords")
def add(content, due, due_time, priority, category, difficulty, estimate, repeat, every, days, until, guess):
    """Add a task."""
    app = _open_app()
    due_date = _parse_date(app, due)
    priority = Priority(priority) if priority else None
    if guess:
        guessed = guess_fields(content)
        category = category or guessed.category
        priority = priority or guessed.priority
        if due_date is None and guessed.due_in_days is not None:
            today = app.now().astimezone(app.store.tz).date()
            due_date = datetime.combine(today + timedelta(days=guessed.due_in_days), time.min, tzinfo=app.store.tz)

    try:
        task = app.store.create(
            TaskDraft(
                content=content,
                due_date=due_date,
                due_time=due_time,
                priority=priority,
                category=category,
                difficulty=Difficulty(difficulty) if difficulty else None,
                estimated_duration=estimate,
                recurrence=Recurrence(repeat),
                recurrence_interval=every,
                recurrence_days=parse_recurrence_days(days),
                recurrence_end_date=_parse_date(app, until),
            )
        )
    except ValueError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    click.echo(f"Added {task.id}")


@main.command("list")
@click.option("--all", "show_all", is_flag=True, help="Include completed tasks")
@click.option("--today", is_flag=True, help="Only tasks due today or earlier")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def list_tasks(show_all: bool, today: bool, as_json: bool):
    """List tasks."""
    app = _open_app()
    tasks = app.store.get_all() if show_all else app.store.get_by_status(Status.ACTIVE)
    if today:
        tasks = filter_due_today(tasks, app.now())

    if as_json:
        click.echo(json.dumps([_task_json(t) for t in tasks], indent=2))
        return

    if not tasks:
        click.echo("No tasks.")
        return
    for task in tasks:
        click.echo(_task_line(task))


@main.command()
@click.argument("task_id")
def done(task_id: str):
    """Complete a task (creates the next instance of a recurring one)."""
    app = _open_app()
    task_id = _resolve_id(app, task_id)
    next_task = app.expansion.complete(task_id)
    click.echo(f"Completed {task_id}")
    if next_task:
        click.echo(f"Next: {_task_line(next_task)}")


@main.command()
@click.argument("task_id")
def reopen(task_id: str):
    """Mark a completed task active again."""
    app = _open_app()
    task = app.expansion.reopen(_resolve_id(app, task_id))
    click.echo(_task_line(task))


@main.command()
@click.argument("task_id")
@click.argument("text")
def note(task_id: str, text: str):
    """Append a timestamped note to a task."""
    app = _open_app()
    task = app.store.get(_resolve_id(app, task_id))
    app.store.update(task.id, TaskPatch(notes=append_note(task.notes, text, app.now())))
    click.echo(f"Noted on {task.id}")


@main.command()
def clear():
    """Delete all completed tasks."""
    app = _open_app()
    completed = app.store.get_by_status(Status.COMPLETED)
    for task in completed:
        app.store.delete(task.id)
    click.echo(f"Deleted {len(completed)} completed tasks.")


def _show_queue(view: FocusPlanView | None, as_json: bool) -> None:
    if view is None:
        click.echo("No focus queue for today.")
        return
    if as_json:
        click.echo(
            json.dumps(
                {
                    "task_ids": view.queue.task_ids,
                    "reasoning": view.queue.reasoning,
                    "generated_at": view.queue.generated_at.isoformat(),
                },
                indent=2,
            )
        )
        return
    click.echo(view.queue.reasoning)
    click.echo()
    for position, task in enumerate(view.tasks, start=1):
        click.echo(f"{position}. {task.content}  ({task.id[:8]})")


@main.command()
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def focus(as_json: bool):
    """Show today's focus queue, planning it if needed."""
    app = _open_app()
    queue = asyncio.run(app.planner.initialize_on_startup())
    view = FocusPlanView.resolve(queue, app.store.get_all()) if queue is not None else None
    _show_queue(view, as_json)


@main.command()
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def plan(as_json: bool):
    """Re-plan today from scratch."""
    app = _open_app()
    queue = asyncio.run(app.planner.generate_and_cache())
    _show_queue(FocusPlanView.resolve(queue, app.store.get_all()), as_json)


def _nudge_line(n: Nudge) -> str:
    return f"{n.id[:8]}  [{n.type.value}] {n.message}"


@main.command()
@click.option("--all", "show_all", is_flag=True, help="List every nudge, dismissed included")
def nudge(show_all: bool):
    """Show the latest check-in message."""
    app = _open_app()
    if show_all:
        entries = app.nudges.recent(include_dismissed=True)
    else:
        latest = app.nudges.latest()
        entries = [latest] if latest else []

    if not entries:
        click.echo("No nudges.")
        return
    for entry in entries:
        click.echo(_nudge_line(entry))


@main.command()
@click.argument("nudge_id")
def dismiss(nudge_id: str):
    """Dismiss a nudge."""
    app = _open_app()
    matches = [n.id for n in app.nudges.recent() if n.id.startswith(nudge_id)]
    if len(matches) != 1 or not app.nudges.dismiss(matches[0]):
        click.echo(f"Error: No nudge matching {nudge_id!r}", err=True)
        sys.exit(1)
    click.echo(f"Dismissed {matches[0]}")


@main.command()
def run():
    """Run the check-in scheduler in the foreground."""
    logging.basicConfig(
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        level=logging.INFO,
    )
    app = _open_app()
    if not app.config.notifications_enabled:
        click.echo("Notifications are disabled; only the focus queue will be planned.")
    try:
        asyncio.run(run_service(app))
    except KeyboardInterrupt:
        click.echo("Stopped.")

"""Next-occurrence arithmetic for recurring tasks - pure, no clock access."""

import calendar
from datetime import datetime, timedelta

from .tasks import Recurrence


def parse_recurrence_days(value: str | None) -> frozenset[int] | None:
    """Parse a stored weekday list such as "1,3,5" (0=Sunday)."""
    if not value:
        return None
    days = frozenset(int(part) for part in value.split(",") if part.strip())
    return days or None


def format_recurrence_days(days: frozenset[int] | None) -> str | None:
    if not days:
        return None
    return ",".join(str(d) for d in sorted(days))


def sunday_index(dt: datetime) -> int:
    """Weekday index with Sunday as 0 and Saturday as 6."""
    return (dt.weekday() + 1) % 7


def add_months(dt: datetime, months: int) -> datetime:
    """Add calendar months, clamping the day to the target month's last day."""
    month_index = dt.month - 1 + months
    year = dt.year + month_index // 12
    month = month_index % 12 + 1
    day = min(dt.day, calendar.monthrange(year, month)[1])
    return dt.replace(year=year, month=month, day=day)


def resolve_wall_time(dt: datetime) -> datetime:
    """
    Map a wall-clock time onto the instant it denotes in its own zone.

    Calendar arithmetic can land inside a DST gap (02:30 on a spring-forward
    day); this returns the time a clock would actually show, e.g. 03:30.
    """
    if dt.tzinfo is None:
        return dt
    return datetime.fromtimestamp(dt.timestamp(), dt.tzinfo)


def next_due_date(
    current: datetime,
    recurrence: Recurrence,
    interval: int = 1,
    recurrence_days: frozenset[int] | None = None,
) -> datetime:
    """
    Compute the next due date of a recurring task.

    - DAILY / CUSTOM: add `interval` days.
    - WEEKLY without days: add `interval` weeks.
    - WEEKLY with days: move to the next selected weekday in the current week;
      past the last selected day, wrap to the first selected day `interval`
      weeks later.
    - MONTHLY: add `interval` months (day clamped).
    - NONE: `current` unchanged.

    Time of day and tzinfo are kept as-is.
    """
    interval = max(interval or 1, 1)

    if recurrence in (Recurrence.DAILY, Recurrence.CUSTOM):
        return current + timedelta(days=interval)

    if recurrence == Recurrence.WEEKLY:
        if not recurrence_days:
            return current + timedelta(weeks=interval)

        days = sorted(recurrence_days)
        today = sunday_index(current)
        later = [d for d in days if d > today]
        if later:
            return current + timedelta(days=later[0] - today)
        until_next_cycle = 7 - today + days[0]
        return current + timedelta(days=until_next_cycle + (interval - 1) * 7)

    if recurrence == Recurrence.MONTHLY:
        return add_months(current, interval)

    return current

"""Due-date arithmetic for unlock schedules.

Both functions are pure: the caller supplies "now", so results depend only
on their arguments.
"""

from datetime import datetime, time, timedelta

# datetime.weekday(): Monday=0 ... Saturday=5, Sunday=6
_SATURDAY = 5
_SUNDAY = 6


def is_weekend(value: datetime) -> bool:
    return value.weekday() in (_SATURDAY, _SUNDAY)


def compute_next_due(current_due: datetime, interval_days: int, skip_weekends: bool) -> datetime:
    """Advance ``current_due`` by ``interval_days`` counted days.

    Days are stepped one at a time; with ``skip_weekends`` a Saturday or
    Sunday is stepped over without being counted. The time of day is kept.
    """
    if interval_days < 1:
        raise ValueError("interval_days must be >= 1")

    next_due = current_due
    counted = 0
    while counted < interval_days:
        next_due += timedelta(days=1)
        if skip_weekends and is_weekend(next_due):
            continue
        counted += 1
    return next_due


def initial_due(now: datetime, anchor: time, skip_weekends: bool) -> datetime:
    """First due date for a schedule that has none yet.

    Today at ``anchor``, or tomorrow if that moment has already passed. With
    ``skip_weekends`` a Saturday moves to Monday (+2) and a Sunday to Monday (+1).
    """
    due = datetime.combine(now.date(), anchor)
    if due <= now:
        due += timedelta(days=1)

    if skip_weekends:
        if due.weekday() == _SATURDAY:
            due += timedelta(days=2)
        elif due.weekday() == _SUNDAY:
            due += timedelta(days=1)
    return due

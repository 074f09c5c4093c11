"""Persistence of unlock schedules, per-novel due dates and the daily trigger."""

import logging
from datetime import datetime, timedelta
from typing import Optional

from pydantic import ValidationError as PydanticValidationError

from config.exceptions import InvalidScheduleError
from models.schedule import UnlockSchedule, format_due, parse_due
from models.store import ContentStore

logger = logging.getLogger(__name__)

SCHEDULES_OPTION = "unlock_schedules"
TRIGGER_OPTION = "next_trigger_at"
NEXT_DUE_META_KEY = "next_unlock_at"
TRIGGER_NAME = "auto_unlock_novels"


def get_next_due(store: ContentStore, novel_id: int) -> Optional[datetime]:
    raw = store.get_novel_meta(novel_id, NEXT_DUE_META_KEY)
    if not raw:
        return None
    try:
        return parse_due(raw)
    except ValueError:
        logger.warning("Ignoring unreadable due date %r for novel %s", raw, novel_id)
        return None


def set_next_due(store: ContentStore, novel_id: int, due: datetime) -> None:
    store.set_novel_meta(novel_id, NEXT_DUE_META_KEY, format_due(due))


def load_schedules(store: ContentStore) -> list[UnlockSchedule]:
    """Load the whole schedule list with each novel's persisted due date attached.

    Raises:
        InvalidScheduleError: If a stored record fails validation.
    """
    records = store.get_option(SCHEDULES_OPTION, []) or []
    schedules = []
    for index, record in enumerate(records):
        try:
            schedule = UnlockSchedule.model_validate(record)
        except PydanticValidationError as e:
            raise InvalidScheduleError(
                f"Stored schedule #{index} is invalid",
                {"errors": "; ".join(err["msg"] for err in e.errors())},
            ) from e
        schedule.next_due_at = get_next_due(store, schedule.novel_id)
        schedules.append(schedule)
    return schedules


def next_trigger_time(schedules: list[UnlockSchedule], now: datetime) -> Optional[datetime]:
    """Today at the earliest enabled anchor time, or tomorrow if already past."""
    anchors = [s.unlock_time for s in schedules if s.enabled]
    if not anchors:
        return None
    trigger = datetime.combine(now.date(), min(anchors))
    if trigger < now:
        trigger += timedelta(days=1)
    return trigger


def save_schedules(
    store: ContentStore,
    schedules: list[UnlockSchedule],
    now: Optional[datetime] = None,
) -> Optional[datetime]:
    """Store the whole list and reschedule the daily trigger.

    Returns the next trigger time, or None when no schedule is enabled.
    """
    store.set_option(SCHEDULES_OPTION, [s.to_record() for s in schedules])
    trigger = next_trigger_time(schedules, now or datetime.now())
    store.set_option(TRIGGER_OPTION, format_due(trigger) if trigger else None)
    logger.info("Saved %d schedule(s); next trigger: %s", len(schedules), trigger or "none")
    return trigger


def get_trigger_time(store: ContentStore) -> Optional[datetime]:
    raw = store.get_option(TRIGGER_OPTION)
    return parse_due(raw) if raw else None


def reset_due_dates(store: ContentStore) -> int:
    """Forget every schedule's due date so it is re-initialised on the next run."""
    schedules = load_schedules(store)
    for schedule in schedules:
        store.delete_novel_meta(schedule.novel_id, NEXT_DUE_META_KEY)
    logger.info("Reset due dates for %d schedule(s)", len(schedules))
    return len(schedules)

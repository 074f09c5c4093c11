"""Schedule runner: evaluates every unlock schedule and unlocks due episodes.

Per schedule the states are::

    disabled       -> skipped
    uninitialized  -> bootstrap next_due_at (persisted unless preview)
    not_due        -> now < next_due_at and not force; report countdown
    due            -> select episode
                        found    -> apply "free", advance next_due_at
                        none     -> report, next_due_at unchanged

A due schedule with nothing to unlock keeps its due date, so it stays due
and is retried on every evaluation until an episode turns up. An error while
evaluating one schedule is reported as ``unlock-failed`` for that schedule
only.
"""

import logging
import time as _time
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Callable, Optional

from config.settings import Settings
from models.enums import AccessType, RunStatus
from models.episode import Episode
from models.schedule import UnlockSchedule
from models.store import ContentStore
from tools.text_utils import humanize_delta
from workflow.access import AccessApplier, AccessOutcome
from workflow.due_dates import compute_next_due, initial_due
from workflow.schedules import TRIGGER_NAME, load_schedules, next_trigger_time, set_next_due
from workflow.selector import select_next_episode

logger = logging.getLogger(__name__)


@dataclass
class RunRow:
    """One evaluated schedule."""
    novel_id: int
    novel_name: str
    recurrence: str
    due_at: Optional[datetime]
    status: RunStatus = RunStatus.NOT_DUE
    episode: Optional[Episode] = None
    next_due_at: Optional[datetime] = None
    outcome: Optional[AccessOutcome] = None
    detail: str = ""


@dataclass
class RunReport:
    preview: bool
    force: bool
    started_at: datetime
    rows: list[RunRow] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    blocked: bool = False

    @property
    def unlocked_count(self) -> int:
        return sum(1 for r in self.rows if r.status in (RunStatus.UNLOCKED, RunStatus.WILL_UNLOCK))


class ScheduleRunner:
    """Runs all configured unlock schedules against a content store."""

    def __init__(
        self,
        store: ContentStore,
        settings: Optional[Settings] = None,
        applier: Optional[AccessApplier] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.store = store
        self.settings = settings or Settings()
        self.applier = applier or AccessApplier(store, self.settings)
        self.clock = clock

    def run(self, preview: bool = False, force: bool = False, now: Optional[datetime] = None) -> RunReport:
        """Evaluate every schedule.

        Args:
            preview: Read and decide only; persist nothing and call no remote API.
            force: Treat every enabled schedule as due.
            now: Evaluation time. Defaults to the runner's clock.
        """
        now = now or self.clock()
        report = RunReport(preview=preview, force=force, started_at=now)
        schedules = load_schedules(self.store)
        if not schedules:
            logger.info("No unlock schedules configured")
            return report

        if preview:
            self._evaluate_all(schedules, report, now)
            return report

        if not self.store.try_acquire_lock(TRIGGER_NAME, self.settings.lock_stale_after_seconds, now=now):
            logger.warning("Another unlock run is in progress; skipping")
            report.blocked = True
            return report
        try:
            self._evaluate_all(schedules, report, now)
        finally:
            self.store.release_lock(TRIGGER_NAME, acquired_at=now)

        logger.info(
            "Unlock run finished: %d unlocked, %d evaluated, %d skipped (force=%s)",
            report.unlocked_count, len(report.rows), len(report.skipped), force,
        )
        return report

    def _evaluate_all(self, schedules: list[UnlockSchedule], report: RunReport, now: datetime) -> None:
        for schedule in schedules:
            try:
                row = self._evaluate(schedule, report, now)
            except Exception as e:
                logger.exception("Unlock schedule for novel %s failed", schedule.novel_id)
                row = RunRow(
                    novel_id=schedule.novel_id,
                    novel_name=f"Novel {schedule.novel_id}",
                    recurrence=schedule.describe(),
                    due_at=schedule.next_due_at,
                    status=RunStatus.FAILED,
                    detail=f"Evaluation failed: {e}",
                )
            if row is not None:
                report.rows.append(row)

    def _evaluate(self, schedule: UnlockSchedule, report: RunReport, now: datetime) -> Optional[RunRow]:
        if not schedule.enabled:
            report.skipped.append(f"Schedule for novel {schedule.novel_id} is disabled")
            return None

        novel = self.store.get_novel(schedule.novel_id)
        if novel is None:
            logger.warning("Novel %s from schedule not found", schedule.novel_id)
            report.skipped.append(f"Novel {schedule.novel_id} not found")
            return None

        due = schedule.next_due_at
        if due is None:
            due = initial_due(now, schedule.unlock_time, schedule.skip_weekends)
            logger.info("Initialised due date for novel %s: %s", novel.id, due)
            if not report.preview:
                set_next_due(self.store, novel.id, due)

        row = RunRow(
            novel_id=novel.id,
            novel_name=novel.title,
            recurrence=schedule.describe(),
            due_at=due,
        )

        if not report.force and now < due:
            row.status = RunStatus.NOT_DUE
            row.detail = f"Next unlock in {humanize_delta(now, due)}"
            return row

        episode = select_next_episode(self.store, novel, schedule.search_term)
        if episode is None:
            row.status = RunStatus.NO_EPISODE_FOUND
            row.detail = "No advance episodes found"
            return row

        row.episode = episode
        row.next_due_at = compute_next_due(due, schedule.days, schedule.skip_weekends)
        if report.preview:
            row.status = RunStatus.WILL_UNLOCK
            row.detail = "Will unlock"
            return row

        row.outcome = self.applier.apply(episode, AccessType.FREE)
        if not row.outcome.success:
            row.status = RunStatus.FAILED
            row.detail = "; ".join(s.detail for s in row.outcome.failures)
            return row

        set_next_due(self.store, novel.id, row.next_due_at)
        row.status = RunStatus.UNLOCKED
        row.detail = "Unlocked"
        if row.outcome.failures:
            row.detail += " with warnings: " + "; ".join(s.detail for s in row.outcome.failures)
        return row


def run_daily(
    runner: ScheduleRunner,
    sleep: Callable[[float], None] = _time.sleep,
    idle_seconds: float = 3600,
    max_runs: Optional[int] = None,
    on_report: Optional[Callable[[RunReport], None]] = None,
) -> int:
    """Fire the runner once a day at the earliest enabled anchor time.

    Returns the number of runs performed (only reached when ``max_runs`` is set).
    """
    runs = 0
    while max_runs is None or runs < max_runs:
        now = runner.clock()
        trigger = next_trigger_time(load_schedules(runner.store), now)
        if trigger is None:
            logger.info("No enabled schedules; checking again in %ds", idle_seconds)
            sleep(idle_seconds)
            continue

        wait = (trigger - now).total_seconds()
        if wait > 0:
            logger.info("Next unlock check at %s", trigger)
            sleep(wait)

        try:
            report = runner.run(now=max(runner.clock(), trigger))
        except Exception:
            logger.exception("Unlock run at %s failed", trigger)
            report = None
        runs += 1
        if on_report is not None and report is not None:
            on_report(report)
        # Never fire twice for the same trigger
        if runner.clock() < trigger + timedelta(seconds=1):
            sleep(1)
    return runs

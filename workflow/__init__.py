"""Workflow package: due dates, selection, access changes, runs and commands."""

from workflow.access import AccessApplier, AccessOutcome, StepResult
from workflow.commands import CommandExecutor, CommandResult
from workflow.due_dates import compute_next_due, initial_due
from workflow.runner import RunReport, RunRow, ScheduleRunner, run_daily
from workflow.schedules import load_schedules, reset_due_dates, save_schedules
from workflow.selector import select_next_episode
from workflow.sync import SyncReport, sync_episode_numbers

__all__ = [
    "AccessApplier",
    "AccessOutcome",
    "StepResult",
    "CommandExecutor",
    "CommandResult",
    "compute_next_due",
    "initial_due",
    "RunReport",
    "RunRow",
    "ScheduleRunner",
    "run_daily",
    "load_schedules",
    "reset_due_dates",
    "save_schedules",
    "select_next_episode",
    "SyncReport",
    "sync_episode_numbers",
]

"""CLI entry point: novelgate episode access automation.

Usage:
  novelgate status                  show configuration and schedule overview
  novelgate command "Unlock episode 8"
  novelgate schedule add -n 1 -d 2 -t 02:00
  novelgate preview                 dry run of all schedules
  novelgate run-now                 force every schedule due and unlock
  novelgate serve                   fire once a day at the earliest anchor time
  novelgate --help                  list all commands
"""

import logging
import sys
from typing import Optional

import click
from pydantic import ValidationError as PydanticValidationError
from rich.table import Table

from cli.theme import (
    app_header,
    command_panel,
    error_panel,
    get_console,
    outcome_table,
    run_report_table,
    styled_status,
    success_panel,
)
from config.exceptions import NovelGateError
from config.logging_config import setup_logging
from config.settings import Settings
from models.database import Database
from models.enums import AccessType
from models.episode import Episode
from models.novel import Novel
from models.schedule import UnlockSchedule
from workflow.commands import CommandExecutor
from workflow.runner import RunReport, ScheduleRunner, run_daily
from workflow.schedules import get_trigger_time, load_schedules, reset_due_dates, save_schedules
from workflow.sync import sync_episode_numbers

console = get_console()


def _init_logging(verbose: bool):
    """Configure logging based on verbosity."""
    level = logging.DEBUG if verbose else logging.INFO
    settings = Settings()
    setup_logging(level=level, log_dir=settings.log_dir, console_enabled=verbose)


def _open_store() -> tuple[Settings, Database]:
    settings = Settings()
    return settings, Database.from_settings(settings)


def _load_schedules_or_exit(db: Database) -> list[UnlockSchedule]:
    try:
        return load_schedules(db)
    except NovelGateError as e:
        console.print(f"[error]{e}[/]")
        sys.exit(1)


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def cli(verbose):
    """novelgate: move novel episodes between advance (patron-only) and free access.

    \b
    Natural-language commands:
      novelgate command "Make episode 5 free for everyone"
    \b
    Time-based unlock schedules:
      novelgate schedule add -n 1 --days 1 --time 02:00
      novelgate preview
      novelgate run
    """
    _init_logging(verbose)


# ---------------------------------------------------------------------------
# Overview
# ---------------------------------------------------------------------------

@cli.command()
def status():
    """Show credentials, field names and the next scheduled trigger."""
    settings, db = _open_store()

    def flag(value: bool) -> str:
        return "[success]set[/]" if value else "[warning]not set[/]"

    console.print(app_header())
    console.print(command_panel("Configuration", {
        "Gemini API key": flag(settings.has_gemini_key),
        "Gemini model": settings.gemini_model,
        "Patreon access token": flag(settings.has_patreon_token),
        "Patreon paid tier": settings.patreon_paid_tier_id or "[warning]not set[/]",
        "Episode number field": settings.episode_number_field,
        "Patreon post field": settings.patreon_post_field,
        "Access type field": settings.access_type_field,
        "Access taxonomy": settings.access_taxonomy,
        "Database": str(settings.sqlite_db_path),
    }))

    schedules = _load_schedules_or_exit(db)
    trigger = get_trigger_time(db)
    enabled = sum(1 for s in schedules if s.enabled)
    console.print(command_panel("Schedules", {
        "Configured": str(len(schedules)),
        "Enabled": str(enabled),
        "Next trigger": trigger.strftime("%Y-%m-%d %H:%M") if trigger else "none",
    }))


# ---------------------------------------------------------------------------
# Content
# ---------------------------------------------------------------------------

@cli.command()
def novels():
    """List novels and their unlock schedules."""
    _, db = _open_store()
    items = db.list_novels()
    if not items:
        console.print("[warning]No novels yet. Use [info]novelgate add-novel[/] to create one.[/]")
        return

    by_novel = {s.novel_id: s for s in _load_schedules_or_exit(db)}
    table = Table(title="Novels", show_lines=True, border_style="dim")
    table.add_column("ID", style="episode.num")
    table.add_column("Title", style="novel.name")
    table.add_column("Schedule")
    table.add_column("Next due")
    for n in items:
        schedule = by_novel.get(n.id)
        if schedule is None:
            table.add_row(str(n.id), n.title, "[muted]none[/]", "-")
            continue
        recurrence = schedule.describe() if schedule.enabled else f"[muted]{schedule.describe()} (disabled)[/]"
        due = schedule.next_due_at.strftime("%Y-%m-%d %H:%M") if schedule.next_due_at else "not set"
        table.add_row(str(n.id), n.title, recurrence, due)
    console.print(table)


@cli.command(name="add-novel")
@click.argument("title")
def add_novel(title):
    """Create a novel (series)."""
    _, db = _open_store()
    novel_id = db.create_novel(Novel(title=title.strip()))
    console.print(f"[success]Created novel '{title.strip()}' (ID: {novel_id})[/]")


@cli.command()
@click.option("--access", "-a", type=click.Choice(["free", "advance"]), default=None,
              help="Only show episodes with this access tier")
def episodes(access):
    """List episodes with their number, access tier and Patreon post."""
    _, db = _open_store()
    items = db.get_episodes_by_term(access) if access else db.list_episodes()
    if not items:
        console.print("[warning]No episodes found.[/]")
        return

    table = Table(title="Episodes", border_style="dim")
    table.add_column("ID", style="muted")
    table.add_column("#", style="episode.num", justify="right")
    table.add_column("Title")
    table.add_column("Access")
    table.add_column("Patreon post", style="muted")
    for ep in items:
        table.add_row(
            str(ep.id),
            str(ep.episode_number) if ep.episode_number is not None else "-",
            ep.title,
            ep.access.value,
            ep.patreon_post_id or "-",
        )
    console.print(table)


@cli.command(name="add-episode")
@click.option("--title", "-t", required=True, help="Episode title")
@click.option("--number", "-e", type=int, default=None, help="Episode number")
@click.option("--access", "-a", type=click.Choice(["free", "advance"]), default="advance",
              help="Initial access tier (default: advance)")
@click.option("--patreon-post-id", "-p", default=None, help="Linked Patreon post id")
@click.option("--content", "-c", default="", help="Episode body text")
def add_episode(title, number, access, patreon_post_id, content):
    """Create an episode."""
    _, db = _open_store()
    episode_id = db.create_episode(Episode(
        title=title,
        content=content,
        episode_number=number,
        access=AccessType(access),
        patreon_post_id=patreon_post_id,
    ))
    console.print(f"[success]Created episode '{title}' (ID: {episode_id}, access: {access})[/]")


@cli.command(name="sync-episodes")
@click.option("--save", is_flag=True, help="Write detected numbers (default is preview only)")
def sync_episodes(save):
    """Fill the episode number field from numbers found in titles."""
    settings, db = _open_store()
    report = sync_episode_numbers(db, settings, save=save)

    table = Table(title="Episode number sync", border_style="dim")
    table.add_column("ID", style="muted")
    table.add_column("Title")
    table.add_column("Current #", justify="right")
    table.add_column("Detected #", justify="right")
    table.add_column("Status")
    for row in report.rows:
        table.add_row(
            str(row.episode_id),
            row.title,
            str(row.current_number) if row.current_number is not None else "[muted]empty[/]",
            str(row.detected_number) if row.detected_number is not None else "-",
            styled_status(row.status.value),
        )
    console.print(table)

    verb = "updated" if save else "will be updated"
    console.print(command_panel("Summary", {
        f"Episodes {verb}": str(report.updated_count),
        "Already correct": str(report.already_set_count),
        "No number in title": str(report.no_number_count),
    }))
    if not save:
        console.print("[muted]Preview only. Re-run with --save to write changes.[/]")


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------

@cli.command()
@click.argument("text", required=False)
@click.option("--episode", "-e", "episode_number", type=int, default=None,
              help="Episode number (skips AI interpretation)")
@click.option("--access", "-a", type=click.Choice(["free", "advance"]), default=None,
              help="Target access tier (with --episode)")
def command(text, episode_number, access):
    """Change an episode's access from a natural-language command.

    \b
    Examples:
      novelgate command "Make episode 5 free for everyone"
      novelgate command "Change episode 12 to advance access"
      novelgate command -e 8 -a free
    """
    settings, db = _open_store()
    executor = CommandExecutor(db, settings)

    if episode_number is not None or access is not None:
        if episode_number is None or access is None:
            raise click.UsageError("--episode and --access must be given together")
        result = executor.execute_intent({"episode_number": episode_number, "access_type": access})
    elif text:
        console.print(command_panel("Processing command", {"Request": text}))
        result = executor.execute(text)
    else:
        raise click.UsageError("Give a command TEXT or --episode with --access")

    if result.intent is not None:
        console.print(f"[muted]Gemini interpretation:[/] {result.intent.raw_text.strip()}")
    for message in result.messages:
        console.print(f"  [muted]{message}[/]")
    if result.outcome is not None:
        console.print(outcome_table(result.outcome))

    if result.success:
        console.print(success_panel("Done", result.message))
    else:
        console.print(error_panel("Failed", result.message))
        sys.exit(1)


# ---------------------------------------------------------------------------
# Schedules
# ---------------------------------------------------------------------------

@cli.group()
def schedule():
    """Manage per-novel unlock schedules."""


@schedule.command(name="list")
def schedule_list():
    """Show every configured schedule."""
    _, db = _open_store()
    schedules = _load_schedules_or_exit(db)
    if not schedules:
        console.print("[warning]No unlock schedules configured.[/]")
        return

    table = Table(title="Unlock schedules", show_lines=True, border_style="dim")
    table.add_column("Novel", style="novel.name")
    table.add_column("Search term", style="muted")
    table.add_column("Recurrence")
    table.add_column("Enabled")
    table.add_column("Next due")
    for s in schedules:
        table.add_row(
            f"{s.novel_name} ({s.novel_id})",
            s.search_term or "[muted](novel title)[/]",
            s.describe(),
            "[success]yes[/]" if s.enabled else "[muted]no[/]",
            s.next_due_at.strftime("%Y-%m-%d %H:%M") if s.next_due_at else "not set",
        )
    console.print(table)

    trigger = get_trigger_time(db)
    console.print(f"[muted]Next trigger: {trigger.strftime('%Y-%m-%d %H:%M') if trigger else 'none'}[/]")


@schedule.command(name="add")
@click.option("--novel-id", "-n", required=True, type=int, help="Novel ID")
@click.option("--days", "-d", default=1, type=int, help="Unlock every N days (1-365)")
@click.option("--time", "-t", "anchor", default="02:00", help="Time of day, HH:MM")
@click.option("--search-term", "-s", default="", help="Title match override (default: novel title)")
@click.option("--skip-weekends/--include-weekends", default=True, help="Do not count Saturdays and Sundays")
@click.option("--disabled", is_flag=True, help="Save the schedule without enabling it")
def schedule_add(novel_id, days, anchor, search_term, skip_weekends, disabled):
    """Add or replace the schedule of a novel."""
    _, db = _open_store()
    novel = db.get_novel(novel_id)
    if not novel:
        console.print(f"[error]Novel {novel_id} not found[/]")
        sys.exit(1)

    try:
        new = UnlockSchedule(
            novel_id=novel.id,
            novel_name=novel.title,
            search_term=search_term,
            days=days,
            time=anchor,
            enabled=not disabled,
            skip_weekends=skip_weekends,
        )
    except PydanticValidationError as e:
        console.print(f"[error]Invalid schedule: {'; '.join(err['msg'] for err in e.errors())}[/]")
        sys.exit(1)

    schedules = [s for s in _load_schedules_or_exit(db) if s.novel_id != novel.id]
    schedules.append(new)
    trigger = save_schedules(db, schedules)
    console.print(success_panel(
        "Schedule saved",
        f"{novel.title}: {new.describe()}\n"
        f"Next trigger: {trigger.strftime('%Y-%m-%d %H:%M') if trigger else 'none'}",
    ))


@schedule.command(name="remove")
@click.option("--novel-id", "-n", required=True, type=int, help="Novel ID")
def schedule_remove(novel_id):
    """Remove the schedule of a novel."""
    _, db = _open_store()
    schedules = _load_schedules_or_exit(db)
    remaining = [s for s in schedules if s.novel_id != novel_id]
    if len(remaining) == len(schedules):
        console.print(f"[warning]No schedule for novel {novel_id}[/]")
        sys.exit(1)
    save_schedules(db, remaining)
    console.print(f"[success]Removed schedule for novel {novel_id}[/]")


@cli.command(name="reset-dates")
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation")
def reset_dates(yes):
    """Forget every next-due date; they are re-initialised on the next run."""
    _, db = _open_store()
    if not yes and not click.confirm("Reset all unlock dates?", default=False):
        console.print("[muted]Cancelled.[/]")
        return
    try:
        count = reset_due_dates(db)
    except NovelGateError as e:
        console.print(f"[error]{e}[/]")
        sys.exit(1)
    console.print(f"[success]Reset due dates for {count} schedule(s)[/]")


# ---------------------------------------------------------------------------
# Running
# ---------------------------------------------------------------------------

def _print_report(report: RunReport) -> None:
    if report.blocked:
        console.print("[warning]Another unlock run is in progress; nothing was done.[/]")
        return
    for line in report.skipped:
        console.print(f"[muted]Skipped: {line}[/]")
    if not report.rows:
        console.print("[warning]No schedules to evaluate.[/]")
        return
    console.print(run_report_table(report))
    for row in report.rows:
        if row.outcome is not None:
            console.print(f"[bold]{row.novel_name}[/] [muted]episode {row.episode.id}[/]")
            console.print(outcome_table(row.outcome))
    verb = "would unlock" if report.preview else "unlocked"
    console.print(f"[info]{report.unlocked_count} episode(s) {verb}[/]")


def _run(preview: bool, force: bool) -> RunReport:
    settings, db = _open_store()
    try:
        report = ScheduleRunner(db, settings).run(preview=preview, force=force)
    except NovelGateError as e:
        console.print(f"[error]{e}[/]")
        sys.exit(1)
    except Exception as e:
        console.print(f"[error]Unlock run failed: {e}[/]")
        logging.getLogger(__name__).exception("Unlock run failed")
        sys.exit(1)
    _print_report(report)
    return report


@cli.command()
@click.option("--force", "-f", is_flag=True, help="Treat every enabled schedule as due")
def preview(force):
    """Show what a run would do without changing anything."""
    _run(preview=True, force=force)


@cli.command(name="run-now")
def run_now():
    """Treat every enabled schedule as due and unlock now."""
    report = _run(preview=False, force=True)
    if report.blocked:
        sys.exit(1)


@cli.command()
def run():
    """Run due schedules once (what the daily trigger does)."""
    report = _run(preview=False, force=False)
    if report.blocked:
        sys.exit(1)


@cli.command()
@click.option("--max-runs", type=int, default=None, help="Stop after N runs")
def serve(max_runs: Optional[int]):
    """Stay in the foreground and run once a day at the earliest anchor time."""
    settings, db = _open_store()
    console.print(app_header())
    console.print("[info]Waiting for the next unlock trigger. Press Ctrl+C to stop.[/]")
    try:
        run_daily(ScheduleRunner(db, settings), max_runs=max_runs, on_report=_print_report)
    except KeyboardInterrupt:
        console.print("\n[warning]Stopped.[/]")
        sys.exit(130)
    except NovelGateError as e:
        console.print(f"[error]{e}[/]")
        sys.exit(1)
    except Exception as e:
        console.print(f"[error]Serve loop failed: {e}[/]")
        logging.getLogger(__name__).exception("Serve loop failed")
        sys.exit(1)


def main():
    """Entry point."""
    cli()


if __name__ == "__main__":
    main()

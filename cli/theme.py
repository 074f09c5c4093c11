"""Unified Rich theme and reusable UI helper functions for the CLI."""

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.rule import Rule
from rich.table import Table
from rich.theme import Theme

NOVELGATE_THEME = Theme({
    "app.title": "bold",
    "success": "green",
    "warning": "yellow",
    "error": "red",
    "info": "blue",
    "muted": "dim",
    "accent": "cyan",
    "stat.label": "dim",
    "stat.value": "bold",
    "episode.num": "blue",
    "novel.name": "bold cyan",
})

# Status value -> style, shared by run, sync and step tables
STATUS_STYLES = {
    "unlocked": "success",
    "will-unlock": "info",
    "not-due": "muted",
    "no-episode-found": "warning",
    "unlock-failed": "error",
    "applied": "success",
    "skipped": "muted",
    "failed": "error",
    "already-set": "muted",
    "updated": "success",
    "will-update": "info",
    "no-number": "warning",
}


def get_console() -> Console:
    """Return a Console instance with the novelgate theme applied."""
    return Console(theme=NOVELGATE_THEME)


def app_header(title: str = "novelgate") -> Rule:
    return Rule(title=f"[bold]{title}[/]", style="dim")


def styled_status(value: str) -> str:
    style = STATUS_STYLES.get(value, "white")
    return f"[{style}]{value}[/]"


def command_panel(title: str, fields: dict[str, str]) -> Panel:
    """Return a Panel displaying command parameters.

    Args:
        title: Panel title (e.g. "Run unlock schedules").
        fields: Ordered dict of label -> value pairs.
    """
    lines = [f"  [stat.label]{label}:[/] [stat.value]{value}[/]" for label, value in fields.items()]
    return Panel("\n".join(lines), title=f"[bold]{title}[/]", box=box.ROUNDED, border_style="dim", padding=(0, 2))


def success_panel(title: str, body: str) -> Panel:
    """Return a green-bordered Panel for success results."""
    return Panel(body, title=f"[success]{title}[/]", box=box.ROUNDED, border_style="green", padding=(0, 2))


def error_panel(title: str, body: str) -> Panel:
    return Panel(body, title=f"[error]{title}[/]", box=box.ROUNDED, border_style="red", padding=(0, 2))


def run_report_table(report) -> Table:
    """Build the per-schedule table for a RunReport."""
    title = "Unlock preview" if report.preview else "Unlock run"
    if report.force:
        title += " (forced)"
    table = Table(title=title, show_lines=True, border_style="dim")
    table.add_column("Novel", style="novel.name")
    table.add_column("Schedule", style="muted")
    table.add_column("Next due")
    table.add_column("Episode")
    table.add_column("After unlock")
    table.add_column("Status")

    for row in report.rows:
        episode = "-"
        if row.episode is not None:
            episode = f"[episode.num]#{row.episode.episode_number}[/] {row.episode.title}"
        after = row.next_due_at.strftime("%Y-%m-%d %H:%M") if row.next_due_at else "-"
        status = styled_status(row.status.value)
        if row.detail:
            status += f"\n[muted]{row.detail}[/]"
        table.add_row(
            row.novel_name,
            row.recurrence,
            row.due_at.strftime("%Y-%m-%d %H:%M") if row.due_at else "-",
            episode,
            after,
            status,
        )
    return table


def outcome_table(outcome) -> Table:
    """Build a table of applier steps for one AccessOutcome."""
    table = Table(box=box.ROUNDED, border_style="dim", show_header=True, padding=(0, 1))
    table.add_column("Step", style="accent")
    table.add_column("Result")
    table.add_column("Detail")
    for step in outcome.steps:
        table.add_row(step.name, styled_status(step.status.value), step.detail)
    return table

"""Console reporter: rich table of control outcomes."""

from __future__ import annotations

from typing import Optional

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from ..models.report import Report
from ..models.result import ControlResult, Outcome

OUTCOME_STYLES: dict[Outcome, str] = {
    Outcome.PASSED: "green",
    Outcome.FAILED: "red",
    Outcome.NOT_REVIEWED: "yellow",
    Outcome.NOT_APPLICABLE: "dim",
    Outcome.PROFILE_ERROR: "magenta",
}


def print_control_progress(console: Console, result: ControlResult, outcome: Outcome) -> None:
    color = OUTCOME_STYLES[outcome]
    console.print(f"  [{color}]{outcome.value:<15}[/{color}] {escape(result.id)} {escape(result.title)}")


def print_report(report: Report, console: Optional[Console] = None) -> None:
    """Print a summary table of the report."""
    console = console or Console()

    table = Table(title=f"{report.run.profile_title or report.run.profile_name} on {report.run.target}")
    table.add_column("Control")
    table.add_column("Impact", justify="right")
    table.add_column("Outcome")
    table.add_column("Detail", overflow="fold")

    for c in report.controls:
        color = OUTCOME_STYLES[c.outcome]
        table.add_row(
            escape(c.result.id),
            f"{c.result.impact:.1f}",
            f"[{color}]{c.outcome.value}[/{color}]",
            escape(c.reason) if c.outcome != Outcome.PASSED else "",
        )

    console.print()
    console.print(table)

    counts = report.counts
    console.print(
        f"  [green]{counts.passed} passed[/green], "
        f"[red]{counts.failed} failed[/red], "
        f"[yellow]{counts.not_reviewed} not reviewed[/yellow], "
        f"[dim]{counts.not_applicable} not applicable[/dim], "
        f"[magenta]{counts.profile_error} profile errors[/magenta] "
        f"({counts.total} controls)"
    )
    console.print(f"  Compliance: [bold]{report.compliance_percent}%[/bold]")

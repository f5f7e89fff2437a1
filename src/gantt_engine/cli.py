"""Command-line interface for the Gantt engine."""

from __future__ import annotations

from datetime import date
from pathlib import Path
from typing import Annotated

import typer

from .exceptions import GanttEngineError
from .loader import load_project
from .logger import setup_logger
from .scheduler import SchedulingResult, SchedulingService

app = typer.Typer(
    name="gantt-engine",
    help="Capacity-leveled, dependency-aware Gantt schedule calculation",
    add_completion=False,
)


@app.callback()
def main_callback(
    verbose: Annotated[
        int,
        typer.Option(
            "--verbose",
            "-v",
            help="Verbosity level: 0=silent (default), 1=show schedule decisions, "
            "2=show all checks, 3=debug",
            min=0,
            max=3,
        ),
    ] = 0,
) -> None:
    """Global options for gantt-engine commands."""
    setup_logger(verbose)


def _parse_date_option(date_str: str | None) -> date | None:
    """Parse a YYYY-MM-DD date from a CLI option."""
    if date_str is None:
        return None

    try:
        return date.fromisoformat(date_str)
    except ValueError:
        typer.echo(
            f"Error: Invalid date format '{date_str}'. Use YYYY-MM-DD format.",
            err=True,
        )
        raise typer.Exit(1) from None


def _load_service(file: Path, start_date: str | None = None) -> SchedulingService:
    parsed_start = _parse_date_option(start_date)
    try:
        project = load_project(file, parsed_start)
    except (FileNotFoundError, GanttEngineError) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1) from None
    return SchedulingService(project)


def _display_schedule_results(result: SchedulingResult) -> None:
    """Display schedule results to stdout."""
    typer.echo("Schedule Results")
    typer.echo("=" * 80)
    typer.echo("")

    for entry in result.entries:
        typer.echo(f"{entry.task_id}")
        if entry.milestone:
            typer.echo(f"  Milestone:  {entry.start_date}")
        else:
            typer.echo(f"  Start:      {entry.start_date}")
            typer.echo(f"  End:        {entry.end_date}")
            typer.echo(f"  Duration:   {entry.duration_days} working days")
            typer.echo(f"  Workload:   {entry.quantity:g} {entry.unit.value if entry.unit else ''}")
        typer.echo(f"  Team:       {entry.team or '-'}")
        typer.echo(f"  Scenario:   {entry.scenario.value}")
        typer.echo("")

    if result.unschedulable:
        typer.echo("Unschedulable")
        typer.echo("=" * 80)
        for item in result.unschedulable:
            typer.echo(f"  - {item}")
        typer.echo("")


@app.command()
def schedule(
    file: Annotated[Path, typer.Argument(help="Path to the project YAML file")] = Path(
        "project.yaml"
    ),
    start_date: Annotated[
        str | None,
        typer.Option(
            "--start-date",
            "-s",
            help="Project start date (YYYY-MM-DD). Overrides project_start in the file",
        ),
    ] = None,
) -> None:
    """Compute the schedule and print it."""
    service = _load_service(file, start_date)

    try:
        result = service.schedule()
    except GanttEngineError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1) from None

    _display_schedule_results(result)

    warnings = [str(divergence) for divergence in result.divergences] + result.warnings
    if warnings:
        typer.echo("\nWarnings:", err=True)
        for warning in warnings:
            typer.echo(f"  - {warning}", err=True)


@app.command()
def validate(
    file: Annotated[Path, typer.Argument(help="Path to the project YAML file")] = Path(
        "project.yaml"
    ),
) -> None:
    """Check task references and dependencies without scheduling."""
    service = _load_service(file)

    try:
        order = service.validate()
    except GanttEngineError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1) from None

    typer.echo(f"OK: {len(order)} schedulable units")
    for position, task_id in enumerate(order, start=1):
        typer.echo(f"  {position}. {task_id}")


def main() -> int:
    """Main entry point."""
    # Typer handles sys.exit() internally
    app()
    return 0


if __name__ == "__main__":
    main()

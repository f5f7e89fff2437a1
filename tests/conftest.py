"""Pytest configuration and fixtures for gantt_engine tests."""

from __future__ import annotations

from collections.abc import Iterator
from datetime import date
from typing import Any

import pytest

from gantt_engine.logger import reset_logger
from gantt_engine.models import Estimate, Task
from gantt_engine.scheduler import (
    CalendarConfig,
    CapacityLedger,
    ProjectInput,
    SchedulingConfig,
    SchedulingResult,
    SchedulingService,
)
from gantt_engine.teams import AssignmentRules, TeamConfig

# Monday
PROJECT_START = date(2025, 1, 6)


@pytest.fixture(autouse=True)
def clean_logger() -> Iterator[None]:
    """Reset the engine logger around each test for isolation."""
    reset_logger()
    yield
    reset_logger()


def est(raw: str) -> Estimate:
    """Parse an estimate string such as ``40h`` or ``5pt``."""
    return Estimate.parse(raw)


def make_task(task_id: str, estimate: str | None = None, **kwargs: Any) -> Task:
    """Create a Task with an optional estimate string."""
    remaining = kwargs.pop("remaining", None)
    return Task(
        id=task_id,
        title=kwargs.pop("title", task_id),
        estimate=est(estimate) if estimate is not None else None,
        remaining=est(remaining) if remaining is not None else None,
        **kwargs,
    )


def hours_team(team_id: str, hours: float = 8.0, members: int = 1, **kwargs: Any) -> TeamConfig:
    """Create an hours-based team with ``members`` x ``hours`` per day."""
    return TeamConfig(id=team_id, members=members, hours_per_day=hours, **kwargs)


def velocity_team(team_id: str, velocity: float, **kwargs: Any) -> TeamConfig:
    """Create a velocity-based team (points per sprint unless overridden)."""
    return TeamConfig(id=team_id, velocity=velocity, **kwargs)


def make_project(  # noqa: PLR0913 - mirrors ProjectInput fields
    tasks: list[Task],
    teams: list[TeamConfig],
    *,
    project_start: date = PROJECT_START,
    calendar: CalendarConfig | None = None,
    assignment: AssignmentRules | None = None,
    config: SchedulingConfig | None = None,
) -> ProjectInput:
    """Create a ProjectInput with defaults for everything but tasks and teams."""
    return ProjectInput(
        project_start=project_start,
        tasks=tasks,
        teams=teams,
        calendar=calendar or CalendarConfig(),
        assignment=assignment or AssignmentRules(),
        config=config or SchedulingConfig(),
    )


def run_with_ledger(project: ProjectInput) -> tuple[SchedulingResult, CapacityLedger]:
    """Schedule a project and return the ledger the run allocated into."""
    engine = SchedulingService(project).create_engine()
    ledger = engine.create_ledger()
    return engine.run(ledger), ledger


def assert_within_capacity(ledger: CapacityLedger) -> None:
    """No (team, day) in the ledger is allocated beyond its capacity."""
    for (team, day), used in ledger.entries().items():
        assert used <= ledger.capacity(team, day) + 1e-9, f"{team} over capacity on {day}"

"""YAML project file loading.

A project file holds normalized tasks and teams plus calendar, scheduler and
team-assignment settings::

    project_start: 2025-01-06
    calendar:
      holidays: [2025-01-20]
    teams:
      platform:
        velocity: 30
        velocity_period: sprint
    tasks:
      epic-1:
        title: Payments epic
        estimate: 30pt
        team: platform
"""

from __future__ import annotations

from datetime import date
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError as PydanticValidationError

from .exceptions import ParseError
from .models import Estimate, EstimateUnit, Task
from .scheduler.core import ProjectInput
from .schemas import ProjectSchema, TaskSchema, TeamSchema
from .teams import TeamConfig


def _parse_estimate(
    task_id: str, field_name: str, raw: str | float | None, default_unit: EstimateUnit | None
) -> Estimate | None:
    if raw is None:
        return None
    try:
        return Estimate.parse(raw, default_unit)
    except ValueError as e:
        raise ParseError(f"Task '{task_id}' has invalid {field_name}: {e}") from e


def _build_task(task_id: str, data: TaskSchema, default_unit: EstimateUnit | None) -> Task:
    return Task(
        id=task_id,
        title=data.title or task_id,
        estimate=_parse_estimate(task_id, "estimate", data.estimate, default_unit),
        remaining=_parse_estimate(task_id, "remaining", data.remaining, default_unit),
        dependencies=list(data.dependencies),
        team=data.team,
        labels=list(data.labels),
        parent=data.parent,
        subtasks=list(data.subtasks),
        max_concurrency=data.max_concurrency,
        milestone=data.milestone,
        target_date=data.target_date,
        rank=data.rank,
        done=data.done,
        start_after=data.start_after,
    )


def _build_team(team_id: str, data: TeamSchema) -> TeamConfig:
    return TeamConfig(id=team_id, **data.model_dump())


def parse_project(data: dict[str, Any], project_start: date | None = None) -> ProjectInput:
    """Build a ProjectInput from already-loaded YAML data.

    Args:
        data: Parsed YAML mapping
        project_start: Overrides the file's ``project_start`` when given; falls
            back to today when neither is set

    Raises:
        ParseError: If the data does not match the schema
    """
    try:
        schema = ProjectSchema.model_validate(data)
    except PydanticValidationError as e:
        raise ParseError(f"Invalid project file: {e}") from e

    start = project_start or schema.project_start or date.today()  # noqa: DTZ011

    unit = schema.default_estimate_unit
    tasks = [_build_task(task_id, task_data, unit) for task_id, task_data in schema.tasks.items()]
    teams = [_build_team(team_id, team_data) for team_id, team_data in schema.teams.items()]

    return ProjectInput(
        project_start=start,
        tasks=tasks,
        teams=teams,
        calendar=schema.calendar,
        assignment=schema.assignment,
        config=schema.scheduler,
    )


def load_project(path: Path | str, project_start: date | None = None) -> ProjectInput:
    """Load a project from a YAML file.

    Args:
        path: Path to the project YAML file
        project_start: Optional start date overriding the file's value

    Raises:
        FileNotFoundError: If the file doesn't exist
        ParseError: If the YAML or its content is invalid
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Project file not found: {path}")

    try:
        with path.open(encoding="utf-8") as f:
            raw: Any = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ParseError(f"Invalid YAML in {path}: {e}") from e

    if raw is None:
        raise ParseError(f"Empty project file: {path}")
    if not isinstance(raw, dict):
        raise ParseError(f"Invalid project file format: expected mapping, got {type(raw).__name__}")

    return parse_project(raw, project_start)  # type: ignore[arg-type]

"""Pydantic schemas for YAML project files."""

from __future__ import annotations

import sys
from datetime import date
from typing import Any

from pydantic import BaseModel, Field, field_validator, model_validator

from .models import EstimateUnit
from .scheduler.config import CalendarConfig, SchedulingConfig
from .teams import AssignmentRules, DatePeriod, VelocityPeriod


class TaskSchema(BaseModel):
    """Schema for one task entry."""

    title: str = ""
    estimate: str | float | None = None
    remaining: str | float | None = None
    dependencies: list[str] = Field(default_factory=list)
    requires: list[str] | None = None  # Alias for dependencies
    team: str | None = None
    labels: list[str] = Field(default_factory=list)
    parent: str | None = None
    subtasks: list[str] = Field(default_factory=list)
    max_concurrency: int | None = None
    milestone: bool = False
    target_date: date | None = None
    rank: int | None = None
    done: bool = False
    start_after: date | None = None

    @model_validator(mode="after")
    def handle_requires_alias(self) -> TaskSchema:
        """Accept 'requires' as an alias for 'dependencies'."""
        if self.requires is not None:
            if self.dependencies:
                raise ValueError("Cannot specify both 'dependencies' and 'requires'")
            self.dependencies = self.requires
            self.requires = None
        return self

    @model_validator(mode="after")
    def check_milestone_fields(self) -> TaskSchema:
        """Target dates only make sense on milestones."""
        if self.target_date is not None and not self.milestone:
            raise ValueError("'target_date' is only valid on milestones")
        if self.milestone and (self.estimate is not None or self.remaining is not None):
            sys.stderr.write("WARNING: estimates on milestones are ignored.\n")
        return self

    @field_validator("dependencies", "requires", "labels", "subtasks", mode="before")
    @classmethod
    def ensure_list(cls, v: Any) -> list[str]:
        """Ensure value is a list of strings."""
        if v is None:
            return []
        if isinstance(v, list):
            return [str(item) for item in v]  # type: ignore[misc]
        return [str(v)]

    @field_validator("team", "parent", mode="before")
    @classmethod
    def ensure_id(cls, v: Any) -> Any:
        """Read numeric ids as strings."""
        if v is None or isinstance(v, str):
            return v
        return str(v)


class TeamSchema(BaseModel):
    """Schema for one team entry (the id is the mapping key)."""

    velocity: float | None = None
    velocity_period: VelocityPeriod = VelocityPeriod.SPRINT
    sprint_length_days: int = 10
    capacity_per_period: float | None = None
    members: int = 1
    hours_per_day: float | None = None
    unavailable: list[DatePeriod] = Field(default_factory=list[DatePeriod])


class ProjectSchema(BaseModel):
    """Schema for a whole project file."""

    project_start: date | None = None
    default_estimate_unit: EstimateUnit | None = None  # Unit for bare numeric estimates
    calendar: CalendarConfig = Field(default_factory=CalendarConfig)
    scheduler: SchedulingConfig = Field(default_factory=SchedulingConfig)
    assignment: AssignmentRules = Field(default_factory=AssignmentRules)
    teams: dict[str, TeamSchema] = Field(default_factory=dict)
    tasks: dict[str, TaskSchema] = Field(default_factory=dict)

    @field_validator("teams", "tasks", mode="before")
    @classmethod
    def ensure_mapping(cls, v: Any) -> Any:
        """Treat an empty section as an empty mapping; YAML may key ids as ints."""
        if v is None:
            return {}
        if isinstance(v, dict):
            return {str(key): value for key, value in v.items()}  # type: ignore[misc]
        return v

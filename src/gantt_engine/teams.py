"""Team configuration and team-assignment rules.

This module handles team definitions used for capacity planning:
- Velocity (points per day/week/sprint) or hours capacity per team
- Team-wide unavailable periods (shutdowns, offsites)
- Rules mapping labels or title patterns to teams
"""

from __future__ import annotations

import re
from datetime import date
from enum import Enum
from functools import cached_property

from pydantic import BaseModel, Field, field_validator, model_validator

from .exceptions import ConfigurationError
from .models import Estimate, EstimateUnit


class VelocityPeriod(str, Enum):
    """Period over which a team's velocity or capacity figure is measured."""

    DAY = "day"
    WEEK = "week"
    SPRINT = "sprint"


class DatePeriod(BaseModel):
    """An inclusive range of dates."""

    start: date
    end: date

    @model_validator(mode="after")
    def validate_end_after_start(self) -> DatePeriod:
        """Ensure end date is not before start date."""
        if self.end < self.start:
            raise ValueError("end date must be after start date")
        return self

    def contains(self, day: date) -> bool:
        return self.start <= day <= self.end


class TeamConfig(BaseModel):
    """Capacity definition for a single team.

    A team is either velocity based (``velocity`` in points per
    ``velocity_period``) or hours based (``capacity_per_period`` hours per
    period, or ``members`` x ``hours_per_day``). Numeric sanity is checked
    lazily by the capacity methods so that a bad team only affects the tasks
    assigned to it.
    """

    id: str
    velocity: float | None = None
    velocity_period: VelocityPeriod = VelocityPeriod.SPRINT
    sprint_length_days: int = 10  # Working days per sprint
    capacity_per_period: float | None = None  # Direct hours figure per velocity period
    members: int = 1
    hours_per_day: float | None = None  # Per member
    unavailable: list[DatePeriod] = Field(default_factory=list[DatePeriod])

    @property
    def capacity_unit(self) -> EstimateUnit:
        """Unit the team's capacity is tracked in: points or hours."""
        return EstimateUnit.POINTS if self.velocity is not None else EstimateUnit.HOURS

    def period_length_days(self, working_days_per_week: int) -> int:
        """Number of working days in one velocity period."""
        if self.velocity_period == VelocityPeriod.DAY:
            return 1
        if self.velocity_period == VelocityPeriod.WEEK:
            return working_days_per_week
        if self.sprint_length_days <= 0:
            raise ConfigurationError(
                f"Team '{self.id}' has non-positive sprint length {self.sprint_length_days}"
            )
        return self.sprint_length_days

    def daily_capacity(self, working_days_per_week: int) -> float:
        """Capacity of one working day, in the team's capacity unit.

        Raises:
            ConfigurationError: On non-positive velocity, negative capacity or
                a team with neither velocity nor hours configured
        """
        period_days = self.period_length_days(working_days_per_week)

        if self.velocity is not None:
            if self.velocity <= 0:
                raise ConfigurationError(f"Team '{self.id}' has non-positive velocity {self.velocity}")
            return self.velocity / period_days

        if self.capacity_per_period is not None:
            if self.capacity_per_period < 0:
                raise ConfigurationError(
                    f"Team '{self.id}' has negative capacity {self.capacity_per_period}"
                )
            return self.capacity_per_period / period_days

        if self.hours_per_day is not None:
            if self.hours_per_day < 0:
                raise ConfigurationError(
                    f"Team '{self.id}' has negative hours per day {self.hours_per_day}"
                )
            return self._member_count() * self.hours_per_day

        raise ConfigurationError(f"Team '{self.id}' has neither velocity nor hours capacity")

    def member_daily_capacity(self, working_days_per_week: int) -> float:
        """Capacity of a single member for one working day."""
        return self.daily_capacity(working_days_per_week) / self._member_count()

    def _member_count(self) -> int:
        if self.members <= 0:
            raise ConfigurationError(f"Team '{self.id}' has {self.members} members")
        return self.members

    def to_capacity_units(self, estimate: Estimate, working_days_per_week: int) -> float:
        """Convert an estimate into the team's capacity unit.

        Points are only valid for velocity teams; hours and person-days only for
        hours teams. There is no implicit coercion between the two systems.

        Raises:
            ConfigurationError: On a unit mismatch or a negative estimate
        """
        if estimate.value < 0:
            raise ConfigurationError(f"Negative estimate {estimate}")

        if self.capacity_unit == EstimateUnit.POINTS:
            if estimate.unit != EstimateUnit.POINTS:
                raise ConfigurationError(
                    f"Estimate {estimate} is not in points but team '{self.id}' is velocity based"
                )
            return estimate.value

        if estimate.unit == EstimateUnit.POINTS:
            raise ConfigurationError(
                f"Estimate {estimate} is in points but team '{self.id}' has no velocity"
            )
        if estimate.unit == EstimateUnit.DAYS:
            if self.hours_per_day is not None:
                return estimate.value * self.hours_per_day
            return estimate.value * self.member_daily_capacity(working_days_per_week)
        return estimate.value

    def is_unavailable(self, day: date) -> bool:
        return any(period.contains(day) for period in self.unavailable)


class TitlePattern(BaseModel):
    """A regular expression on task titles that assigns a team."""

    pattern: str
    team: str

    @field_validator("pattern")
    @classmethod
    def validate_pattern(cls, v: str) -> str:
        """Ensure the pattern compiles."""
        try:
            re.compile(v)
        except re.error as e:
            raise ValueError(f"Invalid title pattern '{v}': {e}") from e
        return v

    @cached_property
    def compiled(self) -> re.Pattern[str]:
        return re.compile(self.pattern)


class AssignmentRules(BaseModel):
    """Rules used when a task has no explicit team field.

    Priority order: explicit ``team`` field, then ``labels`` (label -> team),
    then ``title_patterns`` (first matching pattern wins).
    """

    labels: dict[str, str] = Field(default_factory=dict)
    title_patterns: list[TitlePattern] = Field(default_factory=list[TitlePattern])

"""Configuration classes for the scheduling system."""

from __future__ import annotations

from datetime import date

from pydantic import BaseModel, Field, field_validator

DAYS_PER_WEEK = 7


def _default_weekend() -> list[int]:
    return [5, 6]


class CalendarConfig(BaseModel):
    """Working-day calendar: non-working weekdays plus a holiday list."""

    # Weekday numbers as in date.weekday(): 0=Monday .. 6=Sunday
    non_working_weekdays: list[int] = Field(default_factory=_default_weekend)
    holidays: list[date] = Field(default_factory=list[date])

    @field_validator("non_working_weekdays")
    @classmethod
    def validate_weekdays(cls, v: list[int]) -> list[int]:
        """Ensure weekday numbers are valid and at least one working day remains."""
        for weekday in v:
            if weekday < 0 or weekday >= DAYS_PER_WEEK:
                raise ValueError(f"Invalid weekday {weekday}, expected 0 (Mon) to 6 (Sun)")
        if len(set(v)) >= DAYS_PER_WEEK:
            raise ValueError("Calendar must have at least one working weekday")
        return sorted(set(v))

    @property
    def working_days_per_week(self) -> int:
        return DAYS_PER_WEEK - len(self.non_working_weekdays)


class SchedulingConfig(BaseModel):
    """Settings for one scheduling run."""

    # Relative gap between parent estimate and subtask sum that triggers a warning
    divergence_tolerance: float = Field(default=0.2, ge=0)
    # Dependents of an unschedulable task are also unschedulable
    propagate_unschedulable: bool = True
    # Working days without any team capacity tolerated while allocating one task
    max_periods: int = Field(default=2600, gt=0)

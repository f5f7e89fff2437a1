"""Core dataclasses for the scheduling system."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import TYPE_CHECKING

from gantt_engine.models import EstimateUnit
from gantt_engine.teams import AssignmentRules

from .config import CalendarConfig, SchedulingConfig

if TYPE_CHECKING:
    from gantt_engine.models import Task
    from gantt_engine.teams import TeamConfig


class Scenario(str, Enum):
    """Which estimation rule produced a task's effective workload."""

    IN_FLIGHT = "in-flight"
    SUBTASK_ROLLUP = "subtask-rollup"
    PARENT_LEVEL = "parent-level"
    MILESTONE = "milestone"


class UnschedulableReason(str, Enum):
    """Reason codes for tasks that could not be scheduled."""

    NO_ESTIMATE = "no-estimate"
    NO_TEAM = "no-team"
    UNKNOWN_TEAM = "unknown-team"
    SHARED_OWNERSHIP = "shared-ownership"
    CONFIGURATION = "configuration"
    CAPACITY_EXHAUSTED = "capacity-exhausted"
    BLOCKED_BY_DEPENDENCY = "blocked-by-dependency"


def _default_divergences() -> list[DivergenceWarning]:
    return []


def _default_str_list() -> list[str]:
    return []


@dataclass(frozen=True)
class DivergenceWarning:
    """Parent estimate and subtask sum disagree by more than the tolerance."""

    task_id: str
    parent_quantity: float
    subtask_quantity: float
    unit: EstimateUnit
    tolerance: float

    def __str__(self) -> str:
        return (
            f"Task '{self.task_id}' estimate {self.parent_quantity:g} {self.unit.value} "
            f"diverges from subtask sum {self.subtask_quantity:g} {self.unit.value} "
            f"(tolerance {self.tolerance:.0%})"
        )


@dataclass(frozen=True)
class EffectiveWorkload:
    """Successful estimation result."""

    quantity: float  # In the team's capacity unit
    unit: EstimateUnit | None  # None for milestones
    scenario: Scenario
    duration_days: float | None = None  # Nominal working days at full team capacity
    divergences: list[DivergenceWarning] = field(default_factory=_default_divergences)


@dataclass(frozen=True)
class ResolutionFailure:
    """A task whose team or workload could not be resolved."""

    task_id: str
    reason: UnschedulableReason
    detail: str = ""


Resolution = EffectiveWorkload | ResolutionFailure


@dataclass(frozen=True)
class ScheduleEntry:
    """A committed schedule for one task. Never mutated after creation."""

    task_id: str
    start_date: date
    end_date: date  # Last working day with allocated work (inclusive)
    duration_days: int  # Working days from start through end; 0 for milestones
    team: str | None
    scenario: Scenario
    quantity: float = 0.0
    unit: EstimateUnit | None = None
    milestone: bool = False


@dataclass(frozen=True)
class UnschedulableTask:
    """A task reported instead of scheduled."""

    task_id: str
    reason: UnschedulableReason
    detail: str = ""

    def __str__(self) -> str:
        suffix = f": {self.detail}" if self.detail else ""
        return f"{self.task_id} [{self.reason.value}]{suffix}"


@dataclass
class SchedulingResult:
    """Complete result of one scheduling run."""

    entries: list[ScheduleEntry]
    unschedulable: list[UnschedulableTask]
    divergences: list[DivergenceWarning] = field(default_factory=_default_divergences)
    warnings: list[str] = field(default_factory=_default_str_list)

    @property
    def entries_by_id(self) -> dict[str, ScheduleEntry]:
        return {entry.task_id: entry for entry in self.entries}

    @property
    def unschedulable_ids(self) -> set[str]:
        return {item.task_id for item in self.unschedulable}


def _default_tasks() -> list[Task]:
    return []


def _default_teams() -> list[TeamConfig]:
    return []


@dataclass
class ProjectInput:
    """Everything one scheduling run consumes."""

    project_start: date
    tasks: list[Task] = field(default_factory=_default_tasks)
    teams: list[TeamConfig] = field(default_factory=_default_teams)
    calendar: CalendarConfig = field(default_factory=CalendarConfig)
    assignment: AssignmentRules = field(default_factory=AssignmentRules)
    config: SchedulingConfig = field(default_factory=SchedulingConfig)

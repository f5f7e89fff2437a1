"""Scheduler package - capacity-leveled Gantt schedule calculation.

This package provides:
- WorkingCalendar: working-day arithmetic over weekends and holidays
- EstimationResolver: effective workload per task (in-flight, subtask rollup,
  parent-level)
- DependencyGraph: index-based precedence graph with cycle detection
- CapacityLedger: per-run (team, day) capacity bookkeeping
- SchedulingEngine: dependency-ordered greedy allocation with spillover
- SchedulingService: high-level entry point over a ProjectInput
"""

from .assembler import ScheduleResultAssembler
from .assignment import TeamAssigner
from .calendar import WorkingCalendar
from .config import CalendarConfig, SchedulingConfig
from .core import (
    DivergenceWarning,
    EffectiveWorkload,
    ProjectInput,
    Resolution,
    ResolutionFailure,
    Scenario,
    ScheduleEntry,
    SchedulingResult,
    UnschedulableReason,
    UnschedulableTask,
)
from .engine import SchedulingEngine
from .estimation import EstimationResolver
from .graph import DependencyGraph
from .ledger import CapacityLedger
from .service import SchedulingService, schedule_project

__all__ = [
    # Core dataclasses
    "DivergenceWarning",
    "EffectiveWorkload",
    "ProjectInput",
    "Resolution",
    "ResolutionFailure",
    "Scenario",
    "ScheduleEntry",
    "SchedulingResult",
    "UnschedulableReason",
    "UnschedulableTask",
    # Configuration
    "CalendarConfig",
    "SchedulingConfig",
    # Components
    "CapacityLedger",
    "DependencyGraph",
    "EstimationResolver",
    "ScheduleResultAssembler",
    "SchedulingEngine",
    "TeamAssigner",
    "WorkingCalendar",
    # High-level service
    "SchedulingService",
    "schedule_project",
]

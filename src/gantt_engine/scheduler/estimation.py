"""Effective workload resolution for tasks and their subtasks."""

from __future__ import annotations

from typing import TYPE_CHECKING

from gantt_engine.exceptions import ConfigurationError
from gantt_engine.logger import get_logger

from .core import (
    DivergenceWarning,
    EffectiveWorkload,
    Resolution,
    ResolutionFailure,
    Scenario,
    UnschedulableReason,
)

if TYPE_CHECKING:
    from gantt_engine.models import Backlog, Estimate, Task
    from gantt_engine.teams import TeamConfig

logger = get_logger()

# Quantities at or below this are treated as zero
_EPSILON = 1e-9


class EstimationResolver:
    """Determines how much work a scheduling unit represents.

    Resolution policy, in priority order:
    1. Milestones carry no work.
    2. A remaining-estimate override wins (in-flight work).
    3. A positive sum over subtasks wins over the task's own estimate; a
       parent estimate that diverges from it beyond the tolerance is only
       reported.
    4. The task's own estimate.
    5. Otherwise the task is unresolvable.

    All quantities are converted into the team's capacity unit (points for
    velocity teams, hours otherwise).
    """

    def __init__(
        self,
        backlog: Backlog,
        working_days_per_week: int,
        divergence_tolerance: float = 0.2,
    ) -> None:
        self.backlog = backlog
        self.working_days_per_week = working_days_per_week
        self.divergence_tolerance = divergence_tolerance

    def resolve(self, task: Task, team: TeamConfig | None) -> Resolution:
        """Resolve the effective workload of a task for its team.

        Configuration problems are returned as failures, never raised.
        """
        if task.milestone:
            return EffectiveWorkload(quantity=0.0, unit=None, scenario=Scenario.MILESTONE)

        if team is None:
            return ResolutionFailure(task.id, UnschedulableReason.NO_TEAM, "no team assigned")

        try:
            return self._resolve_for_team(task, team)
        except ConfigurationError as e:
            logger.checks(f"  Task {task.id}: configuration error: {e}")
            return ResolutionFailure(task.id, UnschedulableReason.CONFIGURATION, str(e))

    def _resolve_for_team(self, task: Task, team: TeamConfig) -> Resolution:
        daily = team.daily_capacity(self.working_days_per_week)
        unit = team.capacity_unit

        quantity, scenario, divergences = self._quantity(task, team)
        if quantity is None or scenario is None:
            if task.remaining is not None:
                detail = "zero remaining estimate"
            elif task.estimate is not None:
                detail = "zero estimate"
            else:
                detail = "no estimate"
            return ResolutionFailure(task.id, UnschedulableReason.NO_ESTIMATE, detail)

        for divergence in divergences:
            logger.checks(f"  Warning: {divergence}")

        return EffectiveWorkload(
            quantity=quantity,
            unit=unit,
            scenario=scenario,
            duration_days=quantity / daily if daily > 0 else None,
            divergences=divergences,
        )

    def _quantity(
        self, task: Task, team: TeamConfig
    ) -> tuple[float | None, Scenario | None, list[DivergenceWarning]]:
        """Apply the resolution policy to one task, recursing into subtasks."""
        if task.remaining is not None:
            remaining = self._convert(task, task.remaining, team)
            if remaining > _EPSILON:
                return (remaining, Scenario.IN_FLIGHT, [])
            return (None, None, [])

        divergences: list[DivergenceWarning] = []
        subtask_sum = 0.0
        for child in self.backlog.children_of(task.id):
            if child.finished or child.milestone:
                continue
            child_quantity, _, child_divergences = self._quantity(child, team)
            divergences.extend(child_divergences)
            if child_quantity is not None:
                subtask_sum += child_quantity

        parent_quantity = None
        if task.estimate is not None:
            parent_quantity = self._convert(task, task.estimate, team)

        if subtask_sum > _EPSILON:
            if parent_quantity is not None and parent_quantity > _EPSILON:
                divergence = self._check_divergence(task, parent_quantity, subtask_sum, team)
                if divergence is not None:
                    divergences.append(divergence)
            return (subtask_sum, Scenario.SUBTASK_ROLLUP, divergences)

        if parent_quantity is not None and parent_quantity > _EPSILON:
            return (parent_quantity, Scenario.PARENT_LEVEL, divergences)

        return (None, None, divergences)

    def _convert(self, task: Task, estimate: Estimate, team: TeamConfig) -> float:
        try:
            return team.to_capacity_units(estimate, self.working_days_per_week)
        except ConfigurationError as e:
            raise ConfigurationError(f"Task {task.id}: {e}", task_id=task.id) from e

    def _check_divergence(
        self, task: Task, parent_quantity: float, subtask_sum: float, team: TeamConfig
    ) -> DivergenceWarning | None:
        gap = abs(subtask_sum - parent_quantity) / parent_quantity
        if gap <= self.divergence_tolerance + _EPSILON:
            return None
        return DivergenceWarning(
            task_id=task.id,
            parent_quantity=parent_quantity,
            subtask_quantity=subtask_sum,
            unit=team.capacity_unit,
            tolerance=self.divergence_tolerance,
        )

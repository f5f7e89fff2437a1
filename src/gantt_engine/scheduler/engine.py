"""Dependency-ordered, capacity-leveled scheduling engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import TYPE_CHECKING

from gantt_engine.exceptions import ConfigurationError
from gantt_engine.logger import get_logger

from .assembler import ScheduleResultAssembler
from .config import SchedulingConfig
from .core import (
    EffectiveWorkload,
    ResolutionFailure,
    Scenario,
    ScheduleEntry,
    SchedulingResult,
    UnschedulableReason,
    UnschedulableTask,
)
from .graph import DependencyGraph
from .ledger import EPSILON, CapacityLedger

if TYPE_CHECKING:
    from gantt_engine.models import Backlog, Task
    from gantt_engine.teams import TeamConfig

    from .assignment import TeamAssigner
    from .calendar import WorkingCalendar
    from .estimation import EstimationResolver

logger = get_logger()


def _default_releases() -> dict[str, date]:
    return {}


def _default_failed() -> set[str]:
    return set()


def _default_cursors() -> dict[str, date]:
    return {}


@dataclass
class _RunState:
    """Mutable state owned by a single ``run()`` call."""

    graph: DependencyGraph
    ledger: CapacityLedger
    assembler: ScheduleResultAssembler = field(default_factory=ScheduleResultAssembler)
    # Earliest date a dependent may start, per scheduled task
    releases: dict[str, date] = field(default_factory=_default_releases)
    failed: set[str] = field(default_factory=_default_failed)
    # Per team: every working day before this one is fully booked
    cursors: dict[str, date] = field(default_factory=_default_cursors)


class SchedulingEngine:
    """Schedules root tasks in dependency order against team capacity.

    For each task, in topological order:
    1. Skip done tasks; cascade failures from unschedulable dependencies
    2. Resolve the owning team and the effective workload
    3. Compute the earliest start from the project start, the task's own
       ``start_after`` and its dependencies' release dates
    4. Walk working days from the earliest start, taking what the team has
       left each day and spilling the rest into the next day, until the work
       is allocated or the period guard trips
    5. Commit a ScheduleEntry

    Structural errors (cycles, unknown references) propagate out of
    ``run()``; everything else becomes an UnschedulableTask.
    """

    def __init__(  # noqa: PLR0913 - Collaborators are injected for testability
        self,
        backlog: Backlog,
        teams: dict[str, TeamConfig],
        assigner: TeamAssigner,
        resolver: EstimationResolver,
        calendar: WorkingCalendar,
        project_start: date,
        config: SchedulingConfig | None = None,
    ) -> None:
        self.backlog = backlog
        self.teams = teams
        self.assigner = assigner
        self.resolver = resolver
        self.calendar = calendar
        self.project_start = project_start
        self.config = config or SchedulingConfig()
        self._daily_capacity: dict[str, float] = {}

    def build_graph(self) -> DependencyGraph:
        """Build the precedence graph over root tasks.

        Raises:
            CyclicDependencyError: If root-level dependencies form a cycle
            MissingReferenceError: If a dependency id does not exist
        """
        roots = self.backlog.roots()
        return DependencyGraph.build(
            [root.id for root in roots],
            {root.id: self.backlog.lifted_dependencies(root.id) for root in roots},
            {root.id: root.rank for root in roots},
        )

    def create_ledger(self) -> CapacityLedger:
        """Create an empty ledger backed by this engine's teams and calendar."""
        return CapacityLedger(self._capacity_for)

    def run(self, ledger: CapacityLedger | None = None) -> SchedulingResult:
        """Run one scheduling pass.

        Args:
            ledger: Optional empty ledger to allocate into (lets callers inspect
                allocations afterwards). A new one is created when omitted.

        Raises:
            CyclicDependencyError: If root-level dependencies form a cycle
            ValueError: If the given ledger already holds allocations
        """
        if ledger is None:
            ledger = self.create_ledger()
        elif ledger.entries():
            raise ValueError("Capacity ledger already holds allocations from another run")

        graph = self.build_graph()
        order = graph.topological_order()
        state = _RunState(graph=graph, ledger=ledger)

        logger.changes(f"Scheduling {len(order)} tasks from {self.project_start}")
        for task_id in order:
            self._schedule_task(self.backlog.get(task_id), state)

        return state.assembler.assemble()

    def _capacity_for(self, team_id: str, day: date) -> float:
        """Full capacity of a team on a day; zero on non-working/unavailable days."""
        team = self.teams[team_id]
        if not self.calendar.is_working_day(day) or team.is_unavailable(day):
            return 0.0
        if team_id not in self._daily_capacity:
            self._daily_capacity[team_id] = team.daily_capacity(self.calendar.working_days_per_week)
        return self._daily_capacity[team_id]

    def _fail(
        self, state: _RunState, task_id: str, reason: UnschedulableReason, detail: str
    ) -> None:
        item = UnschedulableTask(task_id=task_id, reason=reason, detail=detail)
        state.failed.add(task_id)
        state.assembler.add_unschedulable(item)
        logger.checks(f"  Unschedulable: {item}")

    def _schedule_task(self, task: Task, state: _RunState) -> None:  # noqa: PLR0911 - One exit per outcome
        if task.finished:
            logger.checks(f"  Skipping task {task.id}: {'done' if task.done else 'no remaining work'}")
            return

        dependencies = state.graph.dependencies_of(task.id)
        blockers = [dep_id for dep_id in dependencies if dep_id in state.failed]
        if blockers and self.config.propagate_unschedulable:
            self._fail(
                state,
                task.id,
                UnschedulableReason.BLOCKED_BY_DEPENDENCY,
                f"depends on unschedulable: {', '.join(blockers)}",
            )
            return

        team_id: str | None = None
        assignment = self.assigner.assign(task)
        if isinstance(assignment, ResolutionFailure):
            if not task.milestone:
                self._fail(state, task.id, assignment.reason, assignment.detail)
                return
        else:
            team_id = assignment

        team = self.teams.get(team_id) if team_id is not None else None
        resolution = self.resolver.resolve(task, team)
        if isinstance(resolution, ResolutionFailure):
            self._fail(state, task.id, resolution.reason, resolution.detail)
            return
        state.assembler.add_divergences(resolution.divergences)

        earliest = self._earliest_start(task, dependencies, state)
        nominal = "-" if resolution.duration_days is None else f"{resolution.duration_days:.1f}"
        logger.checks(
            f"Considering task {task.id} (team={team_id}, rank={task.rank}, "
            f"scenario={resolution.scenario.value}, earliest={earliest}, nominal_days={nominal})"
        )

        if resolution.scenario == Scenario.MILESTONE:
            entry = self._place_milestone(task, team_id, earliest, state)
        else:
            assert team_id is not None and team is not None
            try:
                entry = self._allocate(task, team_id, team, resolution, earliest, state)
            except ConfigurationError as e:
                self._fail(state, task.id, UnschedulableReason.CONFIGURATION, str(e))
                return
            if entry is None:
                return
            state.releases[task.id] = self.calendar.following_working_day(entry.end_date)

        state.assembler.add_entry(entry)
        logger.changes(
            f"Scheduled task {task.id} on {entry.team or 'no team'}: "
            f"{entry.start_date} -> {entry.end_date} "
            f"({entry.duration_days} working days, {entry.scenario.value})"
        )

    def _earliest_start(self, task: Task, dependencies: list[str], state: _RunState) -> date:
        """Latest of project start, the task's own constraint and dependency releases."""
        candidates = [self.project_start]
        if task.start_after is not None:
            candidates.append(task.start_after)
        candidates.extend(state.releases[dep_id] for dep_id in dependencies if dep_id in state.releases)
        return max(candidates)

    def _place_milestone(
        self, task: Task, team_id: str | None, earliest: date, state: _RunState
    ) -> ScheduleEntry:
        anchor = max(earliest, task.target_date) if task.target_date else earliest
        day = self.calendar.next_working_day(anchor)
        if task.target_date is not None and day > task.target_date:
            message = f"Milestone '{task.id}' target {task.target_date} missed; reached on {day}"
            state.assembler.add_warning(message)
            logger.checks(f"  Warning: {message}")

        state.releases[task.id] = day
        return ScheduleEntry(
            task_id=task.id,
            start_date=day,
            end_date=day,
            duration_days=0,
            team=team_id,
            scenario=Scenario.MILESTONE,
            milestone=True,
        )

    def _allocate(  # noqa: PLR0913 - Allocation needs the full task context
        self,
        task: Task,
        team_id: str,
        team: TeamConfig,
        workload: EffectiveWorkload,
        earliest: date,
        state: _RunState,
    ) -> ScheduleEntry | None:
        """Greedily consume team capacity day by day, spilling over as needed.

        Returns:
            The committed entry, or None if the period guard tripped (the
            task's tentative allocations are rolled back and it is reported)
        """
        concurrency_cap: float | None = None
        if task.max_concurrency is not None:
            if task.max_concurrency <= 0:
                raise ConfigurationError(
                    f"Task {task.id} has non-positive max_concurrency {task.max_concurrency}",
                    task_id=task.id,
                )
            member_capacity = team.member_daily_capacity(self.calendar.working_days_per_week)
            concurrency_cap = task.max_concurrency * member_capacity

        ledger = state.ledger
        work_left = workload.quantity
        allocations: list[tuple[date, float]] = []
        day = self.calendar.next_working_day(max(earliest, state.cursors.get(team_id, earliest)))
        # Only days without any capacity count toward the guard; fully booked
        # days are finite, so the walk always reaches free capacity
        empty_periods = 0

        while work_left > EPSILON:
            if ledger.capacity(team_id, day) <= EPSILON:
                empty_periods += 1
                if empty_periods >= self.config.max_periods:
                    for period, amount in allocations:
                        ledger.rollback(team_id, period, amount)
                    self._fail(
                        state,
                        task.id,
                        UnschedulableReason.CAPACITY_EXHAUSTED,
                        f"{work_left:g} {team.capacity_unit.value} still unallocated after "
                        f"{self.config.max_periods} periods without capacity on team '{team_id}'",
                    )
                    return None
            else:
                available = ledger.remaining(team_id, day)
                if concurrency_cap is not None:
                    available = min(available, concurrency_cap)
                amount = min(available, work_left)

                if amount > EPSILON and ledger.allocate(team_id, day, amount):
                    allocations.append((day, amount))
                    work_left -= amount
                    logger.debug(
                        f"      {day}: {task.id} takes {amount:g} from {team_id}, "
                        f"{max(work_left, 0.0):g} left"
                    )

            if work_left > EPSILON:
                day = self.calendar.following_working_day(day)

        self._advance_cursor(team_id, state)
        start = allocations[0][0]
        end = allocations[-1][0]
        return ScheduleEntry(
            task_id=task.id,
            start_date=start,
            end_date=end,
            duration_days=self.calendar.count_working_days(start, end),
            team=team_id,
            scenario=workload.scenario,
            quantity=workload.quantity,
            unit=workload.unit,
        )

    def _advance_cursor(self, team_id: str, state: _RunState) -> None:
        """Move the team's cursor past working days that are now fully booked."""
        ledger = state.ledger
        day = state.cursors.get(team_id, self.calendar.next_working_day(self.project_start))
        while ledger.capacity(team_id, day) > EPSILON and ledger.remaining(team_id, day) <= EPSILON:
            day = self.calendar.following_working_day(day)
        state.cursors[team_id] = day

"""High-level scheduling service."""

from __future__ import annotations

from typing import TYPE_CHECKING

from gantt_engine.exceptions import ValidationError
from gantt_engine.models import Backlog

from .assignment import TeamAssigner
from .calendar import WorkingCalendar
from .engine import SchedulingEngine
from .estimation import EstimationResolver

if TYPE_CHECKING:
    from gantt_engine.teams import TeamConfig

    from .core import ProjectInput, SchedulingResult


class SchedulingService:
    """Wires the scheduling components together for one project.

    This service coordinates:
    - Backlog (hierarchy normalization and reference checks)
    - TeamAssigner (team resolution per scheduling unit)
    - EstimationResolver (effective workload per unit)
    - SchedulingEngine (ordering, capacity leveling, date assignment)

    Every ``schedule()`` call builds fresh collaborators, so repeated calls
    are independent runs over the same read-only input.
    """

    def __init__(self, project: ProjectInput) -> None:
        self.project = project

    def _team_index(self) -> dict[str, TeamConfig]:
        teams: dict[str, TeamConfig] = {}
        for team in self.project.teams:
            if team.id in teams:
                raise ValidationError(f"Duplicate team id: {team.id}")
            teams[team.id] = team
        return teams

    def create_engine(self) -> SchedulingEngine:
        """Build an engine over freshly indexed project input.

        Raises:
            ValidationError: On duplicate ids or broken task references
        """
        project = self.project
        backlog = Backlog(project.tasks)
        teams = self._team_index()
        calendar = WorkingCalendar(project.calendar)
        assigner = TeamAssigner(backlog, teams, project.assignment)
        resolver = EstimationResolver(
            backlog,
            calendar.working_days_per_week,
            divergence_tolerance=project.config.divergence_tolerance,
        )
        return SchedulingEngine(
            backlog,
            teams,
            assigner,
            resolver,
            calendar,
            project.project_start,
            project.config,
        )

    def validate(self) -> list[str]:
        """Check structure only and return root task ids in scheduling order.

        Raises:
            ValidationError: On duplicates, unknown references or cycles
        """
        return self.create_engine().build_graph().topological_order()

    def schedule(self) -> SchedulingResult:
        """Schedule the project.

        Raises:
            ValidationError: On structural errors; no partial result exists
        """
        return self.create_engine().run()


def schedule_project(project: ProjectInput) -> SchedulingResult:
    """Schedule a project in one call."""
    return SchedulingService(project).schedule()

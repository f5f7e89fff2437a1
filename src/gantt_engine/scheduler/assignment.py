"""Team assignment for scheduling units."""

from __future__ import annotations

from typing import TYPE_CHECKING

from gantt_engine.logger import get_logger

from .core import ResolutionFailure, UnschedulableReason

if TYPE_CHECKING:
    from gantt_engine.models import Backlog, Task
    from gantt_engine.teams import AssignmentRules, TeamConfig

logger = get_logger()


class TeamAssigner:
    """Resolves exactly one owning team per scheduling unit.

    Priority order for a single task:
    1. Explicit ``team`` field
    2. Label mapping (several labels mapping to different teams is shared
       ownership and therefore an error)
    3. First title pattern that matches

    A root task without its own team takes the single team used by its
    subtasks. Subtasks owned by another team than their root are rejected:
    cross-team work must be split into separate root tasks.
    """

    def __init__(
        self,
        backlog: Backlog,
        teams: dict[str, TeamConfig],
        rules: AssignmentRules,
    ) -> None:
        self.backlog = backlog
        self.teams = teams
        self.rules = rules

    def team_for_task(
        self, task: Task, *, use_title_patterns: bool = True
    ) -> str | ResolutionFailure | None:
        """Apply the assignment rules to one task, ignoring the hierarchy.

        Returns:
            Team id, a failure for conflicting labels, or None if no rule applies
        """
        if task.team:
            return task.team

        label_teams: list[str] = []
        for label in task.labels:
            team = self.rules.labels.get(label)
            if team is not None and team not in label_teams:
                label_teams.append(team)
        if len(label_teams) > 1:
            return ResolutionFailure(
                task.id,
                UnschedulableReason.SHARED_OWNERSHIP,
                f"labels map to several teams: {', '.join(label_teams)}",
            )
        if label_teams:
            return label_teams[0]

        if not use_title_patterns:
            return None
        for title_pattern in self.rules.title_patterns:
            if title_pattern.compiled.search(task.title):
                return title_pattern.team

        return None

    def assign(self, root: Task) -> str | ResolutionFailure:
        """Resolve the owning team of a root task and validate it exists."""
        own = self.team_for_task(root)
        if isinstance(own, ResolutionFailure):
            return own

        subtask_teams: list[str] = []
        for member in self.backlog.descendants_of(root.id):
            # Subtasks inherit the root team unless they declare one explicitly
            member_team = self.team_for_task(member, use_title_patterns=own is None)
            if isinstance(member_team, ResolutionFailure):
                return ResolutionFailure(
                    root.id, member_team.reason, f"subtask {member.id}: {member_team.detail}"
                )
            if member_team is not None and member_team not in subtask_teams:
                subtask_teams.append(member_team)

        if own is None:
            if len(subtask_teams) > 1:
                return ResolutionFailure(
                    root.id,
                    UnschedulableReason.SHARED_OWNERSHIP,
                    f"subtasks are owned by several teams: {', '.join(subtask_teams)}",
                )
            if not subtask_teams:
                return ResolutionFailure(
                    root.id, UnschedulableReason.NO_TEAM, "no team rule matched"
                )
            own = subtask_teams[0]
        else:
            foreign = [team for team in subtask_teams if team != own]
            if foreign:
                return ResolutionFailure(
                    root.id,
                    UnschedulableReason.SHARED_OWNERSHIP,
                    f"owned by '{own}' but subtasks are owned by: {', '.join(foreign)}",
                )

        if own not in self.teams:
            return ResolutionFailure(
                root.id, UnschedulableReason.UNKNOWN_TEAM, f"unknown team '{own}'"
            )

        logger.debug(f"      Task {root.id} assigned to team {own}")
        return own

"""Data models for the Gantt engine."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import date
from enum import Enum

from .exceptions import CyclicDependencyError, MissingReferenceError, ValidationError

_UNIT_ALIASES = {
    "h": "hours",
    "hr": "hours",
    "hrs": "hours",
    "hour": "hours",
    "hours": "hours",
    "d": "days",
    "day": "days",
    "days": "days",
    "p": "points",
    "pt": "points",
    "pts": "points",
    "point": "points",
    "points": "points",
    "sp": "points",
}


class EstimateUnit(str, Enum):
    """Unit in which an estimate is expressed."""

    HOURS = "hours"
    DAYS = "days"  # Person-days
    POINTS = "points"


@dataclass(frozen=True)
class Estimate:
    """A raw estimate value with its unit."""

    value: float
    unit: EstimateUnit

    @classmethod
    def parse(cls, raw: str | float | Estimate, default_unit: EstimateUnit | None = None) -> Estimate:
        """Parse an estimate from a string or a bare number.

        Supported formats:
        - "40h", "40 hours" - hours
        - "3d", "2.5 days" - person-days
        - "5p", "5pt", "8 points", "3sp" - story points
        - 12 - bare number, requires default_unit
        """
        if isinstance(raw, Estimate):
            return raw
        if isinstance(raw, bool):
            raise ValueError(f"Invalid estimate: {raw!r}")
        if isinstance(raw, (int, float)):
            if default_unit is None:
                raise ValueError(f"Estimate {raw!r} has no unit")
            return cls(value=float(raw), unit=default_unit)

        text = raw.strip().lower()
        match = re.match(r"^(-?[\d.]+)\s*([a-z]*)$", text)
        if not match:
            raise ValueError(f"Invalid estimate: {raw!r}")

        value, suffix = match.groups()
        try:
            number = float(value)
        except ValueError:
            raise ValueError(f"Invalid estimate: {raw!r}") from None

        if not suffix:
            if default_unit is None:
                raise ValueError(f"Estimate {raw!r} has no unit")
            return cls(value=number, unit=default_unit)

        unit_name = _UNIT_ALIASES.get(suffix)
        if unit_name is None:
            raise ValueError(f"Unknown estimate unit '{suffix}' in {raw!r}")
        return cls(value=number, unit=EstimateUnit(unit_name))

    def __str__(self) -> str:
        """Return a compact representation, e.g. ``40h`` or ``5pt``."""
        suffix = {EstimateUnit.HOURS: "h", EstimateUnit.DAYS: "d", EstimateUnit.POINTS: "pt"}
        number = int(self.value) if self.value == int(self.value) else self.value
        return f"{number}{suffix[self.unit]}"


def _default_str_list() -> list[str]:
    return []


@dataclass(frozen=True)
class Task:
    """A normalized backlog item, read-only input to the engine."""

    id: str
    title: str = ""
    estimate: Estimate | None = None
    remaining: Estimate | None = None  # Remaining-estimate override for in-flight work
    dependencies: list[str] = field(default_factory=_default_str_list)
    team: str | None = None  # Explicit team field
    labels: list[str] = field(default_factory=_default_str_list)
    parent: str | None = None
    subtasks: list[str] = field(default_factory=_default_str_list)
    max_concurrency: int | None = None  # Parallel workers allowed on this task
    milestone: bool = False
    target_date: date | None = None  # Milestones only
    rank: int | None = None  # Lower rank schedules first
    done: bool = False
    start_after: date | None = None

    @property
    def finished(self) -> bool:
        """Marked done, or in flight with no remaining work."""
        return self.done or (self.remaining is not None and self.remaining.value == 0)


class Backlog:
    """Indexed, validated view over a list of tasks and their hierarchy.

    Parent links may be given from either end (``parent`` on the child or
    ``subtasks`` on the parent); both are merged here without mutating the
    tasks. Only root tasks (no parent) are scheduling units.
    """

    def __init__(self, tasks: list[Task]):
        self.tasks = list(tasks)
        self.by_id: dict[str, Task] = {}
        self._position: dict[str, int] = {}
        for position, task in enumerate(self.tasks):
            if task.id in self.by_id:
                raise ValidationError(f"Duplicate task id: {task.id}")
            self.by_id[task.id] = task
            self._position[task.id] = position

        self._parent: dict[str, str] = {}
        self._children: dict[str, list[str]] = {task.id: [] for task in self.tasks}
        self._resolve_hierarchy()
        self._check_hierarchy_cycles()
        self._check_dependency_references()

    def _link(self, parent_id: str, child_id: str) -> None:
        existing = self._parent.get(child_id)
        if existing is not None and existing != parent_id:
            raise ValidationError(
                f"Task {child_id} has two parents: {existing} and {parent_id}"
            )
        if existing is None:
            self._parent[child_id] = parent_id
            self._children[parent_id].append(child_id)

    def _resolve_hierarchy(self) -> None:
        for task in self.tasks:
            if task.parent is not None:
                if task.parent not in self.by_id:
                    raise MissingReferenceError(task.id, task.parent)
                self._link(task.parent, task.id)
            for child_id in task.subtasks:
                if child_id not in self.by_id:
                    raise MissingReferenceError(task.id, child_id)
                self._link(task.id, child_id)

        # Keep children in input order regardless of which end declared the link
        for children in self._children.values():
            children.sort(key=self._position.__getitem__)

    def _check_hierarchy_cycles(self) -> None:
        for task in self.tasks:
            seen: list[str] = [task.id]
            current = self._parent.get(task.id)
            while current is not None:
                if current in seen:
                    raise CyclicDependencyError(seen[seen.index(current) :])
                seen.append(current)
                current = self._parent.get(current)

    def _check_dependency_references(self) -> None:
        """Reject unknown dependencies and dependencies on the task itself or its ancestors.

        A task's ancestors only finish once the task does, so waiting on one
        is a cycle even though lifting would fold it into the same unit.
        """
        for task in self.tasks:
            for dep_id in task.dependencies:
                if dep_id not in self.by_id:
                    raise MissingReferenceError(task.id, dep_id)
                chain = [task.id]
                current: str | None = task.id
                while current is not None and current != dep_id:
                    current = self._parent.get(current)
                    if current is not None:
                        chain.append(current)
                if current == dep_id:
                    raise CyclicDependencyError(list(reversed(chain)))

    def get(self, task_id: str) -> Task:
        return self.by_id[task_id]

    def children_of(self, task_id: str) -> list[Task]:
        return [self.by_id[child_id] for child_id in self._children[task_id]]

    def root_of(self, task_id: str) -> str:
        """Walk up the hierarchy to the scheduling unit that owns a task."""
        current = task_id
        while current in self._parent:
            current = self._parent[current]
        return current

    def roots(self) -> list[Task]:
        """Get root tasks in input order."""
        return [task for task in self.tasks if task.id not in self._parent]

    def descendants_of(self, task_id: str) -> list[Task]:
        """Get all descendants of a task, depth-first in input order."""
        result: list[Task] = []
        stack = list(reversed(self._children[task_id]))
        while stack:
            child_id = stack.pop()
            result.append(self.by_id[child_id])
            stack.extend(reversed(self._children[child_id]))
        return result

    def lifted_dependencies(self, root_id: str) -> list[str]:
        """Get the root-level dependencies of a scheduling unit.

        Dependencies declared anywhere in the unit's subtree, or pointing at a
        subtask of another unit, are mapped onto root tasks. Dependencies
        inside the same unit are dropped.
        """
        members = [self.by_id[root_id], *self.descendants_of(root_id)]
        lifted: list[str] = []
        for member in members:
            for dep_id in member.dependencies:
                target = self.root_of(dep_id)
                if target != root_id and target not in lifted:
                    lifted.append(target)
        return lifted

"""Custom exceptions for the Gantt engine."""

from __future__ import annotations


class GanttEngineError(Exception):
    """Base exception for all Gantt engine errors."""

    pass


class ValidationError(GanttEngineError):
    """Raised when structural validation fails."""

    pass


class CyclicDependencyError(ValidationError):
    """Raised when the dependency graph contains a cycle.

    Fatal for the whole scheduling run: no ordering exists, so no partial
    schedule is produced.
    """

    def __init__(self, task_ids: list[str]):
        self.task_ids = list(task_ids)
        cycle = " -> ".join([*self.task_ids, self.task_ids[0]]) if self.task_ids else ""
        super().__init__(f"Circular dependency detected: {cycle}")


class MissingReferenceError(ValidationError):
    """Raised when a task depends on an identifier that does not exist."""

    def __init__(self, task_id: str, missing_id: str):
        self.task_id = task_id
        self.missing_id = missing_id
        super().__init__(f"Task {task_id} depends on unknown task: {missing_id}")


class ConfigurationError(GanttEngineError):
    """Raised for bad team/estimate configuration affecting a single task.

    The scheduling engine catches this and reports the task as unschedulable
    instead of aborting the run.
    """

    def __init__(self, message: str, task_id: str | None = None):
        self.task_id = task_id
        super().__init__(message)


class ParseError(GanttEngineError):
    """Raised when a project file cannot be parsed."""

    pass

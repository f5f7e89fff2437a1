"""Aggregation of per-task scheduling outcomes."""

from __future__ import annotations

from .core import DivergenceWarning, ScheduleEntry, SchedulingResult, UnschedulableTask


class ScheduleResultAssembler:
    """Collects entries, unschedulable tasks and warnings in processing order."""

    def __init__(self) -> None:
        self._entries: list[ScheduleEntry] = []
        self._unschedulable: list[UnschedulableTask] = []
        self._divergences: list[DivergenceWarning] = []
        self._warnings: list[str] = []

    def add_entry(self, entry: ScheduleEntry) -> None:
        self._entries.append(entry)

    def add_unschedulable(self, item: UnschedulableTask) -> None:
        self._unschedulable.append(item)

    def add_divergences(self, divergences: list[DivergenceWarning]) -> None:
        self._divergences.extend(divergences)

    def add_warning(self, message: str) -> None:
        self._warnings.append(message)

    def assemble(self) -> SchedulingResult:
        return SchedulingResult(
            entries=list(self._entries),
            unschedulable=list(self._unschedulable),
            divergences=list(self._divergences),
            warnings=list(self._warnings),
        )

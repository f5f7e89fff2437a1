"""Dependency graph construction, cycle detection and ordering."""

from __future__ import annotations

import heapq
from collections.abc import Mapping, Sequence

from gantt_engine.exceptions import CyclicDependencyError, MissingReferenceError, ValidationError

# DFS node states
_UNVISITED = 0
_VISITING = 1
_VISITED = 2


class DependencyGraph:
    """Precedence graph over tasks, stored as an index arena.

    Node ``i`` is ``ids[i]``. ``dependents[i]`` lists the nodes that must wait
    for node ``i``; ``dependencies[i]`` the nodes node ``i`` waits for. Both
    adjacency lists hold indices, never task objects.
    """

    def __init__(self, ids: Sequence[str], ranks: Sequence[int | None] | None = None) -> None:
        self.ids: list[str] = list(ids)
        self.index: dict[str, int] = {}
        for position, task_id in enumerate(self.ids):
            if task_id in self.index:
                raise ValidationError(f"Duplicate task id: {task_id}")
            self.index[task_id] = position
        self.ranks: list[int | None] = list(ranks) if ranks is not None else [None] * len(self.ids)
        if len(self.ranks) != len(self.ids):
            raise ValueError("ranks must have one entry per task id")
        self.dependents: list[list[int]] = [[] for _ in self.ids]
        self.dependencies: list[list[int]] = [[] for _ in self.ids]

    @classmethod
    def build(
        cls,
        ids: Sequence[str],
        dependencies: Mapping[str, Sequence[str]],
        ranks: Mapping[str, int | None] | None = None,
    ) -> DependencyGraph:
        """Build and validate a graph.

        Args:
            ids: Task ids in input order (defines the tie-break order)
            dependencies: task id -> ids it depends on
            ranks: Optional task id -> rank (lower schedules first)

        Raises:
            MissingReferenceError: If a dependency id is not in ``ids``
            CyclicDependencyError: If the dependencies contain a cycle
        """
        rank_list = [ranks.get(task_id) for task_id in ids] if ranks else None
        graph = cls(ids, rank_list)
        for task_id in ids:
            for dep_id in dependencies.get(task_id, ()):
                graph.add_edge(dep_id, task_id)
        graph.check_acyclic()
        return graph

    def add_edge(self, dependency_id: str, dependent_id: str) -> None:
        """Record that ``dependent_id`` cannot start before ``dependency_id`` ends."""
        if dependency_id not in self.index:
            raise MissingReferenceError(dependent_id, dependency_id)
        if dependent_id not in self.index:
            raise MissingReferenceError(dependency_id, dependent_id)
        source = self.index[dependency_id]
        target = self.index[dependent_id]
        if target not in self.dependents[source]:
            self.dependents[source].append(target)
            self.dependencies[target].append(source)

    def find_cycle(self) -> list[str] | None:
        """Find one cycle using a DFS with visiting/visited marks.

        Returns:
            Task ids along the cycle in dependency order, or None if acyclic
        """
        state = [_UNVISITED] * len(self.ids)

        for root in range(len(self.ids)):
            if state[root] != _UNVISITED:
                continue

            path: list[int] = [root]
            cursors: list[int] = [0]
            state[root] = _VISITING

            while path:
                node = path[-1]
                cursor = cursors[-1]
                if cursor >= len(self.dependents[node]):
                    state[node] = _VISITED
                    path.pop()
                    cursors.pop()
                    continue

                cursors[-1] = cursor + 1
                neighbor = self.dependents[node][cursor]
                if state[neighbor] == _VISITING:
                    cycle = path[path.index(neighbor) :]
                    return [self.ids[i] for i in cycle]
                if state[neighbor] == _UNVISITED:
                    state[neighbor] = _VISITING
                    path.append(neighbor)
                    cursors.append(0)

        return None

    def check_acyclic(self) -> None:
        """Raise CyclicDependencyError naming the tasks of the first cycle found."""
        cycle = self.find_cycle()
        if cycle is not None:
            raise CyclicDependencyError(cycle)

    def _sort_key(self, node: int) -> tuple[bool, int, int]:
        rank = self.ranks[node]
        return (rank is None, rank if rank is not None else 0, node)

    def topological_order(self) -> list[str]:
        """Order tasks so that every task follows all of its dependencies.

        Among tasks that are ready at the same time, ranked tasks come first by
        ascending rank; unranked tasks follow in input order. Equal ranks keep
        input order.
        """
        in_degree = [len(deps) for deps in self.dependencies]
        ready = [self._sort_key(node) for node, degree in enumerate(in_degree) if degree == 0]
        heapq.heapify(ready)

        order: list[str] = []
        while ready:
            _, _, node = heapq.heappop(ready)
            order.append(self.ids[node])
            for dependent in self.dependents[node]:
                in_degree[dependent] -= 1
                if in_degree[dependent] == 0:
                    heapq.heappush(ready, self._sort_key(dependent))

        if len(order) != len(self.ids):
            self.check_acyclic()
        return order

    def dependencies_of(self, task_id: str) -> list[str]:
        return [self.ids[i] for i in self.dependencies[self.index[task_id]]]

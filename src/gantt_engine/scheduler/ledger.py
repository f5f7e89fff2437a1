"""Per-run team capacity bookkeeping."""

from __future__ import annotations

from collections.abc import Callable
from datetime import date

from gantt_engine.logger import get_logger

logger = get_logger()

# Floating point slack when comparing capacity amounts
EPSILON = 1e-9

CapacityFunction = Callable[[str, date], float]


class CapacityLedger:
    """Tracks consumed capacity per (team, period) for one scheduling run.

    Periods are working days. Full capacity for a period comes from
    ``capacity_fn`` and is cached on first use. The ledger only ever holds
    in-memory state; create a new instance for every run.
    """

    def __init__(self, capacity_fn: CapacityFunction) -> None:
        self._capacity_fn = capacity_fn
        self._capacity: dict[tuple[str, date], float] = {}
        self._used: dict[tuple[str, date], float] = {}

    def capacity(self, team: str, period: date) -> float:
        """Full capacity of a team for a period."""
        key = (team, period)
        if key not in self._capacity:
            self._capacity[key] = max(0.0, self._capacity_fn(team, period))
        return self._capacity[key]

    def allocated(self, team: str, period: date) -> float:
        return self._used.get((team, period), 0.0)

    def remaining(self, team: str, period: date) -> float:
        """Capacity still free for a team in a period. Pure query."""
        return max(0.0, self.capacity(team, period) - self.allocated(team, period))

    def allocate(self, team: str, period: date, amount: float) -> bool:
        """Consume capacity.

        Returns:
            True if allocated; False (ledger unchanged) if ``amount`` exceeds
            the remaining capacity
        """
        if amount < 0:
            raise ValueError(f"Cannot allocate a negative amount: {amount}")
        if amount > self.remaining(team, period) + EPSILON:
            logger.debug(
                f"      Ledger: {team} on {period} cannot take {amount:g} "
                f"(remaining {self.remaining(team, period):g})"
            )
            return False
        key = (team, period)
        self._used[key] = min(self.capacity(team, period), self._used.get(key, 0.0) + amount)
        return True

    def rollback(self, team: str, period: date, amount: float) -> None:
        """Give back capacity taken by an earlier allocation."""
        if amount < 0:
            raise ValueError(f"Cannot roll back a negative amount: {amount}")
        key = (team, period)
        used = self._used.get(key, 0.0) - amount
        if used <= EPSILON:
            self._used.pop(key, None)
        else:
            self._used[key] = used

    def entries(self) -> dict[tuple[str, date], float]:
        """Snapshot of consumed capacity keyed by (team, period)."""
        return dict(self._used)

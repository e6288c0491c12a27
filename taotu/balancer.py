"""Choice of the event manager that takes the next connection."""

from __future__ import annotations

from enum import IntEnum
from typing import Any, Sequence


class BalancerStrategy(IntEnum):
    ROUND_ROBIN = 0
    MIN_EVENTS = 1


def _load(event_manager: Any) -> int:
    amount = event_manager.eventer_amount
    return amount() if callable(amount) else amount


class Balancer:
    """Picks an event manager from a shared, live sequence.

    Round robin cycles over every manager.  The minimum-events strategy
    considers the I/O managers (every one after the first) and picks the one
    holding the fewest connections, the earliest on ties; with a single
    manager it picks that one.
    """

    def __init__(
        self,
        event_managers: Sequence[Any],
        strategy: BalancerStrategy = BalancerStrategy.MIN_EVENTS,
    ) -> None:
        self._event_managers = event_managers
        self.strategy = BalancerStrategy(strategy)
        self._cursor = 0

    def pick(self) -> Any:
        """Return the event manager chosen by the current strategy."""
        managers = self._event_managers
        if not managers:
            raise ValueError("there is no event manager to pick from")
        if self.strategy is BalancerStrategy.ROUND_ROBIN:
            self._cursor += 1
            if self._cursor >= len(managers):
                self._cursor = 0
        elif len(managers) == 1:
            self._cursor = 0
        else:
            self._cursor = min(
                range(1, len(managers)), key=lambda i: _load(managers[i])
            )
        return managers[self._cursor]
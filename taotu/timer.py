"""Ordered collection of time points and the tasks due at them."""

from __future__ import annotations

import heapq
import itertools
import threading
from typing import Callable, List, Tuple

from .time_point import TimePoint

TimeCallback = Callable[[], None]

IDLE_WAIT_MILLISECONDS = 10000


class Timer:
    """Thread-safe store of time tasks; equal times keep insertion order."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._heap: List[Tuple[int, int, TimePoint, TimeCallback]] = []
        self._counter = itertools.count()

    def add_task(self, time_point: TimePoint, task: TimeCallback) -> None:
        """Register ``task`` to run at ``time_point``."""
        with self._lock:
            heapq.heappush(
                self._heap,
                (time_point.microseconds, next(self._counter), time_point, task),
            )

    def min_wait_milliseconds(self) -> int:
        """Milliseconds until the earliest task, never negative."""
        with self._lock:
            if not self._heap:
                return IDLE_WAIT_MILLISECONDS
            duration = self._heap[0][2].milliseconds - TimePoint().milliseconds
        return max(duration, 0)

    def pop_expired(self) -> List[Tuple[TimePoint, TimeCallback]]:
        """Remove and return every task due by now, earliest first."""
        expired: List[Tuple[TimePoint, TimeCallback]] = []
        with self._lock:
            now = TimePoint()
            while self._heap and self._heap[0][2] <= now:
                _, _, time_point, task = heapq.heappop(self._heap)
                expired.append((time_point, task))
        return expired

    def __len__(self) -> int:
        with self._lock:
            return len(self._heap)
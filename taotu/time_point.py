"""Microsecond time points used by timers."""

from __future__ import annotations

import time
from functools import total_ordering
from typing import Callable, Optional

ContinueCallback = Callable[[], bool]


def now_microseconds() -> int:
    """Current wall-clock time in microseconds since the epoch."""
    return time.time_ns() // 1000


@total_ordering
class TimePoint:
    """A point in time, optionally carrying a repeat interval.

    The point is ``duration_microseconds`` after ``start`` (or after now when no
    start is given).  A repeated point remembers its duration as ``context``.
    """

    __slots__ = ("_microseconds", "_context", "_is_continue")

    def __init__(
        self,
        duration_microseconds: int = 0,
        start: Optional["TimePoint"] = None,
        repeated: bool = False,
    ) -> None:
        base = now_microseconds() if start is None else start.microseconds
        self._microseconds = base + duration_microseconds
        self._context = duration_microseconds if repeated else 0
        self._is_continue: Optional[ContinueCallback] = None

    @classmethod
    def now(cls) -> "TimePoint":
        return cls()

    @property
    def microseconds(self) -> int:
        return self._microseconds

    @property
    def milliseconds(self) -> int:
        """The time point in milliseconds, truncated toward zero."""
        us = self._microseconds
        return us // 1000 if us >= 0 else -(-us // 1000)

    @property
    def context(self) -> int:
        """Repeat interval in microseconds, or 0 for a one-shot point."""
        return self._context

    @property
    def continue_callback(self) -> Optional[ContinueCallback]:
        """Predicate deciding whether a repeated task runs again."""
        return self._is_continue if self._context != 0 else None

    def set_continue_callback(self, is_continue: Optional[ContinueCallback]) -> None:
        """Set the repeat predicate; ignored for one-shot points."""
        if self._context != 0:
            self._is_continue = is_continue

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TimePoint):
            return NotImplemented
        return self._microseconds == other._microseconds

    def __lt__(self, other: "TimePoint") -> bool:
        if not isinstance(other, TimePoint):
            return NotImplemented
        return self._microseconds < other._microseconds

    def __hash__(self) -> int:
        return hash(self._microseconds)

    def __repr__(self) -> str:
        return f"TimePoint(microseconds={self._microseconds}, context={self._context})"
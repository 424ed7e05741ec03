"""
Timestamp sources for last-write-wins sets.

A clock is any zero-argument callable returning a totally ordered
timestamp. Each replica should own its own clock. Timestamps only need
to be monotonic per replica; comparing readings from different replicas
is only as meaningful as the clocks are synchronized.
"""

from __future__ import annotations

import logging
import math
import time
from typing import Any, Callable, Protocol, runtime_checkable

from ..errors import InvalidArgument

logger = logging.getLogger(__name__)


@runtime_checkable
class Clock(Protocol):
    """Anything callable that yields the current timestamp."""

    def __call__(self) -> Any:
        ...


class SystemClock:
    """
    Wall-clock time in seconds, strictly increasing per instance.

    A reading that does not move past the previous one (a coarse timer,
    or the wall clock stepping backwards after an NTP adjustment or VM
    migration) is bumped to the next representable float above it.
    """

    def __init__(self, time_source: Callable[[], float] = time.time):
        self._time_source = time_source
        self._last: float | None = None

    def __call__(self) -> float:
        now = self._time_source()
        if self._last is not None and now <= self._last:
            if now < self._last:
                logger.warning(
                    f"Wall clock moved backwards by {self._last - now:.6f}s, continuing from {self._last}"
                )
            now = math.nextafter(self._last, math.inf)
        self._last = now
        return now


class LogicalClock:
    """
    Lamport-style integer clock.

    Every reading is one larger than the previous one. ``observe`` moves
    the counter past a timestamp seen from another replica, so later
    local writes sort after it.
    """

    def __init__(self, start: int = 0):
        if start < 0:
            raise InvalidArgument(f"Logical clock must start at a non-negative value, got {start}")
        self._counter = start

    @property
    def current(self) -> int:
        """The last timestamp handed out or observed."""
        return self._counter

    def __call__(self) -> int:
        self._counter += 1
        return self._counter

    def observe(self, timestamp: Any) -> None:
        """Advance past a timestamp received from a peer."""
        if timestamp is None:
            return
        if timestamp > self._counter:
            self._counter = int(timestamp)


class ManualClock:
    """Clock whose reading is set by hand. Useful for simulations and tests."""

    def __init__(self, now: Any = 0):
        self._now = now

    def __call__(self) -> Any:
        return self._now

    def set(self, now: Any) -> None:
        self._now = now

    def advance(self, delta: Any = 1) -> Any:
        self._now += delta
        return self._now


__all__ = [
    "Clock",
    "SystemClock",
    "LogicalClock",
    "ManualClock",
]

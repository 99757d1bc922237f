"""Monotonic millisecond clock and interval gating for the sampling loop."""

import time
from collections.abc import Callable


class ClockSource:
    """Monotonic timestamps in whole milliseconds.

    Wall-clock adjustments never move this clock backwards, so differences
    between two readings are always >= 0.
    """

    def __init__(self, monotonic: Callable[[], float] = time.monotonic) -> None:
        self._monotonic = monotonic

    def now_ms(self) -> int:
        """Return the current monotonic time in milliseconds."""
        return int(self._monotonic() * 1000)


class IntervalTimer:
    """Tracks when a periodic job last ran and whether it is due again.

    A fresh timer is due immediately.
    """

    def __init__(self, interval_ms: int) -> None:
        if interval_ms <= 0:
            raise ValueError(f"interval_ms must be > 0, got {interval_ms}")
        self.interval_ms = interval_ms
        self._last_ms: int | None = None

    @property
    def last_ms(self) -> int | None:
        """Timestamp of the last run, or None if never run."""
        return self._last_ms

    def due(self, now_ms: int) -> bool:
        """Return True if at least one interval has passed since the last run."""
        if self._last_ms is None:
            return True
        return now_ms - self._last_ms >= self.interval_ms

    def mark(self, now_ms: int) -> None:
        """Record that the job ran at now_ms."""
        self._last_ms = now_ms

    def check(self, now_ms: int) -> bool:
        """Return due(now_ms) and mark the run when it is due."""
        if not self.due(now_ms):
            return False
        self.mark(now_ms)
        return True

    def remaining_ms(self, now_ms: int) -> int:
        """Milliseconds until the timer is next due (0 if already due)."""
        if self._last_ms is None:
            return 0
        return max(0, self.interval_ms - (now_ms - self._last_ms))

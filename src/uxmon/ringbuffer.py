"""Fixed-capacity history rings for utilization series.

All series in a ring share one write cursor that advances exactly once per
push, so slot i holds the same sampling cycle for every series.
"""

from collections.abc import Sequence


class HistoryRing:
    """Ring of per-series float samples with a shared cursor.

    Series are added on demand as wider pushes arrive, up to max_series.
    A series that a push leaves out repeats its last value so every series
    stays aligned on the same cycle.
    """

    def __init__(self, capacity: int = 120, max_series: int = 128) -> None:
        if capacity < 1:
            raise ValueError(f"capacity must be >= 1, got {capacity}")
        if max_series < 1:
            raise ValueError(f"max_series must be >= 1, got {max_series}")
        self._capacity = capacity
        self._max_series = max_series
        self._slots: list[list[float]] = []
        self._cursor = 0
        self._filled = 0

    def __len__(self) -> int:
        """Return number of cycles currently held (at most capacity)."""
        return self._filled

    @property
    def capacity(self) -> int:
        """Return the window length W."""
        return self._capacity

    @property
    def cursor(self) -> int:
        """Slot the next push will write."""
        return self._cursor

    @property
    def series_count(self) -> int:
        """Return number of tracked series."""
        return len(self._slots)

    def _ensure_series(self, count: int) -> None:
        count = min(count, self._max_series)
        while len(self._slots) < count:
            self._slots.append([0.0] * self._capacity)

    def _last(self, index: int) -> float:
        if self._filled == 0:
            return 0.0
        return self._slots[index][(self._cursor - 1) % self._capacity]

    def push(self, values: Sequence[float]) -> None:
        """Write one cycle of values and advance the shared cursor."""
        self._ensure_series(len(values))
        for i, slot in enumerate(self._slots):
            slot[self._cursor] = float(values[i]) if i < len(values) else self._last(i)
        self._cursor = (self._cursor + 1) % self._capacity
        self._filled = min(self._filled + 1, self._capacity)

    def series(self, index: int) -> list[float]:
        """Return one series oldest-first.

        Unknown indexes return an empty list.
        """
        if index < 0 or index >= len(self._slots):
            return []
        slot = self._slots[index]
        start = (self._cursor - self._filled) % self._capacity
        return [slot[(start + k) % self._capacity] for k in range(self._filled)]

    def latest(self, index: int) -> float:
        """Return the most recent value of a series (0.0 before any push)."""
        if index < 0 or index >= len(self._slots):
            return 0.0
        return self._last(index)


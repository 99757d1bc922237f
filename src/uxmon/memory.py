"""System memory counters from /proc/meminfo."""

from dataclasses import dataclass
from pathlib import Path

import structlog

from uxmon.procfs import PROC_ROOT, read_meminfo
from uxmon.ringbuffer import HistoryRing

log = structlog.get_logger()


@dataclass(frozen=True)
class MemoryCounters:
    """Memory counters in kB. All zero means the source was unreadable."""

    total_kb: int = 0
    free_kb: int = 0
    available_kb: int = 0

    @property
    def used_kb(self) -> int:
        """Memory not available to new allocations."""
        return max(0, self.total_kb - self.available_kb)

    @property
    def used_fraction(self) -> float:
        """used_kb / total_kb, or 0.0 when total is unknown."""
        if self.total_kb <= 0:
            return 0.0
        return min(1.0, self.used_kb / self.total_kb)

    @property
    def known(self) -> bool:
        """False when the reading fell back to zeros."""
        return self.total_kb > 0


class MemoryCounterReader:
    """Reads MemTotal, MemFree and MemAvailable."""

    def __init__(self, proc_root: Path = PROC_ROOT) -> None:
        self.proc_root = proc_root

    def read(self) -> MemoryCounters:
        """Return current counters, or all zeros on any read or parse failure."""
        info = read_meminfo(self.proc_root)
        if info is None:
            log.debug("meminfo_read_failed", proc_root=str(self.proc_root))
            return MemoryCounters()
        try:
            return MemoryCounters(
                total_kb=info["MemTotal"],
                free_kb=info["MemFree"],
                available_kb=info["MemAvailable"],
            )
        except KeyError as e:
            log.debug("meminfo_field_missing", field=str(e))
            return MemoryCounters()


class MemoryHistory:
    """Used-memory fraction over the last W sampling cycles."""

    def __init__(self, reader: MemoryCounterReader, history_window: int = 120) -> None:
        self.reader = reader
        self.ring = HistoryRing(capacity=history_window, max_series=1)
        self._last = MemoryCounters()

    @property
    def last(self) -> MemoryCounters:
        """Counters from the most recent push."""
        return self._last

    def push(self) -> MemoryCounters:
        """Read counters and append the used fraction to history."""
        self._last = self.reader.read()
        self.ring.push([self._last.used_fraction])
        return self._last

    def values(self) -> list[float]:
        """History oldest-first."""
        return self.ring.series(0)

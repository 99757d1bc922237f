"""CPU utilization sampling from cumulative kernel tick counters."""

from dataclasses import dataclass, field
from pathlib import Path

import structlog

from uxmon.procfs import PROC_ROOT, read_cpu_lines
from uxmon.ringbuffer import HistoryRing

log = structlog.get_logger()

AGGREGATE_LABEL = "cpu"


@dataclass(frozen=True)
class CpuTotals:
    """Cumulative tick counters for one cpu line of /proc/stat."""

    user: int = 0
    nice: int = 0
    system: int = 0
    idle: int = 0
    iowait: int = 0
    irq: int = 0
    softirq: int = 0
    steal: int = 0

    @classmethod
    def from_counters(cls, counters: tuple[int, ...]) -> "CpuTotals":
        """Build from a counter tuple in /proc/stat order."""
        padded = tuple(counters) + (0,) * (8 - len(counters))
        return cls(*padded[:8])

    @property
    def total(self) -> int:
        """Sum of all eight counters."""
        return (
            self.user
            + self.nice
            + self.system
            + self.idle
            + self.iowait
            + self.irq
            + self.softirq
            + self.steal
        )


ZERO_TOTALS = CpuTotals()


def utilization(prev: CpuTotals, cur: CpuTotals) -> float:
    """Fraction of non-idle time between two readings, in [0, 1].

    Counters that went backwards (reset, wrap, hotplug) count as zero delta,
    which makes the cycle read as 0.0 rather than negative.
    """
    delta_total = max(0, cur.total - prev.total)
    delta_idle = max(0, cur.idle - prev.idle)
    if delta_total <= 0:
        return 0.0
    value = 1.0 - delta_idle / delta_total
    return max(0.0, min(1.0, value))


def smooth(previous: float, sample: float, decay: float) -> float:
    """Exponential smoothing: decay * previous + (1 - decay) * sample."""
    return decay * previous + (1.0 - decay) * sample


def _core_index(label: str) -> int | None:
    suffix = label[len(AGGREGATE_LABEL) :]
    return int(suffix) if suffix.isdigit() else None


@dataclass
class CpuReading:
    """Smoothed utilization after one sampling cycle."""

    aggregate: float
    cores: list[float] = field(default_factory=list)
    fresh: bool = True  # False when the source was unreadable and values are frozen


class CpuCounterSampler:
    """Turns /proc/stat counters into smoothed aggregate and per-core utilization.

    Keeps the previous counters per line and a HistoryRing of smoothed
    per-core values. Call prime() once before trusting results: an unprimed
    line is diffed against zero counters, which reports load since boot.
    """

    def __init__(
        self,
        proc_root: Path = PROC_ROOT,
        history_window: int = 120,
        aggregate_decay: float = 0.8,
        core_decay: float = 0.8,
        max_cores: int = 128,
    ) -> None:
        self.proc_root = proc_root
        self.aggregate_decay = aggregate_decay
        self.core_decay = core_decay
        self.max_cores = max_cores
        self.history = HistoryRing(capacity=history_window, max_series=max_cores)
        self._prev: dict[str, CpuTotals] = {}
        self._aggregate = 0.0
        self._cores: list[float] = []
        self._primed = False

    @property
    def primed(self) -> bool:
        """True once prime() has recorded baseline counters."""
        return self._primed

    @property
    def aggregate(self) -> float:
        """Current smoothed whole-system utilization."""
        return self._aggregate

    @property
    def cores(self) -> list[float]:
        """Current smoothed per-core utilization (copy)."""
        return list(self._cores)

    @property
    def core_count(self) -> int:
        """Number of cores seen so far."""
        return len(self._cores)

    def _read(self) -> dict[str, CpuTotals] | None:
        lines = read_cpu_lines(self.proc_root)
        if lines is None:
            return None
        totals: dict[str, CpuTotals] = {}
        for label, counters in lines.items():
            if label == AGGREGATE_LABEL:
                totals[label] = CpuTotals.from_counters(counters)
                continue
            index = _core_index(label)
            if index is None or index >= self.max_cores:
                continue
            totals[label] = CpuTotals.from_counters(counters)
        return totals

    def prime(self) -> bool:
        """Record baseline counters without smoothing or history.

        Returns False when the counter source could not be read.
        """
        totals = self._read()
        if totals is None:
            log.debug("cpu_prime_failed", proc_root=str(self.proc_root))
            return False
        self._prev = totals
        for label in totals:
            index = _core_index(label)
            if index is not None and index >= len(self._cores):
                self._cores.extend([0.0] * (index + 1 - len(self._cores)))
        self._primed = True
        return True

    def sample(self) -> CpuReading:
        """Run one sampling cycle and push per-core values into history.

        An unreadable source leaves counters and smoothed values untouched,
        but still pushes the frozen values so history slots stay aligned.
        """
        totals = self._read()
        if totals is None:
            log.debug("cpu_sample_failed", proc_root=str(self.proc_root))
            self.history.push(self._cores)
            return CpuReading(aggregate=self._aggregate, cores=list(self._cores), fresh=False)

        for label, cur in totals.items():
            prev = self._prev.get(label, ZERO_TOTALS)
            value = utilization(prev, cur)
            if label == AGGREGATE_LABEL:
                self._aggregate = smooth(self._aggregate, value, self.aggregate_decay)
                continue
            index = _core_index(label)
            if index is None:
                continue
            if index >= len(self._cores):
                self._cores.extend([0.0] * (index + 1 - len(self._cores)))
            self._cores[index] = smooth(self._cores[index], value, self.core_decay)

        # Lines missing from this read keep their last counters
        self._prev.update(totals)
        self.history.push(self._cores)
        return CpuReading(aggregate=self._aggregate, cores=list(self._cores))


def read_total_ticks(proc_root: Path = PROC_ROOT) -> int | None:
    """Return the whole-system tick total from the aggregate cpu line."""
    lines = read_cpu_lines(proc_root)
    if lines is None or AGGREGATE_LABEL not in lines:
        return None
    return CpuTotals.from_counters(lines[AGGREGATE_LABEL]).total

"""Per-process snapshots with CPU% derived from tick deltas between scans."""

from dataclasses import dataclass
from pathlib import Path
from typing import Literal

import structlog

from uxmon.clock import ClockSource
from uxmon.cpu import read_total_ticks
from uxmon.procfs import (
    PROC_ROOT,
    clock_ticks,
    list_pids,
    read_comm,
    read_pid_stat,
    read_pid_status,
)

# How per-process CPU% is normalized
CpuPercentMode = Literal["wall_clock", "system_ticks"]
CPU_PERCENT_MODES: tuple[str, ...] = ("wall_clock", "system_ticks")

# Stopped, traced, zombie and dead processes are not running
NOT_RUNNING_STATES = frozenset("TtZX")

log = structlog.get_logger()


@dataclass(slots=True)
class ProcessSnapshot:
    """One process as observed in one scan.

    Snapshots are rebuilt every scan. Only suspended_by_manager carries over
    from the previous snapshot of the same pid.
    """

    pid: int
    uid: int
    command: str
    utime: int  # Cumulative user ticks
    stime: int  # Cumulative system ticks
    rss_kb: int
    nice: int
    state: str  # Single character from /proc/[pid]/stat
    running: bool
    cpu_percent: float = 0.0
    suspended_by_manager: bool = False

    @property
    def total_ticks(self) -> int:
        """utime + stime."""
        return self.utime + self.stime


def cpu_percent_wall_clock(delta_ticks: int, wall_ms: float, ticks_per_second: int) -> float:
    """CPU% of one core over a real elapsed interval.

    delta_ticks is converted to milliseconds of CPU time, then divided by the
    elapsed wall time. Multi-threaded processes can exceed 100.
    """
    if wall_ms <= 0 or delta_ticks <= 0:
        return 0.0
    delta_ms = delta_ticks * 1000.0 / ticks_per_second
    return delta_ms * 100.0 / wall_ms


def cpu_percent_system_ticks(delta_ticks: int, global_tick_delta: int) -> float:
    """CPU% as a share of all ticks the system accounted in the interval."""
    if delta_ticks <= 0:
        return 0.0
    return delta_ticks * 100.0 / max(1, global_tick_delta)


class ProcessSnapshotStore:
    """Enumerates processes and diffs them against the previous scan by pid.

    The previous set is replaced wholesale on every scan. A pid that fails
    any required read is left out of that scan entirely.
    """

    def __init__(
        self,
        proc_root: Path = PROC_ROOT,
        mode: CpuPercentMode = "wall_clock",
        max_processes: int = 32768,
        clock: ClockSource | None = None,
        ticks_per_second: int | None = None,
    ) -> None:
        if mode not in CPU_PERCENT_MODES:
            raise ValueError(
                f"Invalid cpu_percent_mode: {mode!r}. Must be one of {CPU_PERCENT_MODES}"
            )
        self.proc_root = proc_root
        self.mode = mode
        self.max_processes = max_processes
        self.clock = clock or ClockSource()
        self.ticks_per_second = ticks_per_second or clock_ticks()
        self._previous: dict[int, ProcessSnapshot] = {}
        # Governor-suspended pids that were listed but unreadable last scan
        self._held_flags: set[int] = set()
        self._last_scan_ms: int | None = None
        self._last_total_ticks: int | None = None
        self._global_tick_delta = 1

    @property
    def global_tick_delta(self) -> int:
        """System tick delta between the last two scans, always >= 1."""
        return self._global_tick_delta

    @property
    def snapshots(self) -> list[ProcessSnapshot]:
        """Snapshots from the most recent scan (unordered)."""
        return list(self._previous.values())

    def get(self, pid: int) -> ProcessSnapshot | None:
        """Return the latest snapshot for a pid, if it was seen last scan."""
        return self._previous.get(pid)

    def __len__(self) -> int:
        return len(self._previous)

    def _update_global_ticks(self) -> None:
        total = read_total_ticks(self.proc_root)
        if total is None:
            return
        if self._last_total_ticks is not None:
            self._global_tick_delta = max(1, total - self._last_total_ticks)
        self._last_total_ticks = total

    def _read_process(self, pid: int) -> ProcessSnapshot | None:
        command = read_comm(pid, self.proc_root)
        if command is None:
            return None
        stat = read_pid_stat(pid, self.proc_root)
        if stat is None:
            return None
        status = read_pid_status(pid, self.proc_root)
        if status is None:
            return None
        return ProcessSnapshot(
            pid=pid,
            uid=status.uid,
            command=command,
            utime=stat.utime,
            stime=stat.stime,
            rss_kb=status.rss_kb,
            nice=stat.nice,
            state=stat.state,
            running=stat.state not in NOT_RUNNING_STATES,
        )

    def scan(self) -> list[ProcessSnapshot]:
        """Enumerate processes, derive CPU% and replace the previous set."""
        now_ms = self.clock.now_ms()
        wall_ms = 0 if self._last_scan_ms is None else now_ms - self._last_scan_ms
        self._last_scan_ms = now_ms
        if self.mode == "system_ticks":
            self._update_global_ticks()

        current: dict[int, ProcessSnapshot] = {}
        held: set[int] = set()
        skipped = 0
        for pid in list_pids(self.proc_root):
            if len(current) >= self.max_processes:
                log.debug("process_cap_reached", max_processes=self.max_processes)
                break
            snap = self._read_process(pid)
            prev = self._previous.get(pid)
            if snap is None:
                skipped += 1
                if pid in self._held_flags or (prev is not None and prev.suspended_by_manager):
                    held.add(pid)
                continue

            if prev is not None:
                delta_ticks = max(0, snap.total_ticks - prev.total_ticks)
                if self.mode == "system_ticks":
                    snap.cpu_percent = cpu_percent_system_ticks(
                        delta_ticks, self._global_tick_delta
                    )
                else:
                    snap.cpu_percent = cpu_percent_wall_clock(
                        delta_ticks, wall_ms, self.ticks_per_second
                    )
                snap.suspended_by_manager = prev.suspended_by_manager
            elif pid in self._held_flags:
                snap.suspended_by_manager = True
            current[pid] = snap

        self._previous = current
        self._held_flags = held
        log.debug("scan_complete", processes=len(current), skipped=skipped, wall_ms=wall_ms)
        return list(current.values())

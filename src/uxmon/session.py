"""Single-threaded monitor session: timers, selection state and action dispatch.

The session owns every engine component and is driven either by run() with
a FrameSurface (headless loops) or by an event loop calling tick() and
dispatch() (the Textual dashboard). Nothing here touches a terminal.
"""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Protocol

import structlog

from uxmon.clock import ClockSource, IntervalTimer
from uxmon.collector import ProcessSnapshot, ProcessSnapshotStore
from uxmon.config import Config
from uxmon.control import ProcessControl
from uxmon.cpu import CpuCounterSampler
from uxmon.governor import GovernorThresholds, PriorityList, ResourceGovernor
from uxmon.memory import MemoryCounterReader, MemoryHistory
from uxmon.ordering import SortMode, sort_snapshots
from uxmon.sensors import ThermalReader

log = structlog.get_logger()


class Action(Enum):
    """Abstract user intents, independent of any key binding."""

    SELECT_NEXT = "select_next"
    SELECT_PREVIOUS = "select_previous"
    PAGE_UP = "page_up"
    PAGE_DOWN = "page_down"
    SORT_BY_CPU = "sort_by_cpu"
    SORT_BY_MEMORY = "sort_by_memory"
    TERMINATE = "terminate"
    TOGGLE_STOP = "toggle_stop"
    PRIORITY_UP = "priority_up"  # nice - 1
    PRIORITY_DOWN = "priority_down"  # nice + 1
    ADD_PRIORITY = "add_priority"
    REMOVE_PRIORITY = "remove_priority"
    TOGGLE_GOVERNOR = "toggle_governor"
    RESUME_ALL = "resume_all"
    QUIT = "quit"


class FrameSurface(Protocol):
    """Render/input collaborator for run()."""

    def render(self, session: "MonitorSession") -> None: ...

    def poll_action(self, timeout_ms: int) -> Action | None: ...


@dataclass
class TickResult:
    """Which jobs ran during one tick."""

    cpu_sampled: bool = False
    processes_scanned: bool = False


class MonitorSession:
    """Wires sampler, store, governor and control together.

    CPU sampling and process scanning run on independent timers. The
    governor runs right after every process scan.
    """

    def __init__(
        self,
        config: Config | None = None,
        clock: ClockSource | None = None,
        control: ProcessControl | None = None,
        thermal: ThermalReader | None = None,
    ) -> None:
        self.config = config or Config()
        sampling = self.config.sampling
        processes = self.config.processes
        gov = self.config.governor
        proc_root = Path(processes.proc_root)

        self.clock = clock or ClockSource()
        self.cpu = CpuCounterSampler(
            proc_root=proc_root,
            history_window=sampling.history_window,
            aggregate_decay=sampling.aggregate_decay,
            core_decay=sampling.core_decay,
            max_cores=sampling.max_cores,
        )
        self.memory = MemoryHistory(MemoryCounterReader(proc_root), sampling.history_window)
        self.thermal = thermal or ThermalReader(
            sys_root=Path(self.config.sensors.sys_root),
            decay=self.config.sensors.temperature_decay,
        )
        self.store = ProcessSnapshotStore(
            proc_root=proc_root,
            mode=processes.cpu_percent_mode,  # type: ignore[arg-type]
            max_processes=processes.max_processes,
            clock=self.clock,
        )
        self.control = control or ProcessControl(terminate_grace=processes.terminate_grace)
        self.governor = ResourceGovernor(
            self.control,
            PriorityList(gov.priority, capacity=gov.max_priority_entries),
            GovernorThresholds(cpu_percent=gov.cpu_threshold, rss_kb=gov.rss_threshold_kb),
        )
        if gov.enabled:
            self.governor.enable()

        self.cpu_timer = IntervalTimer(sampling.cpu_interval_ms)
        self.process_timer = IntervalTimer(sampling.process_interval_ms)
        self.frame_timer = IntervalTimer(sampling.frame_interval_ms)
        self.page_size = processes.page_size

        self.sort_mode = SortMode.CPU
        self.selected = 0
        self.rows: list[ProcessSnapshot] = []
        self.running = True
        self.cpu_cycles = 0
        self.scans = 0

    # ─────────────────────────────────────────────────────────────────────────
    # Sampling
    # ─────────────────────────────────────────────────────────────────────────

    def start(self) -> None:
        """Seed counters and run the first scan.

        Both timers are marked so the first real samples arrive one interval
        later, with a meaningful delta.
        """
        now = self.clock.now_ms()
        self.cpu.prime()
        self.memory.push()
        self.thermal.read()
        self.scan_processes()
        self.cpu_timer.mark(now)
        self.process_timer.mark(now)

    def sample_cpu(self) -> None:
        """Run one CPU cycle: counters, memory history and temperature."""
        self.cpu.sample()
        self.memory.push()
        self.thermal.read()
        self.cpu_cycles += 1

    def scan_processes(self) -> list[ProcessSnapshot]:
        """Run one process cycle followed by one governor cycle."""
        snapshots = self.store.scan()
        self.governor.manage(snapshots)
        self.scans += 1
        self._refresh_rows()
        return snapshots

    def tick(self, now_ms: int | None = None) -> TickResult:
        """Run whichever jobs are due at now_ms."""
        now = self.clock.now_ms() if now_ms is None else now_ms
        result = TickResult()
        if self.cpu_timer.check(now):
            self.sample_cpu()
            result.cpu_sampled = True
        if self.process_timer.check(now):
            self.scan_processes()
            result.processes_scanned = True
        return result

    def next_due_ms(self, now_ms: int) -> int:
        """Milliseconds until the next timer (CPU, process or frame) is due."""
        return min(
            self.cpu_timer.remaining_ms(now_ms),
            self.process_timer.remaining_ms(now_ms),
            self.frame_timer.remaining_ms(now_ms),
        )

    def run(self, surface: FrameSurface) -> int:
        """Loop tick, render and input polling until QUIT, then shut down.

        Returns the number of processes resumed on shutdown.
        """
        try:
            self.start()
            while self.running:
                now = self.clock.now_ms()
                self.tick(now)
                if self.frame_timer.check(now):
                    surface.render(self)
                action = surface.poll_action(self.next_due_ms(self.clock.now_ms()))
                if action is not None:
                    self.dispatch(action)
        finally:
            resumed = self.shutdown()
        return resumed

    def shutdown(self) -> int:
        """Resume everything the governor suspended. Returns how many."""
        self.running = False
        resumed = self.governor.disable(self.store.snapshots)
        log.info("session_stopped", resumed=resumed, scans=self.scans)
        return resumed

    # ─────────────────────────────────────────────────────────────────────────
    # Selection
    # ─────────────────────────────────────────────────────────────────────────

    def _refresh_rows(self) -> None:
        self.rows = sort_snapshots(self.store.snapshots, self.sort_mode)
        self._clamp_selection()

    def _clamp_selection(self) -> None:
        if not self.rows:
            self.selected = 0
        else:
            self.selected = max(0, min(self.selected, len(self.rows) - 1))

    @property
    def selected_process(self) -> ProcessSnapshot | None:
        """Snapshot under the selection cursor, if any."""
        if 0 <= self.selected < len(self.rows):
            return self.rows[self.selected]
        return None

    def set_sort(self, mode: SortMode) -> None:
        """Change ordering and re-sort the current rows."""
        self.sort_mode = mode
        self._refresh_rows()

    # ─────────────────────────────────────────────────────────────────────────
    # Actions
    # ─────────────────────────────────────────────────────────────────────────

    def dispatch(self, action: Action) -> bool:
        """Apply one action. Returns False once the session should quit."""
        if action is Action.QUIT:
            self.running = False
            return False

        if action is Action.SELECT_NEXT:
            self.selected += 1
        elif action is Action.SELECT_PREVIOUS:
            self.selected -= 1
        elif action is Action.PAGE_DOWN:
            self.selected += self.page_size
        elif action is Action.PAGE_UP:
            self.selected -= self.page_size
        elif action is Action.SORT_BY_CPU:
            self.set_sort(SortMode.CPU)
        elif action is Action.SORT_BY_MEMORY:
            self.set_sort(SortMode.MEMORY)
        elif action is Action.TOGGLE_GOVERNOR:
            self.governor.toggle(self.store.snapshots)
        elif action is Action.RESUME_ALL:
            self.governor.resume_all(self.store.snapshots)
        elif action is Action.REMOVE_PRIORITY:
            removed = self.governor.priority.remove_last()
            if removed is not None:
                log.info("priority_removed", name=removed)
        else:
            self._dispatch_on_selection(action)

        self._clamp_selection()
        return True

    def _dispatch_on_selection(self, action: Action) -> None:
        snap = self.selected_process
        if snap is None:
            return

        if action is Action.TERMINATE:
            self.control.terminate(snap.pid)
        elif action is Action.TOGGLE_STOP:
            new_running = self.control.toggle_stopped(snap.pid, snap.running)
            if new_running != snap.running:
                snap.running = new_running
                # The user now owns this process's stopped state
                snap.suspended_by_manager = False
        elif action is Action.PRIORITY_UP:
            applied = self.control.renice(snap.pid, -1)
            if applied is not None:
                snap.nice = applied
        elif action is Action.PRIORITY_DOWN:
            applied = self.control.renice(snap.pid, +1)
            if applied is not None:
                snap.nice = applied
        elif action is Action.ADD_PRIORITY:
            if self.governor.priority.add(snap.command):
                log.info("priority_added", name=snap.command)

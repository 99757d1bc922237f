"""Interactive dashboard for uxmon.

The dashboard owns a MonitorSession and drives it from Textual timers.
Key bindings map to session Actions; the widgets only display session state.
"""

from typing import Any

from rich.text import Text
from textual.app import App, ComposeResult
from textual.containers import Horizontal, Vertical, VerticalScroll
from textual.css.query import NoMatches
from textual.widgets import DataTable, Footer, Label, Static

from uxmon.collector import ProcessSnapshot
from uxmon.config import Config
from uxmon.formatting import format_kb, format_percent, state_name, truncate, username_for_uid
from uxmon.ordering import SortMode
from uxmon.session import Action, MonitorSession
from uxmon.tui.graph import GradientColor, HistoryGraph


def utilization_gradient(config: Config) -> GradientColor:
    """Green-yellow-red gradient over 0-1 from config colors."""
    colors = config.tui.colors.utilization
    return GradientColor([(0.0, colors.low), (0.5, colors.medium), (1.0, colors.high)])


class HeaderBar(Static):
    """Overall CPU, memory and temperature with memory history."""

    DEFAULT_CSS = """
    HeaderBar {
        height: 4;
        padding: 0 1;
        border: solid $primary;
        border-title-align: left;
    }

    HeaderBar Horizontal {
        height: 1;
        width: 100%;
    }

    HeaderBar #summary-left {
        width: auto;
    }

    HeaderBar #summary-right {
        width: 1fr;
        text-align: right;
    }
    """

    def compose(self) -> ComposeResult:
        yield Horizontal(
            Label("", id="summary-left"),
            Label("", id="summary-right"),
        )
        yield HistoryGraph(rows=1, color_func=self._color, id="memory-graph")

    def on_mount(self) -> None:
        self.border_title = "SYSTEM"

    def _color(self, value: float) -> str:
        return self.app.util_gradient(value)

    def update_from_session(self, session: MonitorSession) -> None:
        """Refresh summary text and memory graph."""
        try:
            left = self.query_one("#summary-left", Label)
            right = self.query_one("#summary-right", Label)
            graph = self.query_one("#memory-graph", HistoryGraph)
        except NoMatches:
            return

        cpu = session.cpu.aggregate
        mem = session.memory.last
        parts = [f"[{self.app.util_gradient(cpu)}]CPU {format_percent(cpu)}[/]"]
        if mem.known:
            parts.append(
                f"[{self.app.util_gradient(mem.used_fraction)}]MEM {format_kb(mem.used_kb)}"
                f"/{format_kb(mem.total_kb)} ({format_percent(mem.used_fraction)})[/]"
            )
        else:
            parts.append("MEM [dim]n/a[/]")
        if session.thermal.available:
            parts.append(f"TEMP {session.thermal.celsius:.1f}°C")
        left.update("   ".join(parts))
        right.update(f"{len(session.store)} procs   #{session.scans}")
        graph.set_series(session.memory.values())


class CoreGraphs(VerticalScroll):
    """One history graph per core, fed from the shared history ring."""

    can_focus = False

    DEFAULT_CSS = """
    CoreGraphs {
        height: 12;
        border: solid $primary;
        border-title-align: left;
    }

    CoreGraphs Horizontal {
        height: auto;
    }

    CoreGraphs Label {
        width: 12;
    }
    """

    def __init__(self, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self._count = 0

    def on_mount(self) -> None:
        self.border_title = "CORES"

    def _ensure_rows(self, count: int) -> None:
        while self._count < count:
            index = self._count
            self.mount(
                Horizontal(
                    Label("", id=f"core-label-{index}"),
                    HistoryGraph(
                        rows=self.app.config.tui.graph_height,
                        color_func=self.app.util_gradient,
                        id=f"core-graph-{index}",
                    ),
                )
            )
            self._count += 1

    def update_from_session(self, session: MonitorSession) -> None:
        """Redraw each core's label and history."""
        self._ensure_rows(session.cpu.core_count)
        cores = session.cpu.cores
        for index in range(self._count):
            try:
                label = self.query_one(f"#core-label-{index}", Label)
                graph = self.query_one(f"#core-graph-{index}", HistoryGraph)
            except NoMatches:
                continue
            value = cores[index] if index < len(cores) else 0.0
            label.update(f"cpu{index:<3} {value * 100:5.1f}%")
            graph.set_series(session.cpu.history.series(index))


class ProcessTable(Static):
    """Sorted process list with the session's selection highlighted."""

    DEFAULT_CSS = """
    ProcessTable {
        height: 1fr;
        border: solid $primary;
        border-title-align: left;
    }

    ProcessTable DataTable {
        width: 100%;
        height: 100%;
    }
    """

    def __init__(self, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self._table: DataTable | None = None

    def compose(self) -> ComposeResult:
        yield DataTable(id="process-table", zebra_stripes=True, cursor_type="row")

    def on_mount(self) -> None:
        self._table = self.query_one("#process-table", DataTable)
        # Keys go to the app bindings, not the table
        self._table.can_focus = False
        self._table.add_columns("", "PID", "User", "Command", "CPU%", "RSS", "NI", "State")

    def _state_style(self, snap: ProcessSnapshot) -> str:
        colors = self.app.config.tui.colors.process_state
        if snap.state == "R":
            return colors.running
        if snap.state in ("S", "I", "D"):
            return colors.sleeping
        if snap.state in ("T", "t"):
            return colors.stopped
        if snap.state in ("Z", "X"):
            return colors.zombie
        return colors.other

    def _make_row(self, snap: ProcessSnapshot, is_priority: bool) -> list[Text]:
        colors = self.app.config.tui.colors
        if snap.suspended_by_manager:
            marker = Text("⏸", style=colors.governor.suspended)
        elif is_priority:
            marker = Text("★", style=colors.governor.priority)
        else:
            marker = Text("")
        length = self.app.config.tui.command_truncate_length
        cpu_style = self.app.util_gradient(min(1.0, snap.cpu_percent / 100.0))
        return [
            marker,
            Text(str(snap.pid), style=colors.pid),
            Text(truncate(username_for_uid(snap.uid), 10)),
            Text(truncate(snap.command, length)),
            Text(f"{snap.cpu_percent:.1f}", style=cpu_style),
            Text(format_kb(snap.rss_kb)),
            Text(str(snap.nice)),
            Text(state_name(snap.state), style=self._state_style(snap)),
        ]

    def update_from_session(self, session: MonitorSession) -> None:
        """Rebuild rows from the session's ordering and move the cursor."""
        if not self._table:
            return
        sort_label = "CPU" if session.sort_mode is SortMode.CPU else "MEM"
        self.border_title = f"PROCESSES (by {sort_label})"
        priority = session.governor.priority
        self._table.clear()
        for snap in session.rows:
            self._table.add_row(*self._make_row(snap, priority.matches(snap.command)))
        if session.rows:
            self._table.move_cursor(row=session.selected)


class GovernorPanel(Static):
    """Governor mode, priority list and suspended processes."""

    DEFAULT_CSS = """
    GovernorPanel {
        height: 8;
        padding: 0 1;
        border: solid $primary;
        border-title-align: left;
    }
    """

    def on_mount(self) -> None:
        self.border_title = "GOVERNOR"

    def update_from_session(self, session: MonitorSession) -> None:
        """Redraw governor status."""
        colors = self.app.config.tui.colors.governor
        governor = session.governor
        if governor.enabled:
            mode = f"[{colors.enabled}]ENABLED[/]"
        else:
            mode = f"[{colors.disabled}]disabled[/]"
        names = ", ".join(governor.priority.entries) or "[dim](none, press A on a process)[/]"
        suspended = [s for s in session.store.snapshots if s.suspended_by_manager]
        suspended_text = ", ".join(f"{s.command}({s.pid})" for s in suspended[:8]) or "[dim]-[/]"
        thresholds = governor.thresholds
        self.update(
            f"Mode: {mode}   CPU > {thresholds.cpu_percent:.0f}%  or  "
            f"RSS > {format_kb(thresholds.rss_kb)}\n"
            f"Priority ({len(governor.priority)}/{governor.priority.capacity}): "
            f"[{colors.priority}]{names}[/]\n"
            f"Suspended ({len(suspended)}): [{colors.suspended}]{suspended_text}[/]"
        )


class UxmonApp(App):
    """Live CPU, memory and process dashboard with governor controls."""

    CSS = """
    Screen {
        layout: vertical;
    }

    #main-area {
        height: 1fr;
    }
    """

    BINDINGS = [
        ("j", "dispatch('select_next')", "Down"),
        ("down", "dispatch('select_next')", ""),
        ("k", "dispatch('select_previous')", "Up"),
        ("up", "dispatch('select_previous')", ""),
        ("pagedown", "dispatch('page_down')", ""),
        ("pageup", "dispatch('page_up')", ""),
        ("c", "dispatch('sort_by_cpu')", "Sort CPU"),
        ("m", "dispatch('sort_by_memory')", "Sort Mem"),
        ("K", "dispatch('terminate')", "Kill"),
        ("S", "dispatch('toggle_stop')", "Stop/Cont"),
        ("plus", "dispatch('priority_up')", "Nice-"),
        ("minus", "dispatch('priority_down')", "Nice+"),
        ("A", "dispatch('add_priority')", "Add prio"),
        ("D", "dispatch('remove_priority')", "Drop prio"),
        ("T", "dispatch('toggle_governor')", "Governor"),
        ("R", "dispatch('resume_all')", "Resume"),
        ("q", "dispatch('quit')", "Quit"),
    ]

    def __init__(self, config: Config | None = None, session: MonitorSession | None = None):
        super().__init__()
        self.config = config or Config.load()
        self.session = session or MonitorSession(self.config)
        self.util_gradient = utilization_gradient(self.config)

    def compose(self) -> ComposeResult:
        """Create the TUI layout."""
        yield HeaderBar(id="header")
        yield CoreGraphs(id="cores")
        yield Vertical(
            ProcessTable(id="processes"),
            GovernorPanel(id="governor"),
            id="main-area",
        )
        yield Footer()

    def on_mount(self) -> None:
        """Start sampling and schedule the independent timers."""
        self.title = "uxmon"
        sampling = self.config.sampling
        self.session.start()
        self.set_interval(sampling.cpu_interval_ms / 1000, self._on_cpu_timer)
        self.set_interval(sampling.process_interval_ms / 1000, self._on_process_timer)
        self.set_interval(sampling.frame_interval_ms / 1000, self._on_frame_timer)
        self.refresh_view()

    def on_unmount(self) -> None:
        """Resume governor-suspended processes on exit."""
        self.session.shutdown()

    def _on_cpu_timer(self) -> None:
        self.session.sample_cpu()

    def _on_process_timer(self) -> None:
        self.session.scan_processes()
        self._refresh_processes()

    def _on_frame_timer(self) -> None:
        try:
            self.query_one("#header", HeaderBar).update_from_session(self.session)
            self.query_one("#cores", CoreGraphs).update_from_session(self.session)
        except NoMatches:
            pass

    def _refresh_processes(self) -> None:
        try:
            self.query_one("#processes", ProcessTable).update_from_session(self.session)
            self.query_one("#governor", GovernorPanel).update_from_session(self.session)
        except NoMatches:
            pass

    def refresh_view(self) -> None:
        """Redraw every panel from session state."""
        self._on_frame_timer()
        self._refresh_processes()

    def action_dispatch(self, name: str) -> None:
        """Translate a binding into a session Action."""
        if not self.session.dispatch(Action(name)):
            self.exit()
            return
        self._refresh_processes()


def run_tui(config: Config | None = None) -> None:
    """Run the TUI application."""
    app = UxmonApp(config)
    app.run()

"""Headless governor loop for running the resource governor without a dashboard."""

import signal
import time
from pathlib import Path

import structlog

from uxmon import logging as console
from uxmon.config import Config
from uxmon.session import Action, MonitorSession

log = structlog.get_logger()


class GovernorDaemon:
    """FrameSurface that reports governor activity on the console.

    SIGINT and SIGTERM end the loop at the next poll. The session resumes
    everything the governor suspended on the way out.
    """

    def __init__(self, session: MonitorSession) -> None:
        self.session = session
        self._stop_requested = False
        self._reported: set[int] = set()

    def _handle_signal(self, signum: int, frame: object) -> None:
        """Handle shutdown signals."""
        name = signal.Signals(signum).name
        log.info("signal_received", signal=name)
        console.signal_received(name)
        self._stop_requested = True

    def render(self, session: MonitorSession) -> None:
        """Print processes newly suspended since the last frame."""
        flagged = {s.pid: s for s in session.store.snapshots if s.suspended_by_manager}
        for pid in flagged.keys() - self._reported:
            snap = flagged[pid]
            console.process_suspended(snap.command, snap.pid, snap.cpu_percent, snap.rss_kb)
        resumed = len(self._reported - flagged.keys())
        if resumed:
            console.processes_resumed(resumed)
        self._reported = set(flagged)

    def poll_action(self, timeout_ms: int) -> Action | None:
        """Sleep until the next timer is due, or quit once a signal arrived."""
        if not self._stop_requested and timeout_ms > 0:
            time.sleep(timeout_ms / 1000.0)
        if self._stop_requested:
            console.governor_stopping()
            return Action.QUIT
        return None

    def run(self) -> int:
        """Run until signalled. Returns the number of processes resumed on exit."""
        previous = {
            sig: signal.signal(sig, self._handle_signal) for sig in (signal.SIGINT, signal.SIGTERM)
        }
        self.session.governor.enable()
        console.governor_started(self.session.governor.priority.entries)
        console.priority_missing(self.session.governor.priority.entries)
        log.info(
            "governor_daemon_started",
            priority=self.session.governor.priority.entries,
            cpu_threshold=self.session.governor.thresholds.cpu_percent,
            rss_threshold_kb=self.session.governor.thresholds.rss_kb,
        )
        try:
            resumed = self.session.run(self)
        finally:
            for sig, handler in previous.items():
                signal.signal(sig, handler)
        console.governor_stopped(resumed)
        return resumed


def run_governor(
    config: Config | None = None,
    priority: list[str] | None = None,
    log_file: Path | None = None,
) -> int:
    """Run the headless governor until SIGINT/SIGTERM.

    Args:
        config: Optional config, loads from file if not provided
        priority: Names added to the configured priority list
        log_file: Optional JSON Lines log destination
    """
    if config is None:
        config = Config.load()
    console.configure(config, log_file=log_file, source="governor")

    session = MonitorSession(config)
    for name in priority or []:
        session.governor.priority.add(name)

    daemon = GovernorDaemon(session)
    try:
        return daemon.run()
    except Exception as e:
        log.exception("governor_crashed", error=str(e))
        console.error(f"Governor crashed: {e}", console.Icon.FAIL)
        raise

"""Signal and priority actions on observed processes.

All actions are fire-and-forget: the next scan is the only confirmation.
A process that vanished or that we lack permission for is logged and
otherwise ignored.
"""

import signal

import psutil
import structlog

log = structlog.get_logger()

NICE_MIN = -20
NICE_MAX = 19


def clamp_nice(value: int) -> int:
    """Clamp a nice value to the range the kernel accepts."""
    return max(NICE_MIN, min(NICE_MAX, value))


class ProcessControl:
    """Terminate, stop/continue and renice processes by pid."""

    def __init__(self, terminate_grace: float = 0.2) -> None:
        self.terminate_grace = terminate_grace

    def _signal(self, pid: int, sig: signal.Signals) -> bool:
        try:
            psutil.Process(pid).send_signal(sig)
        except psutil.NoSuchProcess:
            log.debug("signal_target_gone", pid=pid, signal=sig.name)
            return False
        except psutil.AccessDenied:
            log.debug("signal_denied", pid=pid, signal=sig.name)
            return False
        return True

    def terminate(self, pid: int) -> None:
        """Send SIGTERM, then SIGKILL if the process outlives the grace delay."""
        try:
            proc = psutil.Process(pid)
            proc.terminate()
        except psutil.NoSuchProcess:
            log.debug("terminate_target_gone", pid=pid)
            return
        except psutil.AccessDenied:
            log.debug("terminate_denied", pid=pid)
            return

        try:
            proc.wait(timeout=self.terminate_grace)
            log.info("process_terminated", pid=pid)
        except psutil.TimeoutExpired:
            try:
                proc.kill()
                log.info("process_killed", pid=pid)
            except (psutil.NoSuchProcess, psutil.AccessDenied):
                log.debug("kill_failed", pid=pid)
        except psutil.NoSuchProcess:
            log.debug("terminate_target_gone", pid=pid)

    def suspend(self, pid: int) -> bool:
        """Send SIGSTOP. Returns True if the signal was delivered."""
        return self._signal(pid, signal.SIGSTOP)

    def resume(self, pid: int) -> bool:
        """Send SIGCONT. Returns True if the signal was delivered."""
        return self._signal(pid, signal.SIGCONT)

    def toggle_stopped(self, pid: int, currently_running: bool) -> bool:
        """Stop a running process or continue a stopped one.

        Returns the running flag the caller should cache. It is unchanged
        when the signal could not be delivered.
        """
        if currently_running:
            delivered = self.suspend(pid)
            new_running = not delivered
        else:
            delivered = self.resume(pid)
            new_running = delivered
        if delivered:
            log.info("process_toggled", pid=pid, running=new_running)
        return new_running

    def renice(self, pid: int, delta: int) -> int | None:
        """Shift a process's nice value by delta, clamped to [-20, 19].

        Returns the applied value, or None when the current priority could
        not be read or the change was refused.
        """
        try:
            proc = psutil.Process(pid)
            current = proc.nice()
        except (psutil.NoSuchProcess, psutil.AccessDenied):
            log.debug("renice_read_failed", pid=pid)
            return None

        target = clamp_nice(current + delta)
        try:
            proc.nice(target)
        except psutil.NoSuchProcess:
            log.debug("renice_target_gone", pid=pid)
            return None
        except psutil.AccessDenied:
            log.debug("renice_denied", pid=pid, nice=target)
            return None
        log.info("process_reniced", pid=pid, old=current, new=target)
        return target

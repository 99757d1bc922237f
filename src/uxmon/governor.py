"""Resource governor: suspends heavy processes while a priority process runs.

The governor only ever resumes processes it suspended itself. That set is
tracked through ProcessSnapshot.suspended_by_manager, which the snapshot
store carries from scan to scan.
"""

import os
from collections.abc import Iterable, Iterator
from dataclasses import dataclass

import structlog

from uxmon.collector import ProcessSnapshot
from uxmon.control import ProcessControl

log = structlog.get_logger()

MAX_PRIORITY_ENTRIES = 10

# Substring matches against the command name. Never suspended.
CRITICAL_PROCESS_NAMES: tuple[str, ...] = (
    "systemd",
    "init",
    "kernel",
    "kthread",
    "ksoftirq",
    "kworker",
    "Xorg",
    "X",
    "wayland",
    "sway",
    "gnome-shell",
    "kwin",
    "mutter",
    "plasmashell",
    "xfwm4",
    "openbox",
    "i3",
    "dwm",
    "awesome",
    "gdm",
    "sddm",
    "lightdm",
    "login",
    "getty",
    "pulseaudio",
    "pipewire",
    "wireplumber",
    "alsa",
    "NetworkManager",
    "wpa_supplicant",
    "dhclient",
    "dhcpcd",
    "dbus",
    "dbus-daemon",
    "systemd-",
    "udevd",
    "upowerd",
    "polkitd",
    "rtkit",
    "accounts-daemon",
    "udisksd",
    "bluetoothd",
    "cupsd",
    "avahi",
    "ssh",
    "sshd",
    "cron",
    "crond",
    "atd",
    "rsyslogd",
    "syslog",
    "journald",
    "dockerd",
    "containerd",
    "kubelet",
    "libvirtd",
    "virtlogd",
    "qemu",
    "xfce4-session",
    "mate-session",
    "cinnamon-session",
    "lxsession",
    "lxqt-session",
    "gnome-session",
    "kde-session",
)


def is_system_critical(command: str) -> bool:
    """True if the command name contains any protected name."""
    return any(name in command for name in CRITICAL_PROCESS_NAMES)


class PriorityList:
    """Bounded, ordered list of command-name substrings.

    Adding an exact duplicate or adding past capacity does nothing.
    """

    def __init__(self, entries: Iterable[str] = (), capacity: int = MAX_PRIORITY_ENTRIES) -> None:
        if capacity < 1 or capacity > MAX_PRIORITY_ENTRIES:
            raise ValueError(
                f"capacity must be between 1 and {MAX_PRIORITY_ENTRIES}, got {capacity}"
            )
        self._capacity = capacity
        self._entries: list[str] = []
        for entry in entries:
            self.add(entry)

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._entries))

    @property
    def capacity(self) -> int:
        """Maximum number of entries."""
        return self._capacity

    @property
    def entries(self) -> list[str]:
        """Entries in insertion order (copy)."""
        return list(self._entries)

    def add(self, name: str) -> bool:
        """Append a name. Returns False if it was empty, a duplicate, or the list is full."""
        if not name or name in self._entries or len(self._entries) >= self._capacity:
            return False
        self._entries.append(name)
        return True

    def remove_last(self) -> str | None:
        """Drop the most recently added entry."""
        if not self._entries:
            return None
        return self._entries.pop()

    def matches(self, command: str) -> bool:
        """True if any entry is a substring of the command name."""
        return any(entry in command for entry in self._entries)


@dataclass
class GovernorThresholds:
    """A process exceeding either limit is a suspension candidate."""

    cpu_percent: float = 10.0
    rss_kb: int = 512_000  # 500 MB


class ResourceGovernor:
    """Policy loop that frees resources for priority processes.

    Disabled by default. While enabled and at least one running process
    matches the priority list, every other non-root, non-critical running
    process above a threshold gets SIGSTOP.
    """

    def __init__(
        self,
        control: ProcessControl,
        priority: PriorityList | None = None,
        thresholds: GovernorThresholds | None = None,
    ) -> None:
        self.control = control
        self.priority = priority if priority is not None else PriorityList()
        self.thresholds = thresholds or GovernorThresholds()
        # Stopping ourselves or our shell would leave nothing to resume the rest
        self.protected_pids = frozenset((os.getpid(), os.getppid()))
        self._enabled = False

    @property
    def enabled(self) -> bool:
        """Whether the policy runs each cycle."""
        return self._enabled

    def enable(self) -> None:
        """Start applying the policy on each manage() call."""
        if not self._enabled:
            self._enabled = True
            log.info("governor_enabled", priority=self.priority.entries)

    def disable(self, snapshots: Iterable[ProcessSnapshot]) -> int:
        """Stop the policy and resume everything it suspended."""
        was_enabled = self._enabled
        self._enabled = False
        resumed = self.resume_all(snapshots)
        if was_enabled:
            log.info("governor_disabled", resumed=resumed)
        return resumed

    def toggle(self, snapshots: Iterable[ProcessSnapshot]) -> bool:
        """Flip the mode. Returns the new enabled state."""
        if self._enabled:
            self.disable(snapshots)
        else:
            self.enable()
        return self._enabled

    def priority_running(self, snapshots: Iterable[ProcessSnapshot]) -> bool:
        """True if any running process matches the priority list."""
        return any(s.running and self.priority.matches(s.command) for s in snapshots)

    def is_candidate(self, snap: ProcessSnapshot) -> bool:
        """Whether a process may be suspended this cycle."""
        if snap.pid in self.protected_pids:
            return False
        if self.priority.matches(snap.command):
            return False
        if is_system_critical(snap.command):
            return False
        if snap.uid == 0:
            return False
        if not snap.running or snap.suspended_by_manager:
            return False
        return (
            snap.cpu_percent > self.thresholds.cpu_percent
            or snap.rss_kb > self.thresholds.rss_kb
        )

    def manage(self, snapshots: list[ProcessSnapshot]) -> list[ProcessSnapshot]:
        """Apply one policy cycle. Returns the processes suspended this cycle."""
        if not self._enabled:
            return []
        if not self.priority_running(snapshots):
            return []

        suspended: list[ProcessSnapshot] = []
        for snap in snapshots:
            if not self.is_candidate(snap):
                continue
            if self.control.suspend(snap.pid):
                snap.suspended_by_manager = True
                suspended.append(snap)
                log.info(
                    "process_suspended",
                    pid=snap.pid,
                    command=snap.command,
                    cpu_percent=round(snap.cpu_percent, 1),
                    rss_kb=snap.rss_kb,
                )
        return suspended

    def resume_all(self, snapshots: Iterable[ProcessSnapshot]) -> int:
        """SIGCONT every governor-suspended process and clear its flag."""
        resumed = 0
        for snap in snapshots:
            if not snap.suspended_by_manager:
                continue
            self.control.resume(snap.pid)
            snap.suspended_by_manager = False
            resumed += 1
            log.info("process_resumed", pid=snap.pid, command=snap.command)
        return resumed

"""Low-level readers for the Linux /proc filesystem.

Every reader takes the proc root as a parameter so tests can point it at a
fake tree. Readers never raise on a vanished or unreadable source: they
return None and the caller skips the entity for the current cycle.
"""

import os
from dataclasses import dataclass
from pathlib import Path

PROC_ROOT = Path("/proc")

# Field order of a cpu line in /proc/stat
CPU_FIELDS = ("user", "nice", "system", "idle", "iowait", "irq", "softirq", "steal")

# /proc/[pid]/stat field positions, counted after the ")" that closes comm.
# Index 0 is field 3 (state) in proc(5) numbering.
_STAT_STATE = 0
_STAT_UTIME = 11
_STAT_STIME = 12
_STAT_NICE = 16


@dataclass(frozen=True)
class PidStat:
    """Fields taken from /proc/[pid]/stat."""

    state: str
    utime: int  # Clock ticks in user mode
    stime: int  # Clock ticks in kernel mode
    nice: int


@dataclass(frozen=True)
class PidStatus:
    """Fields taken from /proc/[pid]/status."""

    uid: int  # Real uid
    rss_kb: int  # VmRSS, 0 for kernel threads


def _read_text(path: Path) -> str | None:
    try:
        return path.read_text(encoding="utf-8", errors="replace")
    except OSError:
        return None


def clock_ticks() -> int:
    """Return the kernel clock tick rate (USER_HZ), defaulting to 100."""
    try:
        ticks = os.sysconf("SC_CLK_TCK")
    except (ValueError, OSError):
        return 100
    return ticks if ticks > 0 else 100


def list_pids(root: Path = PROC_ROOT) -> list[int]:
    """Return the numeric directory names under the proc root.

    Returns an empty list when the root cannot be listed.
    """
    try:
        entries = os.listdir(root)
    except OSError:
        return []
    return [int(name) for name in entries if name.isdigit()]


def read_comm(pid: int, root: Path = PROC_ROOT) -> str | None:
    """Read the command name of a process, or None if unavailable."""
    text = _read_text(root / str(pid) / "comm")
    if text is None:
        return None
    return text.rstrip("\n")


def parse_pid_stat(text: str) -> PidStat | None:
    """Parse the contents of /proc/[pid]/stat.

    The command name may contain spaces and parentheses, so parsing starts
    after the last ")".
    """
    close = text.rfind(")")
    if close < 0:
        return None
    fields = text[close + 1 :].split()
    if len(fields) <= _STAT_NICE:
        return None
    try:
        return PidStat(
            state=fields[_STAT_STATE],
            utime=int(fields[_STAT_UTIME]),
            stime=int(fields[_STAT_STIME]),
            nice=int(fields[_STAT_NICE]),
        )
    except ValueError:
        return None


def read_pid_stat(pid: int, root: Path = PROC_ROOT) -> PidStat | None:
    """Read state, tick counters and nice value of a process."""
    text = _read_text(root / str(pid) / "stat")
    if text is None:
        return None
    return parse_pid_stat(text)


def parse_pid_status(text: str) -> PidStatus:
    """Parse Uid and VmRSS from /proc/[pid]/status, defaulting missing fields to 0."""
    uid = 0
    rss_kb = 0
    for line in text.splitlines():
        if line.startswith("Uid:"):
            parts = line.split()
            if len(parts) > 1 and parts[1].isdigit():
                uid = int(parts[1])
        elif line.startswith("VmRSS:"):
            parts = line.split()
            if len(parts) > 1 and parts[1].isdigit():
                rss_kb = int(parts[1])
    return PidStatus(uid=uid, rss_kb=rss_kb)


def read_pid_status(pid: int, root: Path = PROC_ROOT) -> PidStatus | None:
    """Read owner uid and resident memory of a process."""
    text = _read_text(root / str(pid) / "status")
    if text is None:
        return None
    return parse_pid_status(text)


def parse_cpu_lines(text: str) -> dict[str, tuple[int, ...]]:
    """Parse the cpu lines of /proc/stat into {label: counters}.

    Counters follow CPU_FIELDS order. Missing trailing fields read as zero,
    extra fields (guest, guest_nice) are ignored.
    """
    lines: dict[str, tuple[int, ...]] = {}
    for line in text.splitlines():
        if not line.startswith("cpu"):
            continue
        parts = line.split()
        label = parts[0]
        values: list[int] = []
        for raw in parts[1 : 1 + len(CPU_FIELDS)]:
            try:
                values.append(int(raw))
            except ValueError:
                break
        values.extend([0] * (len(CPU_FIELDS) - len(values)))
        lines[label] = tuple(values)
    return lines


def read_cpu_lines(root: Path = PROC_ROOT) -> dict[str, tuple[int, ...]] | None:
    """Read aggregate and per-core tick counters from /proc/stat."""
    text = _read_text(root / "stat")
    if text is None:
        return None
    return parse_cpu_lines(text)


def parse_meminfo(text: str) -> dict[str, int]:
    """Parse /proc/meminfo into {key: kB}. Unparseable lines are skipped."""
    result: dict[str, int] = {}
    for line in text.splitlines():
        key, sep, rest = line.partition(":")
        if not sep:
            continue
        parts = rest.split()
        if parts and parts[0].isdigit():
            result[key.strip()] = int(parts[0])
    return result


def read_meminfo(root: Path = PROC_ROOT) -> dict[str, int] | None:
    """Read /proc/meminfo."""
    text = _read_text(root / "meminfo")
    if text is None:
        return None
    return parse_meminfo(text)

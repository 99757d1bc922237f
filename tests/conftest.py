"""Shared test fixtures for uxmon."""

import shutil
from pathlib import Path

import pytest

from uxmon.clock import ClockSource
from uxmon.collector import ProcessSnapshot


class FakeProcTree:
    """Writes a minimal /proc layout under a temporary directory."""

    def __init__(self, root: Path) -> None:
        self.root = root
        self.root.mkdir(parents=True, exist_ok=True)

    def set_cpu(
        self,
        aggregate: tuple[int, ...],
        cores: list[tuple[int, ...]] | None = None,
    ) -> None:
        """Write /proc/stat with an aggregate line and optional core lines."""
        lines = ["cpu  " + " ".join(str(v) for v in aggregate)]
        for index, counters in enumerate(cores or []):
            lines.append(f"cpu{index} " + " ".join(str(v) for v in counters))
        lines.append("intr 12345 0 0")
        lines.append("ctxt 67890")
        (self.root / "stat").write_text("\n".join(lines) + "\n")

    def set_meminfo(self, total_kb: int, free_kb: int, available_kb: int) -> None:
        """Write /proc/meminfo."""
        (self.root / "meminfo").write_text(
            f"MemTotal:       {total_kb} kB\n"
            f"MemFree:        {free_kb} kB\n"
            f"MemAvailable:   {available_kb} kB\n"
            "Buffers:          123456 kB\n"
        )

    def add_process(
        self,
        pid: int,
        comm: str,
        utime: int = 0,
        stime: int = 0,
        state: str = "S",
        nice: int = 0,
        uid: int = 1000,
        rss_kb: int | None = 1000,
    ) -> None:
        """Write comm, stat and status for one process (overwrites existing)."""
        pid_dir = self.root / str(pid)
        pid_dir.mkdir(exist_ok=True)
        (pid_dir / "comm").write_text(comm + "\n")
        (pid_dir / "stat").write_text(
            f"{pid} ({comm}) {state} 1 {pid} {pid} 0 -1 4194304 100 0 0 0 "
            f"{utime} {stime} 0 0 20 {nice} 1 0 100 1000000 250\n"
        )
        status = [f"Name:\t{comm}", f"State:\t{state}", f"Uid:\t{uid}\t{uid}\t{uid}\t{uid}"]
        if rss_kb is not None:
            status.append(f"VmRSS:\t{rss_kb:>8} kB")
        (pid_dir / "status").write_text("\n".join(status) + "\n")

    def remove_process(self, pid: int) -> None:
        """Make a process disappear."""
        shutil.rmtree(self.root / str(pid), ignore_errors=True)


class FakeClock(ClockSource):
    """Manually advanced millisecond clock."""

    def __init__(self, start_ms: int = 1_000_000) -> None:
        self._now = start_ms

    def now_ms(self) -> int:
        return self._now

    def advance(self, ms: int) -> None:
        self._now += ms


@pytest.fixture
def proc_tree(tmp_path: Path) -> FakeProcTree:
    """Fake /proc root with an idle two-core CPU and 16 GB of memory."""
    tree = FakeProcTree(tmp_path / "proc")
    tree.set_cpu((100, 0, 100, 800, 0, 0, 0, 0), [(50, 0, 50, 400), (50, 0, 50, 400)])
    tree.set_meminfo(16_000_000, 2_000_000, 4_000_000)
    return tree


@pytest.fixture
def fake_clock() -> FakeClock:
    """Clock that only moves when told to."""
    return FakeClock()


def make_snapshot(
    pid: int = 100,
    command: str = "test_cmd",
    uid: int = 1000,
    cpu_percent: float = 0.0,
    rss_kb: int = 1000,
    state: str = "R",
    running: bool | None = None,
    nice: int = 0,
    suspended_by_manager: bool = False,
) -> ProcessSnapshot:
    """Create a ProcessSnapshot for testing."""
    return ProcessSnapshot(
        pid=pid,
        uid=uid,
        command=command,
        utime=0,
        stime=0,
        rss_kb=rss_kb,
        nice=nice,
        state=state,
        running=(state not in "TtZX") if running is None else running,
        cpu_percent=cpu_percent,
        suspended_by_manager=suspended_by_manager,
    )

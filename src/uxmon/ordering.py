"""Display ordering for process snapshots."""

from collections.abc import Iterable
from enum import Enum

from uxmon.collector import ProcessSnapshot


class SortMode(Enum):
    """Key used to order the process list."""

    CPU = "cpu"
    MEMORY = "mem"


def sort_snapshots(
    snapshots: Iterable[ProcessSnapshot], mode: SortMode = SortMode.CPU
) -> list[ProcessSnapshot]:
    """Return a new list in descending key order.

    Ties break by ascending pid, so the order is total and stable across
    frames with equal readings.
    """
    if mode is SortMode.MEMORY:
        return sorted(snapshots, key=lambda s: (-s.rss_kb, s.pid))
    return sorted(snapshots, key=lambda s: (-s.cpu_percent, s.pid))

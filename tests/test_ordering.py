"""Tests for process list ordering."""

from conftest import make_snapshot

from uxmon.ordering import SortMode, sort_snapshots


def test_cpu_descending_with_pid_tiebreak():
    """Equal CPU% orders by ascending pid."""
    snaps = [
        make_snapshot(pid=30, cpu_percent=5.0),
        make_snapshot(pid=10, cpu_percent=50.0),
        make_snapshot(pid=20, cpu_percent=5.0),
    ]
    assert [s.pid for s in sort_snapshots(snaps, SortMode.CPU)] == [10, 20, 30]


def test_memory_descending():
    """Memory mode orders by RSS."""
    snaps = [
        make_snapshot(pid=1, rss_kb=100),
        make_snapshot(pid=2, rss_kb=900),
        make_snapshot(pid=3, rss_kb=900),
    ]
    assert [s.pid for s in sort_snapshots(snaps, SortMode.MEMORY)] == [2, 3, 1]


def test_input_not_mutated():
    """sort_snapshots returns a new list."""
    snaps = [make_snapshot(pid=2), make_snapshot(pid=1)]
    sort_snapshots(snaps)
    assert [s.pid for s in snaps] == [2, 1]


def test_empty():
    """Empty input gives an empty list."""
    assert sort_snapshots([], SortMode.MEMORY) == []


def test_sort_mode_values():
    """Modes round-trip from their CLI spelling."""
    assert SortMode("cpu") is SortMode.CPU
    assert SortMode("mem") is SortMode.MEMORY

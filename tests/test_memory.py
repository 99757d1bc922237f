"""Tests for memory counters."""

from uxmon.memory import MemoryCounterReader, MemoryCounters, MemoryHistory


def test_used_is_total_minus_available(proc_tree):
    """Used memory excludes reclaimable memory."""
    counters = MemoryCounterReader(proc_tree.root).read()
    assert counters.total_kb == 16_000_000
    assert counters.free_kb == 2_000_000
    assert counters.available_kb == 4_000_000
    assert counters.used_kb == 12_000_000
    assert counters.used_fraction == 0.75
    assert counters.known is True


def test_unreadable_source_reads_zero(tmp_path):
    """A missing meminfo yields all-zero counters."""
    counters = MemoryCounterReader(tmp_path).read()
    assert counters == MemoryCounters()
    assert counters.used_fraction == 0.0
    assert counters.known is False


def test_missing_field_reads_zero(proc_tree):
    """meminfo without MemAvailable yields all-zero counters."""
    (proc_tree.root / "meminfo").write_text("MemTotal: 100 kB\nMemFree: 50 kB\n")
    assert MemoryCounterReader(proc_tree.root).read() == MemoryCounters()


def test_available_above_total_clamps():
    """used_kb never goes negative."""
    counters = MemoryCounters(total_kb=100, free_kb=100, available_kb=150)
    assert counters.used_kb == 0
    assert counters.used_fraction == 0.0


def test_history_records_fraction(proc_tree):
    """Each push appends the used fraction."""
    history = MemoryHistory(MemoryCounterReader(proc_tree.root), history_window=3)
    history.push()
    proc_tree.set_meminfo(16_000_000, 2_000_000, 8_000_000)
    history.push()
    assert history.values() == [0.75, 0.5]
    assert history.last.available_kb == 8_000_000

"""Tests for history ring module."""

import pytest

from uxmon.ringbuffer import HistoryRing


def test_empty_ring():
    """A new ring holds nothing."""
    ring = HistoryRing(capacity=4)
    assert len(ring) == 0
    assert ring.capacity == 4
    assert ring.series(0) == []
    assert ring.latest(0) == 0.0


def test_partial_fill_is_chronological():
    """Before wrapping, series() returns pushes in order."""
    ring = HistoryRing(capacity=5)
    for v in (0.1, 0.2, 0.3):
        ring.push([v])
    assert ring.series(0) == [0.1, 0.2, 0.3]
    assert ring.latest(0) == 0.3


def test_wraparound_keeps_last_w_values():
    """After W+k pushes exactly the last W values remain, oldest first."""
    ring = HistoryRing(capacity=4)
    for i in range(4 + 3):
        ring.push([float(i)])
    assert len(ring) == 4
    assert ring.series(0) == [3.0, 4.0, 5.0, 6.0]


def test_cursor_shared_across_series():
    """Every series advances together, one slot per push."""
    ring = HistoryRing(capacity=3)
    ring.push([0.1, 0.9])
    ring.push([0.2, 0.8])
    assert ring.cursor == 2
    assert ring.series(0) == [0.1, 0.2]
    assert ring.series(1) == [0.9, 0.8]


def test_missing_series_repeats_last_value():
    """A push that omits a series keeps it aligned with its last value."""
    ring = HistoryRing(capacity=4)
    ring.push([0.1, 0.5])
    ring.push([0.2])
    assert ring.series(1) == [0.5, 0.5]


def test_series_added_later_is_zero_filled():
    """A series appearing mid-stream reads 0.0 for earlier cycles."""
    ring = HistoryRing(capacity=4)
    ring.push([0.1])
    ring.push([0.2, 0.7])
    assert ring.series(1) == [0.0, 0.7]


def test_max_series_caps_growth():
    """Values beyond max_series are dropped."""
    ring = HistoryRing(capacity=2, max_series=2)
    ring.push([0.1, 0.2, 0.3])
    assert ring.series_count == 2
    assert ring.series(2) == []


def test_invalid_capacity():
    """Capacity must be positive."""
    with pytest.raises(ValueError):
        HistoryRing(capacity=0)

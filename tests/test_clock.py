"""Tests for monotonic clock and interval timers."""

import pytest

from uxmon.clock import ClockSource, IntervalTimer


def test_clock_source_converts_seconds_to_ms():
    """now_ms scales the monotonic reading to whole milliseconds."""
    clock = ClockSource(monotonic=lambda: 12.3456)
    assert clock.now_ms() == 12345


def test_fresh_timer_is_due():
    """A timer that never ran is due immediately."""
    timer = IntervalTimer(250)
    assert timer.due(0) is True
    assert timer.remaining_ms(0) == 0


def test_timer_waits_full_interval():
    """Timer is due again only after interval_ms has passed."""
    timer = IntervalTimer(250)
    timer.mark(1000)
    assert timer.due(1249) is False
    assert timer.remaining_ms(1100) == 150
    assert timer.due(1250) is True


def test_check_marks_run():
    """check() returns True once per interval."""
    timer = IntervalTimer(100)
    assert timer.check(0) is True
    assert timer.check(50) is False
    assert timer.check(100) is True
    assert timer.last_ms == 100


def test_timer_rejects_non_positive_interval():
    """Zero or negative intervals are rejected."""
    with pytest.raises(ValueError, match="interval_ms"):
        IntervalTimer(0)

"""Tests for history graph widget."""

import pytest

from uxmon.tui.graph import GradientColor, HistoryGraph


class TestGradientColor:
    """Tests for gradient interpolation."""

    def test_endpoints(self) -> None:
        """Values at or beyond the ends return the end colors."""
        gradient = GradientColor([(0.0, "#000000"), (1.0, "#ffffff")])
        assert gradient(0.0) == "#000000"
        assert gradient(-1.0) == "#000000"
        assert gradient(1.0) == "#ffffff"
        assert gradient(2.0) == "#ffffff"

    def test_midpoint(self) -> None:
        """Halfway blends each channel."""
        gradient = GradientColor([(0.0, "#000000"), (1.0, "#ffffff")])
        assert gradient(0.5) == "#7f7f7f"

    def test_three_stops(self) -> None:
        """The segment containing the value is used."""
        gradient = GradientColor([(0.0, "#00ff00"), (0.5, "#ffff00"), (1.0, "#ff0000")])
        assert gradient(0.5) == "#ffff00"
        assert gradient(0.75) == "#ff7f00"

    def test_short_hex(self) -> None:
        """#RGB shorthand is expanded."""
        gradient = GradientColor([(0.0, "#fff"), (1.0, "#000")])
        assert gradient(0.0) == "#ffffff"

    def test_requires_two_stops(self) -> None:
        """A single stop is rejected."""
        with pytest.raises(ValueError, match="2 color stops"):
            GradientColor([(0.0, "#000000")])


class TestHistoryGraphLevels:
    """Tests for value scaling to block levels."""

    def test_full_scale(self) -> None:
        """1.0 fills every level of every row."""
        assert HistoryGraph(rows=2).level(1.0) == 16

    def test_clamps(self) -> None:
        """Out-of-range fractions are clamped."""
        graph = HistoryGraph(rows=1)
        assert graph.level(-0.5) == 0
        assert graph.level(3.0) == 8

    def test_column_two_rows(self) -> None:
        """75% of two rows is one full block under a half block."""
        assert HistoryGraph(rows=2).column(0.75) == ["█", "▄"]

    def test_empty_column(self) -> None:
        """Zero draws blanks."""
        assert HistoryGraph(rows=2).column(0.0) == [" ", " "]

    def test_rows_clamped(self) -> None:
        """Row count is held to 1-4."""
        assert len(HistoryGraph(rows=9).column(1.0)) == 4
        assert len(HistoryGraph(rows=0).column(1.0)) == 1

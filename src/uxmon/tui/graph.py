"""History graph widget for utilization series.

Renders a series of 0-1 fractions as block columns, newest on the right,
colored through a gradient.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import TYPE_CHECKING

from rich.text import Text
from textual.reactive import reactive
from textual.widgets import Static

if TYPE_CHECKING:
    from textual.app import RenderResult


def _hex_to_rgb(color: str) -> tuple[int, int, int]:
    """Parse "#RRGGBB" or "#RGB" into an RGB tuple."""
    digits = color.lstrip("#")
    if len(digits) == 3:
        digits = "".join(c * 2 for c in digits)
    return int(digits[0:2], 16), int(digits[2:4], 16), int(digits[4:6], 16)


def _rgb_to_hex(rgb: tuple[int, int, int]) -> str:
    return "#{:02x}{:02x}{:02x}".format(*rgb)


class GradientColor:
    """Maps a value to a color interpolated between sorted stops.

    Example:
        ```python
        gradient = GradientColor([(0.0, "#50fa7b"), (0.5, "#f1fa8c"), (1.0, "#ff5555")])
        gradient(0.25)  # halfway between green and yellow
        ```
    """

    def __init__(self, stops: list[tuple[float, str]]) -> None:
        if len(stops) < 2:
            raise ValueError("Gradient requires at least 2 color stops")
        self._stops = [(at, _hex_to_rgb(color)) for at, color in sorted(stops, key=lambda s: s[0])]

    def __call__(self, value: float) -> str:
        first_at, first_rgb = self._stops[0]
        if value <= first_at:
            return _rgb_to_hex(first_rgb)
        for (lo_at, lo_rgb), (hi_at, hi_rgb) in zip(self._stops, self._stops[1:]):
            if value <= hi_at:
                span = hi_at - lo_at
                t = (value - lo_at) / span if span else 0.0
                mixed = tuple(int(a + (b - a) * t) for a, b in zip(lo_rgb, hi_rgb))
                return _rgb_to_hex(mixed)  # type: ignore[arg-type]
        return _rgb_to_hex(self._stops[-1][1])


class HistoryGraph(Static):
    """Block-character graph of a 0-1 series.

    Each row adds 8 vertical levels. Only the newest values that fit the
    widget width are drawn.
    """

    BLOCKS = " ▁▂▃▄▅▆▇█"
    LEVELS_PER_ROW = 8

    DEFAULT_CSS = """
    HistoryGraph {
        width: 1fr;
        height: auto;
    }
    """

    values: reactive[list[float]] = reactive(list, always_update=True)

    def __init__(
        self,
        rows: int = 1,
        color_func: Callable[[float], str] | None = None,
        **kwargs,
    ) -> None:
        super().__init__(**kwargs)
        self._rows = max(1, min(4, rows))
        self._color_func = color_func

    def set_series(self, series: Sequence[float]) -> None:
        """Replace the drawn series (oldest first)."""
        self.values = list(series)

    def level(self, value: float) -> int:
        """Scale a fraction to 0..rows*8."""
        total = self._rows * self.LEVELS_PER_ROW
        clamped = max(0.0, min(1.0, value))
        return int(round(clamped * total))

    def column(self, value: float) -> list[str]:
        """Characters for one value, bottom row first."""
        level = self.level(value)
        chars = []
        for row in range(self._rows):
            filled = level - row * self.LEVELS_PER_ROW
            chars.append(self.BLOCKS[max(0, min(self.LEVELS_PER_ROW, filled))])
        return chars

    def render(self) -> RenderResult:
        width = self.size.width
        data = self.values[-width:] if width > 0 else self.values
        pad = max(0, width - len(data))

        lines = [Text(" " * pad) for _ in range(self._rows)]
        for value in data:
            style = self._color_func(value) if self._color_func else ""
            for row, char in enumerate(self.column(value)):
                lines[row].append(char, style=style)

        out = Text()
        for i, line in enumerate(reversed(lines)):
            if i:
                out.append("\n")
            out.append(line)
        return out

    def watch_values(self, values: list[float]) -> None:
        self.refresh()

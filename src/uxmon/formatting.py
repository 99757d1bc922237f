"""Formatting utilities for consistent output across CLI and TUI."""

import pwd
from functools import lru_cache

# /proc/[pid]/stat state characters
STATE_NAMES = {
    "R": "running",
    "S": "sleeping",
    "D": "disk",
    "I": "idle",
    "T": "stopped",
    "t": "traced",
    "Z": "zombie",
    "X": "dead",
}


def format_kb(kb: int) -> str:
    """Format a kB count as a compact human-readable size."""
    if kb < 1024:
        return f"{kb}K"
    elif kb < 1024 * 1024:
        return f"{kb / 1024:.1f}M"
    else:
        return f"{kb / (1024 * 1024):.1f}G"


def format_percent(fraction: float) -> str:
    """Format a 0-1 fraction as a percentage with one decimal."""
    return f"{fraction * 100:.1f}%"


def state_name(state: str) -> str:
    """Map a state character to a word, falling back to the raw character."""
    return STATE_NAMES.get(state, state or "?")


def truncate(text: str, length: int) -> str:
    """Shorten text to length, marking the cut with "..."."""
    if length <= 3 or len(text) <= length:
        return text[:length]
    return text[: length - 3] + "..."


@lru_cache(maxsize=256)
def username_for_uid(uid: int) -> str:
    """Return the login name for a uid, or the uid itself if unknown."""
    try:
        return pwd.getpwuid(uid).pw_name
    except KeyError:
        return str(uid)

"""Console output and structured logging for uxmon.

Two channels, kept apart:

- Console: short Rich-markup lines for people watching `uxmon govern`.
  Use info/warn/error or the domain helpers below.
- Structured: structlog events from every module, written as JSON Lines
  only when a log file is requested. configure() sets this up.
"""

from __future__ import annotations

import logging
import logging.handlers
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING

import structlog
from rich.console import Console

if TYPE_CHECKING:
    from uxmon.config import Config

_console = Console(highlight=False)


# ─────────────────────────────────────────────────────────────────────────────
# Icons and level tags
# ─────────────────────────────────────────────────────────────────────────────


class Icon:
    """Markup snippets shown after the level tag."""

    OK = "[bold green]✓[/]"
    FAIL = "[bold red]✗[/]"
    WAIT = "⏳"
    SIGNAL = "⚡"
    PAUSE = "[yellow]⏸[/]"
    RESUME = "[green]▶[/]"


# Escaped brackets so Rich prints them literally
_LEVEL_TAGS = {
    "info": "[bright_blue]\\[info][/]",
    "warn": "[yellow]\\[warn][/]",
    "error": "[bold red]\\[err][/] ",
}

_STDLIB_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


# ─────────────────────────────────────────────────────────────────────────────
# Console lines
# ─────────────────────────────────────────────────────────────────────────────


def log(level: str, msg: str, icon: str = "") -> None:
    """Print one console line: time, level tag, optional icon, message."""
    stamp = datetime.now().strftime("%H:%M:%S")
    tag = _LEVEL_TAGS.get(level, f"[{level}]")
    prefix = f"[dim]{stamp}[/] {tag}"
    if icon:
        prefix = f"{prefix} {icon}"
    _console.print(f"{prefix} {msg}")


def info(msg: str, icon: str = "") -> None:
    log("info", msg, icon)


def warn(msg: str, icon: str = "") -> None:
    log("warn", msg, icon)


def error(msg: str, icon: str = "") -> None:
    log("error", msg, icon)


def utilization_color(percent: float) -> str:
    """Rich color for a CPU percentage: green, then yellow at 50, red at 80."""
    if percent >= 80:
        return "bright_red"
    elif percent >= 50:
        return "bright_yellow"
    return "green"


# ─────────────────────────────────────────────────────────────────────────────
# Governor and config messages
# ─────────────────────────────────────────────────────────────────────────────


def governor_started(priority: list[str]) -> None:
    names = ", ".join(f"[magenta]{p}[/]" for p in priority) or "[dim](none)[/]"
    info(f"Governor started, priority: {names}", Icon.OK)


def governor_stopping() -> None:
    info("Governor stopping...", Icon.WAIT)


def governor_stopped(resumed: int) -> None:
    info(f"Governor stopped [dim](resumed {resumed})[/]", Icon.OK)


def signal_received(name: str) -> None:
    info(f"Received [bold]{name}[/]", Icon.SIGNAL)


def process_suspended(cmd: str, pid: int, cpu_percent: float, rss_kb: int) -> None:
    """One line per process the governor stopped."""
    shown = cmd if len(cmd) <= 28 else cmd[:28] + ".."
    color = utilization_color(cpu_percent)
    info(
        f"[cyan]{shown}[/] [dim]({pid})[/] suspended "
        f"[{color}]{cpu_percent:.1f}%[/] [dim]{rss_kb // 1024}MB[/]",
        Icon.PAUSE,
    )


def processes_resumed(count: int) -> None:
    noun = "process" if count == 1 else "processes"
    info(f"Resumed [cyan]{count}[/] {noun}", Icon.RESUME)


def priority_missing(entries: list[str]) -> None:
    """Warn when the governor has nothing to protect."""
    if not entries:
        warn("No priority processes configured, governor will never act")


def config_created(path: str) -> None:
    info(f"Created config at [cyan]{path}[/]")


# ─────────────────────────────────────────────────────────────────────────────
# Structlog
# ─────────────────────────────────────────────────────────────────────────────


def _add_source(source: str) -> structlog.types.Processor:
    """Processor that tags every event with which front end wrote it."""

    def add(
        logger: structlog.types.WrappedLogger,
        method_name: str,
        event_dict: structlog.types.EventDict,
    ) -> structlog.types.EventDict:
        event_dict.setdefault("source", source)
        return event_dict

    return add


def configure(config: Config, log_file: Path | None = None, source: str = "uxmon") -> None:
    """Route structlog through stdlib logging at the configured level.

    With log_file, events are appended as JSON Lines to a rotating file.
    Without it, a NullHandler swallows them so nothing lands on a terminal
    the dashboard is drawing on.

    Args:
        config: Supplies the level and rotation settings
        log_file: Optional JSON Lines destination
        source: Value of the "source" field on every file record
    """
    level = _STDLIB_LEVELS.get(config.logging.level, logging.INFO)

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()

    if log_file is None:
        root.addHandler(logging.NullHandler())
    else:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handler = logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=config.logging.log_max_bytes,
            backupCount=config.logging.log_backup_count,
            encoding="utf-8",
        )
        handler.setLevel(level)
        handler.setFormatter(
            structlog.stdlib.ProcessorFormatter(
                # Records from plain stdlib loggers (psutil, textual) get the same fields
                foreign_pre_chain=[
                    structlog.processors.TimeStamper(fmt="iso", utc=False),
                    structlog.processors.add_log_level,
                    structlog.processors.format_exc_info,
                ],
                processors=[
                    structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                    _add_source(source),
                    structlog.processors.JSONRenderer(),
                ],
            )
        )
        root.addHandler(handler)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.processors.TimeStamper(fmt="iso", utc=False),
            structlog.processors.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

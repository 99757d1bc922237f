"""Configuration system for uxmon."""

from dataclasses import dataclass, field, fields, is_dataclass
from pathlib import Path

import tomlkit

from uxmon.collector import CPU_PERCENT_MODES
from uxmon.governor import MAX_PRIORITY_ENTRIES


@dataclass
class SamplingConfig:
    """Sampling cadence and CPU history configuration."""

    cpu_interval_ms: int = 250  # CPU counters and memory history
    process_interval_ms: int = 1500  # Process scan + governor cycle
    frame_interval_ms: int = 166  # Redraw cadence
    history_window: int = 120  # Samples kept per core (W)
    aggregate_decay: float = 0.8  # Weight of previous value when smoothing overall CPU
    core_decay: float = 0.8  # Weight of previous value when smoothing each core
    max_cores: int = 128


@dataclass
class ProcessConfig:
    """Process enumeration and control configuration."""

    proc_root: str = "/proc"
    # "wall_clock": CPU time / elapsed real time
    # "system_ticks": CPU ticks / all ticks the system accounted
    cpu_percent_mode: str = "wall_clock"
    max_processes: int = 32768
    terminate_grace: float = 0.2  # Seconds between SIGTERM and SIGKILL
    page_size: int = 10  # Rows moved by page up/down


@dataclass
class GovernorConfig:
    """Resource governor thresholds and initial priority list."""

    cpu_threshold: float = 10.0  # CPU% above which a process may be suspended
    rss_threshold_kb: int = 512_000  # Resident memory above which a process may be suspended
    max_priority_entries: int = MAX_PRIORITY_ENTRIES
    priority: list[str] = field(default_factory=list)
    enabled: bool = False  # Start with the governor enabled


@dataclass
class SensorsConfig:
    """Temperature sensor configuration."""

    sys_root: str = "/sys"
    temperature_decay: float = 0.7


@dataclass
class LoggingConfig:
    """Structured log file configuration. Nothing is written unless a log file is requested."""

    level: str = "info"
    log_max_bytes: int = 5 * 1024 * 1024  # Max log file size (5MB)
    log_backup_count: int = 3  # Number of backup log files to keep


# =============================================================================
# TUI Color Configuration
# =============================================================================


@dataclass
class UtilizationColors:
    """Gradient stops for utilization graphs and percentages.

    Default palette: Dracula theme.
    """

    low: str = "#50fa7b"  # Dracula green
    medium: str = "#f1fa8c"  # Dracula yellow
    high: str = "#ff5555"  # Dracula red


@dataclass
class ProcessStateColors:
    """Colors for the process state column.

    Default palette: Dracula theme.
    """

    running: str = "#50fa7b"  # Dracula green
    sleeping: str = "#8be9fd"  # Dracula cyan
    stopped: str = "#f1fa8c"  # Dracula yellow - SIGSTOP or traced
    zombie: str = "#ff5555"  # Dracula red
    other: str = "dim"


@dataclass
class GovernorColors:
    """Colors for governor markers in the process table."""

    priority: str = "#bd93f9"  # Dracula purple
    suspended: str = "#ffb86c"  # Dracula orange
    enabled: str = "#50fa7b"
    disabled: str = "dim"


@dataclass
class TUIColorsConfig:
    """All TUI color configurations grouped together."""

    utilization: UtilizationColors = field(default_factory=UtilizationColors)
    process_state: ProcessStateColors = field(default_factory=ProcessStateColors)
    governor: GovernorColors = field(default_factory=GovernorColors)
    pid: str = "#6272a4"  # Dracula comment


@dataclass
class TUIConfig:
    """TUI-specific configuration."""

    colors: TUIColorsConfig = field(default_factory=TUIColorsConfig)
    graph_height: int = 2  # Rows per core history graph (1-4)
    command_truncate_length: int = 20


def _dataclass_to_table(obj: object) -> tomlkit.items.Table:
    """Convert a dataclass instance to a tomlkit Table recursively."""
    table = tomlkit.table()
    for f in fields(obj):  # type: ignore[arg-type]
        value = getattr(obj, f.name)
        if is_dataclass(value) and not isinstance(value, type):
            table.add(f.name, _dataclass_to_table(value))
        else:
            table.add(f.name, value)
    return table


@dataclass
class Config:
    """Main configuration container."""

    sampling: SamplingConfig = field(default_factory=SamplingConfig)
    processes: ProcessConfig = field(default_factory=ProcessConfig)
    governor: GovernorConfig = field(default_factory=GovernorConfig)
    sensors: SensorsConfig = field(default_factory=SensorsConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    tui: TUIConfig = field(default_factory=TUIConfig)

    @property
    def config_dir(self) -> Path:
        """Configuration directory."""
        return Path.home() / ".config" / "uxmon"

    @property
    def config_path(self) -> Path:
        """Path to config file."""
        return self.config_dir / "config.toml"

    @property
    def state_dir(self) -> Path:
        """State directory for logs and other expendable persistent state."""
        return Path.home() / ".local" / "state" / "uxmon"

    @property
    def log_path(self) -> Path:
        """Default log path when file logging is requested.

        Logs are expendable persistent state, so they go in XDG_STATE_HOME.
        """
        return self.state_dir / "uxmon.log"

    def save(self, path: Path | None = None) -> None:
        """Save config to TOML file."""
        path = path or self.config_path
        path.parent.mkdir(parents=True, exist_ok=True)

        doc = tomlkit.document()
        sections = ["sampling", "processes", "governor", "sensors", "logging", "tui"]
        for name in sections:
            doc.add(name, _dataclass_to_table(getattr(self, name)))
            doc.add(tomlkit.nl())

        path.write_text(tomlkit.dumps(doc))

    @classmethod
    def load(cls, path: Path | None = None) -> "Config":
        """Load config from TOML file, returning defaults for missing values.

        All defaults come from the dataclass definitions, so Config() and
        Config.load() on a missing file are identical.
        """
        defaults = cls()
        path = path or defaults.config_path
        if not path.exists():
            return defaults

        try:
            with open(path) as f:
                data = tomlkit.load(f)
        except tomlkit.exceptions.TOMLKitError as e:
            raise ValueError(f"Failed to parse config file {path}: {e}") from e

        return cls(
            sampling=_load_sampling_config(data.get("sampling", {})),
            processes=_load_process_config(data.get("processes", {})),
            governor=_load_governor_config(data.get("governor", {})),
            sensors=_load_sensors_config(data.get("sensors", {})),
            logging=_load_logging_config(data.get("logging", {})),
            tui=_load_tui_config(data.get("tui", {})),
        )


def _load_sampling_config(data: dict) -> SamplingConfig:
    """Load sampling config from TOML data, using dataclass defaults for missing fields."""
    d = SamplingConfig()
    config = SamplingConfig(
        cpu_interval_ms=data.get("cpu_interval_ms", d.cpu_interval_ms),
        process_interval_ms=data.get("process_interval_ms", d.process_interval_ms),
        frame_interval_ms=data.get("frame_interval_ms", d.frame_interval_ms),
        history_window=data.get("history_window", d.history_window),
        aggregate_decay=data.get("aggregate_decay", d.aggregate_decay),
        core_decay=data.get("core_decay", d.core_decay),
        max_cores=data.get("max_cores", d.max_cores),
    )

    for name in ("cpu_interval_ms", "process_interval_ms", "frame_interval_ms"):
        value = getattr(config, name)
        if value < 1:
            raise ValueError(f"{name} must be >= 1, got {value}")
    if config.history_window < 1:
        raise ValueError(f"history_window must be >= 1, got {config.history_window}")
    if config.max_cores < 1:
        raise ValueError(f"max_cores must be >= 1, got {config.max_cores}")
    for name in ("aggregate_decay", "core_decay"):
        value = getattr(config, name)
        if not 0.0 <= value < 1.0:
            raise ValueError(f"{name} must be in [0, 1), got {value}")
    return config


def _load_process_config(data: dict) -> ProcessConfig:
    """Load process config from TOML data."""
    d = ProcessConfig()
    mode = str(data.get("cpu_percent_mode", d.cpu_percent_mode))
    if mode not in CPU_PERCENT_MODES:
        raise ValueError(f"Invalid cpu_percent_mode: {mode!r}. Must be one of {CPU_PERCENT_MODES}")

    config = ProcessConfig(
        proc_root=str(data.get("proc_root", d.proc_root)),
        cpu_percent_mode=mode,
        max_processes=data.get("max_processes", d.max_processes),
        terminate_grace=data.get("terminate_grace", d.terminate_grace),
        page_size=data.get("page_size", d.page_size),
    )
    if config.max_processes < 1:
        raise ValueError(f"max_processes must be >= 1, got {config.max_processes}")
    if config.terminate_grace < 0:
        raise ValueError(f"terminate_grace must be >= 0, got {config.terminate_grace}")
    if config.page_size < 1:
        raise ValueError(f"page_size must be >= 1, got {config.page_size}")
    return config


def _load_governor_config(data: dict) -> GovernorConfig:
    """Load governor config from TOML data."""
    d = GovernorConfig()
    max_entries = data.get("max_priority_entries", d.max_priority_entries)
    if not 1 <= max_entries <= MAX_PRIORITY_ENTRIES:
        raise ValueError(
            f"max_priority_entries must be between 1 and {MAX_PRIORITY_ENTRIES}, got {max_entries}"
        )
    priority = [str(name) for name in data.get("priority", d.priority)]

    return GovernorConfig(
        cpu_threshold=data.get("cpu_threshold", d.cpu_threshold),
        rss_threshold_kb=data.get("rss_threshold_kb", d.rss_threshold_kb),
        max_priority_entries=max_entries,
        priority=priority,
        enabled=bool(data.get("enabled", d.enabled)),
    )


def _load_sensors_config(data: dict) -> SensorsConfig:
    """Load sensors config from TOML data."""
    d = SensorsConfig()
    decay = data.get("temperature_decay", d.temperature_decay)
    if not 0.0 <= decay < 1.0:
        raise ValueError(f"temperature_decay must be in [0, 1), got {decay}")
    return SensorsConfig(
        sys_root=str(data.get("sys_root", d.sys_root)),
        temperature_decay=decay,
    )


def _load_logging_config(data: dict) -> LoggingConfig:
    """Load logging config from TOML data."""
    d = LoggingConfig()
    valid_levels = {"debug", "info", "warning", "error"}
    level = str(data.get("level", d.level)).lower()
    if level not in valid_levels:
        raise ValueError(f"Invalid logging level: {level!r}. Must be one of {valid_levels}")
    return LoggingConfig(
        level=level,
        log_max_bytes=data.get("log_max_bytes", d.log_max_bytes),
        log_backup_count=data.get("log_backup_count", d.log_backup_count),
    )


def _load_tui_config(data: dict) -> TUIConfig:
    """Load TUI config from TOML data.

    Handles nested [tui.colors.*] sections with defaults.
    """
    tui_defaults = TUIConfig()
    colors_data = data.get("colors", {})
    util_data = colors_data.get("utilization", {})
    state_data = colors_data.get("process_state", {})
    gov_data = colors_data.get("governor", {})

    u = UtilizationColors()
    ps = ProcessStateColors()
    g = GovernorColors()

    return TUIConfig(
        colors=TUIColorsConfig(
            utilization=UtilizationColors(
                low=util_data.get("low", u.low),
                medium=util_data.get("medium", u.medium),
                high=util_data.get("high", u.high),
            ),
            process_state=ProcessStateColors(
                running=state_data.get("running", ps.running),
                sleeping=state_data.get("sleeping", ps.sleeping),
                stopped=state_data.get("stopped", ps.stopped),
                zombie=state_data.get("zombie", ps.zombie),
                other=state_data.get("other", ps.other),
            ),
            governor=GovernorColors(
                priority=gov_data.get("priority", g.priority),
                suspended=gov_data.get("suspended", g.suspended),
                enabled=gov_data.get("enabled", g.enabled),
                disabled=gov_data.get("disabled", g.disabled),
            ),
            pid=colors_data.get("pid", tui_defaults.colors.pid),
        ),
        graph_height=max(1, min(4, data.get("graph_height", tui_defaults.graph_height))),
        command_truncate_length=data.get(
            "command_truncate_length", tui_defaults.command_truncate_length
        ),
    )

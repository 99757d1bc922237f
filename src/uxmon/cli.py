"""CLI commands for uxmon."""

from pathlib import Path

import click


def _load_config():
    """Load the config file, turning parse errors into a clean CLI error."""
    from uxmon.config import Config

    try:
        return Config.load()
    except ValueError as e:
        raise click.ClickException(str(e)) from e


@click.group()
@click.version_option(package_name="uxmon")
def main() -> None:
    """Live CPU, memory and process monitor with a resource governor."""
    pass


@main.command()
def tui() -> None:
    """Launch interactive dashboard."""
    from uxmon.logging import configure
    from uxmon.tui.app import run_tui

    config = _load_config()
    configure(config)
    run_tui(config)


@main.command()
@click.option(
    "--sort", "sort_key", type=click.Choice(["cpu", "mem"]), default="cpu", help="Sort key"
)
@click.option("--limit", "-n", default=20, help="Number of processes to show")
@click.option("--interval", "-i", default=1.0, help="Seconds between the two scans")
def top(sort_key: str, limit: int, interval: float) -> None:
    """Show the busiest processes."""
    import time

    from uxmon.collector import ProcessSnapshotStore
    from uxmon.formatting import format_kb, state_name, truncate, username_for_uid
    from uxmon.ordering import SortMode, sort_snapshots

    config = _load_config()
    store = ProcessSnapshotStore(
        proc_root=Path(config.processes.proc_root),
        mode=config.processes.cpu_percent_mode,  # type: ignore[arg-type]
        max_processes=config.processes.max_processes,
    )

    # First scan only seeds tick counters
    store.scan()
    time.sleep(max(0.0, interval))
    snapshots = store.scan()

    mode = SortMode.MEMORY if sort_key == "mem" else SortMode.CPU
    rows = sort_snapshots(snapshots, mode)[: max(0, limit)]

    if not rows:
        click.echo("No processes found.")
        return

    click.echo(
        f"{'PID':>7}  {'User':10}  {'Command':20}  {'CPU%':>6}  {'RSS':>8}  "
        f"{'NI':>3}  {'State':8}"
    )
    click.echo("-" * 75)
    for snap in rows:
        click.echo(
            f"{snap.pid:>7}  {truncate(username_for_uid(snap.uid), 10):10}  "
            f"{truncate(snap.command, 20):20}  {snap.cpu_percent:>6.1f}  "
            f"{format_kb(snap.rss_kb):>8}  {snap.nice:>3}  {state_name(snap.state):8}"
        )


@main.command()
@click.option("--interval", "-i", default=0.5, help="Seconds between counter readings")
def stats(interval: float) -> None:
    """Show CPU, memory and temperature readings."""
    import time

    from uxmon.cpu import CpuCounterSampler
    from uxmon.formatting import format_kb, format_percent
    from uxmon.memory import MemoryCounterReader
    from uxmon.sensors import ThermalReader

    config = _load_config()
    proc_root = Path(config.processes.proc_root)

    # No smoothing for a one-shot reading
    sampler = CpuCounterSampler(
        proc_root=proc_root,
        history_window=1,
        aggregate_decay=0.0,
        core_decay=0.0,
        max_cores=config.sampling.max_cores,
    )
    if not sampler.prime():
        click.echo(f"Error: cannot read {proc_root / 'stat'}", err=True)
        raise SystemExit(1)
    time.sleep(max(0.0, interval))
    reading = sampler.sample()

    click.echo(f"CPU: {format_percent(reading.aggregate)}")
    for index, value in enumerate(reading.cores):
        click.echo(f"  cpu{index}: {format_percent(value)}")

    mem = MemoryCounterReader(proc_root).read()
    if mem.known:
        click.echo(
            f"Memory: {format_kb(mem.used_kb)} / {format_kb(mem.total_kb)} "
            f"({format_percent(mem.used_fraction)})"
        )
    else:
        click.echo("Memory: unavailable")

    thermal = ThermalReader(sys_root=Path(config.sensors.sys_root))
    if thermal.available:
        click.echo(f"Temperature: {thermal.read():.1f}°C")


@main.command()
@click.option(
    "--priority", "-p", multiple=True, help="Command name substring to protect (repeatable)"
)
@click.option(
    "--log-file",
    type=click.Path(path_type=Path, dir_okay=False),
    default=None,
    help="Write JSON Lines log to this file",
)
def govern(priority: tuple[str, ...], log_file: Path | None) -> None:
    """Run the resource governor without the dashboard.

    Suspends heavy processes while a priority process runs and resumes
    everything it suspended on exit.
    """
    from uxmon.daemon import run_governor

    config = _load_config()
    run_governor(config, priority=list(priority), log_file=log_file)


@main.group()
def config() -> None:
    """Manage configuration."""
    pass


@config.command("show")
def config_show() -> None:
    """Display current configuration."""
    cfg = _load_config()

    click.echo(f"Config file: {cfg.config_path}")
    click.echo(f"Exists: {cfg.config_path.exists()}")
    click.echo()
    click.echo("[sampling]")
    click.echo(f"  cpu_interval_ms = {cfg.sampling.cpu_interval_ms}")
    click.echo(f"  process_interval_ms = {cfg.sampling.process_interval_ms}")
    click.echo(f"  frame_interval_ms = {cfg.sampling.frame_interval_ms}")
    click.echo(f"  history_window = {cfg.sampling.history_window}")
    click.echo()
    click.echo("[processes]")
    click.echo(f"  proc_root = {cfg.processes.proc_root}")
    click.echo(f"  cpu_percent_mode = {cfg.processes.cpu_percent_mode}")
    click.echo()
    click.echo("[governor]")
    click.echo(f"  cpu_threshold = {cfg.governor.cpu_threshold}")
    click.echo(f"  rss_threshold_kb = {cfg.governor.rss_threshold_kb}")
    click.echo(f"  priority = {list(cfg.governor.priority)}")
    click.echo(f"  enabled = {cfg.governor.enabled}")


@config.command("edit")
def config_edit() -> None:
    """Open config file in editor."""
    import os
    import subprocess

    from uxmon import logging as console

    cfg = _load_config()

    # Create config if it doesn't exist
    if not cfg.config_path.exists():
        cfg.save()
        console.config_created(str(cfg.config_path))

    editor = os.environ.get("EDITOR", "nano")
    subprocess.run([editor, str(cfg.config_path)])


@config.command("reset")
@click.confirmation_option(prompt="Reset config to defaults?")
def config_reset() -> None:
    """Reset configuration to defaults."""
    from uxmon.config import Config

    cfg = Config()
    cfg.save()
    click.echo(f"Config reset to defaults at {cfg.config_path}")

"""Tests for CLI commands."""

from pathlib import Path
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from uxmon.cli import main
from uxmon.config import Config, GovernorConfig, ProcessConfig, SensorsConfig


@pytest.fixture
def runner() -> CliRunner:
    """Create a CLI test runner."""
    return CliRunner()


@pytest.fixture
def fake_config(proc_tree, tmp_path: Path) -> Config:
    """Config pointing at the fake /proc tree and an empty /sys."""
    return Config(
        processes=ProcessConfig(proc_root=str(proc_tree.root)),
        sensors=SensorsConfig(sys_root=str(tmp_path / "sys")),
    )


def _make_path_prop(path: Path):
    """Create a property that returns a fixed path."""
    return property(lambda self: path)


class TestTopCommand:
    """Tests for the top command."""

    def test_top_lists_processes(self, runner, proc_tree, fake_config) -> None:
        """top prints a table row per process."""
        proc_tree.add_process(10, "editor", rss_kb=2048)
        proc_tree.add_process(11, "compiler", rss_kb=900_000, state="R")

        with patch("uxmon.config.Config.load", return_value=fake_config):
            result = runner.invoke(main, ["top", "-i", "0"])

        assert result.exit_code == 0
        assert "PID" in result.output
        assert "editor" in result.output
        assert "compiler" in result.output
        assert "running" in result.output

    def test_top_sort_by_memory_and_limit(self, runner, proc_tree, fake_config) -> None:
        """--sort mem puts the largest RSS first and --limit caps rows."""
        proc_tree.add_process(10, "small", rss_kb=100)
        proc_tree.add_process(11, "large", rss_kb=900_000)

        with patch("uxmon.config.Config.load", return_value=fake_config):
            result = runner.invoke(main, ["top", "--sort", "mem", "-n", "1", "-i", "0"])

        assert result.exit_code == 0
        assert "large" in result.output
        assert "small" not in result.output

    def test_top_empty(self, runner, fake_config) -> None:
        """top with no processes says so."""
        with patch("uxmon.config.Config.load", return_value=fake_config):
            result = runner.invoke(main, ["top", "-i", "0"])

        assert result.exit_code == 0
        assert "No processes found." in result.output


class TestStatsCommand:
    """Tests for the stats command."""

    def test_stats_output(self, runner, fake_config, tmp_path: Path) -> None:
        """stats prints CPU, per-core, memory and temperature lines."""
        zone = tmp_path / "sys" / "class" / "thermal" / "thermal_zone0"
        zone.mkdir(parents=True)
        (zone / "temp").write_text("47500\n")

        with patch("uxmon.config.Config.load", return_value=fake_config):
            result = runner.invoke(main, ["stats", "-i", "0"])

        assert result.exit_code == 0
        assert "CPU: 0.0%" in result.output
        assert "cpu0: 0.0%" in result.output
        assert "cpu1: 0.0%" in result.output
        assert "Memory: 11.4G / 15.3G (75.0%)" in result.output
        assert "Temperature: 47.5°C" in result.output

    def test_stats_unreadable_proc(self, runner, tmp_path: Path) -> None:
        """stats exits 1 when CPU counters cannot be read."""
        config = Config(processes=ProcessConfig(proc_root=str(tmp_path / "missing")))

        with patch("uxmon.config.Config.load", return_value=config):
            result = runner.invoke(main, ["stats", "-i", "0"])

        assert result.exit_code == 1
        assert "Error: cannot read" in result.output


class TestGovernCommand:
    """Tests for the govern command."""

    def test_govern_passes_priority(self, runner, tmp_path: Path) -> None:
        """Each -p adds a priority name."""
        config = Config(governor=GovernorConfig(priority=["make"]))

        with (
            patch("uxmon.config.Config.load", return_value=config),
            patch("uxmon.daemon.run_governor") as mock_run,
        ):
            result = runner.invoke(main, ["govern", "-p", "blender", "-p", "ffmpeg"])

        assert result.exit_code == 0
        mock_run.assert_called_once_with(config, priority=["blender", "ffmpeg"], log_file=None)

    def test_govern_log_file(self, runner, tmp_path: Path) -> None:
        """--log-file is passed through as a Path."""
        log_file = tmp_path / "gov.log"

        with (
            patch("uxmon.config.Config.load", return_value=Config()),
            patch("uxmon.daemon.run_governor") as mock_run,
        ):
            result = runner.invoke(main, ["govern", "--log-file", str(log_file)])

        assert result.exit_code == 0
        assert mock_run.call_args.kwargs["log_file"] == log_file


class TestTuiCommand:
    """Tests for the tui command."""

    def test_tui_launches_app(self, runner) -> None:
        """tui configures logging and starts the app."""
        config = Config()

        with (
            patch("uxmon.config.Config.load", return_value=config),
            patch("uxmon.logging.configure") as mock_configure,
            patch("uxmon.tui.app.run_tui") as mock_run,
        ):
            result = runner.invoke(main, ["tui"])

        assert result.exit_code == 0
        mock_configure.assert_called_once_with(config)
        mock_run.assert_called_once_with(config)

    def test_invalid_config_is_clean_error(self, runner, tmp_path: Path) -> None:
        """A broken config file produces an error message, not a traceback."""
        config_path = tmp_path / "config.toml"
        config_path.write_text("[sampling\n")

        with patch.object(Config, "config_path", new_callable=lambda: _make_path_prop(config_path)):
            result = runner.invoke(main, ["tui"])

        assert result.exit_code == 1
        assert "Failed to parse config file" in result.output


class TestConfigCommand:
    """Tests for the config command group."""

    def test_config_show_defaults(self, runner: CliRunner, tmp_path: Path) -> None:
        """config show displays default values when no config file exists."""
        config_path = tmp_path / "config.toml"

        with patch.object(Config, "config_path", new_callable=lambda: _make_path_prop(config_path)):
            result = runner.invoke(main, ["config", "show"])

        assert result.exit_code == 0
        assert "Exists: False" in result.output
        defaults = Config()
        assert "[sampling]" in result.output
        assert f"cpu_interval_ms = {defaults.sampling.cpu_interval_ms}" in result.output
        assert "[governor]" in result.output
        assert f"rss_threshold_kb = {defaults.governor.rss_threshold_kb}" in result.output

    def test_config_show_custom_values(self, runner: CliRunner, tmp_path: Path) -> None:
        """config show displays custom values from config file."""
        config_path = tmp_path / "config.toml"
        Config(governor=GovernorConfig(priority=["blender"], cpu_threshold=25.0)).save(config_path)

        with patch.object(Config, "config_path", new_callable=lambda: _make_path_prop(config_path)):
            result = runner.invoke(main, ["config", "show"])

        assert result.exit_code == 0
        assert "Exists: True" in result.output
        assert "cpu_threshold = 25.0" in result.output
        assert "priority = ['blender']" in result.output

    def test_config_edit_creates_default(self, runner: CliRunner, tmp_path: Path) -> None:
        """config edit creates default config if it doesn't exist."""
        config_path = tmp_path / "config.toml"

        with (
            patch.object(Config, "config_path", new_callable=lambda: _make_path_prop(config_path)),
            patch("subprocess.run") as mock_run,
            patch.dict("os.environ", {"EDITOR": "vim"}),
        ):
            result = runner.invoke(main, ["config", "edit"])

        assert result.exit_code == 0
        assert "Created config" in result.output
        assert config_path.exists()
        mock_run.assert_called_once_with(["vim", str(config_path)])

    def test_config_reset_with_confirmation(self, runner: CliRunner, tmp_path: Path) -> None:
        """config reset writes defaults when the user confirms."""
        config_path = tmp_path / "config.toml"
        Config(governor=GovernorConfig(cpu_threshold=99.0)).save(config_path)

        with patch.object(Config, "config_path", new_callable=lambda: _make_path_prop(config_path)):
            result = runner.invoke(main, ["config", "reset", "--yes"])

        assert result.exit_code == 0
        assert f"Config reset to defaults at {config_path}" in result.output
        assert Config.load(config_path).governor.cpu_threshold == 10.0

    def test_config_reset_aborts_without_confirmation(
        self, runner: CliRunner, tmp_path: Path
    ) -> None:
        """Declining the prompt leaves the file alone."""
        config_path = tmp_path / "config.toml"
        Config(governor=GovernorConfig(cpu_threshold=99.0)).save(config_path)

        with patch.object(Config, "config_path", new_callable=lambda: _make_path_prop(config_path)):
            result = runner.invoke(main, ["config", "reset"], input="n\n")

        assert result.exit_code == 1
        assert Config.load(config_path).governor.cpu_threshold == 99.0

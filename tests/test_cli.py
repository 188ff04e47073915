"""Tests for the command-line interface."""

import logging
import signal

import pytest
import yaml
from click.testing import CliRunner

from backup_warden import cli as cli_module
from backup_warden.cli import (
    EXIT_CONFIG_ERROR,
    EXIT_FAILURE,
    EXIT_MONITOR_ERROR,
    cli,
)
from backup_warden.core.change_monitor import ChangeMonitor
from backup_warden.core.context import WardenContext
from backup_warden.core.location import DAILY_NAMESPACE, SNAPSHOT_NAMESPACE
from backup_warden.core.models import WardenConfig
from backup_warden.core.warden import BackupWarden


@pytest.fixture(autouse=True)
def restore_root_logging():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def config_file(tmp_path, watch_dir):
    data = {
        "watch_folder": str(watch_dir),
        "backup_locations": [str(tmp_path / "backup_a")],
        "retention_days": 2,
    }
    path = tmp_path / "config.yaml"
    path.write_text(yaml.safe_dump(data))
    return str(path)


@pytest.fixture
def runner():
    return CliRunner()


class TestCommands:
    def test_validate_config(self, runner, config_file):
        result = runner.invoke(cli, ["-c", config_file, "validate-config"])
        assert result.exit_code == 0
        assert "Configuration loaded successfully" in result.output

    def test_validate_bad_config(self, runner, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("watch_folder: /x\n")
        result = runner.invoke(cli, ["-c", str(path), "validate-config"])
        assert result.exit_code == EXIT_CONFIG_ERROR

    def test_missing_config_exit_code(self, runner, tmp_path):
        result = runner.invoke(cli, ["-c", str(tmp_path / "none.yaml"), "backup"])
        assert result.exit_code == EXIT_CONFIG_ERROR

    def test_backup(self, runner, config_file, tmp_path):
        result = runner.invoke(cli, ["-c", config_file, "backup"])

        assert result.exit_code == 0
        days = list((tmp_path / "backup_a" / DAILY_NAMESPACE).iterdir())
        assert len(days) == 1

    def test_backup_failure_exit_code(self, runner, tmp_path, watch_dir):
        (tmp_path / "blocked").write_text("x")
        path = tmp_path / "config.yaml"
        path.write_text(yaml.safe_dump({
            "watch_folder": str(watch_dir),
            "backup_locations": [str(tmp_path / "blocked")],
            "retention_days": 2,
        }))

        result = runner.invoke(cli, ["-c", str(path), "backup"])
        assert result.exit_code == EXIT_FAILURE

    def test_snapshot_with_date(self, runner, config_file, tmp_path):
        result = runner.invoke(cli, ["-c", config_file, "snapshot", "--date", "2024-01-31"])

        assert result.exit_code == 0
        assert (tmp_path / "backup_a" / SNAPSHOT_NAMESPACE / "2024-01-31" / "notes.txt").exists()

    def test_prune(self, runner, config_file, tmp_path):
        daily = tmp_path / "backup_a" / DAILY_NAMESPACE
        for name in ("2024-01-01", "2024-01-02", "2024-01-03", "2024-01-04"):
            (daily / name).mkdir(parents=True)

        result = runner.invoke(cli, ["-c", config_file, "prune"])

        assert result.exit_code == 0
        assert sorted(p.name for p in daily.iterdir()) == ["2024-01-03", "2024-01-04"]

    def test_prune_without_backups(self, runner, config_file):
        result = runner.invoke(cli, ["-c", config_file, "prune"])
        assert result.exit_code == 0
        assert "no daily backups" in result.output

    def test_status(self, runner, config_file, tmp_path):
        daily = tmp_path / "backup_a" / DAILY_NAMESPACE
        (daily / "2024-01-01").mkdir(parents=True)
        (daily / "2024-01-05").mkdir()

        result = runner.invoke(cli, ["-c", config_file, "status"])

        assert result.exit_code == 0
        assert "Daily backups: 2" in result.output
        assert "Oldest: 2024-01-01" in result.output
        assert "Monthly snapshots: 0" in result.output

    def test_run_with_missing_watch_folder(self, runner, tmp_path, monkeypatch):
        monkeypatch.setattr(cli_module.signal, "signal", lambda *args: None)
        path = tmp_path / "config.yaml"
        path.write_text(yaml.safe_dump({
            "watch_folder": str(tmp_path / "missing"),
            "backup_locations": [str(tmp_path / "backup_a")],
            "retention_days": 2,
        }))

        result = runner.invoke(cli, ["-c", str(path), "run"])
        assert result.exit_code == EXIT_MONITOR_ERROR


class TestSignalHandling:
    def test_first_signal_requests_graceful_stop(self, tmp_path, watch_dir):
        config = WardenConfig(str(watch_dir), (str(tmp_path / "backup_a"),), 2)
        context = WardenContext.from_config(config)
        handler = cli_module._make_signal_handler(BackupWarden(context, ChangeMonitor(str(watch_dir))))

        handler(signal.SIGTERM, None)
        assert context.stop_event.is_set()

        with pytest.raises(SystemExit):
            handler(signal.SIGTERM, None)

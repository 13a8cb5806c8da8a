"""
Tests for the command-line interface.
"""

import json

import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent))

from click.testing import CliRunner

from achievement_watch.achievements.sources import no_achievements
from achievement_watch.cli import cli
from tests.conftest import added_line, removed_line


class TestCli:
    """Test CLI commands that do not follow a live log."""

    def test_parse_json(self, tmp_path):
        log = tmp_path / "console_log.txt"
        log.write_text("\n".join([
            "noise",
            added_line(440, "hl2.exe", 4242),
            removed_line(440, "hl2.exe", 4242),
        ]) + "\n")

        result = CliRunner().invoke(cli, ["parse", str(log), "--format", "json"])

        assert result.exit_code == 0
        rows = [json.loads(line) for line in result.output.splitlines() if line.startswith("{")]
        assert rows == [
            {"type": "added", "appid": 440, "exe_name": "hl2.exe", "procid": 4242},
            {"type": "removed", "appid": 440, "exe_name": "hl2.exe", "procid": 4242},
        ]

    def test_parse_missing_file(self, tmp_path):
        result = CliRunner().invoke(cli, ["parse", str(tmp_path / "missing.txt")])

        assert result.exit_code != 0

    def test_config_rejects_invalid_file(self, tmp_path):
        config = tmp_path / "bad.yaml"
        config.write_text("achievements:\n  rarity_threshold: 500\n")

        result = CliRunner().invoke(cli, ["config", "--config", str(config)])

        assert result.exit_code == 1

    def test_watch_without_snapshots_sends_session_notifications_only(self, log_file, monkeypatch):
        calls = []

        async def fake_run_monitor(settings, path, source):
            calls.append((path, source))

        monkeypatch.setattr("achievement_watch.cli._run_monitor", fake_run_monitor)

        result = CliRunner().invoke(cli, ["watch", "--log-path", str(log_file)])

        assert result.exit_code == 0
        assert calls == [(log_file, no_achievements)]

    def test_watch_without_log_exits_with_error(self, monkeypatch):
        monkeypatch.setattr("achievement_watch.cli.resolve_log_path", lambda path: None)

        result = CliRunner().invoke(cli, ["watch"])

        assert result.exit_code == 1
        assert "not found" in result.output

    def test_watch_rejects_missing_snapshot_file(self, tmp_path):
        result = CliRunner().invoke(cli, ["watch", "--snapshots", str(tmp_path / "missing.json")])

        assert result.exit_code == 2

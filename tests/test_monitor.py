"""
End-to-end tests for the achievement monitor pipeline.
"""

import pytest

import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent))

from achievement_watch.achievements.models import AchievementRecord
from achievement_watch.config.settings import ApplicationSettings
from achievement_watch.monitor import AchievementMonitor
from tests.conftest import RecordingSink, added_line, removed_line, wait_for


def append_lines(path: Path, *lines: str):
    with open(path, "ab") as f:
        for line in lines:
            f.write((line + "\r\n").encode("utf-8"))


def fast_settings() -> ApplicationSettings:
    settings = ApplicationSettings.from_dict({
        "achievements": {"poll_interval_ms": 10, "min_poll_interval_ms": 10},
        "tailer": {"rotation_grace_seconds": 0.01},
    })
    return settings


class StepSource:
    """Snapshot source whose records the test flips between polls."""

    def __init__(self):
        self.unlocked = False
        self.sessions = []

    async def __call__(self, session):
        self.sessions.append(session.appid)
        return [AchievementRecord(apiname="ACH_FIRST_BLOOD", unlocked=self.unlocked, percent=3.0)]


class TestAchievementMonitor:
    """Test the wired pipeline."""

    @pytest.mark.asyncio
    async def test_session_and_unlock_flow(self, log_file, manual_watcher):
        source = StepSource()
        sink = RecordingSink()
        monitor = AchievementMonitor(fast_settings(), snapshot_source=source, sinks=[sink])
        monitor.tailer.watcher_factory = manual_watcher

        assert await monitor.start(log_file)

        append_lines(log_file, "unrelated startup noise", added_line(440, "hl2.exe", 4242))
        await monitor.tailer.handle_change()
        await wait_for(lambda: len(source.sessions) >= 2)

        source.unlocked = True
        await wait_for(lambda: "achievement_unlocked" in sink.event_types)

        append_lines(log_file, removed_line(440, "hl2.exe", 4242))
        await monitor.tailer.handle_change()
        await monitor.router.drain()

        assert sink.event_types == ["game_started", "achievement_unlocked", "game_ended"]
        unlock = sink.events[1]
        assert unlock.rarity == "rare"
        assert unlock.appid == 440
        assert not monitor.engine.active

        await monitor.stop()
        stats = monitor.get_stats()
        assert stats["tracker"]["sessions_started"] == 1
        assert stats["engine"]["unlocks_emitted"] == 1
        assert stats["parser"]["events_parsed"] == 2

    @pytest.mark.asyncio
    async def test_engine_stops_before_session_end_is_published(self, log_file, manual_watcher):
        observed = []
        monitor = AchievementMonitor(fast_settings(), snapshot_source=StepSource(), sinks=[])
        monitor.tracker.add_listener(
            lambda transition: observed.append((transition.event_type, monitor.engine.active))
        )

        monitor.handle_line(added_line(440))
        monitor.handle_line(added_line(620))
        monitor.handle_line(removed_line(620))

        assert observed == [
            ("game_started", True),
            ("game_ended", False),
            ("game_started", True),
            ("game_ended", False),
        ]
        await monitor.stop()

    @pytest.mark.asyncio
    async def test_shutdown_ends_open_session(self, log_file, manual_watcher):
        sink = RecordingSink()
        monitor = AchievementMonitor(fast_settings(), snapshot_source=StepSource(), sinks=[sink])
        monitor.tailer.watcher_factory = manual_watcher
        await monitor.start(log_file)
        monitor.handle_line(added_line(440))

        await monitor.stop()

        assert sink.event_types == ["game_started", "game_ended"]
        assert sink.events[1].reason == "shutdown"
        assert not monitor.tailer.is_active

    @pytest.mark.asyncio
    async def test_missing_log_calls_fallback(self, tmp_path):
        missing = []
        monitor = AchievementMonitor(
            fast_settings(),
            snapshot_source=StepSource(),
            sinks=[],
            on_tail_unavailable=missing.append,
        )

        assert await monitor.start(tmp_path / "console_log.txt") is False
        assert missing == [tmp_path / "console_log.txt"]
        await monitor.stop()

    @pytest.mark.asyncio
    async def test_unresolved_log_path_calls_fallback_with_none(self):
        missing = []
        monitor = AchievementMonitor(
            fast_settings(),
            snapshot_source=StepSource(),
            sinks=[],
            on_tail_unavailable=missing.append,
        )

        assert await monitor.start(None) is False
        assert missing == [None]
        await monitor.stop()

    @pytest.mark.asyncio
    async def test_log_removed_after_rotation_calls_fallback(self, log_file, manual_watcher):
        missing = []
        monitor = AchievementMonitor(
            fast_settings(),
            snapshot_source=StepSource(),
            sinks=[],
            on_tail_unavailable=missing.append,
        )
        monitor.tailer.watcher_factory = manual_watcher
        await monitor.start(log_file)

        log_file.unlink()
        await monitor.tailer.handle_rotation()

        assert missing == [log_file]
        await monitor.stop()

    @pytest.mark.asyncio
    async def test_excluded_game_is_ignored(self, log_file):
        settings = fast_settings()
        settings.session.exclusions = [440]
        sink = RecordingSink()
        source = StepSource()
        monitor = AchievementMonitor(settings, snapshot_source=source, sinks=[sink])

        monitor.handle_line(added_line(440))
        await monitor.router.drain()

        assert sink.events == []
        assert source.sessions == []
        await monitor.stop()

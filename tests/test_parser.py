"""
Tests for console log line parsing.
"""

import pytest

import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent))

from achievement_watch.parser import EventKind, LogEventParser, parse_line
from tests.conftest import added_line, removed_line


class TestParseLine:
    """Test single-line parsing."""

    def test_added_line(self):
        event = parse_line(
            '[2025-01-01 12:00:00] Game process added : AppID 440 "C:\\Games\\tf2\\hl2.exe", ProcID 4242, IP 0.0.0.0:0'
        )

        assert event is not None
        assert event.kind is EventKind.ADDED
        assert event.is_added
        assert event.appid == 440
        assert event.exe_name == "C:\\Games\\tf2\\hl2.exe"
        assert event.procid == 4242

    def test_removed_line(self):
        event = parse_line(removed_line(620, "portal2.exe", 5151))

        assert event is not None
        assert event.is_removed
        assert event.appid == 620
        assert event.exe_name == "portal2.exe"
        assert event.procid == 5151

    def test_whitespace_is_flexible(self):
        event = parse_line('Game   process  added:AppID  10   "hl.exe" ,ProcID   7')

        assert event is not None
        assert event.appid == 10
        assert event.procid == 7

    def test_crlf_terminator_is_stripped_from_raw_line(self):
        event = parse_line(added_line(440) + "\r\n")

        assert event is not None
        assert not event.raw_line.endswith("\r")
        assert not event.raw_line.endswith("\n")

    @pytest.mark.parametrize("line", [
        "",
        "[2025-01-01 12:00:00] Startup - updater built Dec 10 2024",
        'game process added : AppID 1 "lower.exe", ProcID 2',
        'Game process added : AppID -1 "neg.exe", ProcID 2',
        'Game process added : AppID 1 "x.exe", ProcID abc',
        'Game process added : AppID 12 game.exe, ProcID 3',
        'Game process started : AppID 1 "x.exe", ProcID 2',
    ])
    def test_non_matching_lines(self, line):
        assert parse_line(line) is None

    def test_str(self):
        event = parse_line(added_line(440, "hl2.exe", 4242))
        assert str(event) == "added AppID 440 (hl2.exe, pid 4242)"


class TestLogEventParser:
    """Test the stateful parser wrapper."""

    def test_parse_lines_keeps_order_and_counts(self, sample_log_lines):
        parser = LogEventParser()

        events = parser.parse_lines(sample_log_lines)

        assert [(e.kind, e.appid) for e in events] == [
            (EventKind.ADDED, 440),
            (EventKind.REMOVED, 440),
            (EventKind.ADDED, 620),
            (EventKind.REMOVED, 620),
        ]
        stats = parser.get_stats()
        assert stats["lines_seen"] == len(sample_log_lines)
        assert stats["events_parsed"] == 4

    def test_parse_file(self, tmp_path, sample_log_lines):
        log = tmp_path / "console_log.txt"
        log.write_text("\r\n".join(sample_log_lines) + "\r\n", encoding="utf-8")
        parser = LogEventParser()

        events = list(parser.parse_file(str(log)))

        assert len(events) == 4
        assert events[0].exe_name == "hl2.exe"
        assert parser.get_stats()["file"] == str(log)

    def test_parse_missing_file(self, tmp_path):
        parser = LogEventParser()

        with pytest.raises(FileNotFoundError):
            list(parser.parse_file(str(tmp_path / "missing.txt")))

    def test_reset(self, sample_log_lines):
        parser = LogEventParser()
        parser.parse_lines(sample_log_lines)

        parser.reset()

        assert parser.get_stats() == {"file": None, "lines_seen": 0, "events_parsed": 0}

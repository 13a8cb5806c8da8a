"""
Tests for carry-over line buffering.
"""

import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent))

from achievement_watch.streaming.buffer import LineBuffer


class TestLineBuffer:
    """Test splitting byte chunks into lines."""

    def test_complete_lines(self):
        buffer = LineBuffer()

        assert buffer.feed(b"one\ntwo\n") == ["one", "two"]
        assert buffer.is_empty

    def test_partial_line_is_carried_over(self):
        buffer = LineBuffer()

        assert buffer.feed(b"Game process ad") == []
        assert buffer.size == len(b"Game process ad")
        assert buffer.feed(b"ded\nnext") == ["Game process added"]
        assert buffer.feed(b"\n") == ["next"]

    def test_crlf_is_stripped(self):
        buffer = LineBuffer()

        assert buffer.feed(b"one\r\ntwo\r") == ["one"]
        assert buffer.feed(b"\n") == ["two"]

    def test_split_multibyte_character(self):
        buffer = LineBuffer()
        encoded = "Pokémon ✓\n".encode("utf-8")
        split_at = encoded.index("é".encode("utf-8")) + 1

        assert buffer.feed(encoded[:split_at]) == []
        assert buffer.feed(encoded[split_at:]) == ["Pokémon ✓"]

    def test_empty_lines_are_kept(self):
        buffer = LineBuffer()

        assert buffer.feed(b"\n\nx\n") == ["", "", "x"]

    def test_oversized_partial_line_is_dropped(self):
        buffer = LineBuffer(max_partial_bytes=8)

        assert buffer.feed(b"0123456789") == []
        assert buffer.is_empty
        assert buffer.get_stats()["overflows"] == 1

    def test_tail_of_oversized_line_is_not_emitted(self):
        buffer = LineBuffer(max_partial_bytes=10)

        assert buffer.feed(b"Game process added : AppID 5 ") == []
        assert buffer.feed(b"\"x.exe\", Proc") == []
        assert buffer.is_empty
        assert buffer.feed(b"ID 7\nnext line\n") == ["next line"]
        assert buffer.feed(b"after\n") == ["after"]

    def test_clear_ends_discarding(self):
        buffer = LineBuffer(max_partial_bytes=4)
        buffer.feed(b"overflowing")

        buffer.clear()

        assert buffer.feed(b"fresh\n") == ["fresh"]

    def test_clear(self):
        buffer = LineBuffer()
        buffer.feed(b"partial")

        buffer.clear()

        assert buffer.feed(b" rest\n") == [" rest"]

    def test_stats(self):
        buffer = LineBuffer()
        buffer.feed(b"a\nb\nc")

        stats = buffer.get_stats()
        assert stats["total_bytes"] == 5
        assert stats["total_lines"] == 2
        assert stats["pending_bytes"] == 1

"""
Parser for Steam console log game process lines.

Only two line formats matter:

    Game process added : AppID 12345 "C:\\Games\\Game.exe", ProcID 6789, IP 0.0.0.0:0
    Game process removed: AppID 12345 "C:\\Games\\Game.exe", ProcID 6789

Every other line in the console log is ignored.
"""

import re
import logging
from pathlib import Path
from typing import Iterator, List, Optional, Dict, Any

from .events import EventKind, RawLogEvent


logger = logging.getLogger(__name__)


# Whitespace between tokens is matched loosely; keywords are case-sensitive
# and numeric fields only accept unsigned digits.
ADDED_PATTERN = re.compile(
    r'Game\s+process\s+added\s*:\s*AppID\s+(\d+)\s+"([^"]+)"\s*,\s*ProcID\s+(\d+)'
)
REMOVED_PATTERN = re.compile(
    r'Game\s+process\s+removed\s*:\s*AppID\s+(\d+)\s+"([^"]+)"\s*,\s*ProcID\s+(\d+)'
)

_PATTERNS = (
    (EventKind.ADDED, ADDED_PATTERN),
    (EventKind.REMOVED, REMOVED_PATTERN),
)


def parse_line(line: str) -> Optional[RawLogEvent]:
    """
    Parse a single console log line.

    Args:
        line: Raw line from the console log (terminator already stripped)

    Returns:
        RawLogEvent, or None if the line is not a game process line
    """
    for kind, pattern in _PATTERNS:
        match = pattern.search(line)
        if match:
            appid, exe_name, procid = match.groups()
            return RawLogEvent(
                kind=kind,
                appid=int(appid),
                exe_name=exe_name,
                procid=int(procid),
                raw_line=line.rstrip("\r\n"),
            )
    return None


class LogEventParser:
    """
    Stateful wrapper around parse_line that keeps simple statistics.

    Used for whole-file parsing from the command line and by the monitor
    to report how many lines it has looked at.
    """

    def __init__(self):
        self.lines_seen = 0
        self.events_parsed = 0
        self.current_file: Optional[Path] = None

    def parse(self, line: str) -> Optional[RawLogEvent]:
        """Parse one line, updating counters."""
        self.lines_seen += 1
        event = parse_line(line)
        if event:
            self.events_parsed += 1
        return event

    def parse_lines(self, lines: List[str]) -> List[RawLogEvent]:
        """
        Parse a list of lines and return the events found.

        Args:
            lines: Raw console log lines

        Returns:
            List of RawLogEvent objects in input order
        """
        events = []
        for line in lines:
            event = self.parse(line)
            if event:
                events.append(event)
        return events

    def parse_file(self, file_path: str) -> Iterator[RawLogEvent]:
        """
        Parse an entire console log file.

        Args:
            file_path: Path to the console log

        Yields:
            RawLogEvent objects in file order
        """
        file_path = Path(file_path)
        if not file_path.exists():
            raise FileNotFoundError(f"Console log file not found: {file_path}")

        self.current_file = file_path
        logger.info(f"Starting parse of {file_path.name} ({file_path.stat().st_size / 1024:.1f} KB)")

        with open(file_path, "r", encoding="utf-8", errors="replace") as f:
            for line in f:
                event = self.parse(line)
                if event:
                    yield event

        logger.info(f"Completed parsing {file_path.name}: "
                    f"{self.events_parsed} events in {self.lines_seen} lines")

    def get_stats(self) -> Dict[str, Any]:
        """Get parsing statistics."""
        return {
            "file": str(self.current_file) if self.current_file else None,
            "lines_seen": self.lines_seen,
            "events_parsed": self.events_parsed,
        }

    def reset(self):
        """Reset counters for a new file."""
        self.lines_seen = 0
        self.events_parsed = 0
        self.current_file = None

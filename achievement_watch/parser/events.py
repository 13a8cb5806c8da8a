"""
Typed events extracted from Steam console log lines.
"""

from dataclasses import dataclass
from enum import Enum


class EventKind(Enum):
    """Kinds of game process lines in the console log."""

    ADDED = "added"
    REMOVED = "removed"


@dataclass(frozen=True)
class RawLogEvent:
    """A game process line parsed from the console log."""

    kind: EventKind
    appid: int
    exe_name: str
    procid: int
    raw_line: str = ""

    @property
    def is_added(self) -> bool:
        return self.kind is EventKind.ADDED

    @property
    def is_removed(self) -> bool:
        return self.kind is EventKind.REMOVED

    def __str__(self) -> str:
        return f"{self.kind.value} AppID {self.appid} ({self.exe_name}, pid {self.procid})"

"""
Console log parser module for Steam game process lines.
"""

from .events import EventKind, RawLogEvent
from .parser import LogEventParser, parse_line

__all__ = ["EventKind", "RawLogEvent", "LogEventParser", "parse_line"]

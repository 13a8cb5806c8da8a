"""
Console log streaming package.

This package provides:
- Incremental tailing of the Steam console log with rotation handling
- Native and polling file change notification backends
- Line buffering across partial reads
- Game session tracking
"""

from .buffer import LineBuffer
from .watchers import FileWatcher, NativeFileWatcher, PollingFileWatcher, WatchEvent
from .tailer import LogTailer, TailPosition, TailStatus
from .session import ExclusionPolicy, Session, SessionTracker, TrackerState

__all__ = [
    "LineBuffer",
    "FileWatcher",
    "NativeFileWatcher",
    "PollingFileWatcher",
    "WatchEvent",
    "LogTailer",
    "TailPosition",
    "TailStatus",
    "ExclusionPolicy",
    "Session",
    "SessionTracker",
    "TrackerState",
]

"""
File change notification backends for the log tailer.

Both backends report two kinds of notification through a thread-safe
callback: the watched file changed, or the watched file was renamed or
removed (rotation). The tailer serializes them into one queue.
"""

import asyncio
import logging
import os
from abc import ABC, abstractmethod
from enum import Enum
from pathlib import Path
from typing import Callable, Optional

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

logger = logging.getLogger(__name__)


class WatchEvent(Enum):
    """Notifications delivered to the tailer."""

    CHANGED = "changed"
    ROTATED = "rotated"


Notify = Callable[[WatchEvent], None]


class FileWatcher(ABC):
    """Produces change/rotation notifications for a single file."""

    @abstractmethod
    def start(self, path: Path, notify: Notify) -> None:
        """Begin watching ``path``; raises OSError if the watch cannot be installed."""

    @abstractmethod
    def stop(self) -> None:
        """Release the watch. Safe to call more than once."""


class _LogFileEventHandler(FileSystemEventHandler):
    """Filters directory events down to the watched file."""

    def __init__(self, path: Path, notify: Notify):
        self.path = os.path.normcase(os.path.abspath(path))
        self.notify = notify

    def _matches(self, candidate) -> bool:
        if not candidate:
            return False
        if isinstance(candidate, bytes):
            candidate = os.fsdecode(candidate)
        return os.path.normcase(os.path.abspath(candidate)) == self.path

    def on_modified(self, event: FileSystemEvent):
        if not event.is_directory and self._matches(event.src_path):
            self.notify(WatchEvent.CHANGED)

    def on_created(self, event: FileSystemEvent):
        if not event.is_directory and self._matches(event.src_path):
            self.notify(WatchEvent.CHANGED)

    def on_moved(self, event: FileSystemEvent):
        if event.is_directory:
            return
        if self._matches(event.src_path):
            self.notify(WatchEvent.ROTATED)
        elif self._matches(getattr(event, "dest_path", None)):
            # Something was renamed onto our path: a fresh file replaced the old one
            self.notify(WatchEvent.ROTATED)

    def on_deleted(self, event: FileSystemEvent):
        if not event.is_directory and self._matches(event.src_path):
            self.notify(WatchEvent.ROTATED)


class NativeFileWatcher(FileWatcher):
    """
    Watches the log's parent directory with the platform's native mechanism.

    Watching the directory rather than the file itself means renames of the
    log are reported as well as writes to it.
    """

    def __init__(self, join_timeout: float = 2.0):
        self.join_timeout = join_timeout
        self._observer: Optional[Observer] = None

    def start(self, path: Path, notify: Notify) -> None:
        if self._observer is not None:
            return

        handler = _LogFileEventHandler(path, notify)
        observer = Observer()
        observer.schedule(handler, str(Path(path).parent), recursive=False)
        observer.daemon = True
        observer.start()
        self._observer = observer
        logger.debug(f"Started native watcher for {path}")

    def stop(self) -> None:
        observer, self._observer = self._observer, None
        if observer is None:
            return
        observer.stop()
        observer.join(timeout=self.join_timeout)
        logger.debug("Native watcher stopped")


class PollingFileWatcher(FileWatcher):
    """
    Portable fallback that stats the file periodically.

    Must be started from within a running event loop.
    """

    def __init__(self, interval: float = 1.0):
        self.interval = interval
        self._task: Optional[asyncio.Task] = None
        self._last: Optional[os.stat_result] = None

    def start(self, path: Path, notify: Notify) -> None:
        if self._task is not None:
            return
        self._last = self._stat(path)
        self._task = asyncio.get_running_loop().create_task(self._poll_loop(Path(path), notify))
        logger.debug(f"Started polling watcher for {path} (interval={self.interval}s)")

    def stop(self) -> None:
        task, self._task = self._task, None
        if task is not None:
            task.cancel()
            logger.debug("Polling watcher stopped")

    @staticmethod
    def _stat(path: Path) -> Optional[os.stat_result]:
        try:
            return os.stat(path)
        except FileNotFoundError:
            return None

    def check(self, path: Path, notify: Notify) -> None:
        """Compare the file against the last observation and notify on difference."""
        current = self._stat(path)
        previous, self._last = self._last, current

        if current is None:
            if previous is not None:
                notify(WatchEvent.ROTATED)
            return

        if previous is None:
            notify(WatchEvent.CHANGED)
        elif current.st_ino != previous.st_ino and current.st_ino != 0:
            notify(WatchEvent.ROTATED)
        elif current.st_size != previous.st_size or current.st_mtime_ns != previous.st_mtime_ns:
            notify(WatchEvent.CHANGED)

    async def _poll_loop(self, path: Path, notify: Notify):
        while True:
            try:
                await asyncio.sleep(self.interval)
                self.check(path, notify)
            except asyncio.CancelledError:
                break
            except OSError as e:
                logger.warning(f"Error polling {path}: {e}")

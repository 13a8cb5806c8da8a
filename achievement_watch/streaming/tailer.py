"""
Incremental tailing of the Steam console log.

Steam owns the console log and truncates or replaces it at will. The
tailer only ever reads bytes appended since its last read, keeps partial
lines until they are completed, and restarts from offset 0 whenever the
file shrinks, is renamed or disappears.
"""

import asyncio
import logging
import os
import time
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Union

from .buffer import LineBuffer
from .watchers import FileWatcher, NativeFileWatcher, PollingFileWatcher, WatchEvent

logger = logging.getLogger(__name__)


class TailStatus(Enum):
    """Tailer status."""

    IDLE = "idle"
    TAILING = "tailing"
    ROTATING = "rotating"
    UNAVAILABLE = "unavailable"
    STOPPED = "stopped"


@dataclass
class TailPosition:
    """Read position within the watched file."""

    offset: int = 0
    size: int = 0

    def advance(self, offset: int, size: int):
        """Move forward; the offset never goes backwards outside reset()."""
        if offset < self.offset:
            raise ValueError(f"Tail offset cannot move backwards ({self.offset} -> {offset})")
        self.offset = offset
        self.size = size

    def reset(self):
        """Rewind to the start of a rotated file."""
        self.offset = 0
        self.size = 0


class LogTailer:
    """
    Follows a single append-only text file and emits complete lines.

    Features:
    - Starts at the current end of file, history is never replayed
    - Native or polling change notifications, serialized through one queue
    - Rotation detection by rename/delete notification or by shrinkage
    - One bounded grace wait for a rotated file to reappear
    """

    def __init__(
        self,
        on_line: Callable[[str], None],
        on_unavailable: Optional[Callable[[Path], None]] = None,
        rotation_grace: float = 0.5,
        use_polling: bool = False,
        polling_interval: float = 1.0,
        watcher_factory: Optional[Callable[[], FileWatcher]] = None,
        read_chunk_size: int = 64 * 1024,
    ):
        """
        Initialize log tailer.

        Args:
            on_line: Callback for each complete line, in file order
            on_unavailable: Called once when the file is gone after a rotation
            rotation_grace: Seconds to wait for a rotated file to reappear
            use_polling: Use the stat-polling backend instead of native watches
            polling_interval: Seconds between stats for the polling backend
            watcher_factory: Overrides backend selection
            read_chunk_size: Maximum bytes read per system call
        """
        self.on_line = on_line
        self.on_unavailable = on_unavailable
        self.rotation_grace = rotation_grace
        self.use_polling = use_polling
        self.polling_interval = polling_interval
        self.watcher_factory = watcher_factory
        self.read_chunk_size = read_chunk_size

        self._path: Optional[Path] = None
        self._position = TailPosition()
        self._buffer = LineBuffer()
        self._status = TailStatus.IDLE
        self._active = False

        self._watcher: Optional[FileWatcher] = None
        self._queue: Optional[asyncio.Queue] = None
        self._task: Optional[asyncio.Task] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None

        self._stats = {
            "lines_emitted": 0,
            "bytes_read": 0,
            "rotations": 0,
            "read_errors": 0,
            "line_errors": 0,
            "started_at": None,
        }

    async def start(self, path: Union[str, Path]) -> bool:
        """
        Start following a file from its current end.

        Args:
            path: Resolved path of the console log

        Returns:
            False if the file does not exist (tailing unavailable)
        """
        if self._active:
            logger.warning("Log tailer already active")
            return True

        path = Path(path)
        try:
            size = path.stat().st_size
        except FileNotFoundError:
            logger.warning(f"Cannot tail {path}: file not found")
            self._status = TailStatus.UNAVAILABLE
            return False

        self._path = path
        self._position = TailPosition(offset=size, size=size)
        self._buffer.clear()
        self._loop = asyncio.get_running_loop()
        self._queue = asyncio.Queue()
        self._active = True
        self._status = TailStatus.TAILING
        self._stats["started_at"] = time.time()

        self._watcher = self._install_watcher(path)
        self._task = asyncio.create_task(self._run())

        logger.info(f"Tailing {path} from position {size}")
        return True

    def _install_watcher(self, path: Path) -> FileWatcher:
        if self.watcher_factory:
            watcher = self.watcher_factory()
        elif self.use_polling:
            watcher = PollingFileWatcher(self.polling_interval)
        else:
            watcher = NativeFileWatcher()

        try:
            watcher.start(path, self._notify)
        except OSError as e:
            if isinstance(watcher, PollingFileWatcher):
                raise
            logger.warning(f"Native file watch unavailable ({e}), falling back to polling")
            watcher = PollingFileWatcher(self.polling_interval)
            watcher.start(path, self._notify)
        return watcher

    def _notify(self, event: WatchEvent):
        # Called from watcher threads as well as the loop thread
        loop = self._loop
        if loop is None or loop.is_closed():
            return
        loop.call_soon_threadsafe(self._enqueue, event)

    def _enqueue(self, event: WatchEvent):
        if self._active and self._queue is not None:
            self._queue.put_nowait(event)

    async def _run(self):
        """Single consumer: every read happens here or in a direct handle_* call."""
        while self._active:
            try:
                event = await self._queue.get()
                if not self._active:
                    break
                if event is WatchEvent.ROTATED:
                    await self.handle_rotation()
                else:
                    await self.handle_change()
            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.error(f"Error in tail loop for {self._path}: {e}")

    async def handle_change(self):
        """Read and emit whatever was appended since the last read."""
        if not self._active or self._status is not TailStatus.TAILING:
            return

        try:
            size = os.stat(self._path).st_size
        except FileNotFoundError:
            logger.info(f"{self._path} disappeared, treating as rotation")
            await self.handle_rotation()
            return
        except OSError as e:
            self._stats["read_errors"] += 1
            logger.warning(f"Error checking {self._path}: {e}")
            return

        if size < self._position.offset:
            logger.info(f"{self._path} truncated ({size} < {self._position.offset}), resetting position")
            await self.handle_rotation()
            return

        if size == self._position.offset:
            return

        start = self._position.offset
        try:
            data = self._read_range(start, size)
        except OSError as e:
            # Position stays put so the next notification retries the same range
            self._stats["read_errors"] += 1
            logger.warning(f"Error reading {self._path}: {e}")
            return

        self._position.advance(start + len(data), size)
        self._stats["bytes_read"] += len(data)

        for line in self._buffer.feed(data):
            if not self._active:
                return
            self._stats["lines_emitted"] += 1
            try:
                self.on_line(line)
            except Exception as e:
                # The position has already moved past this batch; keep delivering the rest
                self._stats["line_errors"] += 1
                logger.error(f"Error handling line from {self._path}: {e}")

    def _read_range(self, start: int, end: int) -> bytes:
        chunks = []
        with open(self._path, "rb") as f:
            f.seek(start)
            remaining = end - start
            while remaining > 0:
                chunk = f.read(min(remaining, self.read_chunk_size))
                if not chunk:
                    break
                chunks.append(chunk)
                remaining -= len(chunk)
        return b"".join(chunks)

    async def handle_rotation(self):
        """Reset to offset 0, wait out the grace interval and reattach."""
        if not self._active or self._status is TailStatus.ROTATING:
            return

        self._status = TailStatus.ROTATING
        self._stats["rotations"] += 1
        self._position.reset()
        self._buffer.clear()
        logger.info(f"Log rotation detected for {self._path}, waiting {self.rotation_grace}s")

        await asyncio.sleep(self.rotation_grace)
        if not self._active:
            return

        if self._path.exists():
            self._status = TailStatus.TAILING
            logger.info(f"Reattached to rotated log {self._path}")
            await self.handle_change()
            return

        logger.error(f"Log file {self._path} not found after rotation, tailing unavailable")
        self._status = TailStatus.UNAVAILABLE
        self._release()
        if self.on_unavailable:
            try:
                self.on_unavailable(self._path)
            except Exception as e:
                logger.error(f"Error in unavailable callback: {e}")

    def _release(self):
        self._active = False
        if self._watcher is not None:
            self._watcher.stop()
            self._watcher = None
        self._buffer.clear()

    async def stop(self):
        """Stop tailing. Idempotent."""
        task, self._task = self._task, None
        was_active = self._active
        self._release()

        if task is not None and task is not asyncio.current_task():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass

        if self._status is not TailStatus.UNAVAILABLE:
            self._status = TailStatus.STOPPED
        if was_active:
            logger.info("Log tailer stopped")

    @property
    def status(self) -> TailStatus:
        return self._status

    @property
    def position(self) -> TailPosition:
        return self._position

    @property
    def path(self) -> Optional[Path]:
        return self._path

    @property
    def is_active(self) -> bool:
        return self._active

    def get_stats(self) -> Dict[str, Any]:
        """Get tailer statistics."""
        return {
            "path": str(self._path) if self._path else None,
            "status": self._status.value,
            "offset": self._position.offset,
            "pending_bytes": self._buffer.size,
            "lines_emitted": self._stats["lines_emitted"],
            "bytes_read": self._stats["bytes_read"],
            "rotations": self._stats["rotations"],
            "read_errors": self._stats["read_errors"],
            "line_errors": self._stats["line_errors"],
            "watcher": type(self._watcher).__name__ if self._watcher else None,
        }

"""
Pipeline wiring: console log → parser → session tracker → achievement
engine → notification router.
"""

import logging
import time
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Union

import httpx

from .achievements.engine import AchievementDiffEngine, SnapshotSource
from .config.settings import ApplicationSettings
from .notify.events import NotificationEvent, SessionEnded, SessionStarted
from .notify.router import NotificationRouter
from .notify.sinks import NotificationSink, build_sinks
from .parser.parser import LogEventParser
from .streaming.session import ExclusionPolicy, SessionTracker
from .streaming.tailer import LogTailer

logger = logging.getLogger(__name__)


class AchievementMonitor:
    """
    Runs the whole watcher for one console log.

    The achievement engine is registered as the first session listener, so
    polling for an ending session is cancelled before the SessionEnded event
    reaches any sink.
    """

    def __init__(
        self,
        settings: ApplicationSettings,
        snapshot_source: SnapshotSource,
        sinks: Optional[List[NotificationSink]] = None,
        presenter: Optional[Callable[[NotificationEvent], None]] = None,
        on_tail_unavailable: Optional[Callable[[Optional[Path]], None]] = None,
        resolve_name: Optional[Callable[[int, str], str]] = None,
    ):
        """
        Initialize the monitor.

        Args:
            settings: Application settings
            snapshot_source: Supplies achievement records for the active session
            sinks: Explicit sinks (default: built from settings)
            presenter: Popup presenter for configured popup sinks
            on_tail_unavailable: Called with the log path (None if no path was
                resolved) when the console log cannot be followed, so the caller
                can switch to another detection mechanism
            resolve_name: Maps (appid, exe_name) to a game's display name
        """
        self.settings = settings
        self.on_tail_unavailable = on_tail_unavailable

        client = None
        if sinks is None:
            client = httpx.AsyncClient()
            sinks = build_sinks(settings.notify.sinks, client, presenter)

        self.router = NotificationRouter(
            sinks=sinks,
            suppress_popups=settings.notify.suppress_popups,
            client=client,
        )

        ach = settings.achievements
        self.engine = AchievementDiffEngine(
            snapshot_source=snapshot_source,
            on_unlock=self.router.publish,
            rarity_threshold=ach.rarity_threshold,
            semi_rarity_threshold=ach.semi_rarity_threshold,
            trophy_mode=ach.trophy_mode,
            poll_interval_ms=ach.poll_interval_ms,
            min_poll_interval_ms=ach.min_poll_interval_ms,
        )

        self.parser = LogEventParser()
        self.tracker = SessionTracker(
            policy=ExclusionPolicy.from_ids(settings.session.exclusions, settings.session.inclusion_mode),
            resolve_name=resolve_name,
        )
        self.tracker.add_listener(self._drive_engine)
        self.tracker.add_listener(self.router.publish)

        tail = settings.tailer
        self.tailer = LogTailer(
            on_line=self.handle_line,
            on_unavailable=self._tail_unavailable,
            rotation_grace=tail.rotation_grace_seconds,
            use_polling=tail.use_polling,
            polling_interval=tail.polling_interval_seconds,
        )

        self._started_at: Optional[float] = None

    def _drive_engine(self, transition: NotificationEvent):
        if isinstance(transition, SessionEnded):
            self.engine.stop()
        elif isinstance(transition, SessionStarted):
            session = self.tracker.current
            if session is not None:
                self.engine.start(session)

    def _tail_unavailable(self, path: Path):
        logger.warning(f"Console log {path} unavailable, game detection from the log has stopped")
        if self.on_tail_unavailable:
            self.on_tail_unavailable(path)

    def handle_line(self, line: str):
        """Feed one console log line through the pipeline."""
        event = self.parser.parse(line)
        if event:
            logger.debug(f"Steam log event: {event}")
            self.tracker.handle(event)

    async def start(self, log_path: Union[str, Path, None]) -> bool:
        """
        Start following the console log.

        Returns:
            False if the log could not be followed (the fallback hook is called)
        """
        self._started_at = time.time()

        if log_path is None or not await self.tailer.start(log_path):
            logger.warning("Console log monitoring unavailable")
            if self.on_tail_unavailable:
                self.on_tail_unavailable(Path(log_path) if log_path else None)
            return False
        return True

    async def stop(self):
        """End the current session and shut every component down."""
        await self.tailer.stop()
        self.tracker.end_session(reason="shutdown")
        self.engine.stop()
        await self.router.close()
        logger.info("Achievement monitor stopped")

    def get_stats(self) -> Dict[str, Any]:
        """Get statistics for every component."""
        return {
            "uptime_seconds": time.time() - self._started_at if self._started_at else 0.0,
            "tailer": self.tailer.get_stats(),
            "parser": self.parser.get_stats(),
            "tracker": self.tracker.get_stats(),
            "engine": self.engine.get_stats(),
            "router": self.router.get_stats(),
        }

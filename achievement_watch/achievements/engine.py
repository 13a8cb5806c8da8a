"""
Achievement polling and unlock detection for the active session.
"""

import asyncio
import inspect
import logging
import time
from typing import Any, Awaitable, Callable, Dict, List, Optional, Set, Union

from ..notify.events import AchievementUnlocked
from ..streaming.session import Session
from .models import AchievementRecord, Snapshot, classify_rarity, diff_snapshots

logger = logging.getLogger(__name__)


SnapshotResult = Union[List[AchievementRecord], Awaitable[List[AchievementRecord]]]
SnapshotSource = Callable[[Session], SnapshotResult]

DEFAULT_POLL_INTERVAL_MS = 2000
MIN_POLL_INTERVAL_MS = 1000


class AchievementDiffEngine:
    """
    Polls the snapshot source while a session is active and emits unlocks.

    Features:
    - First snapshot of a session is the baseline, nothing is announced for it
    - Newly unlocked records are announced in apiname order, once per session
    - Stopping cancels the outstanding poll before returning, so no unlock is
      ever reported against a session that has already ended
    """

    def __init__(
        self,
        snapshot_source: SnapshotSource,
        on_unlock: Callable[[AchievementUnlocked], None],
        rarity_threshold: float = 10.0,
        semi_rarity_threshold: float = 20.0,
        trophy_mode: bool = False,
        poll_interval_ms: int = DEFAULT_POLL_INTERVAL_MS,
        min_poll_interval_ms: int = MIN_POLL_INTERVAL_MS,
    ):
        """
        Initialize the diff engine.

        Args:
            snapshot_source: Returns the current records for a session; may be
                a plain function (run in the default executor) or a coroutine
            on_unlock: Callback for each unlock event
            rarity_threshold: Percentage at or below which an unlock is rare
            semi_rarity_threshold: Percentage at or below which it is semi-rare
            trophy_mode: Enable the semi-rare tier
            poll_interval_ms: Requested poll interval
            min_poll_interval_ms: Floor applied to the poll interval
        """
        self.snapshot_source = snapshot_source
        self.on_unlock = on_unlock
        self.rarity_threshold = rarity_threshold
        self.semi_rarity_threshold = semi_rarity_threshold
        self.trophy_mode = trophy_mode
        self.poll_interval = max(poll_interval_ms, min_poll_interval_ms) / 1000.0

        if poll_interval_ms < min_poll_interval_ms:
            logger.warning(
                f"Poll interval {poll_interval_ms}ms below floor, using {min_poll_interval_ms}ms"
            )

        self._session: Optional[Session] = None
        self._previous: Optional[Snapshot] = None
        self._announced: Set[str] = set()
        self._exhausted = False
        self._task: Optional[asyncio.Task] = None

        self._stats = {
            "polls": 0,
            "poll_errors": 0,
            "unlocks_emitted": 0,
            "last_poll_time": None,
        }

    def start(self, session: Session, schedule: bool = True):
        """
        Begin tracking a new session, replacing any previous one.

        Args:
            session: Session that just started
            schedule: Run the periodic poll loop; when False the caller drives
                poll_once() itself
        """
        self.stop()
        self._session = session
        self._previous = None
        self._announced = set()
        self._exhausted = False
        if schedule:
            self._task = asyncio.get_running_loop().create_task(self._poll_loop(session))
        logger.info(
            f"Achievement polling started for AppID {session.appid} "
            f"(interval={self.poll_interval:.1f}s)"
        )

    def stop(self):
        """Cancel polling synchronously."""
        task, self._task = self._task, None
        session, self._session = self._session, None
        self._previous = None

        if task is not None and not task.done() and task is not asyncio.current_task():
            task.cancel()
        if session is not None:
            logger.info(f"Achievement polling stopped for AppID {session.appid}")

    @property
    def active(self) -> bool:
        return self._session is not None

    @property
    def previous_snapshot(self) -> Optional[Snapshot]:
        return self._previous

    async def _poll_loop(self, session: Session):
        while self._session is session:
            try:
                await self.poll_once()
                if self._exhausted:
                    break
                await asyncio.sleep(self.poll_interval)
            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.error(f"Error in achievement poll loop: {e}")
                await asyncio.sleep(self.poll_interval)

    async def _fetch(self, session: Session) -> List[AchievementRecord]:
        if inspect.iscoroutinefunction(self.snapshot_source):
            return list(await self.snapshot_source(session))

        loop = asyncio.get_running_loop()
        result = await loop.run_in_executor(None, self.snapshot_source, session)
        if inspect.isawaitable(result):
            result = await result
        return list(result)

    async def poll_once(self) -> List[AchievementUnlocked]:
        """
        Take one snapshot, diff it against the previous one and emit unlocks.

        Returns:
            Unlock events emitted by this poll
        """
        session = self._session
        if session is None or self._exhausted:
            return []

        self._stats["polls"] += 1
        self._stats["last_poll_time"] = time.time()
        try:
            records = await self._fetch(session)
        except Exception as e:
            self._stats["poll_errors"] += 1
            logger.warning(f"Achievement snapshot failed for AppID {session.appid}: {e}")
            return []

        if self._session is not session:
            logger.debug(f"Discarding snapshot for superseded AppID {session.appid}")
            return []

        snapshot = Snapshot.of(records)

        if self._previous is None:
            self._previous = snapshot
            if not snapshot.records:
                self._exhausted = True
                logger.info(f"AppID {session.appid} has no achievements, polling skipped")
            else:
                logger.debug(
                    f"Baseline snapshot for AppID {session.appid}: "
                    f"{snapshot.unlocked_count}/{len(snapshot)} unlocked"
                )
            return []

        events = []
        for record in diff_snapshots(self._previous, snapshot):
            if record.apiname in self._announced:
                continue
            self._announced.add(record.apiname)
            events.append(self._build_event(session, record))

        for event in events:
            if self._session is not session:
                break
            self._stats["unlocks_emitted"] += 1
            logger.info(f"Achievement unlocked: {event.achievement_apiname} ({event.rarity})")
            try:
                self.on_unlock(event)
            except Exception as e:
                logger.error(f"Error in unlock callback: {e}")

        if self._session is session:
            self._previous = snapshot
        return events

    def _build_event(self, session: Session, record: AchievementRecord) -> AchievementUnlocked:
        rarity = classify_rarity(
            record.percent,
            self.rarity_threshold,
            self.semi_rarity_threshold,
            self.trophy_mode,
        )
        fields = dict(
            appid=session.appid,
            gamename=session.display_name,
            achievement_apiname=record.apiname,
            achievement_displayname=record.display_name or record.apiname,
            achievement_description=record.description,
            percent=max(0.0, min(100.0, record.percent)),
            rarity=rarity.value,
        )
        if record.unlock_time:
            fields["timestamp"] = record.unlock_time
        return AchievementUnlocked(**fields)

    def get_stats(self) -> Dict[str, Any]:
        """Get engine statistics."""
        return {
            "active": self.active,
            "appid": self._session.appid if self._session else None,
            "poll_interval_seconds": self.poll_interval,
            "tracked_achievements": len(self._previous) if self._previous else 0,
            "announced": len(self._announced),
            **self._stats,
        }

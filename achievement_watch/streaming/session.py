"""
Game session tracking.

Turns game process events from the console log into session start and end
transitions. Only one game is tracked at a time; stale or duplicate lines
never produce a second concurrent session.
"""

import logging
from typing import Callable, Dict, Any, FrozenSet, Iterable, List, Optional
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from ..notify.events import NotificationEvent, SessionEnded, SessionStarted
from ..parser.events import RawLogEvent

logger = logging.getLogger(__name__)


class TrackerState(Enum):
    """Session tracker state."""

    IDLE = "idle"
    TRACKING = "tracking"


@dataclass(frozen=True)
class ExclusionPolicy:
    """
    Decides which games may start a session.

    With ``inclusion_mode`` off the ids are an exclude-list; with it on they
    are an include-list and every other game is ignored.
    """

    app_ids: FrozenSet[int] = field(default_factory=frozenset)
    inclusion_mode: bool = False

    @classmethod
    def from_ids(cls, app_ids: Iterable[int], inclusion_mode: bool = False) -> "ExclusionPolicy":
        return cls(app_ids=frozenset(int(a) for a in app_ids), inclusion_mode=inclusion_mode)

    def allows(self, appid: int) -> bool:
        listed = appid in self.app_ids
        return listed if self.inclusion_mode else not listed


@dataclass(frozen=True)
class Session:
    """The game currently being tracked."""

    appid: int
    display_name: str
    exe_name: str
    procid: int
    started_at: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "appid": self.appid,
            "display_name": self.display_name,
            "exe_name": self.exe_name,
            "procid": self.procid,
            "started_at": self.started_at.isoformat(),
        }


SessionListener = Callable[[NotificationEvent], None]


class SessionTracker:
    """
    State machine enforcing at most one active session.

    Listeners are called synchronously, in registration order, for every
    transition before ``handle`` returns.
    """

    def __init__(
        self,
        policy: Optional[ExclusionPolicy] = None,
        resolve_name: Optional[Callable[[int, str], str]] = None,
    ):
        """
        Initialize session tracker.

        Args:
            policy: Which games may start a session (default: all)
            resolve_name: Maps (appid, exe_name) to a display name
        """
        self.policy = policy or ExclusionPolicy()
        self.resolve_name = resolve_name

        self._session: Optional[Session] = None
        self._listeners: List[SessionListener] = []
        self._stats = {
            "events_seen": 0,
            "sessions_started": 0,
            "sessions_ended": 0,
            "blocked": 0,
            "ignored": 0,
        }

    def add_listener(self, listener: SessionListener):
        """Register a transition callback."""
        self._listeners.append(listener)

    @property
    def state(self) -> TrackerState:
        return TrackerState.TRACKING if self._session else TrackerState.IDLE

    @property
    def current(self) -> Optional[Session]:
        return self._session

    def handle(self, event: RawLogEvent) -> List[NotificationEvent]:
        """
        Apply a parsed log event.

        Args:
            event: Game process event in log order

        Returns:
            Transitions emitted, in order
        """
        self._stats["events_seen"] += 1
        if event.is_added:
            return self._handle_added(event)
        return self._handle_removed(event)

    def _handle_added(self, event: RawLogEvent) -> List[NotificationEvent]:
        current = self._session

        if current and current.appid == event.appid:
            # Re-launch without a Removed line: the running session continues
            logger.debug(f"Already tracking AppID {event.appid}, ignoring duplicate start")
            self._stats["ignored"] += 1
            return []

        if not self.policy.allows(event.appid):
            logger.info(f"AppID {event.appid} ({event.exe_name}) blocked by exclusion policy")
            self._stats["blocked"] += 1
            return []

        transitions: List[NotificationEvent] = []
        if current:
            logger.info(f"AppID {event.appid} started while tracking {current.appid}, switching")
            transitions.append(self._end(reason="switched"))
        transitions.append(self._start(event))
        return transitions

    def _handle_removed(self, event: RawLogEvent) -> List[NotificationEvent]:
        current = self._session
        if not current or current.appid != event.appid:
            logger.debug(f"Ignoring stale removal of AppID {event.appid}")
            self._stats["ignored"] += 1
            return []
        return [self._end(reason="removed")]

    def end_session(self, reason: str = "shutdown") -> Optional[SessionEnded]:
        """Close the current session, if any (used at shutdown)."""
        if not self._session:
            return None
        return self._end(reason=reason)

    def _start(self, event: RawLogEvent) -> SessionStarted:
        display_name = event.exe_name
        if self.resolve_name:
            try:
                display_name = self.resolve_name(event.appid, event.exe_name) or event.exe_name
            except Exception as e:
                logger.warning(f"Could not resolve name for AppID {event.appid}: {e}")

        self._session = Session(
            appid=event.appid,
            display_name=display_name,
            exe_name=event.exe_name,
            procid=event.procid,
        )
        self._stats["sessions_started"] += 1

        started = SessionStarted(
            appid=event.appid,
            exe_name=event.exe_name,
            gamename=display_name,
            timestamp=self._session.started_at,
        )
        logger.info(f"Session started: {display_name} (AppID {event.appid})")
        self._emit(started)
        return started

    def _end(self, reason: str) -> SessionEnded:
        session, self._session = self._session, None
        self._stats["sessions_ended"] += 1

        ended = SessionEnded(appid=session.appid, gamename=session.display_name, reason=reason)
        logger.info(f"Session ended: {session.display_name} (AppID {session.appid}, {reason})")
        self._emit(ended)
        return ended

    def _emit(self, transition: NotificationEvent):
        for listener in self._listeners:
            try:
                listener(transition)
            except Exception as e:
                logger.error(f"Error in session listener: {e}")

    def get_stats(self) -> Dict[str, Any]:
        """Get tracker statistics."""
        return {
            "state": self.state.value,
            "session": self._session.to_dict() if self._session else None,
            **self._stats,
        }

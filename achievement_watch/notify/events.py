"""
Pydantic models for outgoing notification events.
"""

from datetime import datetime
from typing import Optional, Union, Literal
from pydantic import BaseModel, ConfigDict, Field


class SessionStarted(BaseModel):
    """A monitored game started."""

    model_config = ConfigDict(frozen=True)

    event_type: Literal["game_started"] = "game_started"
    appid: int = Field(..., ge=0, description="Steam application ID")
    exe_name: str = Field(..., description="Executable reported by Steam")
    gamename: str = Field(..., description="Display name of the game")
    timestamp: datetime = Field(default_factory=datetime.now)

    def summary(self) -> str:
        return f"Game started: {self.gamename} ({self.appid})"


class SessionEnded(BaseModel):
    """The tracked game stopped or was superseded."""

    model_config = ConfigDict(frozen=True)

    event_type: Literal["game_ended"] = "game_ended"
    appid: int = Field(..., ge=0, description="Steam application ID")
    gamename: str = Field(..., description="Display name of the game")
    reason: str = Field("removed", description="Why the session ended")
    timestamp: datetime = Field(default_factory=datetime.now)

    def summary(self) -> str:
        return f"Game ended: {self.gamename} ({self.appid})"


class AchievementUnlocked(BaseModel):
    """An achievement went from locked to unlocked during a session."""

    model_config = ConfigDict(frozen=True)

    event_type: Literal["achievement_unlocked"] = "achievement_unlocked"
    appid: int = Field(..., ge=0)
    gamename: str
    achievement_apiname: str
    achievement_displayname: str
    achievement_description: Optional[str] = None
    percent: float = Field(..., ge=0.0, le=100.0, description="Global unlock percentage")
    rarity: Literal["rare", "semi-rare", "main"]
    timestamp: datetime = Field(default_factory=datetime.now)

    def summary(self) -> str:
        return (
            f"Achievement unlocked in {self.gamename}: {self.achievement_displayname} "
            f"({self.rarity}, {self.percent:.1f}%)"
        )


NotificationEvent = Union[SessionStarted, SessionEnded, AchievementUnlocked]

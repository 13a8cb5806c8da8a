"""
Notification package.

This package provides:
- Event models for session and achievement notifications
- Popup, webhook and openHAB sinks
- Router fanning events out to sinks with per-sink failure isolation
"""

from .events import NotificationEvent, SessionStarted, SessionEnded, AchievementUnlocked
from .sinks import (
    DeliveryOutcome,
    NotificationSink,
    PopupSink,
    WebhookSink,
    OpenHABSink,
    ConsolePresenter,
    SinkConfigError,
    build_sinks,
)
from .router import NotificationRouter

__all__ = [
    "NotificationEvent",
    "SessionStarted",
    "SessionEnded",
    "AchievementUnlocked",
    "DeliveryOutcome",
    "NotificationSink",
    "PopupSink",
    "WebhookSink",
    "OpenHABSink",
    "ConsolePresenter",
    "SinkConfigError",
    "build_sinks",
    "NotificationRouter",
]

"""
Configuration module for the achievement watcher.

Provides YAML configuration loading, per-component settings and Steam
console log discovery.
"""

from .settings import (
    ApplicationSettings,
    TailerSettings,
    SessionSettings,
    AchievementSettings,
    NotifySettings,
    SinkSettings,
    SinkAuthSettings,
    LoggingSettings,
    get_settings,
)
from .loader import ConfigLoader
from .paths import resolve_log_path, candidate_log_paths

__all__ = [
    "ApplicationSettings",
    "TailerSettings",
    "SessionSettings",
    "AchievementSettings",
    "NotifySettings",
    "SinkSettings",
    "SinkAuthSettings",
    "LoggingSettings",
    "get_settings",
    "ConfigLoader",
    "resolve_log_path",
    "candidate_log_paths",
]

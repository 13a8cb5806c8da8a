"""
Configuration settings for the achievement watcher.

Settings come from a YAML file (see loader.py) with environment variable
overrides on top, and are grouped into one dataclass per component.
"""

import os
import logging
from typing import Optional, Dict, Any, List
from dataclasses import dataclass, field

from .loader import ConfigLoader

SINK_TYPES = ("popup", "webhook", "openhab")
PAYLOAD_MODES = ("simple", "full")


def _as_bool(value: Any, default: bool = False) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ("1", "true", "yes", "on")


@dataclass
class TailerSettings:
    """Console log tailing settings."""

    log_path: Optional[str] = None
    rotation_grace_seconds: float = 0.5
    use_polling: bool = False
    polling_interval_seconds: float = 1.0

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TailerSettings":
        return cls(
            log_path=data.get("log_path") or None,
            rotation_grace_seconds=float(data.get("rotation_grace_seconds", 0.5)),
            use_polling=_as_bool(data.get("use_polling"), False),
            polling_interval_seconds=float(data.get("polling_interval_seconds", 1.0)),
        )


@dataclass
class SessionSettings:
    """Which games may start a session."""

    exclusions: List[int] = field(default_factory=list)
    inclusion_mode: bool = False

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SessionSettings":
        return cls(
            exclusions=[int(appid) for appid in data.get("exclusions") or []],
            inclusion_mode=_as_bool(data.get("inclusion_mode"), False),
        )


@dataclass
class AchievementSettings:
    """Achievement polling and rarity settings."""

    rarity_threshold: float = 10.0
    semi_rarity_threshold: float = 20.0
    trophy_mode: bool = False
    poll_interval_ms: int = 2000
    min_poll_interval_ms: int = 1000

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AchievementSettings":
        return cls(
            rarity_threshold=float(data.get("rarity_threshold", 10.0)),
            semi_rarity_threshold=float(data.get("semi_rarity_threshold", 20.0)),
            trophy_mode=_as_bool(data.get("trophy_mode"), False),
            poll_interval_ms=int(data.get("poll_interval_ms", 2000)),
            min_poll_interval_ms=int(data.get("min_poll_interval_ms", 1000)),
        )


@dataclass
class SinkAuthSettings:
    """Credentials for an HTTP sink."""

    token: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> Optional["SinkAuthSettings"]:
        if not data:
            return None
        return cls(
            token=data.get("token"),
            username=data.get("username"),
            password=data.get("password"),
        )


@dataclass
class SinkSettings:
    """One notification sink."""

    type: str
    name: str = ""
    enabled: bool = False
    destination: Optional[str] = None
    payload_mode: str = "simple"
    auth: Optional[SinkAuthSettings] = None
    items: Dict[str, str] = field(default_factory=dict)
    timeout: float = 10.0

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SinkSettings":
        sink_type = str(data.get("type", "webhook")).lower()
        destination = data.get("destination")
        if isinstance(destination, str):
            destination = destination.strip() or None

        return cls(
            type=sink_type,
            name=data.get("name") or sink_type,
            enabled=_as_bool(data.get("enabled"), False),
            destination=destination,
            payload_mode=str(data.get("payload_mode", "simple")).lower(),
            auth=SinkAuthSettings.from_dict(data.get("auth")),
            items={k: str(v).strip() for k, v in (data.get("items") or {}).items() if v},
            timeout=float(data.get("timeout", 10.0)),
        )


@dataclass
class NotifySettings:
    """Notification routing settings."""

    suppress_popups: bool = False
    sinks: List[SinkSettings] = field(default_factory=lambda: [SinkSettings(type="popup", name="popup", enabled=True)])

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "NotifySettings":
        sinks = data.get("sinks")
        return cls(
            suppress_popups=_as_bool(data.get("suppress_popups"), False),
            sinks=(
                [SinkSettings.from_dict(s) for s in sinks]
                if sinks is not None
                else [SinkSettings(type="popup", name="popup", enabled=True)]
            ),
        )


@dataclass
class LoggingSettings:
    """Logging settings."""

    level: str = "info"

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LoggingSettings":
        return cls(level=str(data.get("level", "info")).lower())


@dataclass
class ApplicationSettings:
    """Main application settings container."""

    tailer: TailerSettings = field(default_factory=TailerSettings)
    session: SessionSettings = field(default_factory=SessionSettings)
    achievements: AchievementSettings = field(default_factory=AchievementSettings)
    notify: NotifySettings = field(default_factory=NotifySettings)
    log: LoggingSettings = field(default_factory=LoggingSettings)

    source: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any], source: Optional[str] = None) -> "ApplicationSettings":
        """Build settings from a parsed YAML document."""
        data = data or {}
        return cls(
            tailer=TailerSettings.from_dict(data.get("tailer") or {}),
            session=SessionSettings.from_dict(data.get("session") or {}),
            achievements=AchievementSettings.from_dict(data.get("achievements") or {}),
            notify=NotifySettings.from_dict(data.get("notify") or {}),
            log=LoggingSettings.from_dict(data.get("logging") or {}),
            source=source,
        )

    @classmethod
    def load(cls, config_path: Optional[str] = None) -> "ApplicationSettings":
        """Load settings from the first config file found, then apply environment overrides."""
        data, source = ConfigLoader.load_config(config_path)
        settings = cls.from_dict(data, source=source)
        settings.apply_env()
        return settings

    def apply_env(self):
        """Apply environment variable overrides."""
        if os.getenv("ACHWATCH_LOG_PATH"):
            self.tailer.log_path = os.getenv("ACHWATCH_LOG_PATH")
        if os.getenv("ACHWATCH_LOG_LEVEL"):
            self.log.level = os.getenv("ACHWATCH_LOG_LEVEL").lower()
        if os.getenv("ACHWATCH_POLL_INTERVAL_MS"):
            self.achievements.poll_interval_ms = int(os.getenv("ACHWATCH_POLL_INTERVAL_MS"))
        if os.getenv("ACHWATCH_SUPPRESS_POPUPS"):
            self.notify.suppress_popups = _as_bool(os.getenv("ACHWATCH_SUPPRESS_POPUPS"))

    def setup_logging(self):
        """
        Configure logging based on settings.

        Keeps handlers already installed on the root logger (the CLI installs
        a RichHandler) and only applies the configured level to them.
        """
        level = getattr(logging, self.log.level.upper(), logging.INFO)

        root = logging.getLogger()
        if root.handlers:
            root.setLevel(level)
            return

        logging.basicConfig(
            level=level,
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S"
        )

    def validate(self):
        """Validate configuration settings."""
        errors = []

        ach = self.achievements
        for name in ("rarity_threshold", "semi_rarity_threshold"):
            value = getattr(ach, name)
            if not (0.0 <= value <= 100.0):
                errors.append(f"{name} must be between 0 and 100 (got {value})")
        if ach.trophy_mode and ach.semi_rarity_threshold < ach.rarity_threshold:
            errors.append("semi_rarity_threshold must not be below rarity_threshold")
        if ach.min_poll_interval_ms <= 0:
            errors.append(f"Invalid min_poll_interval_ms: {ach.min_poll_interval_ms}")

        if self.tailer.rotation_grace_seconds < 0:
            errors.append("rotation_grace_seconds cannot be negative")
        if self.tailer.polling_interval_seconds <= 0:
            errors.append("polling_interval_seconds must be positive")

        for sink in self.notify.sinks:
            if sink.type not in SINK_TYPES:
                errors.append(f"Unknown sink type '{sink.type}' for sink '{sink.name}'")
            if sink.payload_mode not in PAYLOAD_MODES:
                errors.append(f"Invalid payload_mode '{sink.payload_mode}' for sink '{sink.name}'")

        if errors:
            raise ValueError(f"Configuration validation failed: {'; '.join(errors)}")

    def log_configuration(self):
        """Log current configuration (excluding sensitive data)."""
        logger = logging.getLogger(__name__)

        logger.info("=== Achievement Watch Configuration ===")
        logger.info(f"Config file: {self.source or 'defaults'}")
        logger.info(f"Log path: {self.tailer.log_path or 'auto-detect'}")
        logger.info(f"Watch backend: {'polling' if self.tailer.use_polling else 'native'}")

        mode = "include" if self.session.inclusion_mode else "exclude"
        logger.info(f"App filter: {mode} {sorted(self.session.exclusions)}")

        ach = self.achievements
        logger.info(f"Poll interval: {ach.poll_interval_ms}ms (floor {ach.min_poll_interval_ms}ms)")
        logger.info(
            f"Rarity: rare<={ach.rarity_threshold}%, "
            f"semi-rare<={ach.semi_rarity_threshold}% (trophy mode {'on' if ach.trophy_mode else 'off'})"
        )

        logger.info(f"Suppress popups: {self.notify.suppress_popups}")
        for sink in self.notify.sinks:
            state = "enabled" if sink.enabled else "disabled"
            auth = " (auth configured)" if sink.auth else ""
            logger.info(f"Sink {sink.name} [{sink.type}]: {state} -> {sink.destination or '-'}{auth}")

        logger.info("=== End Configuration ===")


def get_settings(config_path: Optional[str] = None) -> ApplicationSettings:
    """Load and validate settings."""
    settings = ApplicationSettings.load(config_path)
    settings.validate()
    return settings

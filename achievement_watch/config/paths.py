"""
Steam console log discovery.
"""

import os
import sys
import logging
from pathlib import Path
from typing import List, Optional

logger = logging.getLogger(__name__)

CONSOLE_LOG = Path("logs") / "console_log.txt"
DEFAULT_WINDOWS_STEAM = Path("C:/Program Files (x86)/Steam")


def candidate_log_paths(platform: Optional[str] = None) -> List[Path]:
    """Default console log locations for a platform."""
    platform = platform or sys.platform
    home = Path.home()

    if platform.startswith("linux"):
        return [
            home / ".steam" / "steam" / CONSOLE_LOG,
            home / ".local" / "share" / "Steam" / CONSOLE_LOG,
        ]
    if platform == "win32":
        steam_path = Path(os.getenv("STEAM_PATH") or DEFAULT_WINDOWS_STEAM)
        return [steam_path / CONSOLE_LOG]
    if platform == "darwin":
        return [home / "Library" / "Application Support" / "Steam" / CONSOLE_LOG]
    return []


def resolve_log_path(override: Optional[str] = None, platform: Optional[str] = None) -> Optional[Path]:
    """
    Find the Steam console log.

    Args:
        override: User-configured path, used when it exists
        platform: sys.platform value to resolve for (defaults to the current one)

    Returns:
        Path of the console log, or None if none was found
    """
    if override:
        custom = Path(override).expanduser()
        if custom.exists():
            logger.info(f"Using custom Steam log path: {custom}")
            return custom
        logger.warning(f"Configured Steam log path {custom} does not exist")

    for path in candidate_log_paths(platform):
        if path.exists():
            logger.info(f"Found Steam log at: {path}")
            return path

    logger.warning("Steam console log file not found")
    return None

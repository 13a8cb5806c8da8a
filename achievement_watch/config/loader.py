"""
Configuration file loader.

Reads the YAML configuration from the first location that exists.
"""

import yaml
import logging
from pathlib import Path
from typing import Dict, Optional, Any, Tuple

logger = logging.getLogger(__name__)


class ConfigLoader:
    """Loads configuration from YAML files."""

    @staticmethod
    def search_paths(config_path: Optional[str] = None):
        """Candidate config locations, most specific first."""
        paths = [
            Path("achievement_watch.yaml"),
            Path("config/achievement_watch.yaml"),
            Path.home() / ".achievement_watch" / "config.yaml",
            Path("/etc/achievement_watch/config.yaml"),
        ]
        if config_path:
            paths.insert(0, Path(config_path))
        return paths

    @staticmethod
    def load_config(config_path: Optional[str] = None) -> Tuple[Dict[str, Any], Optional[str]]:
        """
        Load configuration from YAML file.

        Args:
            config_path: Path to a config file. If None, looks for:
                        1. achievement_watch.yaml in current directory
                        2. config/achievement_watch.yaml
                        3. ~/.achievement_watch/config.yaml
                        4. /etc/achievement_watch/config.yaml

        Returns:
            Configuration dictionary and the path it came from
        """
        if config_path and not Path(config_path).exists():
            logger.warning(f"Config file {config_path} not found, searching default locations")

        for path in ConfigLoader.search_paths(config_path):
            if path.exists():
                try:
                    with open(path, "r") as f:
                        config = yaml.safe_load(f) or {}
                except (OSError, yaml.YAMLError) as e:
                    logger.error(f"Failed to load config from {path}: {e}")
                    continue

                if not isinstance(config, dict):
                    logger.error(f"Ignoring {path}: top level must be a mapping")
                    continue

                logger.info(f"Loaded configuration from {path}")
                return config, str(path)

        logger.debug("No configuration file found, using defaults")
        return {}, None

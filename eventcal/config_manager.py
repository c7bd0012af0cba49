"""Configuration management for eventcal."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any

from .core.timezone_utils import DEFAULT_BUSINESS_TIMEZONE, get_business_timezone

logger = logging.getLogger(__name__)

# Homepage defaults: look three months ahead and show the next three events
DEFAULT_LOOKAHEAD_DAYS = 90
DEFAULT_UPCOMING_LIMIT = 3

# env var -> (config key, smallest accepted value)
_INT_SETTINGS: dict[str, tuple[str, int]] = {
    "EVENTCAL_LOOKAHEAD_DAYS": ("lookahead_days", 0),
    "EVENTCAL_UPCOMING_LIMIT": ("upcoming_limit", 0),
    "EVENTCAL_MAX_OCCURRENCES": ("max_occurrences", 1),
}


class ConfigManager:
    """Manages engine configuration from environment variables and .env files."""

    def __init__(self, env_file_path: Path | None = None):
        """Initialize configuration manager.

        Args:
            env_file_path: Optional path to .env file (defaults to .env in current directory)
        """
        self.env_file_path = env_file_path or Path.cwd() / ".env"

    def load_env_file(self) -> list[str]:
        """Load .env file and set environment variables.

        Only sets variables that are not already in the environment.

        Returns:
            List of environment variable keys that were loaded from .env file
        """
        if not self.env_file_path.exists():
            logger.debug("No .env file found at %s", self.env_file_path)
            return []

        set_keys = []

        try:
            content = self.env_file_path.read_text(encoding="utf-8")
        except OSError:
            logger.warning("Failed to read .env file %s", self.env_file_path, exc_info=True)
            return []

        for raw_line in content.splitlines():
            line = raw_line.strip()

            if not line or line.startswith("#") or "=" not in line:
                continue

            key, val = line.split("=", 1)
            key = key.strip()
            val = val.strip().strip('"').strip("'")

            if key and key not in os.environ:
                os.environ[key] = val
                set_keys.append(key)

        if set_keys:
            logger.debug("Loaded .env defaults for keys: %s", ", ".join(set_keys))

        return set_keys

    def build_config_from_env(self) -> dict[str, Any]:
        """Build configuration dictionary from environment variables.

        Recognizes:
        - EVENTCAL_BUSINESS_TIMEZONE -> 'business_timezone' (validated IANA name)
        - EVENTCAL_LOOKAHEAD_DAYS -> 'lookahead_days' (int, >= 0)
        - EVENTCAL_UPCOMING_LIMIT -> 'upcoming_limit' (int, >= 0)
        - EVENTCAL_MAX_OCCURRENCES -> 'max_occurrences' (int, >= 1)
        - EVENTCAL_LOG_LEVEL -> 'log_level'

        Returns:
            Configuration dictionary with defaults filled in
        """
        cfg: dict[str, Any] = {
            "business_timezone": get_business_timezone(DEFAULT_BUSINESS_TIMEZONE),
            "lookahead_days": DEFAULT_LOOKAHEAD_DAYS,
            "upcoming_limit": DEFAULT_UPCOMING_LIMIT,
        }

        for env_key, (cfg_key, minimum) in _INT_SETTINGS.items():
            raw = os.environ.get(env_key)
            if not raw:
                continue
            try:
                value = int(raw)
            except ValueError:
                logger.warning("Invalid %s=%r; ignoring", env_key, raw)
                continue
            if value < minimum:
                logger.warning("%s=%r is below %d; ignoring", env_key, raw, minimum)
                continue
            cfg[cfg_key] = value

        log_level = os.environ.get("EVENTCAL_LOG_LEVEL")
        if log_level:
            cfg["log_level"] = log_level.upper()

        return cfg

    def load_full_config(self) -> dict[str, Any]:
        """Load .env file and build configuration from environment.

        This is the main entry point for loading configuration.
        """
        self.load_env_file()
        return self.build_config_from_env()


def get_config_value(config: Any, key: str, default: Any = None) -> Any:
    """Get configuration value supporting both dict and dataclass-like objects.

    Args:
        config: Configuration object (dict or object with attributes)
        key: Configuration key to retrieve
        default: Default value if key not found

    Returns:
        Configuration value or default
    """
    if isinstance(config, dict):
        return config.get(key, default)
    return getattr(config, key, default)

"""Configuration management for the household_schedule server."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Callable

logger = logging.getLogger(__name__)

ENV_PREFIX = "HOUSEHOLD_SCHEDULE_"

DEFAULT_SERVER_BIND = "0.0.0.0"  # nosec B104 - overridable via HOUSEHOLD_SCHEDULE_WEB_HOST
DEFAULT_SERVER_PORT = 8080
DEFAULT_FEED_LIMIT = 50
DEFAULT_FEED_HORIZON_DAYS = 366
DEFAULT_FEED_LOOKBACK_DAYS = 30
DEFAULT_REPOSITORY_TIMEOUT = 5.0
DEFAULT_REQUEST_TIMEOUT = 15.0
MAX_FEED_LIMIT = 500


def parse_env_file(path: Path) -> dict[str, str]:
    """Parse a .env file and return key-value pairs.

    Args:
        path: Path to .env file

    Returns:
        Dictionary of key-value pairs from the .env file.
        Empty dict if file doesn't exist or cannot be read.

    Note:
        - Skips empty lines and comments (lines starting with #)
        - Strips quotes (both single and double) from values
    """
    if not path.exists():
        return {}

    result: dict[str, str] = {}
    try:
        for raw_line in path.read_text(encoding="utf-8").splitlines():
            line = raw_line.strip()
            if not line or line.startswith("#") or "=" not in line:
                continue
            key, val = line.split("=", 1)
            key = key.strip()
            if key:
                result[key] = val.strip().strip('"').strip("'")
    except OSError:
        logger.debug("Failed to read .env file (continuing): %s", str(path), exc_info=True)

    return result


def _env_truthy(value: str | None) -> bool:
    return bool(value) and value.strip().lower() in ("1", "true", "yes", "on")


# (env suffix, config key, converter)
_ENV_SETTINGS: tuple[tuple[str, str, Callable[[str], Any]], ...] = (
    ("WEB_HOST", "server_bind", str),
    ("WEB_PORT", "server_port", int),
    ("DATA_FILE", "data_file", str),
    ("DEFAULT_TIMEZONE", "default_timezone", str),
    ("FEED_LIMIT", "feed_limit", int),
    ("FEED_HORIZON_DAYS", "feed_horizon_days", int),
    ("FEED_LOOKBACK_DAYS", "feed_lookback_days", int),
    ("REPOSITORY_TIMEOUT", "repository_timeout_seconds", float),
    ("REQUEST_TIMEOUT", "request_timeout_seconds", float),
    ("LOG_LEVEL", "log_level", str),
)


class ConfigManager:
    """Manages application configuration from environment variables and .env files."""

    def __init__(self, env_file_path: Path | None = None):
        """Initialize configuration manager.

        Args:
            env_file_path: Optional path to .env file (defaults to .env in current directory)
        """
        self.env_file_path = env_file_path or Path.cwd() / ".env"

    def load_env_file(self) -> list[str]:
        """Load .env file into the environment without overriding existing variables.

        Returns:
            List of environment variable keys that were loaded from .env file
        """
        if not self.env_file_path.exists():
            logger.debug("No .env file found at %s", self.env_file_path)
            return []

        set_keys = []
        for key, val in parse_env_file(self.env_file_path).items():
            if key not in os.environ:
                os.environ[key] = val
                set_keys.append(key)

        if set_keys:
            logger.debug("Loaded .env defaults for keys: %s", ", ".join(set_keys))

        return set_keys

    def build_config_from_env(self) -> dict[str, Any]:
        """Build configuration dictionary from ``HOUSEHOLD_SCHEDULE_*`` variables.

        Recognizes WEB_HOST, WEB_PORT, DATA_FILE, DEFAULT_TIMEZONE, FEED_LIMIT,
        FEED_HORIZON_DAYS, FEED_LOOKBACK_DAYS, REPOSITORY_TIMEOUT,
        REQUEST_TIMEOUT, LOG_LEVEL and DEBUG. Values that fail conversion are
        logged and ignored.

        Returns:
            Configuration dictionary compatible with start_server
        """
        cfg: dict[str, Any] = {}

        for suffix, key, convert in _ENV_SETTINGS:
            raw = os.environ.get(ENV_PREFIX + suffix)
            if not raw:
                continue
            try:
                cfg[key] = convert(raw.strip())
            except ValueError:
                logger.warning("Invalid %s%s=%r; ignoring", ENV_PREFIX, suffix, raw)

        if _env_truthy(os.environ.get(ENV_PREFIX + "DEBUG")):
            cfg["debug_logging"] = True

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

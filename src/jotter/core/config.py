"""Configuration management for Jotter."""

import logging
import os
from pathlib import Path

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

# Load environment variables
load_dotenv()


def get_env(key: str, default: str | None = None) -> str | None:
    """Get environment variable with optional default."""
    return os.getenv(key, default)


def get_env_int(key: str, default: int) -> int:
    """Get environment variable as integer."""
    value = os.getenv(key)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        logger.warning("%s=%r is not a valid integer, using %s", key, value, default)
        return default


def get_env_bool(key: str, default: bool = False) -> bool:
    """Get environment variable as boolean."""
    value = os.getenv(key, "").lower()
    if value in ("true", "1", "yes"):
        return True
    if value in ("false", "0", "no"):
        return False
    if value:
        logger.warning("%s=%r is not a valid boolean, using %s", key, value, default)
    return default


# App-private config directory (settings.json, app_state.json)
CONFIG_DIR = Path(
    get_env("JOTTER_CONFIG_DIR", os.path.expanduser("~/.jotter/config"))
    or os.path.expanduser("~/.jotter/config")
).expanduser()

# Data root used until the user picks one
DEFAULT_DATA_DIR = Path(
    get_env("JOTTER_DATA_DIR", os.path.expanduser("~/.jotter/data"))
    or os.path.expanduser("~/.jotter/data")
).expanduser()

# Completed todos older than this many days move to the yearly archive
ARCHIVE_AFTER_DAYS = get_env_int("JOTTER_ARCHIVE_DAYS", 7)
ARCHIVE_ON_STARTUP = get_env_bool("JOTTER_ARCHIVE_ON_STARTUP", True)

# Logging
LOG_LEVEL = get_env("LOG_LEVEL", "INFO") or "INFO"


def setup_logging() -> logging.Logger:
    """Configure and return logger."""
    logging.basicConfig(
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        level=getattr(logging, LOG_LEVEL.upper(), logging.INFO),
    )
    return logging.getLogger(__name__)

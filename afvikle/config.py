"""Configuration management for afvikle.

Loads settings from ~/.afvikle/config.toml with sensible defaults.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import toml

logger = logging.getLogger(__name__)

DEFAULT_DESCRIPTION = "No description provided"


def get_afvikle_dir() -> Path:
    """Return the path to ~/.afvikle/, creating it if needed."""
    path = Path.home() / ".afvikle"
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_config_path() -> Path:
    """Return the path to ~/.afvikle/config.toml."""
    return get_afvikle_dir() / "config.toml"


@dataclass
class Config:
    """Application configuration with sensible defaults."""

    lock_timeout: float = 1.0
    default_description: str = DEFAULT_DESCRIPTION
    name_width: int = 15  # Width of the name column in `afv list`

    # Overrides the database file that normally sits next to the executable
    db_path: Optional[str] = None


def _setting(data: dict, key: str, cast, default):
    """Read a numeric setting, keeping the default if it is malformed."""
    if key not in data:
        return default
    try:
        value = cast(data[key])
    except (TypeError, ValueError):
        value = None
    if value is None or value <= 0:
        logger.warning("Ignoring invalid %s = %r in %s", key, data[key], get_config_path())
        return default
    return value


def load_config() -> Config:
    """Load config from ~/.afvikle/config.toml, returning defaults if missing."""
    config_path = get_config_path()

    if not config_path.exists():
        return Config()

    try:
        data = toml.load(config_path)
    except toml.TomlDecodeError as e:
        logger.warning("Ignoring unreadable %s: %s", config_path, e)
        return Config()

    return Config(
        lock_timeout=_setting(data, "lock_timeout", float, 1.0),
        default_description=data.get("default_description", DEFAULT_DESCRIPTION),
        name_width=_setting(data, "name_width", int, 15),
        db_path=data.get("db_path"),
    )


def save_config(config: Config) -> None:
    """Save config to ~/.afvikle/config.toml."""
    config_path = get_config_path()
    data = {
        "lock_timeout": config.lock_timeout,
        "default_description": config.default_description,
        "name_width": config.name_width,
    }
    # Only include the database override if it's set
    if config.db_path:
        data["db_path"] = config.db_path

    with open(config_path, "w") as f:
        toml.dump(data, f)

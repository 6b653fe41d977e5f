#!/usr/bin/env python3
"""
User configuration for the mapfit CLI.

The CLI keeps default search parameters in a JSON file in the user's home
directory (or at the path given by the MAPFIT_CONFIG environment variable).
"""

import logging
import os
from pathlib import Path
from typing import Any

from mapfit.core.config import SearchConfig, load_config, save_config
from mapfit.exceptions import MapFitConfigError

logger = logging.getLogger(__name__)


def get_config_path() -> Path:
    """Get the path to the user configuration file."""
    override = os.environ.get("MAPFIT_CONFIG")
    if override:
        return Path(override)
    return Path.home() / ".mapfit_config.json"


def load_user_config() -> SearchConfig:
    """
    Load the user configuration, falling back to defaults.

    Returns:
        SearchConfig from the user file, or the defaults if the file is
        missing or invalid.
    """
    config_path = get_config_path()
    if not config_path.exists():
        return SearchConfig()
    try:
        return load_config(config_path)
    except MapFitConfigError as e:
        logger.warning(f"Could not load config file: {e}")
        return SearchConfig()


def save_user_config(config: SearchConfig) -> Path:
    """Save the user configuration."""
    return save_config(config, get_config_path())


def parse_value(value: str) -> Any:
    """Convert a command-line string to bool, int, float or leave it as text."""
    lowered = value.lower()
    if lowered in ("true", "false"):
        return lowered == "true"
    try:
        return int(value)
    except ValueError:
        pass
    try:
        return float(value)
    except ValueError:
        pass
    if "," in value:
        return [part.strip() for part in value.split(",") if part.strip()]
    return value


def set_user_value(key: str, value: Any) -> SearchConfig:
    """
    Set one configuration value and save the user configuration.

    Raises:
        MapFitConfigError: If the resulting configuration is invalid
    """
    values = load_user_config().as_dict()
    values[key] = value
    config = SearchConfig.from_dict(values)
    save_user_config(config)
    return config


def reset_user_config() -> SearchConfig:
    """Reset the user configuration to default values."""
    config = SearchConfig()
    save_user_config(config)
    return config

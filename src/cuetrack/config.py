# Copyright © 2025 Ed Nutting
# SPDX-License-Identifier: MIT
# See LICENSE file for details

"""
Configuration management for cuetrack.
Handles loading and saving tracking settings from a YAML config file.
"""

import copy
import logging
from pathlib import Path
from typing import Any, TypedDict

import yaml

logger = logging.getLogger(__name__)

CONFIG_FILENAME: str = ".cuetrack.yaml"

# Precision bounds (percent); values outside are clamped
MIN_PRECISION: int = 50
MAX_PRECISION: int = 95
DEFAULT_PRECISION: int = 65


class TrackingSettings(TypedDict):
    """Type definition for tracking configuration settings."""
    precision: int
    debounce_ms: int
    slice_budget_ms: float
    slow_search_ms: float


class Config(TypedDict):
    """Type definition for the complete configuration."""
    tracking: TrackingSettings
    # Write the per-batch debug event log under logs/
    debug_log: bool


# Default configuration values
DEFAULT_CONFIG: Config = {
    "tracking": {
        # Fuzzy match precision, 50 (lenient) to 95 (strict)
        "precision": DEFAULT_PRECISION,
        # Quiet period after the last batch before the queue drains
        "debounce_ms": 100,
        # Processing time allowed per drain slice before yielding
        "slice_budget_ms": 5.0,
        "slow_search_ms": 20.0,
    },
    "debug_log": False,
}


def clamp_precision(precision: float) -> int:
    """Clamp a precision value into the supported range."""
    return max(MIN_PRECISION, min(MAX_PRECISION, int(precision)))


def get_config_path() -> Path:
    """Get the path to the config file in the current working directory."""
    return Path.cwd() / CONFIG_FILENAME


def _deep_merge(base, override):
    """
    Deep merge two dictionaries, with override taking precedence.
    Returns a new dictionary without modifying the originals.
    """
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def load_config(config_path: Path | None = None) -> Config:
    """
    Load configuration from file, merged with defaults.

    Args:
        config_path: Optional path to config file. If None, uses default location.

    Returns:
        Configuration dictionary with all values (defaults + overrides from file).
        The tracking precision is clamped into range.
    """
    if config_path is None:
        config_path = get_config_path()

    config: dict[str, Any] = copy.deepcopy(DEFAULT_CONFIG)

    if config_path.exists():
        try:
            with open(config_path, encoding='utf-8') as f:
                file_config: dict[str, Any] | None = yaml.safe_load(f)
                if isinstance(file_config, dict):
                    config = _deep_merge(config, file_config)
                elif file_config is not None:
                    logger.warning(
                        "Ignoring config in %s: expected a mapping", config_path)
        except (OSError, yaml.YAMLError) as e:
            logger.warning("Could not load config from %s: %s", config_path, e)

    tracking: dict[str, Any] = config["tracking"]
    try:
        tracking["precision"] = clamp_precision(tracking["precision"])
    except (TypeError, ValueError):
        logger.warning("Invalid precision %r, using default",
                       tracking["precision"])
        tracking["precision"] = DEFAULT_PRECISION

    return config  # type: ignore[return-value]


def save_config(config: Config, config_path: Path | None = None) -> bool:
    """
    Save configuration to file.

    Args:
        config: Configuration dictionary to save.
        config_path: Optional path to config file. If None, uses default location.

    Returns:
        True if save was successful, False otherwise.
    """
    if config_path is None:
        config_path = get_config_path()

    try:
        with open(config_path, 'w', encoding='utf-8') as f:
            yaml.dump(dict(config), f, default_flow_style=False, sort_keys=False)
        return True
    except (OSError, yaml.YAMLError) as e:
        logger.error("Error saving config to %s: %s", config_path, e)
        return False


def get_tracking_settings(config: Config) -> TrackingSettings:
    """
    Extract tracking settings from config.

    Args:
        config: Configuration dictionary.

    Returns:
        Tracking settings dictionary.
    """
    return config.get("tracking", DEFAULT_CONFIG["tracking"]).copy()  # type: ignore[return-value]

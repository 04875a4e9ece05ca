"""
Runtime configuration for the converter.

Settings are read from a YAML file and merged over built-in defaults, so a
partial file (or no file at all) still yields a complete configuration.
"""

import copy
import logging
import os
from typing import Any, Dict, Optional

import yaml

logger = logging.getLogger(__name__)

DEFAULT_SETTINGS: Dict[str, Dict[str, Any]] = {
    'accumulation': {
        'depth_threshold': 300,
    },
    'capture': {
        'read_timeout_ms': 100,
        'strict_resolution': True,
        'depth_scale_m': 0.001,
        'default_intrinsics': {'fx': 525.0, 'fy': 525.0, 'ppx': 319.5, 'ppy': 239.5},
    },
    'projection': {
        'fallback_color': [128, 128, 128],
    },
    'export': {
        'comment': 'created by rgbdsend',
    },
    'logging': {
        'level': 'INFO',
        'log_file': None,
    },
}


def get_default_config_path() -> str:
    """Get default path to the converter configuration."""
    possible_paths = [
        os.path.join(os.path.dirname(__file__), "config", "rgbd2point.yaml"),
        os.path.join(os.path.dirname(__file__), "..", "config", "rgbd2point.yaml"),
    ]

    for path in possible_paths:
        abs_path = os.path.abspath(path)
        if os.path.exists(abs_path):
            return abs_path

    # Return first path as default even if it doesn't exist
    return os.path.abspath(possible_paths[0])


def merge_settings(base: Dict[str, Any], overrides: Dict[str, Any]) -> Dict[str, Any]:
    """Return ``base`` with ``overrides`` applied section by section."""
    merged = copy.deepcopy(base)
    for key, value in overrides.items():
        if isinstance(merged.get(key), dict):
            # An empty section loads as None and keeps the defaults
            if isinstance(value, dict):
                merged[key] = merge_settings(merged[key], value)
            elif value is not None:
                logger.warning(f"Ignoring setting '{key}': expected a mapping, got {value!r}")
        else:
            merged[key] = value
    return merged


def load_settings(config_path: Optional[str] = None) -> Dict[str, Any]:
    """
    Load converter settings from YAML configuration.

    Args:
        config_path: Path to a YAML file; the packaged default is used if None

    Returns:
        Complete settings dictionary
    """
    config_path = config_path or get_default_config_path()

    if not os.path.exists(config_path):
        logger.warning(f"Configuration file not found: {config_path}, using defaults")
        return copy.deepcopy(DEFAULT_SETTINGS)

    try:
        with open(config_path, 'r') as f:
            config = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        logger.error(f"Failed to load configuration from {config_path}: {e}")
        return copy.deepcopy(DEFAULT_SETTINGS)

    if not isinstance(config, dict):
        logger.warning(f"Configuration file {config_path} is empty, using defaults")
        return copy.deepcopy(DEFAULT_SETTINGS)

    logger.info(f"Configuration loaded from {config_path}")
    return merge_settings(DEFAULT_SETTINGS, config)

"""
Configuration management for featmatch
"""

import copy
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from featmatch.exceptions import ConfigError

DEFAULT_CONFIG = {
    "matching": {
        "features": ["orb"],
        "matchers": ["bf"],
        "accept_ratio": 0.5,
        "accept_ratio_step": 0.05,
        "min_matches": 0
    },
    "visualization": {
        "max_height": 1000,
        "resize_policy": "none"
    },
    "logging": {
        "level": "INFO",
        "log_dir": None
    }
}


def merge_config(base: Dict[str, Any], overrides: Dict[str, Any]) -> Dict[str, Any]:
    """Return a copy of base with overrides merged in section by section."""
    merged = copy.deepcopy(base)
    for section, values in overrides.items():
        if section not in merged:
            raise ConfigError(f"Unknown configuration section '{section}'")
        if not isinstance(values, dict):
            raise ConfigError(f"Configuration section '{section}' must be a mapping")
        merged[section].update(copy.deepcopy(values))
    return merged


def load_config(path: Optional[str] = None) -> Dict[str, Any]:
    """Load a YAML config file over the defaults. Without a path, return the defaults."""
    if path is None:
        return copy.deepcopy(DEFAULT_CONFIG)

    config_path = Path(path)
    if not config_path.exists():
        raise ConfigError(f"Config file not found: {config_path}")

    with open(config_path, 'r') as f:
        try:
            data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {config_path}: {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(f"Top level of {config_path} must be a mapping")

    return merge_config(DEFAULT_CONFIG, data)

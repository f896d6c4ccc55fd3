"""
config.py - Configuration loader for the DICOM preview parser.

Loads settings from config.yaml with sensible defaults so that no
tuning parameter (tree depth, JPEG quality, frame policy, VOI mode) is
hard-coded inside a module.
"""

import os
import yaml
from typing import Any

# Resolve the config file relative to the repo root, not the CWD,
# so imports work regardless of where the script is launched from.
_REPO_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
_CONFIG_PATH = os.path.join(_REPO_ROOT, "config.yaml")

_DEFAULTS: dict[str, Any] = {
    "attribute_tree": {
        "max_depth": 2,
    },
    "preview": {
        "jpeg_quality": 60,
        "frame_policy": "fail_fast",
        "voi": "normalize",
    },
    "header_scan": {
        "header_length": 256,
        "uid_max_length": 64,
    },
}


def _deep_merge(base: dict, override: dict) -> dict:
    """Recursively merge *override* into *base*, returning a new dict."""
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def load_config(config_path: str = _CONFIG_PATH) -> dict[str, Any]:
    """
    Load the YAML configuration file and merge it with built-in defaults.

    Parameters
    ----------
    config_path : str
        Path to config.yaml. Defaults to the repo-root config.yaml.

    Returns
    -------
    dict
        Merged configuration dictionary.
    """
    if os.path.exists(config_path):
        with open(config_path, "r") as f:
            user_config = yaml.safe_load(f) or {}
    else:
        user_config = {}

    return _deep_merge(_DEFAULTS, user_config)


# Module-level singleton so callers can just do `from dicom_preview.config import CONFIG`
CONFIG = load_config()

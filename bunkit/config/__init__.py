"""Configuration module for bunkit.

This module provides the bunkit.yaml parser and the merged settings object.
"""

from bunkit.config.parser import (
    CONFIG_FILE_NAME,
    BunkitConfig,
    get_default_install_root,
    load_yaml_config,
    load_config,
)

__all__ = [
    "CONFIG_FILE_NAME",
    "BunkitConfig",
    "get_default_install_root",
    "load_yaml_config",
    "load_config",
]

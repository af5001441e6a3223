# bmsync Configuration Module
# Handles YAML-based configuration loading, validation, and defaults

from bmsync.config.defaults import DEFAULT_CONFIG, generate_default_config
from bmsync.config.loader import (
    CONFIG_ENV,
    ensure_config_exists,
    get_config_path,
    load_config,
    save_config,
    validate_config_file,
)
from bmsync.config.schema import API_KEY_ENV, BmsyncConfig, InstanceConfig, OutputConfig

__all__ = [
    # Schema
    "BmsyncConfig",
    "InstanceConfig",
    "OutputConfig",
    "API_KEY_ENV",
    # Loader
    "CONFIG_ENV",
    "load_config",
    "save_config",
    "get_config_path",
    "ensure_config_exists",
    "validate_config_file",
    # Defaults
    "DEFAULT_CONFIG",
    "generate_default_config",
]

# vaultsync Configuration Module
# Handles YAML-based configuration loading, validation, and defaults

from vaultsync.config.defaults import DEFAULT_CONFIG, generate_default_config
from vaultsync.config.loader import (
    ensure_config_exists,
    get_config_path,
    get_history_path,
    load_config,
    save_config,
    validate_config_file,
)
from vaultsync.config.schema import (
    BackendChoice,
    SyncConfiguration,
    credential_provider,
    parse_interval,
)

__all__ = [
    # Schema
    "SyncConfiguration",
    "BackendChoice",
    "credential_provider",
    "parse_interval",
    # Loader
    "load_config",
    "save_config",
    "get_config_path",
    "get_history_path",
    "ensure_config_exists",
    "validate_config_file",
    # Defaults
    "DEFAULT_CONFIG",
    "generate_default_config",
]

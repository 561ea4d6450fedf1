# vaultsync Configuration Loader
# Load, save, and manage the YAML configuration file

import os
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import ValidationError

from vaultsync.config.defaults import DEFAULT_CONFIG, generate_default_config
from vaultsync.config.schema import SyncConfiguration
from vaultsync.errors import ConfigError

CONFIG_ENV_VAR = "VAULTSYNC_CONFIG"


def get_config_dir() -> Path:
    """Get the vaultsync configuration directory."""
    return Path.home() / ".config" / "vaultsync"


def get_config_path() -> Path:
    """Get the path to the configuration file."""
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        return Path(env_path).expanduser()
    return get_config_dir() / "config.yaml"


def get_history_path(config: Optional[SyncConfiguration] = None) -> Path:
    """Get the sync history log path."""
    if config is not None and config.sync_history:
        return Path(config.sync_history)
    return get_config_dir() / "sync_history.log"


def load_config(config_path: Optional[Path] = None) -> SyncConfiguration:
    """
    Load configuration from YAML file.

    Args:
        config_path: Optional path to config file. Uses default if not provided.

    Returns:
        SyncConfiguration: Validated configuration object.

    Raises:
        FileNotFoundError: If config file doesn't exist.
        ConfigError: If the file is not valid YAML or fails validation.
    """
    if config_path is None:
        config_path = get_config_path()

    if not config_path.exists():
        raise FileNotFoundError(
            f"Configuration file not found: {config_path}\nRun 'vaultsync config init' to create one."
        )

    try:
        with open(config_path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError("Invalid YAML syntax", str(e)) from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError("Configuration root must be a mapping", str(config_path))

    try:
        return SyncConfiguration.model_validate(_merge_with_defaults(data))
    except ValidationError as e:
        raise ConfigError("Invalid configuration", _format_errors(e)) from e


def save_config(config: SyncConfiguration, config_path: Optional[Path] = None) -> Path:
    """
    Save configuration to YAML file.

    Args:
        config: Configuration object to save.
        config_path: Optional path to config file. Uses default if not provided.

    Returns:
        Path: Path where config was saved.
    """
    if config_path is None:
        config_path = get_config_path()

    config_path.parent.mkdir(parents=True, exist_ok=True)

    # mode='json' serializes Enums as their string values
    data = config.model_dump(mode="json")

    with open(config_path, "w", encoding="utf-8") as f:
        yaml.dump(data, f, default_flow_style=False, sort_keys=False, allow_unicode=True)

    return config_path


def ensure_config_exists(config_path: Optional[Path] = None) -> tuple[Path, bool]:
    """
    Ensure configuration file exists, creating default if needed.

    Returns:
        Tuple of (config_path, was_created).
    """
    if config_path is None:
        config_path = get_config_path()

    if config_path.exists():
        return config_path, False

    config_path.parent.mkdir(parents=True, exist_ok=True)
    config_path.write_text(generate_default_config(), encoding="utf-8")
    return config_path, True


def validate_config_file(config_path: Optional[Path] = None) -> tuple[bool, list[str]]:
    """
    Validate a configuration file without loading it into the system.

    Args:
        config_path: Path to config file to validate.

    Returns:
        Tuple of (is_valid, error_messages).
    """
    if config_path is None:
        config_path = get_config_path()

    if not config_path.exists():
        return False, [f"Configuration file not found: {config_path}"]

    try:
        with open(config_path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        return False, [f"Invalid YAML syntax: {e}"]

    if data is None:
        return False, ["Configuration file is empty"]
    if not isinstance(data, dict):
        return False, ["Configuration root must be a mapping"]

    errors: list[str] = []
    try:
        SyncConfiguration.model_validate(_merge_with_defaults(data))
    except ValidationError as e:
        errors.extend(_format_errors(e).split("; "))
        return False, errors

    if not data.get("remote_url"):
        errors.append("remote_url: not set")

    unknown = sorted(set(data) - set(DEFAULT_CONFIG))
    for key in unknown:
        errors.append(f"{key}: unknown setting")

    return len(errors) == 0, errors


def _merge_with_defaults(data: dict[str, Any]) -> dict[str, Any]:
    """Merge loaded data with default values for missing keys."""
    merged = dict(DEFAULT_CONFIG)
    merged.update({k: v for k, v in data.items() if k in DEFAULT_CONFIG})
    return merged


def _format_errors(error: ValidationError) -> str:
    parts = []
    for item in error.errors():
        loc = " -> ".join(str(part) for part in item["loc"])
        parts.append(f"{loc}: {item['msg']}")
    return "; ".join(parts)

"""Configuration loader with validation."""

from pathlib import Path

import yaml
from pydantic import ValidationError

from .models import BeaconConfig


class ConfigError(Exception):
    """Configuration error."""

    pass


def _resolve_relative(data: dict, section: str, key: str, base: Path) -> None:
    """Resolve a path option relative to the config file's directory."""
    value = (data.get(section) or {}).get(key)
    if not value:
        return
    path = Path(value)
    if not path.is_absolute():
        data[section][key] = (base / path).resolve()


def load_config(config_path: Path) -> BeaconConfig:
    """Load and validate configuration from YAML file.

    Args:
        config_path: Path to config YAML file

    Returns:
        Validated BeaconConfig instance

    Raises:
        ConfigError: If config file missing or invalid
    """
    if not config_path.exists():
        raise ConfigError(f"Configuration file not found: {config_path}")

    try:
        with open(config_path, "r") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {config_path}: {e}")

    if not data:
        raise ConfigError(f"Empty configuration file: {config_path}")
    if not isinstance(data, dict):
        raise ConfigError(f"Configuration must be a mapping: {config_path}")

    _resolve_relative(data, "ai", "prompt_dir", config_path.parent)
    _resolve_relative(data, "logging", "log_dir", config_path.parent)

    try:
        return BeaconConfig(**data)
    except ValidationError as e:
        raise ConfigError(f"Configuration validation failed: {e}")


def create_default_config(config_path: Path) -> None:
    """Create default configuration file.

    Args:
        config_path: Path where config should be created
    """
    config_path.parent.mkdir(parents=True, exist_ok=True)

    default_config = {
        "ai": {
            "enabled": False,
            "model": None,
            "api_key_env": "OPENAI_API_KEY",
            "max_retries": 3,
            "base_backoff_ms": 400,
            "max_backoff_ms": 12000,
            "max_server_delay_ms": 60000,
            "timeout_sec": 30,
            "require_balanced_output": True,
        },
        "logging": {
            "level": "INFO",
            "log_dir": "logs",
            "rotation_mb": 10,
            "retention_days": 7,
        },
    }

    with open(config_path, "w") as f:
        yaml.dump(default_config, f, default_flow_style=False, sort_keys=False)

"""
Hub Settings

Application settings loaded from environment variables (or a .env file),
optionally overlaid by a YAML file.

Create a .env file with:
- PROBE_API_KEY=...
- LOG_COLLECTOR_API_KEY=...
- CLI_API_KEY=...

Or point TELEMETRY_HUB_CONFIG at a YAML file with the same keys:

    probe_api_key: probe-secret
    cleanup_interval_minutes: 5
    delete_timeout_minutes: 30
"""

import os
from functools import lru_cache
from pathlib import Path

import yaml
from pydantic_settings import BaseSettings

from .common.exceptions import HubError
from .common.logging_setup import get_service_logger

logger = get_service_logger("config")

# Environment variable naming an optional YAML config file
CONFIG_PATH_ENV = "TELEMETRY_HUB_CONFIG"


class Settings(BaseSettings):
    """
    Hub configuration.

    Secrets default to empty; an empty secret never matches, so a hub
    started without keys rejects every request instead of accepting all.
    """
    # Shared secrets, one per caller role
    probe_api_key: str = ""
    log_collector_api_key: str = ""
    cli_api_key: str = ""

    # Retention: how often a cleanup pass may run, and how old rows must be
    cleanup_interval_minutes: int = 5
    delete_timeout_minutes: int = 30
    cleanup_batch_size: int = 10000

    # Reporting cadence assumed until an operator sets one (seconds)
    default_upload_interval: int = 300

    # Export page size
    max_log_items_per_download: int = 10000

    # Storage
    database_path: Path = Path("data/telemetry_hub.db")
    kv_store_path: Path | None = None  # None = same file as database_path

    # Logging: trace, debug, info, warn, error
    loglevel: str = "info"
    log_format: str = "json"

    @property
    def resolved_kv_store_path(self) -> Path:
        return self.kv_store_path or self.database_path

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


def load_yaml_config(config_path: str | Path) -> dict:
    """
    Load settings overrides from a YAML file.

    Unknown keys are logged and skipped.

    Raises:
        HubError: File missing or not a YAML mapping
    """
    path = Path(config_path)
    if not path.exists():
        raise HubError(f"Configuration file not found: {config_path}")

    try:
        with open(path, "r") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise HubError(f"Error parsing configuration {config_path}: {e}") from e

    if not isinstance(data, dict):
        raise HubError(f"Configuration {config_path} must be a mapping")

    known = {}
    for key, value in data.items():
        if key in Settings.model_fields:
            known[key] = value
        else:
            logger.warning(f"Ignoring unknown config key: {key}")

    logger.info(f"Loaded configuration from {config_path}")
    return known


def load_settings(config_path: str | Path | None = None) -> Settings:
    """Build Settings from env/.env, with YAML values taking precedence."""
    config_path = config_path or os.environ.get(CONFIG_PATH_ENV)
    overrides = load_yaml_config(config_path) if config_path else {}
    return Settings(**overrides)


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings."""
    return load_settings()

"""Configuration management for the rental conflict engine."""

from __future__ import annotations

import logging
import os
from pathlib import Path

import yaml
from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "RENTAL_ENGINE_CONFIG"


class AppConfig(BaseModel):
    """Application configuration."""

    name: str = "Rental Conflict Engine"
    debug: bool = False
    log_level: str = "INFO"


class EngineConfig(BaseModel):
    """Conflict and availability engine settings."""

    active_statuses: list[str] = Field(
        default_factory=lambda: ["processing", "on-hold", "completed"]
    )
    reference_timezone: str = "UTC"
    alternative_date_offset_days: int = 7
    # Active orders whose end date passed less than this many days ago stay
    # in the field view, tagged expired.
    overdue_lookback_days: int = 0
    placeholder_image: str = "https://via.placeholder.com/150"
    default_currency: str = "CLP"
    unnamed_product: str = "Unnamed product"
    unnamed_project: str = "No project"
    unnamed_customer: str = "Unnamed customer"
    missing_email: str = "No email"


class SeedConfig(BaseModel):
    """Demo data settings."""

    demo_data: bool = False


class Settings(BaseModel):
    """Main settings container."""

    app: AppConfig = Field(default_factory=AppConfig)
    engine: EngineConfig = Field(default_factory=EngineConfig)
    seed: SeedConfig = Field(default_factory=SeedConfig)


def load_config(config_path: str | None = None) -> Settings:
    """Load configuration from a YAML file.

    Args:
        config_path: Path to config file. If None, tries the environment
            variable and then the default locations.

    Returns:
        Settings object with loaded configuration.
    """
    default_paths = [
        Path("config/config.yaml"),
        Path("config.yaml"),
    ]

    if config_path is None:
        config_path = os.environ.get(CONFIG_ENV_VAR)

    config_file = None

    if config_path:
        config_file = Path(config_path)
        if not config_file.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")
    else:
        for path in default_paths:
            if path.exists():
                config_file = path
                break

    if config_file is None:
        logger.debug("No config file found, using defaults")
        return Settings()

    logger.info("Loading config from: %s", config_file)

    with open(config_file, "r") as f:
        config_data = yaml.safe_load(f) or {}

    return Settings(**config_data)


# Global settings instance
_settings: Settings | None = None


def get_settings() -> Settings:
    """Get the global settings instance."""
    global _settings
    if _settings is None:
        _settings = load_config()
    return _settings


def init_settings(config_path: str | None = None) -> Settings:
    """Initialize settings from config file."""
    global _settings
    _settings = load_config(config_path)
    return _settings


def update_settings(new_settings: Settings) -> None:
    """Replace the global settings instance."""
    global _settings
    _settings = new_settings

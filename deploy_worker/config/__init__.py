"""Configuration package for runtime settings, logging and startup validation."""

from .log_setup import config_configure_logging
from .settings import AppSettings, SettingsLoadError, config_load_database_url, config_load_settings

__all__ = [
    "AppSettings",
    "SettingsLoadError",
    "config_configure_logging",
    "config_load_settings",
    "config_load_database_url",
]

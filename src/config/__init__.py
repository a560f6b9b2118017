"""Configuration module — exports Settings, load_config, and a module-level singleton."""

from src.config.loader import config_value, load_config
from src.config.settings import Settings

settings = Settings()

__all__ = ["Settings", "config_value", "load_config", "settings"]

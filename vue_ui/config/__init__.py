"""Configuration module for vue_ui."""

from vue_ui.config.loader import clear_config_cache, get_config, get_config_path, load_config, save_config
from vue_ui.config.schema import Config

__all__ = ["Config", "load_config", "save_config", "get_config_path", "get_config", "clear_config_cache"]

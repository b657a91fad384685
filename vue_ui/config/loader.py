"""Configuration loading utilities."""

import json
import threading
from pathlib import Path
from typing import Any

from loguru import logger

from vue_ui.config.schema import Config


def get_config_path() -> Path:
    """Get the default configuration file path."""
    return Path.home() / ".vue_ui" / "config.json"


def get_data_dir() -> Path:
    """Get the vue_ui data directory, creating it when missing."""
    path = Path.home() / ".vue_ui"
    path.mkdir(parents=True, exist_ok=True)
    return path


def load_config(config_path: Path | None = None) -> Config:
    """
    Load configuration from file or create default.

    Args:
        config_path: Optional path to config file. Uses default if not provided.

    Returns:
        Loaded configuration object.
    """
    path = config_path or get_config_path()

    if path.exists():
        try:
            with open(path, encoding="utf-8") as f:
                data = json.load(f)
            return Config.model_validate(convert_keys(data))
        except (json.JSONDecodeError, ValueError) as e:
            raise ValueError(
                f"Failed to load config from {path}: {e}. "
                "Fix the file or remove it to regenerate defaults."
            ) from e

    return Config()


def save_config(config: Config, config_path: Path | None = None) -> None:
    """
    Save configuration to file.

    Args:
        config: Configuration to save.
        config_path: Optional path to save to. Uses default if not provided.
    """
    path = config_path or get_config_path()
    path.parent.mkdir(parents=True, exist_ok=True)

    data = convert_to_camel(config.model_dump())

    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2)
    logger.debug("Config saved to {}", path)
    _cache.store(path, config)


class ConfigCache:
    """
    Loaded configs keyed by resolved file path.

    An entry is served until it is reloaded, dropped, or replaced by
    ``save_config``; edits made to the file by other processes are not
    picked up on their own. The CLI commands and the server read through
    the module-level instance via ``get_config``.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._entries: dict[Path, Config] = {}

    @staticmethod
    def key(config_path: Path | None) -> Path:
        return Path(config_path or get_config_path()).expanduser().resolve()

    def get(self, config_path: Path | None = None, *, reload: bool = False) -> Config:
        key = self.key(config_path)
        with self._lock:
            config = None if reload else self._entries.get(key)
            if config is None:
                config = load_config(key)
                self._entries[key] = config
                logger.debug("Config loaded from {}", key)
            return config

    def store(self, config_path: Path | None, config: Config) -> None:
        with self._lock:
            self._entries[self.key(config_path)] = config

    def drop(self, config_path: Path | None = None) -> None:
        """Forget one entry, or every entry when no path is given."""
        with self._lock:
            if config_path is None:
                self._entries.clear()
            else:
                self._entries.pop(self.key(config_path), None)

    def __len__(self) -> int:
        return len(self._entries)


_cache = ConfigCache()


def get_config(*, config_path: Path | None = None, force_reload: bool = False) -> Config:
    """Cached ``load_config``; ``force_reload`` re-reads the file."""
    return _cache.get(config_path, reload=force_reload)


def clear_config_cache(*, config_path: Path | None = None) -> None:
    _cache.drop(config_path)


def convert_keys(data: Any) -> Any:
    """Convert camelCase keys to snake_case for Pydantic."""
    if isinstance(data, dict):
        return {camel_to_snake(k): convert_keys(v) for k, v in data.items()}
    if isinstance(data, list):
        return [convert_keys(item) for item in data]
    return data


def convert_to_camel(data: Any) -> Any:
    """Convert snake_case keys to camelCase."""
    if isinstance(data, dict):
        return {snake_to_camel(k): convert_to_camel(v) for k, v in data.items()}
    if isinstance(data, list):
        return [convert_to_camel(item) for item in data]
    return data


def camel_to_snake(name: str) -> str:
    """Convert camelCase to snake_case."""
    result = []
    for i, char in enumerate(name):
        if char.isupper() and i > 0:
            result.append("_")
        result.append(char.lower())
    return "".join(result)


def snake_to_camel(name: str) -> str:
    """Convert snake_case to camelCase."""
    components = name.split("_")
    return components[0] + "".join(x.title() for x in components[1:])

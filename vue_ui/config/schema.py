"""Configuration schema using Pydantic.

Persisted to ~/.vue_ui/config.json with camelCase keys; every field can also
be overridden from the environment (``VUE_UI_SERVER__PORT=9000``).
"""

from pathlib import Path

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ServerConfig(BaseModel):
    """Component protocol server."""
    host: str = "127.0.0.1"
    port: int = Field(default=9999, ge=0, le=65535)  # 0 picks a free port


class BridgeConfig(BaseModel):
    """Message bridge between host and embedded runtimes."""
    timeout_seconds: float = Field(default=10.0, gt=0)
    log_messages: bool = False
    max_log_entries: int = Field(default=1000, ge=1)
    log_path: str = ""  # Default target of MessageBridge.save_message_log


class LoggingConfig(BaseModel):
    """Log sinks for the CLI."""
    level: str = "INFO"
    file: bool = False  # Also write a rotating file under ~/.vue_ui/logs


class SelectDefaults(BaseModel):
    """Display defaults applied to every Select the server loads."""
    title: str = "Select"
    width: int = Field(default=30, ge=1)
    placeholder: str = "Select..."
    style: str = "default"
    max_visible_options: int = Field(default=5, ge=1)


class ComponentsConfig(BaseModel):
    select: SelectDefaults = Field(default_factory=SelectDefaults)


class Config(BaseSettings):
    """Root configuration for vue_ui."""
    server: ServerConfig = Field(default_factory=ServerConfig)
    bridge: BridgeConfig = Field(default_factory=BridgeConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    components: ComponentsConfig = Field(default_factory=ComponentsConfig)

    @property
    def data_path(self) -> Path:
        return Path.home() / ".vue_ui"

    def component_defaults(self) -> dict[str, dict]:
        """Per-component-type prop defaults, keyed by component name."""
        return {"Select": self.components.select.model_dump()}

    model_config = SettingsConfigDict(
        env_prefix="VUE_UI_",
        env_nested_delimiter="__",
    )

"""Socket command protocol for driving components remotely."""

from vue_ui.server.client import ComponentClient
from vue_ui.server.handlers import CommandHandlers
from vue_ui.server.registry import ComponentRegistry
from vue_ui.server.server import ComponentServer

__all__ = ["CommandHandlers", "ComponentClient", "ComponentRegistry", "ComponentServer"]

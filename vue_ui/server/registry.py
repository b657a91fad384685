"""Server-owned registry of live component instances."""

from __future__ import annotations

import asyncio
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from loguru import logger

from vue_ui.components import COMPONENT_TYPES, Component
from vue_ui.components.buffer import BufferBackend, InMemoryBufferBackend
from vue_ui.utils.exceptions import ComponentExistsError, ComponentNotFoundError, UnsupportedTypeError

if TYPE_CHECKING:
    from vue_ui.bridge.core import MessageBridge


class ComponentRegistry:
    """Maps component id to instance; insert/lookup/remove are serialised by one lock."""

    def __init__(
        self,
        *,
        buffer_backend: BufferBackend | None = None,
        bridge: MessageBridge | None = None,
        component_types: Mapping[str, type[Component]] | None = None,
        defaults: Mapping[str, Mapping[str, Any]] | None = None,
    ):
        self.buffer_backend: BufferBackend = buffer_backend if buffer_backend is not None else InMemoryBufferBackend()
        self.bridge = bridge
        self.component_types: dict[str, type[Component]] = dict(COMPONENT_TYPES if component_types is None else component_types)
        self.defaults = {name: dict(values) for name, values in (defaults or {}).items()}
        self._components: dict[str, Component] = {}
        self._lock = asyncio.Lock()

    def resolve_type(self, name: str) -> type[Component]:
        cls = self.component_types.get(name)
        if cls is None:
            raise UnsupportedTypeError(name)
        return cls

    async def create(
        self,
        name: str,
        *,
        component_id: str | None = None,
        props: Mapping[str, Any] | None = None,
        force: bool = False,
    ) -> Component:
        """Instantiate, mount and register a component.

        An existing id is replaced when ``force`` is set, otherwise rejected
        with COMPONENT_EXISTS.
        """
        cls = self.resolve_type(name)
        kwargs: dict[str, Any] = dict(props or {})
        if name in self.defaults:
            kwargs["defaults"] = self.defaults[name]
        async with self._lock:
            replaced: Component | None = None
            if component_id and component_id in self._components:
                if not force:
                    raise ComponentExistsError(component_id)
                replaced = self._components.pop(component_id)
            if replaced is not None:
                logger.info("Force reloading component {}", component_id)
                await replaced.destroy()
            component = cls(component_id, bridge=self.bridge, buffer_backend=self.buffer_backend, **kwargs)
            try:
                await component.mount()
            except Exception:
                logger.warning("Mounting {} component {} failed, releasing it", name, component.id)
                await self._discard(component)
                raise
            self._components[component.id] = component
        logger.info("Loaded {} component {}", name, component.id)
        return component

    async def get(self, component_id: str) -> Component:
        async with self._lock:
            component = self._components.get(component_id)
        if component is None:
            raise ComponentNotFoundError(component_id)
        return component

    async def remove(self, component_id: str) -> Component:
        async with self._lock:
            component = self._components.pop(component_id, None)
        if component is None:
            raise ComponentNotFoundError(component_id)
        await component.destroy()
        logger.info("Unloaded component {}", component_id)
        return component

    async def clear(self) -> int:
        """Destroy every registered component; returns how many were removed."""
        async with self._lock:
            doomed = list(self._components.values())
            self._components.clear()
        for component in doomed:
            await self._discard(component)
        if doomed:
            logger.info("Cleaned {} components", len(doomed))
        return len(doomed)

    @staticmethod
    async def _discard(component: Component) -> None:
        try:
            await component.destroy()
        except Exception as e:
            logger.warning("Failed to destroy component {}: {}", component.id, e)

    def ids(self) -> list[str]:
        return sorted(self._components)

    def __contains__(self, component_id: object) -> bool:
        return component_id in self._components

    def __len__(self) -> int:
        return len(self._components)

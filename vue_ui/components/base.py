"""Component instance runtime: state, methods, hooks and buffer rendering."""

from __future__ import annotations

import asyncio
import functools
import inspect
import uuid
from collections.abc import Callable, Mapping
from typing import TYPE_CHECKING, Any, ClassVar

from loguru import logger

from vue_ui.bridge.protocol import BridgeMessage, MessageType
from vue_ui.bridge.serialization import safe_dict
from vue_ui.reactivity.state import ComputedFn, ReactiveState
from vue_ui.utils.exceptions import (
    BridgeError,
    DestroyedComponentError,
    MethodNotFoundError,
    ValidationError,
)

from .buffer import BufferBackend, InMemoryBufferBackend
from .hooks import LifecycleHooks, run_hook

if TYPE_CHECKING:
    from vue_ui.bridge.core import MessageBridge

Listener = Callable[[dict[str, Any]], Any]


class Component:
    """
    One live widget bound to a buffer.

    Lifecycle: constructed -> mounted -> (updated)* -> destroyed. A destroyed
    instance is terminal; ``call_method`` and ``update_state`` on it raise
    DestroyedComponentError, a second ``destroy`` is a no-op.

    Subclasses declare their public operations in ``METHODS`` and settable
    props in ``PROPS`` and override ``render_lines``.
    """

    component_type: ClassVar[str] = "Component"
    METHODS: ClassVar[tuple[str, ...]] = ()
    PROPS: ClassVar[tuple[str, ...]] = ()

    def __init__(
        self,
        component_id: str | None = None,
        *,
        state: Mapping[str, Any] | None = None,
        computed: Mapping[str, ComputedFn] | None = None,
        methods: Mapping[str, Callable[..., Any]] | None = None,
        hooks: LifecycleHooks | None = None,
        bridge: MessageBridge | None = None,
        buffer_backend: BufferBackend | None = None,
        render: Callable[[Component], list[str]] | None = None,
    ):
        self.id = component_id or f"{self.component_type.lower()}_{uuid.uuid4().hex[:8]}"
        self.state = ReactiveState(state, computed)
        self.hooks = hooks or LifecycleHooks()
        self.bridge = bridge
        self.buffer_backend: BufferBackend = buffer_backend if buffer_backend is not None else InMemoryBufferBackend()
        self.buffer: Any = None
        self.mounted = False
        self.destroyed = False
        self.mounting = False
        self.destroying = False
        self._render_fn = render
        self._render_lock = asyncio.Lock()
        self._listeners: dict[str, list[Listener]] = {}
        self.methods: dict[str, Callable[..., Any]] = {name: getattr(self, name) for name in self.METHODS}
        for name, fn in (methods or {}).items():
            self.methods[name] = functools.partial(fn, self)
        if bridge is not None:
            bridge.register_handler(self.id, self.handle_message)

    # -- rendering -----------------------------------------------------------

    def render_lines(self) -> list[str]:
        """Display lines; a pure function of the current state."""
        if self._render_fn is not None:
            return list(self._render_fn(self))
        return []

    async def mount(self) -> bool:
        if self.mounted or self.mounting or self.destroyed or self.destroying:
            return False
        self.mounting = True
        try:
            await run_hook(self.hooks, "before_mount", self)
            async with self._render_lock:
                # destroy() may have run while before_mount was suspended
                if self.destroyed or self.destroying:
                    logger.debug("{} {} destroyed before mount completed", self.component_type, self.id)
                    return False
                buffer = await self.buffer_backend.create(f"{self.component_type}_{self.id}", self.buffer_options())
                try:
                    await self.buffer_backend.set_lines(buffer, self.render_lines())
                except Exception:
                    await self.buffer_backend.close(buffer)
                    raise
                self.buffer = buffer
                self.mounted = True
        finally:
            self.mounting = False
        logger.debug("Mounted {} {}", self.component_type, self.id)
        await run_hook(self.hooks, "on_mounted", self)
        await self.emit("component:mounted", {"type": self.component_type, "buffer": self.buffer})
        return True

    async def render(self) -> bool:
        if not self.mounted:
            return False
        async with self._render_lock:
            # A destroy may have run while this render waited for the lock.
            if not self.mounted or self.buffer is None:
                return False
            await self.buffer_backend.set_lines(self.buffer, self.render_lines())
        await run_hook(self.hooks, "on_updated", self)
        await self.emit("component:updated", {"type": self.component_type})
        return True

    def buffer_options(self) -> dict[str, Any]:
        return {"component_type": self.component_type}

    # -- state and methods ---------------------------------------------------

    async def update_state(self, patch: Mapping[str, Any]) -> bool:
        """Write every key of ``patch`` (watchers fire per key), then render once."""
        self._ensure_alive("update state")
        if not isinstance(patch, Mapping):
            raise ValidationError("state patch must be a mapping", field="updates")
        for key, value in patch.items():
            self.state.set(key, value)
        await self.render()
        return True

    async def call_method(self, name: str, *args: Any) -> Any:
        self._ensure_alive(f"call {name}")
        fn = self.methods.get(name)
        if fn is None:
            raise MethodNotFoundError(name)
        result = fn(*args)
        if inspect.isawaitable(result):
            result = await result
        return result

    async def set_props(self, props: Mapping[str, Any]) -> bool:
        """Apply display props; unknown prop names are rejected before any write."""
        self._ensure_alive("set props")
        if not isinstance(props, Mapping):
            raise ValidationError("props must be a mapping", field="props")
        return await self.update_state(self.coerce_props(props))

    def coerce_props(self, props: Mapping[str, Any]) -> dict[str, Any]:
        """Validate prop names and values; returns the state patch to apply."""
        unknown = sorted(k for k in props if k not in self.PROPS)
        if unknown:
            raise ValidationError(f"Unknown props for {self.component_type}: {', '.join(unknown)}", field="props")
        return dict(props)

    def get_state(self) -> dict[str, Any]:
        return {"id": self.id, "component_type": self.component_type, **self.state.snapshot()}

    async def destroy(self) -> bool:
        if self.destroyed or self.destroying:
            return False
        self.destroying = True
        try:
            await run_hook(self.hooks, "on_before_destroy", self)
            async with self._render_lock:
                if self.buffer is not None:
                    try:
                        await self.buffer_backend.close(self.buffer)
                    except Exception as e:
                        logger.warning("Failed to release buffer for {} {}: {}", self.component_type, self.id, e)
                    self.buffer = None
                if self.bridge is not None:
                    self.bridge.unregister_handler(self.id)
                self.destroyed = True
                self.mounted = False
        finally:
            self.destroying = False
        logger.debug("Destroyed {} {}", self.component_type, self.id)
        await run_hook(self.hooks, "on_destroyed", self)
        await self.emit("component:destroyed", {"type": self.component_type})
        return True

    def _ensure_alive(self, operation: str) -> None:
        if self.destroyed:
            raise DestroyedComponentError(self.id, operation)

    # -- events --------------------------------------------------------------

    def on(self, event: str, listener: Listener) -> Callable[[], None]:
        """Subscribe a local listener; the returned callable unsubscribes."""
        self._listeners.setdefault(event, []).append(listener)

        def off() -> None:
            listeners = self._listeners.get(event)
            if listeners and listener in listeners:
                listeners.remove(listener)

        return off

    async def emit(self, event: str, payload: dict[str, Any] | None = None) -> None:
        """Notify local listeners, then forward the event over the bridge."""
        data = {"id": self.id, **(payload or {})}
        for listener in list(self._listeners.get(event, ())):
            result = listener(data)
            if inspect.isawaitable(result):
                await result
        if self.bridge is None or self.bridge.transport is None:
            return
        try:
            await self.bridge.notify(self.id, event, data)
        except BridgeError as e:
            logger.warning("Failed to emit {} for {}: {}", event, self.id, e)

    # -- bridge --------------------------------------------------------------

    async def handle_message(self, message: BridgeMessage) -> Any:
        """Bridge handler for ``callMethod``, ``updateState`` and ``getState``."""
        if message.type not in (MessageType.REQUEST, MessageType.EVENT):
            logger.debug("Ignoring {} message {} for {}", message.type.value, message.action, self.id)
            return None
        payload = safe_dict(message.payload)
        if message.action == "callMethod":
            method = payload.get("method")
            if not isinstance(method, str) or not method:
                raise ValidationError("callMethod requires a method name", field="method")
            args = payload.get("args") or []
            if not isinstance(args, list):
                raise ValidationError("callMethod args must be a list", field="args")
            return await self.call_method(method, *args)
        if message.action == "updateState":
            return await self.update_state(safe_dict(payload.get("updates")))
        if message.action == "getState":
            return self.get_state()
        raise MethodNotFoundError(message.action)

    def __repr__(self) -> str:
        status = "destroyed" if self.destroyed else "mounted" if self.mounted else "unmounted"
        return f"{type(self).__name__}(id={self.id!r}, {status})"

"""Host-side handles for components living in the embedded runtime.

A proxy holds nothing but the component id; every operation is a bridge
request answered by the component's registered handler.
"""

from __future__ import annotations

from typing import Any

from .core import MessageBridge


class RemoteComponent:
    """Remote handle translating calls into ``callMethod``/``updateState``/``getState``."""

    def __init__(self, bridge: MessageBridge, component_id: str, *, timeout: float | None = None):
        self.bridge = bridge
        self.id = component_id
        self.timeout = timeout

    async def call_method(self, method: str, *args: Any) -> Any:
        return await self.bridge.request(
            self.id,
            "callMethod",
            {"method": method, "args": list(args)},
            timeout=self.timeout,
        )

    async def update_state(self, updates: dict[str, Any]) -> Any:
        return await self.bridge.request(self.id, "updateState", {"updates": dict(updates)}, timeout=self.timeout)

    async def get_state(self) -> dict[str, Any]:
        state = await self.bridge.request(self.id, "getState", None, timeout=self.timeout)
        return state if isinstance(state, dict) else {}

    def __repr__(self) -> str:
        return f"{type(self).__name__}(id={self.id!r})"


class RemoteSelect(RemoteComponent):
    """Typed remote handle for a Select widget."""

    async def open(self) -> bool:
        return bool(await self.call_method("open"))

    async def close(self) -> bool:
        return bool(await self.call_method("close"))

    async def focus_option(self, index: int) -> bool:
        return bool(await self.call_method("focus_option", index))

    async def focus_next_option(self) -> bool:
        return bool(await self.call_method("focus_next_option"))

    async def focus_prev_option(self) -> bool:
        return bool(await self.call_method("focus_prev_option"))

    async def focus_previous_option(self) -> bool:
        return bool(await self.call_method("focus_previous_option"))

    async def select_option(self, index: int) -> bool:
        return bool(await self.call_method("select_option", index))

    async def select_by_value(self, value: Any) -> bool:
        return bool(await self.call_method("select_by_value", value))

    async def select_focused_option(self) -> bool:
        return bool(await self.call_method("select_focused_option"))

    async def set_disabled(self, disabled: bool) -> bool:
        return bool(await self.call_method("set_disabled", disabled))

    async def update_options(self, options: list[Any]) -> bool:
        return bool(await self.call_method("update_options", options))

    async def confirm(self) -> bool:
        return bool(await self.call_method("confirm"))

    async def cancel(self, reason: str | None = None) -> bool:
        return bool(await self.call_method("cancel", reason))

    async def get_value(self) -> Any:
        return await self.call_method("get_value")

"""Lifecycle hook set for a component instance."""

from __future__ import annotations

import inspect
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .base import Component

Hook = Callable[["Component"], Any]


@dataclass(frozen=True, slots=True)
class LifecycleHooks:
    """Optional callbacks fixed at construction time.

    Order: before_mount -> (buffer allocation, first render) -> on_mounted;
    on_updated after every render; on_before_destroy -> (release) -> on_destroyed.
    """

    before_mount: Hook | None = None
    on_mounted: Hook | None = None
    on_updated: Hook | None = None
    on_before_destroy: Hook | None = None
    on_destroyed: Hook | None = None


async def run_hook(hooks: LifecycleHooks, name: str, component: Component) -> None:
    """Invoke hook ``name`` if set, awaiting it when it returns an awaitable."""
    hook = getattr(hooks, name)
    if hook is None:
        return
    result = hook(component)
    if inspect.isawaitable(result):
        await result

"""Handler registry: one async handler per target id."""

from __future__ import annotations

from .protocol import MessageHandler


class HandlerRegistry:
    """Maps a component (or conversation) id to exactly one handler."""

    def __init__(self) -> None:
        self._handlers: dict[str, MessageHandler] = {}

    def register(self, target_id: str, handler: MessageHandler) -> None:
        # Last registration wins; handlers never stack.
        self._handlers[target_id] = handler

    def unregister(self, target_id: str) -> bool:
        return self._handlers.pop(target_id, None) is not None

    def get(self, target_id: str) -> MessageHandler | None:
        return self._handlers.get(target_id)

    def __contains__(self, target_id: object) -> bool:
        return target_id in self._handlers

    def __len__(self) -> int:
        return len(self._handlers)

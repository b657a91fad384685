"""Message envelope shared by the host and embedded runtimes."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable


class MessageType(str, Enum):
    """Bridge message kinds."""

    REQUEST = "request"
    RESPONSE = "response"
    EVENT = "event"
    ERROR = "error"


@dataclass(slots=True)
class BridgeMessage:
    """One envelope crossing the bridge.

    ``id`` routes to the handler registered for a component (or conversation);
    ``correlation_id`` pairs a request with its reply and is copied verbatim.
    """

    id: str
    type: MessageType
    action: str
    payload: Any = None
    correlation_id: str | None = None
    timestamp: int | None = None

    @property
    def expects_reply(self) -> bool:
        return self.type == MessageType.REQUEST and bool(self.correlation_id)

    @property
    def is_reply(self) -> bool:
        return self.type in (MessageType.RESPONSE, MessageType.ERROR)


MessageHandler = Callable[[BridgeMessage], Awaitable[Any]]

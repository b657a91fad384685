"""Message bridge between the host runtime and the embedded runtime.

Outbound requests are tracked by correlation id in a pending map of asyncio
futures; inbound replies settle those futures, every other inbound message is
dispatched to the handler registered for its target id.
"""

from __future__ import annotations

import asyncio
import inspect
import json
import uuid
from collections import deque
from pathlib import Path
from typing import TYPE_CHECKING, Any, Protocol

from loguru import logger

from vue_ui.utils.exceptions import (
    BridgeClosedError,
    BridgeError,
    BridgeRemoteError,
    BridgeTimeoutError,
    HandlerNotFoundError,
    ValidationError,
    error_payload,
)

from .protocol import BridgeMessage, MessageHandler, MessageType
from .registry import HandlerRegistry
from .serialization import decode_message, encode_message_line, make_reply, message_to_dict, now_ms

if TYPE_CHECKING:
    from vue_ui.config.schema import BridgeConfig

DEFAULT_TIMEOUT_SECONDS = 10.0


class Transport(Protocol):
    """Carries encoded message lines to the peer runtime."""

    async def send(self, line: str) -> None: ...


class MessageBridge:
    """Correlates requests with replies and routes inbound messages to handlers."""

    def __init__(
        self,
        transport: Transport | None = None,
        *,
        name: str = "bridge",
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        log_messages: bool = False,
        max_log_entries: int = 1000,
        log_path: Path | None = None,
    ):
        self.name = name
        self.transport = transport
        self.timeout = timeout
        self.log_messages = log_messages
        self.log_path = log_path
        self._handlers = HandlerRegistry()
        self._pending: dict[str, asyncio.Future[Any]] = {}
        self._message_log: deque[dict[str, Any]] = deque(maxlen=max(1, max_log_entries))

    @classmethod
    def from_config(cls, config: BridgeConfig, *, name: str = "bridge", transport: Transport | None = None) -> MessageBridge:
        return cls(
            transport,
            name=name,
            timeout=config.timeout_seconds,
            log_messages=config.log_messages,
            max_log_entries=config.max_log_entries,
            log_path=Path(config.log_path) if config.log_path else None,
        )

    def attach(self, transport: Transport) -> None:
        self.transport = transport

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    def has_pending(self, correlation_id: str) -> bool:
        return correlation_id in self._pending

    def register_handler(self, target_id: str, handler: MessageHandler) -> None:
        self._handlers.register(target_id, handler)
        logger.debug("[{}] handler registered for {}", self.name, target_id)

    def unregister_handler(self, target_id: str) -> bool:
        removed = self._handlers.unregister(target_id)
        if removed:
            logger.debug("[{}] handler unregistered for {}", self.name, target_id)
        return removed

    def has_handler(self, target_id: str) -> bool:
        return target_id in self._handlers

    async def send_message(self, message: BridgeMessage, *, timeout: float | None = None) -> Any:
        """Send ``message``; for requests, wait for the correlated reply payload.

        Raises BridgeRemoteError when the peer answers with an error and
        BridgeTimeoutError when no reply arrives in time.
        """
        if message.timestamp is None:
            message.timestamp = now_ms()
        if message.type != MessageType.REQUEST:
            await self._write(message)
            return None

        if not message.correlation_id:
            message.correlation_id = uuid.uuid4().hex
        correlation_id = message.correlation_id
        if correlation_id in self._pending:
            raise ValidationError(f"correlation id already in flight: {correlation_id}", field="correlationId")
        wait = self.timeout if timeout is None else timeout
        fut: asyncio.Future[Any] = asyncio.get_running_loop().create_future()
        self._pending[correlation_id] = fut
        try:
            await self._write(message)
            return await asyncio.wait_for(fut, timeout=wait)
        except asyncio.TimeoutError as exc:
            logger.warning("[{}] request {} to {} timed out after {}s", self.name, message.action, message.id, wait)
            raise BridgeTimeoutError(message.action, wait, correlation_id) from exc
        finally:
            self._pending.pop(correlation_id, None)

    async def request(
        self,
        target_id: str,
        action: str,
        payload: Any = None,
        *,
        timeout: float | None = None,
    ) -> Any:
        message = BridgeMessage(id=target_id, type=MessageType.REQUEST, action=action, payload=payload)
        return await self.send_message(message, timeout=timeout)

    async def notify(self, target_id: str, action: str, payload: Any = None) -> None:
        message = BridgeMessage(id=target_id, type=MessageType.EVENT, action=action, payload=payload)
        await self.send_message(message)

    async def receive_message(self, raw: Any) -> None:
        """Handle one inbound frame. Never raises to the transport."""
        try:
            message = decode_message(raw)
        except ValidationError as exc:
            logger.warning("[{}] dropping malformed message: {}", self.name, exc.message)
            return
        self._record("received", message)

        if message.is_reply and message.correlation_id:
            fut = self._pending.get(message.correlation_id)
            if fut is not None:
                if not fut.done():
                    if message.type == MessageType.RESPONSE:
                        fut.set_result(message.payload)
                    else:
                        fut.set_exception(BridgeRemoteError(message.payload))
                return

        handler = self._handlers.get(message.id)
        if handler is None:
            logger.warning("[{}] no handler for {} (action={}), message dropped", self.name, message.id, message.action)
            if message.expects_reply:
                await self._reply(message, error_payload(HandlerNotFoundError(message.id)), error=True)
            return

        try:
            result = handler(message)
            if inspect.isawaitable(result):
                result = await result
        except Exception as exc:
            logger.warning("[{}] handler for {} failed on {}: {}", self.name, message.id, message.action, exc)
            if message.expects_reply:
                await self._reply(message, error_payload(exc), error=True)
            return
        if message.expects_reply:
            await self._reply(message, result)

    async def close(self) -> None:
        """Reject every in-flight request and drop the transport."""
        for correlation_id, fut in list(self._pending.items()):
            if not fut.done():
                fut.set_exception(BridgeClosedError(correlation_id))
        self._pending.clear()
        transport = self.transport
        self.transport = None
        close = getattr(transport, "close", None)
        if close is not None:
            result = close()
            if inspect.isawaitable(result):
                await result

    def get_message_log(self) -> list[dict[str, Any]]:
        return list(self._message_log)

    def clear_message_log(self) -> None:
        self._message_log.clear()

    def save_message_log(self, path: Path | None = None) -> Path:
        """Write the message log as JSON to ``path`` (default: the configured log path)."""
        path = path or self.log_path
        if path is None:
            raise BridgeError(f"bridge {self.name} has no message log path", code="NO_LOG_PATH")
        path = Path(path).expanduser()
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(self.get_message_log(), f, ensure_ascii=False, indent=2)
        logger.info("[{}] message log saved to {}", self.name, path)
        return path

    async def _reply(self, request: BridgeMessage, payload: Any, *, error: bool = False) -> None:
        try:
            await self._write(make_reply(request, payload, error=error))
        except Exception as exc:
            logger.error("[{}] failed to reply to {} ({}): {}", self.name, request.id, request.action, exc)

    async def _write(self, message: BridgeMessage) -> None:
        if self.transport is None:
            raise BridgeError(f"bridge {self.name} has no transport", code="TRANSPORT_UNAVAILABLE")
        self._record("sent", message)
        await self.transport.send(encode_message_line(message))

    def _record(self, direction: str, message: BridgeMessage) -> None:
        if not self.log_messages:
            return
        self._message_log.append(
            {
                "direction": direction,
                "message": message_to_dict(message),
                "timestamp": now_ms(),
            }
        )

"""Serialization helpers for bridge message frames."""

from __future__ import annotations

import json
import time
from typing import Any

from vue_ui.utils.exceptions import ValidationError

from .protocol import BridgeMessage, MessageType


def safe_dict(value: Any) -> dict[str, Any]:
    """Return the value when dict-like, otherwise an empty dict."""
    return value if isinstance(value, dict) else {}


def now_ms() -> int:
    return int(time.time() * 1000)


def message_to_dict(message: BridgeMessage) -> dict[str, Any]:
    """Wire shape of a message (camelCase ``correlationId``)."""
    payload: dict[str, Any] = {
        "id": message.id,
        "type": message.type.value,
        "action": message.action,
        "payload": message.payload,
    }
    if message.correlation_id is not None:
        payload["correlationId"] = message.correlation_id
    if message.timestamp is not None:
        payload["timestamp"] = message.timestamp
    return payload


def encode_message_line(message: BridgeMessage) -> str:
    """Encode a message into one line of JSON."""
    return json.dumps(message_to_dict(message), ensure_ascii=False)


def decode_message(raw: Any) -> BridgeMessage:
    """Decode a raw frame (str, bytes or mapping) into a BridgeMessage.

    Raises ValidationError when the frame is not a well-formed envelope.
    """
    if isinstance(raw, (bytes, bytearray)):
        try:
            raw = raw.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise ValidationError("message frame is not valid UTF-8") from exc
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise ValidationError(f"invalid JSON frame: {exc.msg}") from exc
    if isinstance(raw, BridgeMessage):
        return raw
    row = safe_dict(raw)
    if not row:
        raise ValidationError("message frame must be a JSON object")
    target = row.get("id")
    if not isinstance(target, str) or not target:
        raise ValidationError("message id must be a non-empty string", field="id")
    try:
        msg_type = MessageType(row.get("type"))
    except ValueError as exc:
        raise ValidationError(f"unknown message type: {row.get('type')!r}", field="type") from exc
    correlation_id = row.get("correlationId", row.get("correlation_id"))
    timestamp = row.get("timestamp")
    return BridgeMessage(
        id=target,
        type=msg_type,
        action=str(row.get("action") or ""),
        payload=row.get("payload"),
        correlation_id=str(correlation_id) if correlation_id is not None else None,
        timestamp=int(timestamp) if isinstance(timestamp, (int, float)) else None,
    )


def make_reply(request: BridgeMessage, payload: Any, *, error: bool = False) -> BridgeMessage:
    """Build the response (or error) answering ``request``."""
    return BridgeMessage(
        id=request.id,
        type=MessageType.ERROR if error else MessageType.RESPONSE,
        action=request.action,
        payload=payload,
        correlation_id=request.correlation_id,
        timestamp=now_ms(),
    )

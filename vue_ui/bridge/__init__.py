"""Cross-runtime message bridge."""

from vue_ui.bridge.core import MessageBridge, Transport
from vue_ui.bridge.protocol import BridgeMessage, MessageHandler, MessageType
from vue_ui.bridge.proxy import RemoteComponent, RemoteSelect
from vue_ui.bridge.registry import HandlerRegistry
from vue_ui.bridge.serialization import decode_message, encode_message_line, make_reply, message_to_dict
from vue_ui.bridge.transport import LoopbackTransport, StreamTransport, connect_pair

__all__ = [
    "BridgeMessage",
    "HandlerRegistry",
    "LoopbackTransport",
    "MessageBridge",
    "MessageHandler",
    "MessageType",
    "RemoteComponent",
    "RemoteSelect",
    "StreamTransport",
    "Transport",
    "connect_pair",
    "decode_message",
    "encode_message_line",
    "make_reply",
    "message_to_dict",
]

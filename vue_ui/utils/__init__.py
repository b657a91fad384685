"""Utility functions for vue_ui."""

from vue_ui.utils.exceptions import (
    VueUIError,
    ValidationError,
    MissingParameterError,
    NotFoundError,
    ComponentNotFoundError,
    MethodNotFoundError,
    HandlerNotFoundError,
    UnsupportedTypeError,
    ComponentExistsError,
    DestroyedComponentError,
    BridgeError,
    BridgeTimeoutError,
    BridgeClosedError,
    BridgeRemoteError,
    ErrorCategory,
    classify_exception,
    error_payload,
    sanitize_error_message,
)

__all__ = [
    "VueUIError",
    "ValidationError",
    "MissingParameterError",
    "NotFoundError",
    "ComponentNotFoundError",
    "MethodNotFoundError",
    "HandlerNotFoundError",
    "UnsupportedTypeError",
    "ComponentExistsError",
    "DestroyedComponentError",
    "BridgeError",
    "BridgeTimeoutError",
    "BridgeClosedError",
    "BridgeRemoteError",
    "ErrorCategory",
    "classify_exception",
    "error_payload",
    "sanitize_error_message",
]

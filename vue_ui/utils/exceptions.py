"""
Exception hierarchy and error handling utilities for vue_ui.

Provides:
- Custom exception classes with wire error codes
- Error categorization (validation, not found, timeout, ...)
- Safe error message formatting for replies sent to peers
"""

from __future__ import annotations

import asyncio
import json
import re
from enum import Enum
from typing import Any


class ErrorCategory(Enum):
    """Error categories for classification."""
    RECOVERABLE = "recoverable"
    FATAL = "fatal"
    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    TIMEOUT = "timeout"
    TRANSPORT = "transport"


class VueUIError(Exception):
    """Base exception for all vue_ui errors."""

    def __init__(
        self,
        message: str,
        code: str = "UNKNOWN_ERROR",
        category: ErrorCategory = ErrorCategory.FATAL,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.category = category
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "category": self.category.value,
            "details": self.details,
        }

    def __str__(self) -> str:
        return f"[{self.code}] {self.message}"


class ValidationError(VueUIError):
    """Bad argument: wrong type, out-of-range index, malformed option list."""

    def __init__(self, message: str, field: str | None = None):
        details = {"field": field} if field else {}
        super().__init__(message, code="INVALID_ARGUMENT", category=ErrorCategory.VALIDATION, details=details)


class MissingParameterError(VueUIError):
    """A required request field is absent."""

    def __init__(self, parameter: str):
        super().__init__(
            f"Missing {parameter} parameter",
            code="MISSING_PARAMETER",
            category=ErrorCategory.VALIDATION,
            details={"parameter": parameter},
        )


class NotFoundError(VueUIError):
    """Resource not found error."""

    def __init__(self, resource_type: str, resource_id: str, code: str = "NOT_FOUND"):
        super().__init__(
            f"{resource_type} not found: {resource_id}",
            code=code,
            category=ErrorCategory.NOT_FOUND,
            details={"resource_type": resource_type, "resource_id": resource_id},
        )


class ComponentNotFoundError(NotFoundError):
    def __init__(self, component_id: str):
        super().__init__("Component", component_id, code="COMPONENT_NOT_FOUND")


class MethodNotFoundError(NotFoundError):
    def __init__(self, method: str):
        super().__init__("Method", method, code="METHOD_NOT_FOUND")


class HandlerNotFoundError(NotFoundError):
    def __init__(self, target_id: str):
        super().__init__("Handler", target_id, code="HANDLER_NOT_FOUND")


class UnsupportedTypeError(VueUIError):
    """Unknown component name on load."""

    def __init__(self, name: str):
        super().__init__(
            f"Unsupported component type: {name}",
            code="UNSUPPORTED_TYPE",
            category=ErrorCategory.VALIDATION,
            details={"name": name},
        )


class ComponentExistsError(VueUIError):
    def __init__(self, component_id: str):
        super().__init__(
            f"Component with ID {component_id} already exists",
            code="COMPONENT_EXISTS",
            category=ErrorCategory.CONFLICT,
            details={"component_id": component_id},
        )


class DestroyedComponentError(VueUIError):
    """Operation attempted on a destroyed (terminal) component instance."""

    def __init__(self, component_id: str, operation: str | None = None):
        message = f"Component {component_id} is destroyed"
        if operation:
            message += f", cannot {operation}"
        super().__init__(
            message,
            code="COMPONENT_DESTROYED",
            category=ErrorCategory.FATAL,
            details={"component_id": component_id, "operation": operation},
        )


class BridgeError(VueUIError):
    """Message bridge transport or protocol failure."""

    def __init__(self, message: str, code: str = "BRIDGE_ERROR", details: dict[str, Any] | None = None):
        super().__init__(message, code=code, category=ErrorCategory.TRANSPORT, details=details)


class BridgeTimeoutError(BridgeError):
    """No reply arrived for a bridge request within the timeout window."""

    def __init__(self, action: str, timeout_seconds: float, correlation_id: str | None = None):
        super().__init__(
            f"Request '{action}' timed out after {timeout_seconds}s",
            code="TIMEOUT",
            details={"action": action, "timeout_seconds": timeout_seconds, "correlation_id": correlation_id},
        )
        self.category = ErrorCategory.TIMEOUT


class BridgeClosedError(BridgeError):
    def __init__(self, correlation_id: str | None = None):
        super().__init__(
            "Bridge closed before a reply arrived",
            code="BRIDGE_CLOSED",
            details={"correlation_id": correlation_id},
        )


class BridgeRemoteError(BridgeError):
    """The peer answered a request with an ``error`` message."""

    def __init__(self, payload: Any):
        row = payload if isinstance(payload, dict) else {}
        code = str(row.get("code") or "REMOTE_ERROR")
        message = str(row.get("message") or row.get("error") or "remote call failed")
        super().__init__(message, code=code, details={"payload": payload})
        self.payload = payload


_SENSITIVE_PATTERNS = [
    re.compile(r"(api[_-]?key|token|secret|password|auth)[=:]\s*['\"]?([^\s'\"]+)['\"]?", re.IGNORECASE),
    re.compile(r"bearer\s+[a-zA-Z0-9\-._~+/]+=*", re.IGNORECASE),
]


def sanitize_error_message(message: str, replacement: str = "[REDACTED]") -> str:
    """Remove credentials-looking fragments from error messages."""
    sanitized = message
    for pattern in _SENSITIVE_PATTERNS:
        sanitized = pattern.sub(replacement, sanitized)
    return sanitized


def classify_exception(exc: Exception) -> tuple[str, ErrorCategory]:
    """
    Classify an exception for an error reply.

    Returns:
        Tuple of (error_code, category)
    """
    if isinstance(exc, VueUIError):
        return exc.code, exc.category

    if isinstance(exc, asyncio.TimeoutError):
        return "TIMEOUT", ErrorCategory.TIMEOUT

    if isinstance(exc, ConnectionError):
        return "CONNECTION_ERROR", ErrorCategory.TRANSPORT

    if isinstance(exc, json.JSONDecodeError):
        return "INVALID_JSON", ErrorCategory.VALIDATION

    if isinstance(exc, (ValueError, TypeError)):
        return "INVALID_ARGUMENT", ErrorCategory.VALIDATION

    if isinstance(exc, KeyError):
        return "MISSING_KEY", ErrorCategory.VALIDATION

    return "INTERNAL_ERROR", ErrorCategory.FATAL


def error_payload(exc: Exception) -> dict[str, Any]:
    """Build the ``{code, message}`` payload carried by bridge error replies."""
    code, category = classify_exception(exc)
    if isinstance(exc, VueUIError):
        message = exc.message
    else:
        message = sanitize_error_message(str(exc)) or type(exc).__name__
    return {"code": code, "message": message, "category": category.value}

"""Command handlers for the component protocol, behind one error boundary."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import Any

from loguru import logger

from vue_ui.utils.exceptions import (
    VueUIError,
    classify_exception,
    sanitize_error_message,
)

from .protocol import (
    CallMethodRequest,
    CommandRequest,
    ComponentRequest,
    LoadComponentRequest,
    SetPropsRequest,
    error_from_exception,
    error_response,
    parse_request,
    response,
)
from .registry import ComponentRegistry

CommandHandler = Callable[[dict[str, Any]], Awaitable[dict[str, Any]]]


def unknown_command_result(req_id: Any, command: str) -> dict[str, Any]:
    logger.warning("Unknown command type: {}", command)
    return error_response(req_id, f"Unknown command type: {command}", "UNKNOWN_COMMAND")


def vue_ui_error_result(req_id: Any, command: str, exc: VueUIError) -> dict[str, Any]:
    logger.warning("Command {} failed with {}: {}", command, exc.code, exc.message)
    return error_from_exception(req_id, exc)


def unhandled_exception_result(req_id: Any, command: str, exc: Exception) -> dict[str, Any]:
    code, _ = classify_exception(exc)
    sanitized = sanitize_error_message(str(exc)) or type(exc).__name__
    logger.exception("Command {} failed with [{}]: {}", command, code, sanitized)
    return error_response(req_id, sanitized, "INTERNAL_ERROR")


class CommandHandlers:
    """Dispatches one decoded request frame to its handler and builds the reply."""

    def __init__(self, registry: ComponentRegistry):
        self.registry = registry
        self._commands: dict[str, CommandHandler] = {
            "ping": self.ping,
            "load_component": self.load_component,
            "call_method": self.call_method,
            "get_state": self.get_state,
            "set_props": self.set_props,
            "unload_component": self.unload_component,
            "clean_all": self.clean_all,
        }

    @property
    def commands(self) -> list[str]:
        return list(self._commands)

    async def dispatch(self, frame: Any) -> dict[str, Any]:
        """Handle one request frame; always returns exactly one response frame."""
        if not isinstance(frame, dict):
            return error_response(None, "Request must be a JSON object", "INVALID_REQUEST")
        req_id = frame.get("id")
        command = frame.get("type")
        if not isinstance(command, str) or not command:
            return error_response(req_id, "Missing type parameter", "INVALID_REQUEST")
        handler = self._commands.get(command)
        if handler is None:
            return unknown_command_result(req_id, command)
        logger.debug("Handling {} (id={})", command, req_id)
        try:
            return await handler(frame)
        except VueUIError as exc:
            return vue_ui_error_result(req_id, command, exc)
        except Exception as exc:
            return unhandled_exception_result(req_id, command, exc)

    async def ping(self, frame: dict[str, Any]) -> dict[str, Any]:
        req = parse_request(CommandRequest, frame)
        return response("pong", req.id)

    async def load_component(self, frame: dict[str, Any]) -> dict[str, Any]:
        req = parse_request(LoadComponentRequest, frame)
        cls = self.registry.resolve_type(req.name)
        props = req.props()
        ignored = sorted(k for k in props if k not in cls.PROPS)
        if ignored:
            logger.debug("Ignoring unknown props for {}: {}", req.name, ignored)
        props = {k: v for k, v in props.items() if k in cls.PROPS}
        component = await self.registry.create(
            req.name,
            component_id=req.component_id,
            props=props,
            force=req.force,
        )
        return response(
            "component_loaded",
            req.id,
            success=True,
            name=req.name,
            component_id=component.id,
            methods=list(cls.METHODS),
            props=list(cls.PROPS),
        )

    async def call_method(self, frame: dict[str, Any]) -> dict[str, Any]:
        req = parse_request(CallMethodRequest, frame)
        component = await self.registry.get(req.component_id)
        try:
            result = await component.call_method(req.method, *req.args)
        except VueUIError:
            raise
        except Exception as exc:
            logger.warning("Method {} on {} raised: {}", req.method, req.component_id, exc)
            return error_response(
                req.id,
                f"Error executing method {req.method}: {sanitize_error_message(str(exc))}",
                "METHOD_EXECUTION_FAILED",
            )
        return response("method_result", req.id, component_id=req.component_id, method=req.method, result=result)

    async def get_state(self, frame: dict[str, Any]) -> dict[str, Any]:
        req = parse_request(ComponentRequest, frame)
        component = await self.registry.get(req.component_id)
        return response("component_state", req.id, component_id=req.component_id, state=component.get_state())

    async def set_props(self, frame: dict[str, Any]) -> dict[str, Any]:
        req = parse_request(SetPropsRequest, frame)
        component = await self.registry.get(req.component_id)
        await component.set_props(req.props)
        return response("props_set", req.id, component_id=req.component_id, success=True)

    async def unload_component(self, frame: dict[str, Any]) -> dict[str, Any]:
        req = parse_request(ComponentRequest, frame)
        await self.registry.remove(req.component_id)
        return response("component_unloaded", req.id, component_id=req.component_id, success=True)

    async def clean_all(self, frame: dict[str, Any]) -> dict[str, Any]:
        req = parse_request(CommandRequest, frame)
        count = await self.registry.clear()
        return response("cleaned", req.id, success=True, count=count)

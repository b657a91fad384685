"""Request models and response frames for the component command protocol.

One JSON object per line in each direction. Every response echoes the
request ``id`` so a client can demultiplex replies on one connection.
"""

from __future__ import annotations

import json
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from vue_ui.utils.exceptions import MissingParameterError, ValidationError, VueUIError


class CommandRequest(BaseModel):
    """Envelope common to every command."""

    model_config = ConfigDict(extra="ignore")

    type: str
    id: str | int | None = None


class LoadComponentRequest(CommandRequest):
    model_config = ConfigDict(extra="allow")

    name: str
    component_id: str | None = None
    force: bool = False

    def props(self) -> dict[str, Any]:
        """Props carried inline next to the command fields."""
        return dict(self.model_extra or {})


class ComponentRequest(CommandRequest):
    component_id: str


class CallMethodRequest(ComponentRequest):
    method: str
    args: list[Any] = Field(default_factory=list)


class SetPropsRequest(ComponentRequest):
    props: dict[str, Any]


def parse_request(model: type[CommandRequest], frame: dict[str, Any]) -> Any:
    """Validate ``frame`` against ``model``, mapping failures to wire error codes.

    Explicit nulls count as missing.
    """
    try:
        return model.model_validate({k: v for k, v in frame.items() if v is not None})
    except PydanticValidationError as exc:
        errors = exc.errors()
        for err in errors:
            if err.get("type") == "missing":
                raise MissingParameterError(str(err["loc"][0])) from exc
        first = errors[0] if errors else {}
        field = ".".join(str(p) for p in first.get("loc", ())) or None
        raise ValidationError(f"Invalid {field or 'request'}: {first.get('msg', 'invalid value')}", field=field) from exc


def response(kind: str, req_id: Any, **fields: Any) -> dict[str, Any]:
    return {"type": kind, "id": req_id, **fields}


def error_response(req_id: Any, error: str, code: str) -> dict[str, Any]:
    return {"type": "error", "id": req_id, "error": error, "code": code}


def error_from_exception(req_id: Any, exc: VueUIError) -> dict[str, Any]:
    return error_response(req_id, exc.message, exc.code)


def encode_frame(frame: dict[str, Any]) -> bytes:
    return (json.dumps(frame, ensure_ascii=False, default=str) + "\n").encode("utf-8")

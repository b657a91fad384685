"""Helpers for CLI commands that talk to a running component server."""

from __future__ import annotations

import asyncio
import json
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

import typer
from rich.console import Console
from rich.markup import escape

from vue_ui.server.client import ComponentClient
from vue_ui.utils.exceptions import BridgeError, BridgeRemoteError

T = TypeVar("T")


def parse_value(raw: str) -> Any:
    """Parse CLI input value as JSON if possible; fallback to string."""
    text = raw.strip()
    if text == "":
        return ""
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        lowered = text.lower()
        if lowered in {"true", "false"}:
            return lowered == "true"
        return text


def parse_json_object(raw: str | None, option: str) -> dict[str, Any]:
    """Parse a JSON object passed on the command line, or exit with an error."""
    if not raw:
        return {}
    try:
        value = json.loads(raw)
    except json.JSONDecodeError as e:
        raise typer.BadParameter(f"invalid JSON: {e.msg}", param_hint=option) from e
    if not isinstance(value, dict):
        raise typer.BadParameter("expected a JSON object", param_hint=option)
    return value


def run_with_client(
    console: Console,
    host: str,
    port: int,
    timeout: float,
    action: Callable[[ComponentClient], Awaitable[T]],
) -> T:
    """Connect, run ``action`` and close; protocol and transport errors exit with code 1."""

    async def _run() -> T:
        async with ComponentClient(host, port, timeout=timeout) as client:
            return await action(client)

    try:
        return asyncio.run(_run())
    except BridgeRemoteError as e:
        console.print(f"[red]Error {escape(f'[{e.code}]')}:[/red] {escape(e.message)}")
        raise typer.Exit(1)
    except BridgeError as e:
        console.print(f"[red]{escape(e.message)}[/red]")
        raise typer.Exit(1)
    except OSError as e:
        console.print(f"[red]Cannot reach component server at {host}:{port}:[/red] {escape(str(e))}")
        raise typer.Exit(1)

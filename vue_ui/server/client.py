"""Asyncio client for the component server.

Several requests may be in flight on one connection; replies are matched
back to callers by the echoed ``id``.
"""

from __future__ import annotations

import asyncio
import json
import uuid
from contextlib import suppress
from typing import Any

from loguru import logger

from vue_ui.utils.exceptions import BridgeClosedError, BridgeError, BridgeRemoteError, BridgeTimeoutError

from .protocol import encode_frame
from .server import DEFAULT_HOST, DEFAULT_PORT


class ComponentClient:
    """Line-delimited JSON client with a pending map keyed by request id."""

    def __init__(self, host: str = DEFAULT_HOST, port: int = DEFAULT_PORT, *, timeout: float = 10.0):
        self.host = host
        self.port = port
        self.timeout = timeout
        self._reader: asyncio.StreamReader | None = None
        self._writer: asyncio.StreamWriter | None = None
        self._reader_task: asyncio.Task[None] | None = None
        self._pending: dict[str, asyncio.Future[dict[str, Any]]] = {}
        self._write_lock = asyncio.Lock()

    @property
    def connected(self) -> bool:
        return self._writer is not None

    async def connect(self) -> None:
        if self._writer is not None:
            return
        self._reader, self._writer = await asyncio.open_connection(self.host, self.port)
        self._reader_task = asyncio.create_task(self._read_loop())
        logger.debug("Connected to component server {}:{}", self.host, self.port)

    async def close(self) -> None:
        writer, self._writer = self._writer, None
        if self._reader_task is not None:
            self._reader_task.cancel()
            with suppress(asyncio.CancelledError):
                await self._reader_task
            self._reader_task = None
        if writer is not None:
            writer.close()
            with suppress(Exception):
                await writer.wait_closed()
        self._fail_pending()

    async def __aenter__(self) -> ComponentClient:
        await self.connect()
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.close()

    async def send(self, command: str, *, timeout: float | None = None, **fields: Any) -> dict[str, Any]:
        """Send one command and return its raw response frame (errors included)."""
        if self._writer is None:
            raise BridgeError("client is not connected", code="NOT_CONNECTED")
        req_id = str(fields.pop("id", None) or uuid.uuid4().hex[:12])
        fut: asyncio.Future[dict[str, Any]] = asyncio.get_running_loop().create_future()
        self._pending[req_id] = fut
        wait = self.timeout if timeout is None else timeout
        try:
            async with self._write_lock:
                self._writer.write(encode_frame({"type": command, "id": req_id, **fields}))
                await self._writer.drain()
            return await asyncio.wait_for(fut, timeout=wait)
        except asyncio.TimeoutError as exc:
            raise BridgeTimeoutError(command, wait, req_id) from exc
        finally:
            self._pending.pop(req_id, None)

    async def request(self, command: str, **fields: Any) -> dict[str, Any]:
        """Like ``send`` but raises BridgeRemoteError on an error frame."""
        reply = await self.send(command, **fields)
        if reply.get("type") == "error":
            raise BridgeRemoteError(reply)
        return reply

    async def ping(self) -> bool:
        reply = await self.request("ping")
        return reply.get("type") == "pong"

    async def load_component(
        self,
        name: str,
        *,
        component_id: str | None = None,
        force: bool = False,
        **props: Any,
    ) -> dict[str, Any]:
        fields: dict[str, Any] = {"name": name, **props}
        if component_id is not None:
            fields["component_id"] = component_id
        if force:
            fields["force"] = True
        return await self.request("load_component", **fields)

    async def call_method(self, component_id: str, method: str, *args: Any) -> Any:
        reply = await self.request("call_method", component_id=component_id, method=method, args=list(args))
        return reply.get("result")

    async def get_state(self, component_id: str) -> dict[str, Any]:
        reply = await self.request("get_state", component_id=component_id)
        state = reply.get("state")
        return state if isinstance(state, dict) else {}

    async def set_props(self, component_id: str, props: dict[str, Any]) -> bool:
        reply = await self.request("set_props", component_id=component_id, props=props)
        return bool(reply.get("success"))

    async def unload_component(self, component_id: str) -> bool:
        reply = await self.request("unload_component", component_id=component_id)
        return bool(reply.get("success"))

    async def clean_all(self) -> int:
        reply = await self.request("clean_all")
        return int(reply.get("count") or 0)

    async def _read_loop(self) -> None:
        assert self._reader is not None
        try:
            while True:
                raw = await self._reader.readline()
                if not raw:
                    break
                try:
                    frame = json.loads(raw.decode("utf-8"))
                except json.JSONDecodeError as e:
                    logger.warning("Dropping malformed reply: {}", e.msg)
                    continue
                if not isinstance(frame, dict):
                    continue
                fut = self._pending.get(str(frame.get("id")))
                if fut is None:
                    logger.debug("Reply with no waiter: {}", frame.get("id"))
                    continue
                if not fut.done():
                    fut.set_result(frame)
        except ConnectionError as e:
            logger.debug("Component server connection lost: {}", e)
        finally:
            self._fail_pending()

    def _fail_pending(self) -> None:
        for req_id, fut in list(self._pending.items()):
            if not fut.done():
                fut.set_exception(BridgeClosedError(req_id))
        self._pending.clear()

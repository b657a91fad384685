"""Line-delimited JSON TCP server exposing component operations."""

from __future__ import annotations

import asyncio
import json
from contextlib import suppress
from typing import Any

from loguru import logger

from .handlers import CommandHandlers
from .protocol import encode_frame, error_response
from .registry import ComponentRegistry

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 9999
MAX_LINE_BYTES = 1024 * 1024


class ComponentServer:
    """
    Accepts any number of clients sharing one component registry.

    Requests on one connection are handled one at a time, so responses keep
    request order. A bad command yields an error frame; only EOF or a
    transport failure ends the connection.
    """

    def __init__(
        self,
        host: str = DEFAULT_HOST,
        port: int = DEFAULT_PORT,
        *,
        registry: ComponentRegistry | None = None,
    ):
        self.host = host
        self.port = port
        self.registry = registry if registry is not None else ComponentRegistry()
        self.handlers = CommandHandlers(self.registry)
        self._server: asyncio.AbstractServer | None = None
        self._clients: set[asyncio.StreamWriter] = set()
        self._connection_tasks: set[asyncio.Task[Any]] = set()

    @property
    def is_running(self) -> bool:
        return self._server is not None

    @property
    def connection_count(self) -> int:
        return len(self._clients)

    async def start(self) -> None:
        """Start listening; with port 0 the bound port is written back to ``self.port``."""
        if self._server is not None:
            return
        self._server = await asyncio.start_server(self._handle_client, self.host, self.port, limit=MAX_LINE_BYTES)
        sockets = self._server.sockets or []
        if sockets:
            self.port = sockets[0].getsockname()[1]
        logger.info("Component server listening on {}:{}", self.host, self.port)

    async def serve_forever(self) -> None:
        await self.start()
        assert self._server is not None
        try:
            await self._server.serve_forever()
        finally:
            await self.stop()

    async def stop(self) -> None:
        """Stop listening, drop every client and destroy every component."""
        server, self._server = self._server, None
        if server is not None:
            server.close()
        for writer in list(self._clients):
            await self._close_writer(writer)
        for task in list(self._connection_tasks):
            task.cancel()
        if self._connection_tasks:
            await asyncio.gather(*list(self._connection_tasks), return_exceptions=True)
        if server is not None:
            with suppress(Exception):
                await server.wait_closed()
        count = await self.registry.clear()
        logger.info("Component server stopped ({} components destroyed)", count)

    async def handle_line(self, line: str) -> dict[str, Any]:
        """Decode one request line and produce its response frame."""
        try:
            frame = json.loads(line)
        except json.JSONDecodeError as e:
            logger.warning("Invalid JSON from client: {}", e.msg)
            return error_response(None, f"Invalid JSON: {e.msg}", "INVALID_JSON")
        return await self.handlers.dispatch(frame)

    async def _handle_client(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        task = asyncio.current_task()
        if task is not None:
            self._connection_tasks.add(task)
        self._clients.add(writer)
        peer = writer.get_extra_info("peername")
        logger.info("Client connected: {}", peer)
        try:
            while True:
                try:
                    raw = await reader.readline()
                except (asyncio.LimitOverrunError, ValueError):
                    logger.warning("Client {} sent an oversized line, closing", peer)
                    break
                if not raw:
                    break
                line = raw.decode("utf-8", errors="replace").strip()
                if not line:
                    continue
                reply = await self.handle_line(line)
                writer.write(encode_frame(reply))
                await writer.drain()
        except (ConnectionError, asyncio.IncompleteReadError) as e:
            logger.debug("Client {} transport error: {}", peer, e)
        finally:
            logger.info("Client disconnected: {}", peer)
            await self._close_writer(writer)
            if task is not None:
                self._connection_tasks.discard(task)

    async def _close_writer(self, writer: asyncio.StreamWriter) -> None:
        self._clients.discard(writer)
        writer.close()
        with suppress(Exception):
            await writer.wait_closed()

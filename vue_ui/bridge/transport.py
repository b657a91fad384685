"""Transports carrying encoded bridge lines between two runtimes."""

from __future__ import annotations

import asyncio
from contextlib import suppress
from typing import TYPE_CHECKING

from loguru import logger

if TYPE_CHECKING:
    from .core import MessageBridge


class LoopbackTransport:
    """In-process transport delivering each line to a peer bridge.

    Every delivery runs as its own task so the two sides are scheduled
    independently, as they would be across a real process boundary.
    """

    def __init__(self, peer: MessageBridge):
        self.peer = peer
        self._tasks: set[asyncio.Task[None]] = set()
        self._closed = False

    async def send(self, line: str) -> None:
        if self._closed:
            logger.debug("loopback to {} closed, dropping line", self.peer.name)
            return
        task = asyncio.get_running_loop().create_task(self.peer.receive_message(line))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def drain(self) -> None:
        """Wait until every in-flight delivery (and the ones it spawns) is done."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def close(self) -> None:
        self._closed = True
        for task in list(self._tasks):
            task.cancel()
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
        self._tasks.clear()


def connect_pair(a: MessageBridge, b: MessageBridge) -> tuple[LoopbackTransport, LoopbackTransport]:
    """Wire two bridges to each other; returns (a->b, b->a) transports."""
    a_to_b = LoopbackTransport(b)
    b_to_a = LoopbackTransport(a)
    a.attach(a_to_b)
    b.attach(b_to_a)
    return a_to_b, b_to_a


class StreamTransport:
    """Line-delimited JSON over an asyncio stream pair."""

    def __init__(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter):
        self.reader = reader
        self.writer = writer
        self._write_lock = asyncio.Lock()
        self._tasks: set[asyncio.Task[None]] = set()

    async def send(self, line: str) -> None:
        async with self._write_lock:
            self.writer.write((line + "\n").encode("utf-8"))
            await self.writer.drain()

    async def run(self, bridge: MessageBridge) -> None:
        """Read lines until EOF, handing each one to ``bridge``."""
        loop = asyncio.get_running_loop()
        while True:
            raw = await self.reader.readline()
            if not raw:
                break
            text = raw.decode("utf-8", errors="replace").strip()
            if not text:
                continue
            task = loop.create_task(bridge.receive_message(text))
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)
        logger.debug("stream transport for {} reached EOF", bridge.name)

    async def close(self) -> None:
        for task in list(self._tasks):
            task.cancel()
        self.writer.close()
        with suppress(Exception):
            await self.writer.wait_closed()

"""Text-buffer backends a component renders into."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Protocol

from vue_ui.utils.exceptions import NotFoundError


class BufferBackend(Protocol):
    """Buffer/window primitives of the embedded runtime."""

    async def create(self, name: str, options: dict[str, Any] | None = None) -> Any: ...

    async def set_lines(self, handle: Any, lines: list[str]) -> None: ...

    async def close(self, handle: Any) -> None: ...


@dataclass(slots=True)
class BufferRecord:
    name: str
    options: dict[str, Any] = field(default_factory=dict)
    lines: list[str] = field(default_factory=list)
    writes: int = 0


class InMemoryBufferBackend:
    """Keeps buffer contents in a dict; used by the server and in tests."""

    def __init__(self) -> None:
        self._next_handle = 1
        self._buffers: dict[int, BufferRecord] = {}

    async def create(self, name: str, options: dict[str, Any] | None = None) -> int:
        handle = self._next_handle
        self._next_handle += 1
        self._buffers[handle] = BufferRecord(name=name, options=dict(options or {}))
        return handle

    async def set_lines(self, handle: int, lines: list[str]) -> None:
        record = self._record(handle)
        record.lines = list(lines)
        record.writes += 1

    async def close(self, handle: int) -> None:
        self._record(handle)
        del self._buffers[handle]

    def lines(self, handle: int) -> list[str]:
        return list(self._record(handle).lines)

    def writes(self, handle: int) -> int:
        return self._record(handle).writes

    def is_open(self, handle: Any) -> bool:
        return handle in self._buffers

    def __len__(self) -> int:
        return len(self._buffers)

    def _record(self, handle: int) -> BufferRecord:
        record = self._buffers.get(handle)
        if record is None:
            raise NotFoundError("Buffer", str(handle), code="BUFFER_NOT_FOUND")
        return record

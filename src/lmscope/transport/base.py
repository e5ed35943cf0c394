"""Transport interfaces.

A transport is a raw byte stream to the sensor (or a stand-in for one). Sessions
only talk to these interfaces, so a live socket, a recording decorator around it
and a capture-file replay are interchangeable.

Every request/response exchange is bracketed by `begin_exchange()` and
`end_exchange()`. Plain transports ignore the hooks; the record decorator
persists one capture block per exchange and the replay transport loads one.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class Transport(Protocol):
    """Blocking byte-stream transport."""

    def connect(self) -> None:
        """Open the link. Raises ConnectionTimeout or LMSConnectionError."""
        ...

    def read(self, size: int = 1) -> bytes:
        """Return up to `size` bytes, b"" once the peer has closed."""
        ...

    def write(self, data: bytes) -> None: ...

    def close(self) -> None: ...

    def begin_exchange(self) -> None: ...

    def end_exchange(self) -> None: ...


@runtime_checkable
class AsyncTransport(Protocol):
    """Awaitable transport, frame oriented."""

    async def connect(self) -> None: ...

    async def read_frame(self) -> bytes:
        """Return one frame, up to and including the end marker."""
        ...

    async def write(self, data: bytes) -> None: ...

    async def close(self) -> None: ...

    def begin_exchange(self) -> None: ...

    def end_exchange(self) -> None: ...


__all__ = ["Transport", "AsyncTransport"]

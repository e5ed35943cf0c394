"""Record mode: mirror every byte read from a live transport into a capture."""

from __future__ import annotations

from loguru import logger

from .base import AsyncTransport, Transport
from .capture import CaptureWriter


class MirrorTransport:
    """Wrap a transport, copying every byte read into the current capture block.

    Writes pass through unmodified. At `end_exchange()` the bytes read during the
    exchange are appended to the capture as one block, also when the exchange
    failed part way, so a broken reply replays exactly as it was received.
    """

    def __init__(self, inner: Transport, capture: CaptureWriter):
        self.inner = inner
        self.capture = capture
        self._sink = bytearray()

    def __repr__(self):
        return f"MirrorTransport({self.inner!r})"

    def connect(self) -> None:
        self.inner.connect()

    def read(self, size: int = 1) -> bytes:
        data = self.inner.read(size)
        self._sink += data
        return data

    def write(self, data: bytes) -> None:
        self.inner.write(data)

    def close(self) -> None:
        if self._sink:
            logger.warning(
                "Closing {} with {} uncommitted captured bytes.", self, len(self._sink)
            )
            self._commit()
        self.inner.close()

    def begin_exchange(self) -> None:
        self._sink.clear()
        self.inner.begin_exchange()

    def end_exchange(self) -> None:
        self.inner.end_exchange()
        self._commit()

    def _commit(self) -> None:
        self.capture.write_block(bytes(self._sink))
        self._sink.clear()


class AsyncMirrorTransport:
    """Record-mode decorator for an `AsyncTransport`."""

    def __init__(self, inner: AsyncTransport, capture: CaptureWriter):
        self.inner = inner
        self.capture = capture
        self._sink = bytearray()

    def __repr__(self):
        return f"AsyncMirrorTransport({self.inner!r})"

    async def connect(self) -> None:
        await self.inner.connect()

    async def read_frame(self) -> bytes:
        data = await self.inner.read_frame()
        self._sink += data
        return data

    async def write(self, data: bytes) -> None:
        await self.inner.write(data)

    async def close(self) -> None:
        await self.inner.close()

    def begin_exchange(self) -> None:
        self._sink.clear()
        self.inner.begin_exchange()

    def end_exchange(self) -> None:
        self.inner.end_exchange()
        self.capture.write_block(bytes(self._sink))
        self._sink.clear()


__all__ = ["MirrorTransport", "AsyncMirrorTransport"]

"""Replay (emulation) mode: serve recorded replies instead of a live sensor."""

from __future__ import annotations

from typing import Optional

from loguru import logger

from lmscope.codec.telegram import read_frame
from lmscope.types.errors import CaptureExhausted, InputExhausted

from .capture import CaptureReader


class ReplayTransport:
    """Transport backed by a capture file.

    Each `begin_exchange()` loads the next recorded block and reads are served
    from it. Writes, `connect` and `close` do nothing. When the capture has no
    block left the next read raises `CaptureExhausted`; reading past the end of a
    block (a reply that was cut short when recorded) raises `InputExhausted`.
    """

    def __init__(self, capture: CaptureReader):
        self.capture = capture
        self._block: Optional[bytes] = None
        self._pos = 0
        self._exhausted: Optional[CaptureExhausted] = None

    def __repr__(self):
        return f"ReplayTransport({self.capture.path or '<stream>'})"

    def connect(self) -> None:
        pass

    def begin_exchange(self) -> None:
        try:
            self._block = self.capture.read_block()
            self._exhausted = None
        except CaptureExhausted as e:
            logger.debug("{}: {}", self, e)
            self._block = None
            self._exhausted = e
        self._pos = 0

    def end_exchange(self) -> None:
        if self._block is not None and self._pos < len(self._block):
            logger.warning(
                "{}: {} unread bytes left in replayed block {}",
                self,
                len(self._block) - self._pos,
                self.capture.blocks_read,
            )
        self._block = None

    def read(self, size: int = 1) -> bytes:
        if self._exhausted is not None:
            raise self._exhausted
        if self._block is None:
            # read outside of an exchange, move on to the next block
            self.begin_exchange()
            return self.read(size)
        if self._pos >= len(self._block):
            raise InputExhausted(
                f"Replayed block {self.capture.blocks_read} ended after "
                + f"{len(self._block)} bytes"
            )
        out = self._block[self._pos : self._pos + size]
        self._pos += len(out)
        return out

    def write(self, data: bytes) -> None:
        logger.trace("{}: dropped {} byte write", self, len(data))

    def close(self) -> None:
        self.capture.close()


class AsyncReplayTransport:
    """Awaitable face of a `ReplayTransport` (file reads do not suspend)."""

    def __init__(self, capture: CaptureReader):
        self.replay = ReplayTransport(capture)

    def __repr__(self):
        return f"Async{self.replay!r}"

    async def connect(self) -> None:
        pass

    async def read_frame(self) -> bytes:
        return read_frame(self.replay)

    async def write(self, data: bytes) -> None:
        self.replay.write(data)

    async def close(self) -> None:
        self.replay.close()

    def begin_exchange(self) -> None:
        self.replay.begin_exchange()

    def end_exchange(self) -> None:
        self.replay.end_exchange()


__all__ = ["ReplayTransport", "AsyncReplayTransport"]

"""TCP transports to a physical sensor.

Socket exceptions are translated at this boundary: timeouts become
`ConnectionTimeout`, everything else from the OS becomes `LMSConnectionError`.
"""

from __future__ import annotations

import asyncio
import socket
from typing import Optional

from loguru import logger

from lmscope.types.commands import ETX
from lmscope.types.errors import (
    ConnectionTimeout,
    InputExhausted,
    LMSConnectionError,
    MalformedTelegram,
    NotConnected,
)
from lmscope.util.defaults import DEFAULT_TIMEOUT, RECV_CHUNK_SIZE

MAX_FRAME_SIZE = 1 << 20  # bytes


class TcpTransport:
    """Blocking TCP transport with an internal receive buffer.

    `read(size)` never returns more than asked for, so a decorator sees exactly the
    bytes its caller consumed.
    """

    def __init__(
        self,
        host: str,
        port: int,
        receive_timeout: float = DEFAULT_TIMEOUT,
        send_timeout: float = DEFAULT_TIMEOUT,
    ):
        self.host = host
        self.port = port
        self.receive_timeout = receive_timeout
        self.send_timeout = send_timeout
        self._sock: Optional[socket.socket] = None
        self._buffer = bytearray()

    def __repr__(self):
        return f"TcpTransport({self.host}:{self.port})"

    def connect(self) -> None:
        try:
            self._sock = socket.create_connection(
                (self.host, self.port), timeout=self.send_timeout
            )
        except socket.timeout as e:
            raise ConnectionTimeout(
                f"Timed out connecting to {self.host}:{self.port}"
            ) from e
        except OSError as e:
            raise LMSConnectionError(
                f"Could not connect to {self.host}:{self.port}: {e}"
            ) from e
        self._buffer.clear()
        logger.debug("TCP connected to {}:{}", self.host, self.port)

    def _require_sock(self) -> socket.socket:
        if self._sock is None:
            raise NotConnected(f"{self!r} is not connected")
        return self._sock

    def write(self, data: bytes) -> None:
        sock = self._require_sock()
        try:
            sock.settimeout(self.send_timeout)
            sock.sendall(data)
        except socket.timeout as e:
            raise ConnectionTimeout(f"Send to {self.host} timed out") from e
        except OSError as e:
            raise LMSConnectionError(f"Send to {self.host} failed: {e}") from e

    def read(self, size: int = 1) -> bytes:
        if not self._buffer:
            sock = self._require_sock()
            try:
                sock.settimeout(self.receive_timeout)
                chunk = sock.recv(RECV_CHUNK_SIZE)
            except socket.timeout as e:
                raise ConnectionTimeout(f"Receive from {self.host} timed out") from e
            except OSError as e:
                raise LMSConnectionError(
                    f"Receive from {self.host} failed: {e}"
                ) from e
            if not chunk:
                return b""
            self._buffer += chunk
        out = bytes(self._buffer[:size])
        del self._buffer[:size]
        return out

    def close(self) -> None:
        sock, self._sock = self._sock, None
        self._buffer.clear()
        if sock is None:
            return
        try:
            sock.close()
        except socket.timeout as e:
            raise ConnectionTimeout(f"Close of {self.host} timed out") from e
        except OSError as e:
            raise LMSConnectionError(f"Close of {self.host} failed: {e}") from e

    def begin_exchange(self) -> None:
        pass

    def end_exchange(self) -> None:
        pass


class AsyncTcpTransport:
    """asyncio streams transport, reads whole frames."""

    def __init__(
        self,
        host: str,
        port: int,
        receive_timeout: float = DEFAULT_TIMEOUT,
        send_timeout: float = DEFAULT_TIMEOUT,
    ):
        self.host = host
        self.port = port
        self.receive_timeout = receive_timeout
        self.send_timeout = send_timeout
        self._reader: Optional[asyncio.StreamReader] = None
        self._writer: Optional[asyncio.StreamWriter] = None

    def __repr__(self):
        return f"AsyncTcpTransport({self.host}:{self.port})"

    async def connect(self) -> None:
        try:
            self._reader, self._writer = await asyncio.wait_for(
                asyncio.open_connection(self.host, self.port, limit=MAX_FRAME_SIZE),
                timeout=self.send_timeout,
            )
        except asyncio.TimeoutError as e:
            raise ConnectionTimeout(
                f"Timed out connecting to {self.host}:{self.port}"
            ) from e
        except OSError as e:
            raise LMSConnectionError(
                f"Could not connect to {self.host}:{self.port}: {e}"
            ) from e
        logger.debug("TCP (async) connected to {}:{}", self.host, self.port)

    async def write(self, data: bytes) -> None:
        if self._writer is None:
            raise NotConnected(f"{self!r} is not connected")
        try:
            self._writer.write(data)
            await asyncio.wait_for(self._writer.drain(), timeout=self.send_timeout)
        except asyncio.TimeoutError as e:
            raise ConnectionTimeout(f"Send to {self.host} timed out") from e
        except OSError as e:
            raise LMSConnectionError(f"Send to {self.host} failed: {e}") from e

    async def read_frame(self) -> bytes:
        if self._reader is None:
            raise NotConnected(f"{self!r} is not connected")
        try:
            return await asyncio.wait_for(
                self._reader.readuntil(bytes([ETX])), timeout=self.receive_timeout
            )
        except asyncio.TimeoutError as e:
            raise ConnectionTimeout(f"Receive from {self.host} timed out") from e
        except asyncio.IncompleteReadError as e:
            raise InputExhausted(
                f"Connection closed after {len(e.partial)} bytes, before end of telegram"
            ) from e
        except asyncio.LimitOverrunError as e:
            raise MalformedTelegram(
                f"No end marker within {MAX_FRAME_SIZE} bytes"
            ) from e
        except OSError as e:
            raise LMSConnectionError(f"Receive from {self.host} failed: {e}") from e

    async def close(self) -> None:
        writer, self._writer, self._reader = self._writer, None, None
        if writer is None:
            return
        try:
            writer.close()
            await asyncio.wait_for(writer.wait_closed(), timeout=self.send_timeout)
        except asyncio.TimeoutError as e:
            raise ConnectionTimeout(f"Close of {self.host} timed out") from e
        except OSError as e:
            raise LMSConnectionError(f"Close of {self.host} failed: {e}") from e

    def begin_exchange(self) -> None:
        pass

    def end_exchange(self) -> None:
        pass


__all__ = ["TcpTransport", "AsyncTcpTransport", "MAX_FRAME_SIZE"]

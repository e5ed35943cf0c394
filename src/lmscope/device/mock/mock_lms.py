"""Simulated LMS1xx sensor speaking the telegram protocol over an in-memory link.

`MockLMSTransport` is handed to a session through `transport_factory`, so the
session, codec and record/replay paths run exactly as against real hardware.
"""

from __future__ import annotations

from typing import Optional, Sequence

from loguru import logger

from lmscope.codec.telegram import read_frame
from lmscope.types.commands import Command, frame, unframe
from lmscope.types.errors import ConnectionTimeout, LMSError, NotConnected

SERIAL_NUMBER = "89A27F"
SCAN_FREQUENCY = 0x1388  # 50 Hz
MEASUREMENT_FREQUENCY = 0x168  # 36 kHz
START_ANGLE = 0xFFF92230  # -45 deg
ANGULAR_STEP = 0x1388  # 0.5 deg
DEFAULT_SAMPLES = 541


def default_distances(n: int = DEFAULT_SAMPLES) -> list[int]:
    """A deterministic saw-tooth profile in millimetres."""
    return [1000 + (i % 100) * 10 for i in range(n)]


def make_scan_telegram(
    distances_mm: Optional[Sequence[int]] = None,
    *,
    command_type: str = "sRA",
    telegram_counter: int = 1,
    scan_counter: int = 1,
    time_since_startup: int = 100_000_000,
    time_of_transmission: int = 100_000_500,
    encoder: Optional[tuple[int, int]] = None,
    header_only: bool = False,
) -> bytes:
    """Build a framed `LMDscandata` telegram like the sensor sends.

    Parameters
    ----------
    distances_mm : sequence of int, optional
        Radial distances in millimetres. Defaults to `default_distances()`.
    command_type : str
        "sRA" for a polled answer or "sSN" for a continuous-output telegram.
    encoder : (position, speed), optional
        When given, one encoder block is included.
    header_only : bool
        Cut the telegram after the device block, as the sensor answers the first
        request after a measurement start.
    """
    distances = default_distances() if distances_mm is None else list(distances_mm)
    fields = [command_type, "LMDscandata", "1", "1", SERIAL_NUMBER, "0", "0"]
    if header_only:
        return frame(" ".join(fields))
    fields += [
        f"{telegram_counter:X}",
        f"{scan_counter:X}",
        f"{time_since_startup:X}",
        f"{time_of_transmission:X}",
        "0",  # digital inputs
        "0",
        "0",  # digital outputs
        "0",
        "0",  # reserved
        f"{SCAN_FREQUENCY:X}",
        f"{MEASUREMENT_FREQUENCY:X}",
    ]
    if encoder is None:
        fields.append("0")
    else:
        position, speed = encoder
        fields += ["1", f"{position:X}", f"{speed:X}"]
    fields += [
        "1",  # 16-bit channels
        "DIST1",
        "3F800000",
        "00000000",
        f"{START_ANGLE:X}",
        f"{ANGULAR_STEP:X}",
        f"{len(distances):X}",
    ]
    fields += [f"{d:X}" for d in distances]
    # 8-bit channels, position, name, comment, time, event info
    fields += ["0"] * 6
    return frame(" ".join(fields))


class MockLMSTransport:
    """In-memory sensor behind the `Transport` interface.

    Attributes
    ----------
    writes : list[bytes]
        Every telegram written by the session, in order.
    fail_connect : LMSError, optional
        Raised by `connect()` when set.
    fail_reads : LMSError, optional
        Raised by every `read()` while set, e.g. to cut the link mid-session.
    peer_closed : bool
        While set, reads return b"" as if the sensor closed the connection.
    """

    def __init__(
        self,
        distances_mm: Optional[Sequence[int]] = None,
        warmup_replies: int = 1,
        fail_connect: Optional[LMSError] = None,
    ):
        self.distances_mm = distances_mm
        self.warmup_replies = warmup_replies
        self.fail_connect = fail_connect
        self.fail_reads: Optional[LMSError] = None
        self.peer_closed = False
        self.writes: list[bytes] = []
        self.connected = False
        self.measuring = False
        self.streaming = False
        self.telegram_counter = 0
        self.connects = 0
        self._warmup_left = 0
        self._outbox = bytearray()

    def __repr__(self):
        return "MockLMSTransport()"

    def connect(self) -> None:
        if self.fail_connect is not None:
            raise self.fail_connect
        self.connected = True
        self.connects += 1
        self._outbox.clear()

    def close(self) -> None:
        self.connected = False
        self.streaming = False

    def begin_exchange(self) -> None:
        pass

    def end_exchange(self) -> None:
        pass

    def write(self, data: bytes) -> None:
        if not self.connected:
            raise NotConnected("Mock sensor link is closed")
        self.writes.append(bytes(data))
        self._outbox += self._respond(unframe(data))

    def read(self, size: int = 1) -> bytes:
        if not self.connected:
            raise NotConnected("Mock sensor link is closed")
        if self.fail_reads is not None:
            raise self.fail_reads
        if self.peer_closed:
            return b""
        if not self._outbox and self.streaming:
            self._outbox += self._next_scan("sSN")
        if not self._outbox:
            raise ConnectionTimeout("Mock sensor has nothing to send")
        out = bytes(self._outbox[:size])
        del self._outbox[:size]
        return out

    def _next_scan(self, command_type: str) -> bytes:
        self.telegram_counter += 1
        return make_scan_telegram(
            self.distances_mm,
            command_type=command_type,
            telegram_counter=self.telegram_counter,
            scan_counter=self.telegram_counter,
        )

    def _respond(self, text: str) -> bytes:
        logger.trace("Mock sensor got '{}'", text)
        if text == Command.START.text:
            self.measuring = True
            self._warmup_left = self.warmup_replies
            return frame("sAN LMCstartmeas 0")
        if text == Command.STOP.text:
            self.measuring = False
            return frame("sAN LMCstopmeas 0")
        if text == Command.SET_ACCESS_MODE.text:
            return frame("sAN SetAccessMode 1")
        if text == Command.SCAN_DATA.text:
            if self._warmup_left > 0:
                self._warmup_left -= 1
                return make_scan_telegram(header_only=True)
            return self._next_scan("sRA")
        if text == Command.START_CONTINUOUS.text:
            self.streaming = True
            return frame("sEA LMDscandata 1")
        if text == Command.STOP_CONTINUOUS.text:
            self.streaming = False
            self._outbox.clear()
            return frame("sEA LMDscandata 0")
        if text == Command.RUN.text:
            return frame("sAN Run 1")
        if text == Command.QUERY_STATUS.text:
            state = "7" if self.measuring else "1"
            return frame(f"sRA STlms {state} 0 8 00:00:00 8 1.01.2026 0 0 0")
        if text == Command.STAND_BY.text:
            self.measuring = False
            return frame("sAN LMCstandby 0")
        if text == Command.REBOOT.text:
            return frame("sAN mSCreboot")
        return frame("sFA 1")


class AsyncMockLMSTransport:
    """Awaitable face of a `MockLMSTransport`."""

    def __init__(self, mock: Optional[MockLMSTransport] = None, **kwargs):
        self.mock = mock if mock is not None else MockLMSTransport(**kwargs)

    def __repr__(self):
        return f"Async{self.mock!r}"

    async def connect(self) -> None:
        self.mock.connect()

    async def read_frame(self) -> bytes:
        return read_frame(self.mock)

    async def write(self, data: bytes) -> None:
        self.mock.write(data)

    async def close(self) -> None:
        self.mock.close()

    def begin_exchange(self) -> None:
        pass

    def end_exchange(self) -> None:
        pass


__all__ = [
    "MockLMSTransport",
    "AsyncMockLMSTransport",
    "make_scan_telegram",
    "default_distances",
]

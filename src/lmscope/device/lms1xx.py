"""Session with a SICK LMS1xx laser range sensor.

A session owns one transport for its lifetime and runs strictly one
request/response exchange at a time. The mode is fixed by the config it is built
with:

- `LiveConfig`: TCP to the sensor; with `record_path` set every reply is also
  written to a capture file.
- `EmulatedConfig`: replies come from a capture file, nothing is sent anywhere.
  The session reports itself connected until `close()` releases the capture.

Session operations do not raise for expected failures. `connect`, `disconnect`
and `send_command` return a `SessionResult` (inside a `CommandResult` for
commands); scan operations return a `ScanError` record. Any transport failure
leaves the session `DISCONNECTED` with its transport dropped, so a later
`connect()` starts clean.

Examples
--------
```python
from lmscope import EmulatedConfig, LMS1xx, LiveConfig

with LMS1xx(LiveConfig(host="192.168.0.1", record_path="run.cap")) as lms:
    lms.start()
    record = lms.fetch_scan()

# later, without the sensor
replay = LMS1xx(EmulatedConfig(capture_path="run.cap"))
```

`AsyncLMS1xx` offers the same operations as coroutines.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Callable, Optional, Union

from loguru import logger

from lmscope.codec import TelegramVariant, TokenReader, decode_scan
from lmscope.device.device import Device
from lmscope.transport import (
    AsyncMirrorTransport,
    AsyncReplayTransport,
    AsyncTcpTransport,
    AsyncTransport,
    CaptureReader,
    CaptureWriter,
    MirrorTransport,
    ReplayTransport,
    TcpTransport,
    Transport,
)
from lmscope.types import (
    Command,
    CommandResult,
    ConnectionState,
    ConnectionTimeout,
    EmulatedConfig,
    InputExhausted,
    LiveConfig,
    LMSConnectionError,
    LMSError,
    NotConnected,
    ScanError,
    ScanRecord,
    SessionConfig,
    SessionResult,
)

TransportFactory = Callable[[LiveConfig], Union[Transport, AsyncTransport]]

# errors after which the link can no longer be trusted
_LINK_ERRORS = (ConnectionTimeout, LMSConnectionError, InputExhausted)


def _status_for(error: LMSError) -> SessionResult:
    if isinstance(error, ConnectionTimeout):
        return SessionResult.CONNECTION_TIMEOUT
    if isinstance(error, NotConnected):
        return SessionResult.NOT_CONNECTED
    return SessionResult.CONNECTION_ERROR


def _tcp_factory(config: LiveConfig) -> TcpTransport:
    return TcpTransport(
        config.host, config.port, config.receive_timeout, config.send_timeout
    )


def _async_tcp_factory(config: LiveConfig) -> AsyncTcpTransport:
    return AsyncTcpTransport(
        config.host, config.port, config.receive_timeout, config.send_timeout
    )


class _LMSSession(Device):
    """State and bookkeeping shared by the blocking and awaitable sessions."""

    required_config = {"config": SessionConfig}
    _default_factory: TransportFactory

    def __init__(
        self,
        config: SessionConfig,
        transport_factory: Optional[TransportFactory] = None,
    ):
        super().__init__(config=config)
        self._state = ConnectionState.DISCONNECTED
        self._transport = None
        self._capture_writer: Optional[CaptureWriter] = None
        self._capture_reader: Optional[CaptureReader] = None
        self._transport_factory = transport_factory or type(self)._default_factory
        self.last_error: Optional[LMSError] = None

        if isinstance(config, EmulatedConfig):
            self._capture_reader = CaptureReader(config.capture_path)
            self._transport = self._make_replay(self._capture_reader)
            logger.info("{} emulating from {}", self.name, config.capture_path)
        elif isinstance(config, LiveConfig):
            if config.record_path:
                self._capture_writer = CaptureWriter(config.record_path)
                logger.info("{} recording to {}", self.name, config.record_path)
        else:
            raise TypeError(f"Unsupported session config {type(config).__name__}")

    def _make_replay(self, capture: CaptureReader):
        raise NotImplementedError()

    def _make_transport(self):
        transport = self._transport_factory(self.config)
        if self._capture_writer is not None:
            transport = self._mirror_cls(transport, self._capture_writer)
        return transport

    @property
    def name(self) -> str:
        if isinstance(self.config, LiveConfig):
            return f"{self.__class__.__name__}({self.config.host}:{self.config.port})"
        return f"{self.__class__.__name__}(emulated)"

    def __repr__(self):
        return self.name

    @property
    def is_emulated(self) -> bool:
        return isinstance(self.config, EmulatedConfig)

    @property
    def is_recording(self) -> bool:
        return self._capture_writer is not None

    @property
    def state(self) -> ConnectionState:
        if self.is_emulated:
            if self._transport is None:
                return ConnectionState.DISCONNECTED
            return ConnectionState.CONNECTED
        return self._state

    def is_connected(self) -> bool:
        return self.state is ConnectionState.CONNECTED

    @contextmanager
    def _exchange(self, transport):
        transport.begin_exchange()
        try:
            yield transport
        finally:
            transport.end_exchange()

    def _not_connected(self) -> NotConnected:
        error = NotConnected(f"{self.name} is not connected.")
        self.last_error = error
        return error

    def _record_failure(self, action: str, error: LMSError) -> SessionResult:
        self.last_error = error
        status = _status_for(error)
        logger.error("{}: {} failed ({}): {}", self.name, action, status.value, error)
        return status

    def _release_captures(self) -> None:
        if self._capture_writer is not None:
            self._capture_writer.close()
        if self._capture_reader is not None:
            self._capture_reader.close()


class LMS1xx(_LMSSession):
    """Blocking session with an LMS1xx sensor."""

    _default_factory = staticmethod(_tcp_factory)
    _mirror_cls = MirrorTransport

    def _make_replay(self, capture: CaptureReader) -> ReplayTransport:
        return ReplayTransport(capture)

    # ------------------------------------------------------------------
    # connection lifecycle
    # ------------------------------------------------------------------

    def connect(self) -> SessionResult:
        if self.is_emulated or self._state is ConnectionState.CONNECTED:
            return SessionResult.OK
        transport = self._make_transport()
        try:
            transport.connect()
        except LMSError as e:
            self._discard(transport)
            return self._record_failure("connect", e)
        self._transport = transport
        self._state = ConnectionState.CONNECTED
        logger.info("{} connected.", self.name)
        return SessionResult.OK

    def disconnect(self) -> SessionResult:
        if self.is_emulated or self._state is ConnectionState.DISCONNECTED:
            return SessionResult.OK
        transport, self._transport = self._transport, None
        self._state = ConnectionState.DISCONNECTED
        try:
            transport.close()
        except LMSError as e:
            return self._record_failure("disconnect", e)
        logger.info("{} disconnected.", self.name)
        return SessionResult.OK

    def reconnect(self) -> SessionResult:
        self.disconnect()
        return self.connect()

    def _discard(self, transport: Transport) -> None:
        try:
            transport.close()
        except LMSError as e:
            logger.debug("{}: error closing failed transport: {}", self.name, e)

    def _drop_link(self) -> None:
        if self.is_emulated or self._transport is None:
            return
        transport, self._transport = self._transport, None
        self._state = ConnectionState.DISCONNECTED
        self._discard(transport)
        logger.warning("{} moved to disconnected after a transport failure.", self.name)

    # ------------------------------------------------------------------
    # exchanges
    # ------------------------------------------------------------------

    def send_command(self, command: Command) -> CommandResult:
        """Send one command telegram and read its reply frame."""
        if not self.is_connected():
            return CommandResult(SessionResult.NOT_CONNECTED, error=self._not_connected())
        transport = self._transport
        reader = TokenReader(transport)
        error = None
        with self._exchange(transport):
            try:
                transport.write(command.frame)
                reader.skip_to_end()
            except LMSError as e:
                error = e
        raw = bytes(reader.consumed)
        if error is not None:
            status = self._record_failure(f"'{command.text}'", error)
            if isinstance(error, _LINK_ERRORS):
                self._drop_link()
            return CommandResult(status, raw, error)
        logger.debug("{} <- {!r}", self.name, raw)
        return CommandResult(SessionResult.OK, raw)

    def fetch_scan(self) -> ScanRecord:
        """Request one scan (`sRN LMDscandata`) and decode the `sRA` answer."""
        return self._fetch(Command.SCAN_DATA, TelegramVariant.POLLED)

    def fetch_continuous_scan(self) -> ScanRecord:
        """Decode the next `sSN` telegram pushed in continuous mode."""
        return self._fetch(None, TelegramVariant.CONTINUOUS)

    def _fetch(self, command: Optional[Command], variant: TelegramVariant) -> ScanRecord:
        if not self.is_connected():
            return ScanError(b"", self._not_connected())
        transport = self._transport
        with self._exchange(transport):
            try:
                if command is not None:
                    transport.write(command.frame)
            except LMSError as e:
                record = ScanError(b"", e)
            else:
                record = decode_scan(transport, variant)
        if record.is_error:
            self.last_error = record.error
            if isinstance(record.error, _LINK_ERRORS):
                self._record_failure(f"{variant.tag} scan", record.error)
                self._drop_link()
        return record

    def run_full_cycle(self) -> ScanRecord:
        """Connect, start measuring, take one valid scan, stop and disconnect.

        The sensor does not answer the first scan request after a start with data,
        so two requests are made and the second result is kept. A link failure on
        the first request ends the cycle with that error. Stop and disconnect are
        attempted regardless.
        """
        if not self.connect().ok:
            return ScanError(b"", self.last_error)
        try:
            started = self.start()
            if not started.ok:
                return ScanError(started.raw, started.error)
            record = self.fetch_scan()
            if self.is_connected():
                logger.debug("{}: first scan after start gave {}", self.name, record)
                record = self.fetch_scan()
            stopped = self.stop()
            if not stopped.ok and not record.is_error:
                logger.error("{}: measurement improperly stopped.", self.name)
                return ScanError(record.raw, stopped.error)
            return record
        finally:
            self.disconnect()

    # ------------------------------------------------------------------
    # named commands
    # ------------------------------------------------------------------

    def start(self) -> CommandResult:
        return self.send_command(Command.START)

    def stop(self) -> CommandResult:
        return self.send_command(Command.STOP)

    def set_access_mode(self) -> CommandResult:
        return self.send_command(Command.SET_ACCESS_MODE)

    def start_continuous(self) -> CommandResult:
        return self.send_command(Command.START_CONTINUOUS)

    def stop_continuous(self) -> CommandResult:
        return self.send_command(Command.STOP_CONTINUOUS)

    def run(self) -> CommandResult:
        return self.send_command(Command.RUN)

    def query_status(self) -> CommandResult:
        return self.send_command(Command.QUERY_STATUS)

    def standby(self) -> CommandResult:
        return self.send_command(Command.STAND_BY)

    def reboot(self) -> CommandResult:
        return self.send_command(Command.REBOOT)

    # ------------------------------------------------------------------
    # Device interface
    # ------------------------------------------------------------------

    def open(self) -> tuple[bool, str]:
        status = self.connect()
        if status.ok:
            return True, f"Connected to {self.name}"
        return False, f"Could not connect to {self.name}: {self.last_error}"

    def close(self):
        self.disconnect()
        if self._transport is not None:  # emulated
            self._transport.close()
            self._transport = None
        self._release_captures()

    def __enter__(self):
        self.connect()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False


class AsyncLMS1xx(_LMSSession):
    """Awaitable session with an LMS1xx sensor.

    Replies are read as whole frames and decoded from memory; the coroutine only
    suspends on transport I/O.
    """

    _default_factory = staticmethod(_async_tcp_factory)
    _mirror_cls = AsyncMirrorTransport

    def _make_replay(self, capture: CaptureReader) -> AsyncReplayTransport:
        return AsyncReplayTransport(capture)

    async def connect(self) -> SessionResult:
        if self.is_emulated or self._state is ConnectionState.CONNECTED:
            return SessionResult.OK
        transport = self._make_transport()
        try:
            await transport.connect()
        except LMSError as e:
            await self._discard(transport)
            return self._record_failure("connect", e)
        self._transport = transport
        self._state = ConnectionState.CONNECTED
        logger.info("{} connected.", self.name)
        return SessionResult.OK

    async def disconnect(self) -> SessionResult:
        if self.is_emulated or self._state is ConnectionState.DISCONNECTED:
            return SessionResult.OK
        transport, self._transport = self._transport, None
        self._state = ConnectionState.DISCONNECTED
        try:
            await transport.close()
        except LMSError as e:
            return self._record_failure("disconnect", e)
        logger.info("{} disconnected.", self.name)
        return SessionResult.OK

    async def reconnect(self) -> SessionResult:
        await self.disconnect()
        return await self.connect()

    async def _discard(self, transport: AsyncTransport) -> None:
        try:
            await transport.close()
        except LMSError as e:
            logger.debug("{}: error closing failed transport: {}", self.name, e)

    async def _drop_link(self) -> None:
        if self.is_emulated or self._transport is None:
            return
        transport, self._transport = self._transport, None
        self._state = ConnectionState.DISCONNECTED
        await self._discard(transport)
        logger.warning("{} moved to disconnected after a transport failure.", self.name)

    async def send_command(self, command: Command) -> CommandResult:
        if not self.is_connected():
            return CommandResult(SessionResult.NOT_CONNECTED, error=self._not_connected())
        transport = self._transport
        raw, error = b"", None
        with self._exchange(transport):
            try:
                await transport.write(command.frame)
                raw = await transport.read_frame()
            except LMSError as e:
                error = e
        if error is not None:
            status = self._record_failure(f"'{command.text}'", error)
            if isinstance(error, _LINK_ERRORS):
                await self._drop_link()
            return CommandResult(status, raw, error)
        logger.debug("{} <- {!r}", self.name, raw)
        return CommandResult(SessionResult.OK, raw)

    async def fetch_scan(self) -> ScanRecord:
        return await self._fetch(Command.SCAN_DATA, TelegramVariant.POLLED)

    async def fetch_continuous_scan(self) -> ScanRecord:
        return await self._fetch(None, TelegramVariant.CONTINUOUS)

    async def _fetch(
        self, command: Optional[Command], variant: TelegramVariant
    ) -> ScanRecord:
        if not self.is_connected():
            return ScanError(b"", self._not_connected())
        transport = self._transport
        with self._exchange(transport):
            try:
                if command is not None:
                    await transport.write(command.frame)
                raw = await transport.read_frame()
            except LMSError as e:
                record = ScanError(b"", e)
            else:
                record = decode_scan(raw, variant)
        if record.is_error:
            self.last_error = record.error
            if isinstance(record.error, _LINK_ERRORS):
                self._record_failure(f"{variant.tag} scan", record.error)
                await self._drop_link()
        return record

    async def run_full_cycle(self) -> ScanRecord:
        if not (await self.connect()).ok:
            return ScanError(b"", self.last_error)
        try:
            started = await self.start()
            if not started.ok:
                return ScanError(started.raw, started.error)
            record = await self.fetch_scan()
            if self.is_connected():
                logger.debug("{}: first scan after start gave {}", self.name, record)
                record = await self.fetch_scan()
            stopped = await self.stop()
            if not stopped.ok and not record.is_error:
                logger.error("{}: measurement improperly stopped.", self.name)
                return ScanError(record.raw, stopped.error)
            return record
        finally:
            await self.disconnect()

    async def start(self) -> CommandResult:
        return await self.send_command(Command.START)

    async def stop(self) -> CommandResult:
        return await self.send_command(Command.STOP)

    async def set_access_mode(self) -> CommandResult:
        return await self.send_command(Command.SET_ACCESS_MODE)

    async def start_continuous(self) -> CommandResult:
        return await self.send_command(Command.START_CONTINUOUS)

    async def stop_continuous(self) -> CommandResult:
        return await self.send_command(Command.STOP_CONTINUOUS)

    async def run(self) -> CommandResult:
        return await self.send_command(Command.RUN)

    async def query_status(self) -> CommandResult:
        return await self.send_command(Command.QUERY_STATUS)

    async def standby(self) -> CommandResult:
        return await self.send_command(Command.STAND_BY)

    async def reboot(self) -> CommandResult:
        return await self.send_command(Command.REBOOT)

    def open(self) -> tuple[bool, str]:
        """Not supported: the blocking `Device` entry point has no awaitable form.

        Use `await session.connect()` or `async with session`.
        """
        raise NotImplementedError("Use `await session.connect()` for AsyncLMS1xx")

    async def close(self):
        await self.disconnect()
        if self._transport is not None:  # emulated
            await self._transport.close()
            self._transport = None
        self._release_captures()

    async def __aenter__(self):
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()
        return False


__all__ = ["LMS1xx", "AsyncLMS1xx", "TransportFactory"]

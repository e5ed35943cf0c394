"""Session over real sockets, with a local server playing the sensor."""

import socket
import socketserver
import threading

import pytest

from lmscope.codec import read_frame
from lmscope.device import AsyncLMS1xx, LMS1xx
from lmscope.device.mock import MockLMSTransport
from lmscope.types import (
    ConnectionState,
    ConnectionTimeout,
    LiveConfig,
    LMSConnectionError,
    ScanData,
    SessionResult,
)


class SensorHandler(socketserver.BaseRequestHandler):
    """Answer each framed request with the mock sensor's reply."""

    def handle(self):
        mock = MockLMSTransport()
        mock.connect()
        buffer = b""
        while True:
            chunk = self.request.recv(4096)
            if not chunk:
                return
            buffer += chunk
            while b"\x03" in buffer:
                request, buffer = buffer.split(b"\x03", 1)
                mock.write(request + b"\x03")
                self.request.sendall(read_frame(mock))


class SilentHandler(socketserver.BaseRequestHandler):
    def handle(self):
        while self.request.recv(4096):
            pass


@pytest.fixture
def sensor_server():
    server = socketserver.ThreadingTCPServer(("127.0.0.1", 0), SensorHandler)
    server.daemon_threads = True
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    yield server.server_address
    server.shutdown()
    server.server_close()


@pytest.fixture
def silent_server():
    server = socketserver.ThreadingTCPServer(("127.0.0.1", 0), SilentHandler)
    server.daemon_threads = True
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    yield server.server_address
    server.shutdown()
    server.server_close()


@pytest.fixture
def closed_port():
    sock = socket.socket()
    sock.bind(("127.0.0.1", 0))
    port = sock.getsockname()[1]
    sock.close()
    return port


class TestTcpSession:
    def test_full_cycle(self, sensor_server):
        host, port = sensor_server
        lms = LMS1xx(LiveConfig(host=host, port=port))
        record = lms.run_full_cycle()
        lms.close()
        assert isinstance(record, ScanData)
        assert record.amount_of_data == 541

    def test_receive_timeout(self, silent_server):
        host, port = silent_server
        lms = LMS1xx(LiveConfig(host=host, port=port, receive_timeout=0.05))
        assert lms.connect() is SessionResult.OK
        result = lms.start()
        assert result.status is SessionResult.CONNECTION_TIMEOUT
        assert lms.state is ConnectionState.DISCONNECTED
        lms.close()

    def test_refused(self, closed_port):
        lms = LMS1xx(LiveConfig(host="127.0.0.1", port=closed_port))
        assert lms.connect() is SessionResult.CONNECTION_ERROR
        assert isinstance(lms.last_error, LMSConnectionError)
        assert lms.state is ConnectionState.DISCONNECTED

    def test_connect_timeout(self, monkeypatch):
        def unreachable(address, timeout=None):
            raise socket.timeout("timed out")

        monkeypatch.setattr(socket, "create_connection", unreachable)
        lms = LMS1xx(LiveConfig(host="10.255.255.1", send_timeout=0.05))
        assert lms.connect() is SessionResult.CONNECTION_TIMEOUT
        assert isinstance(lms.last_error, ConnectionTimeout)
        assert lms.state is ConnectionState.DISCONNECTED


class TestAsyncTcpSession:
    @pytest.mark.asyncio
    async def test_full_cycle(self, sensor_server):
        host, port = sensor_server
        lms = AsyncLMS1xx(LiveConfig(host=host, port=port))
        record = await lms.run_full_cycle()
        await lms.close()
        assert isinstance(record, ScanData)

    @pytest.mark.asyncio
    async def test_receive_timeout(self, silent_server):
        host, port = silent_server
        lms = AsyncLMS1xx(LiveConfig(host=host, port=port, receive_timeout=0.05))
        assert await lms.connect() is SessionResult.OK
        result = await lms.start()
        assert result.status is SessionResult.CONNECTION_TIMEOUT
        assert lms.state is ConnectionState.DISCONNECTED
        await lms.close()

    @pytest.mark.asyncio
    async def test_refused(self, closed_port):
        lms = AsyncLMS1xx(LiveConfig(host="127.0.0.1", port=closed_port))
        assert await lms.connect() is SessionResult.CONNECTION_ERROR

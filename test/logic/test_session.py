"""Tests for the blocking LMS1xx session, against the mock sensor."""

import pytest

from lmscope.codec import decode_scan
from lmscope.device import LMS1xx
from lmscope.device.mock import MockLMSTransport, make_scan_telegram
from lmscope.transport import read_capture
from lmscope.types import (
    CaptureExhausted,
    Command,
    ConnectionState,
    ConnectionTimeout,
    EmulatedConfig,
    InputExhausted,
    LiveConfig,
    LMSConnectionError,
    MalformedTelegram,
    NotConnected,
    ScanData,
    ScanError,
    SessionResult,
    frame,
)


def session_for(mock: MockLMSTransport, **config) -> LMS1xx:
    return LMS1xx(LiveConfig(host="mock", **config), transport_factory=lambda cfg: mock)


class TestNotConnected:
    def test_initial_state(self, mock_session: LMS1xx):
        assert mock_session.state is ConnectionState.DISCONNECTED
        assert not mock_session.is_connected()
        assert not mock_session.is_emulated

    def test_fetch_scan_without_connect(self, mock_session, mock_sensor):
        record = mock_session.fetch_scan()
        assert isinstance(record, ScanError)
        assert isinstance(record.error, NotConnected)
        assert mock_sensor.writes == []
        assert mock_sensor.connects == 0

    def test_send_command_without_connect(self, mock_session, mock_sensor):
        result = mock_session.send_command(Command.START)
        assert result.status is SessionResult.NOT_CONNECTED
        assert isinstance(result.error, NotConnected)
        assert mock_sensor.writes == []

    def test_disconnect_when_disconnected(self, mock_session):
        assert mock_session.disconnect() is SessionResult.OK


class TestConnect:
    def test_connect(self, mock_session, mock_sensor):
        assert mock_session.connect() is SessionResult.OK
        assert mock_session.state is ConnectionState.CONNECTED
        assert mock_session.connect() is SessionResult.OK
        assert mock_sensor.connects == 1

    @pytest.mark.parametrize(
        "error, status",
        [
            (ConnectionTimeout("no answer"), SessionResult.CONNECTION_TIMEOUT),
            (LMSConnectionError("refused"), SessionResult.CONNECTION_ERROR),
        ],
    )
    def test_connect_failure(self, error, status):
        lms = session_for(MockLMSTransport(fail_connect=error))
        assert lms.connect() is status
        assert lms.state is ConnectionState.DISCONNECTED
        assert lms.last_error is error

    def test_disconnect(self, mock_session, mock_sensor):
        mock_session.connect()
        assert mock_session.disconnect() is SessionResult.OK
        assert not mock_session.is_connected()
        assert not mock_sensor.connected

    def test_reconnect(self, mock_session, mock_sensor):
        mock_session.connect()
        assert mock_session.reconnect() is SessionResult.OK
        assert mock_sensor.connects == 2

    def test_wrong_config_type(self):
        with pytest.raises(ValueError, match="wrong type"):
            LMS1xx({"host": "192.168.0.1"})


class TestCommands:
    def test_start(self, mock_session):
        mock_session.connect()
        result = mock_session.start()
        assert result.ok
        assert result.raw == frame("sAN LMCstartmeas 0")
        assert result.text == "sAN LMCstartmeas 0"

    @pytest.mark.parametrize(
        "method, reply",
        [
            ("stop", "sAN LMCstopmeas 0"),
            ("set_access_mode", "sAN SetAccessMode 1"),
            ("run", "sAN Run 1"),
            ("standby", "sAN LMCstandby 0"),
            ("reboot", "sAN mSCreboot"),
            ("start_continuous", "sEA LMDscandata 1"),
            ("stop_continuous", "sEA LMDscandata 0"),
        ],
    )
    def test_shortcuts(self, mock_session, method, reply):
        mock_session.connect()
        result = getattr(mock_session, method)()
        assert result.ok
        assert result.text == reply

    def test_query_status(self, mock_session):
        mock_session.connect()
        mock_session.start()
        assert mock_session.query_status().text.startswith("sRA STlms 7")

    def test_written_frames(self, mock_session, mock_sensor):
        mock_session.connect()
        mock_session.start()
        mock_session.stop()
        assert mock_sensor.writes == [Command.START.frame, Command.STOP.frame]

    def test_read_timeout_disconnects(self, mock_session, mock_sensor):
        mock_session.connect()
        mock_sensor.fail_reads = ConnectionTimeout("no reply")
        result = mock_session.start()
        assert result.status is SessionResult.CONNECTION_TIMEOUT
        assert mock_session.state is ConnectionState.DISCONNECTED
        assert not mock_sensor.connected

        mock_sensor.fail_reads = None
        assert mock_session.connect() is SessionResult.OK
        assert mock_session.start().ok

    def test_transport_error(self, mock_session, mock_sensor):
        mock_session.connect()
        mock_sensor.fail_reads = LMSConnectionError("reset by peer")
        result = mock_session.stop()
        assert result.status is SessionResult.CONNECTION_ERROR
        assert not mock_session.is_connected()


class TestFetchScan:
    def test_first_scan_after_start_is_empty(self, mock_session):
        mock_session.connect()
        mock_session.start()
        first = mock_session.fetch_scan()
        assert isinstance(first.error, MalformedTelegram)
        assert mock_session.is_connected()
        second = mock_session.fetch_scan()
        assert isinstance(second, ScanData)
        assert second.amount_of_data == 541

    def test_counters_advance(self, mock_session):
        mock_session.connect()
        counters = [mock_session.fetch_scan().telegram_counter for _ in range(3)]
        assert counters == [1, 2, 3]

    def test_link_failure(self, mock_session, mock_sensor):
        mock_session.connect()
        mock_sensor.fail_reads = LMSConnectionError("cable pulled")
        record = mock_session.fetch_scan()
        assert isinstance(record.error, LMSConnectionError)
        assert mock_session.state is ConnectionState.DISCONNECTED
        assert mock_session.last_error is record.error

    def test_peer_closed(self, mock_session, mock_sensor):
        mock_session.connect()
        mock_sensor.peer_closed = True
        record = mock_session.fetch_scan()
        assert isinstance(record.error, InputExhausted)
        assert not mock_session.is_connected()

    def test_continuous(self, mock_session):
        mock_session.connect()
        assert mock_session.start_continuous().ok
        records = [mock_session.fetch_continuous_scan() for _ in range(3)]
        assert all(r.command_type == "sSN" for r in records)
        assert [r.telegram_counter for r in records] == [1, 2, 3]
        assert mock_session.stop_continuous().ok


class StopFailsSensor(MockLMSTransport):
    def _respond(self, text):
        if text == Command.STOP.text:
            return b""
        return super()._respond(text)


class EmptyWarmupSensor(MockLMSTransport):
    def __init__(self):
        super().__init__(warmup_replies=0)
        self._first = True

    def _respond(self, text):
        if text == Command.SCAN_DATA.text and self._first:
            self._first = False
            return make_scan_telegram([])
        return super()._respond(text)


class ClosesOnScanSensor(MockLMSTransport):
    def _respond(self, text):
        if text == Command.SCAN_DATA.text:
            self.peer_closed = True
            return b""
        return super()._respond(text)


class TestFullCycle:
    def test_cycle(self, mock_session, mock_sensor):
        record = mock_session.run_full_cycle()
        assert isinstance(record, ScanData)
        assert mock_sensor.writes == [
            Command.START.frame,
            Command.SCAN_DATA.frame,
            Command.SCAN_DATA.frame,
            Command.STOP.frame,
        ]
        assert not mock_session.is_connected()
        assert not mock_sensor.measuring

    def test_cycle_without_warmup(self):
        mock = MockLMSTransport(warmup_replies=0)
        record = session_for(mock).run_full_cycle()
        assert not record.is_error
        assert record.telegram_counter == 2
        assert mock.writes.count(Command.SCAN_DATA.frame) == 2

    def test_valid_empty_first_scan_is_discarded(self):
        mock = EmptyWarmupSensor()
        record = session_for(mock).run_full_cycle()
        assert isinstance(record, ScanData)
        assert record.amount_of_data == 541
        assert mock.writes.count(Command.SCAN_DATA.frame) == 2

    def test_link_failure_on_first_scan(self):
        mock = ClosesOnScanSensor()
        lms = session_for(mock)
        record = lms.run_full_cycle()
        assert lms.state is ConnectionState.DISCONNECTED
        assert isinstance(record.error, InputExhausted)
        assert mock.writes.count(Command.SCAN_DATA.frame) == 1

    def test_connect_failure(self):
        lms = session_for(MockLMSTransport(fail_connect=ConnectionTimeout("50 ms")))
        record = lms.run_full_cycle()
        assert isinstance(record.error, ConnectionTimeout)
        assert lms.state is ConnectionState.DISCONNECTED

    def test_stop_failure_wins_over_scan(self):
        mock = StopFailsSensor()
        lms = session_for(mock)
        record = lms.run_full_cycle()
        assert isinstance(record, ScanError)
        assert isinstance(record.error, ConnectionTimeout)
        assert not lms.is_connected()

    def test_start_failure(self):
        mock = MockLMSTransport()
        lms = session_for(mock)
        lms.connect()
        mock.fail_reads = ConnectionTimeout("no reply")
        record = lms.run_full_cycle()
        assert isinstance(record.error, ConnectionTimeout)
        assert mock.writes == [Command.START.frame]


class TestDeviceInterface:
    def test_context_manager(self, mock_sensor):
        with session_for(mock_sensor) as lms:
            assert lms.is_connected()
        assert not lms.is_connected()
        assert not mock_sensor.connected

    def test_open(self, mock_session):
        ok, msg = mock_session.open()
        assert ok
        assert "Connected" in msg

    def test_open_failure(self):
        lms = session_for(MockLMSTransport(fail_connect=LMSConnectionError("down")))
        ok, msg = lms.open()
        assert not ok
        assert "down" in msg

    def test_attrs(self, mock_session):
        attrs = mock_session.get_all_attrs()
        assert attrs["state"] == str(ConnectionState.DISCONNECTED)


class TestRecordReplay:
    def test_capture_blocks(self, recorded_cycle):
        path, record = recorded_cycle
        blocks = read_capture(path)
        assert len(blocks) == 4
        assert blocks[0] == frame("sAN LMCstartmeas 0")
        assert decode_scan(blocks[1]).is_error
        assert decode_scan(blocks[2]) == record
        assert blocks[3] == frame("sAN LMCstopmeas 0")

    def test_replay_matches_recording(self, recorded_cycle):
        path, record = recorded_cycle
        lms = LMS1xx(EmulatedConfig(capture_path=str(path)))
        assert lms.is_emulated
        replayed = lms.run_full_cycle()
        lms.close()
        assert replayed == record

    def test_emulated_always_connected(self, recorded_cycle):
        path, _ = recorded_cycle
        lms = LMS1xx(EmulatedConfig(capture_path=str(path)))
        assert lms.is_connected()
        assert lms.disconnect() is SessionResult.OK
        assert lms.is_connected()
        assert lms.connect() is SessionResult.OK
        lms.close()
        assert lms.state is ConnectionState.DISCONNECTED
        assert isinstance(lms.fetch_scan().error, NotConnected)

    def test_emulated_commands(self, recorded_cycle):
        path, _ = recorded_cycle
        lms = LMS1xx(EmulatedConfig(capture_path=str(path)))
        # replies come back in recorded order, whatever is sent
        assert lms.send_command(Command.REBOOT).text == "sAN LMCstartmeas 0"
        lms.close()

    def test_capture_exhausted(self, recorded_cycle):
        path, _ = recorded_cycle
        lms = LMS1xx(EmulatedConfig(capture_path=str(path)))
        for _ in range(4):
            lms.fetch_scan()
        record = lms.fetch_scan()
        assert isinstance(record.error, CaptureExhausted)
        assert lms.is_connected()
        lms.close()

    def test_recording_survives_failed_exchange(self, tmp_path):
        path = tmp_path / "broken.cap"
        mock = MockLMSTransport()
        lms = session_for(mock, record_path=str(path))
        lms.connect()
        mock.peer_closed = True
        record = lms.fetch_scan()
        lms.close()
        assert record.is_error
        assert read_capture(path) == [b""]

        replayed = LMS1xx(EmulatedConfig(capture_path=str(path))).fetch_scan()
        assert isinstance(replayed.error, InputExhausted)

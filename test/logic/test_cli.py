import click.testing
import pytest

import lmscope.cli.base
from lmscope.cli import cli
from lmscope.device import LMS1xx
from lmscope.device.mock import MockLMSTransport
from lmscope.transport import read_capture
from lmscope.types import EmulatedConfig, LMSConnectionError, save_session_config

QUIET = ["--no-log-to-stdout", "--no-log-to-file"]


@pytest.fixture
def cli_runner():
    return click.testing.CliRunner()


@pytest.fixture
def mock_sensor_cli(monkeypatch):
    """Route CLI sessions to a mock sensor."""
    mock = MockLMSTransport()

    def session(config):
        return LMS1xx(config, transport_factory=lambda cfg: mock)

    monkeypatch.setattr(lmscope.cli.base, "LMS1xx", session)
    return mock


class TestTree:
    def test_tree(self, cli_runner):
        result = cli_runner.invoke(cli, ["--tree"])
        assert result.exit_code == 0
        for name in ("command", "plot", "replay", "scan", "stream"):
            assert f"└── {name}" in result.output


class TestScanCLI:
    def test_full_cycle(self, cli_runner, mock_sensor_cli):
        result = cli_runner.invoke(cli, QUIET + ["scan"])
        assert result.exit_code == 0, result.output
        assert "541" in result.output
        assert "OK" in result.output
        assert not mock_sensor_cli.connected

    def test_record(self, cli_runner, mock_sensor_cli, tmp_path):
        path = tmp_path / "cli.cap"
        result = cli_runner.invoke(cli, QUIET + ["scan", "--record", str(path)])
        assert result.exit_code == 0, result.output
        assert len(read_capture(path)) == 4

    def test_emulate(self, cli_runner, recorded_cycle):
        path, _ = recorded_cycle
        result = cli_runner.invoke(cli, QUIET + ["scan", "--emulate", str(path)])
        assert result.exit_code == 0, result.output
        assert "541" in result.output

    def test_config_file(self, cli_runner, recorded_cycle, tmp_path):
        path, _ = recorded_cycle
        cfg_path = tmp_path / "session.json"
        save_session_config(EmulatedConfig(capture_path=str(path)), cfg_path)
        result = cli_runner.invoke(cli, QUIET + ["scan", "--config", str(cfg_path)])
        assert result.exit_code == 0, result.output

    def test_record_and_emulate_exclusive(self, cli_runner, recorded_cycle, tmp_path):
        path, _ = recorded_cycle
        result = cli_runner.invoke(
            cli,
            QUIET + ["scan", "--emulate", str(path), "--record", str(tmp_path / "x")],
        )
        assert result.exit_code == 2
        assert "mutually exclusive" in result.output

    def test_connection_failure(self, cli_runner, mock_sensor_cli):
        mock_sensor_cli.fail_connect = LMSConnectionError("unreachable")
        result = cli_runner.invoke(cli, QUIET + ["scan"])
        assert result.exit_code == 1
        assert "Scan failed" in result.output


class TestStreamCLI:
    def test_stream(self, cli_runner, mock_sensor_cli):
        result = cli_runner.invoke(cli, QUIET + ["stream", "-n", "3"])
        assert result.exit_code == 0, result.output
        assert "sSN" in result.output
        assert not mock_sensor_cli.streaming

    def test_bad_count(self, cli_runner, mock_sensor_cli):
        result = cli_runner.invoke(cli, QUIET + ["stream", "-n", "0"])
        assert result.exit_code == 2


class TestCommandCLI:
    def test_command(self, cli_runner, mock_sensor_cli):
        result = cli_runner.invoke(cli, QUIET + ["command", "set-access-mode"])
        assert result.exit_code == 0, result.output
        assert "sAN SetAccessMode 1" in result.output

    def test_unknown_command(self, cli_runner, mock_sensor_cli):
        result = cli_runner.invoke(cli, QUIET + ["command", "selfdestruct"])
        assert result.exit_code == 2
        assert "Unknown command" in result.output
        assert mock_sensor_cli.writes == []

    def test_not_reachable(self, cli_runner, mock_sensor_cli):
        mock_sensor_cli.fail_connect = LMSConnectionError("unreachable")
        result = cli_runner.invoke(cli, QUIET + ["command", "start"])
        assert result.exit_code == 1
        assert "Could not connect" in result.output


class TestCaptureCLI:
    def test_replay(self, cli_runner, recorded_cycle):
        path, _ = recorded_cycle
        result = cli_runner.invoke(cli, QUIET + ["replay", str(path)])
        assert result.exit_code == 0, result.output
        assert "4 blocks, 1 sRA scans" in result.output

    def test_replay_all_blocks(self, cli_runner, recorded_cycle):
        path, _ = recorded_cycle
        result = cli_runner.invoke(cli, QUIET + ["replay", "-a", str(path)])
        assert result.exit_code == 0, result.output
        assert "OK" in result.output

    def test_plot(self, cli_runner, recorded_cycle, tmp_path):
        path, _ = recorded_cycle
        out = tmp_path / "scan.png"
        result = cli_runner.invoke(cli, QUIET + ["plot", str(path), "-s", str(out)])
        assert result.exit_code == 0, result.output
        assert out.exists()

    def test_plot_missing_scan(self, cli_runner, recorded_cycle, tmp_path):
        path, _ = recorded_cycle
        result = cli_runner.invoke(
            cli, QUIET + ["plot", str(path), "-i", "5", "-s", str(tmp_path / "x.png")]
        )
        assert result.exit_code == 1
        assert "no scan #5" in result.output

    def test_plot_negative_index(self, cli_runner, recorded_cycle, tmp_path):
        path, _ = recorded_cycle
        result = cli_runner.invoke(
            cli, QUIET + ["plot", str(path), "-i", "-1", "-s", str(tmp_path / "x.png")]
        )
        assert result.exit_code == 1
        assert "no scan #-1" in result.output

import pytest
from loguru import logger

from lmscope.device import LMS1xx
from lmscope.device.mock import MockLMSTransport
from lmscope.types import LiveConfig
from lmscope.util import TEST_LOGLEVEL, shutdown_log, start_log


def pytest_configure(config):
    """Configure custom markers."""
    config.addinivalue_line("markers", "slow: marks test as slow running test")
    config.addinivalue_line(
        "markers", "hardware: marks test that require physical hardware"
    )


@pytest.fixture(autouse=True, scope="session")
def test_log():
    start_log(log_to_file=False, log_to_stdout=True, log_level=TEST_LOGLEVEL)
    yield
    shutdown_log()


@pytest.fixture(autouse=True)
def log_test_name(request):
    logger.info("STARTED Test '{}'", request.node.originalname)
    yield
    logger.info("COMPLETED Test '{}' \n", request.node.originalname)


@pytest.fixture
def mock_sensor() -> MockLMSTransport:
    return MockLMSTransport()


@pytest.fixture
def mock_session(mock_sensor) -> LMS1xx:
    lms = LMS1xx(LiveConfig(host="mock"), transport_factory=lambda cfg: mock_sensor)
    yield lms
    lms.close()


@pytest.fixture
def recorded_cycle(tmp_path):
    """Capture of one full cycle against the mock sensor, and its scan."""
    path = tmp_path / "cycle.cap"
    mock = MockLMSTransport()
    lms = LMS1xx(
        LiveConfig(host="mock", record_path=str(path)),
        transport_factory=lambda cfg: mock,
    )
    record = lms.run_full_cycle()
    lms.close()
    assert not record.is_error
    return path, record

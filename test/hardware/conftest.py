import os

import pytest

from lmscope.types import LiveConfig
from lmscope.util import DEFAULT_PORT


@pytest.fixture(scope="session")
def sensor_config():
    """Live sensor from LMSCOPE_HOST (and LMSCOPE_PORT), skip when unset."""
    host = os.environ.get("LMSCOPE_HOST")
    if not host:
        pytest.skip("LMSCOPE_HOST not set, no sensor available")
    port = int(os.environ.get("LMSCOPE_PORT", DEFAULT_PORT))
    return LiveConfig(host=host, port=port, receive_timeout=2.0, send_timeout=2.0)

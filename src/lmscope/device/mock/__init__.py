from .mock_lms import (
    AsyncMockLMSTransport,
    MockLMSTransport,
    default_distances,
    make_scan_telegram,
)

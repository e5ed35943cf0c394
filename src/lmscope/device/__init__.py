# -*- coding: utf-8 -*-
"""
Sensor sessions for lmscope.

- `LMS1xx`: blocking session (live, recording or emulated).
- `AsyncLMS1xx`: the same operations as coroutines.
- `mock`: a simulated sensor for tests and demos.

Examples
--------
Taking one scan:
```python
from lmscope.device import LMS1xx
from lmscope.types import LiveConfig
lms = LMS1xx(LiveConfig(host="192.168.0.1"))
record = lms.run_full_cycle()
```

See Also
--------
lmscope.transport : Live, recording and replay transports
lmscope.types.config : Session configuration
"""

from .device import Device
from .lms1xx import AsyncLMS1xx, LMS1xx, TransportFactory
from .mock import AsyncMockLMSTransport, MockLMSTransport

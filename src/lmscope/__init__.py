# -*- coding: utf-8 -*-
"""# lmscope

Driver and tools for SICK LMS1xx 2D laser range sensors.

- `lmscope.types`: commands, scan records, session outcomes, config, errors.
- `lmscope.codec`: command framing and `LMDscandata` telegram decoding.
- `lmscope.transport`: TCP transports plus capture record/replay.
- `lmscope.device`: the `LMS1xx` / `AsyncLMS1xx` sessions and a mock sensor.
- `lmscope.cli`: the `lmscope` command line tool.

Examples
--------
```python
from lmscope import LMS1xx, LiveConfig

with LMS1xx(LiveConfig(host="192.168.0.1")) as lms:
    lms.start()
    lms.fetch_scan()  # first answer after a start carries no data
    record = lms.fetch_scan()
    lms.stop()

if not record.is_error:
    print(record.points())
```
"""

from ._version import __version__
from .device import AsyncLMS1xx, LMS1xx
from .types import (
    Command,
    CommandResult,
    EmulatedConfig,
    LiveConfig,
    ScanData,
    ScanError,
    SessionResult,
)

# -*- coding: utf-8 -*-
"""
Utility functions and constants for lmscope.

- Logging configuration and management (loguru)
- Default connection parameters

Examples
--------
Sending the library log to the console:
```python
from lmscope.util import start_log
start_log(log_to_file=False, log_to_stdout=True, log_level="DEBUG")
```

See Also
--------
lmscope.util.logging : Logging configuration
lmscope.util.defaults : Default values
"""

from .defaults import (
    DEFAULT_ALT_PORT,
    DEFAULT_HOST_ADDR,
    DEFAULT_LOGLEVEL,
    DEFAULT_PORT,
    DEFAULT_TIMEOUT,
    SINGLE_LINE_ERR_LOG,
    TEST_LOGLEVEL,
)
from .logging import (
    clear_log,
    format_error_response,
    get_log_filename,
    log_default_path,
    shutdown_log,
    start_log,
)

__all__ = [
    "DEFAULT_ALT_PORT",
    "DEFAULT_HOST_ADDR",
    "DEFAULT_LOGLEVEL",
    "DEFAULT_PORT",
    "DEFAULT_TIMEOUT",
    "SINGLE_LINE_ERR_LOG",
    "TEST_LOGLEVEL",
    "clear_log",
    "format_error_response",
    "get_log_filename",
    "log_default_path",
    "shutdown_log",
    "start_log",
]

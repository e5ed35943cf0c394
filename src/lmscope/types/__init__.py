"""
Data model shared by the codec, transports and sessions.

- Commands (commands.py): the command catalog and STX/ETX framing.
- Scan records (scan.py): `ScanData | ScanError`, the result of every decode.
- Outcomes (outcomes.py): connection state and session operation results.
- Configuration (config.py): `LiveConfig | EmulatedConfig`.
- Errors (errors.py): the `LMSError` hierarchy.

Examples
--------
Handling a scan:
```python
from lmscope.types import ScanError
record = session.fetch_scan()
if isinstance(record, ScanError):
    print(f"Error: {record.error} ({record.raw_string!r})")
else:
    print(record.distances)
```
"""

from .commands import ETX, SPC, STX, Command, frame, unframe
from .config import (
    EmulatedConfig,
    LiveConfig,
    SessionConfig,
    load_session_config,
    save_session_config,
)
from .errors import (
    CaptureExhausted,
    ConnectionTimeout,
    InputExhausted,
    LMSConnectionError,
    LMSError,
    MalformedTelegram,
    NotConnected,
    UnexpectedTelegramType,
)
from .outcomes import CommandResult, ConnectionState, SessionResult
from .scan import Encoder, ScanData, ScanError, ScanRecord

__all__ = [
    "STX",
    "ETX",
    "SPC",
    "Command",
    "frame",
    "unframe",
    "SessionConfig",
    "LiveConfig",
    "EmulatedConfig",
    "load_session_config",
    "save_session_config",
    "LMSError",
    "ConnectionTimeout",
    "LMSConnectionError",
    "NotConnected",
    "MalformedTelegram",
    "UnexpectedTelegramType",
    "CaptureExhausted",
    "InputExhausted",
    "ConnectionState",
    "SessionResult",
    "CommandResult",
    "Encoder",
    "ScanData",
    "ScanError",
    "ScanRecord",
]

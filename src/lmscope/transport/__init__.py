"""
Byte-stream transports between a session and a sensor.

- `TcpTransport` / `AsyncTcpTransport`: live link over TCP.
- `MirrorTransport` / `AsyncMirrorTransport`: record mode, capture every reply.
- `ReplayTransport` / `AsyncReplayTransport`: emulation mode, serve a capture.
- `CaptureWriter` / `CaptureReader`: the length-prefixed capture file format.

Examples
--------
Recording a live exchange by hand:
```python
from lmscope.transport import CaptureWriter, MirrorTransport, TcpTransport
t = MirrorTransport(TcpTransport("192.168.0.1", 2111), CaptureWriter("run.cap"))
```
"""

from .base import AsyncTransport, Transport
from .capture import CaptureReader, CaptureWriter, read_capture
from .record import AsyncMirrorTransport, MirrorTransport
from .replay import AsyncReplayTransport, ReplayTransport
from .tcp import AsyncTcpTransport, TcpTransport

__all__ = [
    "Transport",
    "AsyncTransport",
    "CaptureReader",
    "CaptureWriter",
    "read_capture",
    "MirrorTransport",
    "AsyncMirrorTransport",
    "ReplayTransport",
    "AsyncReplayTransport",
    "TcpTransport",
    "AsyncTcpTransport",
]

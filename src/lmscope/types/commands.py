"""Command catalog: the ASCII command telegrams understood by the sensor.

Every telegram on the wire is `STX <ascii text> ETX`. The catalog maps each
supported operation to its text and pre-framed bytes.

Examples
--------
```python
from lmscope.types import Command
sock.sendall(Command.SCAN_DATA.frame)  # b"\\x02sRN LMDscandata\\x03"
```
"""

from __future__ import annotations

from enum import Enum

from .errors import MalformedTelegram

STX = 0x02
ETX = 0x03
SPC = 0x20


def frame(text: str) -> bytes:
    """Wrap command text in the start/end markers, encoded as 7-bit ASCII."""
    return bytes([STX]) + text.encode("ascii") + bytes([ETX])


def unframe(data: bytes) -> str:
    """Inverse of `frame`: check the markers and return the ASCII payload."""
    if len(data) < 2 or data[0] != STX or data[-1] != ETX:
        raise MalformedTelegram(f"Not a framed telegram: {bytes(data)!r}")
    try:
        return bytes(data[1:-1]).decode("ascii")
    except UnicodeDecodeError as e:
        raise MalformedTelegram(f"Non-ASCII telegram payload: {e}") from e


class Command(Enum):
    START = "sMN LMCstartmeas"
    STOP = "sMN LMCstopmeas"
    SET_ACCESS_MODE = "sMN SetAccessMode 3 F4724744"
    SCAN_DATA = "sRN LMDscandata"
    START_CONTINUOUS = "sEN LMDscandata 1"
    STOP_CONTINUOUS = "sEN LMDscandata 0"
    RUN = "sMN Run"
    QUERY_STATUS = "sRN STlms"
    STAND_BY = "sMN LMCstandby"
    REBOOT = "sMN mSCreboot"

    @property
    def text(self) -> str:
        return self.value

    @property
    def frame(self) -> bytes:
        return _FRAMES[self]

    @classmethod
    def from_name(cls, name: str) -> Command:
        """Look up a command by name, ignoring case, `_` and `-`.

        `"ScanData"`, `"scan_data"` and `"SCAN-DATA"` all give `Command.SCAN_DATA`.
        """
        key = name.replace("_", "").replace("-", "").upper()
        for cmd in cls:
            if cmd.name.replace("_", "") == key:
                return cmd
        raise ValueError(
            f"Unknown command '{name}', expected one of: "
            + ", ".join(c.name for c in cls)
        )


# frames are computed once, bytes are immutable
_FRAMES: dict[Command, bytes] = {cmd: frame(cmd.value) for cmd in Command}

__all__ = ["STX", "ETX", "SPC", "Command", "frame", "unframe"]

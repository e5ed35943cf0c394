"""Connection state and operation outcomes returned by a session."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .errors import LMSError


class ConnectionState(Enum):
    DISCONNECTED = "disconnected"
    CONNECTED = "connected"


class SessionResult(Enum):
    """Outcome of connect/disconnect/send.

    Expected failures (timeouts, dropped links, calling before `connect`) are
    reported through this enum rather than raised.
    """

    OK = "ok"
    CONNECTION_TIMEOUT = "connection_timeout"
    CONNECTION_ERROR = "connection_error"
    NOT_CONNECTED = "not_connected"

    @property
    def ok(self) -> bool:
        return self is SessionResult.OK


@dataclass
class CommandResult:
    """Reply to a single command exchange.

    `raw` holds whatever reply bytes were read, even on failure.
    """

    status: SessionResult
    raw: bytes = b""
    error: Optional[LMSError] = None

    @property
    def ok(self) -> bool:
        return self.status.ok

    @property
    def text(self) -> str:
        """Reply payload as text, without the frame markers."""
        return self.raw.decode("ascii", errors="replace").strip("\x02\x03")


__all__ = ["ConnectionState", "SessionResult", "CommandResult"]

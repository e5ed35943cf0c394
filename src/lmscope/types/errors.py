"""Exception taxonomy for sensor communication and telegram decoding.

Transport adapters raise these in place of the raw socket/OS exceptions, the codec
catches them and turns them into `ScanError` records, and the session converts
them into `SessionResult` outcomes. Nothing in this family should escape a public
session operation.
"""

from __future__ import annotations


class LMSError(Exception):
    """Base exception for all sensor communication errors."""


class ConnectionTimeout(LMSError):
    """A connect/read/write did not complete within the configured timeout."""


class LMSConnectionError(LMSError):
    """Transport-level failure (refused, reset, unreachable, ...)."""


class NotConnected(LMSError):
    """Operation attempted without an active connection."""


class MalformedTelegram(LMSError):
    """Framing or field error while decoding a telegram."""


class UnexpectedTelegramType(LMSError):
    """A frame was received but its command-type tag is not the one expected.

    Not fatal: the reply may simply belong to a different command.
    """

    def __init__(self, expected: str, found: str):
        super().__init__(f"Expected telegram type '{expected}', found '{found}'")
        self.expected = expected
        self.found = found


class CaptureExhausted(LMSError):
    """The replay capture file has no more recorded exchanges."""


class InputExhausted(LMSError):
    """The byte source ended (or the peer closed) in the middle of a telegram."""


__all__ = [
    "LMSError",
    "ConnectionTimeout",
    "LMSConnectionError",
    "NotConnected",
    "MalformedTelegram",
    "UnexpectedTelegramType",
    "CaptureExhausted",
    "InputExhausted",
]

"""Byte/token reader used by the telegram decoder.

Reads one byte at a time from either an in-memory buffer or a transport, keeping
every consumed byte so a decode failure can always report what was received.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Union

from lmscope.types.commands import ETX, SPC
from lmscope.types.errors import InputExhausted, MalformedTelegram
from lmscope.util.defaults import MAX_TOKEN_LENGTH

if TYPE_CHECKING:
    from lmscope.transport.base import Transport

ByteSource = Union[bytes, bytearray, memoryview, "Transport"]


class TokenReader:
    """Sequential reader over a telegram.

    Attributes
    ----------
    consumed : bytearray
        All bytes read so far.
    at_end : bool
        True once the end marker (ETX) has been consumed.
    tokens : int
        Number of tokens returned by `read_token`.
    """

    def __init__(self, source: ByteSource):
        if isinstance(source, (bytes, bytearray, memoryview)):
            self._data = bytes(source)
            self._transport = None
        else:
            self._data = None
            self._transport = source
        self._pos = 0
        self.consumed = bytearray()
        self.at_end = False
        self.tokens = 0

    def read_byte(self) -> int:
        if self._data is not None:
            if self._pos >= len(self._data):
                raise InputExhausted(
                    f"Input ended after {len(self.consumed)} bytes, before end of telegram"
                )
            b = self._data[self._pos]
            self._pos += 1
        else:
            chunk = self._transport.read(1)
            if not chunk:
                raise InputExhausted(
                    f"Transport closed after {len(self.consumed)} bytes, "
                    + "before end of telegram"
                )
            b = chunk[0]
        self.consumed.append(b)
        if b == ETX:
            self.at_end = True
        return b

    def read_token(self) -> str:
        """Read up to the next space (or the end marker), return the text."""
        if self.at_end:
            raise MalformedTelegram(
                f"Telegram ended after {self.tokens} tokens, more fields expected"
            )
        start = len(self.consumed)
        while True:
            b = self.read_byte()
            if b in (SPC, ETX):
                break
            if len(self.consumed) - start > MAX_TOKEN_LENGTH:
                raise MalformedTelegram(
                    f"Token {self.tokens + 1} longer than {MAX_TOKEN_LENGTH} chars"
                )
        token = bytes(self.consumed[start:-1])
        self.tokens += 1
        try:
            return token.decode("ascii")
        except UnicodeDecodeError as e:
            raise MalformedTelegram(f"Non-ASCII token {token!r}") from e

    def skip_to_end(self) -> None:
        """Discard bytes until the end marker has been consumed."""
        while not self.at_end:
            self.read_byte()

    def read_frame(self) -> bytes:
        """Read everything up to and including the end marker."""
        self.skip_to_end()
        return bytes(self.consumed)


__all__ = ["ByteSource", "TokenReader"]

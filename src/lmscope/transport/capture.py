"""Capture file format.

A capture is a plain sequence of blocks, one per request/response exchange:

    [uint32 little-endian length][length bytes of raw reply]

No header, no checksum, no end marker; end of file ends the capture.
"""

from __future__ import annotations

import os
import struct
from typing import BinaryIO, Iterator, Optional, Union

from loguru import logger

from lmscope.types.errors import CaptureExhausted

_LENGTH = struct.Struct("<I")

PathOrFile = Union[str, os.PathLike, BinaryIO]


class CaptureWriter:
    """Appends length-prefixed blocks to a capture file."""

    def __init__(self, target: PathOrFile):
        if isinstance(target, (str, os.PathLike)):
            self.path: Optional[str] = os.path.abspath(target)
            self._file = open(self.path, "wb")
            self._owns_file = True
        else:
            self.path = None
            self._file = target
            self._owns_file = False
        self.blocks_written = 0

    def write_block(self, data: bytes) -> None:
        self._file.write(_LENGTH.pack(len(data)))
        self._file.write(data)
        self._file.flush()
        self.blocks_written += 1
        logger.trace("Captured block {} ({} bytes)", self.blocks_written, len(data))

    def close(self) -> None:
        if self._owns_file and not self._file.closed:
            self._file.close()
            logger.debug(
                "Capture file {} closed after {} blocks", self.path, self.blocks_written
            )


class CaptureReader:
    """Reads length-prefixed blocks back from a capture file."""

    def __init__(self, source: PathOrFile):
        if isinstance(source, (str, os.PathLike)):
            self.path: Optional[str] = os.path.abspath(source)
            self._file = open(self.path, "rb")
            self._owns_file = True
        else:
            self.path = None
            self._file = source
            self._owns_file = False
        self.blocks_read = 0

    def read_block(self) -> bytes:
        """Return the next block; raise CaptureExhausted at end of capture."""
        header = self._file.read(_LENGTH.size)
        if not header:
            raise CaptureExhausted(
                f"Capture exhausted after {self.blocks_read} exchanges"
            )
        if len(header) < _LENGTH.size:
            raise CaptureExhausted(
                f"Truncated block header after {self.blocks_read} exchanges"
            )
        (size,) = _LENGTH.unpack(header)
        data = self._file.read(size)
        if len(data) < size:
            raise CaptureExhausted(
                f"Truncated block {self.blocks_read + 1}: "
                + f"expected {size} bytes, got {len(data)}"
            )
        self.blocks_read += 1
        return data

    def __iter__(self) -> Iterator[bytes]:
        while True:
            try:
                yield self.read_block()
            except CaptureExhausted as e:
                logger.debug("End of capture: {}", e)
                return

    def close(self) -> None:
        if self._owns_file and not self._file.closed:
            self._file.close()


def read_capture(path: PathOrFile) -> list[bytes]:
    """Load every block of a capture file."""
    reader = CaptureReader(path)
    try:
        return list(reader)
    finally:
        reader.close()


__all__ = ["CaptureWriter", "CaptureReader", "read_capture"]

"""Decoded scan-data telegrams.

A decode attempt yields a `ScanRecord`, which is either a `ScanData` (every
mandatory field parsed and the end marker reached) or a `ScanError` (the bytes
consumed so far plus the exception describing what went wrong). There is no
half-filled record: a field is either parsed and typed, or legitimately absent
(the optional `encoder` block).
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from typing import Optional, Union

import numpy as np
from mashumaro import DataClassDictMixin

from .errors import LMSError


@dataclass(frozen=True)
class Encoder(DataClassDictMixin):
    """Encoder block, only present when the telegram declares encoders."""

    position: int
    speed: int


@dataclass(kw_only=True, repr=False, eq=False)
class ScanData(DataClassDictMixin):
    """A successfully decoded `LMDscandata` telegram.

    Scaling follows the telegram variant: the polled (`sRA`) answer reports the two
    duration fields in whole seconds, the continuous (`sSN`) stream keeps them in
    raw device units.
    """

    command_type: str
    command: str
    version_number: int
    device_number: int
    serial_number: int
    device_status: str
    telegram_counter: int
    scan_counter: int
    time_since_startup: int
    time_of_transmission: int
    digital_inputs: str
    digital_outputs: str
    reserved: int
    scan_frequency: float  # Hz
    measurement_frequency: float  # Hz
    encoder_count: int
    encoder: Optional[Encoder] = None
    channel_count_16bit: int
    content: str
    scale_factor: str
    scale_factor_offset: str
    start_angle: float  # deg
    angular_step: float  # deg
    amount_of_data: int
    distances: np.ndarray = field(
        metadata={"serialize": tuple, "deserialize": np.array}
    )  # m
    header_token_count: int = 0
    raw: bytes = b""

    @property
    def is_error(self) -> bool:
        return False

    @property
    def raw_string(self) -> str:
        return self.raw.decode("ascii", errors="replace").strip("\x02\x03 ")

    def angles(self) -> np.ndarray:
        """Beam angle (deg) of every distance sample."""
        return self.start_angle + self.angular_step * np.arange(self.amount_of_data)

    def points(self) -> np.ndarray:
        """Cartesian (x, y) in metres, shape (N, 2), sensor at the origin."""
        theta = np.radians(self.angles())
        return np.column_stack(
            (self.distances * np.cos(theta), self.distances * np.sin(theta))
        )

    def __eq__(self, other):
        if not isinstance(other, ScanData):
            return NotImplemented
        for f in fields(self):
            a, b = getattr(self, f.name), getattr(other, f.name)
            if isinstance(a, np.ndarray):
                if not np.array_equal(a, b):
                    return False
            elif a != b:
                return False
        return True

    def __repr__(self):
        msg = self.__class__.__name__ + "("
        for i, (name, val) in enumerate(self.__dict__.items()):
            if i not in (0, len(self.__dict__)):
                msg += ", "
            if isinstance(val, np.ndarray):
                msg += f"{name}=<Array[{len(val)}]>"
            elif isinstance(val, bytes):
                msg += f"{name}=<{len(val)} bytes>"
            else:
                msg += f"{name}={val!r}"
        return msg + ")"


@dataclass(repr=False)
class ScanError:
    """A failed decode attempt: what was read, and why it failed."""

    raw: bytes
    error: LMSError

    @property
    def is_error(self) -> bool:
        return True

    @property
    def raw_string(self) -> str:
        return self.raw.decode("ascii", errors="replace").strip("\x02\x03 ")

    def __repr__(self):
        return (
            f"ScanError(error={self.error.__class__.__name__}: {self.error}, "
            + f"raw=<{len(self.raw)} bytes>)"
        )


ScanRecord = Union[ScanData, ScanError]

__all__ = ["Encoder", "ScanData", "ScanError", "ScanRecord"]

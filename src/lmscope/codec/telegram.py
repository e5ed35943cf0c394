"""Encoding of command telegrams and decoding of `LMDscandata` telegrams.

Scan-data telegrams are positional: a fixed sequence of space-separated fields,
integers in hex. The order is described once, in `_field_table`, and a single
decoder walks it for both telegram variants:

- `TelegramVariant.POLLED` (`sRA`): answer to `sRN LMDscandata`. The two duration
  fields are reported in whole seconds.
- `TelegramVariant.CONTINUOUS` (`sSN`): pushed after `sEN LMDscandata 1`. Duration
  fields are kept in raw device units and five extra integer fields follow the
  distances.

TODO: confirm the duration scaling of both variants against a second firmware
revision.

Decoding never raises an `LMSError`: failures come back as `ScanError` records
carrying the bytes read.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, NamedTuple, Optional

import numpy as np
from loguru import logger

from lmscope.types.commands import STX, SPC, Command, unframe
from lmscope.types.errors import (
    InputExhausted,
    LMSError,
    MalformedTelegram,
    UnexpectedTelegramType,
)
from lmscope.types.scan import Encoder, ScanData, ScanError, ScanRecord

from .reader import ByteSource, TokenReader


class TelegramVariant(Enum):
    POLLED = "sRA"
    CONTINUOUS = "sSN"

    @property
    def tag(self) -> str:
        return self.value


@dataclass(frozen=True)
class FieldSpec:
    """One positional field of a scan-data telegram.

    kind is one of "word" (text), "pair" (two words joined with '-'), "int" (signed
    32-bit hex) or "uint" (unsigned 32-bit hex). `convert` scales the parsed
    integer, `when` decides from the values read so far whether the field is
    present.
    """

    name: str
    kind: str
    convert: Optional[Callable[[int], Any]] = None
    when: Optional[Callable[[dict], bool]] = None


def _per(divisor: float) -> Callable[[int], float]:
    return lambda raw: raw / divisor


def _whole_seconds(raw: int) -> int:
    return raw // 1_000_000


def _has_encoder(values: dict) -> bool:
    return values["encoder_count"] > 0


def _field_table(variant: TelegramVariant) -> tuple[FieldSpec, ...]:
    duration = _whole_seconds if variant is TelegramVariant.POLLED else None
    return (
        FieldSpec("command", "word"),
        FieldSpec("version_number", "int"),
        FieldSpec("device_number", "int"),
        FieldSpec("serial_number", "uint"),
        FieldSpec("device_status", "pair"),
        FieldSpec("telegram_counter", "uint"),
        FieldSpec("scan_counter", "uint"),
        FieldSpec("time_since_startup", "uint", duration),
        FieldSpec("time_of_transmission", "uint", duration),
        FieldSpec("digital_inputs", "pair"),
        FieldSpec("digital_outputs", "pair"),
        FieldSpec("reserved", "int"),
        FieldSpec("scan_frequency", "int", _per(100)),
        FieldSpec("measurement_frequency", "int", _per(10)),
        FieldSpec("encoder_count", "int"),
        FieldSpec("encoder_position", "int", when=_has_encoder),
        FieldSpec("encoder_speed", "int", when=_has_encoder),
        FieldSpec("channel_count_16bit", "int"),
        FieldSpec("content", "word"),
        FieldSpec("scale_factor", "word"),
        FieldSpec("scale_factor_offset", "word"),
        FieldSpec("start_angle", "int", _per(10000)),
        FieldSpec("angular_step", "uint", _per(10000)),
        FieldSpec("amount_of_data", "int"),
    )


_FIELD_TABLES = {variant: _field_table(variant) for variant in TelegramVariant}

# discarded integer fields after the distances of a continuous telegram
_CONTINUOUS_TRAILER = ("channel_count_8bit", "position", "comment", "time", "event_info")

DISTANCE_SCALE = 1000.0  # raw mm -> m

# bare hex digits only: no sign, prefix or separators
_HEX_TOKEN = re.compile(r"[0-9A-Fa-f]+")


def parse_hex(token: str, signed: bool = True) -> int:
    """Parse a 32-bit hex token, two's complement when `signed`."""
    if not _HEX_TOKEN.fullmatch(token):
        raise MalformedTelegram(f"Invalid hex field '{token}'")
    value = int(token, 16)
    if value > 0xFFFFFFFF:
        raise MalformedTelegram(f"Hex field '{token}' does not fit in 32 bits")
    if signed and value > 0x7FFFFFFF:
        value -= 1 << 32
    return value


def _read_field(reader: TokenReader, spec: FieldSpec) -> Any:
    if spec.kind == "word":
        return reader.read_token()
    if spec.kind == "pair":
        return f"{reader.read_token()}-{reader.read_token()}"
    raw = parse_hex(reader.read_token(), signed=spec.kind == "int")
    return spec.convert(raw) if spec.convert else raw


def _check_header(reader: TokenReader, variant: TelegramVariant) -> None:
    expected = bytes([STX]) + variant.tag.encode("ascii") + bytes([SPC])
    for want in expected:
        if reader.read_byte() != want:
            found = bytes(reader.consumed).decode("ascii", errors="replace")
            raise UnexpectedTelegramType(variant.tag, found.strip("\x02 "))


def _drain(reader: TokenReader) -> None:
    """Skip the rest of a rejected frame so a stream source stays aligned."""
    try:
        reader.skip_to_end()
    except InputExhausted:
        logger.debug("Input ended while skipping a rejected telegram.")


def decode_scan(
    source: Optional[ByteSource],
    variant: TelegramVariant = TelegramVariant.POLLED,
) -> ScanRecord:
    """Decode one scan-data telegram.

    Parameters
    ----------
    source : bytes | Transport | None
        Raw telegram bytes, or a transport to read the telegram from. Reading from
        a transport consumes exactly one frame.
    variant : TelegramVariant
        Which telegram shape to expect.

    Returns
    -------
    ScanData | ScanError
        `ScanError` carries the bytes consumed and the failure.
    """
    if source is None:
        return ScanError(b"", MalformedTelegram("Raw data is None."))

    reader = TokenReader(source)
    try:
        _check_header(reader, variant)
        values: dict[str, Any] = {"command_type": variant.tag}
        for spec in _FIELD_TABLES[variant]:
            if spec.when is not None and not spec.when(values):
                continue
            values[spec.name] = _read_field(reader, spec)
        header_token_count = reader.tokens + 1  # + type tag

        amount = values["amount_of_data"]
        if amount < 0:
            raise MalformedTelegram(f"Negative amount of data ({amount})")
        distances = (
            np.array(
                [parse_hex(reader.read_token()) for _ in range(amount)], dtype=float
            )
            / DISTANCE_SCALE
        )
        if variant is TelegramVariant.CONTINUOUS:
            for _ in _CONTINUOUS_TRAILER:
                parse_hex(reader.read_token())
        reader.skip_to_end()
    except UnexpectedTelegramType as e:
        _drain(reader)
        logger.debug("Skipped telegram: {}", e)
        return ScanError(bytes(reader.consumed), e)
    except LMSError as e:
        logger.warning(
            "Failed to decode {} telegram after {} bytes: {}",
            variant.tag,
            len(reader.consumed),
            e,
        )
        return ScanError(bytes(reader.consumed), e)

    encoder = None
    if "encoder_position" in values:
        encoder = Encoder(
            position=values.pop("encoder_position"),
            speed=values.pop("encoder_speed"),
        )
    record = ScanData(
        **values,
        encoder=encoder,
        distances=distances,
        header_token_count=header_token_count,
        raw=bytes(reader.consumed),
    )
    logger.trace(
        "Decoded {} telegram #{}: {} samples",
        variant.tag,
        record.telegram_counter,
        record.amount_of_data,
    )
    return record


def read_frame(source: ByteSource) -> bytes:
    """Read one whole frame (up to and including ETX) from `source`.

    Raises the transport's `LMSError`s, or `InputExhausted`.
    """
    return TokenReader(source).read_frame()


class Reply(NamedTuple):
    command_type: str
    command: str
    args: tuple[str, ...]


def decode_reply(data: bytes) -> Reply:
    """Split a framed reply into its type tag, command name and arguments.

    e.g. `b"\\x02sAN LMCstartmeas 0\\x03"` -> `Reply("sAN", "LMCstartmeas", ("0",))`
    """
    parts = unframe(data).split(" ")
    return Reply(parts[0], parts[1] if len(parts) > 1 else "", tuple(parts[2:]))


def encode_command(command: Command) -> bytes:
    return command.frame


__all__ = [
    "TelegramVariant",
    "FieldSpec",
    "DISTANCE_SCALE",
    "parse_hex",
    "decode_scan",
    "read_frame",
    "Reply",
    "decode_reply",
    "encode_command",
]

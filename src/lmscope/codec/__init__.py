"""
Telegram codec: command framing and scan-data decoding.

Examples
--------
Decoding a captured answer:
```python
from lmscope.codec import decode_scan
record = decode_scan(raw_bytes)
if not record.is_error:
    print(record.distances)
```

Decoding a continuous-output telegram straight from a transport:
```python
from lmscope.codec import TelegramVariant, decode_scan
record = decode_scan(transport, TelegramVariant.CONTINUOUS)
```
"""

from .reader import ByteSource, TokenReader
from .telegram import (
    DISTANCE_SCALE,
    FieldSpec,
    Reply,
    TelegramVariant,
    decode_reply,
    decode_scan,
    encode_command,
    parse_hex,
    read_frame,
)

__all__ = [
    "ByteSource",
    "TokenReader",
    "DISTANCE_SCALE",
    "FieldSpec",
    "Reply",
    "TelegramVariant",
    "decode_reply",
    "decode_scan",
    "encode_command",
    "parse_hex",
    "read_frame",
]

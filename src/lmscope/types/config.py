"""Session configuration.

The session mode is fixed at construction by the config type:

- `LiveConfig`: talk to a sensor over TCP, optionally recording every exchange to
  a capture file.
- `EmulatedConfig`: no sensor, replies are served from a capture file.

Both round-trip through dicts/JSON, the `mode` field selects the subclass:

```python
cfg = SessionConfig.from_dict({"mode": "live", "host": "192.168.0.1"})
assert isinstance(cfg, LiveConfig)
```
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from typing import Optional

from mashumaro import DataClassDictMixin
from mashumaro.config import BaseConfig
from mashumaro.types import Discriminator

from lmscope.util.defaults import DEFAULT_HOST_ADDR, DEFAULT_PORT, DEFAULT_TIMEOUT


@dataclass(kw_only=True)
class SessionConfig(DataClassDictMixin):
    """Base session configuration, subclassed per mode."""

    class Config(BaseConfig):
        discriminator = Discriminator(
            field="mode",
            include_subtypes=True,
        )

    mode: str


@dataclass(kw_only=True)
class LiveConfig(SessionConfig):
    mode: str = "live"
    host: str = DEFAULT_HOST_ADDR
    port: int = DEFAULT_PORT  # factory defaults 2111 or 2112
    receive_timeout: float = DEFAULT_TIMEOUT  # seconds
    send_timeout: float = DEFAULT_TIMEOUT  # seconds
    record_path: Optional[str] = None  # capture file to record into

    def __post_init__(self):
        if not 0 < self.port < 65536:
            raise ValueError(f"Invalid port {self.port}")
        if self.receive_timeout <= 0 or self.send_timeout <= 0:
            raise ValueError(
                f"Timeouts must be positive (receive={self.receive_timeout}, "
                + f"send={self.send_timeout})"
            )


@dataclass(kw_only=True)
class EmulatedConfig(SessionConfig):
    mode: str = "emulated"
    capture_path: str

    def __post_init__(self):
        if not self.capture_path:
            raise ValueError("Emulated session requires a capture_path")


def load_session_config(path: str) -> SessionConfig:
    """Read a session config from a JSON file."""
    with open(os.path.abspath(path), "r") as f:
        return SessionConfig.from_dict(json.load(f))


def save_session_config(config: SessionConfig, path: str) -> None:
    with open(os.path.abspath(path), "w") as f:
        json.dump(config.to_dict(), f, indent=4)


__all__ = [
    "SessionConfig",
    "LiveConfig",
    "EmulatedConfig",
    "load_session_config",
    "save_session_config",
]

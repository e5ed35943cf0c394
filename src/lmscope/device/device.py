"""Device base class.

All sensor sessions inherit from `Device`, which provides:

1. Configuration validation against `required_config`
2. The open/close/is_connected interface
3. Attribute access for metadata (`get_all_attrs`)
"""

from __future__ import annotations

from typing import Type

from loguru import logger


class Device:
    """Base class for all sensor devices.

    Required Methods
    ----------------
    All device implementations must override these methods:

    - open(): Connect to the hardware
    - close(): Disconnect from the hardware and release resources
    - is_connected(): Check connection status

    Attributes
    ----------
    required_config : dict[str, Type]
        Required configuration parameters and their types

    Examples
    --------
    ```python
    class MySensor(Device):
        required_config = {"host": str}

        def open(self) -> tuple[bool, str]:
            self.connected = True
            return True, "Connected successfully"

        def close(self):
            self.connected = False

        def is_connected(self) -> bool:
            return self.connected
    ```
    """

    required_config: dict[str, Type] = {}  # Required configuration keys

    def __init__(self, **config_kwargs):
        for key, value in config_kwargs.items():
            setattr(self, key, value)
        for key, value in self.required_config.items():
            if not hasattr(self, key):
                logger.error(
                    f"Device {self.__class__.__name__} missing required config key: "
                    + f"{key}"
                )
                raise ValueError(
                    f"Device {self.__class__.__name__} missing required config "
                    + f"key: {key}"
                )
            if not isinstance(getattr(self, key), value):
                logger.error(
                    f"Device {self.__class__.__name__} config key {key} "
                    + f"has wrong type: {type(getattr(self, key))} (expected {value})"
                )
                raise ValueError(
                    f"Device {self.__class__.__name__} config key {key} has "
                    + f"wrong type: {type(getattr(self, key))} (expected {value})"
                )

    def open(self) -> tuple[bool, str]:
        raise NotImplementedError()

    def close(self):
        raise NotImplementedError()

    def is_connected(self) -> bool:
        raise NotImplementedError()

    def get_all_attrs(self):
        """
        Function to return all of the managed attributes of the class
        Managed attributes are the ones that start with a underscore
        """
        attrs = {}
        for key, value in self.__dict__.items():
            # single underscore attr are managed
            if key[0] == "_" and not key.startswith(f"_{self.__class__.__name__}"):
                if isinstance(value, (str, int, float, bool)) or value is None:
                    attrs[key[1:]] = value
                else:
                    attrs[key[1:]] = str(value)
        return attrs

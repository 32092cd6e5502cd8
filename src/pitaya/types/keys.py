"""Parameter keys.

On the wire a parameter key is either a plain pin id (``"digital_led_0"``) or a
compound config id (``"analog_in_0#active"``). Here they are two small frozen
types so a config key can never be mistaken for, or collide with, a pin key.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from .constants import ConfigName

CONFIG_SEPARATOR = "#"


@dataclass(frozen=True)
class PinKey:
    pin: str

    def __post_init__(self):
        if not self.pin or CONFIG_SEPARATOR in self.pin:
            raise ValueError(f"Invalid pin id: {self.pin!r}")

    def __str__(self) -> str:
        return self.pin


@dataclass(frozen=True)
class ConfigKey:
    pin: str
    name: ConfigName

    def __post_init__(self):
        if not self.pin or CONFIG_SEPARATOR in self.pin:
            raise ValueError(f"Invalid pin id: {self.pin!r}")
        # accept plain strings for known names
        object.__setattr__(self, "name", ConfigName(self.name))

    def __str__(self) -> str:
        return f"{self.pin}{CONFIG_SEPARATOR}{self.name.value}"


ParamKey = Union[PinKey, ConfigKey]


def parse_param_key(wire_key: str) -> ParamKey:
    """Recover the key type from its wire text.

    Raises
    ------
    ValueError
        If the text holds more than one separator, an empty pin, or an unknown
        config name.
    """
    pin, sep, name = wire_key.partition(CONFIG_SEPARATOR)
    if not sep:
        return PinKey(pin)
    return ConfigKey(pin, ConfigName(name))

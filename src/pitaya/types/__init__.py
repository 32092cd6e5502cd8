"""
Data model, configuration, stream protocols and exceptions.

The pitaya.types package sits below comms and device: they import from it and
it imports nothing from them. Its only in-package dependency is the table of
connection defaults in `pitaya.util.defaults`.

1. Wire data (messages.py)
    - `Frame`, `SignalPayload`, `ParameterPayload`, serialised with mashumaro.

2. Keys (keys.py)
    - `PinKey` / `ConfigKey`, the two kinds of parameter key.

3. Constants (constants.py)
    - Namespaces, access modes, triggers, sample rates and the pin catalog.

4. Configuration (config.py)
    - `ConnectionConfig`, passed explicitly to the device facade.

5. Stream protocols (protocols.py)
    - What a duplex connection must look like to the router.

Error taxonomy
--------------
- `AccessModeError` (a TypeError): read from a write-only endpoint or the
  reverse. Raised locally, nothing is sent.
- `PinStateError` (a RuntimeError): the endpoint is not in a state that allows
  transfer (`LineInactiveError`, `TriggerDisabledError`).
- `ConfigRangeError` (a ValueError): out-of-range bitness or buffer size.
- `CommsError`: anything involving the connection itself
  (`NoDataError`, `ConnectionClosedError`, `FrameDecodeError`).

Examples
--------
Handling a closed connection:
```python
from pitaya.types import ConnectionClosedError
try:
    await redpitaya.pin.digital.led0.write(True)
except ConnectionClosedError as err:
    print(f"closed: {err.cause}")
```

See Also
--------
pitaya.comms.router : Multiplexer using these types
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from .config import ConnectionConfig
from .constants import (
    ADC_PINS,
    ALL_PINS,
    ANALOG_IN_PINS,
    ANALOG_OUT_PINS,
    ANALOG_PINS,
    CHANNEL_PINS,
    DAC_PINS,
    DIGITAL_PINS,
    DIO_PINS,
    LED_PINS,
    MAX_ANALOG_BITNESS,
    MAX_CHANNEL_BITNESS,
    ConfigName,
    Frequency,
    IOMode,
    IOType,
    Namespace,
    Trigger,
)
from .keys import ConfigKey, ParamKey, PinKey, parse_param_key
from .messages import (
    Frame,
    ParameterPayload,
    Payload,
    SignalPayload,
    payload_from_dict,
)
from .protocols import Chunk, DuplexProtocol, WritableProtocol

EVENT_TYPES = ("connect", "disconnect", "error")


@dataclass(frozen=True)
class Event:
    """Delivered to connection listeners.

    `detail` is the causing exception (transport failures), the close cause
    string (`close`) or a descriptive message (no-data errors).
    """

    type: str
    detail: Any = None


# Exceptions
class CommsError(Exception):
    """Base exception for communication errors."""

    pass


class NoDataError(CommsError):
    """The inbound stream ended before a matching frame arrived."""

    pass


class FrameDecodeError(CommsError):
    """A chunk could not be decompressed, decoded or parsed into a frame."""

    pass


class StreamEndedError(CommsError):
    """Detail of the disconnect event when the inbound stream ends cleanly."""

    pass


class ConnectionClosedError(CommsError):
    """Operation attempted after `close`. Carries the recorded close cause."""

    def __init__(self, message: str, cause: Optional[str] = None):
        self.cause = cause
        if cause:
            message = f"{message} (cause: {cause})"
        super().__init__(message)


class AccessModeError(TypeError):
    """Read from a write-only endpoint, or write to a read-only one."""

    pass


class PinStateError(RuntimeError):
    """The endpoint is not in a state that allows transfer."""

    pass


class LineInactiveError(PinStateError):
    pass


class TriggerDisabledError(PinStateError):
    pass


class ConfigRangeError(ValueError):
    """Endpoint configuration value outside its allowed range."""

    pass


__all__ = [
    "ADC_PINS",
    "ALL_PINS",
    "ANALOG_IN_PINS",
    "ANALOG_OUT_PINS",
    "ANALOG_PINS",
    "CHANNEL_PINS",
    "DAC_PINS",
    "DIGITAL_PINS",
    "DIO_PINS",
    "LED_PINS",
    "MAX_ANALOG_BITNESS",
    "MAX_CHANNEL_BITNESS",
    "EVENT_TYPES",
    "ConfigName",
    "Frequency",
    "IOMode",
    "IOType",
    "Namespace",
    "Trigger",
    "ConfigKey",
    "ParamKey",
    "PinKey",
    "parse_param_key",
    "Frame",
    "ParameterPayload",
    "Payload",
    "SignalPayload",
    "payload_from_dict",
    "ConnectionConfig",
    "Chunk",
    "DuplexProtocol",
    "WritableProtocol",
    "Event",
    "CommsError",
    "NoDataError",
    "FrameDecodeError",
    "StreamEndedError",
    "ConnectionClosedError",
    "AccessModeError",
    "PinStateError",
    "LineInactiveError",
    "TriggerDisabledError",
    "ConfigRangeError",
]

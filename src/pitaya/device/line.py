"""Digital and slow analog I/O lines.

A `Line` wraps one router subscription. Digital lines live in the `parameters`
namespace and carry booleans; analog lines live in `signals` and carry one
sample per payload. Analog lines are additionally gated by their `active`
flag, negotiated through the `<pin>#active` parameter.
"""

from __future__ import annotations

import contextlib
import numbers
from typing import AsyncIterator, Awaitable, Callable, Optional, Union

import numpy as np
from loguru import logger

from pitaya.comms import Subscription
from pitaya.types import (
    MAX_ANALOG_BITNESS,
    AccessModeError,
    CommsError,
    ConfigName,
    ConfigRangeError,
    IOMode,
    IOType,
    LineInactiveError,
    Namespace,
    ParameterPayload,
    Payload,
    SignalPayload,
)

LineValue = Union[bool, float]

_NAMESPACE_FOR_TYPE = {
    IOType.DIGITAL: Namespace.PARAMETERS,
    IOType.ANALOG: Namespace.SIGNALS,
}


class Line:
    """Interface for one digital or slow analog pin.

    Parameters
    ----------
    subscription : Subscription
        Router subscription keyed by the pin id.
    mode : IOMode
        Access mode, fixed for the life of the line.
    type : IOType
        Digital or analog.
    bitness : int, optional
        Initial resolution, by default 1 for digital and 12 for analog. Only
        validated here; nothing is sent until `set_bitness`.

    Examples
    --------
    ```python
    led = Line(router.subscribe("parameters", "digital_led_0"),
               mode=IOMode.RW, type=IOType.DIGITAL)
    await led.write(True)

    ain = Line(router.subscribe("signals", "analog_in_0"),
               mode=IOMode.RO, type=IOType.ANALOG)
    await ain.set_active(True)
    async for volts in ain.read_iter():
        print(volts)
    ```
    """

    def __init__(
        self,
        subscription: Subscription,
        *,
        mode: IOMode,
        type: IOType,
        bitness: Optional[int] = None,
    ):
        self._sub = subscription
        self._mode = IOMode(mode)
        self._type = IOType(type)
        expected = _NAMESPACE_FOR_TYPE[self._type]
        if subscription.namespace is not expected:
            raise ValueError(
                f"{self._type.value} line {subscription.key} must use the "
                f"{expected.value} namespace, got {subscription.namespace.value}"
            )
        if bitness is None:
            bitness = 1 if self._type is IOType.DIGITAL else MAX_ANALOG_BITNESS
        self._check_bitness(bitness)
        self._bitness = bitness
        # digital lines are never gated
        self._active = self._type is IOType.DIGITAL

    def __repr__(self):
        return (
            f"Line(pin={self.pin}, type={self._type.value}, mode={self._mode.value}, "
            f"bitness={self._bitness}, active={self._active})"
        )

    # ------------------------------------------------------------------
    # properties
    # ------------------------------------------------------------------

    @property
    def pin(self) -> str:
        return self._sub.key

    @property
    def mode(self) -> IOMode:
        return self._mode

    @property
    def type(self) -> IOType:
        return self._type

    @property
    def bitness(self) -> int:
        """Last resolution pushed to the instrument (cached)."""
        return self._bitness

    @property
    def active(self) -> bool:
        """Whether the line may transfer. Always True for digital lines."""
        return self._active

    # ------------------------------------------------------------------
    # checks
    # ------------------------------------------------------------------

    def _check_readable(self) -> None:
        if not self._mode.readable:
            raise AccessModeError(f"can't read write only pin {self.pin}")

    def _check_writable(self) -> None:
        if not self._mode.writable:
            raise AccessModeError(f"can't write read only pin {self.pin}")

    def _check_active(self) -> None:
        if not self._active:
            raise LineInactiveError(
                f"analog pin {self.pin} is inactive, call set_active(True) first"
            )

    def _check_bitness(self, bitness: int) -> None:
        if isinstance(bitness, bool) or not isinstance(bitness, numbers.Integral):
            raise TypeError(f"bitness must be an integer, got {bitness!r}")
        if self._type is IOType.ANALOG and not 1 <= bitness <= MAX_ANALOG_BITNESS:
            raise ConfigRangeError(
                f"{bitness} is invalid bitness for Analog IO, allowed range is "
                f"(0 < bitness < {MAX_ANALOG_BITNESS + 1})"
            )
        if self._type is IOType.DIGITAL and bitness != 1:
            raise ConfigRangeError(
                f"{bitness} is invalid bitness for Digital IO, bitness must be 1"
            )

    # ------------------------------------------------------------------
    # payload conversion
    # ------------------------------------------------------------------

    def _encode(self, value: LineValue) -> Payload:
        if self._type is IOType.DIGITAL:
            if not isinstance(value, (bool, np.bool_)):
                raise TypeError(
                    f"digital pin {self.pin} takes a bool, got {type(value).__name__}"
                )
            return ParameterPayload(value=bool(value))
        if isinstance(value, (bool, np.bool_)) or not isinstance(value, numbers.Real):
            raise TypeError(
                f"analog pin {self.pin} takes a number, got {type(value).__name__}"
            )
        return SignalPayload(size=1, value=[float(value)])

    def _decode(self, payload: Payload) -> LineValue:
        if isinstance(payload, SignalPayload):
            if not payload.value:
                raise CommsError(f"empty signal received for {self.pin}")
            return payload.value[0]
        return payload.value != 0

    async def _send(self, value: LineValue) -> None:
        await self._sub.write(self._encode(value))

    # ------------------------------------------------------------------
    # transfer
    # ------------------------------------------------------------------

    async def write(self, value: LineValue) -> None:
        """Write a value to the pin.

        Parameters
        ----------
        value : bool | float
            bool for digital pins, number for analog pins.

        Raises
        ------
        AccessModeError
            If the pin is read-only.
        LineInactiveError
            If the pin is analog and inactive.
        """
        self._check_writable()
        self._check_active()
        await self._send(value)

    async def read(self) -> LineValue:
        """Read the next value of the pin.

        Returns
        -------
        bool | float
            bool for digital pins, the first sample for analog pins.

        Raises
        ------
        AccessModeError
            If the pin is write-only.
        LineInactiveError
            If the pin is analog and inactive.
        """
        self._check_readable()
        self._check_active()
        return self._decode(await self._sub.read())

    def read_iter(self) -> AsyncIterator[LineValue]:
        """Continuously read the pin.

        Mode and activity are checked once, here. Deactivating the pin later
        does not stop an iteration already running.

        Examples
        --------
        ```python
        async for state in dio6p.read_iter():
            print(state)
        ```
        """
        self._check_readable()
        self._check_active()
        return self._read_iter()

    async def _read_iter(self) -> AsyncIterator[LineValue]:
        async with contextlib.aclosing(self._sub.read_iter()) as payloads:
            async for payload in payloads:
                yield self._decode(payload)

    def write_iter(self) -> AsyncIterator[Callable[[LineValue], Awaitable[None]]]:
        """Continuously write the pin.

        Yields a writer taking one value per call. Checked once, like
        `read_iter`.

        Examples
        --------
        ```python
        async for write in dio6p.write_iter():
            await write(random.random() > 0.5)
        ```
        """
        self._check_writable()
        self._check_active()
        return self._write_iter()

    async def _write_iter(self) -> AsyncIterator[Callable[[LineValue], Awaitable[None]]]:
        async with contextlib.aclosing(self._sub.write_iter()) as writers:
            async for _ in writers:
                yield self._send

    # ------------------------------------------------------------------
    # configuration
    # ------------------------------------------------------------------

    async def set_bitness(self, bitness: int) -> None:
        """Set the resolution of the pin.

        Analog pins take 1 to 12 bits, digital pins exactly 1. The new value is
        sent first and only kept locally once the send succeeded.

        Raises
        ------
        ConfigRangeError
            If `bitness` is out of range. Nothing is sent.
        """
        self._check_bitness(bitness)
        await self._sub.set_config(ConfigName.BITNESS, ParameterPayload(value=int(bitness)))
        self._bitness = int(bitness)
        logger.debug("Pin {} bitness set to {}.", self.pin, self._bitness)

    async def set_active(self, active: bool) -> None:
        """Enable or disable transfer on an analog pin.

        Raises
        ------
        ConfigRangeError
            If the pin is digital. Nothing is sent.
        """
        if self._type is IOType.DIGITAL:
            raise ConfigRangeError(
                f"digital pin {self.pin} has no active state, only analog pins can be (de)activated"
            )
        await self._sub.set_config(ConfigName.ACTIVE, ParameterPayload(value=bool(active)))
        self._active = bool(active)
        logger.debug("Pin {} active set to {}.", self.pin, self._active)

"""Fast analog (ADC/DAC) sample channels."""

from __future__ import annotations

import contextlib
import numbers
from typing import AsyncIterator, Awaitable, Callable, Sequence

import numpy as np
from loguru import logger

from pitaya.comms import Subscription
from pitaya.types import (
    MAX_CHANNEL_BITNESS,
    AccessModeError,
    ConfigName,
    ConfigRangeError,
    Frequency,
    IOMode,
    Namespace,
    ParameterPayload,
    SignalPayload,
    Trigger,
    TriggerDisabledError,
)

SliceWriter = Callable[[Sequence[float] | np.ndarray], Awaitable[None]]


class Channel:
    """Interface for one fast analog input (ADC) or output (DAC).

    Samples move as buffered slices. The slice size is negotiated with the
    instrument through the `<pin>#buffer_size` parameter, and only re-sent
    when it changes. A channel transfers nothing while its trigger is
    `Trigger.DISABLED`, which is the state it starts in.

    Parameters
    ----------
    subscription : Subscription
        Router subscription in the `signals` namespace, keyed by the pin id.
    mode : IOMode
        `IOMode.RO` for an ADC, `IOMode.WO` for a DAC.
    frequency : Frequency, optional
        Sample rate, by default `Frequency.SMP_125M`.
    bitness : int, optional
        Resolution, 1 to 16, by default 16.

    Examples
    --------
    ```python
    adc1 = Channel(router.subscribe("signals", "adc_1"), mode=IOMode.RO)
    await adc1.set_trigger(Trigger.NOW)
    voltage = await adc1.read_slice(125)  # 1 us at 125 MHz
    await adc1.set_trigger(Trigger.DISABLED)
    await adc1.read_slice(125)  # TriggerDisabledError
    ```
    """

    def __init__(
        self,
        subscription: Subscription,
        *,
        mode: IOMode,
        frequency: Frequency = Frequency.SMP_125M,
        bitness: int = MAX_CHANNEL_BITNESS,
    ):
        if subscription.namespace is not Namespace.SIGNALS:
            raise ValueError(
                f"channel {subscription.key} must use the signals namespace, "
                f"got {subscription.namespace.value}"
            )
        self._sub = subscription
        self._mode = IOMode(mode)
        self._frequency = Frequency(frequency)
        self._check_bitness(bitness)
        self._bitness = bitness
        self._trigger = Trigger.DISABLED
        self._buffer_size = 1

    def __repr__(self):
        return (
            f"Channel(pin={self.pin}, mode={self._mode.value}, bitness={self._bitness}, "
            f"frequency={self._frequency.name}, trigger={self._trigger.name}, "
            f"buffer_size={self._buffer_size})"
        )

    @property
    def pin(self) -> str:
        return self._sub.key

    @property
    def mode(self) -> IOMode:
        return self._mode

    @property
    def bitness(self) -> int:
        return self._bitness

    @property
    def frequency(self) -> Frequency:
        return self._frequency

    @property
    def trigger(self) -> Trigger:
        return self._trigger

    @property
    def buffer_size(self) -> int:
        """Slice size last negotiated with the instrument."""
        return self._buffer_size

    # ------------------------------------------------------------------
    # checks
    # ------------------------------------------------------------------

    def _check_readable(self) -> None:
        if not self._mode.readable:
            raise AccessModeError(f"can't read write only channel {self.pin}")

    def _check_writable(self) -> None:
        if not self._mode.writable:
            raise AccessModeError(f"can't write read only channel {self.pin}")

    def _check_triggered(self) -> None:
        if self._trigger is Trigger.DISABLED:
            raise TriggerDisabledError(
                f'channel {self.pin} trigger is set to "DISABLED", no data can be processed'
            )

    @staticmethod
    def _check_size(size: int) -> None:
        if isinstance(size, bool) or not isinstance(size, numbers.Integral):
            raise TypeError(f"buffer size must be an integer, got {size!r}")
        if size < 1:
            raise ConfigRangeError(f"{size} is invalid buffer size, must be >= 1")

    @staticmethod
    def _check_bitness(bitness: int) -> None:
        if isinstance(bitness, bool) or not isinstance(bitness, numbers.Integral):
            raise TypeError(f"bitness must be an integer, got {bitness!r}")
        if not 1 <= bitness <= MAX_CHANNEL_BITNESS:
            raise ConfigRangeError(
                f"{bitness} is invalid bitness for channel, allowed range is "
                f"(0 < bitness < {MAX_CHANNEL_BITNESS + 1})"
            )

    async def _negotiate(self, size: int) -> None:
        if size == self._buffer_size:
            return
        await self._sub.set_config(ConfigName.BUFFER_SIZE, ParameterPayload(value=int(size)))
        self._buffer_size = int(size)
        logger.debug("Channel {} buffer size set to {}.", self.pin, size)

    # ------------------------------------------------------------------
    # transfer
    # ------------------------------------------------------------------

    async def read_slice(self, size: int) -> np.ndarray:
        """Read one buffered slice from the ADC.

        Parameters
        ----------
        size : int
            Number of samples. Negotiated with the instrument if it differs
            from the previous slice size.

        Returns
        -------
        np.ndarray
            The first `size` samples of the next slice received.

        Raises
        ------
        AccessModeError
            If the channel is write-only.
        TriggerDisabledError
            If the trigger is disabled. Nothing is sent.
        ConfigRangeError
            If `size` < 1.
        """
        self._check_readable()
        self._check_triggered()
        self._check_size(size)
        await self._negotiate(size)
        payload = await self._sub.read()
        return np.asarray(payload.value[:size])

    async def write_slice(self, buffer: Sequence[float] | np.ndarray) -> None:
        """Write one slice of samples to the DAC.

        The slice size is negotiated on `len(buffer)`, then the whole buffer
        is sent as one payload.

        Raises
        ------
        AccessModeError
            If the channel is read-only.
        TriggerDisabledError
            If the trigger is disabled. Nothing is sent.
        ConfigRangeError
            If the buffer is empty.
        """
        self._check_writable()
        self._check_triggered()
        payload = SignalPayload.from_samples(buffer)
        self._check_size(payload.size)
        await self._negotiate(payload.size)
        await self._sub.write(payload)

    def read_iter(self, size: int) -> AsyncIterator[np.ndarray]:
        """Continuously read slices of `size` samples.

        Mode, trigger and size are checked once, here; the size is negotiated
        on the first iteration. Disabling the trigger later does not stop an
        iteration already running.

        Examples
        --------
        ```python
        async for voltage in adc1.read_iter(125):
            print(voltage.mean())
        ```
        """
        self._check_readable()
        self._check_triggered()
        self._check_size(size)
        return self._read_iter(size)

    async def _read_iter(self, size: int) -> AsyncIterator[np.ndarray]:
        await self._negotiate(size)
        async with contextlib.aclosing(self._sub.read_iter()) as payloads:
            async for payload in payloads:
                yield np.asarray(payload.value[:size])

    def write_iter(self, size: int) -> AsyncIterator[SliceWriter]:
        """Continuously write slices of `size` samples.

        Yields a writer taking one buffer of exactly `size` samples per call.

        Examples
        --------
        ```python
        async for write in dac1.write_iter(125):
            await write(np.random.randint(0, 2**16, 125))
        ```
        """
        self._check_writable()
        self._check_triggered()
        self._check_size(size)
        return self._write_iter(size)

    async def _write_iter(self, size: int) -> AsyncIterator[SliceWriter]:
        await self._negotiate(size)

        async def write(buffer: Sequence[float] | np.ndarray) -> None:
            payload = SignalPayload.from_samples(buffer)
            if payload.size != size:
                raise ConfigRangeError(
                    f"channel {self.pin} negotiated {size} samples per slice, got {payload.size}"
                )
            await self._sub.write(payload)

        async with contextlib.aclosing(self._sub.write_iter()) as writers:
            async for _ in writers:
                yield write

    # ------------------------------------------------------------------
    # configuration
    # ------------------------------------------------------------------

    async def set_bitness(self, bitness: int) -> None:
        """Set the resolution, 1 to 16 bits.

        Raises
        ------
        ConfigRangeError
            If out of range. Nothing is sent.
        """
        self._check_bitness(bitness)
        await self._sub.set_config(ConfigName.BITNESS, ParameterPayload(value=int(bitness)))
        self._bitness = int(bitness)

    async def set_frequency(self, frequency: Frequency) -> None:
        """Set the sample rate (conversions per second)."""
        frequency = Frequency(frequency)
        await self._sub.set_config(ConfigName.FREQUENCY, ParameterPayload(value=int(frequency)))
        self._frequency = frequency

    async def set_trigger(self, trigger: Trigger) -> None:
        """Set the event that launches acquisition/generation.

        `Trigger.DISABLED` stops the channel: slice transfers then fail.
        """
        trigger = Trigger(trigger)
        await self._sub.set_config(ConfigName.TRIGGER, ParameterPayload(value=int(trigger)))
        self._trigger = trigger
        logger.debug("Channel {} trigger set to {}.", self.pin, trigger.name)

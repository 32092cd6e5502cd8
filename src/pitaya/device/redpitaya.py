"""Device facade: the instrument's fixed catalog of lines and channels."""

from __future__ import annotations

import types
from typing import Optional

from loguru import logger

from pitaya.comms import ChannelRouter, FrameCodec, Subscription
from pitaya.types import (
    ADC_PINS,
    ANALOG_IN_PINS,
    ANALOG_OUT_PINS,
    DAC_PINS,
    DIGITAL_PINS,
    ConnectionConfig,
    DuplexProtocol,
    Frequency,
    IOMode,
    IOType,
    Namespace,
)

from .channel import Channel
from .line import Line


class Redpitaya:
    """Proxy for the instrument's low level API.

    Every pin and channel is an independent endpoint over one shared
    `ChannelRouter`, with its own fixed pin id as subscription key.

    - `pin.digital`: `led0`..`led7`, `io0p`..`io7p`, `io0n`..`io7n`
      (read-write, bool)
    - `pin.analog`: `out0`..`out3` (write-only), `in0`..`in3` (read-only)
    - `channel`: `adc1`, `adc2` (read-only), `dac1`, `dac2` (write-only)

    Parameters
    ----------
    duplex : DuplexProtocol
        Connected duplex, see `pitaya.connect` for the websocket one.
    config : ConnectionConfig, optional
        Connection settings, by default `ConnectionConfig()`.
    codec : FrameCodec, optional
        Overrides the codec built from `config`.

    Examples
    --------
    ```python
    async with Redpitaya(duplex) as redpitaya:
        redpitaya.add_event_listener("disconnect", lambda e: print(e.detail))
        await redpitaya.channel.dac1.set_trigger(Trigger.NOW)
        await redpitaya.channel.dac1.write_slice([0, 0, 0, 256, 256, 256, 0, 0, 0])
        await redpitaya.pin.digital.led1.write(True)
    ```
    """

    def __init__(
        self,
        duplex: DuplexProtocol,
        config: Optional[ConnectionConfig] = None,
        codec: Optional[FrameCodec] = None,
    ):
        self.config = config if config is not None else ConnectionConfig()
        if codec is None:
            codec = FrameCodec(compress_outbound=self.config.compress_outbound)
        self._router = ChannelRouter(duplex, codec=codec, queue_size=self.config.queue_size)
        self._claimed: set[tuple[Namespace, str]] = set()

        digital = {
            name: Line(
                self._claim(Namespace.PARAMETERS, pin),
                mode=IOMode.RW,
                type=IOType.DIGITAL,
            )
            for name, pin in DIGITAL_PINS.items()
        }
        analog = {
            name: Line(
                self._claim(Namespace.SIGNALS, pin),
                mode=IOMode.WO,
                type=IOType.ANALOG,
            )
            for name, pin in ANALOG_OUT_PINS.items()
        } | {
            name: Line(
                self._claim(Namespace.SIGNALS, pin),
                mode=IOMode.RO,
                type=IOType.ANALOG,
            )
            for name, pin in ANALOG_IN_PINS.items()
        }
        channels = {
            name: Channel(
                self._claim(Namespace.SIGNALS, pin),
                mode=IOMode.RO,
                frequency=Frequency.SMP_125M,
            )
            for name, pin in ADC_PINS.items()
        } | {
            name: Channel(
                self._claim(Namespace.SIGNALS, pin),
                mode=IOMode.WO,
                frequency=Frequency.SMP_125M,
            )
            for name, pin in DAC_PINS.items()
        }

        self.pin = types.SimpleNamespace(
            digital=types.SimpleNamespace(**digital),
            analog=types.SimpleNamespace(**analog),
        )
        self.channel = types.SimpleNamespace(**channels)
        logger.debug(
            "Redpitaya catalog built: {} lines, {} channels.",
            len(digital) + len(analog),
            len(channels),
        )

    def _claim(self, namespace: Namespace, pin: str) -> Subscription:
        if (namespace, pin) in self._claimed:
            raise ValueError(f"{{ {namespace.value}: {pin} }} is already claimed")
        self._claimed.add((namespace, pin))
        return self._router.subscribe(namespace, pin)

    @property
    def router(self) -> ChannelRouter:
        return self._router

    @property
    def closed(self) -> bool:
        """True once `close` has been called."""
        return self._router.closed

    @property
    def close_cause(self) -> Optional[str]:
        return self._router.close_cause

    def add_event_listener(self, type: str, listener) -> None:
        """Listen for `connect`, `disconnect` or `error`.

        Examples
        --------
        ```python
        redpitaya.add_event_listener("connect", lambda e: print("connected"))
        redpitaya.add_event_listener("disconnect", lambda e: print("check your connection"))
        redpitaya.add_event_listener("error", lambda e: print("operation failed:", e.detail))
        ```
        """
        self._router.add_event_listener(type, listener)

    def remove_event_listener(self, type: str, listener) -> None:
        self._router.remove_event_listener(type, listener)

    async def start(self) -> None:
        """Start receiving frames and fire `connect`."""
        await self._router.start()

    async def close(self, cause: Optional[str] = None) -> None:
        """Close the connection and fire `disconnect` with `cause`.

        Pending transfers are aborted, continuous iterations end, and every
        later operation raises `ConnectionClosedError`. Only the first call
        has an effect.
        """
        await self._router.close(cause)

    async def __aenter__(self) -> Redpitaya:
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

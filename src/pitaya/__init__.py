# -*- coding: utf-8 -*-
"""
pitaya: typed streaming access to a Red Pitaya instrument.

The instrument's digital/analog I/O lines and fast ADC/DAC channels are
exposed as independent endpoints, all multiplexed over one websocket carrying
compressed JSON frames.

Submodules
----------
- `pitaya.types`: frames, keys, enums, configuration and exceptions
- `pitaya.comms`: frame codec, channel router and websocket transport
- `pitaya.device`: typed lines and channels, the `Redpitaya` facade, mocks
- `pitaya.util`: logging and defaults

Examples
--------
```python
import asyncio
import pitaya
from pitaya.types import ConnectionConfig, Trigger

async def main():
    async with await pitaya.connect(ConnectionConfig(uuid="my_app")) as rp:
        await rp.pin.digital.led0.write(True)
        await rp.channel.adc1.set_trigger(Trigger.NOW)
        print(await rp.channel.adc1.read_slice(125))

asyncio.run(main())
```
"""

from ._version import __version__
from .device import Channel, Line, Redpitaya
from .project import connect
from .types import ConnectionConfig

__all__ = [
    "__version__",
    "Channel",
    "ConnectionConfig",
    "Line",
    "Redpitaya",
    "connect",
]

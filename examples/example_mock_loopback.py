import asyncio
import contextlib

import numpy as np

import pitaya.util
from pitaya.device import Redpitaya
from pitaya.device.mock import LoopbackDuplex
from pitaya.types import Trigger

# Number of ADC slices to read
NUM_SLICES = 5
SLICE_SIZE = 125  # 1 us at 125 MHz

pitaya.util.start_client_log(log_to_stdout=True, log_level="INFO")

# stand-in instrument: echoes its state, every write is merged into it
duplex = LoopbackDuplex(
    {
        "signals": {
            "analog_in_0": {"size": 1, "value": [0.42]},
            "adc_1": {"size": SLICE_SIZE, "value": np.sin(np.linspace(0, 2 * np.pi, SLICE_SIZE)).tolist()},
        },
        "parameters": {"digital_io_6p": {"value": False}},
    },
    interval=0.01,
)


async def main():
    async with Redpitaya(duplex) as rp:
        rp.add_event_listener("disconnect", lambda e: print("disconnected:", e.detail))
        rp.add_event_listener("error", lambda e: print("error:", e.detail))

        await rp.pin.digital.led0.write(True)
        await rp.pin.digital.io6p.write(True)
        print("io6p:", await rp.pin.digital.io6p.read())

        await rp.pin.analog.in0.set_active(True)
        print("in0:", await rp.pin.analog.in0.read())

        await rp.channel.adc1.set_trigger(Trigger.NOW)
        n = 0
        async with contextlib.aclosing(rp.channel.adc1.read_iter(SLICE_SIZE)) as slices:
            async for voltage in slices:
                print(f"adc1 slice {n}: min {voltage.min():.3f}, max {voltage.max():.3f}")
                n += 1
                if n == NUM_SLICES:
                    break

        await rp.channel.dac1.set_trigger(Trigger.NOW)
        await rp.channel.dac1.write_slice([0, 0, 0, 256, 256, 256, 0, 0, 0])
        print("sent:", duplex.sent_frames[-1])


asyncio.run(main())

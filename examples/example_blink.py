import asyncio
import sys

import pitaya
import pitaya.util
from pitaya.types import ConnectionConfig

# usage: python example_blink.py <host> [application id]
HOST = sys.argv[1] if len(sys.argv) > 1 else "rp-f0a235.local"
APP = sys.argv[2] if len(sys.argv) > 2 else ""

pitaya.util.start_client_log(log_to_stdout=True, log_level="INFO")


async def main():
    config = ConnectionConfig(host=HOST, uuid=APP)
    rp = await pitaya.connect(config, start_app=bool(APP))
    try:
        leds = [getattr(rp.pin.digital, f"led{i}") for i in range(8)]
        for step in range(32):
            for i, led in enumerate(leds):
                await led.write(i == step % 8)
            await asyncio.sleep(0.05)
    finally:
        await rp.close("blink finished")


asyncio.run(main())

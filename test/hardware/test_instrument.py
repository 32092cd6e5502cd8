# test against a real instrument, with the application already installed on it.

import asyncio

import pytest
import pytest_asyncio
from loguru import logger

import pitaya
import pitaya.util
from pitaya.types import Trigger
from pitaya.util import TEST_LOGLEVEL


@pytest.mark.hardware
class TestInstrument:
    @pytest_asyncio.fixture(autouse=True)
    def client_log(self):
        pitaya.util.start_client_log(log_to_file=True, log_level=TEST_LOGLEVEL)
        yield
        pitaya.util.shutdown_client_log()

    @pytest_asyncio.fixture
    async def redpitaya(self, instrument_config):
        rp = await pitaya.connect(instrument_config, start_app=bool(instrument_config.uuid))
        yield rp
        await rp.close("test finished")

    @pytest.mark.asyncio
    async def test_blink_led(self, redpitaya):
        for state in (True, False, True, False):
            await redpitaya.pin.digital.led0.write(state)
            await asyncio.sleep(0.1)

    @pytest.mark.asyncio
    async def test_read_adc_slice(self, redpitaya):
        adc = redpitaya.channel.adc1
        await adc.set_trigger(Trigger.NOW)
        voltage = await asyncio.wait_for(adc.read_slice(125), 5)
        logger.info("adc1: mean {}, {} samples", voltage.mean(), voltage.size)
        assert 0 < voltage.size <= 125

    @pytest.mark.slow
    @pytest.mark.asyncio
    async def test_stream_analog_in(self, redpitaya):
        ain = redpitaya.pin.analog.in0
        await ain.set_active(True)
        values = []
        async for value in ain.read_iter():
            values.append(value)
            if len(values) == 100:
                break
        assert len(values) == 100

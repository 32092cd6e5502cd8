import contextlib

import numpy as np
import pytest
import pytest_asyncio

from pitaya.comms import ChannelRouter
from pitaya.device import Channel
from pitaya.device.mock import LoopbackDuplex
from pitaya.types import (
    AccessModeError,
    ConfigRangeError,
    Frequency,
    IOMode,
    Trigger,
    TriggerDisabledError,
)

ADC_STATE = {"signals": {"adc_1": {"size": 5, "value": [1, 2, 3, 4, 5]}}}


@pytest_asyncio.fixture
async def duplex():
    return LoopbackDuplex(ADC_STATE)


@pytest_asyncio.fixture
async def router(duplex):
    router = ChannelRouter(duplex)
    yield router
    await router.close()


@pytest_asyncio.fixture
async def adc(router):
    return Channel(router.subscribe("signals", "adc_1"), mode=IOMode.RO)


@pytest_asyncio.fixture
async def dac(router):
    return Channel(router.subscribe("signals", "dac_1"), mode=IOMode.WO)


@pytest.mark.asyncio
async def test_defaults(adc):
    assert adc.trigger is Trigger.DISABLED
    assert adc.frequency is Frequency.SMP_125M
    assert adc.bitness == 16
    assert adc.buffer_size == 1


def test_channel_needs_signals_namespace():
    router = ChannelRouter(LoopbackDuplex())
    with pytest.raises(ValueError):
        Channel(router.subscribe("parameters", "adc_1"), mode=IOMode.RO)


@pytest.mark.asyncio
async def test_disabled_trigger_blocks_transfer(adc, dac, duplex):
    with pytest.raises(TriggerDisabledError):
        await adc.read_slice(3)
    with pytest.raises(TriggerDisabledError):
        await dac.write_slice([0, 1])
    with pytest.raises(TriggerDisabledError):
        adc.read_iter(3)
    with pytest.raises(TriggerDisabledError):
        dac.write_iter(3)
    assert duplex.writable.sent == []
    assert adc.buffer_size == 1


@pytest.mark.asyncio
async def test_access_modes(adc, dac, duplex):
    await adc.set_trigger(Trigger.NOW)
    await dac.set_trigger(Trigger.NOW)
    sent = len(duplex.writable.sent)
    with pytest.raises(AccessModeError):
        await adc.write_slice([1])
    with pytest.raises(AccessModeError):
        await dac.read_slice(1)
    assert len(duplex.writable.sent) == sent


@pytest.mark.asyncio
async def test_set_trigger_sends_int(adc, duplex):
    await adc.set_trigger(Trigger.CH1_PE)
    assert adc.trigger is Trigger.CH1_PE
    assert duplex.last_sent == {"parameters": {"adc_1#trigger": {"value": 2}}}


@pytest.mark.asyncio
async def test_read_slice_negotiates_size(adc, duplex):
    await adc.set_trigger(Trigger.NOW)
    voltage = await adc.read_slice(3)
    assert isinstance(voltage, np.ndarray)
    assert voltage.tolist() == [1, 2, 3]
    assert adc.buffer_size == 3
    assert {"parameters": {"adc_1#buffer_size": {"value": 3}}} in duplex.sent_frames


@pytest.mark.asyncio
async def test_same_size_not_renegotiated(adc, duplex):
    await adc.set_trigger(Trigger.NOW)
    await adc.read_slice(4)
    await adc.read_slice(4)
    negotiations = [
        f for f in duplex.sent_frames if "adc_1#buffer_size" in f.get("parameters", {})
    ]
    assert len(negotiations) == 1


@pytest.mark.parametrize("size", [0, -5])
@pytest.mark.asyncio
async def test_invalid_slice_size(adc, duplex, size):
    await adc.set_trigger(Trigger.NOW)
    sent = len(duplex.writable.sent)
    with pytest.raises(ConfigRangeError):
        await adc.read_slice(size)
    assert len(duplex.writable.sent) == sent


@pytest.mark.asyncio
async def test_write_slice(dac, duplex):
    await dac.set_trigger(Trigger.NOW)
    await dac.write_slice(np.array([0, 0, 0, 256, 256, 256, 0, 0, 0]))
    assert dac.buffer_size == 9
    assert duplex.sent_frames[-2:] == [
        {"parameters": {"dac_1#buffer_size": {"value": 9}}},
        {"signals": {"dac_1": {"size": 9, "value": [0, 0, 0, 256, 256, 256, 0, 0, 0]}}},
    ]


@pytest.mark.asyncio
async def test_write_empty_slice(dac, duplex):
    await dac.set_trigger(Trigger.NOW)
    with pytest.raises(ConfigRangeError):
        await dac.write_slice([])


@pytest.mark.asyncio
async def test_read_iter(adc, duplex):
    await adc.set_trigger(Trigger.NOW)
    slices = []
    async for voltage in adc.read_iter(2):
        slices.append(voltage.tolist())
        if len(slices) == 3:
            break
    assert slices == [[1, 2]] * 3
    assert adc.buffer_size == 2


@pytest.mark.asyncio
async def test_closing_read_iter_releases_subscription(adc, router):
    await adc.set_trigger(Trigger.NOW)
    async with contextlib.aclosing(adc.read_iter(2)) as slices:
        async for _ in slices:
            assert router.subscriber_count("signals", "adc_1") == 1
            break
    assert router.subscriber_count() == 0


@pytest.mark.asyncio
async def test_write_iter(dac, duplex):
    await dac.set_trigger(Trigger.NOW)
    written = 0
    async for write in dac.write_iter(2):
        with pytest.raises(ConfigRangeError):
            await write([1, 2, 3])
        await write([written, written])
        written += 1
        if written == 3:
            break
    data = [f["signals"]["dac_1"]["value"] for f in duplex.sent_frames if "signals" in f]
    assert data == [[0, 0], [1, 1], [2, 2]]


@pytest.mark.parametrize("bitness", [0, 17])
@pytest.mark.asyncio
async def test_bitness_out_of_range(adc, duplex, bitness):
    with pytest.raises(ConfigRangeError):
        await adc.set_bitness(bitness)
    assert adc.bitness == 16
    assert duplex.writable.sent == []


@pytest.mark.asyncio
async def test_set_bitness_and_frequency(adc, duplex):
    await adc.set_bitness(14)
    await adc.set_frequency(Frequency.SMP_1_953M)
    assert adc.bitness == 14
    assert adc.frequency is Frequency.SMP_1_953M
    assert duplex.sent_frames == [
        {"parameters": {"adc_1#bitness": {"value": 14}}},
        {"parameters": {"adc_1#frequency": {"value": 1_953_125}}},
    ]

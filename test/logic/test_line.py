import contextlib

import numpy as np
import pytest
import pytest_asyncio

from pitaya.comms import ChannelRouter
from pitaya.device import Line
from pitaya.device.mock import LoopbackDuplex, MockDuplex
from pitaya.types import (
    AccessModeError,
    ConfigRangeError,
    IOMode,
    IOType,
    LineInactiveError,
)

ANALOG_STATE = {
    "signals": {"analog_in_0": {"size": 1, "value": [105]}},
    "parameters": {"digital_io_0p": {"value": 0}},
}


@pytest_asyncio.fixture
async def duplex():
    return LoopbackDuplex(ANALOG_STATE)


@pytest_asyncio.fixture
async def router(duplex):
    router = ChannelRouter(duplex)
    yield router
    await router.close()


def digital(router, pin="digital_io_0p", mode=IOMode.RW):
    return Line(router.subscribe("parameters", pin), mode=mode, type=IOType.DIGITAL)


def analog(router, pin="analog_in_0", mode=IOMode.RO, **kwargs):
    return Line(router.subscribe("signals", pin), mode=mode, type=IOType.ANALOG, **kwargs)


def test_defaults():
    router = ChannelRouter(MockDuplex())
    dio = digital(router)
    ain = analog(router)
    assert (dio.bitness, dio.active) == (1, True)
    assert (ain.bitness, ain.active) == (12, False)
    assert ain.pin == "analog_in_0"


def test_wrong_namespace():
    router = ChannelRouter(MockDuplex())
    with pytest.raises(ValueError):
        Line(router.subscribe("signals", "digital_led_0"), mode=IOMode.RW, type=IOType.DIGITAL)
    with pytest.raises(ValueError):
        Line(router.subscribe("parameters", "analog_in_0"), mode=IOMode.RO, type=IOType.ANALOG)


def test_initial_bitness_validated():
    router = ChannelRouter(MockDuplex())
    with pytest.raises(ConfigRangeError):
        analog(router, bitness=13)
    with pytest.raises(ConfigRangeError):
        Line(
            router.subscribe("parameters", "digital_led_0"),
            mode=IOMode.RW,
            type=IOType.DIGITAL,
            bitness=2,
        )


@pytest.mark.asyncio
async def test_digital_round_trip(router, duplex):
    dio = digital(router)
    assert await dio.read() is False
    await dio.write(True)
    assert await dio.read() is True
    assert duplex.last_sent == {"parameters": {"digital_io_0p": {"value": True}}}


@pytest.mark.asyncio
async def test_digital_accepts_numpy_bool(router, duplex):
    await digital(router).write(np.bool_(True))
    assert duplex.last_sent == {"parameters": {"digital_io_0p": {"value": True}}}


@pytest.mark.asyncio
async def test_digital_rejects_numbers(router, duplex):
    with pytest.raises(TypeError):
        await digital(router).write(1)
    assert duplex.writable.sent == []


@pytest.mark.asyncio
async def test_analog_in_needs_activation(router, duplex):
    ain = analog(router)
    with pytest.raises(LineInactiveError):
        await ain.read()
    assert duplex.writable.sent == []
    await ain.set_active(True)
    assert ain.active
    assert duplex.last_sent == {"parameters": {"analog_in_0#active": {"value": True}}}
    assert await ain.read() == 105


@pytest.mark.asyncio
async def test_analog_out_write(router, duplex):
    aout = analog(router, pin="analog_out_2", mode=IOMode.WO)
    await aout.set_active(True)
    await aout.write(1.25)
    assert duplex.last_sent == {"signals": {"analog_out_2": {"size": 1, "value": [1.25]}}}
    with pytest.raises(TypeError):
        await aout.write(True)


@pytest.mark.asyncio
async def test_access_modes(router, duplex):
    ain = analog(router)
    aout = analog(router, pin="analog_out_0", mode=IOMode.WO)
    with pytest.raises(AccessModeError):
        await ain.write(1.0)
    with pytest.raises(AccessModeError):
        await aout.read()
    with pytest.raises(AccessModeError):
        ain.write_iter()
    with pytest.raises(AccessModeError):
        aout.read_iter()
    assert duplex.writable.sent == []


@pytest.mark.parametrize("bitness", [0, 13, -1])
@pytest.mark.asyncio
async def test_analog_bitness_out_of_range(router, duplex, bitness):
    ain = analog(router)
    with pytest.raises(ConfigRangeError):
        await ain.set_bitness(bitness)
    assert ain.bitness == 12
    assert duplex.writable.sent == []


@pytest.mark.asyncio
async def test_analog_bitness_in_range(router, duplex):
    ain = analog(router)
    await ain.set_bitness(1)
    assert ain.bitness == 1
    assert duplex.last_sent == {"parameters": {"analog_in_0#bitness": {"value": 1}}}


@pytest.mark.asyncio
async def test_digital_bitness(router, duplex):
    dio = digital(router)
    with pytest.raises(ConfigRangeError):
        await dio.set_bitness(2)
    with pytest.raises(TypeError):
        await dio.set_bitness(1.0)
    assert duplex.writable.sent == []
    await dio.set_bitness(1)
    assert duplex.last_sent == {"parameters": {"digital_io_0p#bitness": {"value": 1}}}


@pytest.mark.asyncio
async def test_digital_has_no_active_state(router, duplex):
    with pytest.raises(ConfigRangeError):
        await digital(router).set_active(False)
    assert duplex.writable.sent == []


@pytest.mark.asyncio
async def test_iterators_checked_at_call_time(router, duplex):
    ain = analog(router)
    with pytest.raises(LineInactiveError):
        ain.read_iter()
    aout = analog(router, pin="analog_out_0", mode=IOMode.WO)
    with pytest.raises(LineInactiveError):
        aout.write_iter()


@pytest.mark.asyncio
async def test_deactivation_does_not_stop_running_iteration(router, duplex):
    ain = analog(router)
    await ain.set_active(True)
    values = []
    async for value in ain.read_iter():
        values.append(value)
        if len(values) == 1:
            await ain.set_active(False)
        if len(values) == 3:
            break
    assert values == [105, 105, 105]
    assert not ain.active


@pytest.mark.asyncio
async def test_write_iter(router, duplex):
    dio = digital(router, pin="digital_led_4")
    states = [True, False, True]
    async for write in dio.write_iter():
        await write(states[len(duplex.writable.sent)])
        if len(duplex.writable.sent) == len(states):
            break
    assert [f["parameters"]["digital_led_4"]["value"] for f in duplex.sent_frames] == states


@pytest.mark.asyncio
async def test_closing_read_iter_releases_subscription(router, duplex):
    dio = digital(router)
    async with contextlib.aclosing(dio.read_iter()) as states:
        async for state in states:
            assert state is False
            assert router.subscriber_count("parameters", "digital_io_0p") == 1
            break
    assert router.subscriber_count() == 0


@pytest.mark.asyncio
async def test_read_iter_follows_writes(router, duplex):
    dio = digital(router, pin="digital_io_0p")
    seen = []
    async for state in dio.read_iter():
        seen.append(state)
        if len(seen) == 1:
            await dio.write(True)
        if state:
            break
    assert seen[0] is False
    assert seen[-1] is True

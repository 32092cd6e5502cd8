import asyncio

import pytest
import pytest_asyncio
from loguru import logger

import pitaya.util
from pitaya.device import Channel, Line, Redpitaya
from pitaya.device.mock import LoopbackDuplex, MockDuplex
from pitaya.types import (
    AccessModeError,
    ConnectionClosedError,
    ConnectionConfig,
    IOMode,
    LineInactiveError,
    Namespace,
    NoDataError,
    Trigger,
)
from pitaya.util import TEST_LOGLEVEL


async def wait_for(predicate, timeout=1.0):
    async def _poll():
        while not predicate():
            await asyncio.sleep(0.001)

    await asyncio.wait_for(_poll(), timeout)


class TestRedpitaya:
    @pytest_asyncio.fixture(autouse=True, scope="class")
    def client_log(self):
        pitaya.util.start_client_log(
            log_level=TEST_LOGLEVEL, log_to_stdout=True, log_to_file=True
        )
        yield
        pitaya.util.shutdown_client_log()

    @pytest_asyncio.fixture(autouse=True, scope="function")
    def log(self, request):
        logger.warning("STARTED Test '{}'".format(request.node.originalname))

        def fin():
            logger.warning("COMPLETED Test '{}' \n".format(request.node.originalname))

        request.addfinalizer(fin)

    def test_catalog(self):
        rp = Redpitaya(MockDuplex())
        digital = vars(rp.pin.digital)
        analog = vars(rp.pin.analog)
        channels = vars(rp.channel)
        assert len(digital) == 24
        assert len(analog) == 8
        assert set(channels) == {"adc1", "adc2", "dac1", "dac2"}
        assert all(isinstance(line, Line) for line in (*digital.values(), *analog.values()))
        assert all(isinstance(ch, Channel) for ch in channels.values())

        assert rp.pin.digital.led0.pin == "digital_led_0"
        assert rp.pin.digital.io7n.pin == "digital_io_7n"
        assert rp.pin.digital.io3p.mode is IOMode.RW
        assert rp.pin.analog.out0.mode is IOMode.WO
        assert rp.pin.analog.in3.mode is IOMode.RO
        assert rp.channel.adc2.pin == "adc_2"
        assert rp.channel.adc1.mode is IOMode.RO
        assert rp.channel.dac2.mode is IOMode.WO
        assert rp.channel.dac1.bitness == 16
        # building the catalog sends nothing and opens no subscriber queue
        assert rp.router.subscriber_count() == 0
        assert not rp.router.started

    def test_duplicate_claim_rejected(self):
        rp = Redpitaya(MockDuplex())
        with pytest.raises(ValueError):
            rp._claim(Namespace.PARAMETERS, "digital_led_0")

    def test_config_applied(self):
        rp = Redpitaya(MockDuplex(), ConnectionConfig(queue_size=3, compress_outbound=True))
        assert rp.router._queue_size == 3
        assert rp.router._codec.compress_outbound

    @pytest.mark.asyncio
    async def test_led_write(self):
        duplex = MockDuplex()
        duplex.emit({"parameters": {"digital_led_0": {"value": False}}})
        async with Redpitaya(duplex) as rp:
            await rp.pin.digital.led0.write(True)
        assert duplex.last_sent == {"parameters": {"digital_led_0": {"value": True}}}

    @pytest.mark.asyncio
    async def test_analog_in_activation(self):
        duplex = LoopbackDuplex({"signals": {"analog_in_0": {"size": 1, "value": [105]}}})
        async with Redpitaya(duplex) as rp:
            with pytest.raises(LineInactiveError):
                await rp.pin.analog.in0.read()
            await rp.pin.analog.in0.set_active(True)
            assert await rp.pin.analog.in0.read() == 105

    @pytest.mark.asyncio
    async def test_two_endpoints_read_concurrently(self):
        duplex = MockDuplex()
        async with Redpitaya(duplex) as rp:
            await rp.pin.analog.in1.set_active(True)
            await rp.channel.adc1.set_trigger(Trigger.NOW)

            async def collect(iterator):
                return [value async for value in iterator]

            ain = asyncio.create_task(collect(rp.pin.analog.in1.read_iter()))
            adc = asyncio.create_task(collect(rp.channel.adc1.read_iter(1)))
            await wait_for(lambda: rp.router.subscriber_count() == 2)
            duplex.emit(
                {
                    "signals": {
                        "analog_in_1": {"size": 1, "value": [0.25]},
                        "adc_1": {"size": 1, "value": [7]},
                    }
                }
            )
            duplex.end()
            ain_values, adc_values = await asyncio.wait_for(asyncio.gather(ain, adc), 1.0)
        assert ain_values == [0.25]
        assert [v.tolist() for v in adc_values] == [[7]]

    @pytest.mark.asyncio
    async def test_events(self):
        duplex = MockDuplex()
        rp = Redpitaya(duplex)
        events = []
        for type in ("connect", "disconnect", "error"):
            rp.add_event_listener(type, events.append)
        await rp.start()
        duplex.end()
        await wait_for(lambda: rp.router.ended)
        with pytest.raises(NoDataError):
            await rp.pin.digital.led1.read()
        await rp.close()
        await asyncio.sleep(0)
        assert [e.type for e in events] == ["connect", "disconnect", "error", "disconnect"]
        assert events[2].detail == "no data received for { parameters: digital_led_1 }"

    @pytest.mark.asyncio
    async def test_remove_event_listener(self):
        rp = Redpitaya(MockDuplex())
        events = []
        rp.add_event_listener("disconnect", events.append)
        rp.remove_event_listener("disconnect", events.append)
        await rp.close()
        assert events == []

    @pytest.mark.asyncio
    async def test_close_with_cause(self):
        duplex = LoopbackDuplex({"parameters": {"digital_io_1n": {"value": 1}}})
        rp = Redpitaya(duplex)
        causes = []
        rp.add_event_listener("disconnect", lambda e: causes.append(e.detail))
        await rp.start()

        async def collect():
            return [state async for state in rp.pin.digital.io1n.read_iter()]

        task = asyncio.create_task(collect())
        await wait_for(lambda: rp.router.subscriber_count() == 1)
        await rp.close("reason X")
        states = await asyncio.wait_for(task, 1.0)
        assert all(state is True for state in states)

        assert rp.closed
        assert rp.close_cause == "reason X"
        assert causes == ["reason X"]
        assert duplex.writable.aborted
        with pytest.raises(ConnectionClosedError, match="reason X"):
            await rp.pin.digital.led2.write(True)
        with pytest.raises(ConnectionClosedError, match="reason X"):
            await rp.channel.adc1.set_trigger(Trigger.NOW)
        with pytest.raises(ConnectionClosedError, match="reason X"):
            await rp.pin.digital.io1n.read()
        await rp.close("another reason")
        assert rp.close_cause == "reason X"

    @pytest.mark.asyncio
    async def test_local_errors_win_over_closed(self):
        rp = Redpitaya(MockDuplex())
        await rp.close()
        with pytest.raises(AccessModeError):
            await rp.pin.analog.in0.write(1.0)

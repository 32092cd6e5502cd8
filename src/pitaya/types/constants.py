"""Enumerations and the fixed pin catalog of the instrument."""

from __future__ import annotations

from enum import Enum, IntEnum


class Namespace(str, Enum):
    """Top-level mapping of a frame a key lives under."""

    SIGNALS = "signals"  # high-rate sample data
    PARAMETERS = "parameters"  # scalar state


class IOMode(str, Enum):
    RO = "read-only"
    WO = "write-only"
    RW = "read-write"

    @property
    def readable(self) -> bool:
        return self is not IOMode.WO

    @property
    def writable(self) -> bool:
        return self is not IOMode.RO


class IOType(str, Enum):
    DIGITAL = "digital"
    ANALOG = "analog"


class ConfigName(str, Enum):
    """Per-endpoint settings negotiated through `<pin>#<name>` parameters."""

    BITNESS = "bitness"
    ACTIVE = "active"
    BUFFER_SIZE = "buffer_size"
    FREQUENCY = "frequency"
    TRIGGER = "trigger"


class Trigger(IntEnum):
    """Acquisition/generation trigger source of a fast channel.

    `DISABLED` gates the channel: no samples can be transferred.
    PE/NE stand for positive/negative edge.
    """

    DISABLED = 0
    NOW = 1
    CH1_PE = 2
    CH1_NE = 3
    CH2_PE = 4
    CH2_NE = 5
    EXT_PE = 6
    EXT_NE = 7
    AWG_PE = 8
    AWG_NE = 9


class Frequency(IntEnum):
    """Sample rate (Hz) of a fast channel, 125 MHz base clock over decimation."""

    SMP_125M = 125_000_000
    SMP_15_625M = 15_625_000
    SMP_1_953M = 1_953_125
    SMP_122_070K = 122_070
    SMP_15_258K = 15_258
    SMP_1_907K = 1_907


# ----------------
# Pin catalog
# ----------------
# attribute name on the device facade -> pin id on the wire

LED_PINS = {f"led{i}": f"digital_led_{i}" for i in range(8)}
DIO_PINS = {
    f"io{i}{pol}": f"digital_io_{i}{pol}" for pol in ("p", "n") for i in range(8)
}
DIGITAL_PINS = LED_PINS | DIO_PINS

ANALOG_OUT_PINS = {f"out{i}": f"analog_out_{i}" for i in range(4)}
ANALOG_IN_PINS = {f"in{i}": f"analog_in_{i}" for i in range(4)}
ANALOG_PINS = ANALOG_OUT_PINS | ANALOG_IN_PINS

ADC_PINS = {"adc1": "adc_1", "adc2": "adc_2"}
DAC_PINS = {"dac1": "dac_1", "dac2": "dac_2"}
CHANNEL_PINS = ADC_PINS | DAC_PINS

ALL_PINS = frozenset(
    list(DIGITAL_PINS.values())
    + list(ANALOG_PINS.values())
    + list(CHANNEL_PINS.values())
)

MAX_ANALOG_BITNESS = 12
MAX_CHANNEL_BITNESS = 16

"""Wind vane voltage to heading lookup.

The SEN-08942 vane switches one of 16 resistors into a divider, so each
heading shows up as a fixed voltage on the ADC. Readings are rounded to
0.1 V before lookup.
"""
from __future__ import annotations

from types import MappingProxyType

from .models import UNKNOWN_DIRECTION


VOLTS_TO_DEGREES = MappingProxyType({
    0.4: 0.0,
    1.4: 22.5,
    1.2: 45.0,
    2.8: 67.5,
    2.7: 90.0,
    2.9: 112.5,
    2.2: 135.0,
    2.5: 157.5,
    1.8: 180.0,
    2.0: 202.5,
    0.7: 225.0,
    0.8: 247.5,
    0.1: 270.0,
    0.3: 292.5,
    0.2: 315.0,
    0.6: 337.5,
})


def raw_to_voltage(raw: int, adc_max: int = 1023, vref: float = 3.3) -> float:
    return float(raw) / float(adc_max) * float(vref)


def direction_for_voltage(volts: float) -> float:
    # 0.0 is north, so a miss must not fall back to it
    return VOLTS_TO_DEGREES.get(round(volts, 1), UNKNOWN_DIRECTION)

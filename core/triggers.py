"""Adaptive trigger effects

Each effect is an immutable value. `encode_trigger_effect` turns one into the
10-byte block the controller expects for either trigger.
"""
from dataclasses import dataclass
from enum import IntEnum
from typing import Union

from core.codec import unsigned_to_byte

TRIGGER_EFFECT_SIZE = 10


class TriggerEffectType(IntEnum):
    DEFAULT = 0x00
    CONTINUOUS_RESISTANCE = 0x01
    SECTION_RESISTANCE = 0x02
    VIBRATE = 0x26
    CALIBRATE = 0xFC


@dataclass(frozen=True)
class DefaultEffect:
    """No resistance."""


@dataclass(frozen=True)
class CalibrateEffect:
    """Trigger calibration mode."""


@dataclass(frozen=True)
class ContinuousResistance:
    """Constant resistance from `start_position` to the end of travel."""
    start_position: float
    force: float


@dataclass(frozen=True)
class SectionResistance:
    """Resistance only between `start_position` and `end_position`."""
    start_position: float
    end_position: float


@dataclass(frozen=True)
class Vibrate:
    """Vibrating trigger. Forces are 0..1 at the start/middle/end of travel."""
    frequency: int
    start_force: float
    middle_force: float
    end_force: float
    keep_effect: bool = True

    def __post_init__(self):
        if isinstance(self.frequency, bool) or not isinstance(self.frequency, int):
            raise ValueError(f"vibration frequency must be a whole number of Hz, got {self.frequency!r}")
        if not 0 <= self.frequency <= 0xFF:
            raise ValueError(f"vibration frequency must be 0-255 Hz, got {self.frequency}")


TriggerEffect = Union[DefaultEffect, CalibrateEffect, ContinuousResistance, SectionResistance, Vibrate]

DEFAULT = DefaultEffect()
CALIBRATE = CalibrateEffect()


def effect_type(effect: TriggerEffect) -> TriggerEffectType:
    if isinstance(effect, DefaultEffect):
        return TriggerEffectType.DEFAULT
    if isinstance(effect, CalibrateEffect):
        return TriggerEffectType.CALIBRATE
    if isinstance(effect, ContinuousResistance):
        return TriggerEffectType.CONTINUOUS_RESISTANCE
    if isinstance(effect, SectionResistance):
        return TriggerEffectType.SECTION_RESISTANCE
    if isinstance(effect, Vibrate):
        return TriggerEffectType.VIBRATE
    raise TypeError(f"not a trigger effect: {effect!r}")


def encode_trigger_effect(effect: TriggerEffect) -> bytes:
    """Serialize an effect into its 10-byte report block."""
    block = bytearray(TRIGGER_EFFECT_SIZE)
    block[0] = effect_type(effect)

    if isinstance(effect, ContinuousResistance):
        block[1] = unsigned_to_byte(effect.start_position)
        block[2] = unsigned_to_byte(effect.force)
    elif isinstance(effect, SectionResistance):
        block[1] = unsigned_to_byte(effect.start_position)
        block[2] = unsigned_to_byte(effect.end_position)
    elif isinstance(effect, Vibrate):
        block[1] = 0xFF
        if effect.keep_effect:
            block[2] = 0x02
        block[4] = unsigned_to_byte(effect.start_force)
        block[5] = unsigned_to_byte(effect.middle_force)
        block[6] = unsigned_to_byte(effect.end_force)
        block[9] = effect.frequency
    # default and calibrate carry nothing past the type byte

    return bytes(block)

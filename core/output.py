"""Output state: rumble, LEDs, lightbar and trigger effects

`OutputState.build_hid_output_buffer()` produces the 47-byte payload shared by
both transports; `core.framing` adds the USB/Bluetooth wrapping.
"""
import copy
from dataclasses import dataclass, field
from enum import IntEnum, IntFlag

from core.codec import unsigned_to_byte
from core.framing import OUTPUT_PAYLOAD_SIZE
from core.triggers import DEFAULT, TriggerEffect, encode_trigger_effect


class MicLed(IntEnum):
    OFF = 0
    ON = 1
    PULSE = 2


class PlayerLed(IntFlag):
    NONE = 0x00
    LEFT = 0x01
    MIDDLE_LEFT = 0x02
    MIDDLE = 0x04
    MIDDLE_RIGHT = 0x08
    RIGHT = 0x10
    PLAYER_1 = MIDDLE
    PLAYER_2 = MIDDLE_LEFT | MIDDLE_RIGHT
    PLAYER_3 = LEFT | MIDDLE | RIGHT
    PLAYER_4 = LEFT | MIDDLE_LEFT | MIDDLE_RIGHT | RIGHT
    ALL = LEFT | MIDDLE_LEFT | MIDDLE | MIDDLE_RIGHT | RIGHT


class PlayerLedBrightness(IntEnum):
    LOW = 0x02
    MEDIUM = 0x01
    HIGH = 0x00


class LightbarBehavior(IntEnum):
    PULSE_BLUE = 0x01  # slow fade to blue, can't be interrupted
    CUSTOM_COLOR = 0x02


@dataclass(frozen=True)
class LightbarColor:
    r: float = 0.0
    g: float = 0.0
    b: float = 1.0


# Payload offsets
FEATURE_MASK = 0x00
RIGHT_RUMBLE = 0x02
LEFT_RUMBLE = 0x03
MIC_LED = 0x08
R2_EFFECT = 0x0A
L2_EFFECT = 0x15
LIGHTBAR_SETUP = 0x26
LIGHTBAR_BEHAVIOR = 0x29
PLAYER_LED_BRIGHTNESS = 0x2A
PLAYER_LED = 0x2B
LIGHTBAR_RGB = 0x2C

FEATURE_MASK_BYTES = b"\xff\xf7"
# 0x01 allows lightbar customisation, 0x02 allows the blue pulse
LIGHTBAR_SETUP_FLAGS = 0x03
PLAYER_LED_ENABLE = 0x20


@dataclass
class OutputState:
    left_rumble: float = 0.0
    right_rumble: float = 0.0
    mic_led: MicLed = MicLed.OFF
    player_led: PlayerLed = PlayerLed.NONE
    player_led_brightness: PlayerLedBrightness = PlayerLedBrightness.HIGH
    lightbar_behavior: LightbarBehavior = LightbarBehavior.PULSE_BLUE
    lightbar_color: LightbarColor = field(default_factory=LightbarColor)
    r2_effect: TriggerEffect = DEFAULT
    l2_effect: TriggerEffect = DEFAULT

    def copy(self) -> "OutputState":
        # every field is a number, enum or frozen value, so a shallow copy is
        # fully independent
        return copy.copy(self)

    def build_hid_output_buffer(self) -> bytes:
        buf = bytearray(OUTPUT_PAYLOAD_SIZE)

        buf[FEATURE_MASK:FEATURE_MASK + 2] = FEATURE_MASK_BYTES
        buf[RIGHT_RUMBLE] = unsigned_to_byte(self.right_rumble)
        buf[LEFT_RUMBLE] = unsigned_to_byte(self.left_rumble)
        buf[MIC_LED] = int(self.mic_led)

        buf[R2_EFFECT:R2_EFFECT + 10] = encode_trigger_effect(self.r2_effect)
        buf[L2_EFFECT:L2_EFFECT + 10] = encode_trigger_effect(self.l2_effect)

        buf[LIGHTBAR_SETUP] = LIGHTBAR_SETUP_FLAGS
        buf[LIGHTBAR_BEHAVIOR] = int(self.lightbar_behavior)
        buf[PLAYER_LED_BRIGHTNESS] = int(self.player_led_brightness)
        buf[PLAYER_LED] = PLAYER_LED_ENABLE | (int(self.player_led) & 0x1F)

        color = self.lightbar_color
        buf[LIGHTBAR_RGB] = unsigned_to_byte(color.r)
        buf[LIGHTBAR_RGB + 1] = unsigned_to_byte(color.g)
        buf[LIGHTBAR_RGB + 2] = unsigned_to_byte(color.b)

        return bytes(buf)

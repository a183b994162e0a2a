"""Input report parser

Decodes a de-framed DualSense input report into an `InputState`.

Byte layout (offsets after the report id byte(s) are stripped):
  0-3    left X, left Y, right X, right Y (8-bit, 0x80 = centre)
  4-5    L2, R2 analog
  7      face buttons (high nibble) + d-pad compass code (low nibble)
  8      L1 R1 L2 R2 create menu L3 R3
  9      logo, touchpad click, mic
  15-20  gyro X/Y/Z  (int16 LE)
  21-26  accel X/Y/Z (int16 LE)
  32-35  touch point 1 (uint32 LE)
  36-39  touch point 2
  52     battery: low nibble level, 0x10 charging, 0x20 full
  53     misc status: 0x01 headphones
"""
import logging
import struct
from collections import namedtuple
from types import MappingProxyType

from core.codec import has_flag, to_signed_float, to_unsigned_float
from core.framing import IoMode
from core.state import BatteryStatus, Button, InputState, Touch, Vec2, Vec3

LOG = logging.getLogger("dualsense.input")

# Each field has a USB offset and the offset it sits at in the short
# Bluetooth report (None if that report doesn't carry it).
Offset = namedtuple("Offset", ["usb", "bluetooth"])

L2_ANALOG = Offset(4, 7)
R2_ANALOG = Offset(5, 8)
BUTTON_BLOCK_1 = Offset(7, 4)
BUTTON_BLOCK_2 = Offset(8, 5)
BUTTON_BLOCK_3 = Offset(9, 6)
MIC_BLOCK = Offset(9, None)
GYRO = Offset(15, None)
ACCEL = Offset(21, None)
TOUCH_1 = Offset(32, None)
TOUCH_2 = Offset(36, None)
BATTERY = Offset(52, None)
MISC_STATUS = Offset(53, None)

MIN_REPORT_LENGTH = MISC_STATUS.usb + 1

# Compass codes from the low nibble of block 1; 8 means centred.
DPAD_CODES = {
    Button.DPAD_UP: (0, 1, 7),
    Button.DPAD_RIGHT: (1, 2, 3),
    Button.DPAD_DOWN: (3, 4, 5),
    Button.DPAD_LEFT: (5, 6, 7),
}

BLOCK_1_FLAGS = {
    Button.SQUARE: 0x10,
    Button.CROSS: 0x20,
    Button.CIRCLE: 0x40,
    Button.TRIANGLE: 0x80,
}

BLOCK_2_FLAGS = {
    Button.L1: 0x01,
    Button.R1: 0x02,
    Button.L2: 0x04,
    Button.R2: 0x08,
    Button.CREATE: 0x10,
    Button.MENU: 0x20,
    Button.L3: 0x40,
    Button.R3: 0x80,
}

BLOCK_3_FLAGS = {
    Button.LOGO: 0x01,
    Button.TOUCHPAD: 0x02,
}

MIC_FLAG = 0x04

BATTERY_CHARGING = 0x10
BATTERY_FULL = 0x20
HEADPHONES_CONNECTED = 0x01


def _index(io_mode: IoMode, offset: Offset) -> int:
    # Always the USB index. Controllers that come up in the short Bluetooth
    # report mode are a discovery problem upstream; once a full report is
    # flowing the layout matches USB. Offset.bluetooth is kept for when that
    # mode can be told apart reliably.
    return offset.usb


def _apply_dead_zone(value: float, dead_zone: float) -> float:
    return value if abs(value) >= dead_zone else 0.0


def read_stick(x: int, y: int, dead_zone: float) -> Vec2:
    sx = to_signed_float(x)
    sy = -to_signed_float(y)
    return Vec2(_apply_dead_zone(sx, dead_zone), _apply_dead_zone(sy, dead_zone))


def read_touch(data, offset: int) -> Touch:
    raw, = struct.unpack_from("<I", data, offset)
    return Touch(
        x=(raw & 0x000FFF00) >> 8,
        y=(raw & 0xFFF00000) >> 20,
        is_down=(raw & 0x80) == 0,
        id=raw & 0xFF,
    )


def read_motion(data, offset: int) -> Vec3:
    x, y, z = struct.unpack_from("<hhh", data, offset)
    return Vec3(-x, y, z)


def parse_input_report(data, io_mode: IoMode = IoMode.USB, dead_zone: float = 0.0) -> InputState:
    """Parse a de-framed input report.

    `data` is any bytes-like object. Raises ValueError if it is too short to
    hold every field.
    """
    if len(data) < MIN_REPORT_LENGTH:
        raise ValueError(f"input report too short: {len(data)} bytes, need {MIN_REPORT_LENGTH}")

    block1 = data[_index(io_mode, BUTTON_BLOCK_1)]
    block2 = data[_index(io_mode, BUTTON_BLOCK_2)]
    block3 = data[_index(io_mode, BUTTON_BLOCK_3)]
    dpad = block1 & 0x0F

    buttons = {}
    for button, flag in BLOCK_1_FLAGS.items():
        buttons[button] = has_flag(block1, flag)
    for button, codes in DPAD_CODES.items():
        buttons[button] = dpad in codes
    for button, flag in BLOCK_2_FLAGS.items():
        buttons[button] = has_flag(block2, flag)
    for button, flag in BLOCK_3_FLAGS.items():
        buttons[button] = has_flag(block3, flag)
    buttons[Button.MIC] = has_flag(data[_index(io_mode, MIC_BLOCK)], MIC_FLAG)

    battery = data[_index(io_mode, BATTERY)]
    misc = data[_index(io_mode, MISC_STATUS)]

    state = InputState(
        left_stick=read_stick(data[0], data[1], dead_zone),
        right_stick=read_stick(data[2], data[3], dead_zone),
        l2=to_unsigned_float(data[_index(io_mode, L2_ANALOG)]),
        r2=to_unsigned_float(data[_index(io_mode, R2_ANALOG)]),
        buttons=MappingProxyType({b: buttons[b] for b in Button}),
        touchpad1=read_touch(data, _index(io_mode, TOUCH_1)),
        touchpad2=read_touch(data, _index(io_mode, TOUCH_2)),
        # gyro axes follow the left-hand rule, flip the whole vector
        gyro=-read_motion(data, _index(io_mode, GYRO)),
        accelerometer=read_motion(data, _index(io_mode, ACCEL)),
        battery=BatteryStatus(
            is_charging=has_flag(battery, BATTERY_CHARGING),
            is_fully_charged=has_flag(battery, BATTERY_FULL),
            level=battery & 0x0F,
        ),
        is_headphone_connected=has_flag(misc, HEADPHONES_CONNECTED),
    )
    if LOG.isEnabledFor(logging.DEBUG):
        LOG.debug("input report -> pressed=%s l2=%.2f r2=%.2f",
                  [b.value for b in state.pressed_buttons()], state.l2, state.r2)
    return state

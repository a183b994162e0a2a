import struct
import zlib

import pytest

from core.framing import IoMode, build_output_report, input_report_offset
from core.output import (LightbarBehavior, LightbarColor, MicLed, OutputState, PlayerLed,
                         PlayerLedBrightness)
from core.triggers import DEFAULT, SectionResistance, Vibrate


def test_default_payload():
    buf = OutputState().build_hid_output_buffer()
    assert len(buf) == 47
    assert buf[0x00] == 0xFF
    assert buf[0x01] == 0xF7
    assert buf[0x26] == 0x03
    assert buf[0x29] == 0x01
    assert buf[0x2A] == 0x00
    assert buf[0x2B] == 0x20
    assert list(buf[0x2C:0x2F]) == [0, 0, 255]
    touched = {0x00, 0x01, 0x26, 0x29, 0x2B, 0x2E}
    assert all(b == 0 for i, b in enumerate(buf) if i not in touched)


def test_payload_fields():
    state = OutputState(
        left_rumble=0.5,
        right_rumble=2.0,
        mic_led=MicLed.PULSE,
        player_led=PlayerLed.PLAYER_3,
        player_led_brightness=PlayerLedBrightness.LOW,
        lightbar_behavior=LightbarBehavior.CUSTOM_COLOR,
        lightbar_color=LightbarColor(1.0, 0.2, -1.0),
        r2_effect=Vibrate(20, 1.0, 1.0, 1.0),
        l2_effect=SectionResistance(0.0, 0.5),
    )
    buf = state.build_hid_output_buffer()
    assert buf[0x02] == 0xFF  # right rumble, clamped
    assert buf[0x03] == 0x80  # left rumble
    assert buf[0x08] == 2
    assert list(buf[0x0A:0x14]) == [0x26, 0xFF, 0x02, 0x00, 0xFF, 0xFF, 0xFF, 0x00, 0x00, 20]
    assert list(buf[0x15:0x1F]) == [0x02, 0x00, 0x80, 0, 0, 0, 0, 0, 0, 0]
    assert buf[0x29] == 0x02
    assert buf[0x2A] == 0x02
    assert buf[0x2B] == 0x20 | 0x01 | 0x04 | 0x10
    assert list(buf[0x2C:0x2F]) == [255, 51, 0]


def test_player_led_presets():
    assert PlayerLed.PLAYER_1 == PlayerLed.MIDDLE
    assert PlayerLed.PLAYER_2 == PlayerLed.MIDDLE_LEFT | PlayerLed.MIDDLE_RIGHT
    assert PlayerLed.PLAYER_4 == PlayerLed.LEFT | PlayerLed.MIDDLE_LEFT | PlayerLed.MIDDLE_RIGHT | PlayerLed.RIGHT
    assert int(PlayerLed.ALL) == 0x1F


def test_copy_is_independent():
    original = OutputState(r2_effect=Vibrate(10, 0.5, 0.5, 0.5))
    clone = original.copy()
    clone.left_rumble = 1.0
    clone.player_led = PlayerLed.ALL
    clone.r2_effect = DEFAULT
    assert original.left_rumble == 0.0
    assert original.player_led == PlayerLed.NONE
    assert original.r2_effect == Vibrate(10, 0.5, 0.5, 0.5)
    assert original.copy() == original


def test_usb_frame():
    payload = OutputState().build_hid_output_buffer()
    frame = build_output_report(IoMode.USB, payload, 48)
    assert len(frame) == 48
    assert frame[0] == 0x02
    assert frame[1:] == payload


def test_usb_frame_pads_to_write_size():
    payload = OutputState().build_hid_output_buffer()
    frame = build_output_report(IoMode.USB, payload, 64)
    assert len(frame) == 64
    assert frame[48:] == bytes(16)


def test_bluetooth_frame_crc():
    payload = OutputState(left_rumble=0.3).build_hid_output_buffer()
    frame = build_output_report(IoMode.BLUETOOTH, payload, 78)
    assert len(frame) == 78
    assert frame[0:2] == b"\x31\x02"
    assert frame[2:49] == payload
    assert frame[49:74] == bytes(25)
    crc, = struct.unpack("<I", frame[74:78])
    assert crc == zlib.crc32(frame[:74])
    assert build_output_report(IoMode.BLUETOOTH, payload, 78) == frame


def test_bluetooth_crc_changes_with_payload():
    a = build_output_report(IoMode.BLUETOOTH, OutputState().build_hid_output_buffer(), 78)
    b = build_output_report(IoMode.BLUETOOTH, OutputState(mic_led=MicLed.ON).build_hid_output_buffer(), 78)
    assert a[74:] != b[74:]


def test_unknown_mode_rejected():
    with pytest.raises(ValueError):
        build_output_report(IoMode.UNKNOWN, OutputState().build_hid_output_buffer(), 64)


@pytest.mark.parametrize("mode,size", [(IoMode.USB, 40), (IoMode.BLUETOOTH, 64)])
def test_undersized_write_buffer_rejected(mode, size):
    with pytest.raises(ValueError):
        build_output_report(mode, OutputState().build_hid_output_buffer(), size)


def test_input_report_offsets():
    assert input_report_offset(b"\x01\x80") == 1
    assert input_report_offset(b"\x31\x00\x80") == 2
    assert input_report_offset(b"\x7f") == 0
    assert input_report_offset(b"") == 0

import threading

import pytest

from conftest import FakeTransport
from core.output import LightbarBehavior, LightbarColor, MicLed, OutputState, PlayerLed, PlayerLedBrightness
from core.triggers import CALIBRATE, DEFAULT, ContinuousResistance, SectionResistance, Vibrate
from devices.dualsense import DualSense
from settings import ControllerProfile, effect_from_dict

PROFILE = """
dead_zone: 0.1
poll_interval_ms: 50
output:
  left_rumble: 0.25
  mic_led: Pulse
  player_led: [left, right]
  player_led_brightness: medium
  lightbar_behavior: custom_color
  lightbar_color: [1.0, 0.0, 0.5]
  l2_effect: {type: section, start_position: 0.0, end_position: 0.5}
  r2_effect:
    type: vibrate
    frequency: 20
    start_force: 1
    middle_force: 1
    end_force: 1
"""


def test_load_profile(tmp_path):
    path = tmp_path / "profile.yaml"
    path.write_text(PROFILE, encoding="utf-8")
    profile = ControllerProfile.load_profile(str(path))

    assert profile.dead_zone == pytest.approx(0.1)
    assert profile.poll_interval_ms == 50
    out = profile.output
    assert out.left_rumble == 0.25
    assert out.right_rumble == 0.0
    assert out.mic_led is MicLed.PULSE
    assert out.player_led == PlayerLed.LEFT | PlayerLed.RIGHT
    assert out.player_led_brightness is PlayerLedBrightness.MEDIUM
    assert out.lightbar_behavior is LightbarBehavior.CUSTOM_COLOR
    assert out.lightbar_color == LightbarColor(1.0, 0.0, 0.5)
    assert out.l2_effect == SectionResistance(0.0, 0.5)
    assert out.r2_effect == Vibrate(20, 1.0, 1.0, 1.0, keep_effect=True)


def test_empty_profile_gives_defaults(tmp_path):
    path = tmp_path / "empty.yaml"
    path.write_text("", encoding="utf-8")
    profile = ControllerProfile.load_profile(str(path))
    assert profile.dead_zone == 0.0
    assert profile.poll_interval_ms == 20
    assert profile.output == OutputState()


def test_player_led_preset_and_bitmask():
    assert ControllerProfile.from_dict({"output": {"player_led": "player_2"}}).output.player_led \
        == PlayerLed.PLAYER_2
    assert ControllerProfile.from_dict({"output": {"player_led": 0x1F}}).output.player_led == PlayerLed.ALL


@pytest.mark.parametrize("data,expected", [
    (None, DEFAULT),
    ("calibrate", CALIBRATE),
    ({"type": "default"}, DEFAULT),
    ({"type": "continuous", "start_position": 0.2, "force": 0.9}, ContinuousResistance(0.2, 0.9)),
    ({"type": "vibrate", "frequency": 5, "keep_effect": False}, Vibrate(5, 0.0, 0.0, 0.0, keep_effect=False)),
])
def test_effect_from_dict(data, expected):
    assert effect_from_dict(data) == expected


@pytest.mark.parametrize("data", [
    {"dead_zone": 2},
    {"poll_interval_ms": 0},
    {"output": {"mic_led": "blinking"}},
    {"output": {"lightbar_color": [1, 0]}},
    {"output": {"r2_effect": {"type": "wobble"}}},
    {"output": {"l2_effect": {"type": "vibrate", "frequency": 300}}},
    ["not", "a", "mapping"],
])
def test_invalid_profiles_rejected(data):
    with pytest.raises(ValueError):
        ControllerProfile.from_dict(data)


def test_apply_copies_output_state():
    profile = ControllerProfile.from_dict({"dead_zone": 0.2, "output": {"left_rumble": 0.5}})
    ds = DualSense(FakeTransport())
    profile.apply(ds)
    assert ds.dead_zone == 0.2
    assert ds.output_state.left_rumble == 0.5

    ds.output_state.left_rumble = 1.0
    assert profile.output.left_rumble == 0.5


def test_start_polling_uses_profile_interval():
    profile = ControllerProfile.from_dict({"dead_zone": 0.3, "poll_interval_ms": 40,
                                           "output": {"mic_led": "on"}})
    ds = DualSense(FakeTransport())
    polled = threading.Event()
    poller = profile.start_polling(ds, lambda c: polled.set())
    try:
        assert polled.wait(1.0)
        assert poller.interval == pytest.approx(0.04)
        assert ds.dead_zone == 0.3
        assert ds.output_state.mic_led is MicLed.ON
    finally:
        ds.end_polling()

"""Controller profiles: load YAML settings and apply them to a DualSense

Example profile:

    dead_zone: 0.1
    poll_interval_ms: 20
    output:
      lightbar_behavior: custom_color
      lightbar_color: [1.0, 0.0, 0.5]
      player_led: [left, right]
      player_led_brightness: medium
      mic_led: pulse
      l2_effect: {type: section, start_position: 0.0, end_position: 0.5}
      r2_effect: {type: vibrate, frequency: 20, start_force: 1, middle_force: 1, end_force: 1}
"""
import logging
from dataclasses import dataclass, field

import yaml

from core.output import LightbarBehavior, LightbarColor, MicLed, OutputState, PlayerLed, PlayerLedBrightness
from core.triggers import (CALIBRATE, DEFAULT, ContinuousResistance, SectionResistance, TriggerEffect,
                           Vibrate)

LOG = logging.getLogger("dualsense.profile")

DEFAULT_POLL_INTERVAL_MS = 20


def _enum_member(enum_cls, value, key):
    if isinstance(value, enum_cls):
        return value
    if isinstance(value, str):
        try:
            return enum_cls[value.strip().upper()]
        except KeyError:
            pass
    names = ", ".join(m.lower() for m in enum_cls.__members__)
    raise ValueError(f"invalid {key} {value!r} (expected one of: {names})")


def _player_led(value) -> PlayerLed:
    if isinstance(value, int) and not isinstance(value, bool):
        if not 0 <= value <= int(PlayerLed.ALL):
            raise ValueError(f"invalid player_led bitmask {value:#x}")
        return PlayerLed(value)
    if isinstance(value, (list, tuple)):
        leds = PlayerLed.NONE
        for item in value:
            leds |= _enum_member(PlayerLed, item, "player_led")
        return leds
    return _enum_member(PlayerLed, value, "player_led")


def _float(data: dict, key: str, default: float = 0.0) -> float:
    value = data.get(key, default)
    try:
        return float(value)
    except (TypeError, ValueError):
        raise ValueError(f"{key} must be a number, got {value!r}") from None


def effect_from_dict(data) -> TriggerEffect:
    """Build a trigger effect from `{type: ..., <fields>}`; `None` means default."""
    if data is None:
        return DEFAULT
    if isinstance(data, str):
        data = {"type": data}
    if not isinstance(data, dict):
        raise ValueError(f"trigger effect must be a mapping, got {data!r}")

    kind = str(data.get("type", "default")).lower()
    if kind == "default":
        return DEFAULT
    if kind == "calibrate":
        return CALIBRATE
    if kind == "continuous":
        return ContinuousResistance(_float(data, "start_position"), _float(data, "force"))
    if kind == "section":
        return SectionResistance(_float(data, "start_position"), _float(data, "end_position"))
    if kind == "vibrate":
        return Vibrate(
            int(data.get("frequency", 0)),
            _float(data, "start_force"),
            _float(data, "middle_force"),
            _float(data, "end_force"),
            keep_effect=bool(data.get("keep_effect", True)),
        )
    raise ValueError(f"unknown trigger effect type {kind!r}")


def output_state_from_dict(data) -> OutputState:
    state = OutputState()
    if not data:
        return state
    if not isinstance(data, dict):
        raise ValueError(f"output section must be a mapping, got {data!r}")

    state.left_rumble = _float(data, "left_rumble")
    state.right_rumble = _float(data, "right_rumble")
    if "mic_led" in data:
        state.mic_led = _enum_member(MicLed, data["mic_led"], "mic_led")
    if "player_led" in data:
        state.player_led = _player_led(data["player_led"])
    if "player_led_brightness" in data:
        state.player_led_brightness = _enum_member(PlayerLedBrightness, data["player_led_brightness"],
                                                   "player_led_brightness")
    if "lightbar_behavior" in data:
        state.lightbar_behavior = _enum_member(LightbarBehavior, data["lightbar_behavior"], "lightbar_behavior")
    if "lightbar_color" in data:
        rgb = data["lightbar_color"]
        if not isinstance(rgb, (list, tuple)) or len(rgb) != 3:
            raise ValueError(f"lightbar_color must be [r, g, b], got {rgb!r}")
        state.lightbar_color = LightbarColor(*(float(c) for c in rgb))
    state.l2_effect = effect_from_dict(data.get("l2_effect"))
    state.r2_effect = effect_from_dict(data.get("r2_effect"))
    return state


@dataclass
class ControllerProfile:
    dead_zone: float = 0.0
    poll_interval_ms: int = DEFAULT_POLL_INTERVAL_MS
    output: OutputState = field(default_factory=OutputState)

    @classmethod
    def from_dict(cls, data) -> "ControllerProfile":
        data = data or {}
        if not isinstance(data, dict):
            raise ValueError(f"profile must be a mapping, got {type(data).__name__}")
        dead_zone = _float(data, "dead_zone")
        if not 0.0 <= dead_zone <= 1.0:
            raise ValueError(f"dead_zone must be within 0..1, got {dead_zone}")
        interval = int(data.get("poll_interval_ms", DEFAULT_POLL_INTERVAL_MS))
        if interval <= 0:
            raise ValueError(f"poll_interval_ms must be positive, got {interval}")
        return cls(dead_zone=dead_zone, poll_interval_ms=interval,
                   output=output_state_from_dict(data.get("output")))

    @classmethod
    def load_profile(cls, path: str) -> "ControllerProfile":
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
        profile = cls.from_dict(data)
        LOG.info("loaded profile %s (dead_zone=%.2f, poll_interval_ms=%d)",
                 path, profile.dead_zone, profile.poll_interval_ms)
        return profile

    def apply(self, controller):
        """Copy the dead zone and output state onto a DualSense."""
        controller.dead_zone = self.dead_zone
        controller.output_state = self.output.copy()

    def start_polling(self, controller, callback=None):
        """Apply the profile, then poll the controller at `poll_interval_ms`.

        Returns the poller handle from `DualSense.begin_polling`.
        """
        self.apply(controller)
        return controller.begin_polling(self.poll_interval_ms, callback)

"""State models and lightweight DTOs"""
import math
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Dict, List, Mapping


@dataclass(frozen=True)
class Vec2:
    x: float = 0.0
    y: float = 0.0

    def magnitude(self) -> float:
        return math.sqrt(self.x * self.x + self.y * self.y)

    def normalize(self) -> "Vec2":
        m = self.magnitude()
        return Vec2(self.x / m, self.y / m)

    def __neg__(self) -> "Vec2":
        return Vec2(-self.x, -self.y)


@dataclass(frozen=True)
class Vec3:
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0

    def magnitude(self) -> float:
        return math.sqrt(self.x * self.x + self.y * self.y + self.z * self.z)

    def normalize(self) -> "Vec3":
        m = self.magnitude()
        return Vec3(self.x / m, self.y / m, self.z / m)

    def __neg__(self) -> "Vec3":
        return Vec3(-self.x, -self.y, -self.z)


@dataclass(frozen=True)
class Touch:
    x: int = 0  # 0..4095
    y: int = 0  # 0..4095
    is_down: bool = False
    id: int = 0  # rolling touch-session counter


@dataclass(frozen=True)
class BatteryStatus:
    is_charging: bool = False
    is_fully_charged: bool = False
    level: int = 0  # 0..10


class Button(Enum):
    """Every digital button tracked in an input report.

    Both `InputState.buttons` and `ButtonDelta` are keyed by this enum.
    """
    SQUARE = "square"
    CROSS = "cross"
    CIRCLE = "circle"
    TRIANGLE = "triangle"
    DPAD_UP = "dpad_up"
    DPAD_RIGHT = "dpad_right"
    DPAD_DOWN = "dpad_down"
    DPAD_LEFT = "dpad_left"
    L1 = "l1"
    R1 = "r1"
    L2 = "l2"
    R2 = "r2"
    CREATE = "create"
    MENU = "menu"
    L3 = "l3"
    R3 = "r3"
    LOGO = "logo"
    TOUCHPAD = "touchpad"
    MIC = "mic"


def _released_buttons() -> Mapping["Button", bool]:
    return MappingProxyType({b: False for b in Button})


@dataclass(frozen=True)
class InputState:
    """One decoded input report. The default instance is the idle controller."""
    left_stick: Vec2 = Vec2()
    right_stick: Vec2 = Vec2()
    l2: float = 0.0  # analog, 0..1
    r2: float = 0.0
    buttons: Mapping[Button, bool] = field(default_factory=_released_buttons, hash=False)
    touchpad1: Touch = Touch()
    touchpad2: Touch = Touch()
    gyro: Vec3 = Vec3()
    accelerometer: Vec3 = Vec3()
    battery: BatteryStatus = BatteryStatus()
    is_headphone_connected: bool = False

    def is_pressed(self, button: Button) -> bool:
        return self.buttons[button]

    def pressed_buttons(self) -> List[Button]:
        return [b for b in Button if self.buttons[b]]


class ButtonDeltaState(Enum):
    NO_CHANGE = "no_change"
    PRESSED = "pressed"
    RELEASED = "released"


@dataclass(frozen=True)
class ButtonDelta:
    changes: Mapping[Button, ButtonDeltaState]
    has_changes: bool

    def __getitem__(self, button: Button) -> ButtonDeltaState:
        return self.changes[button]

    def pressed(self) -> List[Button]:
        return [b for b in Button if self.changes[b] is ButtonDeltaState.PRESSED]

    def released(self) -> List[Button]:
        return [b for b in Button if self.changes[b] is ButtonDeltaState.RELEASED]


def compute_button_delta(prev: InputState, nxt: InputState) -> ButtonDelta:
    """Classify every button as pressed, released or unchanged between two reads."""
    changes: Dict[Button, ButtonDeltaState] = {}
    has_changes = False
    for button in Button:
        old = prev.buttons[button]
        new = nxt.buttons[button]
        if old == new:
            changes[button] = ButtonDeltaState.NO_CHANGE
        else:
            changes[button] = ButtonDeltaState.PRESSED if new else ButtonDeltaState.RELEASED
            has_changes = True
    return ButtonDelta(MappingProxyType(changes), has_changes)

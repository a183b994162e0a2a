"""Byte <-> float helpers shared by the input parser and output builder"""


def to_signed_float(b: int) -> float:
    """Map a raw byte 0..255 onto -1.0..1.0 (128 lands just above zero)."""
    return (b / 255.0 - 0.5) * 2.0


def to_unsigned_float(b: int) -> float:
    return b / 255.0


def has_flag(b: int, flag: int) -> bool:
    return (b & flag) == flag


def unsigned_to_byte(f: float) -> int:
    """Quantize 0.0..1.0 to a byte. Out of range values are clamped.

    Rounds half up, so 0.5 -> 128.
    """
    f = max(0.0, min(1.0, f))
    return int(f * 255 + 0.5)

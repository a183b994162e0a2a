"""Transport framing for DualSense reports

USB and Bluetooth wrap the same 47-byte output payload differently, and
prefix input reports with a different number of report id bytes.
"""
import struct
import zlib
from enum import Enum

USB_REPORT_SIZE = 64
BLUETOOTH_REPORT_SIZE = 78

USB_INPUT_REPORT_ID = 0x01
BLUETOOTH_INPUT_REPORT_ID = 0x31

USB_OUTPUT_REPORT_ID = 0x02
BLUETOOTH_OUTPUT_REPORT_ID = 0x31
BLUETOOTH_OUTPUT_FLAGS = 0x02

OUTPUT_PAYLOAD_SIZE = 47
BLUETOOTH_CRC_OFFSET = 74


class IoMode(Enum):
    USB = "usb"
    BLUETOOTH = "bluetooth"
    UNKNOWN = "unknown"

    @classmethod
    def from_read_buffer_size(cls, size) -> "IoMode":
        if size == USB_REPORT_SIZE:
            return cls.USB
        if size == BLUETOOTH_REPORT_SIZE:
            return cls.BLUETOOTH
        return cls.UNKNOWN


def input_report_offset(data) -> int:
    """Number of leading report id bytes to skip in a raw input report."""
    if not data:
        return 0
    if data[0] == USB_INPUT_REPORT_ID:
        return 1
    if data[0] == BLUETOOTH_INPUT_REPORT_ID:
        return 2
    return 0


def strip_input_report(data) -> bytes:
    return bytes(data[input_report_offset(data):])


def build_output_report(io_mode: IoMode, payload: bytes, write_buffer_size: int) -> bytes:
    """Frame a 47-byte output payload for the given transport.

    USB:       02 <payload> 00...
    Bluetooth: 31 02 <payload> 00... <crc32 LE of bytes 0..73 at 74>
    """
    if len(payload) != OUTPUT_PAYLOAD_SIZE:
        raise ValueError(f"output payload must be {OUTPUT_PAYLOAD_SIZE} bytes, got {len(payload)}")

    if io_mode is IoMode.USB:
        header = bytes([USB_OUTPUT_REPORT_ID])
        needed = len(header) + OUTPUT_PAYLOAD_SIZE
    elif io_mode is IoMode.BLUETOOTH:
        header = bytes([BLUETOOTH_OUTPUT_REPORT_ID, BLUETOOTH_OUTPUT_FLAGS])
        needed = BLUETOOTH_CRC_OFFSET + 4
    else:
        raise ValueError(f"can't build an output report for io mode {io_mode}")

    if write_buffer_size < needed:
        raise ValueError(f"write buffer of {write_buffer_size} bytes can't hold a {io_mode.value} "
                         f"output report ({needed} bytes)")

    frame = bytearray(write_buffer_size)
    frame[0:len(header)] = header
    frame[len(header):len(header) + OUTPUT_PAYLOAD_SIZE] = payload

    if io_mode is IoMode.BLUETOOTH:
        crc = zlib.crc32(bytes(frame[:BLUETOOTH_CRC_OFFSET])) & 0xFFFFFFFF
        struct.pack_into("<I", frame, BLUETOOTH_CRC_OFFSET, crc)

    return bytes(frame)

"""hidapi-backed transport for DualSense controllers

Finds controllers with `hid.enumerate` and talks to them with plain
write/read calls on a `hid.device`. Report sizes aren't exposed by hidapi, so
they are fixed from the bus the device is attached through:

  USB        64-byte input, 48-byte output (report id + 47-byte payload)
  Bluetooth  78-byte input, 78-byte output (with CRC32 trailer)
"""
import logging
from typing import List

try:
    import hid
except Exception:
    hid = None

from core.framing import BLUETOOTH_REPORT_SIZE, USB_REPORT_SIZE
from core.transport import DeviceDescriptor, TransferError, TransferResult, Transport

LOG = logging.getLogger("dualsense.hid")

SONY_VENDOR_ID = 0x054C
DUALSENSE_PRODUCT_ID = 0x0CE6

USB_WRITE_SIZE = 48
BLUETOOTH_WRITE_SIZE = BLUETOOTH_REPORT_SIZE

# hid_bus_type values reported by hidapi >= 0.13
BUS_USB = 0x01
BUS_BLUETOOTH = 0x02

DEFAULT_READ_TIMEOUT_MS = 1000


def _is_bluetooth(info: dict) -> bool:
    bus = info.get("bus_type")
    if bus is not None:
        return int(bus) == BUS_BLUETOOTH
    # older hidapi: Bluetooth HID nodes have no USB interface number
    return info.get("interface_number", 0) == -1


def describe(info: dict) -> DeviceDescriptor:
    """Build a descriptor from one `hid.enumerate()` entry."""
    if _is_bluetooth(info):
        read_size, write_size = BLUETOOTH_REPORT_SIZE, BLUETOOTH_WRITE_SIZE
    else:
        read_size, write_size = USB_REPORT_SIZE, USB_WRITE_SIZE
    return DeviceDescriptor(
        path=info["path"],
        read_buffer_size=read_size,
        write_buffer_size=write_size,
        product=info.get("product_string") or "",
        serial_number=info.get("serial_number") or "",
        opener=HidTransport,
    )


def list_devices(vendor_id=SONY_VENDOR_ID, product_id=DUALSENSE_PRODUCT_ID) -> List[DeviceDescriptor]:
    """Describe every connected DualSense."""
    if hid is None:
        LOG.warning("hidapi not available - no controllers can be listed")
        return []
    found = [describe(info) for info in hid.enumerate(vendor_id, product_id)]
    LOG.info("found %d DualSense device(s)", len(found))
    for d in found:
        LOG.debug("  %s read=%d write=%d", d.path, d.read_buffer_size, d.write_buffer_size)
    return found


class HidTransport(Transport):
    """Transport over a hidapi device handle opened by path."""

    def __init__(self, descriptor: DeviceDescriptor, timeout_ms: int = DEFAULT_READ_TIMEOUT_MS):
        self._descriptor = descriptor
        self._timeout_ms = timeout_ms
        self._device = None

    @property
    def read_buffer_size(self) -> int:
        return self._descriptor.read_buffer_size

    @property
    def write_buffer_size(self) -> int:
        return self._descriptor.write_buffer_size

    def is_open(self) -> bool:
        return self._device is not None

    def open(self):
        if hid is None:
            raise RuntimeError("hidapi not installed. Run: pip install hidapi")
        device = hid.device()
        device.open_path(self._descriptor.path)
        self._device = device
        LOG.info("opened %s %s", self._descriptor.product or "DualSense", self._descriptor.path)

    def close(self):
        if self._device is not None:
            try:
                self._device.close()
            finally:
                self._device = None

    def transfer(self, out_bytes: bytes) -> TransferResult:
        if self._device is None:
            raise TransferError("device is not open")
        try:
            written = self._device.write(out_bytes)
            if written < 0:
                raise TransferError(f"write failed: {self._device.error()}")
            data = self._device.read(self.read_buffer_size, timeout_ms=self._timeout_ms)
        except TransferError:
            raise
        except (OSError, ValueError) as e:
            raise TransferError(f"transfer failed: {e}") from e
        return TransferResult(len(data), bytes(data))

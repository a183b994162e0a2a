import threading

import pytest

from core.transport import TransferResult, Transport

USB_READ = 64
USB_WRITE = 48
BT_SIZE = 78


def make_report(sticks=(0x80, 0x80, 0x80, 0x80), l2=0, r2=0, block1=0x08, block2=0, block3=0,
                touch1=0x80, touch2=0x80, gyro=(0, 0, 0), accel=(0, 0, 0), battery=0, misc=0,
                size=USB_READ - 1):
    """A de-framed input report with everything idle unless given."""
    data = bytearray(size)
    data[0:4] = bytes(sticks)
    data[4] = l2
    data[5] = r2
    data[7] = block1
    data[8] = block2
    data[9] = block3
    for i, v in enumerate(gyro):
        data[15 + 2 * i:17 + 2 * i] = int(v).to_bytes(2, "little", signed=True)
    for i, v in enumerate(accel):
        data[21 + 2 * i:23 + 2 * i] = int(v).to_bytes(2, "little", signed=True)
    data[32:36] = int(touch1).to_bytes(4, "little")
    data[36:40] = int(touch2).to_bytes(4, "little")
    data[52] = battery
    data[53] = misc
    return data


def usb_frame(report=None):
    return bytes([0x01]) + bytes(report if report is not None else make_report())


def bt_frame(report=None):
    report = report if report is not None else make_report(size=BT_SIZE - 2)
    return bytes([0x31, 0x00]) + bytes(report)


class FakeTransport(Transport):
    """In-memory transport replaying queued input reports.

    The last queued report repeats once the queue is down to one.
    """

    def __init__(self, read_size=USB_READ, write_size=USB_WRITE, reports=None, error=None):
        self._read_size = read_size
        self._write_size = write_size
        self._reports = list(reports) if reports else [usb_frame()]
        self._open = False
        self._lock = threading.Lock()
        self.error = error
        self.writes = []

    @property
    def read_buffer_size(self):
        return self._read_size

    @property
    def write_buffer_size(self):
        return self._write_size

    def is_open(self):
        return self._open

    def open(self):
        self._open = True

    def close(self):
        self._open = False

    def queue(self, *reports):
        with self._lock:
            self._reports.extend(reports)

    def transfer(self, out_bytes):
        with self._lock:
            self.writes.append(bytes(out_bytes))
            if self.error is not None:
                raise self.error
            data = self._reports.pop(0) if len(self._reports) > 1 else self._reports[0]
        return TransferResult(len(data), data)


@pytest.fixture
def usb_transport():
    return FakeTransport()


@pytest.fixture
def bt_transport():
    return FakeTransport(read_size=BT_SIZE, write_size=BT_SIZE, reports=[bt_frame()])

"""Base transport abstraction"""
import abc
from collections import namedtuple
from dataclasses import dataclass, field
from typing import Callable, Optional

TransferResult = namedtuple("TransferResult", ["bytes_transferred", "data"])


class TransferError(OSError):
    """A write/read exchange with the controller failed or came back short."""


class Transport(abc.ABC):
    """Blocking write-then-read channel to one controller.

    Buffer sizes are fixed when the device is discovered.
    """

    @property
    @abc.abstractmethod
    def read_buffer_size(self) -> int:
        raise NotImplementedError

    @property
    @abc.abstractmethod
    def write_buffer_size(self) -> int:
        raise NotImplementedError

    @abc.abstractmethod
    def is_open(self) -> bool:
        raise NotImplementedError

    @abc.abstractmethod
    def open(self):
        raise NotImplementedError

    @abc.abstractmethod
    def close(self):
        raise NotImplementedError

    @abc.abstractmethod
    def transfer(self, out_bytes: bytes) -> TransferResult:
        """Write `out_bytes`, then read one input report.

        Raises TransferError if either half of the exchange fails.
        """
        raise NotImplementedError


@dataclass
class DeviceDescriptor:
    path: bytes
    read_buffer_size: int
    write_buffer_size: int
    product: str = ""
    serial_number: str = ""
    opener: Optional[Callable[["DeviceDescriptor"], Transport]] = field(default=None, repr=False, compare=False)

    def open_transport(self) -> Transport:
        if self.opener is None:
            raise RuntimeError(f"no transport factory for device {self.path!r}")
        return self.opener(self)

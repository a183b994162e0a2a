"""DualSense controller: one write/read exchange per poll over any Transport

Each cycle sends the current `OutputState` (rumble, LEDs, trigger effects) and
reads back one input report, which becomes the new `InputState`.

    ds = DualSense(transport, dead_zone=0.1)
    ds.acquire()
    ds.output_state.lightbar_behavior = LightbarBehavior.CUSTOM_COLOR
    ds.begin_polling(20, lambda c: print(c.input_state.left_stick))
    ...
    ds.end_polling()
    ds.release()
"""
import logging
from typing import Callable, List, Optional

from core.framing import IoMode, build_output_report, strip_input_report
from core.input_report import parse_input_report
from core.output import OutputState
from core.poller import Poller
from core.state import ButtonDelta, InputState, compute_button_delta
from core.transport import Transport, TransferError
from devices.hid_transport import list_devices

LOG = logging.getLogger("dualsense.controller")

StatePolledCallback = Callable[["DualSense"], None]
ButtonChangedCallback = Callable[["DualSense", ButtonDelta], None]


class UnsupportedIoModeError(ValueError):
    """The transport's report size matches neither USB nor Bluetooth."""


class DualSense:
    def __init__(self, transport: Transport, dead_zone: float = 0.0):
        self._transport = transport
        self._read_size = transport.read_buffer_size
        self._write_size = transport.write_buffer_size

        self.io_mode = IoMode.from_read_buffer_size(self._read_size)
        if self.io_mode is IoMode.UNKNOWN:
            raise UnsupportedIoModeError(
                f"can't initialize device with {self._read_size}-byte reports - "
                f"supported IO modes are USB and Bluetooth")

        # stick axes with magnitude below this read as 0
        self.dead_zone = dead_zone
        self.output_state = OutputState()
        self.input_state = InputState()

        self._subs: List[StatePolledCallback] = []
        self._button_subs: List[ButtonChangedCallback] = []
        self._callback: Optional[StatePolledCallback] = None
        self._poller: Optional[Poller] = None
        self._last_error: Optional[BaseException] = None

    def __repr__(self):
        return f"DualSense Controller ({self.io_mode.value})"

    @property
    def transport(self) -> Transport:
        return self._transport

    @property
    def is_polling(self) -> bool:
        return self._poller is not None

    @property
    def poll_error(self) -> Optional[BaseException]:
        """The exception that stopped the current (or last) polling run, if any."""
        if self._poller is not None:
            return self._poller.error
        return self._last_error

    def acquire(self):
        """Open the underlying transport if it isn't already."""
        if not self._transport.is_open():
            self._transport.open()
            LOG.info("%r acquired", self)

    def release(self):
        if self._transport.is_open():
            self._transport.close()
            LOG.info("%r released", self)

    def subscribe(self, callback: StatePolledCallback):
        """Register `callback(controller)`, called after every polling cycle."""
        self._subs.append(callback)

    def subscribe_button_changes(self, callback: ButtonChangedCallback):
        """Register `callback(controller, delta)`, called when any button changes while polling."""
        self._button_subs.append(callback)

    def output_report(self) -> bytes:
        """The framed output report for the current output state."""
        return build_output_report(self.io_mode, self.output_state.build_hid_output_buffer(),
                                   self._write_size)

    def _read_write(self) -> InputState:
        result = self._transport.transfer(self.output_report())
        if result.bytes_transferred != self._read_size:
            raise TransferError(f"failed to read data - buffer size mismatch "
                                f"(got {result.bytes_transferred}, expected {self._read_size})")
        data = strip_input_report(result.data)
        return parse_input_report(data, self.io_mode, self.dead_zone)

    def read_write_once(self) -> InputState:
        """Send the output state, read one report and store it as `input_state`."""
        self.input_state = self._read_write()
        return self.input_state

    def begin_polling(self, interval_ms: int, callback: Optional[StatePolledCallback] = None) -> Poller:
        """Start polling on a background thread and return its handle.

        The first cycle runs immediately. `callback(controller)` runs after
        each cycle and may change `output_state` for the next one.
        """
        if self._poller is not None:
            raise RuntimeError("can't begin polling after it's already started")
        self._callback = callback
        self._last_error = None
        self._poller = Poller(interval_ms, self._poll_cycle, name="DualSensePoller")
        self._poller.start()
        LOG.info("%r polling every %d ms", self, interval_ms)
        return self._poller

    def end_polling(self):
        """Stop polling. No callback runs after this returns."""
        if self._poller is None:
            raise RuntimeError("can't end polling without starting polling first")
        poller = self._poller
        poller.cancel()
        self._last_error = poller.error
        self._poller = None
        self._callback = None
        LOG.info("%r polling stopped", self)

    def _poll_cycle(self, poller: Poller):
        next_state = self._read_write()
        prev_state = self.input_state
        self.input_state = next_state
        if poller.cancelled:
            return

        # only diff when someone is listening
        if self._button_subs:
            delta = compute_button_delta(prev_state, next_state)
            if delta.has_changes:
                LOG.debug("button changes: pressed=%s released=%s",
                          [b.value for b in delta.pressed()], [b.value for b in delta.released()])
                for cb in list(self._button_subs):
                    if poller.cancelled:
                        return
                    cb(self, delta)

        for cb in list(self._subs):
            if poller.cancelled:
                return
            cb(self)

        callback = self._callback
        if callback is not None and not poller.cancelled:
            callback(self)


def enumerate_controllers(dead_zone: float = 0.0) -> List[DualSense]:
    """Wrap every connected DualSense (USB or Bluetooth) in a controller."""
    controllers = []
    for descriptor in list_devices():
        try:
            controllers.append(DualSense(descriptor.open_transport(), dead_zone=dead_zone))
        except UnsupportedIoModeError as e:
            LOG.warning("skipping %s: %s", descriptor.path, e)
    return controllers

"""Cancellable periodic task running on its own thread"""
import logging
import threading
import time

LOG = logging.getLogger("dualsense.poller")


class Poller:
    """Runs `tick(poller)` immediately and then every `interval_ms`.

    The schedule is fixed-rate; a tick that overruns its slot delays the next
    one instead of queueing a burst. Any exception raised by `tick` stops the
    schedule and is kept in `error`.
    """

    def __init__(self, interval_ms, tick, name="Poller"):
        if interval_ms < 0:
            raise ValueError(f"polling interval must be >= 0 ms, got {interval_ms}")
        self.interval = interval_ms / 1000.0
        self.error = None
        self._tick = tick
        self._name = name
        self._stop = threading.Event()
        self._t = None

    @property
    def cancelled(self) -> bool:
        return self._stop.is_set()

    def is_running(self) -> bool:
        return self._t is not None and self._t.is_alive()

    def start(self):
        if self._t is not None:
            raise RuntimeError("poller already started")
        self._stop.clear()
        self._t = threading.Thread(target=self._loop, name=self._name, daemon=True)
        self._t.start()

    def cancel(self):
        """Stop scheduling and wait for a tick in flight to finish.

        Safe to call from inside a tick; the wait is skipped there.
        """
        self._stop.set()
        if self._t is not None and self._t is not threading.current_thread():
            self._t.join()

    def _loop(self):
        next_tick = time.monotonic()
        while not self._stop.is_set():
            try:
                self._tick(self)
            except Exception as e:
                LOG.exception("%s: cycle failed, no further cycles will run", self._name)
                self.error = e
                return
            next_tick += self.interval
            delay = next_tick - time.monotonic()
            if delay < 0:
                next_tick = time.monotonic()
                delay = 0
            self._stop.wait(delay)

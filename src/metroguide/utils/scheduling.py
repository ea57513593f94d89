"""
Delayed-callback scheduling.

Timers never run callbacks themselves: they hand the callback to a
``dispatch`` function (normally the session queue) so every state mutation
still happens on the single consumer thread.
"""

import threading
from typing import Callable, Optional


class TimerHandle:
    """Cancellable handle returned by a scheduler."""

    def __init__(self, timer: Optional[threading.Timer] = None):
        self._timer = timer
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True
        if self._timer is not None:
            self._timer.cancel()


class ThreadingScheduler:
    """
    Scheduler backed by ``threading.Timer``.

    Args:
        dispatch: Called on the timer thread with the callback to run.
                  Defaults to calling the callback directly.
    """

    def __init__(self, dispatch: Optional[Callable[[Callable[[], None]], None]] = None):
        self._dispatch = dispatch or (lambda fn: fn())

    def set_dispatch(self, dispatch: Callable[[Callable[[], None]], None]) -> None:
        self._dispatch = dispatch

    def call_later(self, delay_s: float, callback: Callable[[], None]) -> TimerHandle:
        handle = TimerHandle()

        def fire():
            if not handle.cancelled:
                self._dispatch(lambda: None if handle.cancelled else callback())

        timer = threading.Timer(max(0.0, delay_s), fire)
        timer.daemon = True
        handle._timer = timer
        timer.start()
        return handle

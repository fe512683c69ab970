"""Cancellable timers backed by Socket.IO background tasks.

Every timer is a :class:`TimerHandle` kept on the owning room so room
teardown can cancel it. Callbacks re-check room liveness themselves; a
cancelled handle never fires again.
"""

import logging
import threading
from typing import Callable, Optional


class TimerHandle:
    def __init__(self, name: str):
        self.name = name
        self._cancelled = threading.Event()
        self.fired = False

    def cancel(self) -> None:
        # Cancelling twice, or after firing, is a no-op
        self._cancelled.set()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    @property
    def active(self) -> bool:
        return not self.cancelled and not self.fired

    def __repr__(self):
        state = 'cancelled' if self.cancelled else ('fired' if self.fired else 'pending')
        return f"TimerHandle({self.name!r}, {state})"


class BackgroundScheduler:
    """Runs timers on the Socket.IO server's background task machinery."""

    def __init__(self, socketio, logger: Optional[logging.Logger] = None):
        self._socketio = socketio
        self._logger = logger or logging.getLogger(__name__)

    def schedule(self, delay: float, callback: Callable[[], None], *, interval: Optional[float] = None,
                 name: str = 'timer') -> TimerHandle:
        """Call ``callback`` after ``delay`` seconds, then every ``interval`` if given."""
        handle = TimerHandle(name)
        self._socketio.start_background_task(self._run, handle, delay, callback, interval)
        self._logger.debug(f"[timer-set] name={name} delay={delay}s interval={interval}")
        return handle

    def _run(self, handle: TimerHandle, delay: float, callback, interval) -> None:
        self._socketio.sleep(delay)
        while not handle.cancelled:
            try:
                callback()
            except Exception:
                self._logger.exception(f"[timer-error] name={handle.name}")
            if interval is None:
                handle.fired = True
                return
            self._socketio.sleep(interval)
        self._logger.debug(f"[timer-abort] name={handle.name} cancelled")

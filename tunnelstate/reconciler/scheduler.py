"""Single-slot cancellable deferred calls."""

from threading import RLock
from typing import Callable, Optional

from tunnelstate.reconciler.clock import Clock, SystemClock, TimerHandle


class Scheduler:
    """
    Run at most one deferred callback at a time.

    Scheduling a new call cancels whatever was pending on the same instance. The
    pending flag is cleared before the callback runs, so the callback may schedule
    again on this instance.

    The staleness check and the callback run under one lock. Owners that guard
    their own state with a lock pass it in, so a timer that fired while the owner
    was busy cannot act after newer input superseded it.
    """

    def __init__(self, clock: Optional[Clock] = None, lock: Optional[RLock] = None):
        self._clock = clock or SystemClock()
        self._lock = lock if lock is not None else RLock()
        self._handle: Optional[TimerHandle] = None
        self._generation = 0

    @property
    def is_pending(self) -> bool:
        """True while a call is armed and has neither fired nor been cancelled."""
        with self._lock:
            return self._handle is not None

    def schedule(self, callback: Callable[[], None], delay_ms: float) -> None:
        """Cancel any pending call, then invoke ``callback`` after ``delay_ms``."""
        with self._lock:
            self.cancel()
            self._generation += 1
            generation = self._generation

            def _fire():
                with self._lock:
                    # A superseded timer thread may still wake up; ignore it.
                    if generation != self._generation or self._handle is None:
                        return
                    self._handle = None
                    callback()

            self._handle = self._clock.call_later(delay_ms, _fire)

    def cancel(self) -> None:
        """Disarm the pending call, if any. Never invokes the callback."""
        with self._lock:
            if self._handle is not None:
                self._handle.cancel()
                self._handle = None
            self._generation += 1


__all__ = ["Scheduler"]

"""Injectable time sources for deferred calls."""

import heapq
import itertools
import time
from threading import RLock, Timer
from typing import Callable, List, Optional, Protocol, Tuple


class TimerHandle(Protocol):
    """Handle to an armed one-shot timer."""

    def cancel(self) -> None: ...


class Clock(Protocol):
    """Source of monotonic time and one-shot timers, in milliseconds."""

    def now_ms(self) -> float: ...

    def call_later(self, delay_ms: float, callback: Callable[[], None]) -> TimerHandle: ...


class SystemClock:
    """
    Wall-clock implementation backed by ``time.monotonic`` and daemon ``threading.Timer`` threads.

    Callbacks run on the timer's own thread; callers that share state with them must
    serialise access themselves.
    """

    def now_ms(self) -> float:
        return time.monotonic() * 1000.0

    def call_later(self, delay_ms: float, callback: Callable[[], None]) -> Timer:
        timer = Timer(max(delay_ms, 0.0) / 1000.0, callback)
        timer.daemon = True
        timer.name = "TunnelStateTimer"
        timer.start()
        return timer


class _VirtualTimer:
    """Timer entry owned by a VirtualClock."""

    __slots__ = ("deadline", "callback", "cancelled")

    def __init__(self, deadline: float, callback: Callable[[], None]):
        self.deadline = deadline
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class VirtualClock:
    """
    Deterministic clock whose time only moves when told to.

    Timers fire synchronously from ``advance``/``run_until_idle`` in deadline order,
    ties broken by arming order. Timers armed by a firing callback are honoured within
    the same ``advance`` call if they fall due before its end.
    """

    def __init__(self, start_ms: float = 0.0):
        """
        Create a virtual clock.

        Parameters:
            start_ms (float): Initial value returned by ``now_ms``.
        """
        self._now = float(start_ms)
        self._lock = RLock()
        self._queue: List[Tuple[float, int, _VirtualTimer]] = []
        self._sequence = itertools.count()

    def now_ms(self) -> float:
        with self._lock:
            return self._now

    def call_later(self, delay_ms: float, callback: Callable[[], None]) -> _VirtualTimer:
        with self._lock:
            timer = _VirtualTimer(self._now + max(delay_ms, 0.0), callback)
            heapq.heappush(self._queue, (timer.deadline, next(self._sequence), timer))
            return timer

    @property
    def pending(self) -> int:
        """Number of armed timers that have neither fired nor been cancelled."""
        with self._lock:
            return sum(1 for _, _, timer in self._queue if not timer.cancelled)

    def _pop_due(self, limit: Optional[float]) -> Optional[_VirtualTimer]:
        with self._lock:
            while self._queue:
                deadline, _, timer = self._queue[0]
                if timer.cancelled:
                    heapq.heappop(self._queue)
                    continue
                if limit is not None and deadline > limit:
                    return None
                heapq.heappop(self._queue)
                self._now = max(self._now, deadline)
                return timer
            return None

    def advance(self, delta_ms: float) -> None:
        """Move time forward by ``delta_ms``, firing every timer that falls due on the way."""
        if delta_ms < 0:
            raise ValueError(f"delta_ms must be >= 0, got {delta_ms}")
        with self._lock:
            target = self._now + delta_ms
        self.advance_to(target)

    def advance_to(self, target_ms: float) -> None:
        """Move time forward to ``target_ms`` (never backwards), firing due timers."""
        while True:
            timer = self._pop_due(target_ms)
            if timer is None:
                break
            timer.callback()
        with self._lock:
            self._now = max(self._now, target_ms)

    def run_until_idle(self, max_timers: int = 10000) -> None:
        """
        Fire pending timers until none remain, moving time to each deadline.

        Raises:
            RuntimeError: If more than ``max_timers`` fire, which indicates a callback
                that keeps re-arming itself.
        """
        for _ in range(max_timers):
            timer = self._pop_due(None)
            if timer is None:
                return
            timer.callback()
        raise RuntimeError(f"Timers still pending after firing {max_timers} of them")


__all__ = ["Clock", "TimerHandle", "SystemClock", "VirtualClock"]

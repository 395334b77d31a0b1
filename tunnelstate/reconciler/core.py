"""Status reconciler: debounced, optimistic tunnel status for the UI."""

from threading import RLock
from typing import Optional, Union

from tunnelstate.reconciler.clock import Clock, SystemClock
from tunnelstate.reconciler.constants import (
    ERROR_UNKNOWN_EXPECTATION,
    ReconcilerConfig,
    logger,
)
from tunnelstate.reconciler.eligibility import ActionEligibility
from tunnelstate.reconciler.error_handler import ErrorHandler
from tunnelstate.reconciler.scheduler import Scheduler
from tunnelstate.reconciler.sinks import StatusSink
from tunnelstate.reconciler.state import ExpectedStatus, TunnelStatus


class StatusReconciler:
    """
    Turn a bursty stream of service notifications into one committed status.

    Two timelines meet here. The service reports what the tunnel is doing, possibly
    in bursts; the user asks for transitions and expects the UI to react at once.

    - Notifications arriving within the debounce window of the last processed one
      are deferred, and only the newest deferred notification is acted on.
    - ``expect_next_status`` shows an optimistic status immediately and keeps the
      previous status as a fallback. The fallback is committed if the service has
      not confirmed the assumption before the fallback timeout.
    - A disconnect the service performs in order to reconnect is shown as
      ``connecting`` straight away.

    All entry points and timer callbacks share one reentrant lock, so callers may
    use a clock whose timers fire on other threads.
    """

    def __init__(
        self,
        sink: StatusSink,
        *,
        clock: Optional[Clock] = None,
        config: Optional[type] = None,
        eligibility: Optional[ActionEligibility] = None,
        debounce_delay_ms: Optional[float] = None,
        fallback_timeout_ms: Optional[float] = None,
    ):
        """
        Create a reconciler that reports committed statuses to ``sink``.

        Parameters:
            sink (StatusSink): Receives each committed status, synchronously.
            clock (Optional[Clock]): Time source; defaults to a SystemClock.
            config (Optional[type]): Class providing DEBOUNCE_DELAY_MS and FALLBACK_TIMEOUT_MS;
                defaults to ReconcilerConfig.
            eligibility (Optional[ActionEligibility]): Queries backing the allow_* methods.
            debounce_delay_ms (Optional[float]): Override for the debounce window.
            fallback_timeout_ms (Optional[float]): Override for the fallback timeout.

        Raises:
            ValueError: If either delay is not positive.
        """
        config = config or ReconcilerConfig
        self.debounce_delay_ms = (
            debounce_delay_ms
            if debounce_delay_ms is not None
            else config.DEBOUNCE_DELAY_MS
        )
        self.fallback_timeout_ms = (
            fallback_timeout_ms
            if fallback_timeout_ms is not None
            else config.FALLBACK_TIMEOUT_MS
        )
        if self.debounce_delay_ms <= 0:
            raise ValueError(
                f"debounce_delay_ms must be > 0, got {self.debounce_delay_ms}"
            )
        if self.fallback_timeout_ms <= 0:
            raise ValueError(
                f"fallback_timeout_ms must be > 0, got {self.fallback_timeout_ms}"
            )

        self._sink = sink
        self._clock = clock or SystemClock()
        self._eligibility = eligibility or ActionEligibility()
        self._lock = RLock()
        self._closed = False

        self._status = TunnelStatus.disconnected()
        # Status to restore if the assumed next status is not reached in time.
        self._fallback: Optional[TunnelStatus] = None
        self._fallback_scheduler = Scheduler(self._clock, lock=self._lock)

        self._last_processed_ms = self._clock.now_ms()
        self._debounce_scheduler = Scheduler(self._clock, lock=self._lock)

    @property
    def status(self) -> TunnelStatus:
        """The committed status, i.e. the last one handed to the sink."""
        with self._lock:
            return self._status

    @property
    def fallback(self) -> Optional[TunnelStatus]:
        with self._lock:
            return self._fallback

    @property
    def has_pending_fallback(self) -> bool:
        """True while the fallback timer is armed."""
        return self._fallback_scheduler.is_pending

    @property
    def is_debouncing(self) -> bool:
        return self._debounce_scheduler.is_pending

    @property
    def closed(self) -> bool:
        with self._lock:
            return self._closed

    def reset_fallback(self) -> None:
        """Drop any optimistic assumption without touching the committed status."""
        with self._lock:
            self._fallback_scheduler.cancel()
            self._fallback = None

    def expect_next_status(self, kind: Union[ExpectedStatus, str]) -> None:
        """
        Show the status a user action is expected to produce, before the service confirms it.

        The currently committed status becomes the fallback, the assumed status is
        committed, and the fallback timer is (re)armed.

        Raises:
            ValueError: If ``kind`` is not an ExpectedStatus or one of its values.
        """
        try:
            kind = ExpectedStatus(kind)
        except ValueError as e:
            raise ValueError(ERROR_UNKNOWN_EXPECTATION.format(kind)) from e

        with self._lock:
            if self._closed:
                logger.debug("Ignoring expected %s on closed reconciler", kind.value)
                return
            self._fallback = self._status
            if kind == ExpectedStatus.DISCONNECTING:
                self._commit(TunnelStatus.disconnecting())
            else:
                self._commit(TunnelStatus.connecting())
            logger.debug(
                "Expecting %s; fallback %s armed for %d ms",
                kind.value,
                self._fallback,
                self.fallback_timeout_ms,
            )
            self._fallback_scheduler.schedule(
                self._on_fallback_timeout, self.fallback_timeout_ms
            )

    def handle_new_status(self, new_status: TunnelStatus) -> None:
        """Process a status notification from the service."""
        with self._lock:
            if self._closed:
                return

            # Only act once notifications have been quiet for a full window, and then
            # only on the newest one.
            now = self._clock.now_ms()
            if (
                now - self._last_processed_ms < self.debounce_delay_ms
                or self._debounce_scheduler.is_pending
            ):
                logger.debug("Debouncing status notification %s", new_status)
                self._debounce_scheduler.schedule(
                    lambda: self.handle_new_status(new_status),
                    self.debounce_delay_ms,
                )
                return

            self._last_processed_ms = now

            if self._fallback is not None:
                if new_status.state == self._status.state or new_status.is_error:
                    logger.debug("Assumed status confirmed by %s", new_status)
                    self.reset_fallback()
                else:
                    # Keep showing the assumed status. The fallback timer is not
                    # re-armed; the deadline from expect_next_status still applies.
                    logger.debug("Status %s stored as fallback", new_status)
                    self._fallback = new_status
                    return

            if new_status.is_reconnecting:
                self.expect_next_status(ExpectedStatus.CONNECTING)
                self._fallback = new_status
            else:
                self._commit(new_status)

    def allow_connect(self, service_reachable: bool, logged_in: bool) -> bool:
        return self._eligibility.can_connect(
            service_reachable, logged_in, self.status.state
        )

    def allow_reconnect(self, service_reachable: bool, logged_in: bool) -> bool:
        return self._eligibility.can_reconnect(
            service_reachable, logged_in, self.status.state
        )

    def allow_disconnect(self, service_reachable: bool, logged_in: bool = True) -> bool:
        # Being logged in is not required to tear a tunnel down.
        return self._eligibility.can_disconnect(service_reachable, self.status.state)

    def close(self) -> None:
        """Cancel both timers; later notifications and timer firings are ignored."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
            ErrorHandler.safe_cleanup(
                self._debounce_scheduler.cancel, "debounce timer cancel"
            )
            ErrorHandler.safe_cleanup(
                self._fallback_scheduler.cancel, "fallback timer cancel"
            )
            self._fallback = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, trace):
        self.close()

    def _on_fallback_timeout(self) -> None:
        with self._lock:
            if self._closed or self._fallback is None:
                return
            fallback, self._fallback = self._fallback, None
            logger.debug("Assumed status not reached; reverting to %s", fallback)
            self._commit(fallback)

    def _commit(self, status: TunnelStatus) -> None:
        previous = self._status
        self._status = status
        logger.debug("Status commit: %s → %s", previous, status)
        ErrorHandler.safe_execute(
            lambda: self._sink.on_status_changed(status),
            error_msg="Status sink failed",
        )

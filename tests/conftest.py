"""
Shared pytest fixtures for tunnel status tests.
"""

from typing import List

import pytest  # type: ignore[import-untyped]  # pylint: disable=E0401
from pubsub import pub

from tunnelstate.reconciler import StatusReconciler, TunnelStatus, VirtualClock

# Comfortably past the 150 ms debounce window measured from construction.
SETTLE_MS = 200


class RecordingSink:
    """StatusSink that remembers every status it receives."""

    def __init__(self):
        self.statuses: List[TunnelStatus] = []

    def on_status_changed(self, status: TunnelStatus) -> None:
        self.statuses.append(status)

    @property
    def last(self) -> TunnelStatus:
        return self.statuses[-1]

    @property
    def tags(self):
        return [status.state for status in self.statuses]


@pytest.fixture
def clock():
    """Virtual clock starting at 0 ms."""
    return VirtualClock()


@pytest.fixture
def sink():
    return RecordingSink()


@pytest.fixture
def make_reconciler(clock, sink):
    """
    Factory for reconcilers bound to the shared virtual clock and recording sink.

    Reconcilers created through the factory are closed at teardown.
    """
    created = []

    def _make(**kwargs):
        kwargs.setdefault("clock", clock)
        reconciler = StatusReconciler(kwargs.pop("sink", sink), **kwargs)
        created.append(reconciler)
        return reconciler

    yield _make
    for reconciler in created:
        reconciler.close()


@pytest.fixture
def reconciler(make_reconciler, clock):
    """Reconciler whose debounce window has already elapsed, so the next notification is processed at once."""
    instance = make_reconciler()
    clock.advance(SETTLE_MS)
    return instance


@pytest.fixture(autouse=True)
def clean_pubsub():
    """Drop listeners left behind by a test so they cannot see later messages."""
    yield
    pub.unsubAll()

"""Consumers of committed tunnel statuses."""

from typing import Callable, Protocol

from pubsub import pub

from tunnelstate.reconciler.constants import STATUS_CHANGED_TOPIC
from tunnelstate.reconciler.state import TunnelStatus


class StatusSink(Protocol):
    """Receives every status the reconciler commits."""

    def on_status_changed(self, status: TunnelStatus) -> None: ...


class CallbackStatusSink:
    """Adapt a plain callable into a StatusSink."""

    def __init__(self, callback: Callable[[TunnelStatus], None]):
        self._callback = callback

    def on_status_changed(self, status: TunnelStatus) -> None:
        self._callback(status)


class PubSubStatusSink:
    """
    Publish committed statuses on a pubsub topic.

    Listeners subscribe with ``pub.subscribe(listener, STATUS_CHANGED_TOPIC)`` and
    receive the status as the ``status`` keyword argument.
    """

    def __init__(self, topic: str = STATUS_CHANGED_TOPIC):
        self.topic = topic

    def on_status_changed(self, status: TunnelStatus) -> None:
        pub.sendMessage(self.topic, status=status)


__all__ = ["StatusSink", "CallbackStatusSink", "PubSubStatusSink"]

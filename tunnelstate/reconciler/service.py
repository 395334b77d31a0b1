"""Glue between the tunnel service transport and the status reconciler."""

from typing import Any, Callable

from tunnelstate.reconciler.constants import (
    ERROR_COMMAND_FAILED,
    SERVICE_LOST_TOPIC,
    SERVICE_STATUS_TOPIC,
    logger,
)
from tunnelstate.reconciler.core import StatusReconciler
from tunnelstate.reconciler.error_handler import ErrorHandler
from tunnelstate.reconciler.errors import CommandError, StatusDecodeError
from tunnelstate.reconciler.notifications import SubscriptionManager
from tunnelstate.reconciler.state import ExpectedStatus, TunnelStatus

COMMAND_CONNECT = "connect"
COMMAND_RECONNECT = "reconnect"
COMMAND_DISCONNECT = "disconnect"


class ServiceConnection:
    """
    Client side of an active connection to the tunnel service.

    Listens for raw status notifications on pubsub, feeds them to a StatusReconciler,
    and turns user actions into optimistic statuses followed by service commands.

    Architecture:
        - StatusReconciler: owns the committed status and both timers
        - SubscriptionManager: pubsub listeners registered by this connection
        - command_sender: transport callable that delivers commands to the service
    """

    def __init__(
        self,
        reconciler: StatusReconciler,
        command_sender: Callable[[str], Any],
        *,
        logged_in: bool = False,
        status_topic: str = SERVICE_STATUS_TOPIC,
        lost_topic: str = SERVICE_LOST_TOPIC,
    ):
        """
        Register listeners for service events.

        Parameters:
            reconciler (StatusReconciler): Reconciler that receives decoded notifications.
            command_sender (Callable[[str], Any]): Called with "connect", "reconnect" or
                "disconnect" once the corresponding action is permitted.
            logged_in (bool): Whether an account is logged in at startup.
            status_topic (str): Topic carrying raw notifications as the ``notification`` argument.
            lost_topic (str): Topic published when the service connection drops.
        """
        self.reconciler = reconciler
        self._command_sender = command_sender
        self.service_reachable = True
        self.logged_in = logged_in
        self._subscriptions = SubscriptionManager()
        self._subscriptions.subscribe(status_topic, self._on_service_status)
        self._subscriptions.subscribe(lost_topic, self._on_service_lost)

    @property
    def status(self) -> TunnelStatus:
        return self.reconciler.status

    def set_logged_in(self, logged_in: bool) -> None:
        self.logged_in = logged_in

    def handle_notification(self, notification: Any) -> bool:
        """
        Decode a raw notification and hand it to the reconciler.

        Returns:
            bool: False if the notification could not be decoded and was dropped.
        """
        try:
            status = TunnelStatus.from_notification(notification)
        except StatusDecodeError as e:
            logger.warning("Dropping undecodable status notification: %s", e)
            return False
        self.service_reachable = True
        self.reconciler.handle_new_status(status)
        return True

    def on_service_lost(self) -> None:
        """Forget any optimistic status once the service can no longer confirm it."""
        logger.info("Lost connection to tunnel service")
        self.service_reachable = False
        self.reconciler.reset_fallback()

    def connect(self) -> bool:
        if not self.reconciler.allow_connect(self.service_reachable, self.logged_in):
            logger.debug("Connect not allowed in state %s", self.status)
            return False
        self._run_command(COMMAND_CONNECT, ExpectedStatus.CONNECTING)
        return True

    def reconnect(self) -> bool:
        if not self.reconciler.allow_reconnect(self.service_reachable, self.logged_in):
            logger.debug("Reconnect not allowed in state %s", self.status)
            return False
        self._run_command(COMMAND_RECONNECT, ExpectedStatus.CONNECTING)
        return True

    def disconnect(self) -> bool:
        if not self.reconciler.allow_disconnect(self.service_reachable, self.logged_in):
            logger.debug("Disconnect not allowed in state %s", self.status)
            return False
        self._run_command(COMMAND_DISCONNECT, ExpectedStatus.DISCONNECTING)
        return True

    def close(self) -> None:
        ErrorHandler.safe_cleanup(
            self._subscriptions.unsubscribe_all, "service listener removal"
        )
        self.reconciler.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, trace):
        self.close()

    def _run_command(self, command: str, expected: ExpectedStatus) -> None:
        self.reconciler.expect_next_status(expected)
        try:
            self._command_sender(command)
        except Exception as e:
            # The fallback timer reverts the assumed status.
            raise CommandError(command, ERROR_COMMAND_FAILED.format(command, e)) from e

    # pubsub listeners

    def _on_service_status(self, notification) -> None:
        self.handle_notification(notification)

    def _on_service_lost(self) -> None:
        self.on_service_lost()


__all__ = [
    "ServiceConnection",
    "COMMAND_CONNECT",
    "COMMAND_RECONNECT",
    "COMMAND_DISCONNECT",
]

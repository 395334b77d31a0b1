"""
Example wiring a StatusReconciler to a (simulated) tunnel service over pubsub.

The simulated service answers each command after a short delay by publishing raw
status notifications on `tunnelstate.service.status`. The UI side only listens to
`tunnelstate.status.changed`, which carries the reconciled status:
- `connect` shows `connecting` at once, before the service has said anything
- the service's own `connecting`/`connected` burst collapses into one update
- with `--silent-service` nothing is confirmed and the status reverts after the fallback timeout
"""
import argparse
import logging
import threading
import time

from pubsub import pub

import tunnelstate
from tunnelstate.reconciler import SERVICE_STATUS_TOPIC, STATUS_CHANGED_TOPIC

logger = logging.getLogger(__name__)

# Delay in seconds before the simulated service reacts to a command
SERVICE_LATENCY_SECONDS = 0.4


def on_status_changed(status):
    """
    Print every status the reconciler commits.

    Parameters:
        status (tunnelstate.TunnelStatus): The committed status.
    """
    logger.info("UI status: %s", status)


class SimulatedService:
    """Publishes the notifications a real tunnel service would send after a command."""

    def __init__(self, silent: bool = False):
        self.silent = silent

    def send(self, command):
        logger.info("Service received %r", command)
        if self.silent:
            return
        if command == "disconnect":
            burst = [{"state": "disconnecting"}, {"state": "disconnected"}]
        else:
            burst = [
                {"state": "connecting", "location": "se-got"},
                {"state": "connected", "endpoint": "185.213.154.68:51820", "location": "se-got"},
            ]
        threading.Timer(SERVICE_LATENCY_SECONDS, self._publish, args=(burst,)).start()

    @staticmethod
    def _publish(burst):
        for notification in burst:
            pub.sendMessage(SERVICE_STATUS_TOPIC, notification=notification)
            time.sleep(0.02)


def main():
    """Connect, wait, disconnect, and log each reconciled status along the way."""
    parser = argparse.ArgumentParser(
        description="Tunnel status reconciliation against a simulated service."
    )
    parser.add_argument(
        "--silent-service",
        action="store_true",
        help="Never answer commands, so optimistic statuses revert.",
    )
    parser.add_argument("--debug", action="store_true", help="Show reconciler debug logging.")
    args = parser.parse_args()
    logging.basicConfig(level=logging.DEBUG if args.debug else logging.INFO)

    pub.subscribe(on_status_changed, STATUS_CHANGED_TOPIC)
    service = SimulatedService(silent=args.silent_service)
    reconciler = tunnelstate.StatusReconciler(tunnelstate.PubSubStatusSink())

    with tunnelstate.ServiceConnection(reconciler, service.send, logged_in=True) as connection:
        try:
            connection.connect()
            time.sleep(4)
            if not connection.disconnect():
                logger.info("Nothing to disconnect from (status is %s)", connection.status)
            time.sleep(1)
        except KeyboardInterrupt:
            logger.info("Exiting...")
        except tunnelstate.CommandError:
            logger.exception("Command failed")


if __name__ == "__main__":
    main()

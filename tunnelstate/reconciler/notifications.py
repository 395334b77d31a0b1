"""pubsub subscription bookkeeping."""

import logging
from threading import RLock
from typing import Any, Callable, Dict, Tuple

from pubsub import pub

logger = logging.getLogger("tunnelstate")


class SubscriptionManager:
    """
    Track pubsub listeners registered on behalf of one owner so they can all be removed on teardown.

    pubsub only keeps weak references to listeners; holding them here also keeps
    bound-method listeners alive for as long as the subscription is wanted.
    """

    def __init__(self):
        self._active_subscriptions: Dict[int, Tuple[str, Callable[..., Any]]] = {}
        self._subscription_counter = 0
        self._lock = RLock()

    def subscribe(self, topic: str, listener: Callable[..., Any]) -> int:
        """
        Subscribe ``listener`` to ``topic`` and remember the subscription.

        Returns:
            token (int): Opaque token that identifies the tracked subscription.
        """
        with self._lock:
            pub.subscribe(listener, topic)
            token = self._subscription_counter
            self._subscription_counter += 1
            self._active_subscriptions[token] = (topic, listener)
            return token

    def unsubscribe_all(self) -> None:
        """Unsubscribe every tracked listener and forget them."""
        with self._lock:
            subscriptions = list(self._active_subscriptions.values())
            self._active_subscriptions.clear()

        for topic, listener in subscriptions:
            try:
                pub.unsubscribe(listener, topic)
            except Exception as e:  # pragma: no cover - best effort
                logger.debug("Failed to unsubscribe from %s: %s", topic, e)

    def __len__(self) -> int:
        with self._lock:
            return len(self._active_subscriptions)


__all__ = ["SubscriptionManager"]

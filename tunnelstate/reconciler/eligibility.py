"""Default policy for which user actions are currently permitted."""

from dataclasses import dataclass
from typing import Callable

from tunnelstate.reconciler.state import StatusTag


def can_connect(service_reachable: bool, logged_in: bool, tag: StatusTag) -> bool:
    return (
        service_reachable
        and logged_in
        and tag in (StatusTag.DISCONNECTED, StatusTag.DISCONNECTING, StatusTag.ERROR)
    )


def can_reconnect(service_reachable: bool, logged_in: bool, tag: StatusTag) -> bool:
    return (
        service_reachable
        and logged_in
        and tag in (StatusTag.CONNECTED, StatusTag.CONNECTING)
    )


def can_disconnect(service_reachable: bool, tag: StatusTag) -> bool:
    return service_reachable and tag != StatusTag.DISCONNECTED


@dataclass(frozen=True)
class ActionEligibility:
    """Bundle of eligibility queries; swap any of them to change the policy."""

    can_connect: Callable[[bool, bool, StatusTag], bool] = can_connect
    can_reconnect: Callable[[bool, bool, StatusTag], bool] = can_reconnect
    can_disconnect: Callable[[bool, StatusTag], bool] = can_disconnect


__all__ = ["ActionEligibility", "can_connect", "can_reconnect", "can_disconnect"]

"""Tunnel status values reported by the service or assumed by the client."""

from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from tunnelstate.reconciler.constants import (
    ERROR_MISSING_STATE,
    ERROR_NOT_A_MAPPING,
    ERROR_UNKNOWN_REASON,
    ERROR_UNKNOWN_STATE,
)
from tunnelstate.reconciler.errors import StatusDecodeError


class StatusTag(Enum):
    """Enum for the tunnel states a service can report."""

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    DISCONNECTING = "disconnecting"
    ERROR = "error"


class DisconnectReason(Enum):
    """What the service intends to do once the tunnel is down."""

    NOTHING = "nothing"
    BLOCK = "block"
    RECONNECT = "reconnect"


class ExpectedStatus(Enum):
    """Status the client assumes will follow a user action."""

    CONNECTING = "connecting"
    DISCONNECTING = "disconnecting"


@dataclass(frozen=True)
class TunnelStatus:
    """
    Immutable tunnel status value.

    Only ``state`` (and ``reason`` for disconnecting) drive reconciliation.
    The remaining fields are carried through to the UI untouched.
    """

    state: StatusTag
    reason: Optional[DisconnectReason] = None
    endpoint: Optional[str] = None
    location: Optional[str] = None
    error_cause: Optional[str] = None

    def __post_init__(self):
        # reason is only meaningful while disconnecting
        if self.state == StatusTag.DISCONNECTING:
            if self.reason is None:
                object.__setattr__(self, "reason", DisconnectReason.NOTHING)
        elif self.reason is not None:
            object.__setattr__(self, "reason", None)

    @classmethod
    def disconnected(cls) -> "TunnelStatus":
        return cls(StatusTag.DISCONNECTED)

    @classmethod
    def connecting(
        cls, endpoint: Optional[str] = None, location: Optional[str] = None
    ) -> "TunnelStatus":
        return cls(StatusTag.CONNECTING, endpoint=endpoint, location=location)

    @classmethod
    def connected(
        cls, endpoint: Optional[str] = None, location: Optional[str] = None
    ) -> "TunnelStatus":
        return cls(StatusTag.CONNECTED, endpoint=endpoint, location=location)

    @classmethod
    def disconnecting(
        cls, reason: DisconnectReason = DisconnectReason.NOTHING
    ) -> "TunnelStatus":
        return cls(StatusTag.DISCONNECTING, reason=reason)

    @classmethod
    def error(cls, cause: Optional[str] = None) -> "TunnelStatus":
        return cls(StatusTag.ERROR, error_cause=cause)

    @property
    def is_reconnecting(self) -> bool:
        """True for a disconnect that the service will immediately follow with a connect."""
        return (
            self.state == StatusTag.DISCONNECTING
            and self.reason == DisconnectReason.RECONNECT
        )

    @property
    def is_error(self) -> bool:
        return self.state == StatusTag.ERROR

    @classmethod
    def from_notification(cls, notification: Any) -> "TunnelStatus":
        """
        Decode a raw status notification delivered by the service.

        Parameters:
            notification (Mapping[str, Any]): Mapping with a ``state`` key and optional
                ``reason`` (or legacy ``details``), ``endpoint``, ``location`` and
                ``error_cause`` keys. Unknown keys are ignored.

        Returns:
            TunnelStatus: The decoded status. Disconnecting statuses without a reason
            default to ``DisconnectReason.NOTHING``.

        Raises:
            StatusDecodeError: If the notification is not a mapping, has no state, or
                names an unknown state or reason.
        """
        if isinstance(notification, TunnelStatus):
            return notification
        if not isinstance(notification, Mapping):
            raise StatusDecodeError(
                ERROR_NOT_A_MAPPING.format(type(notification).__name__)
            )
        raw_state = notification.get("state")
        if raw_state is None:
            raise StatusDecodeError(ERROR_MISSING_STATE.format(dict(notification)))
        try:
            state = StatusTag(str(raw_state).lower())
        except ValueError as e:
            raise StatusDecodeError(ERROR_UNKNOWN_STATE.format(raw_state)) from e

        reason: Optional[DisconnectReason] = None
        if state == StatusTag.DISCONNECTING:
            raw_reason = notification.get("reason", notification.get("details"))
            if raw_reason is None:
                reason = DisconnectReason.NOTHING
            else:
                try:
                    reason = DisconnectReason(str(raw_reason).lower())
                except ValueError as e:
                    raise StatusDecodeError(
                        ERROR_UNKNOWN_REASON.format(raw_reason)
                    ) from e

        return cls(
            state,
            reason=reason,
            endpoint=notification.get("endpoint"),
            location=notification.get("location"),
            error_cause=notification.get("error_cause"),
        )

    def to_dict(self) -> Dict[str, str]:
        """Return the notification mapping for this status, omitting unset fields."""
        result = {"state": self.state.value}
        if self.reason is not None:
            result["reason"] = self.reason.value
        for key in ("endpoint", "location", "error_cause"):
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        return result

    def __str__(self) -> str:
        if self.reason is not None:
            return f"{self.state.value}({self.reason.value})"
        return self.state.value


__all__ = ["StatusTag", "DisconnectReason", "ExpectedStatus", "TunnelStatus"]

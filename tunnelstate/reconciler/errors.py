"""Exception types raised by the tunnelstate package."""


class TunnelStateError(Exception):
    """Base class for tunnelstate errors."""


class StatusDecodeError(TunnelStateError, ValueError):
    """A raw status notification could not be decoded."""


class CommandError(TunnelStateError):
    """Forwarding a user command to the service failed."""

    def __init__(self, command: str, message: str):
        super().__init__(message)
        self.command = command


class ReplayError(TunnelStateError):
    """A replay script is malformed."""


__all__ = ["TunnelStateError", "StatusDecodeError", "CommandError", "ReplayError"]

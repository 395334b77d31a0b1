# ruff: noqa: F401
"""
Reconcile tunnel status notifications into a single status for the UI.

The public API lives in :mod:`tunnelstate.reconciler`; the most common names are
re-exported here.
"""

from tunnelstate.reconciler import (
    ActionEligibility,
    CallbackStatusSink,
    CommandError,
    DisconnectReason,
    ExpectedStatus,
    PubSubStatusSink,
    ReconcilerConfig,
    ReplayError,
    Scheduler,
    ServiceConnection,
    StatusDecodeError,
    StatusReconciler,
    StatusSink,
    StatusTag,
    SystemClock,
    TunnelStateError,
    TunnelStatus,
    VirtualClock,
)

__version__ = "0.1.0"

__all__ = [
    "ActionEligibility",
    "CallbackStatusSink",
    "CommandError",
    "DisconnectReason",
    "ExpectedStatus",
    "PubSubStatusSink",
    "ReconcilerConfig",
    "ReplayError",
    "Scheduler",
    "ServiceConnection",
    "StatusDecodeError",
    "StatusReconciler",
    "StatusSink",
    "StatusTag",
    "SystemClock",
    "TunnelStateError",
    "TunnelStatus",
    "VirtualClock",
]

"""Tunnel status reconciliation for tunnelstate."""

from tunnelstate.reconciler.constants import (
    DEBOUNCE_DELAY_MS,
    FALLBACK_TIMEOUT_MS,
    SERVICE_LOST_TOPIC,
    SERVICE_STATUS_TOPIC,
    STATUS_CHANGED_TOPIC,
    ReconcilerConfig,
    logger,
)
from tunnelstate.reconciler.state import *
from tunnelstate.reconciler.clock import *
from tunnelstate.reconciler.scheduler import *
from tunnelstate.reconciler.eligibility import *
from tunnelstate.reconciler.errors import *
from tunnelstate.reconciler.error_handler import *
from tunnelstate.reconciler.sinks import *
from tunnelstate.reconciler.core import StatusReconciler
from tunnelstate.reconciler.notifications import *
from tunnelstate.reconciler.service import *

__all__ = [
    # Core classes
    "StatusReconciler",
    "Scheduler",
    "ServiceConnection",
    "SubscriptionManager",
    "ErrorHandler",
    "ReconcilerConfig",
    # Status values
    "TunnelStatus",
    "StatusTag",
    "DisconnectReason",
    "ExpectedStatus",
    # Time
    "Clock",
    "TimerHandle",
    "SystemClock",
    "VirtualClock",
    # Sinks
    "StatusSink",
    "CallbackStatusSink",
    "PubSubStatusSink",
    # Eligibility
    "ActionEligibility",
    "can_connect",
    "can_reconnect",
    "can_disconnect",
    # Errors
    "TunnelStateError",
    "StatusDecodeError",
    "CommandError",
    "ReplayError",
    # Constants
    "COMMAND_CONNECT",
    "COMMAND_RECONNECT",
    "COMMAND_DISCONNECT",
    "DEBOUNCE_DELAY_MS",
    "FALLBACK_TIMEOUT_MS",
    "STATUS_CHANGED_TOPIC",
    "SERVICE_STATUS_TOPIC",
    "SERVICE_LOST_TOPIC",
    "logger",
]

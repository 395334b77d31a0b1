"""Shared configuration, constants, and pubsub topics for status reconciliation."""

import logging

logger = logging.getLogger("tunnelstate")

# pubsub topics
STATUS_CHANGED_TOPIC = "tunnelstate.status.changed"
SERVICE_STATUS_TOPIC = "tunnelstate.service.status"
SERVICE_LOST_TOPIC = "tunnelstate.service.lost"


class ReconcilerConfig:
    """Timing constants for status reconciliation (milliseconds)."""

    DEBOUNCE_DELAY_MS = 150
    FALLBACK_TIMEOUT_MS = 3000


# Module-level aliases
DEBOUNCE_DELAY_MS = ReconcilerConfig.DEBOUNCE_DELAY_MS
FALLBACK_TIMEOUT_MS = ReconcilerConfig.FALLBACK_TIMEOUT_MS

# Error message constants
ERROR_UNKNOWN_STATE = "Unknown tunnel state '{0}'"
ERROR_UNKNOWN_REASON = "Unknown disconnect reason '{0}'"
ERROR_MISSING_STATE = "Status notification has no 'state' field: {0!r}"
ERROR_NOT_A_MAPPING = "Status notification must be a mapping, got {0}"
ERROR_UNKNOWN_EXPECTATION = "Unknown expected status '{0}'"
ERROR_COMMAND_FAILED = "Command '{0}' failed: {1}"

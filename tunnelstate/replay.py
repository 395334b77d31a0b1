"""Replay scripted service notifications and user actions on a virtual clock."""

import json
import logging
from typing import Any, Dict, List, Optional, Tuple

from tabulate import tabulate

from tunnelstate.reconciler.clock import VirtualClock
from tunnelstate.reconciler.core import StatusReconciler
from tunnelstate.reconciler.errors import ReplayError
from tunnelstate.reconciler.sinks import CallbackStatusSink
from tunnelstate.reconciler.state import ExpectedStatus, TunnelStatus

logger = logging.getLogger(__name__)

_ACTION_KEYS = ("status", "expect", "reset")

Commit = Tuple[float, TunnelStatus]


def _validate_event(index: int, event: Any) -> Dict[str, Any]:
    if not isinstance(event, dict):
        raise ReplayError(f"Event {index} must be an object, got {type(event).__name__}")
    at_ms = event.get("at_ms")
    if isinstance(at_ms, bool) or not isinstance(at_ms, (int, float)) or at_ms < 0:
        raise ReplayError(f"Event {index} needs a non-negative numeric 'at_ms'")
    actions = [key for key in _ACTION_KEYS if key in event]
    if len(actions) != 1:
        raise ReplayError(
            f"Event {index} needs exactly one of {', '.join(_ACTION_KEYS)}; got {actions or 'none'}"
        )
    if "expect" in event:
        try:
            ExpectedStatus(event["expect"])
        except ValueError as e:
            raise ReplayError(
                f"Event {index} has unknown expectation {event['expect']!r}"
            ) from e
    return event


def parse_script(data: Any) -> List[Dict[str, Any]]:
    """
    Validate a decoded replay script.

    Returns:
        list: The events, stably sorted by ``at_ms``.

    Raises:
        ReplayError: If the script is not a list of well-formed events.
    """
    if not isinstance(data, list):
        raise ReplayError("Replay script must be a JSON list of events")
    events = [_validate_event(index, event) for index, event in enumerate(data)]
    return sorted(events, key=lambda event: event["at_ms"])


def load_script(path: str) -> List[Dict[str, Any]]:
    """Read and validate a JSON replay script from ``path``."""
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ReplayError(f"{path} is not valid JSON: {e}") from e
    except OSError as e:
        raise ReplayError(f"Cannot read {path}: {e}") from e
    return parse_script(data)


def replay(
    events: List[Dict[str, Any]],
    *,
    config: Optional[type] = None,
    debounce_delay_ms: Optional[float] = None,
    fallback_timeout_ms: Optional[float] = None,
    until_ms: Optional[float] = None,
) -> List[Commit]:
    """
    Run ``events`` through a fresh StatusReconciler created at virtual time 0.

    After the last event the clock keeps running until no timer is pending, or up
    to ``until_ms`` when given. ``config`` and the delay overrides are passed to the
    reconciler as they are.

    Returns:
        list[tuple[float, TunnelStatus]]: Every committed status with its virtual time.

    Raises:
        StatusDecodeError: If a ``status`` event cannot be decoded.
    """
    clock = VirtualClock()
    commits: List[Commit] = []
    sink = CallbackStatusSink(lambda status: commits.append((clock.now_ms(), status)))

    with StatusReconciler(
        sink,
        clock=clock,
        config=config,
        debounce_delay_ms=debounce_delay_ms,
        fallback_timeout_ms=fallback_timeout_ms,
    ) as reconciler:
        for event in events:
            clock.advance_to(event["at_ms"])
            if "status" in event:
                reconciler.handle_new_status(
                    TunnelStatus.from_notification(event["status"])
                )
            elif "expect" in event:
                reconciler.expect_next_status(event["expect"])
            elif event["reset"]:
                reconciler.reset_fallback()

        if until_ms is not None:
            clock.advance_to(until_ms)
        else:
            clock.run_until_idle()

    logger.debug("Replayed %d events into %d commits", len(events), len(commits))
    return commits


def format_timeline(commits: List[Commit]) -> str:
    """Render committed statuses as a table."""
    rows = []
    for at_ms, status in commits:
        rows.append(
            {
                "at (ms)": f"{at_ms:.0f}",
                "state": status.state.value,
                "reason": status.reason.value if status.reason else None,
                "endpoint": status.endpoint,
                "location": status.location,
                "error": status.error_cause,
            }
        )
    if not rows:
        return "No status was committed."
    return tabulate(rows, headers="keys", missingval="N/A", tablefmt="fancy_grid")


__all__ = ["load_script", "parse_script", "replay", "format_timeline"]

"""Command line entry point: ``python -m tunnelstate``."""

import argparse
import logging
import sys
from typing import List, Optional

from tunnelstate.reconciler.errors import ReplayError, StatusDecodeError
from tunnelstate.replay import format_timeline, load_script, replay

logger = logging.getLogger(__name__)


def _positive_ms(value: str) -> float:
    number = float(value)
    if number <= 0:
        raise argparse.ArgumentTypeError(f"must be > 0, got {value}")
    return number


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tunnelstate",
        description="Tools for the tunnel status reconciler.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    replay_parser = subparsers.add_parser(
        "replay",
        help="Replay a JSON script of notifications and print the committed statuses.",
    )
    replay_parser.add_argument("script", help="Path to a JSON list of events")
    replay_parser.add_argument(
        "--debounce-ms", type=_positive_ms, default=None, help="Debounce window"
    )
    replay_parser.add_argument(
        "--fallback-ms", type=_positive_ms, default=None, help="Fallback timeout"
    )
    replay_parser.add_argument(
        "--until-ms",
        type=float,
        default=None,
        help="Stop the virtual clock here instead of running until idle",
    )
    replay_parser.add_argument(
        "--debug", action="store_true", help="Show reconciler debug logging"
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        events = load_script(args.script)
        commits = replay(
            events,
            debounce_delay_ms=args.debounce_ms,
            fallback_timeout_ms=args.fallback_ms,
            until_ms=args.until_ms,
        )
    except (ReplayError, StatusDecodeError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(format_timeline(commits))
    return 0


if __name__ == "__main__":
    sys.exit(main())

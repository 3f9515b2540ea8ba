# ruff: noqa: T201

from __future__ import annotations

import argparse
import logging
import sys
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from plugin_relay.app import (
    DeliveryMode,
    notify_plugins,
    preview_plugins,
    reset_state,
    state_stats,
)
from plugin_relay.config import LOG_LEVELS, configure_logging, resolve_log_level

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

    from plugin_relay.app import PreviewResult

log = logging.getLogger(__name__)

DEFAULT_PREVIEW_LIMIT = 20


def _add_mode_argument(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--mode",
        type=DeliveryMode,
        choices=list(DeliveryMode),
        default=DeliveryMode.BULK,
        help="bulk sends every undelivered plugin once; delta re-sends changed files "
        "(default: %(default)s)",
    )


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Relay plugin catalog updates to Discord")
    parser.add_argument(
        "--log-level",
        choices=sorted(LOG_LEVELS),
        default=None,
        help="Log verbosity (defaults to PLUGINS_LOG_LEVEL or info)",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    notify = subparsers.add_parser("notify", help="Fetch the catalogs and send notifications")
    _add_mode_argument(notify)

    dry_run = subparsers.add_parser("dry-run", help="Show what notify would send")
    _add_mode_argument(dry_run)
    dry_run.add_argument(
        "--limit",
        type=int,
        default=DEFAULT_PREVIEW_LIMIT,
        help="Number of pending plugins to list (default: %(default)s)",
    )

    subparsers.add_parser("reset", help="Clear the delivery state file")
    subparsers.add_parser("state", help="Show delivery state statistics")

    return parser.parse_args(list(argv))


def _validate(args: argparse.Namespace) -> None:
    if args.command == "dry-run" and args.limit < 0:
        raise ValueError("--limit must be non-negative")


def _print_preview(result: PreviewResult, limit: int) -> None:
    if result.mode is DeliveryMode.DELTA:
        print(f"Delta items: {len(result.delta)} of {result.indexed} indexed")
        for item in result.delta[:limit]:
            print(f"  [{item.reason.value}] {item.plugin.display_name}: {item.plugin.raw_url}")
        return
    print(
        f"Pending: {len(result.pending)} of {result.indexed} indexed "
        f"(processed {result.processed})"
    )
    for plugin in result.pending[:limit]:
        print(f"  {plugin.display_name}: {plugin.raw_url}")


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    parsed_args: argparse.Namespace
    try:
        parsed_args = _parse_args(args_list)
        _validate(parsed_args)
    except ValueError:
        configure_logging()
        log.exception("CLI validation error")
        sys.exit(2)

    configure_logging(level=resolve_log_level(parsed_args.log_level))

    try:
        if parsed_args.command == "notify":
            result = notify_plugins(parsed_args.mode)
            log.info(
                "Notify finished: mode=%s, indexed=%s, delivered=%s, failed=%s, unchanged=%s",
                result.mode.value,
                result.indexed,
                result.summary.delivered,
                result.summary.failed,
                result.summary.unchanged,
            )
        elif parsed_args.command == "dry-run":
            preview = preview_plugins(parsed_args.mode)
            _print_preview(preview, parsed_args.limit)
        elif parsed_args.command == "reset":
            reset_state()
        elif parsed_args.command == "state":
            stats = state_stats()
            updated = stats.updated_at.isoformat() if stats.updated_at else "never"
            print(f"Entries: {stats.count}")
            print(f"Updated: {updated}")
        else:
            raise ValueError(f"Unsupported command: {parsed_args.command}")  # noqa: TRY301

    except Exception:
        log.exception("Fatal error during plugin relay")
        sys.exit(1)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    """Console script entry point."""
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()

"""Observer CLI entry points.
This module exposes commands to run the observer and inspect its progress.
It maps argparse commands onto ObserverApp calls.
"""

from __future__ import annotations

import argparse
import signal
from typing import Any, Sequence

from core.config import load_config
from core.errors import ObserverError
from pipeline.app import ObserverApp


def build_parser() -> argparse.ArgumentParser:
    """Build the top-level CLI parser.

    Returns:
        Configured argument parser.
    """
    parser = argparse.ArgumentParser(prog="observer", description="Ledger observer CLI")
    parser.add_argument("--config", help="YAML config file overlaid on OBSERVER_* variables")
    subparsers = parser.add_subparsers(dest="command", required=True)
    _add_run_command(subparsers)
    subparsers.add_parser("cursor", help="Print the stored resumption cursor")
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Run the observer CLI.

    Args:
        argv: Optional argument vector.

    Returns:
        Process exit code.
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        app = ObserverApp(load_config(args.config))
    except ObserverError as error:
        print(f"error={error}")
        return 1
    try:
        if args.command == "run":
            return _run_run_command(app, args)
        if args.command == "cursor":
            return _run_cursor_command(app)
    except ObserverError as error:
        print(f"error={error}")
        return 1
    finally:
        app.close()
    parser.error(f"Unsupported command: {args.command}")
    return 2


def _run_run_command(app: ObserverApp, args: argparse.Namespace) -> int:
    """Handle run command; SIGINT and SIGTERM stop the loop between cycles."""

    def request_stop(signum: int, frame: Any) -> None:
        app.stop()

    previous = {sig: signal.signal(sig, request_stop) for sig in (signal.SIGINT, signal.SIGTERM)}
    try:
        app.run(once=args.once)
    finally:
        for sig, handler in previous.items():
            signal.signal(sig, handler)
    return 0


def _run_cursor_command(app: ObserverApp) -> int:
    cursor = app.cursor()
    print(f"pulse={cursor.pulse}")
    print(f"sequence={cursor.sequence}")
    return 0


def _add_run_command(subparsers: Any) -> None:
    """Register run subcommand."""
    parser = subparsers.add_parser("run", help="Drain the export stream into the database")
    parser.add_argument("--once", action="store_true", help="Run a single cycle and exit")

"""Operator CLI: python -m dispatch_engine."""

import argparse
import json
import sys
from collections.abc import Sequence

from dispatch_engine.config import DispatchConfig
from dispatch_engine.engine import DispatchEngine, build_engine
from dispatch_engine.log import setup_logging


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="dispatch_engine",
        description="Salon notification dispatch: test sends and failure follow-up.",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    send_test = commands.add_parser("send-test", help="send a test SMS to the operator")
    send_test.add_argument("--note", help="extra line to include in the message")

    commands.add_parser("health", help="show provider health")

    failures = commands.add_parser("failures", help="inspect the failure log")
    failure_commands = failures.add_subparsers(dest="failures_command", required=True)

    listing = failure_commands.add_parser("list", help="list entries, newest first")
    listing.add_argument(
        "--pending", action="store_true", help="only unacknowledged entries"
    )

    ack = failure_commands.add_parser("ack", help="mark an entry as handled")
    ack.add_argument("correlation_id")

    failure_commands.add_parser("clear", help="delete every entry")
    return parser


def _print(data: object) -> None:
    json.dump(data, sys.stdout, indent=2, ensure_ascii=False, default=str)
    sys.stdout.write("\n")


def run(engine: DispatchEngine, args: argparse.Namespace) -> int:
    """Execute one parsed command. Returns the process exit code."""
    if args.command == "send-test":
        result = engine.send_test(args.note)
        _print(result.summary())
        return 0 if result.succeeded else 1

    if args.command == "health":
        _print(engine.health_snapshot())
        return 0

    failure_log = engine.failure_log
    if args.failures_command == "list":
        entries = failure_log.list(include_acknowledged=not args.pending)
        _print([entry.summary() for entry in entries])
        return 0
    if args.failures_command == "ack":
        acknowledged = failure_log.acknowledge(args.correlation_id)
        _print({"correlation_id": args.correlation_id, "acknowledged": acknowledged})
        return 0 if acknowledged else 1
    _print({"cleared": failure_log.clear()})
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)

    config = DispatchConfig()
    setup_logging(config.log_level, stream=sys.stderr)

    engine = build_engine(config)
    try:
        return run(engine, args)
    finally:
        engine.close()


if __name__ == "__main__":
    sys.exit(main())

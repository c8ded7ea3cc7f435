from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import Any

from aquasim.actions import ACTION_KINDS
from aquasim.formatting import format_text_report
from aquasim.service import AquariumService, JsonFileStore


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="aquasim",
        description="Aquasim: idle aquarium simulator CLI",
    )
    parser.add_argument(
        "--store", default="./saves", help="Directory holding save files (default: ./saves)"
    )
    parser.add_argument("--instance", default=None, help="Widget instance id")
    parser.add_argument("--json", action="store_true", help="Print the raw JSON response")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="command")

    sub.add_parser("show", help="Catch up and show the active tank")

    adv = sub.add_parser("advance", help="Fast-forward time before catching up")
    adv.add_argument("--hours", type=float, required=True, help="Hours to skip")

    act = sub.add_parser("action", help="Apply one action")
    act.add_argument("kind", choices=sorted(ACTION_KINDS), help="Action kind")
    act.add_argument(
        "--payload", default="{}", help='Action payload as JSON, e.g. \'{"food_id": "pellets"}\''
    )

    sub.add_parser("reset", help="Replace the save with a fresh one")

    return parser


def _print(response: dict[str, Any], as_json: bool) -> None:
    if as_json:
        print(json.dumps(response, indent=2))
    else:
        print(format_text_report(response))


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    service = AquariumService(JsonFileStore(args.store))

    if args.command == "show":
        response = service.get_state(args.instance)
    elif args.command == "advance":
        if args.hours < 0:
            print("Error: --hours must be non-negative", file=sys.stderr)
            sys.exit(2)
        response = service.fast_forward(args.instance, args.hours)
    elif args.command == "action":
        try:
            payload = json.loads(args.payload)
        except json.JSONDecodeError as exc:
            print(f"Error: invalid --payload JSON: {exc}", file=sys.stderr)
            sys.exit(2)
        response = service.do_action(args.instance, args.kind, payload)
    else:
        response = service.reset(args.instance)

    _print(response, args.json)

    result = response.get("action_result")
    if result is not None and not result["success"]:
        sys.exit(1)


if __name__ == "__main__":
    main()

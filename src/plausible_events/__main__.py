"""
Command-line entry point for sending events and replaying the retry queue.

Settings come from PLAUSIBLE_* environment variables (or a .env file).

Usage:
    python -m plausible_events send --domain example.com --url /login
    python -m plausible_events send --name signup --url /login --prop plan=pro
    python -m plausible_events replay
"""

import argparse
import asyncio
import json
import sys
from typing import Dict, List, Optional

from plausible_events.config.settings import DeliverySettings
from plausible_events.delivery.engine import DeliveryEngine
from plausible_events.models.event import PAGEVIEW
from plausible_events.utils.logger import configure_logging, get_logger

logger = get_logger(__name__)


def parse_props(values: List[str]) -> Optional[Dict[str, str]]:
    """Turn repeated ``key=value`` arguments into a props mapping."""
    if not values:
        return None
    props = {}
    for item in values:
        key, sep, value = item.partition("=")
        if not sep or not key:
            raise argparse.ArgumentTypeError(f"Invalid prop {item!r}, expected key=value")
        props[key] = value
    return props


async def send_event(args, props, config: DeliverySettings) -> int:
    engine = DeliveryEngine(config)
    engine.submit(
        args.domain if args.domain is not None else config.domain,
        args.name,
        args.url,
        args.referrer,
        config.screen_width,
        props
    )
    await engine.join()
    return 0


async def replay_events(config: DeliverySettings) -> int:
    engine = DeliveryEngine(config)
    summary = await engine.replay()
    print(json.dumps(summary.model_dump()))
    return 0 if summary.pending == 0 else 1


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        prog="plausible_events",
        description="Send analytics events to a Plausible-compatible collector"
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    send_parser = subparsers.add_parser("send", help="Send one event")
    send_parser.add_argument("--domain", help="Site domain (default: PLAUSIBLE_DOMAIN)")
    send_parser.add_argument("--name", default=PAGEVIEW, help="Event name (default: pageview)")
    send_parser.add_argument("--url", required=True, help="URL or screen path of the event")
    send_parser.add_argument("--referrer", default="", help="Referrer for the event")
    send_parser.add_argument(
        "--prop",
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="Custom property (repeatable)"
    )

    subparsers.add_parser("replay", help="Retry every event left in the event directory once")

    args = parser.parse_args(argv)

    config = DeliverySettings()
    configure_logging(config.log_level)

    if args.command == "send":
        try:
            props = parse_props(args.prop)
        except argparse.ArgumentTypeError as e:
            parser.error(str(e))
        return asyncio.run(send_event(args, props, config))

    return asyncio.run(replay_events(config))


if __name__ == "__main__":
    sys.exit(main())

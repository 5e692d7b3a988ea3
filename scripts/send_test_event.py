#!/usr/bin/env python3
"""Send a test event (and optionally a profile update) to Mixpanel.

Runs the full client lifecycle once against the live collector so you
can check the event shows up in the project's live view.

Usage
-----
Set environment variables and run::

    export MIXPANEL_TOKEN="your-project-token"
    python scripts/send_test_event.py --user tester@example.com -v

Options::

    --event NAME         Event name (default: "pymixpanel test")
    --prop KEY=VALUE     Event property, may be repeated
    --user ID            identify() before tracking and send a $set update
    --storage FILE       Persist super properties in FILE (default: memory)
    --verbose, -v        Enable debug logging
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

_repo = Path(__file__).resolve().parent.parent
_src = _repo / "src"
if _src.is_dir():
    sys.path.insert(0, str(_src))

from pymixpanel import (  # noqa: E402
    JsonFileStorage,
    MemoryStorage,
    MixpanelClient,
    MixpanelConfig,
    MixpanelConfigError,
    PlatformMetadataProvider,
)


def _parse_props(items: list[str]) -> dict[str, str]:
    props: dict[str, str] = {}
    for item in items:
        key, sep, value = item.partition("=")
        if not sep or not key:
            raise SystemExit(f"--prop expects KEY=VALUE, got {item!r}")
        props[key] = value
    return props


async def main() -> int:
    parser = argparse.ArgumentParser(description="Send a live test event through pymixpanel.")
    parser.add_argument("--event", default="pymixpanel test", help="Event name")
    parser.add_argument("--prop", action="append", default=[], help="Event property KEY=VALUE")
    parser.add_argument("--user", help="identify() as this user and send a $set profile update")
    parser.add_argument("--storage", help="JSON file for persisted super properties")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    args = parser.parse_args()

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")
    else:
        logging.basicConfig(level=logging.WARNING)

    try:
        config = MixpanelConfig.from_env()
    except MixpanelConfigError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2

    storage = JsonFileStorage(args.storage) if args.storage else MemoryStorage()
    metadata = PlatformMetadataProvider(app_name="pymixpanel-script", app_id="send_test_event")

    async with MixpanelClient(config, metadata=metadata, storage=storage) as client:
        if args.user:
            client.identify(args.user)
            client.people_set({"$name": args.user})
        client.track(args.event, _parse_props(args.prop))
        await client.wait_ready()
        await client.join()

        print(f"client_id : {client.client_id}")
        print(f"user_id   : {client.user_id or '-'}")
        print(f"state     : {client.state}")
        print(f"super     : {client.super_properties}")

    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))

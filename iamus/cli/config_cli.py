"""Iamus configuration CLI.

Usage:
    python -m iamus.cli.config_cli
    python -m iamus.cli.config_cli --public
    python -m iamus.cli.config_cli --key server.listen-port --no-probe

Resolves the configuration exactly as the server does at startup (including
writing the public ``config.json`` subset when a static directory exists) and
prints the result as JSON.
"""

from __future__ import annotations

import argparse
import json
import sys

from iamus.config import ConfigurationError, load_settings
from iamus.config.merge import plain_copy
from iamus.logging_utils import get_logger


def _no_probe():
    return None


def main(argv=None) -> int:
    """Parse args, resolve settings, bootstrap logging, print the result."""
    parser = argparse.ArgumentParser(description="Resolve and print the Iamus server configuration")
    parser.add_argument(
        "--public", action="store_true",
        help="print only the public subset (metaverse, server, debug)",
    )
    parser.add_argument("--key", help="print one dotted key, e.g. server.listen-port")
    parser.add_argument(
        "--no-probe", action="store_true",
        help="do not look up the external IP address for empty URLs",
    )
    args = parser.parse_args(argv)

    try:
        settings = load_settings(ip_probe=_no_probe if args.no_probe else None)
    except ConfigurationError as e:
        print(f"iamus-config: {e}", file=sys.stderr)
        return 2

    log = get_logger("iamus", settings=settings)
    log.info(f"Resolved configuration for {settings.get('metaverse.metaverse-name')}")

    if args.key:
        sentinel = object()
        value = settings.get(args.key, sentinel)
        if value is sentinel:
            print(f"iamus-config: no such key {args.key}", file=sys.stderr)
            return 1
        out = plain_copy(value)
    elif args.public:
        out = settings.public_subset()
    else:
        out = settings.as_dict()

    print(json.dumps(out, indent=2))
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())

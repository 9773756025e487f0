from __future__ import annotations

import argparse
import sys

from esview.bridge.cli.call import add_connection_arguments, prepare_request, send
from esview.bridge.client import HEALTH_PATH
from esview.bridge.errors import BridgeError

COMMAND = "ping"


def register_parser(subparsers: argparse._SubParsersAction) -> None:
    ping_parser = subparsers.add_parser(
        COMMAND,
        help="Check that a connection's cluster answers (GET /_cluster/health)",
    )
    add_connection_arguments(ping_parser)


def run(parsed: argparse.Namespace) -> int:
    try:
        request = prepare_request(parsed, "GET", HEALTH_PATH)
        return send(parsed, request)
    except BridgeError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except (FileNotFoundError, ValueError, KeyError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

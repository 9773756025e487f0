from __future__ import annotations

import argparse
import sys

from esview.bridge.cli._output import OUTPUT_FORMATS
from esview.bridge.cli.call import add_connection_arguments, prepare_request, send
from esview.bridge.client import CAT_INDICES_PATH
from esview.bridge.errors import BridgeError

COMMAND = "indices"


def register_parser(subparsers: argparse._SubParsersAction) -> None:
    indices_parser = subparsers.add_parser(
        COMMAND,
        help="List the indices of a connection's cluster (GET /_cat/indices)",
    )
    add_connection_arguments(indices_parser)
    indices_parser.add_argument(
        "--format",
        dest="output_format",
        choices=OUTPUT_FORMATS,
        default="table",
        help="Output format (default: table)",
    )


def run(parsed: argparse.Namespace) -> int:
    try:
        return send(parsed, prepare_request(parsed, "GET", CAT_INDICES_PATH))
    except BridgeError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except (FileNotFoundError, ValueError, KeyError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

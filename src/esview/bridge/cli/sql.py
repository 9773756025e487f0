from __future__ import annotations

import argparse
import json
import logging
import sys

from esview.bridge.cli._output import OUTPUT_FORMATS
from esview.bridge.cli.call import add_connection_arguments, prepare_request, send
from esview.bridge.client import SQL_PATH
from esview.bridge.connections import add_history, load_state, save_state
from esview.bridge.errors import BridgeError

logger = logging.getLogger(__name__)

COMMAND = "sql"


def register_parser(subparsers: argparse._SubParsersAction) -> None:
    sql_parser = subparsers.add_parser(
        COMMAND,
        help="Run an Elasticsearch SQL query (POST /_sql?format=json)",
    )
    sql_parser.add_argument("query", metavar="QUERY", help="SQL statement")
    add_connection_arguments(sql_parser)
    sql_parser.add_argument(
        "--format",
        dest="output_format",
        choices=OUTPUT_FORMATS,
        default="table",
        help="Output format (default: table)",
    )
    sql_parser.add_argument(
        "--save-history",
        action="store_true",
        default=False,
        help="Record a successful query in the app's SQL history",
    )


def _record(parsed: argparse.Namespace, query: str) -> None:
    state = load_state(parsed.state_file)
    title = f"SQL: {state.selected_index}" if state.selected_index else "SQL"
    add_history(state, title, query)
    save_state(state, parsed.state_file)
    logger.debug(f"Recorded query in {parsed.state_file}")


def run(parsed: argparse.Namespace) -> int:
    try:
        request = prepare_request(parsed, "POST", SQL_PATH, body=json.dumps({"query": parsed.query}))
        result = send(parsed, request)
        if result == 0 and parsed.save_history:
            _record(parsed, parsed.query)
        return result
    except BridgeError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except (OSError, ValueError, KeyError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

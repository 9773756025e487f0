from __future__ import annotations

import argparse
import sys
from typing import Optional
from urllib.parse import urlsplit

from esview.bridge import DEFAULT_STATE_FILE_PATH
from esview.bridge.cli._output import OUTPUT_FORMATS, print_response
from esview.bridge.connections import (
    Connection,
    build_auth_header,
    build_request,
    load_state,
    normalize_connection,
    resolve_connection,
)
from esview.bridge.errors import BridgeError
from esview.bridge.models import RequestDescription
from esview.bridge.requests import HttpBridge

COMMAND = "call"


def register_parser(subparsers: argparse._SubParsersAction) -> None:
    call_parser = subparsers.add_parser(
        COMMAND,
        help="Send a single HTTP request and print the response",
    )
    call_parser.add_argument("method", metavar="METHOD", help="HTTP method (GET, POST, PUT, DELETE, HEAD, PATCH)")
    call_parser.add_argument(
        "url",
        metavar="URL",
        help="Full URL, or a path relative to the base URL of the selected connection",
    )
    call_parser.add_argument("-d", "--data", help="Request body, sent as is")
    call_parser.add_argument(
        "-H",
        "--header",
        action="append",
        dest="headers",
        metavar="HEADER",
        help="Header in 'Key: Value' format (repeatable)",
    )
    add_connection_arguments(call_parser)
    call_parser.add_argument(
        "--format",
        dest="output_format",
        choices=OUTPUT_FORMATS,
        default="json",
        help="Output format: json (default), jsonl, csv, tsv, table (markdown), raw (body as is), status (code only)",
    )


def add_connection_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--connection", dest="connection_name", help="Connection name or id from the app state file")
    parser.add_argument(
        "--state-file",
        default=str(DEFAULT_STATE_FILE_PATH),
        help=f"App state file with connection profiles (default: {DEFAULT_STATE_FILE_PATH})",
    )
    parser.add_argument(
        "--no-keyring",
        action="store_true",
        default=False,
        help="Do not read connection secrets from the system keyring",
    )
    parser.add_argument("--timeout", type=float, default=None, help="Timeout in seconds (default: none)")


def _parse_headers(raw: list[str] | None) -> dict[str, str] | None:
    if not raw:
        return None
    headers: dict[str, str] = {}
    for h in raw:
        if ": " not in h:
            raise ValueError(f"Invalid header format '{h}'. Expected 'Key: Value'.")
        key, value = h.split(": ", 1)
        headers[key] = value
    return headers


def _with_stored_secret(connection: Connection, use_keyring: bool) -> Connection:
    if not use_keyring:
        return connection
    from esview.bridge.internal.secrets_store import load_secret

    secret = load_secret(connection.id)
    return connection.with_secret(secret) if secret else connection


def prepare_request(
    parsed: argparse.Namespace,
    method: str,
    url: str,
    body: Optional[str] = None,
    headers: Optional[dict[str, str]] = None,
) -> RequestDescription:
    """Turn command line arguments into a request, borrowing base URL and auth from a connection.

    Relative URLs need a connection and fall back to the one last used in the app.
    Absolute URLs only pick up auth from a connection that is named or whose host matches.
    """
    is_relative = not urlsplit(url).scheme
    state = load_state(parsed.state_file)
    connection = resolve_connection(
        state,
        url=None if is_relative else url,
        name=parsed.connection_name,
        fallback_to_last=is_relative,
    )

    if connection is None:
        if is_relative:
            raise ValueError(f"'{url}' is not an absolute URL and no connection was found in {parsed.state_file}")
        return RequestDescription(url=url, method=method, headers=headers, body=body)

    connection = _with_stored_secret(connection, not parsed.no_keyring)
    if is_relative:
        return build_request(connection, url, method=method, body=body, headers=headers)

    request_headers = dict(headers or {})
    auth = build_auth_header(normalize_connection(connection))
    if auth and not any(name.lower() == "authorization" for name in request_headers):
        request_headers["Authorization"] = auth
    return RequestDescription(url=url, method=method, headers=request_headers or None, body=body)


def send(parsed: argparse.Namespace, request: RequestDescription) -> int:
    with HttpBridge(timeout=parsed.timeout) as bridge:
        response = bridge.execute(request)
    print_response(response, output_format=getattr(parsed, "output_format", "json"))
    return 0 if response.ok else 1


def run(parsed: argparse.Namespace) -> int:
    try:
        headers = _parse_headers(parsed.headers)
        request = prepare_request(parsed, parsed.method, parsed.url, body=parsed.data, headers=headers)
        return send(parsed, request)
    except BridgeError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except (FileNotFoundError, ValueError, KeyError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

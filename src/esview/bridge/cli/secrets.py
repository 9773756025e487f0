from __future__ import annotations

import argparse
import getpass
import json
import sys

from esview.bridge.connections import ConnectionSecret
from esview.bridge.internal.secrets_store import clear_secret, load_secret, save_secret

COMMAND = "secrets"


def register_parser(subparsers: argparse._SubParsersAction) -> argparse.ArgumentParser:
    parser = subparsers.add_parser(
        COMMAND,
        help="Manage connection secrets in the system keyring",
    )
    subs = parser.add_subparsers(dest="secrets_action")

    put_p = subs.add_parser("put", help="Store a connection secret in the system keyring")
    put_p.add_argument("--connection", dest="connection_id", required=True, metavar="ID", help="Connection id")
    put_p.add_argument("--username", help="Username for basic auth")
    put_p.add_argument(
        "--password",
        help="Password for basic auth. Prompted for when --username is given without it.",
    )
    put_p.add_argument("--api-key", dest="api_key", help="API key for apiKey auth")

    get_p = subs.add_parser("get", help="Read a connection secret from the system keyring")
    get_p.add_argument("--connection", dest="connection_id", required=True, metavar="ID", help="Connection id")

    clear_p = subs.add_parser("clear", help="Remove a connection secret from the system keyring")
    clear_p.add_argument("--connection", dest="connection_id", required=True, metavar="ID", help="Connection id")

    return parser


def run(parsed: argparse.Namespace) -> int:
    if parsed.secrets_action == "put":
        return _run_put(parsed)
    if parsed.secrets_action == "get":
        return _run_read(parsed)
    if parsed.secrets_action == "clear":
        return _run_clear(parsed)
    return 0


def _run_put(parsed: argparse.Namespace) -> int:
    try:
        password = parsed.password
        if parsed.username and password is None:
            password = getpass.getpass(f"Password for {parsed.username}: ")
        secret = ConnectionSecret(username=parsed.username, password=password, api_key=parsed.api_key)
        if not secret.to_dict():
            print("Error: Nothing to store. Give --username or --api-key.", file=sys.stderr)
            return 1
        save_secret(parsed.connection_id, secret)
        print(f"Secret stored in keyring (connection={parsed.connection_id!r})")
        return 0
    except RuntimeError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def _run_read(parsed: argparse.Namespace) -> int:
    secret = load_secret(parsed.connection_id)
    if secret is None:
        print(f"No secret found in keyring (connection={parsed.connection_id!r})", file=sys.stderr)
        return 1
    print(json.dumps(secret.to_dict(), indent=2))
    return 0


def _run_clear(parsed: argparse.Namespace) -> int:
    clear_secret(parsed.connection_id)
    print(f"Secret cleared from keyring (connection={parsed.connection_id!r})")
    return 0

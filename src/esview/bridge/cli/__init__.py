from __future__ import annotations

import argparse
import logging
import sys
from types import ModuleType

from esview.bridge import __version__
from esview.bridge.cli import call, indices, ping, secrets, sql

_SUBCOMMANDS: list[ModuleType] = [call, ping, indices, sql, secrets]

_EPILOG = """\
examples:
  esview-bridge ping --connection local
  esview-bridge indices --connection local
  esview-bridge sql "SELECT * FROM logs LIMIT 5" --connection local
  esview-bridge call GET /_cluster/settings --connection local
"""


def create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="esview-bridge",
        description="Talk to the Elasticsearch clusters saved in ES View, the way the desktop app does",
        epilog=_EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("-v", "--verbose", action="store_true", default=False, help="Log requests and responses")
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    for subcommand in _SUBCOMMANDS:
        subcommand.register_parser(subparsers)

    return parser


def _configure_logging(verbose: bool = False) -> None:
    logger = logging.getLogger("esview.bridge")
    handler = logging.StreamHandler(sys.stderr)
    fmt = "%(levelname)s %(name)s: %(message)s" if verbose else "%(levelname)s: %(message)s"
    handler.setFormatter(logging.Formatter(fmt))
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG if verbose else logging.WARNING)


def main(args: list[str] | None = None) -> int:
    parser = create_parser()
    parsed = parser.parse_args(args)
    _configure_logging(verbose=parsed.verbose)

    commands = {subcommand.COMMAND: subcommand for subcommand in _SUBCOMMANDS}
    if parsed.command not in commands:
        parser.print_help()
        return 0
    return commands[parsed.command].run(parsed)


if __name__ == "__main__":
    sys.exit(main())

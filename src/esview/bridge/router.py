"""Command registration and invocation, as seen from the front-end.

The desktop host dispatches named commands with JSON-shaped arguments and hands back either the
JSON-shaped result or an error string. ``CommandRouter`` plays that role so the bridge can be wired
and exercised without the host.
"""

from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, Dict, Optional, Protocol

from esview.bridge.errors import BridgeError, InvalidPayloadError
from esview.bridge.models import RequestDescription, ResponseDescription
from esview.bridge.serde import deserialize, serialize_result

logger = logging.getLogger(__name__)

HTTP_REQUEST_COMMAND = "http_request"

CommandHandler = Callable[[Dict[str, Any]], Awaitable[Any]]


class Bridge(Protocol):
    async def execute(self, request: RequestDescription) -> ResponseDescription: ...


class CommandError(Exception):
    """Error string returned to the front-end for a failed command."""

    def __init__(self, message: str, *, kind: str = "command_error"):
        super().__init__(message)
        self.message = message
        self.kind = kind

    def __str__(self) -> str:
        return self.message


class CommandRouter:
    def __init__(self):
        self._handlers: Dict[str, CommandHandler] = {}

    @property
    def commands(self) -> list[str]:
        return sorted(self._handlers)

    def register(self, name: str, handler: CommandHandler) -> None:
        if name in self._handlers:
            raise ValueError(f"Command already registered: {name}")
        self._handlers[name] = handler

    async def invoke(self, name: str, args: Optional[Dict[str, Any]] = None) -> Any:
        """Run a registered command and return its JSON-compatible result.

        Raises:
            CommandError: If the command is unknown or its handler failed with a bridge error.
        """
        handler = self._handlers.get(name)
        if handler is None:
            raise CommandError(f"Unknown command: {name}", kind="unknown_command")

        try:
            result = await handler(args or {})
        except BridgeError as e:
            logger.debug(f"Command {name} failed ({e.kind}): {e}")
            raise CommandError(str(e), kind=e.kind) from e
        return serialize_result(result)


def http_request_handler(bridge: Bridge) -> CommandHandler:
    """Wrap a bridge as the handler of the http_request command, which takes ``{"request": {...}}``."""

    async def http_request(args: Dict[str, Any]) -> ResponseDescription:
        if "request" not in args:
            raise InvalidPayloadError("Missing argument 'request'")
        request = deserialize(args["request"], RequestDescription)
        return await bridge.execute(request)

    return http_request


def create_router(bridge: Bridge) -> CommandRouter:
    router = CommandRouter()
    router.register(HTTP_REQUEST_COMMAND, http_request_handler(bridge))
    return router

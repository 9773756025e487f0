"""Error taxonomy for the HTTP bridge.

Every failure surfaces to the caller as a human readable message. The ``kind`` tag lets callers
tell the failures apart without parsing the message.
"""

from typing import Optional


class BridgeError(Exception):
    """Base class for all bridge failures."""

    kind = "bridge_error"

    def __init__(self, message: str, *, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.message = message
        self.cause = cause

    def __str__(self) -> str:
        return self.message


class UnsupportedMethodError(BridgeError):
    """The method is not one of the supported verbs. Raised before any network activity."""

    kind = "unsupported_method"

    def __init__(self, method: str):
        super().__init__(f"Unsupported HTTP method: {method}")
        self.method = method


class DispatchError(BridgeError):
    """The request could not be sent or no response was received."""

    kind = "dispatch_failure"

    def __init__(self, cause: BaseException):
        super().__init__(f"Request failed: {_describe(cause)}", cause=cause)


class BodyReadError(BridgeError):
    """A response arrived but its body could not be read to completion."""

    kind = "body_read_failure"

    def __init__(self, cause: BaseException):
        super().__init__(f"Failed to read response body: {_describe(cause)}", cause=cause)


class InvalidPayloadError(BridgeError):
    """A command payload could not be turned into a request description."""

    kind = "invalid_payload"


class ClusterError(BridgeError):
    """The cluster answered with a non-2xx status.

    The message is the response body, which for Elasticsearch is the JSON error document.
    """

    kind = "cluster_error"

    def __init__(self, status: int, body: str):
        super().__init__(body or f"Request failed: {status}")
        self.status = status
        self.body = body


def _describe(cause: BaseException) -> str:
    # Some transport errors (e.g. bare timeouts) carry no message
    text = str(cause)
    return text if text else type(cause).__name__

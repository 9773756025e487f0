"""Synchronous HTTP bridge using requests."""

from __future__ import annotations

import logging
from typing import Optional, Union

import requests
from requests import Session

from esview.bridge._user_agent import get_user_agent
from esview.bridge.errors import BodyReadError, DispatchError
from esview.bridge.models import RequestDescription, ResponseDescription, resolve_method

logger = logging.getLogger(__name__)

Timeout = Union[None, float, tuple]


def _set_session_user_agent(session: Session, client_name: Optional[str] = None):
    """Set the User-Agent header for the session, including the client name if provided."""
    session.headers["User-Agent"] = get_user_agent(f"requests/{requests.__version__}", client_name)


def _encode_body(body: Optional[str]) -> Optional[bytes]:
    if body is None:
        return None
    return body.encode("utf-8")


class HttpBridge:
    """Forwards request descriptions to the network with a requests Session.

    Blocking twin of ``AsyncHttpBridge`` for scripts and the command line.
    Success is the 2xx range, unlike ``requests.Response.ok`` which also accepts redirects.

    Example:
        bridge = HttpBridge()
        response = bridge.execute(RequestDescription(url="http://localhost:9200/_cat/indices", method="GET"))
    """

    def __init__(
        self,
        *,
        session: Optional[Session] = None,
        client_name: Optional[str] = "auto",
        timeout: Timeout = None,
    ):
        """Initialize the bridge.

        Args:
            session: Session to send requests with. A new one is created and owned when omitted;
                a given session is left open by close().
            client_name: Name added to User-Agent. Use "auto" for class name, None for no name.
            timeout: Passed to every send. None waits indefinitely, as requests does by default.
        """
        if client_name == "auto":
            client_name = self.__class__.__name__

        owns_session = session is None
        if owns_session:
            session = requests.Session()
            _set_session_user_agent(session, client_name)
        self._session = session
        self._owns_session = owns_session
        self._timeout = timeout

    @property
    def session(self) -> Session:
        return self._session

    def execute(self, request: RequestDescription) -> ResponseDescription:
        """Send the described request and return the buffered response.

        Raises:
            UnsupportedMethodError: If the method is not supported. Nothing is sent.
            DispatchError: If the request could not be sent or no response arrived.
            BodyReadError: If the response body could not be read to completion.
        """
        method = resolve_method(request.method)
        logger.debug(f"Dispatching {method} {request.url}")

        try:
            prepared = self._session.prepare_request(
                requests.Request(method, request.url, headers=request.headers, data=_encode_body(request.body))
            )
            settings = self._session.merge_environment_settings(prepared.url, {}, True, None, None)
            settings["stream"] = True
            response = self._session.send(prepared, timeout=self._timeout, **settings)
        except (requests.RequestException, ValueError) as e:
            logger.debug(f"Request {method} {request.url} failed: {e!r}")
            raise DispatchError(e) from e

        # Decode text without a declared charset as UTF-8, not the ISO-8859-1 fallback requests applies to text/*.
        if "charset" not in response.headers.get("Content-Type", "").lower():
            response.encoding = "utf-8"
        try:
            body = response.text
        except (requests.RequestException, ValueError) as e:
            logger.debug(f"Reading response from {method} {request.url} failed: {e!r}")
            raise BodyReadError(e) from e
        finally:
            response.close()

        logger.debug(f"Got status={response.status_code} from {method} {request.url}")
        return ResponseDescription.from_status(response.status_code, body)

    def close(self) -> None:
        """Close the session if this bridge created it."""
        if self._owns_session:
            self._session.close()

    def __enter__(self) -> HttpBridge:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

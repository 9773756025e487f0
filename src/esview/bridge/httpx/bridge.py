"""Async HTTP bridge using httpx."""

import logging
from typing import Optional

import httpx

from esview.bridge._user_agent import get_user_agent
from esview.bridge.errors import BodyReadError, DispatchError
from esview.bridge.models import RequestDescription, ResponseDescription, resolve_method

logger = logging.getLogger(__name__)


class AsyncHttpBridge:
    """Forwards request descriptions to the network with an httpx AsyncClient.

    One client is shared by all calls made through the bridge, so connections are reused.
    Calls are independent of each other and may run concurrently.

    Example:
        async with AsyncHttpBridge() as bridge:
            response = await bridge.execute(RequestDescription(url="http://localhost:9200", method="get"))
            print(response.status, response.body)
    """

    def __init__(
        self,
        *,
        client: Optional[httpx.AsyncClient] = None,
        client_name: Optional[str] = "auto",
        **kwargs,
    ):
        """Initialize the bridge.

        Args:
            client: Client to send requests with. The bridge does not close a client it was given.
            client_name: Name added to User-Agent. Use "auto" for class name, None for no name.
            **kwargs: Additional arguments passed to the httpx client the bridge creates (e.g. transport, timeout).
        """
        if client_name == "auto":
            client_name = self.__class__.__name__

        if client is None:
            headers = kwargs.pop("headers", {})
            headers.setdefault("User-Agent", get_user_agent(f"python-httpx/{httpx.__version__}", client_name))
            client = httpx.AsyncClient(headers=headers, **kwargs)
            self._owns_client = True
        else:
            self._owns_client = False
        self._client = client

    @property
    def client(self) -> httpx.AsyncClient:
        return self._client

    async def execute(self, request: RequestDescription) -> ResponseDescription:
        """Send the described request and return the buffered response.

        Raises:
            UnsupportedMethodError: If the method is not supported. Nothing is sent.
            DispatchError: If the request could not be sent or no response arrived.
            BodyReadError: If the response body could not be read to completion.
        """
        method = resolve_method(request.method)
        logger.debug(f"Dispatching {method} {request.url}")

        try:
            outgoing = self._client.build_request(method, request.url, headers=request.headers, content=request.body)
            response = await self._client.send(outgoing, stream=True)
        except (httpx.HTTPError, httpx.InvalidURL, ValueError) as e:
            logger.debug(f"Request {method} {request.url} failed: {e!r}")
            raise DispatchError(e) from e

        try:
            await response.aread()
            body = response.text
        except (httpx.HTTPError, ValueError) as e:
            logger.debug(f"Reading response from {method} {request.url} failed: {e!r}")
            raise BodyReadError(e) from e
        finally:
            await response.aclose()

        logger.debug(f"Got status={response.status_code} from {method} {request.url}")
        return ResponseDescription(status=response.status_code, ok=response.is_success, body=body)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "AsyncHttpBridge":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()

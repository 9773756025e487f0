"""Unit tests for HttpBridge (requests)."""

import io
import unittest
from unittest import mock

import requests
from requests.adapters import BaseAdapter
from requests.structures import CaseInsensitiveDict
from requests.utils import get_encoding_from_headers

from esview.bridge.errors import BodyReadError, DispatchError, UnsupportedMethodError
from esview.bridge.models import RequestDescription, ResponseDescription
from esview.bridge.requests import HttpBridge


class _BrokenBody(io.RawIOBase):
    def read(self, size=-1):
        raise requests.exceptions.ChunkedEncodingError("Connection broken: IncompleteRead(7 bytes read)")


class _RecordingAdapter(BaseAdapter):
    """Transport adapter that records prepared requests and answers with a canned response."""

    def __init__(self, status=200, body=b"", error=None, raw=None, content_type="text/plain; charset=utf-8"):
        super().__init__()
        self.content_type = content_type
        self.status = status
        self.body = body
        self.error = error
        self.raw = raw
        self.requests = []
        self.send_kwargs = []

    def send(self, request, stream=False, timeout=None, verify=True, cert=None, proxies=None):
        self.requests.append(request)
        self.send_kwargs.append({"stream": stream, "timeout": timeout})
        if self.error is not None:
            raise self.error
        response = requests.Response()
        response.status_code = self.status
        response.headers = CaseInsensitiveDict()
        if self.content_type is not None:
            response.headers["Content-Type"] = self.content_type
        # as HTTPAdapter.build_response does
        response.encoding = get_encoding_from_headers(response.headers)
        response.raw = self.raw if self.raw is not None else io.BytesIO(self.body)
        response.url = request.url
        response.request = request
        return response

    def close(self):
        pass


class HttpBridgeTest(unittest.TestCase):
    def _bridge(self, adapter, **kwargs) -> HttpBridge:
        bridge = HttpBridge(**kwargs)
        bridge.session.mount("http://", adapter)
        self.addCleanup(bridge.close)
        return bridge

    def test_method_case_does_not_matter(self):
        adapter = _RecordingAdapter()
        bridge = self._bridge(adapter)
        for method in ("get", "Post", "PUT", "delete", "head", "Patch"):
            bridge.execute(RequestDescription(url="http://es.local/", method=method))
        self.assertEqual([r.method for r in adapter.requests], ["GET", "POST", "PUT", "DELETE", "HEAD", "PATCH"])

    def test_unsupported_method_sends_nothing(self):
        adapter = _RecordingAdapter()
        bridge = self._bridge(adapter)
        with self.assertRaises(UnsupportedMethodError) as cm:
            bridge.execute(RequestDescription(url="http://es.local/", method="Options"))
        self.assertEqual(str(cm.exception), "Unsupported HTTP method: Options")
        self.assertEqual(adapter.requests, [])

    def test_headers_and_body(self):
        adapter = _RecordingAdapter()
        bridge = self._bridge(adapter)
        bridge.execute(
            RequestDescription(
                url="http://es.local/",
                method="POST",
                headers={"X-Test": "1", "Accept": "application/json"},
                body="hello",
            )
        )
        sent = adapter.requests[0]
        self.assertEqual(sent.headers["X-Test"], "1")
        self.assertEqual(sent.headers["Accept"], "application/json")
        self.assertEqual(sent.body, b"hello")

    def test_post_without_body_is_empty(self):
        adapter = _RecordingAdapter()
        bridge = self._bridge(adapter)
        bridge.execute(RequestDescription(url="http://es.local/", method="POST"))
        self.assertFalse(adapter.requests[0].body)

    def test_response_is_streamed_then_buffered(self):
        adapter = _RecordingAdapter(status=201, body=b"created")
        bridge = self._bridge(adapter, timeout=2.5)
        response = bridge.execute(RequestDescription(url="http://es.local/idx", method="PUT"))
        self.assertEqual(response, ResponseDescription(status=201, ok=True, body="created"))
        self.assertEqual(adapter.send_kwargs[0], {"stream": True, "timeout": 2.5})

    def test_not_found(self):
        bridge = self._bridge(_RecordingAdapter(status=404, body=b"not found"))
        response = bridge.execute(RequestDescription(url="http://es.local/missing", method="GET"))
        self.assertEqual(response, ResponseDescription(status=404, ok=False, body="not found"))

    def test_redirect_status_is_not_ok(self):
        # requests.Response.ok is true below 400
        bridge = self._bridge(_RecordingAdapter(status=304))
        response = bridge.execute(RequestDescription(url="http://es.local/", method="GET"))
        self.assertEqual(response.status, 304)
        self.assertFalse(response.ok)

    def test_connection_error(self):
        bridge = self._bridge(_RecordingAdapter(error=requests.ConnectionError("connection refused")))
        with self.assertRaises(DispatchError) as cm:
            bridge.execute(RequestDescription(url="http://es.local/", method="GET"))
        self.assertEqual(str(cm.exception), "Request failed: connection refused")

    def test_malformed_url_is_a_dispatch_error(self):
        adapter = _RecordingAdapter()
        bridge = self._bridge(adapter)
        with self.assertRaises(DispatchError) as cm:
            bridge.execute(RequestDescription(url="not a url", method="GET"))
        self.assertIsInstance(cm.exception.cause, requests.exceptions.MissingSchema)
        self.assertEqual(adapter.requests, [])

    def test_text_without_charset_is_utf8(self):
        body = "h\u00e9llo w\u00f6rld"
        bridge = self._bridge(_RecordingAdapter(body=body.encode("utf-8"), content_type="text/plain"))
        response = bridge.execute(RequestDescription(url="http://es.local/_cat/indices", method="GET"))
        self.assertEqual(response.body, body)

    def test_declared_charset_is_honoured(self):
        body = "h\u00e9llo"
        adapter = _RecordingAdapter(body=body.encode("iso-8859-1"), content_type="text/plain; charset=ISO-8859-1")
        bridge = self._bridge(adapter)
        response = bridge.execute(RequestDescription(url="http://es.local/", method="GET"))
        self.assertEqual(response.body, body)

    def test_json_without_content_type_is_utf8(self):
        body = "{\"name\": \"\u65e5\u5fd7\"}"
        bridge = self._bridge(_RecordingAdapter(body=body.encode("utf-8"), content_type=None))
        response = bridge.execute(RequestDescription(url="http://es.local/", method="GET"))
        self.assertEqual(response.body, body)

    def test_body_read_failure(self):
        bridge = self._bridge(_RecordingAdapter(raw=_BrokenBody()))
        with self.assertRaises(BodyReadError) as cm:
            bridge.execute(RequestDescription(url="http://es.local/", method="GET"))
        self.assertIn("Failed to read response body: Connection broken", str(cm.exception))

    def test_same_request_twice_gives_equal_responses(self):
        bridge = self._bridge(_RecordingAdapter(status=200, body=b"[]"))
        request = RequestDescription(url="http://es.local/_cat/indices?format=json", method="GET")
        self.assertEqual(bridge.execute(request), bridge.execute(request))

    def test_user_agent(self):
        adapter = _RecordingAdapter()
        bridge = self._bridge(adapter, client_name="Cli")
        bridge.execute(RequestDescription(url="http://es.local/", method="GET"))
        self.assertTrue(adapter.requests[0].headers["User-Agent"].endswith("requests/{} Cli".format(requests.__version__)))

    def test_given_session_is_used_as_is(self):
        session = mock.MagicMock()
        bridge = HttpBridge(session=session)
        self.assertIs(bridge.session, session)
        session.headers.__setitem__.assert_not_called()

    def test_close_leaves_given_session_open(self):
        session = mock.MagicMock()
        with HttpBridge(session=session):
            pass
        session.close.assert_not_called()

    def test_close_closes_own_session(self):
        bridge = HttpBridge()
        with mock.patch.object(bridge.session, "close") as mock_close:
            bridge.close()
        mock_close.assert_called_once_with()


if __name__ == "__main__":
    unittest.main()

"""Unit tests for the cluster clients."""

import json
import unittest
from unittest import mock

import httpx

from esview.bridge.client import (
    AsyncClusterClient,
    ClusterClient,
    decode_response,
    extract_fields_from_mapping,
)
from esview.bridge.connections import AUTH_API_KEY, Connection
from esview.bridge.errors import BodyReadError, ClusterError
from esview.bridge.httpx import AsyncHttpBridge
from esview.bridge.models import RequestDescription, ResponseDescription

CONNECTION = Connection(id="c1", name="local", base_url="http://localhost:9200/", auth_type=AUTH_API_KEY, api_key="k")

MAPPING = {
    "logs": {
        "mappings": {
            "properties": {
                "message": {"type": "text"},
                "host": {"properties": {"name": {"type": "keyword"}, "ip": {"type": "ip"}}},
                "@timestamp": {"type": "date"},
            }
        }
    }
}


class DecodeResponseTest(unittest.TestCase):
    def test_json_body(self):
        self.assertEqual(decode_response(ResponseDescription.from_status(200, '{"count": 3}')), {"count": 3})

    def test_empty_body(self):
        self.assertIsNone(decode_response(ResponseDescription.from_status(200, "")))

    def test_error_status_raises_with_body(self):
        body = '{"error": {"type": "index_not_found_exception"}, "status": 404}'
        with self.assertRaises(ClusterError) as cm:
            decode_response(ResponseDescription.from_status(404, body))
        self.assertEqual(str(cm.exception), body)
        self.assertEqual(cm.exception.status, 404)
        self.assertEqual(cm.exception.kind, "cluster_error")

    def test_error_status_without_body(self):
        with self.assertRaises(ClusterError) as cm:
            decode_response(ResponseDescription.from_status(502, ""))
        self.assertEqual(str(cm.exception), "Request failed: 502")

    def test_invalid_json(self):
        with self.assertRaises(BodyReadError):
            decode_response(ResponseDescription.from_status(200, "<html>proxy</html>"))


class ExtractFieldsTest(unittest.TestCase):
    def test_nested_fields(self):
        self.assertEqual(
            extract_fields_from_mapping(MAPPING, "logs"),
            ["message", "host", "host.name", "host.ip", "@timestamp"],
        )

    def test_unknown_index(self):
        self.assertEqual(extract_fields_from_mapping(MAPPING, "metrics"), [])

    def test_index_without_properties(self):
        self.assertEqual(extract_fields_from_mapping({"empty": {"mappings": {}}}, "empty"), [])
        self.assertEqual(extract_fields_from_mapping(None, "logs"), [])


class ClusterClientTest(unittest.TestCase):
    def setUp(self):
        self.bridge = mock.MagicMock()
        self.bridge.execute.return_value = ResponseDescription.from_status(200, "{}")
        self.client = ClusterClient(self.bridge, CONNECTION)

    def _sent(self) -> RequestDescription:
        return self.bridge.execute.call_args[0][0]

    def test_ping_cluster(self):
        self.bridge.execute.return_value = ResponseDescription.from_status(200, '{"status": "green"}')
        self.assertEqual(self.client.ping_cluster(), {"status": "green"})
        sent = self._sent()
        self.assertEqual((sent.method, sent.url), ("GET", "http://localhost:9200/_cluster/health"))
        self.assertEqual(sent.headers["Authorization"], "ApiKey k")
        self.assertIsNone(sent.body)

    def test_sql_query(self):
        self.client.sql_query("SELECT * FROM logs")
        sent = self._sent()
        self.assertEqual((sent.method, sent.url), ("POST", "http://localhost:9200/_sql?format=json"))
        self.assertEqual(json.loads(sent.body), {"query": "SELECT * FROM logs"})

    def test_list_indices(self):
        self.bridge.execute.return_value = ResponseDescription.from_status(200, '[{"index": "logs"}]')
        self.assertEqual(self.client.list_indices(), [{"index": "logs"}])
        self.assertEqual(self._sent().url, "http://localhost:9200/_cat/indices?format=json")

    def test_index_operations(self):
        cases = [
            (lambda: self.client.search_index("logs", {"size": 1}), "POST", "/logs/_search", {"size": 1}),
            (lambda: self.client.get_index_info("logs"), "GET", "/logs", None),
            (lambda: self.client.create_index("logs", {"settings": {}}), "PUT", "/logs", {"settings": {}}),
            (lambda: self.client.delete_index("logs"), "DELETE", "/logs", None),
            (lambda: self.client.refresh_index("logs"), "POST", "/logs/_refresh", None),
            (lambda: self.client.get_index_mapping("logs"), "GET", "/logs/_mapping", None),
        ]
        for call, method, path, body in cases:
            with self.subTest(path=path, method=method):
                call()
                sent = self._sent()
                self.assertEqual(sent.method, method)
                self.assertEqual(sent.url, f"http://localhost:9200{path}")
                self.assertEqual(None if sent.body is None else json.loads(sent.body), body)

    def test_document_id_is_url_encoded(self):
        self.client.delete_document("logs", "a/b c?")
        self.assertEqual(self._sent().url, "http://localhost:9200/logs/_doc/a%2Fb%20c%3F")
        self.assertEqual(self._sent().method, "DELETE")

        self.client.update_document("logs", "42", {"message": "hi"})
        self.assertEqual(self._sent().method, "PUT")
        self.assertEqual(self._sent().url, "http://localhost:9200/logs/_doc/42")
        self.assertEqual(json.loads(self._sent().body), {"message": "hi"})

    def test_field_names(self):
        self.bridge.execute.return_value = ResponseDescription.from_status(200, json.dumps(MAPPING))
        self.assertEqual(self.client.field_names("logs"), ["message", "host", "host.name", "host.ip", "@timestamp"])

    def test_error_response_raises(self):
        self.bridge.execute.return_value = ResponseDescription.from_status(400, '{"error": "parsing_exception"}')
        with self.assertRaises(ClusterError) as cm:
            self.client.sql_query("SELEC")
        self.assertEqual(cm.exception.body, '{"error": "parsing_exception"}')


class AsyncClusterClientTest(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self):
        self.requests = []

        def handler(request: httpx.Request) -> httpx.Response:
            self.requests.append(request)
            if request.url.path == "/missing":
                return httpx.Response(404, json={"error": "index_not_found_exception"})
            return httpx.Response(200, json={"acknowledged": True})

        bridge = AsyncHttpBridge(transport=httpx.MockTransport(handler))
        self.addAsyncCleanup(bridge.aclose)
        self.client = AsyncClusterClient(bridge, CONNECTION)

    async def test_operations_go_through_the_bridge(self):
        result = await self.client.create_index("logs", {"mappings": {}})
        self.assertEqual(result, {"acknowledged": True})
        sent = self.requests[0]
        self.assertEqual(sent.method, "PUT")
        self.assertEqual(str(sent.url), "http://localhost:9200/logs")
        self.assertEqual(sent.headers["Authorization"], "ApiKey k")
        self.assertEqual(sent.headers["Content-Type"], "application/json")
        self.assertEqual(json.loads(sent.content), {"mappings": {}})

    async def test_error_response_raises(self):
        with self.assertRaises(ClusterError) as cm:
            await self.client.get_index_info("missing")
        self.assertEqual(cm.exception.status, 404)
        self.assertIn("index_not_found_exception", str(cm.exception))


if __name__ == "__main__":
    unittest.main()

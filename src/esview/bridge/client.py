"""Elasticsearch operations used by the ES View app, sent through a bridge.

Each operation builds a request against a connection, sends it and decodes the JSON answer.
A non-2xx answer raises ClusterError carrying the response body.

Example:
    client = ClusterClient(HttpBridge(), connection)
    client.sql_query("SELECT * FROM logs LIMIT 10")

    async with AsyncHttpBridge() as bridge:
        await AsyncClusterClient(bridge, connection).list_indices()
"""

import json
import logging
from typing import Any, Dict, List
from urllib.parse import quote

from esview.bridge.connections import Connection, build_request
from esview.bridge.errors import BodyReadError, ClusterError
from esview.bridge.models import RequestDescription, ResponseDescription

logger = logging.getLogger(__name__)

HEALTH_PATH = "/_cluster/health"
SQL_PATH = "/_sql?format=json"
CAT_INDICES_PATH = "/_cat/indices?format=json"


def decode_response(response: ResponseDescription) -> Any:
    """Return the parsed JSON body of a successful response, None if it is empty."""
    if not response.ok:
        raise ClusterError(response.status, response.body)
    if not response.body:
        return None
    try:
        return json.loads(response.body)
    except ValueError as e:
        raise BodyReadError(e) from e


def extract_fields_from_mapping(mapping: Dict[str, Any], index_name: str) -> List[str]:
    """List the dotted paths of every field in an index mapping, parents before their children."""
    index_mapping = (mapping or {}).get(index_name) or {}
    properties = (index_mapping.get("mappings") or {}).get("properties")
    fields: List[str] = []
    if not properties:
        return fields

    def traverse(props: Dict[str, Any], prefix: str = "") -> None:
        for key, definition in props.items():
            path = f"{prefix}.{key}" if prefix else key
            fields.append(path)
            if isinstance(definition, dict) and definition.get("properties"):
                traverse(definition["properties"], path)

    traverse(properties)
    return fields


def _doc_path(index: str, doc_id: str) -> str:
    return f"/{index}/_doc/{quote(doc_id, safe='')}"


class _ClusterOperations:
    """Operations shared by the blocking and the async client.

    Every operation returns whatever ``_send`` returns: the decoded body, or an awaitable of it.
    """

    def __init__(self, bridge, connection: Connection):
        self._bridge = bridge
        self._connection = connection

    @property
    def connection(self) -> Connection:
        return self._connection

    def _build(self, path: str, method: str, body: Any) -> RequestDescription:
        logger.debug(f"{method} {path} on connection {self._connection.id}")
        return build_request(self._connection, path, method=method, body=body)

    def _send(self, path: str, method: str = "GET", body: Any = None):
        raise NotImplementedError

    def request(self, path: str, method: str = "GET", body: Any = None):
        return self._send(path, method, body)

    def ping_cluster(self):
        return self._send(HEALTH_PATH)

    def sql_query(self, query: str):
        return self._send(SQL_PATH, "POST", {"query": query})

    def list_indices(self):
        return self._send(CAT_INDICES_PATH)

    def search_index(self, index: str, body: Any):
        return self._send(f"/{index}/_search", "POST", body)

    def get_index_info(self, index: str):
        return self._send(f"/{index}")

    def create_index(self, index: str, body: Any = None):
        return self._send(f"/{index}", "PUT", body)

    def delete_index(self, index: str):
        return self._send(f"/{index}", "DELETE")

    def refresh_index(self, index: str):
        return self._send(f"/{index}/_refresh", "POST")

    def get_index_mapping(self, index: str):
        return self._send(f"/{index}/_mapping")

    def delete_document(self, index: str, doc_id: str):
        return self._send(_doc_path(index, doc_id), "DELETE")

    def update_document(self, index: str, doc_id: str, doc: Any):
        return self._send(_doc_path(index, doc_id), "PUT", doc)


class ClusterClient(_ClusterOperations):
    """Cluster operations over a blocking bridge such as ``HttpBridge``."""

    def _send(self, path: str, method: str = "GET", body: Any = None) -> Any:
        return decode_response(self._bridge.execute(self._build(path, method, body)))

    def field_names(self, index: str) -> List[str]:
        return extract_fields_from_mapping(self.get_index_mapping(index), index)


class AsyncClusterClient(_ClusterOperations):
    """Cluster operations over ``AsyncHttpBridge``; every operation is awaited."""

    async def _send(self, path: str, method: str = "GET", body: Any = None) -> Any:
        return decode_response(await self._bridge.execute(self._build(path, method, body)))

    async def field_names(self, index: str) -> List[str]:
        return extract_fields_from_mapping(await self.get_index_mapping(index), index)


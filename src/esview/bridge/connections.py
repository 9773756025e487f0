"""Cluster connection profiles stored by the desktop app, and request building on top of them."""

import base64
import json
import logging
import re
import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Union
from urllib.parse import unquote, urlsplit, urlunsplit

from esview.bridge import DEFAULT_STATE_FILE_PATH
from esview.bridge.models import RequestDescription
from esview.bridge.serde import serialize_result

logger = logging.getLogger(__name__)

AUTH_NONE = "none"
AUTH_BASIC = "basic"
AUTH_API_KEY = "apiKey"
AUTH_TYPES = (AUTH_NONE, AUTH_BASIC, AUTH_API_KEY)

HISTORY_LIMIT = 10


@dataclass
class ConnectionSecret:
    username: Optional[str] = None
    password: Optional[str] = None
    api_key: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ConnectionSecret":
        return cls(username=data.get("username"), password=data.get("password"), api_key=data.get("apiKey"))

    def to_dict(self) -> Dict[str, Any]:
        data = {"username": self.username, "password": self.password, "apiKey": self.api_key}
        return {k: v for k, v in data.items() if v is not None}


@dataclass
class Connection:
    id: str
    name: str
    base_url: str
    auth_type: str = AUTH_NONE
    username: Optional[str] = None
    password: Optional[str] = None
    api_key: Optional[str] = None
    # Kept so profiles survive a save; requests are sent with the HTTP library's default verification.
    verify_tls: bool = True

    def secret(self) -> ConnectionSecret:
        return ConnectionSecret(username=self.username, password=self.password, api_key=self.api_key)

    def with_secret(self, secret: ConnectionSecret) -> "Connection":
        """Return a copy with the secret's non-empty values taking precedence."""
        return replace(
            self,
            username=secret.username or self.username,
            password=secret.password or self.password,
            api_key=secret.api_key or self.api_key,
        )


@dataclass
class QueryHistoryItem:
    id: str
    title: str
    sql: str
    created_at: str

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "QueryHistoryItem":
        return cls(
            id=data["id"],
            title=data.get("title", ""),
            sql=data.get("sql", ""),
            created_at=data.get("createdAt", ""),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "title": self.title, "sql": self.sql, "createdAt": self.created_at}


@dataclass
class AppState:
    connections: Dict[str, Connection] = field(default_factory=dict)
    history: List[QueryHistoryItem] = field(default_factory=list)
    last_connection_id: Optional[str] = None
    selected_index: Optional[str] = None


def load_state(path: Union[str, Path] = DEFAULT_STATE_FILE_PATH) -> AppState:
    """Load connection profiles and their secrets from the app state file.

    Returns an empty AppState if the file doesn't exist.
    """
    expanded = Path(path).expanduser()
    if not expanded.exists():
        return AppState()

    data = json.loads(expanded.read_text(encoding="utf-8"))
    secrets = data.get("secrets", {})

    connections = {}
    for profile in data.get("profiles", []):
        auth_type = profile.get("authType", AUTH_NONE)
        if auth_type not in AUTH_TYPES:
            raise ValueError(f"Unknown auth type '{auth_type}' for connection {profile.get('id')}")
        connection = Connection(
            id=profile["id"],
            name=profile.get("name", profile["id"]),
            base_url=profile["baseUrl"],
            auth_type=auth_type,
            verify_tls=profile.get("verifyTls", True),
        )
        if connection.id in secrets:
            connection = connection.with_secret(ConnectionSecret.from_dict(secrets[connection.id]))
        connections[connection.id] = connection

    logger.debug(f"Loaded {len(connections)} connection(s) from {expanded}")
    return AppState(
        connections=connections,
        history=[QueryHistoryItem.from_dict(item) for item in data.get("history", [])],
        last_connection_id=data.get("lastConnectionId"),
        selected_index=data.get("selectedIndex"),
    )


def state_to_dict(state: AppState) -> Dict[str, Any]:
    """Lay out the state the way the desktop app stores it: profiles, secrets keyed by id, history."""
    profiles = []
    secrets = {}
    for connection in state.connections.values():
        profiles.append(
            {
                "id": connection.id,
                "name": connection.name,
                "baseUrl": connection.base_url,
                "authType": connection.auth_type,
                "verifyTls": connection.verify_tls,
            }
        )
        secret = connection.secret().to_dict()
        if secret:
            secrets[connection.id] = secret

    data: Dict[str, Any] = {
        "profiles": profiles,
        "secrets": secrets,
        "history": [item.to_dict() for item in state.history],
    }
    if state.last_connection_id is not None:
        data["lastConnectionId"] = state.last_connection_id
    if state.selected_index is not None:
        data["selectedIndex"] = state.selected_index
    return data


def save_state(state: AppState, path: Union[str, Path] = DEFAULT_STATE_FILE_PATH) -> None:
    """Write the state file, creating its directory if needed."""
    expanded = Path(path).expanduser()
    expanded.parent.mkdir(parents=True, exist_ok=True)
    expanded.write_text(json.dumps(state_to_dict(state), indent=2, ensure_ascii=False), encoding="utf-8")
    logger.debug(f"Saved {len(state.connections)} connection(s) to {expanded}")


def _normalize_sql(sql: str) -> str:
    return re.sub(r"\s+", " ", re.sub(r"\s*;+\s*$", "", sql)).strip().lower()


def add_history(state: AppState, title: str, sql: str) -> Optional[QueryHistoryItem]:
    """Put a query at the top of the history.

    Blank queries are not recorded. An older entry for the same query (ignoring case, whitespace and
    trailing semicolons) is replaced, and only the newest HISTORY_LIMIT entries are kept.
    """
    sql = sql.strip()
    if not sql:
        return None

    now = datetime.now(timezone.utc)
    item = QueryHistoryItem(
        id=f"{int(now.timestamp() * 1000)}-{uuid.uuid4().hex[:12]}",
        title=title,
        sql=sql,
        created_at=now.isoformat(timespec="milliseconds").replace("+00:00", "Z"),
    )
    key = _normalize_sql(sql)
    kept = [h for h in state.history if _normalize_sql(h.sql) != key]
    state.history = [item, *kept][:HISTORY_LIMIT]
    return item


def resolve_connection(
    state: AppState,
    url: Optional[str] = None,
    name: Optional[str] = None,
    *,
    fallback_to_last: bool = True,
) -> Optional[Connection]:
    """Resolve which connection to use.

    Resolution order:
    1. Explicit name or id (--connection flag)
    2. Host and port match between url and a connection's base URL
    3. The last connection used in the app, unless fallback_to_last is False
    4. None
    """
    if name:
        for connection in state.connections.values():
            if name in (connection.id, connection.name):
                return connection
        raise ValueError(f"Unknown connection: {name}")

    if url:
        target = _host_port(url)
        if target[0]:
            for connection in state.connections.values():
                if _host_port(normalize_connection(connection).base_url) == target:
                    return connection

    if fallback_to_last and state.last_connection_id and state.last_connection_id in state.connections:
        return state.connections[state.last_connection_id]

    return None


def _host_port(url: str) -> tuple:
    try:
        parts = urlsplit(url)
        return parts.hostname, parts.port
    except ValueError:
        return None, None


def normalize_connection(connection: Connection) -> Connection:
    """Move credentials embedded in the base URL of an unauthenticated connection into basic auth."""
    if connection.auth_type != AUTH_NONE:
        return connection

    try:
        parts = urlsplit(connection.base_url)
    except ValueError:
        return connection
    if not parts.username and not parts.password:
        return connection

    netloc = parts.netloc.rsplit("@", 1)[1]
    base_url = urlunsplit((parts.scheme, netloc, parts.path, parts.query, parts.fragment)).rstrip("/")
    return replace(
        connection,
        base_url=base_url,
        auth_type=AUTH_BASIC,
        username=unquote(parts.username or ""),
        password=unquote(parts.password or ""),
    )


def build_auth_header(connection: Connection) -> Optional[str]:
    if connection.auth_type == AUTH_BASIC and connection.username and connection.password:
        token = base64.b64encode(f"{connection.username}:{connection.password}".encode("utf-8")).decode("ascii")
        return f"Basic {token}"
    if connection.auth_type == AUTH_API_KEY and connection.api_key:
        return f"ApiKey {connection.api_key}"
    return None


def build_url(base_url: str, path: str) -> str:
    return f"{base_url.rstrip('/')}/{path.lstrip('/')}"


def build_request(
    connection: Connection,
    path: str,
    method: str = "GET",
    body: Any = None,
    headers: Optional[Dict[str, str]] = None,
) -> RequestDescription:
    """Build a request against a connection's cluster.

    A str body is sent as is; anything else is serialized to JSON.
    """
    normalized = normalize_connection(connection)

    request_headers = {"Content-Type": "application/json"}
    auth = build_auth_header(normalized)
    if auth:
        request_headers["Authorization"] = auth
    if headers:
        request_headers.update(headers)

    if body is not None and not isinstance(body, str):
        body = json.dumps(serialize_result(body))

    return RequestDescription(
        url=build_url(normalized.base_url, path),
        method=method,
        headers=request_headers,
        body=body,
    )

"""Request and response descriptions exchanged with the front-end."""

from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

from esview.bridge.errors import InvalidPayloadError, UnsupportedMethodError

# Upper-cased name -> verb sent on the wire
SUPPORTED_METHODS: Dict[str, str] = {
    "GET": "GET",
    "POST": "POST",
    "PUT": "PUT",
    "DELETE": "DELETE",
    "HEAD": "HEAD",
    "PATCH": "PATCH",
}


def resolve_method(method: str) -> str:
    """Resolve a method name case-insensitively.

    Raises:
        UnsupportedMethodError: If the method is not supported. The error carries the method as given.
    """
    verb = SUPPORTED_METHODS.get(method.upper()) if isinstance(method, str) else None
    if verb is None:
        raise UnsupportedMethodError(method)
    return verb


def is_success(status: int) -> bool:
    return 200 <= status <= 299


@dataclass(frozen=True)
class RequestDescription:
    url: str
    method: str
    headers: Optional[Dict[str, str]] = None
    body: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "RequestDescription":
        """Build a request description from a JSON-shaped payload.

        Raises:
            InvalidPayloadError: If a required field is missing or a field has the wrong type.
        """
        if not isinstance(data, Mapping):
            raise InvalidPayloadError(f"Expected a request object, got {type(data).__name__}")

        for key in ("url", "method"):
            if key not in data:
                raise InvalidPayloadError(f"Missing field '{key}' in request")
            if not isinstance(data[key], str):
                raise InvalidPayloadError(f"Field '{key}' must be a string, got {type(data[key]).__name__}")

        headers = data.get("headers")
        if headers is not None:
            if not isinstance(headers, Mapping):
                raise InvalidPayloadError(f"Field 'headers' must be an object, got {type(headers).__name__}")
            for name, value in headers.items():
                if not isinstance(name, str) or not isinstance(value, str):
                    raise InvalidPayloadError(f"Header '{name}' must map a string to a string")
            headers = dict(headers)

        body = data.get("body")
        if body is not None and not isinstance(body, str):
            raise InvalidPayloadError(f"Field 'body' must be a string, got {type(body).__name__}")

        return cls(url=data["url"], method=data["method"], headers=headers, body=body)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"url": self.url, "method": self.method}
        if self.headers is not None:
            data["headers"] = dict(self.headers)
        if self.body is not None:
            data["body"] = self.body
        return data


@dataclass(frozen=True)
class ResponseDescription:
    status: int
    ok: bool
    body: str

    @classmethod
    def from_status(cls, status: int, body: str) -> "ResponseDescription":
        return cls(status=status, ok=is_success(status), body=body)

    def to_dict(self) -> Dict[str, Any]:
        return {"status": self.status, "ok": self.ok, "body": self.body}

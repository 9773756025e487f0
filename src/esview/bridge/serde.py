"""Serialization and deserialization for payloads crossing the command boundary."""

from collections.abc import Mapping
from typing import Any, Type


def serialize_result(value: Any) -> Any:
    """Serialize a command result to a JSON-compatible value.

    Supports:
    - None, dict, list, primitives (passed through)
    - Pydantic v2 models (model_dump)
    - Objects with to_json() or to_dict() method (duck typing)
    - Nested objects inside containers are recursively serialized

    Raises:
        ValueError: If value contains bytes
        TypeError: If value type is not supported
    """
    if value is None:
        return None
    if isinstance(value, (str, int, float, bool)):
        return value
    if isinstance(value, bytes):
        raise ValueError("bytes data is not supported")
    if isinstance(value, Mapping):
        return {k: serialize_result(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [serialize_result(item) for item in value]
    if hasattr(value, "model_dump") and callable(value.model_dump):  # Pydantic v2
        return serialize_result(value.model_dump())
    if hasattr(value, "to_json") and callable(value.to_json):
        return serialize_result(value.to_json())
    if hasattr(value, "to_dict") and callable(value.to_dict):
        return serialize_result(value.to_dict())
    raise TypeError(
        f"Cannot serialize value of type {type(value).__name__}. Expected dict, list, primitive, or Serializable."
    )


def deserialize(data: Any, cls: Type) -> Any:
    """Deserialize a JSON-compatible value into cls using duck-typed methods.

    Supports:
    - Pydantic v2 models (model_validate)
    - Classes with from_dict() class method
    - Classes with from_json() class method
    """
    if hasattr(cls, "model_validate") and callable(cls.model_validate):  # Pydantic v2
        return cls.model_validate(data)

    if hasattr(cls, "from_dict") and callable(cls.from_dict):
        return cls.from_dict(data)

    if hasattr(cls, "from_json") and callable(cls.from_json):
        return cls.from_json(data)

    raise TypeError(
        f"Cannot deserialize to {cls.__name__}. "
        f"Class must have model_validate(), from_dict(), or from_json() class method."
    )

"""
Content value objects and their wire serialization.
"""

import json
from enum import Enum
from typing import Any, ClassVar, Dict

from .containers import GenericArray
from .descriptors import public_fields


def reflect(obj: Any) -> Dict[str, Any]:
    """Reflect an object's public fields into a mapping.

    Declared fields that were never assigned (and have no class default) are
    left out. Public attributes assigned on the instance without a declaration
    follow the declared ones.
    """
    data: Dict[str, Any] = {}
    for spec in public_fields(type(obj)):
        if hasattr(obj, spec.name):
            data[spec.name] = to_wire(getattr(obj, spec.name))
    for name, value in vars(obj).items():
        if not name.startswith("_") and name not in data:
            data[name] = to_wire(value)
    return data


def to_wire(value: Any) -> Any:
    """Convert a value to plain mappings, lists and scalars."""
    if isinstance(value, GenericArray):
        return [to_wire(item) for item in value]
    if isinstance(value, (list, tuple, set, frozenset)):
        return [to_wire(item) for item in value]
    if isinstance(value, dict):
        return {key: to_wire(item) for key, item in value.items()}
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    if isinstance(value, Enum):
        return value.value
    if public_fields(type(value)) or hasattr(value, "__dict__"):
        return reflect(value)
    return value


class Content:
    """Plain content: public fields rendered as ``name: value`` lines."""

    CONTENT_TYPE: ClassVar[str] = "text/plain"

    @property
    def content_type(self) -> str:
        return type(self).CONTENT_TYPE

    def serialize(self) -> Any:
        """Reflect the public fields of this content into a mapping."""
        return reflect(self)

    def render(self) -> str:
        """Render the serialized form as the response body text."""
        data = self.serialize()
        if isinstance(data, str):
            return data
        if isinstance(data, dict):
            return "\n".join(f"{k}: {v}" for k, v in data.items())
        return str(data)


class JsonContent(Content):
    """JSON content: the reflected mapping encoded as compact JSON text."""

    CONTENT_TYPE: ClassVar[str] = "application/json"

    def serialize(self) -> str:
        return json.dumps(super().serialize(), separators=(",", ":"), ensure_ascii=False, allow_nan=False)

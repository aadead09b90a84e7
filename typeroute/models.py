"""
Core data models for the dispatch framework.
"""

from dataclasses import dataclass, field
from enum import Enum
from http import HTTPStatus
from typing import Any, Dict, List, Optional, Union


class HTTPMethod(Enum):
    """Enumeration of supported HTTP methods."""

    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"
    PATCH = "PATCH"
    HEAD = "HEAD"
    OPTIONS = "OPTIONS"

    @classmethod
    def parse(cls, verb: Union[str, "HTTPMethod"]) -> Optional["HTTPMethod"]:
        """Resolve a verb case-insensitively, returning None for unsupported verbs."""
        if isinstance(verb, HTTPMethod):
            return verb
        try:
            return cls(verb.upper())
        except (AttributeError, ValueError):
            return None


@dataclass(frozen=True)
class RouteDescriptor:
    """Resolved mapping from (path, verb) to a handler type and method name.

    ``handler_type`` is normally the class itself; an importable
    ``"module:Class"`` string is accepted for code-generated tables and is
    resolved by the dispatcher at request time.
    """

    path: str
    verb: HTTPMethod
    handler_type: Union[type, str]
    handler_method: str

    @property
    def key(self):
        return (self.path, self.verb)

    @property
    def qualified_name(self) -> str:
        if isinstance(self.handler_type, str):
            owner = self.handler_type
        else:
            owner = f"{self.handler_type.__module__}.{self.handler_type.__qualname__}"
        return f"{owner}.{self.handler_method}"


@dataclass
class InvocationPlan:
    """Typed arguments for one handler call. Built per request, never stored."""

    args: List[Any] = field(default_factory=list)
    kwargs: Dict[str, Any] = field(default_factory=dict)


@dataclass
class Request:
    """Represents an incoming HTTP request before payload extraction."""

    method: str
    path: str
    headers: Dict[str, str] = field(default_factory=dict)
    body: Optional[str] = None
    query_params: Union[str, Dict[str, Any], None] = None

    def get_content_type(self) -> Optional[str]:
        """Get the Content-Type header, matching the name case-insensitively."""
        for name, value in self.headers.items():
            if name.lower() == "content-type":
                return value
        return None


@dataclass
class DispatchResult:
    """Outcome of dispatching one request: status, content type and serialized body."""

    status_code: int
    content_type: str
    body: str

    @classmethod
    def plain(cls, status_code: int, body: str) -> "DispatchResult":
        """Build a plain-text result, used for every framework-level error."""
        return cls(status_code, "text/plain", body)

    @property
    def headers(self) -> Dict[str, str]:
        return {"Content-Type": self.content_type}

    @property
    def status_line(self) -> str:
        """Render the HTTP/1.1 status line for this result."""
        try:
            phrase = HTTPStatus(self.status_code).phrase
        except ValueError:
            phrase = "Unknown"
        return f"HTTP/1.1 {self.status_code} {phrase}"

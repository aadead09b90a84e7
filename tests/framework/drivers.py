"""
Driver implementations for different execution environments.

This is the third layer of the 4-layer testing architecture.
Drivers know how to translate DSL requests into actual system calls.
"""

import asyncio
import json
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional
from urllib.parse import urlencode

from typeroute import RequestDispatcher, Request as DispatchRequest, create_asgi_app
from .dsl import HttpRequest, HttpResponse


def encode_body(request: HttpRequest) -> Optional[str]:
    """Encode a DSL body the way a client would put it on the wire."""
    if request.body is None:
        return None
    if isinstance(request.body, dict):
        content_type = request.headers.get("Content-Type", "")
        if "application/x-www-form-urlencoded" in content_type:
            return urlencode(request.body, doseq=True)
        return json.dumps(request.body)
    return str(request.body)


def encode_query(request: HttpRequest) -> str:
    return urlencode(request.query_params, doseq=True)


def decode_body(body: str, content_type: Optional[str]) -> Any:
    if body and content_type and "application/json" in content_type:
        try:
            return json.loads(body)
        except json.JSONDecodeError:
            return body
    return body


class DriverInterface(ABC):
    """Abstract interface for all drivers."""

    @abstractmethod
    def execute(self, request: HttpRequest) -> HttpResponse:
        """Execute an HTTP request and return the response."""


class DispatcherDriver(DriverInterface):
    """
    Driver that executes requests directly against a RequestDispatcher.

    This is the most direct way to test the library without any intermediate layers.
    """

    def __init__(self, dispatcher: RequestDispatcher):
        self.dispatcher = dispatcher

    def execute(self, request: HttpRequest) -> HttpResponse:
        result = self.dispatcher.execute(
            DispatchRequest(
                method=request.method,
                path=request.path,
                headers=request.headers.copy(),
                body=encode_body(request),
                query_params=encode_query(request),
            )
        )
        return HttpResponse(
            status_code=result.status_code,
            headers=result.headers,
            body=decode_body(result.body, result.content_type),
            content_type=result.content_type,
        )


class AsgiDriver(DriverInterface):
    """
    Driver that executes requests through the ASGI adapter in-process.

    Each request runs one ASGI HTTP cycle on a fresh event loop, with the body
    delivered in a single ``http.request`` message.
    """

    def __init__(self, dispatcher: RequestDispatcher):
        self.app = create_asgi_app(dispatcher)

    def execute(self, request: HttpRequest) -> HttpResponse:
        messages = asyncio.run(self._call(request))

        start = next(m for m in messages if m["type"] == "http.response.start")
        body = b"".join(m.get("body", b"") for m in messages if m["type"] == "http.response.body")
        headers = {
            name.decode("latin-1"): value.decode("latin-1") for name, value in start["headers"]
        }
        content_type = headers.get("content-type")
        return HttpResponse(
            status_code=start["status"],
            headers=headers,
            body=decode_body(body.decode("utf-8"), content_type),
            content_type=content_type,
        )

    async def _call(self, request: HttpRequest) -> List[Dict[str, Any]]:
        body = (encode_body(request) or "").encode("utf-8")
        scope = {
            "type": "http",
            "asgi": {"version": "3.0"},
            "http_version": "1.1",
            "method": request.method.upper(),
            "path": request.path,
            "query_string": encode_query(request).encode("latin-1"),
            "headers": [
                (name.lower().encode("latin-1"), value.encode("latin-1"))
                for name, value in request.headers.items()
            ],
        }
        pending = [{"type": "http.request", "body": body, "more_body": False}]
        sent: List[Dict[str, Any]] = []

        async def receive():
            if pending:
                return pending.pop(0)
            return {"type": "http.disconnect"}

        async def send(message):
            sent.append(message)

        await self.app(scope, receive, send)
        return sent

"""
ASGI adapter and HTTP server drivers for serving a route registry.

The adapter converts an ASGI HTTP scope into a ``Request``, runs it through a
``RequestDispatcher`` in a worker thread and writes the ``DispatchResult``
back. Uvicorn and Hypercorn are optional; install them with
``pip install 'typeroute[server]'``.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Dict, Optional, Union

from .dispatcher import RequestDispatcher
from .models import DispatchResult, Request
from .router import RouteRegistry

logger = logging.getLogger(__name__)

Receive = Callable[[], Awaitable[Dict[str, Any]]]
Send = Callable[[Dict[str, Any]], Awaitable[None]]


class ASGIAdapter:
    """ASGI 3.0 application wrapping a synchronous dispatcher."""

    def __init__(self, dispatcher: RequestDispatcher):
        self.dispatcher = dispatcher

    async def __call__(self, scope: Dict[str, Any], receive: Receive, send: Send):
        if scope["type"] == "lifespan":
            await self._handle_lifespan(receive, send)
            return

        if scope["type"] != "http":
            await self._send_result(DispatchResult.plain(404, "Not Found"), send)
            return

        request = await self._read_request(scope, receive)
        loop = asyncio.get_running_loop()
        try:
            result = await loop.run_in_executor(None, self.dispatcher.execute, request)
        except Exception:
            logger.exception(f"Unhandled exception dispatching {request.method} {request.path}")
            result = DispatchResult.plain(500, "Internal Server Error")
        await self._send_result(result, send)

    async def _read_request(self, scope: Dict[str, Any], receive: Receive) -> Request:
        headers = {}
        for name, value in scope.get("headers", []):
            headers[name.decode("latin-1").lower()] = value.decode("latin-1")

        body = b""
        more_body = True
        while more_body:
            message = await receive()
            if message["type"] == "http.disconnect":
                break
            body += message.get("body", b"")
            more_body = message.get("more_body", False)

        body_content: Optional[str] = None
        if body:
            try:
                body_content = body.decode("utf-8")
            except UnicodeDecodeError:
                body_content = body.decode("latin-1")

        return Request(
            method=scope["method"],
            path=scope["path"],
            headers=headers,
            body=body_content,
            query_params=scope.get("query_string", b"").decode("latin-1"),
        )

    async def _send_result(self, result: DispatchResult, send: Send):
        body = result.body.encode("utf-8")
        await send({
            "type": "http.response.start",
            "status": result.status_code,
            "headers": [
                [b"content-type", result.content_type.encode("latin-1")],
                [b"content-length", str(len(body)).encode("latin-1")],
            ],
        })
        await send({"type": "http.response.body", "body": body})

    async def _handle_lifespan(self, receive: Receive, send: Send):
        """Acknowledge startup and shutdown; the registry is built before serving."""
        while True:
            message = await receive()
            if message["type"] == "lifespan.startup":
                logger.debug(f"Serving {len(self.dispatcher.registry)} routes")
                await send({"type": "lifespan.startup.complete"})
            elif message["type"] == "lifespan.shutdown":
                await send({"type": "lifespan.shutdown.complete"})
                return


def create_asgi_app(target: Union[RouteRegistry, RequestDispatcher]) -> ASGIAdapter:
    """Create an ASGI application from a registry or a ready dispatcher."""
    if isinstance(target, RouteRegistry):
        target = RequestDispatcher(target)
    return ASGIAdapter(target)


class ServerDriver(ABC):
    """Base class for HTTP server drivers."""

    name = ""

    def __init__(self, target: Union[RouteRegistry, RequestDispatcher], host: str = "127.0.0.1", port: int = 8000):
        self.host = host
        self.port = port
        self.asgi_app = create_asgi_app(target)

    @abstractmethod
    def run(self, log_level: str = "info", **kwargs):
        """Run the server until interrupted."""

    @abstractmethod
    def is_available(self) -> bool:
        """Check if the server implementation is installed."""


class UvicornDriver(ServerDriver):
    name = "uvicorn"

    def is_available(self) -> bool:
        try:
            import uvicorn  # noqa: F401
            return True
        except ImportError:
            return False

    def run(self, log_level: str = "info", **kwargs):
        if not self.is_available():
            raise ImportError("Uvicorn is not installed. Install with: pip install 'typeroute[server]'")

        import uvicorn

        logger.info(f"Starting Uvicorn server on {self.host}:{self.port}")
        uvicorn.run(self.asgi_app, host=self.host, port=self.port, log_level=log_level, **kwargs)


class HypercornDriver(ServerDriver):
    name = "hypercorn"

    def is_available(self) -> bool:
        try:
            import hypercorn  # noqa: F401
            return True
        except ImportError:
            return False

    def run(self, log_level: str = "info", **kwargs):
        if not self.is_available():
            raise ImportError("Hypercorn is not installed. Install with: pip install 'typeroute[server]'")

        import hypercorn.asyncio
        from hypercorn import Config

        config = Config()
        config.bind = [f"{self.host}:{self.port}"]
        config.loglevel = log_level.upper()
        for key, value in kwargs.items():
            if hasattr(config, key):
                setattr(config, key, value)

        logger.info(f"Starting Hypercorn server on {self.host}:{self.port}")
        asyncio.run(hypercorn.asyncio.serve(self.asgi_app, config))


DRIVERS = {
    UvicornDriver.name: UvicornDriver,
    HypercornDriver.name: HypercornDriver,
}


def serve(
    target: Union[RouteRegistry, RequestDispatcher],
    server: str = "uvicorn",
    host: str = "127.0.0.1",
    port: int = 8000,
    **kwargs,
) -> None:
    """Serve a registry with the named HTTP server.

    Raises:
        ValueError: Unknown server name
        ImportError: The server library is not installed
    """
    try:
        driver_cls = DRIVERS[server]
    except KeyError:
        raise ValueError(f"Unknown server: {server}. Supported servers: {', '.join(DRIVERS)}") from None

    driver = driver_cls(target, host, port)
    if not driver.is_available():
        raise ImportError(f"{server} is not installed. Install with: pip install 'typeroute[server]'")
    driver.run(**kwargs)

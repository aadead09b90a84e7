"""
Request dispatch: route lookup, binding, invocation and response serialization.
"""

import importlib
import inspect
import logging
from typing import Any, Mapping, Optional, Tuple, Union

from .binder import ParameterBinder
from .content import Content
from .descriptors import ParamSpec, method_parameters
from .exceptions import BindingError, HandlerResolutionError, RouteNotFoundError
from .models import DispatchResult, HTTPMethod, Request, RouteDescriptor
from .payload import PayloadProvider, extract_payload, resolve_payload
from .responses import Response
from .router import RouteRegistry

logger = logging.getLogger(__name__)


def import_handler_type(reference: str) -> type:
    """Import a handler class from ``"package.module:Class"`` or ``"package.module.Class"``."""
    module_name, sep, attr = reference.partition(":")
    if not sep:
        module_name, _, attr = reference.rpartition(".")
    try:
        module = importlib.import_module(module_name)
        handler_type = getattr(module, attr)
    except (ImportError, AttributeError, ValueError) as e:
        raise HandlerResolutionError(f"Route class not found: {reference}") from e
    if not inspect.isclass(handler_type):
        raise HandlerResolutionError(f"Route class not found: {reference}")
    return handler_type


class RequestDispatcher:
    """Runs one request at a time against a route registry.

    The dispatcher never reads process-global request state: the path, the
    verb and the payload are always passed in by the caller.
    """

    def __init__(self, registry: RouteRegistry, binder: Optional[ParameterBinder] = None):
        self.registry = registry
        self.binder = binder or ParameterBinder()

    def handle(
        self,
        path: str,
        verb: Union[str, HTTPMethod],
        payload: Union[Mapping[str, Any], PayloadProvider, None] = None,
    ) -> DispatchResult:
        """Dispatch a request and return status, content type and body.

        Args:
            path: Exact request path (e.g., "/login")
            verb: HTTP method, matched case-insensitively
            payload: The payload mapping, or a zero-argument provider returning it.
                The provider is only called once a route has been resolved.

        Returns:
            DispatchResult; errors are reported as plain-text results:
            404 for unknown routes, 400 for binding failures and 500 for
            resolution or invocation failures.
        """
        verb_name = verb.value if isinstance(verb, HTTPMethod) else str(verb).upper()

        try:
            route = self.registry.resolve(path, verb)
        except RouteNotFoundError as e:
            logger.info(str(e))
            return DispatchResult.plain(404, "Not Found")

        try:
            handler_type, params = self._resolve(route)
        except HandlerResolutionError as e:
            logger.error(f"Cannot resolve handler for {verb_name} {path}: {e}")
            return DispatchResult.plain(500, str(e))

        try:
            plan = self.binder.plan(params, resolve_payload(payload))
        except BindingError as e:
            logger.info(f"Rejected {verb_name} {path}: {e}")
            return DispatchResult.plain(400, f"Bad Request: {e}")
        except Exception:
            logger.exception(f"Unhandled exception binding {verb_name} {path}")
            return DispatchResult.plain(500, "Internal Server Error")

        try:
            handler = getattr(handler_type(), route.handler_method)
            envelope = handler(*plan.args, **plan.kwargs)
            return self._render(envelope)
        except Exception:
            logger.exception(f"Unhandled exception processing {verb_name} {path}")
            return DispatchResult.plain(500, "Internal Server Error")

    def execute(self, request: Request) -> DispatchResult:
        """Dispatch a raw request, extracting the payload from its query and body."""
        return self.handle(
            request.path,
            request.method,
            lambda: extract_payload(
                request.method,
                request.query_params,
                request.body,
                request.get_content_type(),
            ),
        )

    def _resolve(self, route: RouteDescriptor) -> Tuple[type, Tuple[ParamSpec, ...]]:
        """Resolve the handler class and the parameter specs of its route method."""
        handler_type = route.handler_type
        if isinstance(handler_type, str):
            handler_type = import_handler_type(handler_type)

        if not callable(getattr(handler_type, route.handler_method, None)):
            raise HandlerResolutionError(f"Route method not found: {route.qualified_name}")

        try:
            params = method_parameters(handler_type, route.handler_method)
        except (TypeError, ValueError) as e:
            raise HandlerResolutionError(f"Route method not inspectable: {route.qualified_name}") from e
        return handler_type, params

    def _render(self, envelope: Any) -> DispatchResult:
        if not isinstance(envelope, Response):
            raise TypeError(f"Handler returned {type(envelope).__name__}, expected a Response")
        content = envelope.content
        if not isinstance(content, Content):
            raise TypeError(f"{type(envelope).__name__} carries no Content value")
        return DispatchResult(envelope.status_code, content.content_type, content.render())

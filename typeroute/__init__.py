"""
Typed route discovery, request dispatch and OpenAPI generation.

Handler classes mark methods with verb decorators; the method name becomes the
route path. Incoming payloads are bound to handler parameters by their
declared types, handlers return typed Response envelopes carrying Content
values, and the same type declarations drive an offline OpenAPI 3.0 document.
"""

from http import HTTPStatus

from .binder import ParameterBinder
from .config import GeneratorSettings, ServerSettings
from .containers import BoolArray, FloatArray, GenericArray, IntArray, StringArray
from .content import Content, JsonContent
from .dispatcher import RequestDispatcher
from .exceptions import (
    BindingError,
    HandlerResolutionError,
    MissingRequiredParameter,
    MissingRequiredProperty,
    RouteCollisionError,
    RouteNotFoundError,
    SchemaGenerationError,
    TypeRouteError,
)
from .markers import Property, Route, delete, get, method, patch, post, put
from .models import DispatchResult, HTTPMethod, Request, RouteDescriptor
from .openapi import SchemaSynthesizer
from .payload import extract_payload
from .responses import Response
from .router import RouteRegistry
from .server import ASGIAdapter, HypercornDriver, ServerDriver, UvicornDriver, create_asgi_app, serve

__version__ = "0.1.0"
__author__ = "TypeRoute Contributors"
__license__ = "MIT"

__all__ = [
    "RouteRegistry",
    "RequestDispatcher",
    "ParameterBinder",
    "SchemaSynthesizer",
    "GeneratorSettings",
    "ServerSettings",
    "Route",
    "Property",
    "method",
    "get",
    "post",
    "put",
    "patch",
    "delete",
    "Response",
    "Content",
    "JsonContent",
    "GenericArray",
    "IntArray",
    "FloatArray",
    "StringArray",
    "BoolArray",
    "HTTPMethod",
    "HTTPStatus",
    "Request",
    "RouteDescriptor",
    "DispatchResult",
    "extract_payload",
    "TypeRouteError",
    "RouteNotFoundError",
    "RouteCollisionError",
    "HandlerResolutionError",
    "BindingError",
    "MissingRequiredParameter",
    "MissingRequiredProperty",
    "SchemaGenerationError",
    "ASGIAdapter",
    "create_asgi_app",
    "ServerDriver",
    "UvicornDriver",
    "HypercornDriver",
    "serve",
]

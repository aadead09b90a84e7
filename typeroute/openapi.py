"""
Offline OpenAPI document synthesis from route and response classes.

The synthesizer classifies every parameter and field through
``typeroute.descriptors``, the same module the binder uses at request time, so
the declared ``required`` lists and parameter shapes match what the binder
actually accepts.
"""

import copy
import inspect
import json
import logging
import os
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from .config import GeneratorSettings
from .content import Content
from .descriptors import (
    ObjectType,
    ScalarKind,
    ScalarType,
    TypeDescriptor,
    method_parameters,
    public_fields,
    return_annotation,
    unwrap,
)
from .exceptions import SchemaGenerationError
from .markers import Route
from .models import HTTPMethod
from .responses import Response
from .router import RouteRegistry, handler_methods, iter_classes

logger = logging.getLogger(__name__)

# Verbs whose inputs are described as query parameters rather than a request body.
QUERY_VERBS = frozenset({HTTPMethod.GET, HTTPMethod.DELETE})

# Scalar kinds that can be expressed as a query parameter.
QUERY_KINDS = frozenset({ScalarKind.INT, ScalarKind.FLOAT, ScalarKind.STRING, ScalarKind.BOOL})

_SCALAR_SCHEMAS: Dict[ScalarKind, Dict[str, Any]] = {
    ScalarKind.INT: {"type": "integer"},
    ScalarKind.FLOAT: {"type": "number", "format": "float"},
    ScalarKind.BOOL: {"type": "boolean"},
    ScalarKind.STRING: {"type": "string"},
    ScalarKind.ARRAY: {"type": "array", "items": {}},
    ScalarKind.MAP: {"type": "object"},
}


def schema_ref(name: str) -> Dict[str, str]:
    return {"$ref": f"#/components/schemas/{name}"}


def response_ref(name: str) -> Dict[str, str]:
    return {"$ref": f"#/components/responses/{name}"}


class SchemaSynthesizer:
    """Builds an OpenAPI 3.0 document from Response and Route classes.

    Every schema and response is emitted at most once per name; the first
    writer wins and later requests for the same name are no-ops. The memo is
    not synchronized, so one synthesizer must only be used from one thread.
    """

    def __init__(self, settings: Optional[GeneratorSettings] = None):
        self.settings = settings or GeneratorSettings()
        info: Dict[str, Any] = {"title": self.settings.title, "version": self.settings.version}
        if self.settings.description:
            info["description"] = self.settings.description

        self.spec: Dict[str, Any] = {
            "openapi": self.settings.openapi,
            "servers": [{"url": url} for url in self.settings.servers],
            "info": info,
            "paths": {},
            "components": {"schemas": {}, "responses": {}},
        }
        # Inline property classes currently being expanded (cycle guard)
        self._inlining: List[type] = []

    @property
    def schemas(self) -> Dict[str, Any]:
        return self.spec["components"]["schemas"]

    @property
    def responses(self) -> Dict[str, Any]:
        return self.spec["components"]["responses"]

    @property
    def paths(self) -> Dict[str, Any]:
        return self.spec["paths"]

    # Responses and schemas

    def generate_from_response(self, response_cls: type) -> str:
        """Emit the response component (and its content schema) for a Response subclass.

        Returns:
            The response component name

        Raises:
            SchemaGenerationError: ``response_cls`` is not a Response subclass, or its
                ``CONTENT`` is set to something other than a Content subclass
        """
        if not inspect.isclass(response_cls) or not issubclass(response_cls, Response):
            raise SchemaGenerationError(f"{response_cls!r} must extend Response")

        name = response_cls.__name__
        if name in self.responses:
            return name

        content_cls = response_cls.CONTENT
        response_spec: Dict[str, Any] = {"description": response_cls.DESCRIPTION}
        if content_cls is not None:
            if not inspect.isclass(content_cls) or not issubclass(content_cls, Content):
                raise SchemaGenerationError(
                    f"{name}.CONTENT must be a Content subclass, got {content_cls!r}"
                )
            schema_name = self.generate_schema(content_cls)
            response_spec["content"] = {"application/json": {"schema": schema_ref(schema_name)}}

        self.responses[name] = response_spec
        logger.debug(f"Generated response component {name}")
        return name

    def generate_schema(self, cls: type) -> str:
        """Emit a named object schema for ``cls`` unless one with that name exists.

        Returns:
            The schema component name
        """
        name = cls.__name__
        if name in self.schemas:
            return name

        # Reserve the slot first so self-referencing classes terminate.
        self.schemas[name] = {}
        explicit = getattr(cls, "SCHEMA_PROPERTIES", None)
        if isinstance(explicit, Mapping):
            self.schemas[name] = self._explicit_schema(explicit)
        else:
            self.schemas[name] = self.object_schema(cls)
        logger.debug(f"Generated schema component {name}")
        return name

    def object_schema(self, cls: type) -> Dict[str, Any]:
        """Object schema from the public fields of ``cls``."""
        properties: Dict[str, Any] = {}
        required: List[str] = []
        for field_spec in public_fields(cls):
            properties[field_spec.name] = self.schema_for(field_spec.descriptor)
            if field_spec.required:
                required.append(field_spec.name)

        schema: Dict[str, Any] = {"type": "object", "properties": properties}
        if required:
            schema["required"] = required
        return schema

    def _explicit_schema(self, declared: Mapping[str, Any]) -> Dict[str, Any]:
        properties: Dict[str, Any] = {}
        required: List[str] = []
        for name, prop in declared.items():
            if isinstance(prop, str):
                properties[name] = {"type": prop}
            elif isinstance(prop, Mapping):
                prop = dict(prop)
                if prop.pop("required", False):
                    required.append(name)
                properties[name] = prop

        schema: Dict[str, Any] = {"type": "object", "properties": properties}
        if required:
            schema["required"] = required
        return schema

    def schema_for(self, descriptor: Optional[TypeDescriptor]) -> Dict[str, Any]:
        """Schema for one field or parameter type.

        Containers become arrays of their element type, inline properties are
        expanded in place, other classes with public fields are referenced as
        components, and anything else falls back to a string.
        """
        inner, nullable = unwrap(descriptor)

        if isinstance(inner, ScalarType):
            schema = dict(_SCALAR_SCHEMAS[inner.kind])
        elif isinstance(inner, ObjectType) and inner.is_container:
            items = {"type": inner.element_kind} if inner.element_kind else {}
            schema = {"type": "array", "items": items}
        elif isinstance(inner, ObjectType) and inner.is_property:
            schema = self._inline(inner.cls)
        elif isinstance(inner, ObjectType) and public_fields(inner.cls):
            schema = schema_ref(self.generate_schema(inner.cls))
        else:
            schema = {"type": "string"}

        if nullable:
            if "$ref" in schema:
                return {"allOf": [schema], "nullable": True}
            schema["nullable"] = True
        return schema

    def _inline(self, cls: type) -> Dict[str, Any]:
        if cls in self._inlining:
            return {"type": "object"}
        self._inlining.append(cls)
        try:
            return self.object_schema(cls)
        finally:
            self._inlining.pop()

    # Routes

    def generate_from_route(self, route_cls: type) -> None:
        """Emit one operation per verb-marked method of ``route_cls``.

        Methods whose return annotation is not a Response subclass are routable
        but undocumented, so they are skipped. A method whose response is
        malformed is logged and skipped.
        """
        for name, verb in handler_methods(route_cls):
            response_cls = return_annotation(route_cls, name)
            if not inspect.isclass(response_cls) or not issubclass(response_cls, Response):
                logger.debug(f"Skipping {route_cls.__qualname__}.{name}: no Response return type")
                continue

            try:
                response_name = self.generate_from_response(response_cls)
            except SchemaGenerationError as e:
                logger.warning(f"Skipping {route_cls.__qualname__}.{name}: {e}")
                continue

            operation: Dict[str, Any] = {
                "summary": name,
                "responses": {str(response_cls.STATUS): response_ref(response_name)},
            }

            parameters, request_body = self._operation_inputs(route_cls, name, verb)
            if parameters:
                operation["parameters"] = parameters
            if request_body is not None:
                operation["requestBody"] = request_body

            self.paths.setdefault("/" + name, {})[verb.value.lower()] = operation

    def _operation_inputs(
        self, route_cls: type, name: str, verb: HTTPMethod
    ) -> Tuple[List[Dict[str, Any]], Optional[Dict[str, Any]]]:
        """Describe handler parameters as query parameters or a JSON request body.

        On GET and DELETE, scalar parameters become query parameters and object
        parameters are flattened into one query parameter per field. On other
        verbs only object parameters are described, as a request body reference.
        """
        use_query = verb in QUERY_VERBS
        parameters: List[Dict[str, Any]] = []
        request_body = None

        for param in method_parameters(route_cls, name):
            inner, _ = unwrap(param.descriptor)

            if isinstance(inner, ScalarType) and inner.kind in QUERY_KINDS:
                if use_query:
                    parameters.append(self._query_parameter(param.name, param.required, dict(_SCALAR_SCHEMAS[inner.kind])))
            elif isinstance(inner, ObjectType) and inner.is_container:
                if use_query:
                    parameters.append(self._query_parameter(param.name, param.required, self.schema_for(inner)))
            elif isinstance(inner, ObjectType):
                schema_name = self.generate_schema(inner.cls)
                if use_query:
                    for field_spec in public_fields(inner.cls):
                        parameters.append(
                            self._query_parameter(field_spec.name, field_spec.required, self.schema_for(field_spec.descriptor))
                        )
                else:
                    request_body = {
                        "required": not param.has_default,
                        "content": {"application/json": {"schema": schema_ref(schema_name)}},
                    }

        return parameters, request_body

    @staticmethod
    def _query_parameter(name: str, required: bool, schema: Dict[str, Any]) -> Dict[str, Any]:
        return {"name": name, "in": "query", "required": required, "schema": schema}

    # Scanning

    def scan(self, candidates: Iterable[type]) -> Dict[str, Any]:
        """Generate components for every Response subclass and operations for every Route subclass.

        One bad type never aborts the scan: structural errors are logged and the
        offending entry is skipped.
        """
        for candidate in candidates:
            if not inspect.isclass(candidate):
                continue
            try:
                if issubclass(candidate, Response) and candidate is not Response:
                    self.generate_from_response(candidate)
                elif issubclass(candidate, Route) and candidate is not Route:
                    self.generate_from_route(candidate)
            except (SchemaGenerationError, TypeError, ValueError) as e:
                logger.warning(f"Skipping {candidate.__qualname__}: {e}")
        return self.get_spec()

    def scan_package(self, package: str) -> Dict[str, Any]:
        """Scan every class defined under ``package``."""
        return self.scan(iter_classes(package))

    def from_registry(self, registry: RouteRegistry) -> Dict[str, Any]:
        """Document every handler type a registry discovered."""
        for handler_type in registry.handler_types:
            self.generate_from_route(handler_type)
        return self.get_spec()

    # Output

    def get_spec(self) -> Dict[str, Any]:
        return copy.deepcopy(self.spec)

    def to_json(self) -> str:
        """Pretty-printed document; slashes and non-ASCII text are written unescaped."""
        return json.dumps(self.spec, indent=4, ensure_ascii=False)

    def save(self, filename: Optional[str] = None) -> str:
        """Write the document to ``filename`` (default: settings.output) and return the path."""
        path = filename or self.settings.output
        directory = os.path.dirname(path)
        if directory and not os.path.exists(directory):
            os.makedirs(directory)
        with open(path, "w", encoding="utf-8") as f:
            f.write(self.to_json())
        logger.info(f"Wrote OpenAPI document to {path}")
        return path

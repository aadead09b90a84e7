"""
Custom exceptions for the dispatch framework.
"""


class TypeRouteError(Exception):
    """Base exception for framework errors."""

    pass


class RouteNotFoundError(TypeRouteError):
    """Raised when no route matches the request."""

    pass


class RouteCollisionError(TypeRouteError):
    """Raised by a strict registry when a (path, verb) pair is claimed twice."""

    def __init__(self, path: str, verb: str, existing, candidate):
        self.path = path
        self.verb = verb
        self.existing = existing
        self.candidate = candidate
        super().__init__(
            f"Route {verb} {path} already bound to "
            f"{existing.qualified_name}, refusing {candidate.qualified_name}"
        )


class HandlerResolutionError(TypeRouteError):
    """Raised when a route descriptor points at a type or method that no longer exists.

    This always indicates a stale or corrupted registry and is not retryable.
    """

    pass


class BindingError(TypeRouteError):
    """Base class for failures turning a payload into handler arguments."""

    pass


class MissingRequiredParameter(BindingError):
    """Raised when a required handler parameter is absent from the payload."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Missing required parameter: {name}")


class MissingRequiredProperty(BindingError):
    """Raised when a required property of a hydrated object is absent."""

    def __init__(self, name: str, parameter: str):
        self.name = name
        self.parameter = parameter
        super().__init__(f"Missing required property '{name}' for parameter {parameter}")


class SchemaGenerationError(TypeRouteError):
    """Raised when a response or content declaration is structurally invalid."""

    pass

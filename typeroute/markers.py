"""
Declarative markers: verb decorators for handler methods and the marker base classes.
"""

from typing import Callable, Optional, Union

from .models import HTTPMethod

# Attribute set on handler functions by the verb decorators.
VERB_MARKER = "_typeroute_verb"


class Route:
    """Base class for handler types.

    Any class can be handed to ``RouteRegistry.discover``; subclassing ``Route``
    additionally makes the type visible to ``SchemaSynthesizer.scan``.
    """

    pass


class Property:
    """Base class for inline-property kinds.

    A property object is always expanded in place in generated schemas (never a
    ``$ref``) and serializes as a nested object inside its parent content.
    """

    pass


def method(verb: Union[str, HTTPMethod]):
    """Mark a handler method as answering the given HTTP verb.

    Example:
        class MainRoute(Route):
            @method("GET")
            def login_status(self) -> LoginStatusResponse:
                ...
    """
    resolved = HTTPMethod.parse(verb)
    if resolved is None:
        raise ValueError(f"Unsupported HTTP method for route marker: {verb!r}")

    def decorator(func: Callable):
        setattr(func, VERB_MARKER, resolved)
        return func

    return decorator


def get(func: Callable):
    """Decorator to mark a GET handler."""
    return method(HTTPMethod.GET)(func)


def post(func: Callable):
    """Decorator to mark a POST handler."""
    return method(HTTPMethod.POST)(func)


def put(func: Callable):
    """Decorator to mark a PUT handler."""
    return method(HTTPMethod.PUT)(func)


def patch(func: Callable):
    """Decorator to mark a PATCH handler."""
    return method(HTTPMethod.PATCH)(func)


def delete(func: Callable):
    """Decorator to mark a DELETE handler."""
    return method(HTTPMethod.DELETE)(func)


def verb_of(func) -> Optional[HTTPMethod]:
    """Return the verb a function was marked with, unwrapping static/class methods."""
    if isinstance(func, (staticmethod, classmethod)):
        func = func.__func__
    return getattr(func, VERB_MARKER, None)

"""Route discovery and matching for marker-annotated handler types."""

import importlib
import inspect
import logging
import pkgutil
import threading
from types import MappingProxyType
from typing import Dict, Iterable, Iterator, List, Mapping, Optional, Tuple, Union

from .exceptions import RouteCollisionError, RouteNotFoundError
from .markers import verb_of
from .models import HTTPMethod, RouteDescriptor

logger = logging.getLogger(__name__)

RouteKey = Tuple[str, HTTPMethod]


def iter_classes(package: str) -> Iterator[type]:
    """Import ``package`` and every submodule, yielding the classes defined in them.

    Args:
        package: Dotted module or package name (e.g., "myapp.modules")

    Yields:
        Classes whose ``__module__`` is the module being walked, in definition order
    """
    root = importlib.import_module(package)
    modules = [root]
    if hasattr(root, "__path__"):
        for info in pkgutil.walk_packages(root.__path__, prefix=f"{root.__name__}."):
            modules.append(importlib.import_module(info.name))

    for module in modules:
        for value in vars(module).values():
            if inspect.isclass(value) and value.__module__ == module.__name__:
                yield value


def handler_methods(cls: type) -> Iterator[Tuple[str, HTTPMethod]]:
    """Yield (method name, verb) for every verb-marked public method of ``cls``.

    Methods are visited in declaration order, base classes first; an override in
    a subclass replaces the inherited method. Names starting with an underscore
    (constructors, lifecycle hooks, private helpers) are never handlers.
    """
    members: Dict[str, object] = {}
    for klass in reversed(cls.__mro__):
        if klass is object:
            continue
        for name, member in vars(klass).items():
            members[name] = member

    for name, member in members.items():
        if name.startswith("_"):
            continue
        verb = verb_of(member)
        if verb is not None:
            yield name, verb


class RouteRegistry:
    """Index of handler methods keyed by (path, verb).

    The index is written while discovering and read-only afterwards. Writes are
    serialized with a lock so discovery may run while other threads are idle;
    lookups take no lock.
    """

    def __init__(self, strict: bool = False):
        """Initialize an empty registry.

        Args:
            strict: Raise RouteCollisionError when a (path, verb) pair is claimed
                twice instead of letting the last registration win.
        """
        self.strict = strict
        self._routes: Dict[RouteKey, RouteDescriptor] = {}
        self._lock = threading.Lock()

    @classmethod
    def from_package(cls, package: str, strict: bool = False) -> "RouteRegistry":
        registry = cls(strict=strict)
        registry.discover_package(package)
        return registry

    def register(self, descriptor: RouteDescriptor) -> RouteDescriptor:
        """Add a descriptor to the index. Last registration for a key wins unless strict."""
        with self._lock:
            existing = self._routes.get(descriptor.key)
            if existing is not None and existing != descriptor:
                if self.strict:
                    raise RouteCollisionError(descriptor.path, descriptor.verb.value, existing, descriptor)
                logger.warning(
                    f"Route {descriptor.verb.value} {descriptor.path} rebound from "
                    f"{existing.qualified_name} to {descriptor.qualified_name}"
                )
            self._routes[descriptor.key] = descriptor
        return descriptor

    def add(self, path: str, verb: Union[str, HTTPMethod], handler_type: Union[type, str], handler_method: str) -> RouteDescriptor:
        """Register a route explicitly, without marker discovery."""
        resolved = HTTPMethod.parse(verb)
        if resolved is None:
            raise ValueError(f"Unsupported HTTP method: {verb!r}")
        return self.register(RouteDescriptor(path, resolved, handler_type, handler_method))

    def discover(self, candidate_types: Iterable[type]) -> Mapping[RouteKey, RouteDescriptor]:
        """Register every verb-marked method of the candidate types.

        Types without marked methods contribute nothing.

        Returns:
            Read-only view of the full index after discovery
        """
        for candidate in candidate_types:
            if not inspect.isclass(candidate):
                continue
            for name, verb in handler_methods(candidate):
                descriptor = RouteDescriptor("/" + name, verb, candidate, name)
                logger.debug(f"Discovered route {verb.value} {descriptor.path} -> {descriptor.qualified_name}")
                self.register(descriptor)
        return self.routes

    def discover_package(self, package: str) -> Mapping[RouteKey, RouteDescriptor]:
        """Discover routes on every class defined under ``package``."""
        return self.discover(iter_classes(package))

    def match(self, path: str, verb: Union[str, HTTPMethod]) -> Optional[RouteDescriptor]:
        """Find the route for an exact path and a case-insensitive verb.

        Args:
            path: Request path (e.g., "/login_status")
            verb: HTTP method name or HTTPMethod

        Returns:
            The registered RouteDescriptor, or None if nothing matches
        """
        method = HTTPMethod.parse(verb)
        if method is None:
            return None
        return self._routes.get((path, method))

    def resolve(self, path: str, verb: Union[str, HTTPMethod]) -> RouteDescriptor:
        """Like ``match``, but raise RouteNotFoundError when nothing matches."""
        route = self.match(path, verb)
        if route is None:
            raise RouteNotFoundError(f"No route for {str(getattr(verb, 'value', verb)).upper()} {path}")
        return route

    def has_path(self, path: str) -> bool:
        """Check if any route exists at the given path (regardless of method)."""
        return any(route_path == path for route_path, _ in self._routes)

    def get_methods_for_path(self, path: str) -> List[HTTPMethod]:
        """Get all HTTP methods that have registered routes at this path."""
        methods = [verb for route_path, verb in self._routes if route_path == path]
        return sorted(methods, key=lambda m: m.value)

    @property
    def routes(self) -> Mapping[RouteKey, RouteDescriptor]:
        return MappingProxyType(self._routes)

    @property
    def handler_types(self) -> List[type]:
        """Distinct handler classes referenced by the index, in registration order."""
        seen: Dict[type, None] = {}
        for descriptor in self._routes.values():
            if inspect.isclass(descriptor.handler_type):
                seen.setdefault(descriptor.handler_type, None)
        return list(seen)

    def __len__(self):
        return len(self._routes)

    def __iter__(self):
        return iter(self._routes.values())

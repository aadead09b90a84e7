"""
Type classification shared by the parameter binder and the schema synthesizer.

Every declared parameter or field type is reduced to exactly one
``TypeDescriptor``:

- ``ScalarType(kind)``: ``int``, ``float``, ``str``, ``bool`` and the untyped
  collections (``list``/``tuple``/``set`` are ``array``, ``dict`` is ``map``)
- ``NullableType(inner)``: ``Optional[X]`` / ``X | None``
- ``ObjectType(cls, ...)``: any other class; ``Property`` subclasses are
  inline-property kinds, ``GenericArray`` subclasses are container kinds
- ``UnknownType(nullable)``: anything that cannot be analyzed; nullable when
  it still admits None (``Any``, or a wide union that includes None)

Nullability and "has a default" are tracked separately. A field or parameter
is required when it disallows null and declares no default. The binder and
the schema synthesizer both read ``required`` from here and nowhere else.
"""

import inspect
import logging
import types
import typing
from collections import abc
from dataclasses import MISSING, dataclass, field
from enum import Enum
from functools import lru_cache
from typing import Any, ClassVar, Dict, Optional, Tuple, Union, get_args, get_origin

from .containers import GenericArray
from .markers import Property

logger = logging.getLogger(__name__)

_UNION_ORIGINS: Tuple[Any, ...] = (Union,)
if hasattr(types, "UnionType"):
    _UNION_ORIGINS += (types.UnionType,)


class ScalarKind(Enum):
    """Scalar kinds understood by the binder."""

    INT = "int"
    FLOAT = "float"
    STRING = "string"
    BOOL = "bool"
    ARRAY = "array"
    MAP = "map"


_SCALAR_TYPES = {
    int: ScalarKind.INT,
    float: ScalarKind.FLOAT,
    str: ScalarKind.STRING,
    bool: ScalarKind.BOOL,
    list: ScalarKind.ARRAY,
    tuple: ScalarKind.ARRAY,
    set: ScalarKind.ARRAY,
    frozenset: ScalarKind.ARRAY,
    dict: ScalarKind.MAP,
}

# Container element types (OpenAPI names) mapped to the scalar kind used for coercion.
ELEMENT_KINDS = {
    "integer": ScalarKind.INT,
    "number": ScalarKind.FLOAT,
    "string": ScalarKind.STRING,
    "boolean": ScalarKind.BOOL,
}


@dataclass(frozen=True)
class ScalarType:
    kind: ScalarKind


@dataclass(frozen=True)
class NullableType:
    inner: "TypeDescriptor"


@dataclass(frozen=True)
class ObjectType:
    cls: type
    is_property: bool = False
    is_container: bool = False
    element_kind: Optional[str] = None

    @property
    def name(self) -> str:
        return self.cls.__name__


@dataclass(frozen=True)
class UnknownType:
    """An unanalyzable type. ``nullable`` is set when it still admits None."""

    annotation: Any = field(default=None, compare=False)
    nullable: bool = False


TypeDescriptor = Union[ScalarType, NullableType, ObjectType, UnknownType]


def describe(annotation: Any) -> Optional[TypeDescriptor]:
    """Classify a declared type. Returns None when nothing was declared."""
    if annotation is inspect.Parameter.empty:
        return None
    if annotation is None or annotation is type(None) or annotation is Any:
        return UnknownType(annotation, nullable=True)
    if isinstance(annotation, (str, typing.ForwardRef)):
        # Unresolved forward reference
        return UnknownType(annotation, nullable=_names_none(annotation))

    origin = get_origin(annotation)
    if origin in _UNION_ORIGINS:
        args = get_args(annotation)
        members = [arg for arg in args if arg is not type(None)]
        if len(members) == 1 and len(members) < len(args):
            return NullableType(describe(members[0]))
        return UnknownType(annotation, nullable=len(members) < len(args) or Any in members)

    if origin is not None:
        # Parametrized generics: List[int], Dict[str, Any], Sequence[str], ...
        if origin in _SCALAR_TYPES:
            return ScalarType(_SCALAR_TYPES[origin])
        if inspect.isclass(origin):
            if issubclass(origin, abc.Mapping):
                return ScalarType(ScalarKind.MAP)
            if issubclass(origin, (abc.Sequence, abc.Set)) and not issubclass(origin, (str, bytes)):
                return ScalarType(ScalarKind.ARRAY)
        return UnknownType(annotation)

    if inspect.isclass(annotation):
        if annotation in _SCALAR_TYPES:
            return ScalarType(_SCALAR_TYPES[annotation])
        if issubclass(annotation, GenericArray):
            return ObjectType(annotation, is_container=True, element_kind=annotation.TYPE or None)
        if issubclass(annotation, Property):
            return ObjectType(annotation, is_property=True)
        return ObjectType(annotation)

    return UnknownType(annotation)


def _names_none(annotation) -> bool:
    text = annotation.__forward_arg__ if isinstance(annotation, typing.ForwardRef) else annotation
    return "Optional[" in text or "None" in text


def unwrap(descriptor: Optional[TypeDescriptor]) -> Tuple[Optional[TypeDescriptor], bool]:
    """Split a descriptor into (inner descriptor, nullable)."""
    if isinstance(descriptor, NullableType):
        return descriptor.inner, True
    if isinstance(descriptor, UnknownType):
        return descriptor, descriptor.nullable
    return descriptor, False


@dataclass(frozen=True)
class FieldSpec:
    """A declared public field of a class."""

    name: str
    descriptor: Optional[TypeDescriptor]
    has_default: bool = False
    default: Any = field(default=None, compare=False)

    @property
    def nullable(self) -> bool:
        return unwrap(self.descriptor)[1]

    @property
    def required(self) -> bool:
        return not self.nullable and not self.has_default


@dataclass(frozen=True)
class ParamSpec(FieldSpec):
    """A declared handler parameter."""

    keyword_only: bool = False


def _raw_annotations(obj) -> Dict[str, Any]:
    if hasattr(inspect, "get_annotations"):
        return dict(inspect.get_annotations(obj))
    if inspect.isclass(obj):
        return dict(vars(obj).get("__annotations__", {}))
    return dict(getattr(obj, "__annotations__", {}))


def _class_hints(cls) -> Dict[str, Any]:
    try:
        return typing.get_type_hints(cls)
    except (NameError, TypeError, AttributeError) as e:
        logger.debug(f"Using unresolved annotations for {cls.__qualname__}: {e}")
        hints: Dict[str, Any] = {}
        for klass in reversed(cls.__mro__):
            hints.update(_raw_annotations(klass))
        return hints


def _function_hints(func) -> Dict[str, Any]:
    try:
        return typing.get_type_hints(func)
    except (NameError, TypeError, AttributeError) as e:
        logger.debug(f"Using unresolved annotations for {getattr(func, '__qualname__', func)!r}: {e}")
        return _raw_annotations(inspect.unwrap(getattr(func, "__func__", func)))


def _is_class_var(annotation) -> bool:
    if annotation is ClassVar or get_origin(annotation) is ClassVar:
        return True
    return isinstance(annotation, str) and annotation.startswith(("ClassVar", "typing.ClassVar"))


def _class_default(cls, name: str) -> Tuple[bool, Any]:
    for klass in cls.__mro__:
        if name in vars(klass):
            return True, vars(klass)[name]
    dataclass_field = getattr(cls, "__dataclass_fields__", {}).get(name)
    if dataclass_field is not None and dataclass_field.default_factory is not MISSING:
        return True, None
    return False, None


@lru_cache(maxsize=None)
def public_fields(cls) -> Tuple[FieldSpec, ...]:
    """Declared public fields of ``cls``, base classes first.

    Public fields are annotated, not ``ClassVar`` and not underscore-prefixed.
    A class-level value for the name counts as the field's default.
    """
    fields = []
    for name, annotation in _class_hints(cls).items():
        if name.startswith("_") or _is_class_var(annotation):
            continue
        has_default, default = _class_default(cls, name)
        fields.append(FieldSpec(name, describe(annotation), has_default, default))
    return tuple(fields)


def parameters_of(func, skip_receiver: bool = False) -> Tuple[ParamSpec, ...]:
    """Declared parameters of a callable in declaration order.

    Variadic parameters are never bound and are left out.
    """
    hints = _function_hints(func)
    params = list(inspect.signature(func).parameters.values())
    if skip_receiver and params:
        params = params[1:]

    specs = []
    for param in params:
        if param.kind in (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD):
            continue
        annotation = hints.get(param.name, param.annotation)
        has_default = param.default is not inspect.Parameter.empty
        specs.append(
            ParamSpec(
                param.name,
                describe(annotation),
                has_default,
                param.default if has_default else None,
                keyword_only=param.kind is inspect.Parameter.KEYWORD_ONLY,
            )
        )
    return tuple(specs)


@lru_cache(maxsize=None)
def method_parameters(cls, name: str) -> Tuple[ParamSpec, ...]:
    """Parameters of method ``name`` on ``cls``, receiver excluded."""
    raw = inspect.getattr_static(cls, name)
    skip_receiver = not isinstance(raw, (staticmethod, classmethod))
    return parameters_of(getattr(cls, name), skip_receiver=skip_receiver)


def return_annotation(cls, name: str) -> Any:
    """The resolved return annotation of method ``name``, or ``inspect.Signature.empty``."""
    return _function_hints(getattr(cls, name)).get("return", inspect.Signature.empty)

"""
Type-directed binding of untyped request payloads to handler arguments.

This is the only place where untyped payload data becomes typed values;
nothing after the binder looks at the raw payload again.
"""

import dataclasses
import inspect
import logging
import math
import re
from collections.abc import Mapping
from typing import Any, List, Optional, Sequence

from .containers import GenericArray
from .descriptors import (
    ELEMENT_KINDS,
    ObjectType,
    ParamSpec,
    ScalarKind,
    ScalarType,
    TypeDescriptor,
    public_fields,
    unwrap,
)
from .exceptions import MissingRequiredParameter, MissingRequiredProperty
from .models import InvocationPlan

logger = logging.getLogger(__name__)

TRUE_STRINGS = frozenset({"true", "1", "yes", "on"})
FALSE_STRINGS = frozenset({"false", "0", "no", "off"})

_NUMERIC_PREFIX = re.compile(r"\s*([+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?)")
_COLLECTIONS = (list, tuple, set, frozenset)


def to_bool(value: Any) -> bool:
    """Cast to bool using the truthy/falsy string table, then plain truthiness."""
    if isinstance(value, str):
        lowered = value.lower()
        if lowered in TRUE_STRINGS:
            return True
        if lowered in FALSE_STRINGS:
            return False
    return bool(value)


def to_float(value: Any) -> float:
    """Cast to float. Strings use their leading numeric part; anything unparseable is 0.0."""
    if isinstance(value, (bool, int, float)):
        return float(value)
    if isinstance(value, str):
        match = _NUMERIC_PREFIX.match(value)
        return float(match.group(1)) if match else 0.0
    if value is None:
        return 0.0
    if isinstance(value, _COLLECTIONS + (Mapping,)):
        return 1.0 if value else 0.0
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def to_int(value: Any) -> int:
    """Cast to int, truncating toward zero. Anything unparseable is 0."""
    if isinstance(value, int):
        return int(value)
    if isinstance(value, float):
        return int(value) if math.isfinite(value) else 0
    if isinstance(value, str):
        match = _NUMERIC_PREFIX.match(value)
        if not match:
            return 0
        try:
            return int(match.group(1))
        except ValueError:
            return to_int(float(match.group(1)))
    if value is None:
        return 0
    if isinstance(value, _COLLECTIONS + (Mapping,)):
        return 1 if value else 0
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0


def to_str(value: Any) -> str:
    """Cast to str. Booleans become "1"/"", None becomes "" and integral floats drop ".0"."""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "1" if value else ""
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def to_array(value: Any) -> Any:
    """Pass sequences and mappings through; wrap anything else in a one-element list."""
    if isinstance(value, _COLLECTIONS + (Mapping, GenericArray)):
        return value
    return [value]


_CASTS = {
    ScalarKind.INT: to_int,
    ScalarKind.FLOAT: to_float,
    ScalarKind.STRING: to_str,
    ScalarKind.BOOL: to_bool,
    ScalarKind.ARRAY: to_array,
    ScalarKind.MAP: to_array,
}


def coerce_scalar(kind: ScalarKind, value: Any) -> Any:
    return _CASTS[kind](value)


def build_container(cls: type, value: Any) -> GenericArray:
    """Build a container from a sequence (or a single value), coercing each element."""
    if isinstance(value, Mapping):
        items = list(value.values())
    elif isinstance(value, _COLLECTIONS + (GenericArray,)):
        items = list(value)
    else:
        items = [value]

    kind = ELEMENT_KINDS.get(cls.TYPE)
    if kind is not None:
        items = [coerce_scalar(kind, item) for item in items]
    return cls(items)


class ParameterBinder:
    """Turns one untyped payload mapping into the positional arguments of a handler."""

    def bind(self, params: Sequence[ParamSpec], payload: Mapping) -> List[Any]:
        """Bind every parameter in declaration order.

        Raises:
            MissingRequiredParameter: A required parameter is absent from the payload
            MissingRequiredProperty: A required field of a hydrated object is absent
        """
        return [self.bind_parameter(spec, payload) for spec in params]

    def plan(self, params: Sequence[ParamSpec], payload: Mapping) -> InvocationPlan:
        """Bind parameters and split them into positional and keyword-only arguments."""
        plan = InvocationPlan()
        for spec, value in zip(params, self.bind(params, payload)):
            if spec.keyword_only:
                plan.kwargs[spec.name] = value
            else:
                plan.args.append(value)
        return plan

    def bind_parameter(self, spec: ParamSpec, payload: Mapping) -> Any:
        inner, nullable = unwrap(spec.descriptor)

        # Object parameters are hydrated from the whole payload, not from a key.
        if isinstance(inner, ObjectType) and not inner.is_container:
            return self.hydrate(inner.cls, payload, spec.name)

        if spec.name not in payload:
            if spec.has_default:
                return spec.default
            if nullable:
                return None
            raise MissingRequiredParameter(spec.name)

        value = payload[spec.name]
        if value is None and nullable:
            return None
        return self.coerce(inner, value, spec.name)

    def coerce(self, descriptor: Optional[TypeDescriptor], value: Any, owner: str) -> Any:
        """Coerce one present value according to its (non-nullable) descriptor."""
        if isinstance(descriptor, ScalarType):
            return coerce_scalar(descriptor.kind, value)
        if isinstance(descriptor, ObjectType):
            if descriptor.is_container:
                return build_container(descriptor.cls, value)
            if isinstance(value, Mapping):
                return self.hydrate(descriptor.cls, value, owner)
        # Untyped and unknown values pass through unchanged
        return value

    def hydrate(self, cls: type, payload: Mapping, owner: str) -> Any:
        """Build an instance of ``cls`` from the fields present in ``payload``.

        Absent fields that are nullable or have a default are left untouched.
        Every required field is checked before the instance is created, so a
        failure never leaves a half-populated object behind.

        Args:
            cls: Target class: a dataclass or any class whose public fields are assignable
            payload: Mapping providing the field values at this nesting level
            owner: Name of the handler parameter being bound, used in errors
        """
        values = {}
        for spec in public_fields(cls):
            if spec.name not in payload:
                if spec.has_default or spec.nullable:
                    continue
                raise MissingRequiredProperty(spec.name, owner)

            value = payload[spec.name]
            inner, nullable = unwrap(spec.descriptor)
            if value is None and nullable:
                values[spec.name] = None
                continue
            values[spec.name] = self.coerce(inner, value, owner)

        instance = self.construct(cls, values)
        logger.debug(f"Hydrated {cls.__name__} for parameter {owner} with fields {list(values)}")
        return instance

    @staticmethod
    def construct(cls: type, values: Mapping) -> Any:
        """Create an instance of ``cls`` carrying ``values``.

        Dataclasses receive their init fields as keyword arguments; absent
        nullable init fields without a default are passed as None. Other
        classes are created without arguments when their constructor allows
        it, otherwise without running ``__init__``. Remaining values are
        assigned as attributes.
        """
        remaining = dict(values)
        if dataclasses.is_dataclass(cls):
            kwargs = {}
            for f in dataclasses.fields(cls):
                if not f.init:
                    continue
                if f.name in remaining:
                    kwargs[f.name] = remaining.pop(f.name)
                elif f.default is dataclasses.MISSING and f.default_factory is dataclasses.MISSING:
                    kwargs[f.name] = None
            instance = cls(**kwargs)
        else:
            try:
                inspect.signature(cls).bind()
            except (TypeError, ValueError):
                instance = cls.__new__(cls)
            else:
                instance = cls()

        for name, value in remaining.items():
            setattr(instance, name, value)
        return instance

"""
Homogeneous sequence wrappers ("container kinds").

A container declares its element type once, as the ``TYPE`` class constant,
using OpenAPI primitive names. The binder coerces elements by that type and the
schema synthesizer renders the container as ``{"type": "array", "items": ...}``.
"""

from collections import UserList
from typing import ClassVar


class GenericArray(UserList):
    """Base class for typed arrays. Subclasses set ``TYPE``."""

    TYPE: ClassVar[str] = ""

    def __repr__(self):
        return f"{type(self).__name__}({self.data!r})"


class IntArray(GenericArray):
    TYPE: ClassVar[str] = "integer"


class FloatArray(GenericArray):
    TYPE: ClassVar[str] = "number"


class StringArray(GenericArray):
    TYPE: ClassVar[str] = "string"


class BoolArray(GenericArray):
    TYPE: ClassVar[str] = "boolean"

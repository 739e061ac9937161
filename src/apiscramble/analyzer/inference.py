"""Type inference for runtime values.

TypeInference classifies example payloads (request bodies, response
samples, default values) so they can be rendered as schema fragments.

Example:
    >>> inference = TypeInference()
    >>> inference.infer_type(123)
    'integer'
    >>> inference.infer_schema([1, 2, 3])
    {'type': 'array', 'items': {'type': 'integer'}}
"""

from __future__ import annotations

import datetime as dt
import enum
import inspect
import io
import logging
import socket
import uuid
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from decimal import Decimal
from pathlib import PurePath
from typing import Any

from apiscramble.errors import UnsupportedTypeError
from apiscramble.types import ArrayType, ObjectType, ScalarType, Type, UnionType

logger = logging.getLogger(__name__)

_SEQUENCE_TYPES = (list, tuple, set, frozenset)

# Nesting limit for containers, well below the interpreter recursion limit.
MAX_DEPTH = 64


class TypeInference:
    """Infers type names and Type Model instances from Python values.

    Integers and floats are kept apart (``integer`` vs ``number`` in
    OpenAPI). Heterogeneous lists become unions whose member order follows
    the first occurrence of each type in the list.

    Enum members take the type of their value, paths are strings and any
    other object becomes an :class:`ObjectType` reference to its class.
    """

    def __init__(self) -> None:
        self._type_cache: dict[tuple[str, Any], Type] = {}
        self._active: list[int] = []

    def infer_type(self, value: Any) -> str:
        """Return the type name of ``value``.

        Raises:
            UnsupportedTypeError: For handles, callables, modules and classes.
        """
        self._ensure_supported(value)

        if value is None:
            return "null"
        if isinstance(value, bool):
            return "boolean"
        if isinstance(value, int):
            return "integer"
        if isinstance(value, float):
            return "float"
        if isinstance(value, (str, bytes, bytearray)):
            return "string"
        if isinstance(value, Mapping):
            return "object"
        if isinstance(value, _SEQUENCE_TYPES):
            return "array"
        return type(value).__name__

    def infer(self, value: Any) -> Type:
        """Return a Type Model instance describing ``value``."""
        key = self._cache_key(value)
        if key is not None and key in self._type_cache:
            return self._type_cache[key].copy()

        inferred = self._do_infer(value)

        if key is not None:
            self._type_cache[key] = inferred.copy()
        return inferred

    def infer_schema(self, value: Any) -> dict[str, Any]:
        """Shortcut for ``infer(value).to_openapi_schema()``.

        Enum members also list the values of their enum class.
        """
        schema = self.infer(value).to_openapi_schema()
        if isinstance(value, enum.Enum):
            schema["enum"] = [member.value for member in type(value)]
        return schema

    def infer_from_array(self, values: list[Any] | tuple[Any, ...]) -> Type | None:
        """Infer the common type of a list of values.

        Returns the single shared type, or a union of the distinct types in
        first-seen order. ``None`` elements make the result nullable.
        Returns None for an empty list.
        """
        if not values:
            return None

        members: list[Type] = []
        saw_null = False
        for item in values:
            item_type = self.infer(item)
            if item_type.name == "null":
                saw_null = True
                continue
            members.append(item_type)

        if not members:
            return ScalarType.null()

        merged = UnionType(members).simplify()
        if saw_null:
            merged.set_nullable(True)
        return merged

    def clear_cache(self) -> None:
        self._type_cache.clear()

    def _do_infer(self, value: Any) -> Type:
        self._ensure_supported(value)

        if value is None:
            return ScalarType.null()
        if isinstance(value, bool):
            return ScalarType.boolean()
        if isinstance(value, int):
            return ScalarType.integer()
        if isinstance(value, float):
            return ScalarType.number()
        if isinstance(value, str):
            return ScalarType.string()
        if isinstance(value, (bytes, bytearray)):
            return ScalarType.string(format="binary")
        if isinstance(value, Mapping):
            with self._entering(value):
                return ArrayType.associative(self.infer_from_array(list(value.values())))
        if isinstance(value, _SEQUENCE_TYPES):
            with self._entering(value):
                return ArrayType.indexed(self.infer_from_array(list(value)))
        if isinstance(value, enum.Enum):
            return self._do_infer(value.value)
        if isinstance(value, PurePath):
            return ScalarType.string()

        # Well-known value classes serialize as formatted scalars.
        if isinstance(value, dt.datetime):
            return ScalarType.string(format="date-time")
        if isinstance(value, dt.date):
            return ScalarType.string(format="date")
        if isinstance(value, uuid.UUID):
            return ScalarType.string(format="uuid")
        if isinstance(value, Decimal):
            return ScalarType.number()

        return ObjectType(type(value).__name__)

    @contextmanager
    def _entering(self, container: Any) -> Iterator[None]:
        if id(container) in self._active:
            raise UnsupportedTypeError(
                f"Cannot infer a schema for a self-referencing {type(container).__name__}",
                value_type=type(container).__name__,
            )
        if len(self._active) >= MAX_DEPTH:
            raise UnsupportedTypeError(
                f"Value nested deeper than {MAX_DEPTH} levels",
                value_type=type(container).__name__,
            )
        self._active.append(id(container))
        try:
            yield
        finally:
            self._active.pop()

    def _ensure_supported(self, value: Any) -> None:
        unsupported = (
            isinstance(value, (io.IOBase, socket.socket))
            or inspect.isclass(value)
            or inspect.isroutine(value)
            or inspect.ismodule(value)
            or inspect.isgenerator(value)
            or inspect.iscoroutine(value)
            or inspect.isasyncgen(value)
        )
        if unsupported:
            logger.debug("Refusing to infer type of %r", value)
            raise UnsupportedTypeError(value_type=type(value).__name__)

    @staticmethod
    def _cache_key(value: Any) -> tuple[str, Any] | None:
        # Containers compare equal across element types (1 == True), so skip them.
        if isinstance(value, (*_SEQUENCE_TYPES, Mapping)):
            return None
        try:
            hash(value)
        except TypeError:
            return None
        return (type(value).__qualname__, value)

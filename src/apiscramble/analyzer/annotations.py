"""Mapping of Python type annotations to the type model."""

from __future__ import annotations

import datetime as dt
import enum
import types
import typing
import uuid
from collections.abc import Mapping, Sequence
from decimal import Decimal
from typing import Any

from apiscramble.analyzer.ast_parser import parse_annotation_string
from apiscramble.types import ArrayType, ObjectType, ScalarType, Type, UnionType

_SCALARS: dict[Any, str] = {
    int: "int",
    float: "float",
    str: "string",
    bool: "bool",
}

_FORMATTED: dict[Any, tuple[str, str | None]] = {
    dt.datetime: ("string", "date-time"),
    dt.date: ("string", "date"),
    dt.time: ("string", "time"),
    uuid.UUID: ("string", "uuid"),
    bytes: ("string", "binary"),
    Decimal: ("float", None),
}

_SEQUENCE_ORIGINS = (list, set, frozenset, tuple, Sequence)


def type_from_annotation(annotation: Any) -> Type | None:
    """Convert a resolved annotation into a Type.

    Returns None for ``Any`` and for missing annotations; the caller decides
    the fallback for untyped members.

    Example:
        >>> type_from_annotation(list[int]).to_string()
        'array<int>'
        >>> type_from_annotation(int | None).to_string()
        '?int'
    """
    if annotation is Any:
        return None

    origin = typing.get_origin(annotation)
    args = typing.get_args(annotation)

    if origin is typing.Annotated:
        return type_from_annotation(args[0])

    if origin is None:
        if annotation is None or annotation is type(None):
            return ScalarType.null()
        if isinstance(annotation, type) and annotation in _SCALARS:
            return ScalarType(_SCALARS[annotation])
        if isinstance(annotation, type) and annotation in _FORMATTED:
            name, fmt = _FORMATTED[annotation]
            return ScalarType(name, format=fmt)

    if origin is typing.Union or origin is types.UnionType:
        members = [t for t in (type_from_annotation(arg) for arg in args) if t is not None]
        if not members:
            return None
        return UnionType(members).simplify()

    if origin is typing.Literal:
        return _literal_type(args)

    if origin in (dict, Mapping) or annotation in (dict, Mapping):
        value_type = type_from_annotation(args[1]) if len(args) == 2 else None
        return ArrayType.associative(value_type)

    if origin in _SEQUENCE_ORIGINS or annotation in _SEQUENCE_ORIGINS:
        if origin is tuple and args and args[-1] is not Ellipsis and len(set(args)) > 1:
            members = [t for t in (type_from_annotation(arg) for arg in args) if t is not None]
            value_type = UnionType(members).simplify() if members else None
        else:
            value_type = type_from_annotation(args[0]) if args else None
        return ArrayType.of(value_type) if value_type is not None else ArrayType.simple()

    if isinstance(annotation, type):
        if issubclass(annotation, enum.Enum):
            return _enum_type(annotation)
        return ObjectType(f"{annotation.__module__}.{annotation.__qualname__}".replace("<locals>.", ""))

    # Unresolved forward references.
    if isinstance(annotation, str):
        return parse_annotation_string(annotation)
    forward = getattr(annotation, "__forward_arg__", None)
    if isinstance(forward, str):
        return parse_annotation_string(forward)

    return None


def enum_values(annotation: Any) -> list[Any] | None:
    """Return the allowed values of an Enum class or Literal annotation."""
    if typing.get_origin(annotation) is typing.Literal:
        return list(typing.get_args(annotation))
    if isinstance(annotation, type) and issubclass(annotation, enum.Enum):
        return [member.value for member in annotation]
    return None


def is_optional(annotation: Any) -> bool:
    """True for ``Optional[X]`` and ``X | None``."""
    origin = typing.get_origin(annotation)
    if origin is typing.Union or origin is types.UnionType:
        return type(None) in typing.get_args(annotation)
    return annotation is None or annotation is type(None)


def _literal_type(values: tuple[Any, ...]) -> Type | None:
    members: list[Type] = []
    for value in values:
        if value is None:
            members.append(ScalarType.null())
        else:
            member = type_from_annotation(type(value))
            if member is not None:
                members.append(member)
    if not members:
        return None
    return UnionType(members).simplify()


def _enum_type(enum_class: type[enum.Enum]) -> Type:
    value_types = {type(member.value) for member in enum_class}
    if len(value_types) == 1:
        member = type_from_annotation(value_types.pop())
        if member is not None:
            return member
    return ScalarType.string()

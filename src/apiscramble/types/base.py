"""Base class for the inferred type model."""

from __future__ import annotations

import copy
from abc import ABC, abstractmethod
from typing import Any

SCHEMA_REF_PREFIX = "#/components/schemas/"


class Type(ABC):
    """A node of the inferred type model.

    Every type carries a canonical name and a nullability flag that is
    orthogonal to its kind. Subclasses decide how they render as an
    OpenAPI schema fragment; nullability is applied here so that all
    kinds render it the same way.

    Attributes:
        name: Canonical type name (``"string"``, ``"array"``, ``"string|int"``).
        nullable: Whether ``null`` is an accepted value.
    """

    def __init__(self, name: str, nullable: bool = False) -> None:
        self._name = name
        self._nullable = nullable

    @property
    def name(self) -> str:
        return self._name

    def get_name(self) -> str:
        return self.name

    @property
    def nullable(self) -> bool:
        return self._nullable

    def is_nullable(self) -> bool:
        return self.nullable

    def set_nullable(self, nullable: bool = True) -> Type:
        """Set the nullability flag and return the type for chaining."""
        self._nullable = nullable
        return self

    def is_scalar(self) -> bool:
        return False

    def is_array(self) -> bool:
        return False

    def is_union(self) -> bool:
        return False

    def is_class(self) -> bool:
        return False

    def to_string(self) -> str:
        return f"?{self.name}" if self.nullable else self.name

    @abstractmethod
    def _base_schema(self) -> dict[str, Any]:
        """Schema fragment for the type, ignoring nullability."""

    def to_openapi_schema(self) -> dict[str, Any]:
        """Render the type as an OpenAPI 3.0 schema fragment."""
        schema = self._base_schema()
        if self.nullable:
            schema = apply_nullable(schema)
        return schema

    def copy(self) -> Type:
        return copy.deepcopy(self)

    def __str__(self) -> str:
        return self.to_string()

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.to_string()!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Type):
            return NotImplemented
        return type(self) is type(other) and self.to_string() == other.to_string()

    __hash__ = None  # type: ignore[assignment]


def apply_nullable(schema: dict[str, Any]) -> dict[str, Any]:
    """Mark a schema fragment nullable.

    A ``$ref`` may not carry sibling keys, so nullable references are
    wrapped in ``allOf``.
    """
    if "$ref" in schema:
        extensions = {k: v for k, v in schema.items() if k.startswith("x-")}
        return {"allOf": [{"$ref": schema["$ref"]}], "nullable": True, **extensions}
    schema = dict(schema)
    schema["nullable"] = True
    return schema

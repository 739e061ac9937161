"""Scalar types: int, float, string, bool and null."""

from __future__ import annotations

from typing import Any

from apiscramble.errors import InvalidTypeError
from apiscramble.types.base import Type

# Accepted spellings mapped to the canonical scalar name.
SCALAR_ALIASES: dict[str, str] = {
    "int": "int",
    "integer": "int",
    "float": "float",
    "double": "float",
    "number": "float",
    "string": "string",
    "str": "string",
    "bool": "bool",
    "boolean": "bool",
    "null": "null",
    "none": "null",
}

OPENAPI_SCALAR_TYPES: dict[str, str] = {
    "int": "integer",
    "float": "number",
    "string": "string",
    "bool": "boolean",
}


def canonical_scalar_name(name: str) -> str | None:
    """Return the canonical scalar name for ``name`` or None if it is not a scalar."""
    if not isinstance(name, str):
        return None
    return SCALAR_ALIASES.get(name.strip().lower())


class ScalarType(Type):
    """A primitive value type.

    Args:
        name: Scalar name or alias (``"integer"`` is stored as ``"int"``).
        nullable: Whether ``null`` is accepted.
        format: Optional OpenAPI ``format`` (``"email"``, ``"date-time"``...).

    Raises:
        InvalidTypeError: If ``name`` is not a recognized scalar.
    """

    def __init__(self, name: str, nullable: bool = False, format: str | None = None) -> None:
        canonical = canonical_scalar_name(name)
        if canonical is None:
            raise InvalidTypeError(token=str(name))
        super().__init__(canonical, nullable)
        self.format = format

    @classmethod
    def integer(cls, nullable: bool = False) -> ScalarType:
        return cls("int", nullable)

    @classmethod
    def number(cls, nullable: bool = False) -> ScalarType:
        return cls("float", nullable)

    @classmethod
    def string(cls, nullable: bool = False, format: str | None = None) -> ScalarType:
        return cls("string", nullable, format=format)

    @classmethod
    def boolean(cls, nullable: bool = False) -> ScalarType:
        return cls("bool", nullable)

    @classmethod
    def null(cls) -> ScalarType:
        return cls("null")

    def is_scalar(self) -> bool:
        return True

    def is_null(self) -> bool:
        return self.name == "null"

    def to_string(self) -> str:
        if self.is_null():
            return "null"
        return super().to_string()

    def _base_schema(self) -> dict[str, Any]:
        if self.is_null():
            return {"nullable": True}
        schema: dict[str, Any] = {"type": OPENAPI_SCALAR_TYPES[self.name]}
        if self.format:
            schema["format"] = self.format
        return schema

    def to_openapi_schema(self) -> dict[str, Any]:
        if self.is_null():
            return self._base_schema()
        return super().to_openapi_schema()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ScalarType):
            return super().__eq__(other)
        return self.to_string() == other.to_string() and self.format == other.format

    __hash__ = None  # type: ignore[assignment]

"""Array types, optionally parameterized by key and value types."""

from __future__ import annotations

from typing import Any

from apiscramble.types.base import Type
from apiscramble.types.scalar import ScalarType


class ArrayType(Type):
    """An ordered list or a string-keyed map.

    The key type decides the rendering: a key type that is (or contains)
    the ``string`` scalar makes the array associative, which renders as an
    object with ``additionalProperties``; anything else renders as a JSON
    array of the value type.

    Example:
        >>> ArrayType(ScalarType("string"), ScalarType("integer")).to_openapi_schema()
        {'type': 'object', 'additionalProperties': {'type': 'integer'}}
    """

    def __init__(
        self,
        key_type: Type | None = None,
        value_type: Type | None = None,
        nullable: bool = False,
    ) -> None:
        super().__init__("array", nullable)
        self._key_type = key_type.copy() if key_type is not None else None
        self._value_type = value_type.copy() if value_type is not None else None

    @property
    def key_type(self) -> Type | None:
        return self._key_type

    @property
    def value_type(self) -> Type | None:
        return self._value_type

    def set_key_type(self, key_type: Type) -> ArrayType:
        self._key_type = key_type.copy()
        return self

    def set_value_type(self, value_type: Type) -> ArrayType:
        self._value_type = value_type.copy()
        return self

    @classmethod
    def simple(cls, nullable: bool = False) -> ArrayType:
        return cls(None, None, nullable)

    @classmethod
    def of(cls, value_type: Type, nullable: bool = False) -> ArrayType:
        return cls(None, value_type, nullable)

    @classmethod
    def associative(cls, value_type: Type | None = None, nullable: bool = False) -> ArrayType:
        return cls(ScalarType.string(), value_type, nullable)

    @classmethod
    def indexed(cls, value_type: Type | None = None, nullable: bool = False) -> ArrayType:
        return cls(ScalarType.integer(), value_type, nullable)

    def is_array(self) -> bool:
        return True

    def is_associative(self) -> bool:
        key = self._key_type
        if key is None:
            return False
        if key.name == "string":
            return True
        # Mixed keys: any string member makes the array a map.
        has_type = getattr(key, "has_type", None)
        return bool(has_type and has_type("string"))

    def is_indexed(self) -> bool:
        return self._key_type is not None and self._key_type.name == "int"

    def to_string(self) -> str:
        text = "array"
        if self._key_type is not None and self._value_type is not None:
            text = f"array<{self._key_type.to_string()}, {self._value_type.to_string()}>"
        elif self._value_type is not None:
            text = f"array<{self._value_type.to_string()}>"
        return f"?{text}" if self.nullable else text

    def _base_schema(self) -> dict[str, Any]:
        value_schema = self._value_type.to_openapi_schema() if self._value_type is not None else None

        if self.is_associative():
            schema: dict[str, Any] = {"type": "object"}
            if value_schema is not None:
                schema["additionalProperties"] = value_schema
            return schema

        return {"type": "array", "items": value_schema if value_schema is not None else {}}

"""Union types such as ``string|int``."""

from __future__ import annotations

from typing import Any

from apiscramble.errors import InvalidTypeError
from apiscramble.types.base import Type, apply_nullable
from apiscramble.types.scalar import ScalarType


class UnionType(Type):
    """One of several alternative types.

    Members keep their first-seen order and are deduplicated by name, so
    ``UnionType([int, string, int])`` has two members. A union that ends up
    with a single distinct member behaves like that member.

    Raises:
        InvalidTypeError: If no member types are given.
    """

    def __init__(self, types: list[Type], nullable: bool = False) -> None:
        members: list[Type] = []
        for member in types:
            if not any(existing.name == member.name for existing in members):
                members.append(member.copy())

        if not members:
            raise InvalidTypeError("Union type must have at least one member type")

        self._types = members
        super().__init__(self._join_names(), nullable)

    @classmethod
    def of(cls, *types: Type) -> Type:
        """Build a union and return its simplified form."""
        return cls(list(types)).simplify()

    @property
    def types(self) -> list[Type]:
        return list(self._types)

    def get_types(self) -> list[Type]:
        return self.types

    def add_type(self, member: Type) -> UnionType:
        """Add a member unless one with the same name is already present."""
        if not self.has_type(member.name):
            self._types.append(member.copy())
            self._name = self._join_names()
        return self

    def has_type(self, type_name: str) -> bool:
        return any(member.name == type_name for member in self._types)

    def has_null(self) -> bool:
        return self.has_type("null")

    def _join_names(self) -> str:
        return "|".join(member.name for member in self._types)

    def _single(self) -> Type | None:
        if len(self._types) != 1:
            return None
        only = self._types[0].copy()
        if self.nullable:
            only.set_nullable(True)
        return only

    def simplify(self) -> Type:
        """Fold ``null`` members into nullability and unwrap single members."""
        rest = [member for member in self._types if member.name != "null"]
        nullable = self.nullable or len(rest) != len(self._types)

        if not rest:
            return ScalarType.null()
        if len(rest) == 1:
            only = rest[0].copy()
            if nullable:
                only.set_nullable(True)
            return only
        return UnionType(rest, nullable)

    def is_union(self) -> bool:
        return len(self._types) > 1

    def is_scalar(self) -> bool:
        return len(self._types) == 1 and self._types[0].is_scalar()

    def is_array(self) -> bool:
        return len(self._types) == 1 and self._types[0].is_array()

    def is_class(self) -> bool:
        return len(self._types) == 1 and self._types[0].is_class()

    def to_string(self) -> str:
        single = self._single()
        if single is not None:
            return single.to_string()
        text = "|".join(member.to_string() for member in self._types)
        return f"?{text}" if self.nullable else text

    def _base_schema(self) -> dict[str, Any]:
        rest = [member for member in self._types if member.name != "null"]
        if not rest:
            return {}
        if len(rest) == 1:
            return rest[0].to_openapi_schema()
        return {"oneOf": [member.to_openapi_schema() for member in rest]}

    def to_openapi_schema(self) -> dict[str, Any]:
        schema = self._base_schema()
        if self.nullable or self.has_null():
            schema = apply_nullable(schema)
        return schema

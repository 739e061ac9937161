"""Type model for inferred and declared types.

Classes:
    Type: Abstract base carrying the name and nullability flag.
    ScalarType: int, float, string, bool and null.
    ArrayType: Lists and string-keyed maps.
    UnionType: One of several member types.
    ObjectType: Reference to a named class component.

Example:
    >>> from apiscramble.types import ArrayType, ScalarType
    >>> ArrayType.of(ScalarType("int")).to_openapi_schema()
    {'type': 'array', 'items': {'type': 'integer'}}
"""

from apiscramble.types.array import ArrayType
from apiscramble.types.base import SCHEMA_REF_PREFIX, Type, apply_nullable
from apiscramble.types.object import ObjectType, short_class_name
from apiscramble.types.scalar import OPENAPI_SCALAR_TYPES, SCALAR_ALIASES, ScalarType, canonical_scalar_name
from apiscramble.types.union import UnionType

__all__ = [
    "Type",
    "ScalarType",
    "ArrayType",
    "UnionType",
    "ObjectType",
    "SCHEMA_REF_PREFIX",
    "SCALAR_ALIASES",
    "OPENAPI_SCALAR_TYPES",
    "apply_nullable",
    "canonical_scalar_name",
    "short_class_name",
]

"""Class references."""

from __future__ import annotations

import re
from typing import Any

from apiscramble.errors import InvalidTypeError
from apiscramble.types.base import SCHEMA_REF_PREFIX, Type

_CLASS_NAME_RE = re.compile(r"^[A-Za-z_][\w]*(?:[.\\][A-Za-z_][\w]*)*$")


def short_class_name(class_name: str) -> str:
    """``"app.models.User"`` and ``"App\\Models\\User"`` both become ``"User"``."""
    return re.split(r"[.\\]", class_name)[-1]


class ObjectType(Type):
    """A reference to a named class, rendered as a component ``$ref``."""

    def __init__(self, class_name: str, nullable: bool = False) -> None:
        if not isinstance(class_name, str) or not _CLASS_NAME_RE.match(class_name):
            raise InvalidTypeError(f"Invalid class name: {class_name!r}", token=str(class_name))
        super().__init__(class_name, nullable)

    @property
    def class_name(self) -> str:
        return self.name

    @property
    def short_name(self) -> str:
        return short_class_name(self.name)

    @property
    def ref(self) -> str:
        return f"{SCHEMA_REF_PREFIX}{self.short_name}"

    def is_class(self) -> bool:
        return True

    def _base_schema(self) -> dict[str, Any]:
        return {"$ref": self.ref}

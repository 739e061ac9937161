"""RefResolver - Resolves and validates $ref pointers in OpenAPI documents."""

from __future__ import annotations

from collections.abc import Iterator
from typing import Any

from apiscramble.errors import ErrorContext, UnresolvedReferenceError


def iter_refs(node: Any, pointer: str = "#") -> Iterator[tuple[str, str]]:
    """Yield ``(location, ref)`` for every ``$ref`` string below ``node``.

    ``location`` is the JSON pointer of the object holding the ``$ref``.
    """
    if isinstance(node, dict):
        ref = node.get("$ref")
        if isinstance(ref, str):
            yield pointer, ref
        for key, value in node.items():
            if key == "$ref":
                continue
            escaped = str(key).replace("~", "~0").replace("/", "~1")
            yield from iter_refs(value, f"{pointer}/{escaped}")
    elif isinstance(node, list):
        for index, item in enumerate(node):
            yield from iter_refs(item, f"{pointer}/{index}")


class RefResolver:
    """Resolves JSON $ref pointers within an OpenAPI document.

    Supports internal references (starting with "#/") to any part of the
    document, typically:
    - #/components/schemas/...
    - #/components/parameters/...
    - #/components/responses/...
    - #/components/securitySchemes/...

    The resolver caches resolved references to avoid redundant traversals,
    so it must not outlive changes to the document it was built for.

    Example::

        resolver = RefResolver(document)
        schema = resolver.resolve("#/components/schemas/User")
        # Returns the User schema dict

    Args:
        document: The full OpenAPI document dictionary.
    """

    _MISSING = object()

    def __init__(self, document: dict[str, Any]) -> None:
        self._document = document
        self._cache: dict[str, Any] = {}

    def lookup(self, ref: str) -> Any:
        """Return the target of ``ref`` or None if it does not resolve."""
        target = self._lookup(ref)
        return None if target is self._MISSING else target

    def is_resolvable(self, ref: str) -> bool:
        return self._lookup(ref) is not self._MISSING

    def resolve(self, ref: str) -> dict[str, Any]:
        """Resolve a $ref pointer to its target.

        Args:
            ref: The $ref string (e.g., "#/components/schemas/User").

        Returns:
            The resolved schema/parameter/etc. dictionary.

        Raises:
            UnresolvedReferenceError: If the reference is external or
                points at nothing.
        """
        target = self._lookup(ref)
        if target is self._MISSING or not isinstance(target, dict):
            raise UnresolvedReferenceError(refs=[ref], context=ErrorContext(pointer=ref))
        return target

    def unresolved(self) -> list[str]:
        """All distinct ``$ref`` strings that do not resolve, in document order."""
        missing: list[str] = []
        for _, ref in iter_refs(self._document):
            if ref not in missing and not self.is_resolvable(ref):
                missing.append(ref)
        return missing

    def validate(self) -> None:
        """Raise if any ``$ref`` in the document does not resolve.

        Raises:
            UnresolvedReferenceError: Listing every dangling reference.
        """
        missing = self.unresolved()
        if missing:
            raise UnresolvedReferenceError(refs=missing)

    def _lookup(self, ref: str) -> Any:
        if ref in self._cache:
            return self._cache[ref]

        if not ref.startswith("#/"):
            # External refs not supported
            return self._MISSING

        current: Any = self._document
        for raw in ref[2:].split("/"):
            part = raw.replace("~1", "/").replace("~0", "~")
            if isinstance(current, dict) and part in current:
                current = current[part]
            elif isinstance(current, list) and part.isdigit() and int(part) < len(current):
                current = current[int(part)]
            else:
                self._cache[ref] = self._MISSING
                return self._MISSING

        self._cache[ref] = current
        return current


__all__ = ["RefResolver", "iter_refs"]

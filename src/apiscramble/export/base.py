"""Abstract base exporter.

Exporters convert a finished OpenAPI document into the collection format of
an API client (Postman, Insomnia...). They only read the document; any
``$ref`` met while building example bodies is resolved against it.

Example:
    >>> class CurlExporter(BaseExporter):
    ...     format_name = "curl"
    ...     description = "Shell script of curl commands"
    ...
    ...     def export(self, document):
    ...         return {"commands": []}
"""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from collections.abc import Iterator, Mapping
from pathlib import Path
from typing import Any
from urllib.parse import urlsplit

from apiscramble.errors import ErrorContext, ExportError
from apiscramble.generator.references import RefResolver

logger = logging.getLogger(__name__)

HTTP_METHODS = ("get", "post", "put", "delete", "patch", "head", "options")

DEFAULT_SERVER_URL = "http://localhost"

# Examples stop expanding nested schemas below this depth.
MAX_EXAMPLE_DEPTH = 8


def example_for_type(schema_type: str | None, fmt: str | None = None) -> Any:
    """Return a placeholder value for a JSON schema type and format."""
    format_examples: dict[str, Any] = {
        "email": "user@example.com",
        "date": "2024-01-01",
        "date-time": "2024-01-01T00:00:00Z",
        "uri": "https://example.com",
        "url": "https://example.com",
        "uuid": "00000000-0000-0000-0000-000000000000",
        "password": "secret",
        "binary": "",
    }
    if fmt and fmt in format_examples:
        return format_examples[fmt]

    type_examples: dict[str, Any] = {
        "string": "string",
        "integer": 0,
        "number": 0.0,
        "boolean": True,
        "array": [],
        "object": {},
    }
    return type_examples.get(schema_type or "", None)


class BaseExporter(ABC):
    """Base class for document exporters.

    Subclasses set ``format_name`` and ``description`` and implement
    :meth:`export`.
    """

    format_name: str = ""
    description: str = ""
    file_extension: str = ".json"

    @abstractmethod
    def export(self, document: Mapping[str, Any]) -> dict[str, Any]:
        """Convert an OpenAPI document into this exporter's format."""
        ...

    def save(self, document: Mapping[str, Any], path: str | Path) -> Path:
        """Export ``document`` and write it as pretty JSON to ``path``.

        Raises:
            ExportError: If the file cannot be written.
        """
        exported = self.export(document)
        output_path = Path(path)
        try:
            output_path.parent.mkdir(parents=True, exist_ok=True)
            output_path.write_text(json.dumps(exported, indent=2, ensure_ascii=False), encoding="utf-8")
        except OSError as e:
            raise ExportError(
                f"Failed to write {self.format_name} export to {output_path}: {e}",
                context=ErrorContext(extra={"format": self.format_name, "path": str(output_path)}),
                cause=e,
            ) from e
        logger.info("Wrote %s export to %s", self.format_name, output_path)
        return output_path

    @staticmethod
    def operations(document: Mapping[str, Any]) -> Iterator[tuple[str, str, dict[str, Any]]]:
        """Yield ``(path, method, operation)`` for every HTTP operation."""
        for path, path_item in (document.get("paths") or {}).items():
            if not isinstance(path_item, Mapping):
                continue
            for method, operation in path_item.items():
                if method.lower() in HTTP_METHODS and isinstance(operation, Mapping):
                    yield path, method.lower(), dict(operation)

    @staticmethod
    def base_url(document: Mapping[str, Any]) -> str:
        servers = document.get("servers") or [{"url": DEFAULT_SERVER_URL}]
        return str(servers[0].get("url") or DEFAULT_SERVER_URL)

    @staticmethod
    def split_url(url: str) -> tuple[str, list[str]]:
        """Split a server URL into its host and path segments."""
        parts = urlsplit(url)
        return parts.hostname or "", [segment for segment in parts.path.split("/") if segment]

    @staticmethod
    def security_schemes(document: Mapping[str, Any]) -> dict[str, dict[str, Any]]:
        return dict((document.get("components") or {}).get("securitySchemes") or {})

    @staticmethod
    def operation_scheme(
        operation: Mapping[str, Any], document: Mapping[str, Any]
    ) -> dict[str, Any] | None:
        """The scheme of the operation's first security requirement, if defined."""
        security = operation.get("security", document.get("security")) or []
        if not security or not security[0]:
            return None
        name = next(iter(security[0]))
        return BaseExporter.security_schemes(document).get(name)

    def example_from_schema(
        self,
        schema: Mapping[str, Any],
        document: Mapping[str, Any],
        depth: int = 0,
    ) -> Any:
        """Build an example value for ``schema``, following ``$ref`` pointers."""
        if "example" in schema:
            return schema["example"]
        if depth > MAX_EXAMPLE_DEPTH:
            return None

        if "$ref" in schema:
            target = RefResolver(dict(document)).lookup(schema["$ref"])
            if not isinstance(target, Mapping):
                logger.warning("Cannot resolve %s for example body", schema["$ref"])
                return None
            return self.example_from_schema(target, document, depth + 1)

        for key in ("allOf", "oneOf", "anyOf"):
            if schema.get(key):
                return self.example_from_schema(schema[key][0], document, depth + 1)

        if schema.get("enum"):
            return schema["enum"][0]

        schema_type = schema.get("type", "object")
        if schema_type == "object":
            return {
                name: self.example_from_schema(prop, document, depth + 1)
                for name, prop in (schema.get("properties") or {}).items()
            }
        if schema_type == "array":
            return [self.example_from_schema(schema.get("items") or {"type": "string"}, document, depth + 1)]
        return example_for_type(schema_type, schema.get("format"))

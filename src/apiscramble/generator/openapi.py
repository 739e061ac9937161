"""OpenApiGenerator - finalizes OpenAPI documents.

Two entry points:

- :meth:`OpenApiGenerator.generate` merges document fragments (plain
  mappings or :class:`DocumentBuilder` instances) and applies defaults.
- :meth:`OpenApiGenerator.generate_from_sources` runs the whole pipeline
  from analyzer metadata: schemas, operations, tags, security schemes,
  common responses and common parameters.

Example:
    >>> generator = OpenApiGenerator(ScrambleConfig(title="Shop API"))
    >>> document = generator.generate({"paths": {"/ping": {"get": {"responses": {}}}}})
    >>> document["info"]["title"]
    'Shop API'
"""

from __future__ import annotations

import copy
import hashlib
import json
import logging
import re
from collections.abc import Iterable, Mapping
from typing import Any

from apiscramble.analyzer.docblock import DocBlockParser
from apiscramble.cache import CacheManager
from apiscramble.config import ScrambleConfig
from apiscramble.errors import ErrorContext, StructuralError
from apiscramble.generator.document import DocumentBuilder
from apiscramble.generator.references import RefResolver, iter_refs
from apiscramble.generator.responses import ResponseGenerator
from apiscramble.generator.schema import SchemaGenerator
from apiscramble.generator.security import SecuritySchemeGenerator
from apiscramble.serialization import YamlGenerator, to_json
from apiscramble.sources import (
    ControllerSource,
    MappingSource,
    RouteSource,
    ValidationRuleSource,
)

logger = logging.getLogger(__name__)

DEFAULT_OPENAPI_VERSION = "3.0.0"

TOP_LEVEL_ORDER = ("openapi", "info", "servers", "security", "tags", "paths", "components")

COMMON_PARAMETERS: dict[str, dict[str, Any]] = {
    "Page": {
        "name": "page",
        "in": "query",
        "description": "Page number",
        "required": False,
        "schema": {"type": "integer", "minimum": 1, "default": 1},
    },
    "Limit": {
        "name": "limit",
        "in": "query",
        "description": "Number of items per page",
        "required": False,
        "schema": {"type": "integer", "minimum": 1, "maximum": 100, "default": 20},
    },
    "Sort": {
        "name": "sort",
        "in": "query",
        "description": "Field to sort by",
        "required": False,
        "schema": {"type": "string"},
    },
    "Order": {
        "name": "order",
        "in": "query",
        "description": "Sort direction",
        "required": False,
        "schema": {"type": "string", "enum": ["asc", "desc"], "default": "asc"},
    },
}

# Flask "<int:id>", Laravel-style "{id?}" and Express ":id" placeholders.
_ANGLE_PARAM_RE = re.compile(r"<(?:[^:<>]+:)?(\w+)>")
_OPTIONAL_PARAM_RE = re.compile(r"\{(\w+)\?\}")
_COLON_PARAM_RE = re.compile(r"(?<=/):(\w+)")


def normalize_path(path: str) -> str:
    """Rewrite framework path placeholders to OpenAPI ``{name}`` form."""
    path = _ANGLE_PARAM_RE.sub(r"{\1}", path.strip())
    path = _OPTIONAL_PARAM_RE.sub(r"{\1}", path)
    path = _COLON_PARAM_RE.sub(r"{\1}", path)
    if not path.startswith("/"):
        path = f"/{path}"
    return path


class OpenApiGenerator:
    """Merges fragments into a final OpenAPI document.

    Args:
        config: Generation settings; defaults are used when omitted.
        cache: Memoizes :meth:`generate_from_sources`. Cache failures only
            cost a regeneration.
    """

    def __init__(
        self,
        config: ScrambleConfig | None = None,
        cache: CacheManager | None = None,
    ) -> None:
        self.config = config or ScrambleConfig()
        self.cache = cache
        self._docblock = DocBlockParser()
        self._security = SecuritySchemeGenerator(self.config)

    def generate(self, *fragments: Mapping[str, Any] | DocumentBuilder) -> dict[str, Any]:
        """Merge ``fragments`` in order and finalize the result.

        ``paths`` merge per path and method, ``components`` per kind and
        name, ``tags`` are deduplicated by name; any other key is replaced by
        the later fragment. Inputs are never mutated.

        Raises:
            StructuralError: If a fragment is not a mapping.
            UnresolvedReferenceError: If reference validation is enabled and
                a ``$ref`` does not resolve.
        """
        document: dict[str, Any] = {}
        for index, fragment in enumerate(fragments):
            if isinstance(fragment, DocumentBuilder):
                fragment = fragment.get_document()
            elif not isinstance(fragment, Mapping):
                raise StructuralError(
                    f"Document fragment must be a mapping, got {type(fragment).__name__}",
                    context=ErrorContext(extra={"fragment": index}),
                )
            _merge_fragment(document, copy.deepcopy(dict(fragment)))

        return self._finalize(document)

    def generate_json(self, *fragments: Mapping[str, Any] | DocumentBuilder, pretty: bool = True) -> str:
        return to_json(self.generate(*fragments), pretty)

    def generate_yaml(self, *fragments: Mapping[str, Any] | DocumentBuilder) -> str:
        return YamlGenerator.encode(self.generate(*fragments))

    def generate_from_sources(
        self,
        routes: RouteSource | Iterable[Mapping[str, Any]],
        controllers: ControllerSource | Mapping[str, Mapping[str, Any]] | None = None,
        validators: ValidationRuleSource | Mapping[str, Mapping[str, Any]] | None = None,
        schemas: Mapping[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Generate a complete document from analyzer metadata.

        Args:
            routes: Route source or route info mappings.
            controllers: Controller source or mapping of controller name to
                controller info.
            validators: Validation rule source or mapping of validator key
                (``Controller@action`` or the route's ``validator``) to
                validator info.
            schemas: Named schemas: a field specification mapping or the
                import path of a class.
        """
        route_source = routes if isinstance(routes, RouteSource) else MappingSource(routes=routes)
        # A combined source also answers for controllers and validators.
        if controllers is None and isinstance(routes, ControllerSource):
            controllers = routes
        if validators is None and isinstance(routes, ValidationRuleSource):
            validators = routes
        controller_source = (
            controllers if isinstance(controllers, ControllerSource) else MappingSource(controllers=controllers)
        )
        rule_source = (
            validators if isinstance(validators, ValidationRuleSource) else MappingSource(validators=validators)
        )
        if schemas is None and isinstance(routes, MappingSource):
            schemas = routes.get_schemas()

        route_list = route_source.get_routes()
        entries = [
            (
                route,
                controller_source.get_controller(str(route.get("controller", ""))) or {},
                rule_source.get_rules(route),
            )
            for route in route_list
        ]

        if self.cache is None:
            return self._build(entries, schemas or {})

        key = self._cache_key(entries, schemas or {})
        cached = self.cache.get(key)
        if cached is not None:
            logger.debug("Using cached document for %d routes", len(entries))
            return cached
        document = self._build(entries, schemas or {})
        self.cache.set(key, document)
        return document

    def clear_cache(self) -> None:
        """Drop cached documents. Output is unaffected."""
        if self.cache is not None:
            self.cache.clear()

    def _build(
        self,
        entries: list[tuple[dict[str, Any], dict[str, Any], dict[str, Any] | None]],
        schemas: Mapping[str, Any],
    ) -> dict[str, Any]:
        logger.info("Generating OpenAPI document for %d routes", len(entries))
        schema_generator = SchemaGenerator(docblock_parser=self._docblock)
        builder = DocumentBuilder(self.config, schema_generator)

        # Schemas first, so responses can reference known definitions.
        for name, spec in schemas.items():
            if isinstance(spec, str):
                builder.add_schema(name, schema_generator.generate_from_class(spec))
            else:
                builder.add_schema(name, schema_generator.generate_from_array(spec, name=name))

        used_schemes: list[str] = []
        for route, controller_info, validator_info in entries:
            route = dict(route)
            route["path"] = normalize_path(str(route.get("path", "/")))
            method = str(route.get("method", "GET")).lower()

            operation = builder.build_operation(route, controller_info, validator_info=validator_info)
            builder.add_path(route["path"], method, operation)
            builder.add_tag(self._controller_tag(operation["tags"][0], controller_info))

            for requirement in operation.get("security", []):
                used_schemes.extend(name for name in requirement if name not in used_schemes)

        schemes = self._security.global_schemes(used_schemes)
        for name, scheme in schemes.items():
            builder.add_security_scheme(name, scheme)
        for warning in self._security.validate_schemes(schemes, [{name: []} for name in used_schemes]):
            logger.info(warning)

        for name, response in ResponseGenerator(schema_generator, self._docblock).common_responses().items():
            builder.add_response(name, response)
        for name, parameter in COMMON_PARAMETERS.items():
            builder.add_parameter(name, parameter)

        # Nested class schemas recorded along the way.
        for name, schema in schema_generator.definitions.items():
            if name not in builder.get_document().get("components", {}).get("schemas", {}):
                builder.add_schema(name, schema)

        return self.generate(builder)

    def _controller_tag(self, name: str, controller_info: Mapping[str, Any]) -> dict[str, Any]:
        doc = self._docblock.parse(controller_info.get("doc_comment") or "")
        return {"name": name, "description": doc["summary"] or f"{name} operations"}

    def _cache_key(self, entries: list[Any], schemas: Mapping[str, Any]) -> str:
        payload = json.dumps(
            {"entries": entries, "schemas": schemas, "config": self.config.model_dump(mode="json")},
            sort_keys=True,
            default=str,
        )
        return f"document:{hashlib.sha256(payload.encode()).hexdigest()}"

    def _finalize(self, document: dict[str, Any]) -> dict[str, Any]:
        document.setdefault("openapi", self.config.openapi_version or DEFAULT_OPENAPI_VERSION)

        info = document.get("info")
        if not isinstance(info, dict):
            document["info"] = self.config.info()
        else:
            info.setdefault("title", self.config.title)
            info.setdefault("version", self.config.version)

        if not isinstance(document.get("paths"), dict):
            document["paths"] = {}

        refs = [ref for _, ref in iter_refs(document)]
        for ref in refs:
            parts = ref.split("/")
            if len(parts) >= 3 and parts[:2] == ["#", "components"]:
                document.setdefault("components", {}).setdefault(parts[2], {})

        if self.config.validate_references:
            RefResolver(document).validate()

        ordered = {key: document[key] for key in TOP_LEVEL_ORDER if key in document}
        ordered.update((key, value) for key, value in document.items() if key not in ordered)
        return ordered


def _merge_fragment(target: dict[str, Any], fragment: dict[str, Any]) -> None:
    for key, value in fragment.items():
        if key == "paths" and isinstance(value, Mapping):
            paths = target.setdefault("paths", {})
            for path, operations in value.items():
                if isinstance(operations, Mapping) and isinstance(paths.get(path), dict):
                    paths[path].update(operations)
                else:
                    paths[path] = operations
        elif key == "components" and isinstance(value, Mapping):
            components = target.setdefault("components", {})
            for kind, entries in value.items():
                if isinstance(entries, Mapping) and isinstance(components.get(kind), dict):
                    components[kind].update(entries)
                else:
                    components[kind] = entries
        elif key == "tags" and isinstance(value, list):
            tags = target.setdefault("tags", [])
            for tag in value:
                name = tag.get("name") if isinstance(tag, Mapping) else tag
                if not any((t.get("name") if isinstance(t, Mapping) else t) == name for t in tags):
                    tags.append(tag)
        else:
            target[key] = value

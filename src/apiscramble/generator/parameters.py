"""Operation parameter extraction from route and controller metadata."""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping
from typing import Any

from apiscramble.analyzer.docblock import DocBlockParser
from apiscramble.analyzer.validation import ValidationRuleParser
from apiscramble.config import ScrambleConfig
from apiscramble.generator.schema import SchemaGenerator
from apiscramble.types import Type

logger = logging.getLogger(__name__)

PATH_PLACEHOLDER_RE = re.compile(r"\{(\w+)\}")

PARAMETER_DESCRIPTIONS = {
    "id": "Resource identifier",
    "page": "Page number for pagination",
    "limit": "Number of items per page",
    "offset": "Number of items to skip",
    "sort": "Sort field",
    "order": "Sort order (asc/desc)",
    "search": "Search query",
    "filter": "Filter criteria",
}

_PARAMETER_TYPES = {
    "int": ("integer", 1),
    "integer": ("integer", 1),
    "float": ("number", 1.0),
    "double": ("number", 1.0),
    "number": ("number", 1.0),
    "bool": ("boolean", True),
    "boolean": ("boolean", True),
    "array": ("array", []),
}

_LOCATION_ORDER = {"path": 1, "query": 2, "header": 3, "cookie": 4}


class ParameterExtractor:
    """Builds OpenAPI parameter lists for an operation.

    Parameters come from, in order: route path placeholders, controller
    method arguments (query), configured common headers, and ``@ApiParam``
    annotations in the action docblock.
    """

    def __init__(
        self,
        config: ScrambleConfig,
        schema_generator: SchemaGenerator | None = None,
        docblock_parser: DocBlockParser | None = None,
        rule_parser: ValidationRuleParser | None = None,
    ) -> None:
        self.config = config
        self._schemas = schema_generator or SchemaGenerator()
        self._docblock = docblock_parser or DocBlockParser()
        self._rules = rule_parser or ValidationRuleParser()

    def extract_parameters(
        self,
        route_info: Mapping[str, Any],
        controller_info: Mapping[str, Any] | None = None,
    ) -> list[dict[str, Any]]:
        controller_info = controller_info or {}
        parameters = self.extract_path_parameters(route_info)
        parameters = self.merge_parameters(parameters, self.extract_query_parameters(route_info, controller_info))
        parameters = self.merge_parameters(parameters, self.extract_header_parameters())
        parameters = self.merge_parameters(parameters, self.extract_annotation_parameters(route_info, controller_info))
        return parameters

    def extract_path_parameters(self, route_info: Mapping[str, Any]) -> list[dict[str, Any]]:
        """Declared route parameters plus any undeclared ``{name}`` placeholders.

        Path parameters are always required.
        """
        parameters: list[dict[str, Any]] = []
        declared: set[str] = set()

        for param in route_info.get("parameters") or []:
            name = param["name"]
            declared.add(name)
            parameters.append(
                {
                    "name": name,
                    "in": "path",
                    "required": True,
                    "description": param.get("description") or self.describe(name),
                    "schema": self.parameter_schema(param.get("type"), param.get("pattern")),
                }
            )

        for name in PATH_PLACEHOLDER_RE.findall(str(route_info.get("path", ""))):
            if name not in declared:
                declared.add(name)
                parameters.append(
                    {
                        "name": name,
                        "in": "path",
                        "required": True,
                        "description": self.describe(name),
                        "schema": {"type": "string"},
                    }
                )

        return parameters

    def extract_query_parameters(
        self,
        route_info: Mapping[str, Any],
        controller_info: Mapping[str, Any],
    ) -> list[dict[str, Any]]:
        method_info = self._method_info(route_info, controller_info)
        if method_info is None:
            return []

        path_names = {p["name"] for p in self.extract_path_parameters(route_info)}
        parameters: list[dict[str, Any]] = []

        for param in method_info.get("parameters") or []:
            name = param["name"]
            if name in path_names or _is_request_parameter(param):
                continue
            parameters.append(
                {
                    "name": name,
                    "in": "query",
                    "required": not param.get("is_optional", False),
                    "description": param.get("description") or self.describe(name),
                    "schema": self.parameter_schema(param.get("type")),
                }
            )

        return parameters

    def extract_header_parameters(self) -> list[dict[str, Any]]:
        return [
            {
                "name": header["name"],
                "in": "header",
                "required": header.get("required", False),
                "description": header.get("description", ""),
                "schema": header.get("schema", {"type": "string"}),
            }
            for header in self.config.common_headers
        ]

    def extract_annotation_parameters(
        self,
        route_info: Mapping[str, Any],
        controller_info: Mapping[str, Any],
    ) -> list[dict[str, Any]]:
        """Query parameters declared with ``@ApiParam {type} name description``."""
        method_info = self._method_info(route_info, controller_info)
        doc = (method_info or {}).get("doc_comment")
        if not doc:
            return []

        parameters: list[dict[str, Any]] = []
        for tag in self._docblock.parse(doc)["tags"]:
            if tag["name"] != "ApiParam" or "param_name" not in tag:
                continue
            name = tag["param_name"]
            parameters.append(
                {
                    "name": name,
                    "in": "query",
                    "required": False,
                    "description": tag.get("description") or self.describe(name),
                    "schema": self.parameter_schema(tag.get("param_type")),
                }
            )
        return parameters

    def extract_validator_parameters(
        self,
        validator_info: Mapping[str, Any],
        location: str = "query",
    ) -> list[dict[str, Any]]:
        """Parameters described by a validator's ``rules`` mapping."""
        parameters = self._rules.analyze_rules(validator_info.get("rules") or {}, location)
        for parameter in parameters:
            if not parameter["description"]:
                parameter["description"] = self.describe(parameter["name"])

        scene = validator_info.get("scene")
        if scene:
            parameters = self._rules.filter_by_scene(parameters, scene, validator_info.get("scenes") or {})
        return parameters

    def parameter_schema(self, type_: Any = None, pattern: str | None = None) -> dict[str, Any]:
        """Schema for a parameter declared as a type name or a Type."""
        if isinstance(type_, Type):
            schema = type_.to_openapi_schema()
        elif isinstance(type_, str) and type_.strip():
            mapped = _PARAMETER_TYPES.get(type_.strip().lower())
            if mapped is not None:
                schema = {"type": mapped[0], "example": mapped[1]}
            else:
                schema = self._schemas.schema_from_type_string(type_)
        else:
            schema = {"type": "string"}

        if pattern:
            schema["pattern"] = pattern
        return schema

    def merge_parameters(
        self,
        first: list[dict[str, Any]],
        second: list[dict[str, Any]],
    ) -> list[dict[str, Any]]:
        """Append parameters from ``second`` whose (name, location) is new."""
        merged = list(first)
        existing = {(p["name"], p.get("in")) for p in first}
        for param in second:
            key = (param["name"], param.get("in"))
            if key not in existing:
                existing.add(key)
                merged.append(param)
        return merged

    def sort_parameters(self, parameters: list[dict[str, Any]]) -> list[dict[str, Any]]:
        """Order by location (path, query, header, cookie) then name."""
        return sorted(parameters, key=lambda p: (_LOCATION_ORDER.get(p.get("in", ""), 5), p["name"]))

    @staticmethod
    def describe(name: str) -> str:
        return PARAMETER_DESCRIPTIONS.get(name, f"{name[:1].upper()}{name[1:]} parameter")

    @staticmethod
    def _method_info(route_info: Mapping[str, Any], controller_info: Mapping[str, Any]) -> Mapping[str, Any] | None:
        action = route_info.get("action")
        if not action:
            return None
        return (controller_info.get("methods") or {}).get(action)


def _is_request_parameter(param: Mapping[str, Any]) -> bool:
    type_ = param.get("type")
    return isinstance(type_, str) and "request" in type_.lower()

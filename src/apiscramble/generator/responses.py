"""Standard response objects for generated operations."""

from __future__ import annotations

import copy
from collections.abc import Mapping
from typing import Any

from apiscramble.analyzer.docblock import DocBlockParser
from apiscramble.generator.schema import SchemaGenerator
from apiscramble.types import ObjectType, Type

_VALIDATION_ERRORS = {
    "type": "object",
    "additionalProperties": {"type": "array", "items": {"type": "string"}},
}


def _envelope(description: str, code: int, message: str, **extra: dict[str, Any]) -> dict[str, Any]:
    properties: dict[str, Any] = {
        "code": {"type": "integer", "example": code},
        "message": {"type": "string", "example": message},
    }
    properties.update(extra)
    return {
        "description": description,
        "content": {"application/json": {"schema": {"type": "object", "properties": properties}}},
    }


STANDARD_RESPONSES: dict[str, dict[str, Any]] = {
    "200": _envelope("Successful response", 200, "Success", data={"type": "object"}),
    "201": _envelope("Created successfully", 201, "Created", data={"type": "object"}),
    "400": _envelope("Bad Request", 400, "Bad Request", errors=_VALIDATION_ERRORS),
    "401": _envelope("Unauthorized", 401, "Unauthorized"),
    "403": _envelope("Forbidden", 403, "Forbidden"),
    "404": _envelope("Not Found", 404, "Not Found"),
    "422": _envelope("Validation Error", 422, "Validation failed", errors=_VALIDATION_ERRORS),
    "429": _envelope(
        "Too Many Requests", 429, "Too Many Requests", retry_after={"type": "integer", "example": 60}
    ),
    "500": _envelope("Internal Server Error", 500, "Internal Server Error"),
}

# Component names for the reusable error responses.
COMMON_RESPONSES = {
    "BadRequest": "400",
    "Unauthorized": "401",
    "Forbidden": "403",
    "NotFound": "404",
    "ValidationError": "422",
    "TooManyRequests": "429",
    "InternalServerError": "500",
}

_ACTION_PATTERNS = {
    "index": "list",
    "list": "list",
    "show": "single",
    "read": "single",
    "create": "single",
    "store": "single",
    "save": "single",
    "update": "single",
    "delete": "boolean",
    "destroy": "boolean",
}

_LIST_DATA = {
    "type": "object",
    "properties": {
        "items": {"type": "array", "items": {"type": "object"}},
        "total": {"type": "integer", "example": 100},
        "page": {"type": "integer", "example": 1},
        "limit": {"type": "integer", "example": 20},
    },
}


class ResponseGenerator:
    """Builds the ``responses`` mapping of an operation.

    The success response wraps the action's declared return type in a
    ``{code, message, data}`` envelope. Error responses depend on the
    route: 401/403 for authenticated routes, 404 for routes with path
    parameters, 422 for validated routes and 429 for rate-limited ones.
    """

    def __init__(
        self,
        schema_generator: SchemaGenerator | None = None,
        docblock_parser: DocBlockParser | None = None,
    ) -> None:
        self._schemas = schema_generator or SchemaGenerator()
        self._docblock = docblock_parser or DocBlockParser()

    def generate_responses(
        self,
        route_info: Mapping[str, Any],
        controller_info: Mapping[str, Any] | None = None,
        middleware_info: Mapping[str, Any] | None = None,
    ) -> dict[str, Any]:
        method = str(route_info.get("method", "GET")).upper()
        features = (middleware_info or {}).get("features") or {}

        responses = {"200": self.success_response(route_info, controller_info or {})}
        if method == "POST":
            responses["201"] = self.get_standard_response("201")

        codes = ["400"]
        if features.get("requires_auth"):
            codes += ["401", "403"]
        if "{" in str(route_info.get("path", "")):
            codes.append("404")
        if route_info.get("validate"):
            codes.append("422")
        if features.get("has_rate_limit"):
            codes.append("429")
        codes.append("500")

        for code in codes:
            responses[code] = self.get_standard_response(code)
        return responses

    def success_response(
        self,
        route_info: Mapping[str, Any],
        controller_info: Mapping[str, Any],
    ) -> dict[str, Any]:
        response = self.get_standard_response("200")
        properties = response["content"]["application/json"]["schema"]["properties"]

        action = str(route_info.get("action") or "")
        data_schema = self._return_schema(action, controller_info)

        if data_schema is not None:
            properties["data"] = data_schema
        else:
            pattern = _ACTION_PATTERNS.get(action, "single")
            if pattern == "list":
                properties["data"] = copy.deepcopy(_LIST_DATA)
            elif pattern == "boolean":
                properties["data"] = {"type": "boolean", "example": True}

        return response

    def get_standard_response(self, code: str | int) -> dict[str, Any] | None:
        response = STANDARD_RESPONSES.get(str(code))
        return copy.deepcopy(response) if response is not None else None

    def common_responses(self) -> dict[str, dict[str, Any]]:
        """Reusable error responses keyed by component name."""
        return {name: self.get_standard_response(code) for name, code in COMMON_RESPONSES.items()}

    def _return_schema(self, action: str, controller_info: Mapping[str, Any]) -> dict[str, Any] | None:
        method_info = (controller_info.get("methods") or {}).get(action) or {}

        return_type = method_info.get("return_type")
        if isinstance(return_type, Type):
            return return_type.to_openapi_schema()
        if isinstance(return_type, Mapping):
            return self._schemas.generate_from_array(return_type)
        if isinstance(return_type, str) and return_type.strip():
            return self._schemas.schema_from_type_string(return_type)

        doc = method_info.get("doc_comment")
        if doc:
            doc_type = self._docblock.parse_return_type(doc)
            # Framework response classes (Json, Response...) have no schema.
            if isinstance(doc_type, ObjectType) and doc_type.short_name not in self._schemas.definitions:
                return None
            if doc_type is not None:
                return doc_type.to_openapi_schema()
        return None

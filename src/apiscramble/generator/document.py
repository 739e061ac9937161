"""DocumentBuilder - accumulates one OpenAPI document.

The builder starts with the mandatory ``openapi``, ``info`` and ``paths``
keys and creates each ``components`` section the first time something is
added to it. Every mutator returns the builder so calls can be chained::

    document = (
        DocumentBuilder(config)
        .add_schema("User", user_schema)
        .add_path("/users", "get", operation)
        .add_tag({"name": "users"})
        .get_document()
    )
"""

from __future__ import annotations

import copy
import logging
from collections.abc import Mapping
from typing import Any

from apiscramble.analyzer.docblock import DocBlockParser
from apiscramble.analyzer.validation import ValidationRuleParser
from apiscramble.config import ScrambleConfig
from apiscramble.errors import ErrorContext, GenerationError, ScrambleError
from apiscramble.generator.parameters import ParameterExtractor
from apiscramble.generator.references import RefResolver
from apiscramble.generator.responses import ResponseGenerator
from apiscramble.generator.schema import SchemaGenerator
from apiscramble.generator.security import SecuritySchemeGenerator
from apiscramble.serialization import YamlGenerator, to_json

logger = logging.getLogger(__name__)

BODY_METHODS = {"POST", "PUT", "PATCH"}


class DocumentBuilder:
    """Builds a single OpenAPI document.

    Args:
        config: Generation settings; defaults are used when omitted.
        schema_generator: Shared generator for parameter and response schemas.
    """

    def __init__(
        self,
        config: ScrambleConfig | None = None,
        schema_generator: SchemaGenerator | None = None,
    ) -> None:
        self.config = config or ScrambleConfig()
        self._docblock = DocBlockParser()
        self._rules = ValidationRuleParser()
        self._schemas = schema_generator or SchemaGenerator(docblock_parser=self._docblock)
        self._parameters = ParameterExtractor(self.config, self._schemas, self._docblock, self._rules)
        self._responses = ResponseGenerator(self._schemas, self._docblock)
        self._security = SecuritySchemeGenerator(self.config)
        self._document = self._initial_document()

    def _initial_document(self) -> dict[str, Any]:
        document: dict[str, Any] = {
            "openapi": self.config.openapi_version,
            "info": self.config.info(),
        }
        if self.config.servers:
            document["servers"] = self.config.server_list()
        document["paths"] = {}
        return document

    def add_path(self, path: str, method: str, operation: Mapping[str, Any]) -> DocumentBuilder:
        """Set the operation for ``path`` and ``method``; later calls overwrite."""
        self._document["paths"].setdefault(path, {})[method.lower()] = copy.deepcopy(operation)
        return self

    def add_schema(self, name: str, schema: Mapping[str, Any]) -> DocumentBuilder:
        return self._add_component("schemas", name, schema)

    def add_parameter(self, name: str, parameter: Mapping[str, Any]) -> DocumentBuilder:
        return self._add_component("parameters", name, parameter)

    def add_response(self, name: str, response: Mapping[str, Any]) -> DocumentBuilder:
        return self._add_component("responses", name, response)

    def add_security_scheme(self, name: str, scheme: Mapping[str, Any]) -> DocumentBuilder:
        return self._add_component("securitySchemes", name, scheme)

    def add_tag(self, tag: Mapping[str, Any] | str) -> DocumentBuilder:
        """Append ``tag`` unless a tag with the same name exists."""
        if isinstance(tag, str):
            tag = {"name": tag}
        tags = self._document.setdefault("tags", [])
        if not any(existing.get("name") == tag.get("name") for existing in tags):
            tags.append(copy.deepcopy(dict(tag)))
        return self

    def set_security(self, requirements: list[Mapping[str, list[str]]]) -> DocumentBuilder:
        """Replace the document-level security requirements."""
        self._document["security"] = copy.deepcopy(list(requirements))
        return self

    def get_document(self) -> dict[str, Any]:
        """Return a snapshot of the document; later builder calls do not affect it."""
        return copy.deepcopy(self._document)

    def to_json(self, pretty: bool = True) -> str:
        """Serialize the document.

        Raises:
            StructuralError: If the document holds values JSON cannot encode.
        """
        return to_json(self._document, pretty)

    def to_yaml(self) -> str:
        return YamlGenerator.encode(self._document)

    def validate_references(self) -> DocumentBuilder:
        """Check that every ``$ref`` resolves.

        Raises:
            UnresolvedReferenceError: Listing the dangling references.
        """
        RefResolver(self._document).validate()
        return self

    def build_operation(
        self,
        route_info: Mapping[str, Any],
        controller_info: Mapping[str, Any] | None = None,
        middleware_info: Mapping[str, Any] | None = None,
        validator_info: Mapping[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Build an operation object from analyzer metadata.

        Args:
            route_info: ``path``, ``method``, ``controller``, ``action``,
                ``parameters`` and optional ``middleware``.
            controller_info: ``class`` and ``methods`` keyed by action.
            middleware_info: Result of middleware analysis. Derived from
                ``route_info["middleware"]`` when omitted.
            validator_info: Validation ``rules`` for the route. Rules become
                the request body for POST/PUT/PATCH and query parameters
                otherwise.

        Raises:
            GenerationError: If the metadata is malformed.
        """
        controller_info = controller_info or {}
        logger.debug("Building operation %s %s", route_info.get("method"), route_info.get("path"))
        if middleware_info is None and route_info.get("middleware"):
            middleware_info = self._security.analyze_middleware(route_info["middleware"])

        try:
            return self._build_operation(route_info, controller_info, middleware_info, validator_info)
        except ScrambleError:
            raise
        except (KeyError, TypeError, AttributeError) as e:
            raise GenerationError(
                f"Failed to build operation: {e}",
                context=ErrorContext(path=route_info.get("path"), method=route_info.get("method")),
                cause=e,
            ) from e

    def _build_operation(
        self,
        route_info: Mapping[str, Any],
        controller_info: Mapping[str, Any],
        middleware_info: Mapping[str, Any] | None,
        validator_info: Mapping[str, Any] | None,
    ) -> dict[str, Any]:
        method = str(route_info.get("method", "GET")).upper()
        action = str(route_info.get("action") or "unknown")
        controller = _short_controller(route_info.get("controller"))

        method_info = (controller_info.get("methods") or {}).get(action) or {}
        doc = self._docblock.parse(method_info.get("doc_comment") or "")

        operation: dict[str, Any] = {
            "summary": doc["summary"] or f"{action[:1].upper()}{action[1:]} {controller}",
            "description": doc["description"] or doc["summary"] or f"Execute {action} action",
            "operationId": f"{method.lower()}{_upper_first(controller)}{_upper_first(action)}",
            "tags": [controller],
        }

        parameters = self._parameters.extract_parameters(route_info, controller_info)
        request_body = None
        if method in BODY_METHODS:
            request_body = self._request_body(validator_info)
        elif validator_info:
            parameters = self._parameters.merge_parameters(
                parameters, self._parameters.extract_validator_parameters(validator_info)
            )
        operation["parameters"] = parameters

        route_for_responses = dict(route_info)
        if validator_info:
            route_for_responses["validate"] = True
        operation["responses"] = self._responses.generate_responses(
            route_for_responses, controller_info, middleware_info
        )

        if request_body is not None:
            operation["requestBody"] = request_body

        security = self._security.operation_security(middleware_info)
        if security:
            operation["security"] = security

        if any(tag["name"] == "deprecated" for tag in doc["tags"]):
            operation["deprecated"] = True

        return operation

    def _request_body(self, validator_info: Mapping[str, Any] | None) -> dict[str, Any]:
        schema: dict[str, Any] = {"type": "object", "properties": {}}
        if validator_info and validator_info.get("rules"):
            schema = self._rules.to_schema(validator_info["rules"])
        return {
            "required": True,
            "content": {
                "application/json": {"schema": schema},
                "application/x-www-form-urlencoded": {"schema": copy.deepcopy(schema)},
            },
        }

    def _add_component(self, kind: str, name: str, definition: Mapping[str, Any]) -> DocumentBuilder:
        components = self._document.setdefault("components", {})
        components.setdefault(kind, {})[name] = copy.deepcopy(definition)
        return self


def _short_controller(controller: Any) -> str:
    if not controller:
        return "unknown"
    return str(controller).replace("\\", ".").split(".")[-1]


def _upper_first(text: str) -> str:
    return f"{text[:1].upper()}{text[1:]}"

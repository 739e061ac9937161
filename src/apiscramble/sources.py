"""Analyzer sources feeding the generator.

Framework adapters implement these narrow interfaces to hand route,
controller and validation metadata to :class:`OpenApiGenerator`.
:class:`MappingSource` implements all three on top of plain data, usually
loaded from a YAML or JSON file::

    routes:
      - path: /users/{id}
        method: GET
        controller: app.UserController
        action: show
        middleware: [auth]
    controllers:
      app.UserController:
        methods:
          show:
            doc_comment: "Show a user"
    validators:
      app.UserController@store:
        rules:
          name: required|string|max:100
    schemas:
      User:
        id: int
        name: string
"""

from __future__ import annotations

import copy
import logging
from abc import ABC, abstractmethod
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Any

from apiscramble.errors import ErrorContext, StructuralError
from apiscramble.serialization import load_document

logger = logging.getLogger(__name__)


class RouteSource(ABC):
    """Provides the application's routes."""

    @abstractmethod
    def get_routes(self) -> list[dict[str, Any]]:
        """Route info mappings with ``path``, ``method``, ``controller``, ``action``."""
        ...


class ControllerSource(ABC):
    """Provides controller metadata by controller name."""

    @abstractmethod
    def get_controller(self, name: str) -> dict[str, Any] | None:
        ...


class ValidationRuleSource(ABC):
    """Provides the validation rules that apply to a route."""

    @abstractmethod
    def get_rules(self, route_info: Mapping[str, Any]) -> dict[str, Any] | None:
        """Validator info (``rules``, optional ``scene``/``scenes``) or None."""
        ...


def validator_key(route_info: Mapping[str, Any]) -> str:
    """Default lookup key for a route's validator: ``Controller@action``."""
    return f"{route_info.get('controller', '')}@{route_info.get('action', '')}"


class MappingSource(RouteSource, ControllerSource, ValidationRuleSource):
    """All three sources backed by in-memory data.

    Validators are looked up by the route's ``validator`` key first, then
    by ``Controller@action``.
    """

    def __init__(
        self,
        routes: Iterable[Mapping[str, Any]] | None = None,
        controllers: Mapping[str, Mapping[str, Any]] | None = None,
        validators: Mapping[str, Mapping[str, Any]] | None = None,
        schemas: Mapping[str, Any] | None = None,
    ) -> None:
        self.routes = [dict(route) for route in routes or []]
        self.controllers = {str(k): dict(v) for k, v in (controllers or {}).items()}
        self.validators = {str(k): dict(v) for k, v in (validators or {}).items()}
        self.schemas = dict(schemas or {})

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> MappingSource:
        """Build a source from a mapping with ``routes``/``controllers``/``validators``/``schemas``.

        Raises:
            StructuralError: If a section has the wrong shape.
        """
        if not isinstance(data, Mapping):
            raise StructuralError(f"Source data must be a mapping, got {type(data).__name__}")

        routes = data.get("routes") or []
        if not isinstance(routes, list) or not all(isinstance(r, Mapping) for r in routes):
            raise StructuralError(
                "'routes' must be a list of mappings",
                context=ErrorContext(pointer="/routes"),
            )
        for section in ("controllers", "validators", "schemas"):
            if not isinstance(data.get(section) or {}, Mapping):
                raise StructuralError(
                    f"'{section}' must be a mapping",
                    context=ErrorContext(pointer=f"/{section}"),
                )

        return cls(
            routes=routes,
            controllers=data.get("controllers"),
            validators=data.get("validators"),
            schemas=data.get("schemas"),
        )

    @classmethod
    def from_file(cls, path: str | Path) -> MappingSource:
        """Load a source from a YAML or JSON file."""
        logger.debug("Loading analyzer data from %s", path)
        return cls.from_mapping(load_document(path))

    def get_routes(self) -> list[dict[str, Any]]:
        return copy.deepcopy(self.routes)

    def get_controller(self, name: str) -> dict[str, Any] | None:
        controller = self.controllers.get(name)
        return copy.deepcopy(controller) if controller is not None else None

    def get_rules(self, route_info: Mapping[str, Any]) -> dict[str, Any] | None:
        for key in (route_info.get("validator"), validator_key(route_info)):
            if key and key in self.validators:
                return copy.deepcopy(self.validators[key])
        return None

    def get_schemas(self) -> dict[str, Any]:
        return copy.deepcopy(self.schemas)

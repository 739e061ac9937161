"""Validation rule parsing.

Validation rules arrive as pipe-delimited strings such as
``"required|string|max:100"`` or as already-split mappings. Field keys may
carry a label after a pipe (``"email|Email address"``), which becomes the
parameter description.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

logger = logging.getLogger(__name__)

_FORMAT_RULES = {
    "email": "email",
    "url": "uri",
    "date": "date",
    "dateFormat": "date-time",
}


class ValidationRuleParser:
    """Converts validation rules to OpenAPI parameters and schemas.

    Example:
        >>> parser = ValidationRuleParser()
        >>> parser.to_parameter("age", "required|integer|between:1,120")["schema"]
        {'type': 'integer', 'minimum': 1, 'maximum': 120}
    """

    def parse_rule(self, rule: str | Mapping[str, Any] | list[str] | None) -> dict[str, Any]:
        """Split a rule into an ordered ``{rule_name: value}`` mapping.

        Rules without an argument map to True. Only the first ``:``
        separates the name from its argument, so regex arguments survive.
        """
        if rule is None:
            return {}
        if isinstance(rule, Mapping):
            return dict(rule)

        parts = rule.split("|") if isinstance(rule, str) else list(rule)
        parsed: dict[str, Any] = {}
        for part in parts:
            part = part.strip()
            if not part:
                continue
            name, sep, value = part.partition(":")
            parsed[name] = value if sep else True
        return parsed

    def to_parameter(
        self,
        field: str,
        rule: str | Mapping[str, Any] | list[str] | None,
        location: str = "query",
    ) -> dict[str, Any]:
        """Build an OpenAPI parameter object for one field."""
        name, _, label = field.partition("|")
        parameter: dict[str, Any] = {
            "name": name,
            "in": location,
            "required": False,
            "schema": {"type": "string"},
            "description": label,
        }

        for rule_name, rule_value in self.parse_rule(rule).items():
            self._apply_rule(parameter, rule_name, rule_value)

        if location == "path":
            parameter["required"] = True
        return parameter

    def analyze_rules(
        self,
        rules: Mapping[str, Any],
        location: str = "query",
    ) -> list[dict[str, Any]]:
        """Convert a ``{field: rule}`` mapping into a parameter list."""
        return [self.to_parameter(field, rule, location) for field, rule in rules.items()]

    def to_schema(self, rules: Mapping[str, Any]) -> dict[str, Any]:
        """Convert a ``{field: rule}`` mapping into an object schema.

        ``required`` is emitted only when at least one field is required.
        """
        schema: dict[str, Any] = {"type": "object", "properties": {}}
        required: list[str] = []

        for parameter in self.analyze_rules(rules):
            property_schema = dict(parameter["schema"])
            if parameter["description"]:
                property_schema["description"] = parameter["description"]
            schema["properties"][parameter["name"]] = property_schema
            if parameter["required"]:
                required.append(parameter["name"])

        if required:
            schema["required"] = required
        return schema

    def filter_by_scene(
        self,
        parameters: list[dict[str, Any]],
        scene: str,
        scenes: Mapping[str, list[str]],
    ) -> list[dict[str, Any]]:
        """Keep only the parameters listed for ``scene``.

        An unknown scene leaves the parameters untouched.
        """
        if scene not in scenes:
            return parameters
        fields = set(scenes[scene])
        return [p for p in parameters if p["name"] in fields]

    def _apply_rule(self, parameter: dict[str, Any], name: str, value: Any) -> None:
        schema = parameter["schema"]

        if name in ("require", "required"):
            parameter["required"] = True
        elif name in ("integer", "number"):
            schema["type"] = "integer"
        elif name in ("float", "numeric"):
            schema["type"] = "number"
        elif name == "boolean":
            schema["type"] = "boolean"
        elif name == "string":
            schema["type"] = "string"
        elif name == "array":
            schema.clear()
            schema.update({"type": "array", "items": {"type": "string"}})
        elif name in _FORMAT_RULES:
            schema["type"] = "string"
            schema["format"] = _FORMAT_RULES[name]
        elif name == "min":
            schema[_bound_key(schema, "min")] = _number(value)
        elif name == "max":
            schema[_bound_key(schema, "max")] = _number(value)
        elif name == "length":
            low, _, high = str(value).partition(",")
            schema["minLength"] = int(low)
            schema["maxLength"] = int(high or low)
        elif name == "between":
            low, _, high = str(value).partition(",")
            schema[_bound_key(schema, "min")] = _number(low)
            schema[_bound_key(schema, "max")] = _number(high or low)
        elif name == "in":
            schema["enum"] = str(value).split(",")
        elif name == "regex":
            schema["pattern"] = str(value)
        elif name == "nullable":
            schema["nullable"] = True
        else:
            logger.debug("Ignoring validation rule %r for %s", name, parameter["name"])


def _bound_key(schema: dict[str, Any], side: str) -> str:
    kind = schema.get("type")
    if kind == "string":
        return "minLength" if side == "min" else "maxLength"
    if kind == "array":
        return "minItems" if side == "min" else "maxItems"
    return "minimum" if side == "min" else "maximum"


def _number(value: Any) -> int | float:
    text = str(value).strip()
    try:
        return int(text)
    except ValueError:
        return float(text)

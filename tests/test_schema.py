"""Tests for the schema generator."""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from typing import Literal, Optional

import pytest
from pydantic import BaseModel, Field

from apiscramble.errors import GenerationError, StructuralError, UnsupportedTypeError
from apiscramble.generator import SchemaGenerator, iter_refs
from apiscramble.types import ArrayType, ScalarType


@dataclass
class Node:
    name: str
    children: list[Node] = field(default_factory=list)
    parent: Optional[Node] = None


@dataclass
class Invoice:
    number: int
    status: Literal["draft", "paid"] = "draft"
    lines: dict[str, float] = field(default_factory=dict)


class Legacy:
    id: int
    label = "untitled"

    @property
    def display(self) -> str:
        return f"{self.id}"


class Shade(enum.Enum):
    LIGHT = "light"
    DARK = "dark"


class Product(BaseModel):
    sku: str
    price: float = 0.0
    tags: list[str] = Field(default_factory=list)


class TestGenerateFromArray:
    """Tests for field-spec schemas."""

    def test_object_with_exact_keys(self, schema_generator: SchemaGenerator) -> None:
        schema = schema_generator.generate_from_array({"id": "int", "email": "email", "score": "?float"})

        assert schema == {
            "type": "object",
            "properties": {
                "id": {"type": "integer"},
                "email": {"type": "string", "format": "email"},
                "score": {"type": "number", "nullable": True},
            },
        }

    def test_nested_and_list_fields(self, schema_generator: SchemaGenerator) -> None:
        schema = schema_generator.generate_from_array({"profile": {"bio": "string"}, "tags": ["string"]})

        assert schema["properties"]["profile"] == {"type": "object", "properties": {"bio": {"type": "string"}}}
        assert schema["properties"]["tags"] == {"type": "array", "items": {"type": "string"}}

    def test_type_values(self, schema_generator: SchemaGenerator) -> None:
        schema = schema_generator.generate_from_array({"ids": ArrayType.of(ScalarType.integer())})

        assert schema["properties"]["ids"] == {"type": "array", "items": {"type": "integer"}}

    def test_required_only_when_given(self, schema_generator: SchemaGenerator) -> None:
        schema = schema_generator.generate_from_array({"id": "int"}, required=["id"])

        assert schema["required"] == ["id"]

    def test_named_schema_is_recorded(self, schema_generator: SchemaGenerator) -> None:
        schema_generator.generate_from_array({"id": "int"}, name="Tag")

        assert schema_generator.definitions["Tag"]["properties"] == {"id": {"type": "integer"}}

    def test_spec_must_be_mapping(self, schema_generator: SchemaGenerator) -> None:
        with pytest.raises(StructuralError):
            schema_generator.generate_from_array(["id"])  # type: ignore[arg-type]

    def test_bad_field_value_reports_pointer(self, schema_generator: SchemaGenerator) -> None:
        with pytest.raises(StructuralError) as exc_info:
            schema_generator.generate_from_array({"age": 42}, name="Person")

        assert exc_info.value.context.pointer == "/properties/age"
        assert exc_info.value.context.schema_name == "Person"


class TestGenerateFromClass:
    """Tests for class introspection."""

    def test_self_reference_becomes_ref(self, schema_generator: SchemaGenerator) -> None:
        schema = schema_generator.generate_from_class(Node)

        assert schema["required"] == ["name"]
        assert schema["properties"]["children"] == {
            "type": "array",
            "items": {"$ref": "#/components/schemas/Node"},
        }
        assert schema["properties"]["parent"] == {
            "allOf": [{"$ref": "#/components/schemas/Node"}],
            "nullable": True,
        }
        assert "Node" in schema_generator.definitions

    def test_literal_and_mapping_members(self, schema_generator: SchemaGenerator) -> None:
        schema = schema_generator.generate_from_class(Invoice)

        assert schema["properties"]["status"] == {"type": "string", "enum": ["draft", "paid"]}
        assert schema["properties"]["lines"] == {"type": "object", "additionalProperties": {"type": "number"}}
        assert schema["required"] == ["number"]

    def test_untyped_member_defaults_to_string(
        self, schema_generator: SchemaGenerator, caplog: pytest.LogCaptureFixture
    ) -> None:
        with caplog.at_level(logging.WARNING, logger="apiscramble.generator.schema"):
            schema = schema_generator.generate_from_class(Legacy)

        assert schema["properties"]["label"] == {"type": "string"}
        assert "Legacy.label" in caplog.text

    def test_read_only_property(self, schema_generator: SchemaGenerator) -> None:
        schema = schema_generator.generate_from_class(Legacy)

        assert schema["properties"]["display"] == {"type": "string", "readOnly": True}
        assert schema["required"] == ["id"]

    def test_pydantic_model(self, schema_generator: SchemaGenerator) -> None:
        schema = schema_generator.generate_from_class(Product)

        assert schema["properties"] == {
            "sku": {"type": "string"},
            "price": {"type": "number"},
            "tags": {"type": "array", "items": {"type": "string"}},
        }
        assert schema["required"] == ["sku"]

    def test_results_are_memoized_copies(self, schema_generator: SchemaGenerator) -> None:
        first = schema_generator.generate_from_class(Invoice)
        first["properties"].clear()

        assert schema_generator.generate_from_class(Invoice)["properties"]

    @pytest.mark.parametrize("target", ["no_such_module_here.Thing", "Thing", "logging.NoSuchClass"])
    def test_unresolvable_class_path(self, schema_generator: SchemaGenerator, target: str) -> None:
        with pytest.raises(GenerationError):
            schema_generator.generate_from_class(target)

    def test_dotted_class_path(self, schema_generator: SchemaGenerator) -> None:
        schema = schema_generator.generate_from_class("apiscramble.analyzer.ast_parser:ParsedField")

        assert schema["properties"]["name"] == {"type": "string"}
        assert schema["properties"]["has_default"] == {"type": "boolean"}
        assert schema["required"] == ["name"]


class TestGenerateFromSource:
    """Tests for static source schemas."""

    SOURCE = '''
from enum import Enum
from typing import Any


class Role(Enum):
    """Account role."""

    ADMIN = "admin"
    MEMBER = "member"


class Account:
    """Account record.

    Longer text.
    """

    id: int
    owner: User
    nickname: str | None = None
    note: Any
'''

    def test_schemas_in_definition_order(self, schema_generator: SchemaGenerator) -> None:
        schemas = schema_generator.generate_from_source(self.SOURCE)

        assert list(schemas) == ["Role", "Account"]
        assert schemas["Role"] == {"type": "string", "enum": ["admin", "member"], "description": "Account role."}

    def test_class_fields(self, schema_generator: SchemaGenerator) -> None:
        account = schema_generator.generate_from_source(self.SOURCE)["Account"]

        assert account["properties"]["owner"] == {"$ref": "#/components/schemas/User"}
        assert account["properties"]["nickname"] == {"type": "string", "nullable": True}
        assert account["properties"]["note"] == {"type": "string"}
        assert account["required"] == ["id", "owner", "note"]
        assert account["description"] == "Account record."
        assert "Account" in schema_generator.definitions


class TestSchemaFromTypeString:
    """Tests for type expression rendering."""

    @pytest.mark.parametrize(
        "expression,expected",
        [
            ("email", {"type": "string", "format": "email"}),
            ("?int", {"type": "integer", "nullable": True}),
            ("email[]", {"type": "array", "items": {"type": "string", "format": "email"}}),
            ("datetime", {"type": "string", "format": "date-time"}),
            ("User", {"$ref": "#/components/schemas/User"}),
            ("?User", {"allOf": [{"$ref": "#/components/schemas/User"}], "nullable": True}),
        ],
    )
    def test_expressions(self, schema_generator: SchemaGenerator, expression: str, expected: dict) -> None:
        assert schema_generator.schema_from_type_string(expression) == expected

    def test_untyped_defaults_to_string(self, schema_generator: SchemaGenerator) -> None:
        assert schema_generator.schema_from_type_string("mixed") == {"type": "string"}


class TestGenerateFromExample:
    """Tests for example payload schemas."""

    def test_nested_payload(self, schema_generator: SchemaGenerator) -> None:
        schema = schema_generator.generate_from_example({"id": 1, "tags": ["a", "b"], "items": [{"qty": 2}]})

        assert schema["properties"]["id"] == {"type": "integer"}
        assert schema["properties"]["tags"] == {"type": "array", "items": {"type": "string"}}
        assert schema["properties"]["items"] == {
            "type": "array",
            "items": {"type": "object", "properties": {"qty": {"type": "integer"}}},
        }

    def test_dataclass_instance(self, schema_generator: SchemaGenerator) -> None:
        schema = schema_generator.generate_from_example(Invoice(number=7))

        assert schema["required"] == ["number"]

    def test_instances_in_lists_are_defined(self, schema_generator: SchemaGenerator) -> None:
        schema = schema_generator.generate_from_example(
            {"invoices": [Invoice(number=1), Invoice(number=2)], "mixed": [Invoice(number=3), "note"]}
        )

        assert schema["properties"]["invoices"]["items"]["required"] == ["number"]
        refs = [ref for _, ref in iter_refs(schema)]
        assert refs == ["#/components/schemas/Invoice"]
        assert "Invoice" in schema_generator.definitions

    def test_enum_member(self, schema_generator: SchemaGenerator) -> None:
        schema = schema_generator.generate_from_example({"shade": Shade.DARK})

        assert schema["properties"]["shade"] == {"type": "string", "enum": ["light", "dark"]}
        assert schema_generator.definitions == {}

    def test_self_referencing_payload(self, schema_generator: SchemaGenerator) -> None:
        payload: dict[str, object] = {"id": 1}
        payload["self"] = payload

        with pytest.raises(UnsupportedTypeError):
            schema_generator.generate_from_example(payload)
